"""Lifecycle controller for a single kind cluster resource.

A cluster moves through absent -> creating -> ready -> deleting -> absent.
There is no update path: any change to the specification is a delete
followed by a create, decided by the caller.
"""

import os
import queue
import threading
import time
from collections.abc import Callable
from typing import Any

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from kind_cluster.attributes import ListValue, parse_kind_config
from kind_cluster.config import ControllerSettings
from kind_cluster.exceptions import (
    ClusterReadError,
    ConfigurationError,
    CredentialStoreError,
    DeleteTimeoutError,
    DeletionError,
    KindClusterError,
    ProvisioningError,
    UpdateNotSupportedError,
)
from kind_cluster.kubeconfig import KubeconfigFile, default_kubeconfig_path, parse_connection
from kind_cluster.logging_config import get_logger
from kind_cluster.models.state import ClusterState
from kind_cluster.normalizer import check_containerd_patches

logger = get_logger(__name__)


class ClusterController:
    """Drives create, read and delete of kind clusters through a provisioner."""

    def __init__(
        self,
        provisioner: Any,
        settings: ControllerSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
        kubeconfig_locator: Callable[[], Any] = default_kubeconfig_path,
    ):
        """Initialize the controller.

        Args:
            provisioner: Provisioning engine (see KindProvisioner)
            settings: Retry, timeout and default values
            sleep: Function used to wait between create attempts
            kubeconfig_locator: Returns the default kubeconfig path
        """
        self.provisioner = provisioner
        self.settings = settings or ControllerSettings()
        self.sleep = sleep
        self.kubeconfig_locator = kubeconfig_locator

    def create(self, state: ClusterState, kind_config: ListValue | None = None) -> ClusterState:
        """Create the cluster described by ``state`` and populate its outputs.

        Args:
            state: Planned resource state (name, node_image, kubeconfig_path, wait_for_ready)
            kind_config: Optional kind_config block from the attribute tree

        Returns:
            The same state record, updated with identity and connection details

        Raises:
            ConfigurationError: If kind_config cannot be normalized
            ProvisioningError: If every creation attempt fails
            ClusterReadError: If the created cluster's kubeconfig cannot be read
        """
        name = state.name
        node_image = state.node_image or self.settings.default_node_image

        try:
            cluster_config = parse_kind_config(kind_config)
        except KindClusterError as e:
            raise ConfigurationError(
                "Error parsing kind_config", f"Could not parse kind_config: {e.message}"
            ) from e

        if cluster_config is not None:
            for patch_error in check_containerd_patches(cluster_config):
                logger.warning(f"Cluster {name}: {patch_error.message} ({patch_error.details})")

        wait = self.settings.wait_timeout if state.wait_for_ready else None

        logger.info(f"Creating cluster {name} with node image {node_image}")
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.max_attempts),
            wait=wait_fixed(self.settings.retry_delay),
            retry=retry_if_exception_type(ProvisioningError),
            before_sleep=lambda retry_state: self._before_retry(name, retry_state),
            sleep=self.sleep,
            reraise=True,
        )
        try:
            retrying(
                self.provisioner.create,
                name,
                config=cluster_config,
                node_image=node_image,
                kubeconfig_path=state.kubeconfig_path,
                wait=wait,
            )
        except ProvisioningError as e:
            raise ProvisioningError(
                "Error creating Kind cluster",
                f"Could not create cluster {name} after {self.settings.max_attempts} attempts: "
                f"{e.message}",
            ) from e

        state.node_image = node_image
        state.id = f"{name}-{node_image}"
        logger.info(f"Cluster {name} created")

        return self.read(state)

    def read(self, state: ClusterState) -> ClusterState:
        """Refresh connection details of an existing cluster.

        Raises:
            ClusterReadError: If the kubeconfig cannot be fetched, exported or parsed
        """
        name = state.name
        logger.debug(f"Reading cluster state for: {name}")

        try:
            kubeconfig = self.provisioner.get_kubeconfig(name, False)
        except KindClusterError as e:
            raise ClusterReadError(
                "Error reading Kind cluster",
                f"Could not read kubeconfig for cluster {name}: {e.message}",
            ) from e

        state.kubeconfig = kubeconfig

        if not state.kubeconfig_path:
            export_path = os.path.join(os.getcwd(), f"{name}-config")
            try:
                self.provisioner.export_kubeconfig(name, export_path, False)
            except KindClusterError as e:
                raise ClusterReadError(
                    "Error exporting kubeconfig",
                    f"Could not export kubeconfig for cluster {name}: {e.message}",
                ) from e
            state.kubeconfig_path = export_path

        try:
            connection = parse_connection(kubeconfig)
        except CredentialStoreError as e:
            raise ClusterReadError("Error parsing kubeconfig", e.format_message()) from e

        state.apply_connection(connection)
        state.completed = True
        return state

    def update(self, state: ClusterState) -> ClusterState:
        """Kind clusters cannot be changed in place."""
        raise UpdateNotSupportedError(
            "Update not supported",
            f"Cluster {state.name} cannot be updated. All changes require replacement.",
        )

    def delete(self, state: ClusterState) -> None:
        """Delete the cluster and remove its kubeconfig contexts.

        Deletion runs in a background thread raced against
        ``settings.delete_timeout``. Kubeconfig cleanup is best-effort.

        Raises:
            DeleteTimeoutError: If deletion does not finish in time
            DeletionError: If the provisioning engine reports a failure
        """
        name = state.name
        timeout = self.settings.delete_timeout
        logger.info(f"Deleting cluster {name}")

        results: queue.Queue = queue.Queue(maxsize=1)

        def run_delete() -> None:
            try:
                self.provisioner.delete(name, state.kubeconfig_path)
            except Exception as e:
                results.put(e)
            else:
                results.put(None)

        # Daemon thread: if the timeout wins, the worker is abandoned, not joined
        worker = threading.Thread(target=run_delete, name=f"delete-{name}", daemon=True)
        worker.start()

        try:
            error = results.get(timeout=timeout)
        except queue.Empty:
            logger.error(f"Deletion of cluster {name} timed out after {timeout}s")
            raise DeleteTimeoutError(
                "Error deleting Kind cluster",
                f"Could not delete cluster {name}: delete operation timed out after {timeout}s",
            )

        if error is not None:
            detail = error.message if isinstance(error, KindClusterError) else str(error)
            raise DeletionError(
                "Error deleting Kind cluster", f"Could not delete cluster {name}: {detail}"
            ) from error

        logger.info(f"Cluster {name} deleted")

        context_name = state.context_name
        self._best_effort(
            "remove context from default kubeconfig",
            lambda: KubeconfigFile(self.kubeconfig_locator()).remove_context(context_name),
        )
        if state.kubeconfig_path:
            self._best_effort(
                "remove context from custom kubeconfig",
                lambda: KubeconfigFile(state.kubeconfig_path).remove_context(context_name),
            )

    def _before_retry(self, name: str, retry_state: RetryCallState) -> None:
        """Clean up after a failed create attempt, before waiting to retry."""
        error = retry_state.outcome.exception()
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{self.settings.max_attempts} "
            f"to create cluster {name} failed: {error}"
        )
        self._best_effort(
            f"delete partially created cluster {name}",
            lambda: self.provisioner.delete(name, ""),
        )

    @staticmethod
    def _best_effort(description: str, action: Callable[[], Any]) -> None:
        """Run ``action``, logging a warning instead of raising on failure."""
        try:
            action()
        except KindClusterError as e:
            logger.warning(f"Unable to {description}: {e.format_message()}")
        except Exception as e:
            logger.warning(f"Unable to {description}: {type(e).__name__}: {e}")
