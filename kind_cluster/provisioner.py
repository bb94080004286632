"""Provisioning engine adapter around the ``kind`` command line tool."""

import subprocess
import tempfile
from pathlib import Path

from kind_cluster.config import ControllerSettings
from kind_cluster.exceptions import ProvisioningError
from kind_cluster.logging_config import get_logger
from kind_cluster.models.cluster import Cluster

logger = get_logger(__name__)


class KindProvisioner:
    """Creates, lists and deletes kind clusters and exports their kubeconfigs."""

    def __init__(self, settings: ControllerSettings | None = None):
        self.settings = settings or ControllerSettings()

    def _run(self, args: list[str]) -> str:
        """Run a kind subcommand and return its stdout.

        Raises:
            ProvisioningError: If kind is missing, fails or times out
        """
        command = [self.settings.kind_binary, *args]
        logger.debug(f"Running: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.settings.command_timeout,
            )
        except FileNotFoundError:
            logger.error(f"kind binary not found: {self.settings.kind_binary}")
            raise ProvisioningError(
                "kind is not installed or not in PATH",
                "Install kind from https://kind.sigs.k8s.io/docs/user/quick-start/\n"
                "Or set kind_binary in the settings file",
            )
        except OSError as e:
            logger.error(f"kind binary could not be run: {self.settings.kind_binary}: {e}")
            raise ProvisioningError(
                f"kind could not be executed: {self.settings.kind_binary}",
                f"{e}\nCheck that the file is executable or set kind_binary in the settings file",
            ) from e
        except subprocess.CalledProcessError as e:
            logger.error(f"kind {args[0]} failed with return code {e.returncode}: {e.stderr}")
            raise ProvisioningError(
                f"kind {' '.join(args[:2])} failed",
                f"Command output: {(e.stderr or '').strip()}",
            )
        except subprocess.TimeoutExpired:
            logger.error(f"kind {args[0]} timed out after {self.settings.command_timeout}s")
            raise ProvisioningError(
                f"kind {' '.join(args[:2])} timed out",
                f"The command did not finish within {self.settings.command_timeout} seconds",
            )

        return result.stdout

    def create(
        self,
        name: str,
        config: Cluster | None = None,
        node_image: str = "",
        kubeconfig_path: str = "",
        wait: float | None = None,
    ) -> None:
        """Create a cluster.

        Args:
            name: Cluster name
            config: Optional cluster specification
            node_image: Node image for nodes that do not override it
            kubeconfig_path: Kubeconfig to write credentials to instead of the default
            wait: Seconds to wait for the control plane to become ready
        """
        args = ["create", "cluster", "--name", name]
        if node_image:
            args += ["--image", node_image]
        if kubeconfig_path:
            args += ["--kubeconfig", kubeconfig_path]
        if wait is not None:
            args += ["--wait", f"{int(wait)}s"]

        if config is None:
            self._run(args)
            return

        with tempfile.TemporaryDirectory(prefix="kind-cluster-") as tmp_dir:
            config_path = Path(tmp_dir) / "cluster.yaml"
            config_path.write_text(config.to_yaml())
            logger.debug(f"Wrote cluster configuration to {config_path}")
            self._run(args + ["--config", str(config_path)])

    def delete(self, name: str, kubeconfig_path: str = "") -> None:
        """Delete a cluster; deleting a missing cluster is not an error for kind."""
        args = ["delete", "cluster", "--name", name]
        if kubeconfig_path:
            args += ["--kubeconfig", kubeconfig_path]
        self._run(args)

    def get_kubeconfig(self, name: str, internal: bool = False) -> str:
        """Return the kubeconfig document for a cluster."""
        args = ["get", "kubeconfig", "--name", name]
        if internal:
            args.append("--internal")
        return self._run(args)

    def export_kubeconfig(self, name: str, path: str, internal: bool = False) -> None:
        """Merge the cluster's credentials into the kubeconfig at ``path``."""
        args = ["export", "kubeconfig", "--name", name, "--kubeconfig", path]
        if internal:
            args.append("--internal")
        self._run(args)

    def list_clusters(self) -> list[str]:
        """Return the names of existing kind clusters."""
        output = self._run(["get", "clusters"])
        return [line.strip() for line in output.splitlines() if line.strip()]
