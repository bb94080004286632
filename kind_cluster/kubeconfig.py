"""Kubeconfig (credential store) access.

Kubeconfig files are shared with other tools, so they are read and written
with ruamel.yaml to keep comments and key ordering intact.
"""

import base64
import binascii
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML, YAMLError

from kind_cluster.exceptions import CredentialStoreError
from kind_cluster.logging_config import get_logger
from kind_cluster.models.state import ConnectionInfo

logger = get_logger(__name__)

ENTRY_SECTIONS = ("contexts", "users", "clusters")


def default_kubeconfig_path() -> Path:
    """Return the well-known default kubeconfig location (~/.kube/config)."""
    return Path.home() / ".kube" / "config"


class KubeconfigFile:
    """Read-modify-write access to a kubeconfig file on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.yaml = YAML()
        self.yaml.preserve_quotes = True
        self.yaml.default_flow_style = False

    def read(self) -> dict:
        """Read and parse the kubeconfig.

        Raises:
            CredentialStoreError: If the file is missing, empty or not valid YAML
        """
        logger.debug(f"Reading kubeconfig: {self.path}")

        if not self.path.exists():
            raise CredentialStoreError(
                f"Kubeconfig not found: {self.path}",
                f"Expected location: {self.path.absolute()}",
            )

        try:
            with open(self.path, encoding="utf-8") as f:
                data = self.yaml.load(f)
        except (OSError, ValueError, YAMLError) as e:
            raise CredentialStoreError(f"Failed to read kubeconfig: {self.path}", str(e)) from e

        if not isinstance(data, dict):
            raise CredentialStoreError(
                f"Kubeconfig is empty or malformed: {self.path}",
                "Expected a mapping with contexts, users and clusters",
            )
        return data

    def write(self, data: dict) -> None:
        """Write kubeconfig data back to the file.

        Raises:
            CredentialStoreError: If the file cannot be written
        """
        logger.debug(f"Writing kubeconfig: {self.path}")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                self.yaml.dump(data, f)
        except (OSError, ValueError, YAMLError) as e:
            raise CredentialStoreError(f"Failed to write kubeconfig: {self.path}", str(e)) from e

    def remove_context(self, context_name: str) -> bool:
        """Remove a context and its same-named user and cluster entries.

        The current-context marker is cleared when it points at the removed
        context. Nothing is written when the context does not exist.

        Args:
            context_name: Name shared by the context, user and cluster entries

        Returns:
            True if the context was found and removed

        Raises:
            CredentialStoreError: If the file cannot be read or written
        """
        data = self.read()

        if _find_entry(data.get("contexts"), context_name) is None:
            logger.debug(f"Context {context_name} not present in {self.path}")
            return False

        for section in ENTRY_SECTIONS:
            entries = data.get(section)
            if not isinstance(entries, list):
                continue
            # Delete in place so ruamel keeps comments on the remaining entries
            for index in reversed(range(len(entries))):
                entry = entries[index]
                if isinstance(entry, dict) and entry.get("name") == context_name:
                    del entries[index]

        if data.get("current-context") == context_name:
            data["current-context"] = ""

        self.write(data)
        logger.info(f"Removed context {context_name} from {self.path}")
        return True


def _find_entry(entries: Any, name: str) -> dict | None:
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if isinstance(entry, dict) and entry.get("name") == name:
            return entry
    return None


def _credential(section: dict, key: str) -> str:
    """Return inline ``<key>-data`` (base64) or the content of the ``<key>`` file."""
    inline = section.get(f"{key}-data")
    if inline:
        try:
            return base64.b64decode(inline).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as e:
            raise CredentialStoreError(f"Invalid base64 in {key}-data", str(e)) from e

    file_path = section.get(key)
    if file_path:
        try:
            return Path(file_path).read_text()
        except OSError as e:
            raise CredentialStoreError(f"Failed to read {key} file: {file_path}", str(e)) from e
    return ""


def parse_connection(kubeconfig: str) -> ConnectionInfo:
    """Extract the API endpoint and credentials of the current context.

    Args:
        kubeconfig: Raw kubeconfig document

    Returns:
        Connection coordinates for the current context

    Raises:
        CredentialStoreError: If the document cannot be parsed or is incomplete
    """
    try:
        data = YAML(typ="safe").load(StringIO(kubeconfig))
    except YAMLError as e:
        raise CredentialStoreError("Failed to parse kubeconfig", str(e)) from e

    if not isinstance(data, dict):
        raise CredentialStoreError("Kubeconfig is empty or malformed")

    current = data.get("current-context")
    if not current:
        raise CredentialStoreError("Kubeconfig has no current context")

    context_entry = _find_entry(data.get("contexts"), current)
    if context_entry is None or not isinstance(context_entry.get("context"), dict):
        raise CredentialStoreError(f"Context {current} not found in kubeconfig")
    context = context_entry["context"]

    cluster_entry = _find_entry(data.get("clusters"), context.get("cluster", ""))
    if cluster_entry is None or not isinstance(cluster_entry.get("cluster"), dict):
        raise CredentialStoreError(f"Cluster for context {current} not found in kubeconfig")
    cluster = cluster_entry["cluster"]

    server = cluster.get("server")
    if not server:
        raise CredentialStoreError(f"Cluster for context {current} has no server")

    user_entry = _find_entry(data.get("users"), context.get("user", ""))
    user = user_entry.get("user") if user_entry else None
    if not isinstance(user, dict):
        user = {}

    return ConnectionInfo(
        endpoint=server,
        client_certificate=_credential(user, "client-certificate"),
        client_key=_credential(user, "client-key"),
        cluster_ca_certificate=_credential(cluster, "certificate-authority"),
    )
