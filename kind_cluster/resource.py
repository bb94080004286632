"""Loading of cluster resource definitions from YAML files."""

from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from kind_cluster.attributes import ListValue, from_native
from kind_cluster.exceptions import ConfigurationError
from kind_cluster.logging_config import get_logger
from kind_cluster.models.cluster import DEFAULT_API_VERSION
from kind_cluster.models.state import ClusterState

logger = get_logger(__name__)

RESOURCE_FIELDS = {"name", "node_image", "wait_for_ready", "kubeconfig_path", "kind_config"}


def load_resource(path: str | Path) -> tuple[ClusterState, ListValue | None]:
    """Read a resource definition and build its planned state and kind_config tree.

    The file holds the resource attributes at top level, for example::

        name: dev
        wait_for_ready: true
        kind_config:
          kind: Cluster
          node:
            - role: control-plane
            - role: worker

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Resource file not found: {path}", f"Expected location: {path.absolute()}"
        )
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read resource file: {path}", str(e)) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Resource file must contain a mapping: {path}")

    unknown = set(data) - RESOURCE_FIELDS
    if unknown:
        raise ConfigurationError(
            f"Unsupported attributes in {path}: {', '.join(sorted(unknown))}",
            f"Supported attributes: {', '.join(sorted(RESOURCE_FIELDS))}",
        )

    try:
        state = ClusterState(
            name=data.get("name") or "",
            node_image=data.get("node_image") or "",
            wait_for_ready=bool(data.get("wait_for_ready", False)),
            kubeconfig_path=data.get("kubeconfig_path") or "",
        )
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid resource definition: {path}", str(e)) from e

    kind_config = data.get("kind_config")
    if kind_config is None:
        return state, None

    if isinstance(kind_config, dict):
        kind_config = [kind_config]
    if not isinstance(kind_config, list):
        raise ConfigurationError(f"kind_config must be a mapping in {path}")

    for block in kind_config:
        if not isinstance(block, dict):
            continue
        kind = block.get("kind")
        if not isinstance(kind, str) or not kind:
            raise ConfigurationError(
                f"kind_config is missing required attribute kind in {path}",
                "Set kind: Cluster",
            )
        block.setdefault("api_version", DEFAULT_API_VERSION)

    logger.debug(f"Loaded resource {state.name} from {path}")
    return state, from_native(kind_config)
