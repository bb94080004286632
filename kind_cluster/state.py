"""On-disk storage of cluster resource state records.

Each record is stored as ``<state_dir>/<name>.yml``. Records hold
credentials, so files are created readable by the owner only.
"""

import os
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML, YAMLError

from kind_cluster.exceptions import StateError
from kind_cluster.logging_config import get_logger
from kind_cluster.models.state import ClusterState

logger = get_logger(__name__)

DEFAULT_STATE_DIR = ".kind-cluster"


class StateStore:
    """Manager for persisted ClusterState records."""

    def __init__(self, state_dir: str | Path = DEFAULT_STATE_DIR):
        """Initialize the state store.

        Args:
            state_dir: Directory holding one YAML file per cluster
        """
        self.state_dir = Path(state_dir)
        self.yaml = YAML()
        self.yaml.default_flow_style = False

    def path_for(self, name: str) -> Path:
        return self.state_dir / f"{name}.yml"

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def load(self, name: str) -> ClusterState:
        """Load the state record for a cluster.

        Raises:
            StateError: If there is no record or it cannot be parsed
        """
        path = self.path_for(name)
        logger.debug(f"Reading state file: {path}")

        if not path.exists():
            raise StateError(
                f"No state found for cluster {name}",
                f"Expected state file: {path.absolute()}\n"
                "Create the cluster first or pass the right --state-dir",
            )

        try:
            with open(path) as f:
                data = self.yaml.load(f)
            return ClusterState(**dict(data or {}))
        except (OSError, YAMLError, PydanticValidationError, TypeError) as e:
            logger.error(f"Failed to read state file {path}: {e}")
            raise StateError(f"Failed to read state for cluster {name}", str(e)) from e

    def save(self, state: ClusterState) -> None:
        """Write the state record for a cluster.

        Raises:
            StateError: If the file cannot be written
        """
        path = self.path_for(state.name)
        logger.debug(f"Writing state file: {path}")

        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                self.yaml.dump(state.model_dump(), f)
        except (OSError, YAMLError) as e:
            logger.error(f"Failed to write state file {path}: {e}")
            raise StateError(f"Failed to write state for cluster {state.name}", str(e)) from e

        logger.info(f"Saved state for cluster {state.name}")

    def remove(self, name: str) -> None:
        """Remove the state record; a missing record is ignored."""
        path = self.path_for(name)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StateError(f"Failed to remove state for cluster {name}", str(e)) from e

    def list_names(self) -> list[str]:
        if not self.state_dir.is_dir():
            return []
        return sorted(p.stem for p in self.state_dir.glob("*.yml"))
