"""Controller settings."""

from pydantic import BaseModel, Field, field_validator

DEFAULT_NODE_IMAGE = (
    "kindest/node:v1.34.0@sha256:7416a61b42b1662ca6ca89f02028ac133a309a2a30ba309614e8ec94d976dc5a"
)


class ControllerSettings(BaseModel):
    """Retry, timeout and default values used by the lifecycle controller."""

    max_retries: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=5.0, ge=0)
    delete_timeout: float = Field(default=300.0, gt=0)
    wait_timeout: float = Field(default=300.0, gt=0)
    default_node_image: str = DEFAULT_NODE_IMAGE
    kind_binary: str = "kind"
    command_timeout: float = Field(default=900.0, gt=0)

    @field_validator("default_node_image", "kind_binary")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("value cannot be empty")
        return v

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def save(self, path: str) -> None:
        """Save settings to YAML file."""
        import yaml

        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)

    @classmethod
    def load(cls, path: str) -> "ControllerSettings":
        """Load settings from YAML file."""
        import yaml

        with open(path) as f:
            data = yaml.safe_load(f)
        return cls(**(data or {}))
