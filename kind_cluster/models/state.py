"""Persisted state of a managed kind cluster."""

from pydantic import BaseModel, Field, field_validator

SENSITIVE_FIELDS = frozenset(
    {"kubeconfig", "client_certificate", "client_key", "cluster_ca_certificate"}
)


class ConnectionInfo(BaseModel):
    """Connection coordinates parsed from a kubeconfig."""

    endpoint: str
    client_certificate: str = ""
    client_key: str = ""
    cluster_ca_certificate: str = ""


class ClusterState(BaseModel):
    """Resource state record for a single kind cluster."""

    name: str
    node_image: str = ""
    id: str = ""
    wait_for_ready: bool = False
    kubeconfig_path: str = ""
    kubeconfig: str = Field(default="", repr=False)
    client_certificate: str = Field(default="", repr=False)
    client_key: str = Field(default="", repr=False)
    cluster_ca_certificate: str = Field(default="", repr=False)
    endpoint: str = ""
    completed: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate cluster name is not empty."""
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @property
    def context_name(self) -> str:
        """Kubeconfig context, user and cluster entry name kind uses."""
        return f"kind-{self.name}"

    def apply_connection(self, connection: ConnectionInfo) -> None:
        self.client_certificate = connection.client_certificate
        self.client_key = connection.client_key
        self.cluster_ca_certificate = connection.cluster_ca_certificate
        self.endpoint = connection.endpoint

    def public_dict(self) -> dict:
        """Return the record with sensitive values masked."""
        data = self.model_dump()
        for key in SENSITIVE_FIELDS:
            if data.get(key):
                data[key] = "(sensitive)"
        return data
