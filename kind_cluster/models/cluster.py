"""Typed kind cluster specification (kind.x-k8s.io/v1alpha4)."""

from enum import Enum
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_API_VERSION = "kind.x-k8s.io/v1alpha4"


class NodeRole(str, Enum):
    CONTROL_PLANE = "control-plane"
    WORKER = "worker"


class MountPropagation(str, Enum):
    NONE = "None"
    HOST_TO_CONTAINER = "HostToContainer"
    BIDIRECTIONAL = "Bidirectional"


class PortMappingProtocol(str, Enum):
    TCP = "TCP"
    UDP = "UDP"
    SCTP = "SCTP"


class ClusterIPFamily(str, Enum):
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    DUAL = "dual"


class ProxyMode(str, Enum):
    IPTABLES = "iptables"
    IPVS = "ipvs"
    NONE = "none"


class KindModel(BaseModel):
    """Immutable model serialized with kind's camelCase field names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class Mount(KindModel):
    """Extra mount from the host into a node container."""

    host_path: str = ""
    container_path: str = ""
    read_only: bool = False
    selinux_relabel: bool = False
    propagation: MountPropagation | None = None


class PortMapping(KindModel):
    """Extra port mapping from the host into a node container."""

    container_port: int = 0
    host_port: int = 0
    listen_address: str = ""
    protocol: PortMappingProtocol | None = None


class Node(KindModel):
    """A single kind node; list order is provisioning order."""

    role: NodeRole | None = None
    image: str = ""
    labels: dict[str, str] | None = None
    extra_mounts: list[Mount] = []
    extra_port_mappings: list[PortMapping] = []
    kubeadm_config_patches: list[str] | None = None


class Networking(KindModel):
    """Cluster-wide networking settings."""

    ip_family: ClusterIPFamily | None = None
    api_server_port: int = 0
    api_server_address: str = ""
    pod_subnet: str = ""
    service_subnet: str = ""
    disable_default_cni: bool = Field(default=False, alias="disableDefaultCNI")
    kube_proxy_mode: ProxyMode | None = None
    # None means absent; an empty list is an explicit empty search path
    dns_search: list[str] | None = None


class Cluster(KindModel):
    """Normalized cluster specification handed to the provisioning engine."""

    kind: str = ""
    api_version: str = ""
    nodes: list[Node] = []
    networking: Networking | None = None
    containerd_config_patches: list[str] | None = None
    runtime_config: dict[str, str] | None = None
    feature_gates: dict[str, bool] | None = None

    def to_kind_config(self) -> dict[str, Any]:
        """Render the specification as a kind configuration document.

        Unset fields are omitted so that kind applies its own defaults.
        """
        data = self.model_dump(by_alias=True, exclude_defaults=True, mode="json")
        data.pop("kind", None)
        data.pop("apiVersion", None)
        return {"kind": self.kind, "apiVersion": self.api_version, **data}

    def to_yaml(self) -> str:
        """Serialize the kind configuration document to YAML."""
        return yaml.safe_dump(self.to_kind_config(), default_flow_style=False, sort_keys=False)
