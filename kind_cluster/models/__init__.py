"""Data models for kind cluster specifications and resource state."""

from kind_cluster.models.cluster import (
    DEFAULT_API_VERSION,
    Cluster,
    ClusterIPFamily,
    Mount,
    MountPropagation,
    Networking,
    Node,
    NodeRole,
    PortMapping,
    PortMappingProtocol,
    ProxyMode,
)
from kind_cluster.models.state import ClusterState, ConnectionInfo

__all__ = [
    "DEFAULT_API_VERSION",
    "Cluster",
    "ClusterIPFamily",
    "ClusterState",
    "ConnectionInfo",
    "Mount",
    "MountPropagation",
    "Networking",
    "Node",
    "NodeRole",
    "PortMapping",
    "PortMappingProtocol",
    "ProxyMode",
]
