"""Normalization of generic kind_config data into a typed cluster specification.

Extraction from the generic mapping is permissive: a missing
key, a ``None`` value or a value of the wrong type all yield the zero value
of the requested type, so a partially specified block never aborts its
siblings. Enum fields follow the same policy and are left unset when the
string does not exactly match an allowed value. Only port values outside the
signed 32-bit range are rejected.
"""

from enum import Enum
from typing import Any, TypeVar

import tomli
import tomli_w

from kind_cluster.exceptions import (
    INT32_MAX,
    INT32_MIN,
    PortOutOfRangeError,
    TomlNormalizationError,
)
from kind_cluster.logging_config import get_logger
from kind_cluster.models.cluster import (
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

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)


def get_string(m: dict[str, Any], key: str) -> str:
    """Return ``m[key]`` if it is a string, otherwise an empty string."""
    val = m.get(key)
    return val if isinstance(val, str) else ""


def get_int(m: dict[str, Any], key: str) -> int:
    """Return ``m[key]`` if it is an integer, otherwise 0."""
    val = m.get(key)
    if isinstance(val, int) and not isinstance(val, bool):
        return val
    return 0


def get_bool(m: dict[str, Any], key: str) -> bool:
    """Return ``m[key]`` if it is a boolean, otherwise False."""
    val = m.get(key)
    return val if isinstance(val, bool) else False


def get_string_list(m: dict[str, Any], key: str) -> list[str] | None:
    """Return the strings of the list at ``m[key]``.

    Non-string items are dropped. Returns None if the key is missing or the
    value is not a list.
    """
    val = m.get(key)
    if not isinstance(val, list):
        return None
    return [item for item in val if isinstance(item, str)]


def get_map_list(m: dict[str, Any], key: str) -> list[dict[str, Any]] | None:
    """Return the mappings of the list at ``m[key]``, or None if it is not a list."""
    val = m.get(key)
    if not isinstance(val, list):
        return None
    return [item for item in val if isinstance(item, dict)]


def get_string_map(m: dict[str, Any], key: str) -> dict[str, str] | None:
    """Return the string-valued entries of the mapping at ``m[key]``.

    Returns None if the key is missing or the value is not a mapping.
    """
    val = m.get(key)
    if not isinstance(val, dict):
        return None
    return {k: v for k, v in val.items() if isinstance(v, str)}


def match_enum(enum_cls: type[E], value: str) -> E | None:
    """Map a string onto an enum member by exact, case-sensitive value.

    Unknown values yield None rather than an error.
    """
    if not value:
        return None
    for member in enum_cls:
        if member.value == value:
            return member
    logger.debug(f"Ignoring unrecognized {enum_cls.__name__} value '{value}'")
    return None


def _get_port(m: dict[str, Any], key: str) -> int:
    port = get_int(m, key)
    if port != 0 and not INT32_MIN <= port <= INT32_MAX:
        raise PortOutOfRangeError(key, port)
    return port


def flatten_kind_config(kind_config: dict[str, Any]) -> Cluster:
    """Convert a generic kind_config mapping into a Cluster specification.

    Args:
        kind_config: Plain mapping produced from the resource's kind_config block

    Returns:
        Normalized cluster specification

    Raises:
        PortOutOfRangeError: If any port does not fit a signed 32-bit integer
    """
    nodes = []
    for node_map in get_map_list(kind_config, "node") or []:
        try:
            nodes.append(flatten_node(node_map))
        except PortOutOfRangeError as e:
            raise e.with_context("failed to flatten node configuration")

    networking = None
    networking_map = _first_map(kind_config, "networking")
    if networking_map is not None:
        try:
            networking = flatten_networking(networking_map)
        except PortOutOfRangeError as e:
            raise e.with_context("failed to flatten networking configuration")

    runtime_config = get_string_map(kind_config, "runtime_config")
    if runtime_config is not None:
        # api_alpha -> api/alpha
        runtime_config = {k.replace("_", "/"): v for k, v in runtime_config.items()}

    feature_gates = get_string_map(kind_config, "feature_gates")
    if feature_gates is not None:
        feature_gates = {k: v.lower() == "true" for k, v in feature_gates.items()}

    return Cluster(
        kind=get_string(kind_config, "kind"),
        api_version=get_string(kind_config, "api_version"),
        nodes=nodes,
        networking=networking,
        containerd_config_patches=get_string_list(kind_config, "containerd_config_patches"),
        runtime_config=runtime_config,
        feature_gates=feature_gates,
    )


def _first_map(m: dict[str, Any], key: str) -> dict[str, Any] | None:
    # A single nested block may arrive as an object or as a one-element list
    val = m.get(key)
    if isinstance(val, dict):
        return val
    maps = get_map_list(m, key)
    return maps[0] if maps else None


def flatten_node(node_config: dict[str, Any]) -> Node:
    """Convert a generic node mapping into a Node."""
    port_mappings = []
    for port_map in get_map_list(node_config, "extra_port_mappings") or []:
        try:
            port_mappings.append(flatten_port_mapping(port_map))
        except PortOutOfRangeError as e:
            raise e.with_context("failed to flatten port mapping configuration")

    return Node(
        role=match_enum(NodeRole, get_string(node_config, "role")),
        image=get_string(node_config, "image"),
        labels=get_string_map(node_config, "labels"),
        extra_mounts=[flatten_mount(m) for m in get_map_list(node_config, "extra_mounts") or []],
        extra_port_mappings=port_mappings,
        kubeadm_config_patches=get_string_list(node_config, "kubeadm_config_patches"),
    )


def flatten_networking(networking_config: dict[str, Any]) -> Networking:
    """Convert a generic networking mapping into Networking settings."""
    return Networking(
        api_server_address=get_string(networking_config, "api_server_address"),
        api_server_port=_get_port(networking_config, "api_server_port"),
        pod_subnet=get_string(networking_config, "pod_subnet"),
        service_subnet=get_string(networking_config, "service_subnet"),
        disable_default_cni=get_bool(networking_config, "disable_default_cni"),
        kube_proxy_mode=match_enum(ProxyMode, get_string(networking_config, "kube_proxy_mode")),
        ip_family=match_enum(ClusterIPFamily, get_string(networking_config, "ip_family")),
        dns_search=get_string_list(networking_config, "dns_search"),
    )


def flatten_mount(mount_config: dict[str, Any]) -> Mount:
    """Convert a generic mount mapping into a Mount."""
    return Mount(
        container_path=get_string(mount_config, "container_path"),
        host_path=get_string(mount_config, "host_path"),
        read_only=get_bool(mount_config, "read_only"),
        selinux_relabel=get_bool(mount_config, "selinux_relabel"),
        propagation=match_enum(MountPropagation, get_string(mount_config, "propagation")),
    )


def flatten_port_mapping(port_mapping_config: dict[str, Any]) -> PortMapping:
    """Convert a generic port mapping into a PortMapping.

    Raises:
        PortOutOfRangeError: If container_port or host_port is out of range
    """
    return PortMapping(
        container_port=_get_port(port_mapping_config, "container_port"),
        host_port=_get_port(port_mapping_config, "host_port"),
        listen_address=get_string(port_mapping_config, "listen_address"),
        protocol=match_enum(PortMappingProtocol, get_string(port_mapping_config, "protocol")),
    )


def normalize_toml(toml_string: Any) -> tuple[str, TomlNormalizationError | None]:
    """Parse and re-serialize a TOML document into canonical form.

    Args:
        toml_string: Candidate TOML text; non-strings are treated as empty

    Returns:
        Tuple of (text, error). On success the text is the canonical document
        and error is None. On failure the original text is returned unchanged
        together with the error so callers can still use it.
    """
    if not isinstance(toml_string, str) or not toml_string:
        return "", None

    try:
        document = tomli.loads(toml_string)
    except tomli.TOMLDecodeError as e:
        return toml_string, TomlNormalizationError("failed to parse TOML", str(e))

    try:
        return tomli_w.dumps(document), None
    except (TypeError, ValueError) as e:
        return toml_string, TomlNormalizationError("failed to serialize TOML", str(e))


def check_containerd_patches(cluster: Cluster) -> list[TomlNormalizationError]:
    """Return parse errors for containerd patches that are not valid TOML."""
    errors = []
    for index, patch in enumerate(cluster.containerd_config_patches or []):
        _, error = normalize_toml(patch)
        if error is not None:
            errors.append(error.with_context(f"containerd_config_patches[{index}]"))
    return errors
