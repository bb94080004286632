"""Attribute tree values and their conversion to plain Python data.

The host engine describes a resource as a tree of typed values. Any node of
that tree may be null (explicitly unset) or unknown (not yet resolved during
planning). This module models those values and decodes them into plain
``str``/``int``/``float``/``bool``/``list``/``dict`` structures that the
normalizer can inspect without knowing anything about the host.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from kind_cluster.exceptions import ConfigurationError, KindClusterError
from kind_cluster.logging_config import get_logger
from kind_cluster.models.cluster import Cluster
from kind_cluster.normalizer import flatten_kind_config

logger = get_logger(__name__)


class ValueState(str, Enum):
    """Resolution state of an attribute value."""

    KNOWN = "known"
    NULL = "null"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AttributeValue:
    """Base class for every value in an attribute tree."""

    state: ValueState = field(default=ValueState.KNOWN, kw_only=True)

    @classmethod
    def null(cls) -> "AttributeValue":
        return cls(state=ValueState.NULL)

    @classmethod
    def unknown(cls) -> "AttributeValue":
        return cls(state=ValueState.UNKNOWN)

    @property
    def is_null(self) -> bool:
        return self.state is ValueState.NULL

    @property
    def is_unknown(self) -> bool:
        return self.state is ValueState.UNKNOWN


@dataclass(frozen=True)
class StringValue(AttributeValue):
    value: str = ""


@dataclass(frozen=True)
class BoolValue(AttributeValue):
    value: bool = False


@dataclass(frozen=True)
class Int64Value(AttributeValue):
    value: int = 0


@dataclass(frozen=True)
class Float64Value(AttributeValue):
    value: float = 0.0


@dataclass(frozen=True)
class NumberValue(AttributeValue):
    """Arbitrary precision number."""

    value: Decimal = Decimal(0)


@dataclass(frozen=True)
class ListValue(AttributeValue):
    elements: tuple[AttributeValue, ...] = ()


@dataclass(frozen=True)
class SetValue(AttributeValue):
    elements: tuple[AttributeValue, ...] = ()


@dataclass(frozen=True)
class MapValue(AttributeValue):
    elements: dict[str, AttributeValue] = field(default_factory=dict)


@dataclass(frozen=True)
class ObjectValue(AttributeValue):
    attributes: dict[str, AttributeValue] = field(default_factory=dict)


def _is_unset(value: AttributeValue) -> bool:
    return value.is_null or value.is_unknown


def to_native(value: AttributeValue | None) -> Any:
    """Convert an attribute value into plain Python data.

    Null and unknown values become ``None``, as does any value type this
    function does not recognize. Arbitrary precision numbers are approximated
    as ``float``. Never raises.

    Args:
        value: Attribute value to convert

    Returns:
        Equivalent plain Python value
    """
    if value is None or not isinstance(value, AttributeValue) or _is_unset(value):
        return None

    if isinstance(value, (StringValue, BoolValue)):
        return value.value
    if isinstance(value, Int64Value):
        return int(value.value)
    if isinstance(value, Float64Value):
        return float(value.value)
    if isinstance(value, NumberValue):
        try:
            return float(value.value)
        except (ValueError, OverflowError):
            # signaling NaN
            return None
    if isinstance(value, (ListValue, SetValue)):
        return [to_native(element) for element in value.elements]
    if isinstance(value, MapValue):
        return {key: to_native(element) for key, element in value.elements.items()}
    if isinstance(value, ObjectValue):
        return object_to_dict(value)
    return None


def object_to_dict(obj: ObjectValue) -> dict[str, Any] | None:
    """Convert an object value to a dictionary, or None if it is unset."""
    if _is_unset(obj):
        return None
    return {key: to_native(attr) for key, attr in obj.attributes.items()}


def from_native(data: Any) -> AttributeValue:
    """Build an attribute tree from plain Python data.

    Used by the CLI to stand in for the host engine when resources are
    described in YAML files.
    """
    if data is None:
        return StringValue.null()
    if isinstance(data, AttributeValue):
        return data
    if isinstance(data, dict):
        return ObjectValue({str(key): from_native(item) for key, item in data.items()})
    if isinstance(data, (list, tuple)):
        return ListValue(tuple(from_native(item) for item in data))
    if isinstance(data, (set, frozenset)):
        return SetValue(tuple(from_native(item) for item in data))
    # bool is checked before int since it is an int subclass
    if isinstance(data, bool):
        return BoolValue(data)
    if isinstance(data, int):
        return Int64Value(data)
    if isinstance(data, float):
        return Float64Value(data)
    if isinstance(data, Decimal):
        return NumberValue(data)
    return StringValue(str(data))


def parse_kind_config(kind_config: ListValue | None) -> Cluster | None:
    """Decode and normalize the ``kind_config`` block of a resource.

    Args:
        kind_config: Single-element list holding the kind_config object

    Returns:
        Normalized cluster specification, or None if the block is absent

    Raises:
        ConfigurationError: If normalization rejects the configuration
    """
    if kind_config is None or _is_unset(kind_config) or not kind_config.elements:
        return None

    first = kind_config.elements[0]
    if not isinstance(first, ObjectValue):
        logger.debug(f"Ignoring kind_config element of type {type(first).__name__}")
        return None

    config_map = object_to_dict(first)
    if config_map is None:
        return None

    try:
        return flatten_kind_config(config_map)
    except KindClusterError as e:
        raise ConfigurationError(f"failed to parse kind configuration: {e.message}") from e
