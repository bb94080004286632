"""Property-based tests for kind_config normalization.

Covers extraction of typed values from generic mappings, key and value
rewriting of runtime_config and feature_gates, port range validation and
TOML canonicalization.
"""

import pytest
import tomli
import tomli_w
from hypothesis import assume, given
from hypothesis import strategies as st

from kind_cluster.exceptions import INT32_MAX, INT32_MIN, PortOutOfRangeError
from kind_cluster.models.cluster import (
    ClusterIPFamily,
    MountPropagation,
    NodeRole,
    PortMappingProtocol,
    ProxyMode,
)
from kind_cluster.normalizer import (
    flatten_kind_config,
    flatten_port_mapping,
    get_bool,
    get_int,
    get_string,
    get_string_list,
    get_string_map,
    match_enum,
    normalize_toml,
)

KEY_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789-"

scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=False),
    st.text(max_size=10),
)
values = st.one_of(
    scalars,
    st.lists(scalars, max_size=3),
    st.dictionaries(st.text(max_size=5), scalars, max_size=3),
)


@st.composite
def true_spelling(draw):
    """Generate 'true' in an arbitrary mix of upper and lower case."""
    flags = draw(st.lists(st.booleans(), min_size=4, max_size=4))
    return "".join(c.upper() if up else c for c, up in zip("true", flags))


@st.composite
def toml_document(draw):
    """Generate a small TOML-representable document with one nested table."""
    keys = st.text(alphabet=KEY_ALPHABET, min_size=1, max_size=8)
    leaves = st.one_of(
        st.booleans(),
        st.integers(min_value=-(2**63), max_value=2**63 - 1),
        st.text(alphabet=KEY_ALPHABET + " ._/", max_size=12),
        st.lists(st.integers(min_value=0, max_value=1000), max_size=3),
    )
    document = draw(st.dictionaries(keys, leaves, max_size=4))
    table = draw(st.dictionaries(keys, leaves, min_size=1, max_size=3))
    document[draw(keys.filter(lambda k: k not in document))] = table
    return document


@given(val=values)
def test_extraction_returns_zero_value_for_wrong_types(val):
    """Extraction never fails and falls back to the zero value of its type."""
    m = {"key": val}

    assert get_string(m, "key") == (val if isinstance(val, str) else "")
    assert get_bool(m, "key") == (val if isinstance(val, bool) else False)
    if isinstance(val, bool) or not isinstance(val, int):
        assert get_int(m, "key") == 0
    else:
        assert get_int(m, "key") == val


@given(val=values)
def test_collection_extraction_keeps_only_matching_items(val):
    m = {"key": val}

    strings = get_string_list(m, "key")
    if isinstance(val, list):
        assert strings == [item for item in val if isinstance(item, str)]
    else:
        assert strings is None

    string_map = get_string_map(m, "key")
    if isinstance(val, dict):
        assert all(isinstance(v, str) for v in string_map.values())
        assert set(string_map) <= set(val)
    else:
        assert string_map is None


@given(key=st.text(max_size=10))
def test_extraction_of_missing_key(key):
    assume(key != "present")
    m = {"present": "x"}

    assert get_string(m, key) == ""
    assert get_int(m, key) == 0
    assert get_bool(m, key) is False
    assert get_string_list(m, key) is None
    assert get_string_map(m, key) is None


@given(spelling=true_spelling(), name=st.text(alphabet=KEY_ALPHABET, min_size=1, max_size=20))
def test_feature_gate_true_in_any_case(spelling, name):
    cluster = flatten_kind_config({"feature_gates": {name: spelling}})

    assert cluster.feature_gates == {name: True}


@given(text=st.text(max_size=10), name=st.text(alphabet=KEY_ALPHABET, min_size=1, max_size=20))
def test_feature_gate_anything_else_is_false(text, name):
    assume(text.lower() != "true")

    cluster = flatten_kind_config({"feature_gates": {name: text}})

    assert cluster.feature_gates == {name: False}


@given(
    runtime_config=st.dictionaries(
        st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_", min_size=1, max_size=15),
        st.text(max_size=10),
        max_size=5,
    )
)
def test_runtime_config_keys_use_slashes(runtime_config):
    cluster = flatten_kind_config({"runtime_config": runtime_config})

    assert len(cluster.runtime_config) == len(runtime_config)
    for key, value in runtime_config.items():
        assert cluster.runtime_config[key.replace("_", "/")] == value
    assert not any("_" in key for key in cluster.runtime_config)


@given(port=st.integers(min_value=INT32_MIN, max_value=INT32_MAX))
def test_ports_in_range_are_kept(port):
    mapping = flatten_port_mapping({"container_port": port, "host_port": port})

    assert mapping.container_port == port
    assert mapping.host_port == port


@given(
    port=st.one_of(
        st.integers(max_value=INT32_MIN - 1),
        st.integers(min_value=INT32_MAX + 1),
    ),
    field=st.sampled_from(["container_port", "host_port"]),
)
def test_ports_out_of_range_are_rejected(port, field):
    with pytest.raises(PortOutOfRangeError) as exc_info:
        flatten_port_mapping({field: port})

    assert exc_info.value.field == field
    assert f"{field} value {port}" in str(exc_info.value)


@given(port=st.integers(min_value=INT32_MAX + 1))
def test_out_of_range_networking_port_names_networking(port):
    with pytest.raises(PortOutOfRangeError) as exc_info:
        flatten_kind_config({"networking": [{"api_server_port": port}]})

    assert exc_info.value.message.startswith("failed to flatten networking configuration")


@pytest.mark.parametrize(
    "enum_cls",
    [NodeRole, MountPropagation, PortMappingProtocol, ClusterIPFamily, ProxyMode],
)
@given(text=st.text(max_size=20))
def test_match_enum_accepts_only_exact_values(enum_cls, text):
    member = match_enum(enum_cls, text)

    if text in {m.value for m in enum_cls}:
        assert member is not None
        assert member.value == text
    else:
        assert member is None


@given(document=toml_document())
def test_normalize_toml_is_idempotent(document):
    text, error = normalize_toml(tomli_w.dumps(document))

    assert error is None
    assert tomli.loads(text) == document
    assert normalize_toml(text) == (text, None)


@given(text=st.text(max_size=30))
def test_normalize_toml_never_raises(text):
    result, error = normalize_toml(text)

    if error is not None:
        assert result == text
        assert error.message.startswith("failed to")
    else:
        assert normalize_toml(result) == (result, None)
