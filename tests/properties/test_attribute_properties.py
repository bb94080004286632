"""Property-based tests for decoding attribute trees into plain data."""

from hypothesis import given
from hypothesis import strategies as st

from kind_cluster.attributes import (
    ListValue,
    MapValue,
    ObjectValue,
    StringValue,
    from_native,
    object_to_dict,
    parse_kind_config,
    to_native,
)

plain_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**63), max_value=2**63 - 1),
    st.floats(allow_nan=False),
    st.text(max_size=10),
)
plain_data = st.recursive(
    plain_scalars,
    lambda children: st.one_of(
        st.lists(children, max_size=3),
        st.dictionaries(st.text(max_size=5), children, max_size=3),
    ),
    max_leaves=10,
)


@st.composite
def unset_value(draw):
    """Generate a null or unknown value of any attribute type."""
    value_type = draw(st.sampled_from([StringValue, ListValue, MapValue, ObjectValue]))
    return draw(st.sampled_from([value_type.null(), value_type.unknown()]))


@given(data=plain_data)
def test_decoding_recovers_plain_data(data):
    """Decoding an attribute tree yields the data it was built from."""
    assert to_native(from_native(data)) == data


@given(data=st.dictionaries(st.text(max_size=5), plain_data, max_size=4))
def test_object_keys_are_preserved(data):
    decoded = object_to_dict(from_native(data))

    assert set(decoded) == set(data)


@given(value=unset_value())
def test_unset_values_decode_to_none(value):
    assert to_native(value) is None


@given(values=st.lists(unset_value(), min_size=1, max_size=4))
def test_unset_elements_are_kept_as_none(values):
    decoded = to_native(ListValue(tuple(values)))

    assert decoded == [None] * len(values)


@given(value=st.sampled_from([None, ListValue.null(), ListValue.unknown(), ListValue(())]))
def test_absent_kind_config_yields_nothing(value):
    assert parse_kind_config(value) is None


@given(element=plain_scalars)
def test_non_object_kind_config_element_is_ignored(element):
    assert parse_kind_config(ListValue((from_native(element),))) is None


@given(
    kind=st.text(max_size=10),
    image=st.text(max_size=20),
    role=st.sampled_from(["control-plane", "worker"]),
)
def test_kind_config_fields_flow_through(kind, image, role):
    kind_config = from_native([{"kind": kind, "node": [{"role": role, "image": image}]}])

    cluster = parse_kind_config(kind_config)

    assert cluster.kind == kind
    assert cluster.nodes[0].image == image
    assert cluster.nodes[0].role.value == role
