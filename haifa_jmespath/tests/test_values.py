import math

import pytest

from haifa_jmespath.values import EMPTY_ARRAY, FALSE, NULL, TRUE, Value, ValueType


def test_from_python_builds_tagged_values():
    value = Value.from_python({"a": [1, "x", None, True], "b": {"c": 1.5}})
    assert value.type is ValueType.OBJECT
    items = value.get_field("a")
    assert items.type is ValueType.ARRAY
    assert [item.type for item in items.payload] == [
        ValueType.NUMBER,
        ValueType.STRING,
        ValueType.NULL,
        ValueType.BOOLEAN,
    ]
    assert value.get_field("b").get_field("c") == Value.number(1.5)


def test_to_python_restores_integers():
    data = {"a": [1, 2.5, None, False], "b": "x"}
    result = Value.from_python(data).to_python()
    assert result == data
    assert isinstance(result["a"][0], int)


def test_numbers_are_stored_as_floats():
    assert Value.number(3).payload == 3.0
    assert Value.number(3) == Value.number(3.0)
    assert Value.number(3).is_whole_number()
    assert not Value.number(3.5).is_whole_number()


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), True, 10 ** 400])
def test_number_rejects_non_json_numbers(bad):
    with pytest.raises(TypeError):
        Value.number(bad)


@pytest.mark.parametrize("bad", [{1: "a"}, {1, 2}, object(), b"bytes"])
def test_from_python_rejects_non_json_data(bad):
    with pytest.raises(TypeError):
        Value.from_python(bad)


def test_from_json_rejects_nan():
    with pytest.raises(ValueError):
        Value.from_json("[NaN]")
    assert Value.from_json('{"a": [1]}') == Value.from_python({"a": [1]})


def test_booleans_are_not_numbers():
    assert Value.from_python(True) != Value.from_python(1)
    assert Value.from_python(False) != Value.from_python(0)
    assert Value.boolean(True) is TRUE
    assert Value.boolean(False) is FALSE


def test_object_equality_ignores_key_order():
    first = Value.from_python({"a": 1, "b": [1, 2]})
    second = Value.from_python({"b": [1, 2], "a": 1})
    assert first == second
    assert hash(first) == hash(second)
    assert first != Value.from_python({"a": 1})


def test_array_equality_is_ordered():
    assert Value.from_python([1, 2]) == Value.from_python([1.0, 2.0])
    assert Value.from_python([1, 2]) != Value.from_python([2, 1])


@pytest.mark.parametrize(
    "data, truthy",
    [
        (None, False),
        (False, False),
        ("", False),
        ([], False),
        ({}, False),
        (0, True),
        (True, True),
        ("a", True),
        ([0], True),
        ({"a": None}, True),
    ],
)
def test_truthiness(data, truthy):
    assert Value.from_python(data).is_truthy() is truthy


def test_values_are_immutable():
    value = Value.from_python({"a": [1]})
    with pytest.raises(AttributeError):
        value.payload = {}
    with pytest.raises(TypeError):
        value.payload["b"] = NULL
    assert isinstance(value.get_field("a").payload, tuple)


def test_field_and_index_access():
    value = Value.from_python({"list": [1, 2, 3]})
    items = value.get_field("list")
    assert items.get_index(0) == Value.number(1)
    assert items.get_index(-1) == Value.number(3)
    assert items.get_index(3) is NULL
    assert items.get_index(-4) is NULL
    assert value.get_field("missing") is NULL
    assert items.get_field("list") is NULL
    assert value.get_index(0) is NULL


def test_slice():
    items = Value.from_python([0, 1, 2, 3, 4])
    assert items.slice(None, None, 2).to_python() == [0, 2, 4]
    assert items.slice(None, None, -1).to_python() == [4, 3, 2, 1, 0]
    assert items.slice(10, 20, None) == EMPTY_ARRAY
    assert Value.string("abc").slice(0, 1, None) is NULL


def test_to_json_is_compact_by_default():
    value = Value.from_python({"a": [1, 2.5], "b": "é"})
    assert value.to_json() == '{"a":[1,2.5],"b":"é"}'
    assert value.to_json(indent=2).startswith('{\n  "a": [')


def test_expref_cannot_be_serialized():
    value = Value.expref(None, NULL)
    assert value.is_expref()
    assert value.type_name == "expref"
    with pytest.raises(TypeError):
        value.to_json()


def test_type_names():
    assert [Value.from_python(data).type_name for data in (None, True, 1, "s", [], {})] == [
        "null",
        "boolean",
        "number",
        "string",
        "array",
        "object",
    ]


def test_repr_shows_json():
    assert repr(Value.from_python([1, "a"])) == 'Value([1,"a"])'
    assert math.isclose(Value.number(0.1).payload, 0.1)
