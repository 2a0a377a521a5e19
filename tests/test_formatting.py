from dataclasses import dataclass

from pydantic import BaseModel

from greeter.observability.formatting import (
    MISSING,
    RequestInfo,
    format_message,
    format_response,
    req_to_string,
    safe_string,
    to_json,
)


class Point(BaseModel):
    x: int
    y: int


@dataclass
class Order:
    id: int
    items: list


class BadRepr:
    def __repr__(self) -> str:
        raise RuntimeError("no repr for you")


def test_safe_string_caps_long_sequences_at_five_items() -> None:
    assert safe_string(list(range(10))) == "[ 0, 1, 2, 3, 4, ... 5 more items ]"
    assert safe_string(list(range(6))) == "[ 0, 1, 2, 3, 4, ... 1 more item ]"
    assert safe_string(tuple(range(7))) == "( 0, 1, 2, 3, 4, ... 2 more items )"


def test_safe_string_leaves_short_sequences_alone() -> None:
    assert safe_string([1, 2]) == "[ 1, 2 ]"
    assert safe_string([]) == "[]"
    assert safe_string(()) == "()"
    assert safe_string(set()) == "set()"


def test_safe_string_applies_bound_to_nested_sequences() -> None:
    assert safe_string({"a": list(range(7))}) == "{ a: [ 0, 1, 2, 3, 4, ... 2 more items ] }"


def test_safe_string_collapses_deep_nesting() -> None:
    assert safe_string({"a": {"b": {"c": {"d": 1}}}}) == "{ a: { b: { c: [dict] } } }"


def test_safe_string_marks_cycles() -> None:
    loop: list = [1]
    loop.append(loop)
    assert safe_string(loop) == "[ 1, [Circular] ]"


def test_safe_string_mapping_keys() -> None:
    assert safe_string({}) == "{}"
    assert safe_string({"msg": "Hello World!"}) == "{ msg: 'Hello World!' }"
    assert safe_string({"a-b": 1, 2: None}) == "{ 'a-b': 1, 2: None }"


def test_safe_string_renders_models_and_dataclasses() -> None:
    assert safe_string(Point(x=1, y=2)) == "Point { x: 1, y: 2 }"
    assert safe_string(Order(id=7, items=list(range(8)))) == "Order { id: 7, items: [ 0, 1, 2, 3, 4, ... 3 more items ] }"


def test_safe_string_never_raises() -> None:
    assert safe_string(BadRepr()) == "<BadRepr object>"
    assert safe_string([BadRepr()]) == "<list object>"
    assert safe_string("ok") == "'ok'"


def test_format_message_interpolates_placeholders() -> None:
    assert format_message("validating %s", "payload") == "validating payload"
    assert format_message("%s has %d items", "cart", 3) == "cart has 3 items"
    assert format_message("%i", 3.9) == "3"
    assert format_message("%f", 2) == "2"
    assert format_message("%j", {"a": 1}) == '{"a":1}'
    assert format_message("%o", [1, 2]) == "[ 1, 2 ]"
    assert format_message("100%%") == "100%"


def test_format_message_tolerates_argument_mismatch() -> None:
    assert format_message("%s and %s", "a") == "a and %s"
    assert format_message("hello", "a", 1, [1]) == "hello a 1 [ 1 ]"
    assert format_message("%d items", "many") == "NaN items"
    assert format_message("%j", {1, 2}) == "[Unserializable]"
    assert format_message(42, "x") == "42 x"
    assert format_message() == ""


def test_to_json_is_compact_and_never_raises() -> None:
    assert to_json({"a": [1, 2]}) == '{"a":[1,2]}'
    assert to_json(None) == "null"
    assert to_json(MISSING) == "undefined"
    assert to_json(object()) == "[Unserializable]"

    cyclic: dict = {}
    cyclic["self"] = cyclic
    assert to_json(cyclic) == "[Unserializable]"


def test_req_to_string() -> None:
    request = RequestInfo(method="POST", path="/orders", body={"sku": "A1", "qty": 2})
    assert req_to_string(request) == 'POST url: /orders body={"sku":"A1","qty":2}'


def test_req_to_string_without_body() -> None:
    assert req_to_string(RequestInfo(method="GET", path="/")) == "GET url: / body=undefined"


def test_format_response() -> None:
    request = RequestInfo(method="GET", path="/", body={})
    line = format_response(request, 200, {"msg": "Hello World!"})
    assert line == "Responding to request GET url: / body={} with 200: { msg: 'Hello World!' }"


def test_format_response_bounds_large_payloads() -> None:
    request = RequestInfo(method="GET", path="/items", body={})
    line = format_response(request, 200, {"items": list(range(100))})
    assert line.endswith("with 200: { items: [ 0, 1, 2, 3, 4, ... 95 more items ] }")


def test_numeric_placeholders_follow_node_conversions() -> None:
    assert format_message("%d", 3.9) == "3.9"
    assert format_message("%d", "3.9") == "3.9"
    assert format_message("%d", 200) == "200"
    assert format_message("%d", True) == "1"
    assert format_message("%i", "42px") == "42"
    assert format_message("%i", True) == "NaN"
    assert format_message("%f", "2.5kg") == "2.5"
    assert format_message("%f", 2.5) == "2.5"
    assert format_message("%f", float("inf")) == "Infinity"
    assert format_message("%f", "kg") == "NaN"
