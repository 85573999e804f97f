"""Tests for the line codec."""

from __future__ import annotations

import json

import pytest

from nexushub.protocols.codec import encode_response, parse_message, recover_id
from nexushub.protocols.errors import MessageParseError
from nexushub.protocols.models import Response


class TestParseMessage:
    def test_valid_line(self) -> None:
        msg = parse_message('{"jsonrpc":"2.0","id":1,"method":"tools/list"}\n')
        assert msg.id == 1
        assert msg.method == "tools/list"
        assert msg.params is None

    def test_params_kept(self) -> None:
        msg = parse_message('{"id":"x","method":"tools/call/echo","params":{"a":1}}')
        assert msg.params == {"a": 1}

    def test_invalid_json_with_recoverable_id(self) -> None:
        with pytest.raises(MessageParseError) as info:
            parse_message('{"id": 42, "method": "tools/list"')
        assert info.value.recovered_id == 42

    def test_invalid_json_without_id(self) -> None:
        with pytest.raises(MessageParseError) as info:
            parse_message("hello world")
        assert info.value.recovered_id is None

    def test_missing_method_recovers_id(self) -> None:
        with pytest.raises(MessageParseError) as info:
            parse_message('{"id": "req-1"}')
        assert info.value.recovered_id == "req-1"
        assert "method" in info.value.cause

    def test_non_object_payload(self) -> None:
        with pytest.raises(MessageParseError) as info:
            parse_message("[1, 2, 3]")
        assert info.value.recovered_id is None

    def test_boolean_id_is_not_recovered(self) -> None:
        with pytest.raises(MessageParseError) as info:
            parse_message('{"id": true, "method": 5}')
        assert info.value.recovered_id is None

    def test_boolean_id_with_valid_method_is_rejected(self) -> None:
        with pytest.raises(MessageParseError) as info:
            parse_message('{"id": true, "method": "initialize"}')
        assert info.value.recovered_id is None
        assert info.value.cause.startswith("Invalid message: id")

    def test_nested_id_is_not_recovered(self) -> None:
        with pytest.raises(MessageParseError) as info:
            parse_message('{"method":"tools/call/x","params":{"id":99}, BROKEN')
        assert info.value.recovered_id is None


class TestRecoverId:
    def test_string_id(self) -> None:
        assert recover_id('{"method": "x", "id": "abc", more') == "abc"

    def test_escaped_string_id(self) -> None:
        assert recover_id(r'{"id": "a\"b", ') == 'a"b'

    def test_float_id(self) -> None:
        assert recover_id('{"id": 1.5,') == 1.5

    def test_negative_int_id(self) -> None:
        assert recover_id('{"id": -3 ') == -3

    def test_null_id(self) -> None:
        assert recover_id('{"id": null, ') is None

    def test_id_after_nested_object(self) -> None:
        assert recover_id('{"params": {"id": 1, "x": [2]}, "id": 7, BROKEN') == 7

    def test_id_inside_params_ignored(self) -> None:
        assert recover_id('{"method":"x","params":{"id":99}, BROKEN') is None

    def test_id_inside_string_value_ignored(self) -> None:
        assert recover_id(r'{"method": "say \"id\": 5", BROKEN') is None

    def test_id_as_string_value_ignored(self) -> None:
        assert recover_id('{"method": "id", "x": 1, BROKEN') is None

    def test_not_an_object(self) -> None:
        assert recover_id('garbage "id": "abc" more') is None

    def test_id_after_outer_object_closed(self) -> None:
        assert recover_id('{"method": "x"} {"id": 4}') is None

    def test_value_must_end_at_delimiter(self) -> None:
        assert recover_id('{"id": 12abc, "method": ') is None


class TestEncodeResponse:
    def test_single_line(self) -> None:
        line = encode_response(Response.success(1, {"text": "a\nb"}))
        assert "\n" not in line
        assert json.loads(line)["result"]["text"] == "a\nb"

    def test_unserialisable_result_raises(self) -> None:
        with pytest.raises(TypeError):
            encode_response(Response.success(1, object()))

    def test_nan_rejected(self) -> None:
        with pytest.raises(ValueError):
            encode_response(Response.success(1, float("nan")))
