"""Line codec for the stdio wire format.

One JSON object per line in both directions.  Decoding never raises
anything but :class:`MessageParseError`, which carries the best id that
could be salvaged from the raw text.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from nexushub.protocols.errors import MessageParseError
from nexushub.protocols.models import Message, MessageId, Response

_STRING = re.compile(r'"(?:[^"\\]|\\.)*"')
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_WHITESPACE = re.compile(r"\s*")


def parse_message(line: str) -> Message:
    """Decode one line into a :class:`Message`.

    Raises:
        MessageParseError: If the line is not a JSON object shaped like a
            Message.  ``recovered_id`` is set when an id could be salvaged.
    """
    try:
        data: Any = json.loads(line)
    except json.JSONDecodeError as exc:
        raise MessageParseError(str(exc), recover_id(line)) from exc

    if not isinstance(data, dict):
        raise MessageParseError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return Message.model_validate(data)
    except ValidationError as exc:
        raise MessageParseError(_summarise(exc), _valid_id(data.get("id"))) from exc


def recover_id(line: str) -> MessageId:
    """Salvage an ``id`` from a line that failed to decode as JSON.

    Only an ``"id"`` key of the outermost object counts.  Keys nested in
    ``params``, text inside string values, and anything after the outer
    object closes are ignored, so a reply is never tagged with an id the
    sender did not put on this request.
    """
    pos = _skip_whitespace(line, 0)
    if not line.startswith("{", pos):
        return None

    depth = 0
    expect_key = False
    while pos < len(line):
        ch = line[pos]
        if ch == '"':
            match = _STRING.match(line, pos)
            if match is None:
                return None
            end = match.end()
            if depth == 1 and expect_key:
                after = _skip_whitespace(line, end)
                if line.startswith(":", after):
                    if match.group() == '"id"':
                        return _scalar_at(line, _skip_whitespace(line, after + 1))
                    end = after + 1
            expect_key = False
            pos = end
            continue
        if ch in "{[":
            depth += 1
            expect_key = ch == "{" and depth == 1
        elif ch in "}]":
            depth -= 1
            if depth <= 0:
                return None
            expect_key = False
        elif ch == ",":
            expect_key = depth == 1
        elif not ch.isspace():
            expect_key = False
        pos += 1
    return None


def encode_response(response: Response) -> str:
    """Serialise a Response as a single line (no trailing newline).

    Raises:
        TypeError, ValueError: If the result is not JSON-serialisable.
    """
    return json.dumps(response.to_wire(), allow_nan=False)


def _skip_whitespace(line: str, pos: int) -> int:
    return _WHITESPACE.match(line, pos).end()  # type: ignore[union-attr]


def _scalar_at(line: str, pos: int) -> MessageId:
    """Read a string or number id at *pos*, if it is followed by a delimiter."""
    match = _STRING.match(line, pos) or _NUMBER.match(line, pos)
    if match is None:
        return None
    after = _skip_whitespace(line, match.end())
    if after < len(line) and line[after] not in ",}":
        return None
    text = match.group()
    if text.startswith('"'):
        try:
            return json.loads(text)  # type: ignore[no-any-return]
        except json.JSONDecodeError:
            return text[1:-1]
    if any(ch in text for ch in ".eE"):
        return float(text)
    return int(text)


def _valid_id(value: Any) -> MessageId:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return value
    return None


def _summarise(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "message"
        parts.append(f"{loc}: {err['msg']}")
    return "Invalid message: " + "; ".join(parts)
