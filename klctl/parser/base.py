"""Shared helpers for decoding hub reply lines."""

from __future__ import annotations

import re
from typing import Tuple

from ..exceptions import MalformedReply
from ..types import Reply

_STATUS_RE = re.compile(r"^[0-9]+$")


def tokenize(line: str) -> Tuple[str, ...]:
    """Split a reply line into its space separated tokens."""
    return tuple(line.strip("\r\n").split())


def decode_reply(line: str) -> Reply:
    """
    Decode one reply line of the form ``<protocol> <status> <text...>``.

    Unknown status codes are returned as-is; only a missing or non-numeric
    status token makes the line malformed.
    """
    if line is None:
        raise MalformedReply("Empty reply", "")
    tokens = tokenize(line)
    if len(tokens) < 2:
        raise MalformedReply(f"Reply has no status code: {line.strip()!r}", line)
    if not _STATUS_RE.match(tokens[1]):
        raise MalformedReply(f"Reply status {tokens[1]!r} is not a number", line)
    return Reply(
        line=line.strip("\r\n"),
        protocol=tokens[0],
        status=int(tokens[1]),
        tokens=tokens[2:],
    )
