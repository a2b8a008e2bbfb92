"""Named reply fields for the replies whose payload the client reads."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Callable, Dict, Tuple

from ..exceptions import MalformedReply
from ..types import Reply
from .base import tokenize

_INT_RE = re.compile(r"^[+-]?[0-9]+$")


def to_int(text: str) -> int:
    if not _INT_RE.match(text):
        raise ValueError(f"{text!r} is not a base-10 integer")
    return int(text)


def to_unsigned(text: str) -> int:
    value = to_int(text)
    if value < 0:
        raise ValueError(f"{text!r} is negative")
    return value


@dataclass(frozen=True)
class Field:
    """One named token of a reply line; ``index`` counts from the protocol tag."""

    name: str
    index: int
    convert: Callable[[str], object] = str
    required: bool = True


@dataclass(frozen=True)
class ReplySchema:
    name: str
    fields: Tuple[Field, ...]

    def apply(self, reply: Reply) -> Reply:
        """Return ``reply`` with its named fields extracted."""
        tokens = tokenize(reply.line)
        values: Dict[str, object] = {}
        for field in self.fields:
            if field.index >= len(tokens):
                if field.required:
                    raise MalformedReply(
                        f"{self.name} reply has no {field.name} at token {field.index}: {reply.line!r}",
                        reply.line,
                    )
                continue
            try:
                values[field.name] = field.convert(tokens[field.index])
            except ValueError as exc:
                raise MalformedReply(f"{self.name} reply field {field.name}: {exc}", reply.line) from exc
        return replace(reply, fields=values)


# KL/<v> 200 Code: <code> Pulse: <pulse>
SNIFF_CAPTURE = ReplySchema(
    name="SNIFF",
    fields=(
        Field("code", 3, to_int),
        Field("pulse", 5, to_unsigned),
    ),
)

# KL/<v> 204 Number of Devices <count>; older hubs may omit the count
LIST_HEADER = ReplySchema(
    name="LIST",
    fields=(Field("count", 5, to_unsigned, required=False),),
)
