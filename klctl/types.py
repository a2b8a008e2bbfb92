"""Shared dataclasses for the kiss-light client."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .constants import KL_PREFIX, KL_VERSION

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)$")


@dataclass(frozen=True, slots=True)
class ProtocolVersion:
    """The KL/<major>.<minor> token suffixing every request."""

    major: int
    minor: int

    @classmethod
    def parse(cls, text: str = KL_VERSION) -> "ProtocolVersion":
        match = _VERSION_RE.match(text.strip())
        if not match:
            raise ValueError(f"Invalid protocol version {text!r}, expected <major>.<minor>")
        return cls(int(match.group(1)), int(match.group(2)))

    @property
    def token(self) -> str:
        return f"{KL_PREFIX}/{self.major}.{self.minor}"

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True, slots=True)
class Reply:
    """Single decoded reply line from the hub.

    ``tokens`` keeps the free text after the status; the payload a verb
    carries is only what its schema extracts into ``fields``.
    """

    line: str
    protocol: str
    status: int
    tokens: Tuple[str, ...] = ()
    fields: Dict[str, object] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Free text following the status code."""
        return " ".join(self.tokens)

    def get(self, name: str, default: Optional[object] = None) -> Optional[object]:
        return self.fields.get(name, default)


@dataclass(frozen=True, slots=True)
class LearnedCode:
    """Raw RF code and pulse length captured by a sniff exchange."""

    code: int
    pulse: int


@dataclass(frozen=True, slots=True)
class DeviceAddRequest:
    """ON/OFF code pair ready to be stored on the hub under one name."""

    name: str
    on_code: int
    off_code: int
    pulse: int
