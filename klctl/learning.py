"""Learning RF codes from a physical remote and storing them as ON/OFF pairs.

The transmitters this hub learns from send paired codes: the ON code ends in
the nibble ``0011``, the OFF code in ``1100``, and the OFF code is always the
ON code plus 9. A single captured press is therefore enough to store both
states of a device, as long as its nibble is one of the two tags.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

from .commands import Command
from .constants import INVALID_CODE, NIBBLE_MASK, OFF_NIBBLE, ON_NIBBLE, ON_OFF_OFFSET
from .controller import HubController
from .exceptions import InvalidLearnedCode, ProtocolRejection, UsageError
from .parser import SNIFF_CAPTURE
from .status import describe
from .types import DeviceAddRequest, LearnedCode, Reply

logger = logging.getLogger(__name__)


class LearnState(Enum):
    IDLE = auto()
    AWAITING_ARM = auto()
    AWAITING_CAPTURE = auto()
    VALIDATING = auto()
    DERIVED = auto()
    AWAITING_ADD_ACK = auto()
    DONE = auto()
    FAILED = auto()
    INVALID = auto()


class CodeKind(Enum):
    ON = "on"
    OFF = "off"


def classify(code: int) -> Optional[CodeKind]:
    """Tell whether ``code`` is an ON press, an OFF press, or neither (None)."""
    nibble = code & NIBBLE_MASK
    if nibble == ON_NIBBLE:
        return CodeKind.ON
    if nibble == OFF_NIBBLE:
        return CodeKind.OFF
    return None


def derive_pair(name: str, learned: LearnedCode) -> DeviceAddRequest:
    """Build the ON/OFF pair for ``learned``, raising InvalidLearnedCode for untagged codes."""
    kind = classify(learned.code)
    if kind is CodeKind.ON:
        on_code, off_code = learned.code, learned.code + ON_OFF_OFFSET
    elif kind is CodeKind.OFF:
        on_code, off_code = learned.code - ON_OFF_OFFSET, learned.code
    else:
        raise InvalidLearnedCode(learned.code)
    return DeviceAddRequest(name=name, on_code=on_code, off_code=off_code, pulse=learned.pulse)


@dataclass(frozen=True)
class SniffOutcome:
    """Result of the two-phase sniff exchange."""

    state: LearnState
    learned: LearnedCode = LearnedCode(INVALID_CODE, INVALID_CODE)
    reply: Optional[Reply] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.state is LearnState.VALIDATING

    @property
    def kind(self) -> Optional[CodeKind]:
        return classify(self.learned.code) if self.ok else None


class CodeLearner:
    """Drives the sniff exchange and stores validated codes on the hub."""

    def __init__(
        self,
        controller: HubController,
        on_armed: Optional[Callable[[], None]] = None,
    ) -> None:
        self.controller = controller
        self.on_armed = on_armed
        self.state = LearnState.IDLE

    def _transition(self, state: LearnState) -> None:
        logger.debug("CodeLearner: %s -> %s", self.state.name, state.name)
        self.state = state

    def _fail(self, reply: Reply, reason: str) -> SniffOutcome:
        self._transition(LearnState.FAILED)
        return SniffOutcome(state=LearnState.FAILED, reply=reply, reason=reason)

    async def sniff(self) -> SniffOutcome:
        """Arm the hub's receiver and wait for the captured code.

        A refused arm request ends the exchange without reading a second reply.
        """
        command = Command.SNIFF()
        self._transition(LearnState.AWAITING_ARM)
        armed = await self.controller.send_command(command)
        if not command.is_success(armed.status):
            return self._fail(armed, f"Unable to scan ({describe('SNIFF', armed.status)})")

        self._transition(LearnState.AWAITING_CAPTURE)
        if self.on_armed:
            self.on_armed()
        captured = await self.controller.read_reply(command, SNIFF_CAPTURE)
        if not command.is_success(captured.status):
            return self._fail(captured, f"Error occurred, likely unknown encoding ({describe('SNIFF', captured.status)})")

        self._transition(LearnState.VALIDATING)
        learned = LearnedCode(code=captured.fields["code"], pulse=captured.fields["pulse"])
        logger.info("Captured code=%s pulse=%s", learned.code, learned.pulse)
        return SniffOutcome(state=LearnState.VALIDATING, learned=learned, reply=captured)

    def _validate(self, name: str, learned: LearnedCode) -> DeviceAddRequest:
        self._transition(LearnState.VALIDATING)
        try:
            request = derive_pair(name, learned)
        except InvalidLearnedCode:
            self._transition(LearnState.INVALID)
            logger.warning("Rejecting code %s for '%s': low nibble %s is not an ON/OFF tag",
                           learned.code, name, learned.code & NIBBLE_MASK)
            raise
        self._transition(LearnState.DERIVED)
        return request

    async def _store(self, request: DeviceAddRequest) -> DeviceAddRequest:
        command = Command.ADD_CODES(request)
        self._transition(LearnState.AWAITING_ADD_ACK)
        reply = await self.controller.send_command(command)
        try:
            self.controller.check(command, reply)
        except ProtocolRejection:
            self._transition(LearnState.FAILED)
            raise
        self._transition(LearnState.DONE)
        return request

    async def add_by_scan(self, name: str) -> DeviceAddRequest:
        """Learn a code from a remote button press and store the device."""
        outcome = await self.sniff()
        if not outcome.ok:
            raise ProtocolRejection("SNIFF", outcome.reply.status, outcome.reason, outcome.reply)
        return await self._store(self._validate(name, outcome.learned))

    async def add_manual(self, name: str, code: int, pulse: int) -> DeviceAddRequest:
        """Store a device from a code the user already knows."""
        if pulse < 0:
            raise UsageError(f"Pulse must not be negative, got {pulse}")
        return await self._store(self._validate(name, LearnedCode(code=code, pulse=pulse)))
