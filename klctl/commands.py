from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from .constants import QUIT_LINE
from .devices import DeviceType, normalize_type_commands
from .exceptions import UsageError
from .status import StatusCode
from .types import DeviceAddRequest, ProtocolVersion


class Verb(str, Enum):
    TOGGLE = "TOGGLE"
    SET = "SET"
    TRANSMIT = "TRANSMIT"
    ADD = "ADD"
    DELETE = "DELETE"
    SNIFF = "SNIFF"
    LIST = "LIST"
    STATUS = "STATUS"
    UPDATE = "UPDATE"
    QUIT = "Q"


class UpdateField(str, Enum):
    NAME = "NAME"
    TOPIC = "TOPIC"
    STATE = "STATE"


_UPDATE_SUCCESS = {
    UpdateField.NAME: StatusCode.NAME_UPDATED,
    UpdateField.TOPIC: StatusCode.TOPIC_UPDATED,
    UpdateField.STATE: StatusCode.STATE_UPDATED,
}


def _token(value: object, what: str) -> str:
    """Render one request argument; the wire format is space separated."""
    text = str(value).strip()
    if not text or any(ch.isspace() for ch in text):
        raise UsageError(f"{what} must be a single non-empty word, got {value!r}")
    return text


@dataclass(frozen=True)
class Command:
    """
    Represents a single request that can be sent to the hub.
    """
    verb: Verb
    args: Tuple[str, ...] = ()
    success: FrozenSet[int] = frozenset({StatusCode.OK})
    target: str = ""
    has_body: bool = False

    def encode(self, version: Optional[ProtocolVersion] = None) -> str:
        """Render the request line, without the trailing newline."""
        if self.verb is Verb.QUIT:
            return QUIT_LINE
        version = version or ProtocolVersion.parse()
        return " ".join((self.verb.value, *self.args, version.token))

    def is_success(self, status: int) -> bool:
        return status in self.success

    @classmethod
    def TOGGLE(cls, name: str) -> 'Command':
        """Flip a device between on and off."""
        return cls(
            verb=Verb.TOGGLE,
            args=(_token(name, "device name"),),
            target=name,
        )

    @classmethod
    def SET(cls, name: str, command: str, argument: Optional[str] = None) -> 'Command':
        """Send a device command such as ``POWER ON`` or the legacy ``ON``/``OFF``."""
        args = [_token(name, "device name"), _token(command, "command").upper()]
        if argument is not None:
            args.append(_token(argument, "command argument").upper())
        return cls(
            verb=Verb.SET,
            args=tuple(args),
            success=frozenset({StatusCode.OK, StatusCode.SET}),
            target=name,
        )

    @classmethod
    def TRANSMIT(cls, topic: str, message: str) -> 'Command':
        """Publish a raw message on an MQTT topic through the hub."""
        return cls(
            verb=Verb.TRANSMIT,
            args=(_token(topic, "mqtt topic"), _token(message, "message")),
            success=frozenset({StatusCode.OK, StatusCode.TRANSMITTED}),
            target=topic,
        )

    @classmethod
    def TRANSMIT_CODE(cls, code: int, pulse: int) -> 'Command':
        """Transmit a raw RF code with the given pulse length."""
        return cls(
            verb=Verb.TRANSMIT,
            args=(str(int(code)), str(int(pulse))),
            success=frozenset({StatusCode.OK, StatusCode.TRANSMITTED}),
            target=str(code),
        )

    @classmethod
    def ADD(cls, name: str, topic: str, dev_type: DeviceType, commands: Optional[str] = None) -> 'Command':
        """Register an MQTT device: ``ADD <name> <topic> <type> [<cmds>]``."""
        args = [_token(name, "device name"), _token(topic, "mqtt topic"), str(int(dev_type))]
        cmds = normalize_type_commands(dev_type, commands)
        if cmds is not None:
            args.append(_token(cmds, "command list"))
        return cls(
            verb=Verb.ADD,
            args=tuple(args),
            success=frozenset({StatusCode.OK, StatusCode.ADDED}),
            target=name,
        )

    @classmethod
    def ADD_CODES(cls, request: DeviceAddRequest) -> 'Command':
        """Register an RF device: ``ADD <name> <on> <off> <pulse>``."""
        return cls(
            verb=Verb.ADD,
            args=(
                _token(request.name, "device name"),
                str(request.on_code),
                str(request.off_code),
                str(request.pulse),
            ),
            success=frozenset({StatusCode.OK, StatusCode.ADDED}),
            target=request.name,
        )

    @classmethod
    def DELETE(cls, name: str) -> 'Command':
        return cls(
            verb=Verb.DELETE,
            args=(_token(name, "device name"),),
            success=frozenset({StatusCode.OK, StatusCode.DELETED}),
            target=name,
        )

    @classmethod
    def SNIFF(cls) -> 'Command':
        """Arm the hub's receiver to capture the next remote button press."""
        return cls(verb=Verb.SNIFF)

    @classmethod
    def LIST(cls) -> 'Command':
        return cls(
            verb=Verb.LIST,
            success=frozenset({StatusCode.OK, StatusCode.LISTED}),
            has_body=True,
        )

    @classmethod
    def STATUS(cls, name: str) -> 'Command':
        return cls(
            verb=Verb.STATUS,
            args=(_token(name, "device name"),),
            success=frozenset({StatusCode.OK, StatusCode.STATUS}),
            target=name,
            has_body=True,
        )

    @classmethod
    def UPDATE(cls, field: UpdateField, name: str, value: Optional[str] = None) -> 'Command':
        """Rename a device, move it to another topic, or refresh its state."""
        try:
            field = UpdateField(str(getattr(field, "value", field)).upper())
        except ValueError:
            raise UsageError(f"Unknown update field {field!r}, expected name, topic or state") from None
        args = [field.value, _token(name, "device name")]
        if field is UpdateField.STATE:
            if value is not None:
                raise UsageError("update state takes no new value")
        else:
            if value is None:
                raise UsageError(f"update {field.value.lower()} requires a new value")
            args.append(_token(value, f"new {field.value.lower()}"))
        return cls(
            verb=Verb.UPDATE,
            args=tuple(args),
            success=frozenset({StatusCode.OK, _UPDATE_SUCCESS[field]}),
            target=name,
        )

    @classmethod
    def QUIT(cls) -> 'Command':
        """End the session; the hub's answer is not awaited."""
        return cls(verb=Verb.QUIT, success=frozenset())
