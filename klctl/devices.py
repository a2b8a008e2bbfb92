"""
Device type definitions known to the hub.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional, Tuple

from .exceptions import UsageError


class DeviceType(IntEnum):
    """Device types understood by the hub's ADD request."""
    OUTLET = 0
    POWERSTRIP = 1
    DIMMABLE = 2
    CCT = 3
    RGB = 4
    RGBW = 5
    RGBCCT = 6
    CUSTOM = 7


@dataclass(frozen=True)
class DeviceTypeInfo:
    """Names and commands belonging to one device type."""
    name: str
    aliases: Tuple[str, ...]
    commands: Tuple[str, ...] = ()
    # powerstrip takes an outlet count, custom a command list
    needs_commands: bool = False


DEVICE_TYPES: Dict[DeviceType, DeviceTypeInfo] = {
    DeviceType.OUTLET: DeviceTypeInfo(
        name="outlet/toggleable",
        aliases=("outlet", "toggleable"),
        commands=("POWER",),
    ),
    DeviceType.POWERSTRIP: DeviceTypeInfo(
        name="powerstrip",
        aliases=("strip", "powerstrip"),
        needs_commands=True,
    ),
    DeviceType.DIMMABLE: DeviceTypeInfo(
        name="dimmablebulb",
        aliases=("dim", "dimmable", "dimmablebulb"),
        commands=("POWER", "DIMMER"),
    ),
    DeviceType.CCT: DeviceTypeInfo(
        name="cctbulb",
        aliases=("cct", "cctbulb"),
        commands=("POWER", "DIMMER", "COLOR", "WHITE", "CT"),
    ),
    DeviceType.RGB: DeviceTypeInfo(
        name="rgbbulb",
        aliases=("rgb", "rgbbulb"),
        commands=("POWER", "DIMMER", "COLOR", "HSBCOLOR"),
    ),
    DeviceType.RGBW: DeviceTypeInfo(
        name="rgbwbulb",
        aliases=("rgbw", "rgbwbulb"),
        commands=("POWER", "DIMMER", "COLOR", "HSBCOLOR", "WHITE"),
    ),
    DeviceType.RGBCCT: DeviceTypeInfo(
        name="rgbcctbulb",
        aliases=("rgbcct", "rgbcctbulb"),
        commands=("POWER", "DIMMER", "COLOR", "HSBCOLOR", "WHITE", "CT"),
    ),
    DeviceType.CUSTOM: DeviceTypeInfo(
        name="custom",
        aliases=("custom",),
        needs_commands=True,
    ),
}


def parse_device_type(value: str) -> DeviceType:
    """Resolve a device type given as its number or one of its names (case-insensitive)."""
    text = value.strip().lower()
    if text.isdigit():
        try:
            return DeviceType(int(text))
        except ValueError:
            raise UsageError(f"Unknown device type {value!r}") from None
    for dev_type, info in DEVICE_TYPES.items():
        if text in info.aliases or text == info.name:
            return dev_type
    raise UsageError(f"Unknown device type {value!r}")


def normalize_type_commands(dev_type: DeviceType, commands: Optional[str]) -> Optional[str]:
    """Check the optional <cmds> token of an ADD request against the device type."""
    info = DEVICE_TYPES[dev_type]
    if not info.needs_commands:
        if commands:
            raise UsageError(f"Device type {info.name} does not take a command list")
        return None
    if not commands:
        raise UsageError(f"Device type {info.name} requires a command list")
    if dev_type == DeviceType.POWERSTRIP:
        if not commands.isdigit() or int(commands) < 1:
            raise UsageError("A powerstrip needs its number of outlets as a positive integer")
        return commands
    cmds = [c.strip().upper() for c in commands.split(",") if c.strip()]
    if not cmds:
        raise UsageError("A custom device needs at least one command")
    return ",".join(cmds)


def valid_commands(dev_type: DeviceType, commands: Optional[str] = None) -> Tuple[str, ...]:
    """Commands a device of ``dev_type`` accepts, expanding powerstrip outlets."""
    if dev_type == DeviceType.POWERSTRIP:
        count = int(commands or 0)
        return tuple(f"POWER{i}" for i in range(1, count + 1))
    if dev_type == DeviceType.CUSTOM:
        return tuple(c.strip().upper() for c in (commands or "").split(",") if c.strip())
    return DEVICE_TYPES[dev_type].commands
