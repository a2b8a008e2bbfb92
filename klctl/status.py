"""Status codes returned by the hub and their human readable meaning."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict, Tuple


class StatusCode(IntEnum):
    OK = 200
    SET = 201
    ADDED = 202
    DELETED = 203
    LISTED = 204
    TRANSMITTED = 205
    STATUS = 206
    GOODBYE = 207
    NAME_UPDATED = 208
    TOPIC_UPDATED = 209
    STATE_UPDATED = 210
    BAD_REQUEST = 400
    NO_PERMISSION = 401
    CANNOT_DELETE = 402
    CANNOT_ADD = 403
    NOT_FOUND = 404
    INVALID_COMMAND = 405
    NOT_ACCEPTABLE = 406
    ALREADY_EXISTS = 408
    MISSING_ARGUMENTS = 409
    INTERNAL_ERROR = 500
    TIMED_OUT = 504
    HUB_FULL = 505


GENERIC_MESSAGES: Dict[int, str] = {
    StatusCode.OK: "OK",
    StatusCode.BAD_REQUEST: "Bad request",
    StatusCode.NO_PERMISSION: "No permission",
    StatusCode.CANNOT_DELETE: "No such device to delete",
    StatusCode.CANNOT_ADD: "Hub cannot hold another device",
    StatusCode.NOT_FOUND: "No such device",
    StatusCode.INVALID_COMMAND: "Invalid command for device",
    StatusCode.NOT_ACCEPTABLE: "Request not acceptable",
    StatusCode.ALREADY_EXISTS: "Device already exists",
    StatusCode.MISSING_ARGUMENTS: "Missing arguments",
    StatusCode.INTERNAL_ERROR: "Internal server error",
    StatusCode.TIMED_OUT: "Timed out",
    StatusCode.HUB_FULL: "Hub is at client capacity, try again later",
}

# Older hubs answered every lookup failure with 406.
VERB_MESSAGES: Dict[Tuple[str, int], str] = {
    ("TOGGLE", StatusCode.NOT_ACCEPTABLE): "No such device",
    ("SET", StatusCode.NOT_ACCEPTABLE): "No such device",
    ("DELETE", StatusCode.NOT_ACCEPTABLE): "No such device",
    ("SNIFF", StatusCode.NOT_FOUND): "Unknown encoding",
    ("SNIFF", StatusCode.NOT_ACCEPTABLE): "Unknown encoding",
    ("SNIFF", StatusCode.TIMED_OUT): "No button press received",
    ("ADD", StatusCode.NOT_ACCEPTABLE): "Hub refused the device codes",
    ("STATUS", StatusCode.NO_PERMISSION): "No permission to read device status",
}


def describe(verb: str, status: int) -> str:
    """Return the message for ``status`` as answered to ``verb``."""
    message = VERB_MESSAGES.get((verb.upper(), status))
    if message:
        return message
    message = GENERIC_MESSAGES.get(status)
    if message:
        return message
    return f"Unrecognized status {status}"


def is_known(status: int) -> bool:
    try:
        StatusCode(status)
    except ValueError:
        return False
    return True
