"""Custom exception hierarchy for the kiss-light client."""


class KissLightError(Exception):
    """Base class for all kiss-light specific errors."""


class UsageError(KissLightError):
    """Raised when command line arguments are missing or invalid."""


class ConfigError(KissLightError):
    """Raised when the local configuration file holds an unusable value."""


class TransportError(KissLightError):
    """Raised when the hub connection cannot be opened, written or read."""


class ReplyTimeout(TransportError):
    """Raised when the hub does not answer within the configured read timeout."""


class MalformedReply(KissLightError):
    """Raised when a reply line is missing expected tokens or has a non-numeric status."""

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class ProtocolRejection(KissLightError):
    """Raised when the hub answers with a well-formed but non-success status."""

    def __init__(self, verb: str, status: int, message: str, reply=None) -> None:
        super().__init__(message)
        self.verb = verb
        self.status = status
        self.reply = reply


class InvalidLearnedCode(KissLightError):
    """Raised when a sniffed or manual RF code fails the nibble-pattern check."""

    def __init__(self, code: int) -> None:
        super().__init__(f"Code {code} is invalid, not adding.")
        self.code = code
