"""Constants used throughout the kiss-light client."""

# Hub defaults
DEFAULT_HUB_HOST = "127.0.0.1"
DEFAULT_HUB_PORT = 1155
PORT_MIN = 1
PORT_MAX = 65535

# Protocol version sent as the KL/<major>.<minor> suffix of every request
KL_VERSION = "0.3"
KL_PREFIX = "KL"

# Session framing
QUIT_LINE = "Q"
SENTINEL = "."

# RF code learning
# The low nibble of a learned code tags which button was pressed.
NIBBLE_MASK = 0xF
ON_NIBBLE = 0b0011
OFF_NIBBLE = 0b1100
# Paired ON/OFF codes of the same transmitter differ by this amount.
ON_OFF_OFFSET = 9
INVALID_CODE = -1
