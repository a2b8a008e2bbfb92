"""A Python client for controlling devices through a kiss-light hub."""

from .commands import Command
from .controller import HubController
from .learning import CodeLearner
from .transport import TCPTransport

__all__ = ["CodeLearner", "Command", "HubController", "TCPTransport"]
