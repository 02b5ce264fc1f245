"""Output system for mcp-manager.

Every user-facing line goes through :func:`message`, which filters by the
configured verbosity and colours the text by message type.  Warnings and
errors are written to stderr, everything else to stdout.
"""

import sys
import threading
from enum import Enum, IntEnum


class MessageType(Enum):
    """Kind of message, used to pick colour and stream."""

    NORMAL = "normal"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"


class VerbosityLevel(IntEnum):
    """Minimum ``-v`` count required for a message to be shown."""

    ALWAYS = 0
    VERBOSE = 1
    EXTRA_VERBOSE = 2
    DEBUG = 3


_COLORS = {
    MessageType.NORMAL: "",
    MessageType.INFO: "\033[36m",
    MessageType.SUCCESS: "\033[32m",
    MessageType.WARNING: "\033[33m",
    MessageType.ERROR: "\033[31m",
    MessageType.DEBUG: "\033[90m",
}
_RESET = "\033[0m"


class OutputManager:
    """Holds output settings shared by the whole process."""

    def __init__(self, verbosity: int = 0, use_color: bool = False):
        self.verbosity = verbosity
        self.use_color = use_color
        self._lock = threading.Lock()

    def should_show(self, level: VerbosityLevel) -> bool:
        """Return True if a message at *level* passes the verbosity filter."""
        return int(level) <= self.verbosity

    def format(self, text: str, msg_type: MessageType) -> str:
        """Apply colour codes to *text* when colour is enabled."""
        color = _COLORS.get(msg_type, "")
        if not self.use_color or not color:
            return text
        return f"{color}{text}{_RESET}"

    def write(self, text: str, msg_type: MessageType, level: VerbosityLevel) -> None:
        """Write *text* to the stream matching *msg_type*."""
        if not self.should_show(level):
            return

        stream = sys.stderr if msg_type in (MessageType.WARNING, MessageType.ERROR) else sys.stdout
        with self._lock:
            print(self.format(text, msg_type), file=stream, flush=True)


_output = OutputManager()


def get_output() -> OutputManager:
    """Return the process-wide output manager."""
    return _output


def message(
    text: str,
    msg_type: MessageType = MessageType.NORMAL,
    level: VerbosityLevel = VerbosityLevel.ALWAYS,
) -> None:
    """Print a message through the shared output manager.

    Args:
        text: Message text
        msg_type: Kind of message (controls colour and stream)
        level: Minimum verbosity required to show the message
    """
    _output.write(text, msg_type, level)
