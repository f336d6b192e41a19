import logging
from enum import Enum

CANCEL_SIGNAL = 15  # SIGTERM

SUCCESS_MARKER = "Process completed successfully."
CANCELLED_MARKER = "Process was manually terminated."


class SessionState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class TerminationKind(Enum):
    COMPLETED = SessionState.COMPLETED
    CANCELLED = SessionState.CANCELLED
    FAILED = SessionState.FAILED


def classify_termination(result):
    """Returns the (kind, console message) pair for a TerminationResult."""
    if result.exit_code == 0:
        return TerminationKind.COMPLETED, SUCCESS_MARKER
    if result.signal == CANCEL_SIGNAL:
        return TerminationKind.CANCELLED, CANCELLED_MARKER
    return TerminationKind.FAILED, f"Process terminated with exit code: {result.exit_code} and signal code: {result.signal}"


class PanelSession:
    """
    The state a single tool panel owns for its runs: the active process handle,
    the accumulated console output, the loading flag and the save flags.

    Only the methods below mutate it; the widgets just render it.
    """

    def __init__(self):
        self.pid = ""
        self.output = ""
        self.loading = False
        self.allow_save = False
        self.has_saved = False
        self.state = SessionState.IDLE

    @property
    def can_save(self):
        return self.allow_save and not self.loading

    def begin(self, pid):
        self.pid = pid
        self.loading = True
        self.allow_save = False
        self.has_saved = False
        self.state = SessionState.RUNNING

    def append(self, chunk):
        self.output += "\n" + chunk

    def finish(self, result):
        kind, message = classify_termination(result)
        self.append("\n" + message)
        self.pid = ""
        self.loading = False
        # The output is final now, so it may be saved
        self.allow_save = True
        self.has_saved = False
        self.state = kind.value
        return kind

    def fail_to_start(self, error):
        logging.error(f"Tool failed to start: {error}")
        self.append(f"Error: {error}")
        self.pid = ""
        self.loading = False
        self.allow_save = False
        self.has_saved = False
        self.state = SessionState.IDLE

    def clear(self):
        self.output = ""
        self.allow_save = False
        self.has_saved = False
        if not self.loading:
            self.state = SessionState.IDLE

    def mark_saved(self):
        self.has_saved = True
        self.allow_save = False
