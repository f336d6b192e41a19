import os
import sys
import signal
import logging
import subprocess
from dataclasses import dataclass

import psutil
from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

DEFAULT_ELEVATION_COMMAND = "pkexec"


class SpawnError(Exception):
    """Raised when the external process could not be created at all."""


class SessionBusyError(Exception):
    """Raised when a session is asked to start while a run is still active."""


@dataclass(frozen=True)
class InvocationRequest:
    """What to run: the executable, its arguments and whether it needs root."""
    executable: str
    arguments: tuple = ()
    privilege_elevation: bool = False

    def __post_init__(self):
        if not self.executable:
            raise ValueError("An executable name is required.")
        # Accept any sequence but store an immutable copy
        object.__setattr__(self, "arguments", tuple(str(arg) for arg in self.arguments))


@dataclass(frozen=True)
class TerminationResult:
    exit_code: object = None
    signal: object = None

    @classmethod
    def from_returncode(cls, returncode, elevated=False):
        """
        Maps a Popen return code to an (exit code, signal) pair.

        A negative code means the child itself died from signal -N. An elevation
        wrapper cannot die that way on our behalf, it reports 128+N instead, so
        for elevated runs codes above 128 also carry the signal number.
        """
        if returncode is None:
            return cls()
        if returncode < 0:
            return cls(exit_code=None, signal=-returncode)
        if elevated and returncode > 128:
            return cls(exit_code=returncode, signal=returncode - 128)
        return cls(exit_code=returncode, signal=None)


def _running_as_root():
    try:
        return os.geteuid() == 0
    except AttributeError:  # os.geteuid() does not exist on Windows
        return False


def build_command(request, elevation_command=DEFAULT_ELEVATION_COMMAND):
    """Returns the full argv for a request, prefixed with the elevation wrapper when needed."""
    command = [request.executable, *request.arguments]
    if request.privilege_elevation and not _running_as_root():
        command = [elevation_command] + command
    return command


def cancel_process(handle):
    """
    Sends SIGTERM to the process identified by handle.

    Late or bogus handles are logged and ignored; this never raises.
    """
    if not handle:
        logging.info("Cancel requested but no process is active.")
        return
    try:
        pid = int(handle)
    except (TypeError, ValueError):
        logging.warning(f"Cancel requested for an invalid process handle: {handle!r}")
        return
    if pid <= 0:
        logging.warning(f"Cancel requested for an invalid process handle: {handle!r}")
        return

    try:
        _terminate(psutil.Process(pid))
    except psutil.NoSuchProcess:
        logging.info(f"Process {pid} not found, nothing to cancel.")


def _terminate(ps_process):
    """Sends SIGTERM through psutil, which refuses to signal a pid that has been reused."""
    try:
        ps_process.send_signal(signal.SIGTERM)
        logging.info(f"Sent SIGTERM to process {ps_process.pid}.")
    except psutil.NoSuchProcess:
        logging.info(f"Process {ps_process.pid} not found, nothing to cancel.")
    except psutil.AccessDenied:
        # Typically a root-owned process started through the elevation wrapper
        logging.warning(f"Permission denied while terminating process {ps_process.pid}.")


class ProcessReaderThread(QThread):
    """Reads a running process's output line by line and reports its exit once."""
    output_received = pyqtSignal(str)
    finished_signal = pyqtSignal(object)

    def __init__(self, process, elevated=False, parent=None):
        super().__init__(parent)
        self.process = process
        self.elevated = elevated

    def run(self):
        try:
            for line in iter(self.process.stdout.readline, ''):
                self.output_received.emit(line.rstrip('\r\n'))
        except (OSError, ValueError) as e:
            logging.error(f"Error reading output of process {self.process.pid}: {e}")
        finally:
            self.process.stdout.close()
            return_code = self.process.wait()
            result = TerminationResult.from_returncode(return_code, self.elevated)
            logging.info(f"Process {self.process.pid} exited with code {result.exit_code}, signal {result.signal}.")
            self.finished_signal.emit(result)


class ProcessSession(QObject):
    """
    Supervises one external-tool invocation at a time.

    start() spawns the process on the calling thread and returns its pid right
    away. Output lines and the single termination result are delivered to the
    given callbacks on this object's thread, in the order the process produced
    them, with the termination always last.
    """

    def __init__(self, elevation_command=DEFAULT_ELEVATION_COMMAND, parent=None):
        super().__init__(parent)
        self.elevation_command = elevation_command
        self.process = None
        self.ps_process = None
        self.reader_thread = None
        self.active_threads = []
        self._on_data = None
        self._on_terminate = None

    @property
    def is_running(self):
        return self.process is not None

    @property
    def handle(self):
        return str(self.process.pid) if self.process else ""

    def start(self, request, on_data, on_terminate):
        if self.is_running:
            raise SessionBusyError(f"A process (pid {self.process.pid}) is already running in this session.")

        command = build_command(request, self.elevation_command)
        logging.info(f"Starting process: {' '.join(command)}")

        startupinfo = None
        if sys.platform == "win32":
            startupinfo = subprocess.STARTUPINFO()
            startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW

        try:
            process = subprocess.Popen(command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, stdin=subprocess.DEVNULL,
                                       text=True, bufsize=1, startupinfo=startupinfo, encoding='utf-8', errors='replace')
        except FileNotFoundError as e:
            logging.error(f"Could not start '{command[0]}': {e}")
            raise SpawnError(f"'{command[0]}' command not found. Please ensure it is installed and in your system's PATH.") from e
        except PermissionError as e:
            logging.error(f"Could not start '{command[0]}': {e}")
            raise SpawnError(f"Permission denied while starting '{command[0]}'.") from e
        except OSError as e:
            logging.error(f"Could not start '{command[0]}': {e}")
            raise SpawnError(f"Failed to start '{command[0]}': {e}") from e

        self.process = process
        try:
            # Remembers the create time, so a later cancel cannot hit a reused pid
            self.ps_process = psutil.Process(process.pid)
        except psutil.NoSuchProcess:
            self.ps_process = None
        self._on_data = on_data
        self._on_terminate = on_terminate

        elevated = command[0] != request.executable
        thread = ProcessReaderThread(process, elevated=elevated)
        thread.output_received.connect(self._handle_output)
        thread.finished_signal.connect(self._handle_finished)
        # Keep a reference until Qt reports the thread has really stopped
        thread.finished.connect(self._forget_finished_threads)
        self.active_threads.append(thread)
        self.reader_thread = thread
        thread.start()

        logging.info(f"Process started with PID: {process.pid}")
        return str(process.pid)

    def cancel(self, handle=None):
        """
        Requests termination of the active run.

        A handle that does not belong to this session's active run is stale and
        is ignored, so a reused pid is never signalled.
        """
        if not self.is_running:
            logging.info(f"Cancel requested for {handle or 'the session'} but no process is active.")
            return
        if handle is not None and str(handle) != self.handle:
            logging.info(f"Ignoring cancel for stale handle {handle!r}; the active process is {self.handle}.")
            return
        if self.ps_process is not None:
            _terminate(self.ps_process)
        else:
            logging.info(f"Process {self.handle} already exited, nothing to cancel.")

    def stop(self, timeout_ms=2000):
        """Cancels any active run and waits for the reader thread to wind down."""
        if self.is_running:
            self.cancel()
        for thread in list(self.active_threads):
            thread.wait(timeout_ms)

    @pyqtSlot(str)
    def _handle_output(self, line):
        if self._on_data:
            self._on_data(line)

    @pyqtSlot(object)
    def _handle_finished(self, result):
        on_terminate = self._on_terminate
        self.process = None
        self.ps_process = None
        self.reader_thread = None
        self._on_data = None
        self._on_terminate = None
        if on_terminate:
            on_terminate(result)

    @pyqtSlot()
    def _forget_finished_threads(self):
        self.active_threads = [t for t in self.active_threads if not t.isFinished()]
