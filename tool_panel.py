import logging

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFormLayout, QFrame, QPushButton, QPlainTextEdit,
    QProgressBar, QGroupBox, QMessageBox
)
from PyQt6.QtGui import QFont, QTextCursor
from PyQt6.QtCore import pyqtSignal

from process_session import ProcessSession, InvocationRequest, SpawnError, SessionBusyError, DEFAULT_ELEVATION_COMMAND
from panel_state import PanelSession
from command_availability import AvailabilityCheckThread
from installation_dialog import InstallationDialog
from save_output import SaveOutputWidget
from user_guide import UserGuideBox


class ToolPanel(QWidget):
    """
    Base class for a form that runs one external tool.

    Subclasses describe the tool through the class attributes below, build their
    input widgets in _build_form() and turn the collected values into an argument
    list in build_arguments(). Everything about running, cancelling, showing and
    saving the output lives here.
    """
    status_message = pyqtSignal(str)

    title = ""
    description = ""
    steps = ""
    source_link = ""
    tutorial_link = ""
    executable = ""
    privilege_elevation = False
    dependencies = []
    submit_label = "Run"
    output_file_name = "output.txt"

    def __init__(self, elevation_command=DEFAULT_ELEVATION_COMMAND, check_dependencies=True, parent=None):
        super().__init__(parent)
        self.state = PanelSession()
        self.session = ProcessSession(elevation_command=elevation_command, parent=self)
        self.controls = {}
        self.availability_thread = None
        self.installation_dialog = None

        layout = QVBoxLayout(self)

        layout.addWidget(UserGuideBox(self.title, self.description, self.steps, self.source_link, self.tutorial_link))

        # --- Tool Options ---
        self.form_frame = QFrame()
        self.form_frame.setObjectName("controlPanel")
        self.form_frame.setStyleSheet("#controlPanel { border: 1px solid #444; border-radius: 8px; padding: 5px; }")
        form_layout = QFormLayout(self.form_frame)
        self._build_form(form_layout)
        layout.addWidget(self.form_frame)

        self.submit_btn = QPushButton(self.submit_label)
        self.submit_btn.clicked.connect(self.submit)
        layout.addWidget(self.submit_btn)

        # --- Busy Indicator ---
        self.busy_frame = QFrame()
        busy_layout = QHBoxLayout(self.busy_frame)
        busy_layout.setContentsMargins(0, 0, 0, 0)
        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 0)
        self.progress_bar.setTextVisible(False)
        busy_layout.addWidget(self.progress_bar, 1)
        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.setToolTip("Sends a termination request to the running tool.")
        self.cancel_btn.clicked.connect(self.cancel)
        busy_layout.addWidget(self.cancel_btn)
        layout.addWidget(self.busy_frame)

        self.save_widget = SaveOutputWidget(self.output_file_name)
        self.save_widget.saved.connect(self.handle_save_complete)
        layout.addWidget(self.save_widget)

        # --- Output Console ---
        console_box = QGroupBox("Output")
        console_layout = QVBoxLayout(console_box)
        self.console = QPlainTextEdit()
        self.console.setReadOnly(True)
        self.console.setFont(QFont("Courier New", 10))
        self.console.setPlaceholderText(f"{self.title} output will be displayed here...")
        console_layout.addWidget(self.console)
        clear_btn = QPushButton("Clear Output")
        clear_btn.clicked.connect(self.clear_output)
        console_layout.addWidget(clear_btn)
        layout.addWidget(console_box, 1)

        self._refresh_controls()

        if check_dependencies and self.dependencies:
            self.check_dependencies()

    def _build_form(self, layout):
        raise NotImplementedError

    def form_values(self):
        raise NotImplementedError

    def build_arguments(self, values):
        raise NotImplementedError

    def check_dependencies(self):
        self.availability_thread = AvailabilityCheckThread(self.dependencies)
        self.availability_thread.result_ready.connect(self._on_dependencies_checked)
        self.availability_thread.start()

    def _on_dependencies_checked(self, available, missing):
        if available:
            return
        self.installation_dialog = InstallationDialog(self.description, missing, self)
        self.installation_dialog.open()

    def submit(self):
        """Validates the form and starts the tool without waiting for it."""
        if self.state.loading:
            QMessageBox.warning(self, "Busy", f"{self.title} is already running.")
            return
        try:
            args = self.build_arguments(self.form_values())
        except ValueError as e:
            QMessageBox.warning(self, "Input Error", str(e))
            return

        request = InvocationRequest(self.executable, args, self.privilege_elevation)

        try:
            pid = self.session.start(request, self.handle_process_data, self.handle_process_termination)
        except SpawnError as e:
            self.state.fail_to_start(e)
            self._append_console(f"\nError: {e}")
            self.status_message.emit(f"{self.title}: failed to start.")
            self._refresh_controls()
            return
        except SessionBusyError as e:
            logging.warning(str(e))
            QMessageBox.warning(self, "Busy", f"{self.title} is already running.")
            return

        # Disallow saving until the run is complete
        self.state.begin(pid)
        self.status_message.emit(f"{self.title} running (PID {pid})...")
        self._refresh_controls()

    def handle_process_data(self, data):
        self.state.append(data)
        self._append_console("\n" + data)

    def handle_process_termination(self, result):
        previous_length = len(self.state.output)
        kind = self.state.finish(result)
        self._append_console(self.state.output[previous_length:])
        logging.info(f"{self.title} finished: {kind.name.lower()} (exit code {result.exit_code}, signal {result.signal}).")
        self.status_message.emit(f"{self.title} {kind.name.lower()}.")
        self._refresh_controls()

    def cancel(self):
        logging.info(f"User requested to cancel {self.title}.")
        self.session.cancel(self.state.pid)

    def clear_output(self):
        self.state.clear()
        self.console.clear()
        self._refresh_controls()

    def handle_save_complete(self, file_path):
        self.state.mark_saved()
        self.status_message.emit(f"Output saved to {file_path}")
        self._refresh_controls()

    def shutdown(self):
        """Stops any running tool; called when the main window closes."""
        self.session.stop()
        if self.availability_thread and self.availability_thread.isRunning():
            self.availability_thread.wait(1000)

    def _append_console(self, text):
        self.console.moveCursor(QTextCursor.MoveOperation.End)
        self.console.insertPlainText(text)
        self.console.moveCursor(QTextCursor.MoveOperation.End)

    def _refresh_controls(self):
        loading = self.state.loading
        self.submit_btn.setEnabled(not loading)
        self.form_frame.setEnabled(not loading)
        self.busy_frame.setVisible(loading)
        self.save_widget.update_state(self.state.output, self.state.can_save, self.state.has_saved)
