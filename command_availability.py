import shutil
import logging

from PyQt6.QtCore import QThread, pyqtSignal


def missing_commands(commands):
    """Returns the commands from the list that cannot be found on PATH."""
    return [command for command in commands if not shutil.which(command)]


def check_all_commands_availability(commands):
    return not missing_commands(commands)


class AvailabilityCheckThread(QThread):
    """Checks in the background whether every required executable is installed."""
    result_ready = pyqtSignal(bool, list)  # all available, missing commands

    def __init__(self, commands, parent=None):
        super().__init__(parent)
        self.commands = list(commands)

    def run(self):
        try:
            missing = missing_commands(self.commands)
        except OSError as e:
            logging.error(f"Dependency check failed: {e}")
            missing = list(self.commands)
        if missing:
            logging.warning(f"Missing dependencies: {', '.join(missing)}")
        self.result_ready.emit(not missing, missing)
