import os
import logging

from PyQt6.QtWidgets import QWidget, QHBoxLayout, QPushButton, QLabel, QFileDialog, QMessageBox
from PyQt6.QtCore import pyqtSignal


def write_output_file(file_path, text):
    """Writes the console output to a text file and returns its absolute path."""
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(text)
    logging.info(f"Output saved to {file_path}")
    return os.path.realpath(file_path)


class SaveOutputWidget(QWidget):
    """A 'Save Output to File' row that is only usable once a run has finished."""
    saved = pyqtSignal(str)

    def __init__(self, default_name="output.txt", parent=None):
        super().__init__(parent)
        self.default_name = default_name
        self.output = ""

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.save_btn = QPushButton("Save Output to File")
        self.save_btn.setEnabled(False)
        self.save_btn.clicked.connect(self.save_output)
        layout.addWidget(self.save_btn)
        self.status_label = QLabel("")
        layout.addWidget(self.status_label)
        layout.addStretch()

    def update_state(self, output, allow_save, has_saved):
        self.output = output
        self.save_btn.setEnabled(allow_save)
        self.status_label.setText("Output saved." if has_saved else "")

    def save_output(self):
        file_path, _ = QFileDialog.getSaveFileName(self, "Save Output", self.default_name, "Text Files (*.txt);;All Files (*)", options=QFileDialog.Option.DontUseNativeDialog)
        if not file_path:
            return
        try:
            saved_path = write_output_file(file_path, self.output)
        except OSError as e:
            logging.error(f"Failed to save output: {e}", exc_info=True)
            QMessageBox.critical(self, "Save Error", f"Could not save output:\n{e}")
            return
        self.saved.emit(saved_path)
