from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QPlainTextEdit, QApplication
)
from PyQt6.QtGui import QFont

# Debian/Kali package providing each executable, where it differs from the name
PACKAGE_NAMES = {
    "rtgen": "rainbowcrack",
    "rcrack": "rainbowcrack",
}


def install_command(dependencies):
    packages = []
    for dependency in dependencies:
        package = PACKAGE_NAMES.get(dependency, dependency)
        if package not in packages:
            packages.append(package)
    return "sudo apt install -y " + " ".join(packages)


class InstallationDialog(QDialog):
    """Tells the user which tools are missing and how to install them."""

    def __init__(self, feature_description, dependencies, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Missing Dependencies")
        self.setMinimumWidth(500)
        self.dependencies = list(dependencies)

        layout = QVBoxLayout(self)

        description = QLabel(feature_description)
        description.setWordWrap(True)
        layout.addWidget(description)

        missing_label = QLabel(f"<b>The following tools are not installed:</b> {', '.join(self.dependencies)}")
        missing_label.setWordWrap(True)
        layout.addWidget(missing_label)

        layout.addWidget(QLabel("Install them with:"))
        self.command_view = QPlainTextEdit(install_command(self.dependencies))
        self.command_view.setReadOnly(True)
        self.command_view.setFont(QFont("Courier New", 10))
        self.command_view.setMaximumHeight(60)
        layout.addWidget(self.command_view)

        buttons_layout = QHBoxLayout()
        copy_btn = QPushButton("Copy Command")
        copy_btn.clicked.connect(self.copy_command)
        buttons_layout.addWidget(copy_btn)
        buttons_layout.addStretch()
        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.accept)
        buttons_layout.addWidget(close_btn)
        layout.addLayout(buttons_layout)

    def copy_command(self):
        QApplication.clipboard().setText(self.command_view.toPlainText())
