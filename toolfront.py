import sys
import logging

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QStatusBar, QTabWidget, QDockWidget, QPlainTextEdit, QMessageBox
)
from PyQt6.QtCore import QObject, pyqtSignal, Qt
from PyQt6.QtGui import QAction, QActionGroup
from qt_material import apply_stylesheet, list_themes

from settings import load_settings, save_settings
from nbtscan_tool import NbtscanPanel
from rtgen_tool import RtgenPanel

APP_NAME = "ToolFront"
LOG_FORMAT = '%(asctime)s - %(threadName)s - %(levelname)s - %(message)s'

EXTRA_QSS = {
    'QGroupBox': {
        'border': '1px solid #444;',
        'border-radius': '8px',
        'margin-top': '10px',
    },
    'QPushButton': {
        'border-radius': '8px',
    },
    'QLineEdit': {
        'border-radius': '8px',
    },
    'QPlainTextEdit': {
        'border-radius': '8px',
    },
}


class QtLogHandler(logging.Handler, QObject):
    """A custom logging handler that emits a Qt signal for each log record."""
    log_updated = pyqtSignal(str)
    def __init__(self): super().__init__(); QObject.__init__(self)
    def emit(self, record): self.log_updated.emit(self.format(record))


def setup_logging(log_file, level="INFO", qt_handler=None):
    """Configures the root logger to write to a file and, optionally, the UI log panel."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]: root_logger.removeHandler(handler)
    formatter = logging.Formatter(LOG_FORMAT)
    file_handler = logging.FileHandler(log_file, mode='w')
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
    if qt_handler is not None:
        qt_handler.setFormatter(formatter)
        root_logger.addHandler(qt_handler)
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    return root_logger


class ToolFront(QMainWindow):
    def __init__(self, settings=None):
        super().__init__()
        self.settings = settings if settings is not None else load_settings()
        self.setWindowTitle(f"{APP_NAME} - NetBIOS & Rainbow Table Tools")
        self.setGeometry(100, 100, 1000, 760)

        self._create_log_panel()
        self._setup_logging()
        self._create_status_bar()

        elevation_command = self.settings["elevation_command"]
        self.panels = [
            NbtscanPanel(elevation_command=elevation_command),
            RtgenPanel(elevation_command=elevation_command),
        ]
        self.tab_widget = QTabWidget()
        for panel in self.panels:
            panel.status_message.connect(self.status_bar.showMessage)
            self.tab_widget.addTab(panel, panel.title)
        self.setCentralWidget(self.tab_widget)

        self._create_menu_bar()
        logging.info(f"{APP_NAME} started.")

    def _create_log_panel(self):
        """Creates the dockable logging panel at the bottom of the window."""
        log_dock_widget = QDockWidget("Live Log", self)
        log_dock_widget.setAllowedAreas(Qt.DockWidgetArea.BottomDockWidgetArea)
        self.log_console = QPlainTextEdit(); self.log_console.setReadOnly(True)
        log_dock_widget.setWidget(self.log_console)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, log_dock_widget)

    def _setup_logging(self):
        self.qt_log_handler = QtLogHandler()
        self.qt_log_handler.log_updated.connect(self.log_console.appendPlainText)
        setup_logging(self.settings["log_file"], self.settings["log_level"], self.qt_log_handler)

    def _create_status_bar(self):
        self.status_bar = QStatusBar(self); self.setStatusBar(self.status_bar); self.status_bar.showMessage("Ready")

    def _create_menu_bar(self):
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction("&Exit", self.close)

        view_menu = menu_bar.addMenu("&View")
        theme_menu = view_menu.addMenu("&Theme")
        theme_group = QActionGroup(self)
        theme_group.setExclusive(True)
        for theme in list_themes():
            action = QAction(theme.replace('.xml', ''), self, checkable=True)
            action.setChecked(theme == self.settings["theme"])
            action.triggered.connect(lambda checked, t=theme: self._handle_theme_change(t))
            theme_group.addAction(action)
            theme_menu.addAction(action)

        help_menu = menu_bar.addMenu("&Help")
        help_menu.addAction(f"&About {APP_NAME}", self._show_about_dialog)

    def _handle_theme_change(self, theme):
        """Applies the selected theme and remembers it for the next start."""
        apply_stylesheet(QApplication.instance(), theme=theme, extra=EXTRA_QSS)
        self.settings["theme"] = theme
        try:
            save_settings(self.settings)
        except OSError as e:
            logging.error(f"Could not save settings: {e}")
            QMessageBox.warning(self, "Settings", f"Could not save the selected theme:\n{e}")

    def _show_about_dialog(self):
        QMessageBox.about(self, f"About {APP_NAME}",
                          f"<b>{APP_NAME}</b><br>A graphical front-end for nbtscan and rtgen.<br><br>"
                          "Each tool runs as a separate process; its output is streamed into the console "
                          "and can be saved to a text file once the run has finished.")

    def closeEvent(self, event):
        """Asks for confirmation while a tool is running and stops it before exiting."""
        running = [panel.title for panel in self.panels if panel.state.loading]
        if running:
            reply = QMessageBox.question(self, 'Exit Confirmation',
                                         f"{', '.join(running)} still running. Stop and exit?",
                                         QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
                                         QMessageBox.StandardButton.No)
            if reply != QMessageBox.StandardButton.Yes:
                logging.info("User canceled exit.")
                event.ignore()
                return
        for panel in self.panels:
            panel.shutdown()
        logging.info(f"{APP_NAME} closing.")
        event.accept()


def main():
    settings = load_settings()
    app = QApplication(sys.argv)
    try:
        apply_stylesheet(app, theme=settings["theme"], extra=EXTRA_QSS)
        window = ToolFront(settings)
        window.show()
    except Exception as e:
        logging.critical(f"An unhandled exception occurred: {e}", exc_info=True)
        QMessageBox.critical(None, "Unhandled Exception", f"An unexpected error occurred:\n\n{e}")
        sys.exit(1)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
