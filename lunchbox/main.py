"""
Lunchbox Desktop Application

A native desktop application for managing a local DrupalVM development
environment.
"""

import sys
import logging

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from version import __version__

from .ui.main_window import MainWindow

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Main entry point for the desktop application."""
    # Enable high DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Lunchbox")
    app.setApplicationVersion(__version__)

    # Create and show main window, then run the boot operations
    window = MainWindow()
    window.show()
    window.start_boot()

    logger.info("Desktop application started")

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
