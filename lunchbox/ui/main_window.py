"""
Main window for the desktop application.
"""

import logging
from typing import List, Optional, Sequence

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QListWidget, QListWidgetItem, QStatusBar, QLabel, QMessageBox
)
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QAction

import qtawesome as qta

from config import get_config

from ..boot import pipeline, prerequisites
from ..core.context import BootContext
from ..core.operations import GROUP_BOOT, GROUP_NAV, GROUP_PLUGINS, OperationRegistry
from ..core.status import SEVERITY_ERROR
from ..utils import app_config
from .boot_dialog import BootDialog, QtStatusSink
from .workers import BootWorker

logger = logging.getLogger(__name__)


def build_registry(build_navigation) -> OperationRegistry:
    """Startup operations, grouped so plugins and nav can be re-run alone."""
    registry = OperationRegistry()
    # boot group
    registry.register(GROUP_BOOT, pipeline.load_settings)
    registry.register(GROUP_BOOT, pipeline.check_plugins_dir)
    registry.register(GROUP_BOOT, prerequisites.check_prerequisites)
    registry.register(GROUP_BOOT, pipeline.detect_vm)
    registry.register(GROUP_BOOT, pipeline.check_provision_status)
    # plugins group
    registry.register(GROUP_PLUGINS, pipeline.check_plugins)
    # navigation group
    registry.register(GROUP_NAV, build_navigation)
    return registry


class MainWindow(QMainWindow):
    """Main application window."""

    navigation_ready = Signal(list)

    def __init__(self):
        super().__init__()

        self.sink = QtStatusSink()
        self.context = BootContext(sink=self.sink, store=app_config, config=get_config())
        self.registry = build_registry(self.build_navigation)
        self.worker: Optional[BootWorker] = None

        # Setup UI
        self.setup_ui()
        self.boot_dialog = BootDialog(parent=self)
        self.boot_dialog.attach(self.sink)
        self.navigation_ready.connect(self.populate_navigation)

    def setup_ui(self):
        """Setup the user interface."""
        self.setWindowTitle("Lunchbox")
        self.setMinimumSize(900, 600)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        layout = QHBoxLayout(central_widget)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(20)

        self.nav_list = QListWidget()
        self.nav_list.setMaximumWidth(220)
        layout.addWidget(self.nav_list)

        content = QVBoxLayout()
        self.vm_status_label = QLabel("VM: Checking...")
        self.vm_status_icon = QLabel()
        self.vm_status_icon.setPixmap(qta.icon('fa5s.circle', color='#9ca3af').pixmap(16, 16))
        status_row = QHBoxLayout()
        status_row.addWidget(self.vm_status_icon)
        status_row.addWidget(self.vm_status_label)
        status_row.addStretch()
        content.addLayout(status_row)
        content.addStretch()
        layout.addLayout(content)

        plugins_menu = self.menuBar().addMenu("Plugins")
        reload_action = QAction(qta.icon('fa5s.sync'), "Reload plugins", self)
        reload_action.triggered.connect(self.reload_plugins)
        plugins_menu.addAction(reload_action)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("Starting...")

    # ------------------------------------------------------------------
    # Operations run by the worker thread
    # ------------------------------------------------------------------

    async def build_navigation(self, ctx: BootContext) -> List[str]:
        """Hand the view and plugin names to the GUI thread."""
        settings = ctx.require_settings()
        items = list(settings.views) + [plugin.name_nice for plugin in settings.plugins]
        ctx.sink.append("Building navigation.")
        self.navigation_ready.emit(items)
        return items

    # ------------------------------------------------------------------
    # GUI thread
    # ------------------------------------------------------------------

    def start_boot(self):
        self.run_groups(None, "Reading configuration...")

    def reload_plugins(self):
        self.run_groups([GROUP_PLUGINS, GROUP_NAV], "Reloading plugins...")

    def run_groups(self, groups: Optional[Sequence[str]], title: str):
        if self.worker is not None and self.worker.isRunning():
            logger.warning("Operations already running; ignoring request for %s", groups)
            return

        self.boot_dialog.reset(title)
        self.boot_dialog.show()

        self.worker = BootWorker(self.registry, self.context, groups)
        self.worker.step.connect(self.on_step)
        self.worker.succeeded.connect(self.on_boot_success)
        self.worker.failed.connect(self.on_boot_error)
        self.worker.reprovision_needed.connect(self.show_reprovision_notice)
        self.worker.start()

    def on_step(self, count: int, total: int):
        self.sink.set_progress(count / total * 100)

    def on_boot_success(self, result):
        self.boot_dialog.show_finished()
        self.boot_dialog.hide()
        self.status_bar.showMessage("Ready")
        self.update_vm_status()

        # keep the boot log for the dashboard view
        settings = self.context.settings
        if settings is not None:
            settings.views.setdefault("dashboard", {})["boot_log"] = self.sink.get_content()

    def on_boot_error(self, message: str):
        self.sink.append(message, SEVERITY_ERROR)
        self.status_bar.showMessage("Startup failed")

    def update_vm_status(self):
        settings = self.context.settings
        vm = settings.vm if settings is not None else None
        if vm is None or not vm.id:
            self.vm_status_label.setText("VM: Not found")
            return
        running = vm.state == "running"
        self.vm_status_label.setText(f"VM: {vm.name} ({vm.state})")
        self.vm_status_icon.setPixmap(
            qta.icon('fa5s.circle', color='#22c55e' if running else '#ef4444').pixmap(16, 16)
        )

    def populate_navigation(self, items: List[str]):
        self.nav_list.clear()
        for name in items:
            item = QListWidgetItem(name.replace("_", " ").title())
            item.setData(Qt.UserRole, name)
            self.nav_list.addItem(item)

    def show_reprovision_notice(self):
        QMessageBox.information(
            self,
            "Reprovision needed",
            "The VM configuration changed since it was last provisioned. "
            "Re-provision the VM to apply the changes."
        )

    def closeEvent(self, event):
        if self.worker is not None and self.worker.isRunning():
            if not self.worker.wait(5000):
                # A hung CLI keeps the thread alive; it must not be destroyed while running.
                logger.warning("Boot operations still running at exit; terminating worker")
                self.worker.terminate()
                self.worker.wait()
        super().closeEvent(event)
