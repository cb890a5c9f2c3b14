import asyncio
import logging
from typing import Optional, Sequence

from PySide6.QtCore import QThread, Signal

from ..core.context import BootContext
from ..core.operations import OperationRegistry

logger = logging.getLogger(__name__)


class BootWorker(QThread):
    """
    Worker thread running operation groups on their own event loop.
    Keeps subprocess waits and network calls off the UI thread.
    """
    step = Signal(int, int)  # completed, total
    succeeded = Signal(object)
    failed = Signal(str)
    reprovision_needed = Signal()

    def __init__(
        self,
        registry: OperationRegistry,
        context: BootContext,
        groups: Optional[Sequence[str]] = None,
    ):
        super().__init__()
        self.registry = registry
        self.context = context
        self.groups = list(groups) if groups is not None else None
        self.context.on_reprovision_notice = self.reprovision_needed.emit

    def _on_failure(self, error: Exception):
        self.failed.emit(str(error))

    def run(self):
        logger.debug("BootWorker started (groups=%s)", self.groups)
        asyncio.run(
            self.registry.run_groups(
                self.groups,
                args=(self.context,),
                on_success=self.succeeded.emit,
                on_failure=self._on_failure,
                on_step=self.step.emit,
            )
        )
        logger.debug("BootWorker finished")
