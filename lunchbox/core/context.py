"""
Shared state threaded through every boot operation.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from config import AppConfig

from ..utils.settings import Settings
from .status import StatusSink

logger = logging.getLogger(__name__)


@dataclass
class BootContext:
    """
    Everything a boot operation may read or write.

    ``store`` is any object with ``load() -> dict`` and ``save(dict)``
    (the ``app_config`` module in the app). Operations run strictly one at
    a time, so ``settings`` needs no locking; callers must not mutate it
    while a chain is running.
    """
    sink: StatusSink
    store: Any
    config: AppConfig
    settings: Optional[Settings] = None
    on_reprovision_notice: Optional[Callable[[], None]] = None
    found_versions: Dict[str, str] = field(default_factory=dict)
    reprovision_notice_shown: bool = False

    def require_settings(self) -> Settings:
        if self.settings is None:
            raise RuntimeError("Settings have not been loaded; run load_settings first")
        return self.settings

    async def save_settings(self) -> None:
        """Persist the current settings (file I/O runs off the event loop)."""
        settings = self.require_settings()
        await asyncio.to_thread(self.store.save, settings.to_store())
