"""
Status sink: the append-only boot log plus a 0-100 progress value.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger("lunchbox.status")

SEVERITY_INFO = "info"
SEVERITY_SUCCESS = "success"
SEVERITY_WARNING = "warning"
SEVERITY_ERROR = "error"

_LOG_LEVELS = {
    SEVERITY_WARNING: logging.WARNING,
    SEVERITY_ERROR: logging.ERROR,
}


class StatusSink:
    """
    Collects progress lines written by boot operations.

    Subclasses forward lines and progress to a display by overriding
    ``_on_append`` and ``_on_progress``.
    """

    def __init__(self):
        self._entries: List[Tuple[str, Optional[str]]] = []
        self._progress = 0

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def entries(self) -> List[Tuple[str, Optional[str]]]:
        return list(self._entries)

    def append(self, text: str, severity: Optional[str] = None) -> None:
        """Append a line, optionally tagged with a severity."""
        text = str(text).rstrip("\r\n")
        self._entries.append((text, severity))
        logger.log(_LOG_LEVELS.get(severity, logging.INFO), "%s", text)
        self._on_append(text, severity)

    def set_progress(self, percent: float) -> None:
        """Set progress, clamped to 0-100."""
        self._progress = int(max(0, min(100, round(percent))))
        self._on_progress(self._progress)

    def get_content(self) -> str:
        return "\n".join(text for text, _ in self._entries)

    async def log_process(
        self,
        process: asyncio.subprocess.Process,
        on_data: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Stream a running process's output into the log line by line.

        Returns once both stdout and stderr are closed. ``on_data`` sees
        every line in arrival order.
        """

        async def pump(stream: Optional[asyncio.StreamReader], severity: Optional[str]) -> None:
            if stream is None:
                return
            while True:
                try:
                    raw = await stream.readline()
                except ValueError as e:
                    # Over-limit line; the reader has already discarded it.
                    self.append(f"Skipped overlong output line: {e}", SEVERITY_WARNING)
                    continue
                if not raw:
                    break
                chunk = raw.decode("utf-8", errors="replace")
                self.append(chunk, severity)
                if on_data:
                    on_data(chunk)

        await asyncio.gather(
            pump(process.stdout, None),
            pump(process.stderr, SEVERITY_WARNING),
        )

    def _on_append(self, text: str, severity: Optional[str]) -> None:
        pass

    def _on_progress(self, percent: int) -> None:
        pass
