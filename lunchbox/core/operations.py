"""
Named groups of boot operations.

Operations are performed sequentially, each one only after the previous
one completed successfully. They are split into groups so a subset can be
re-run later (e.g. "plugins" and "nav" again after the plugin list is
edited) without repeating the settings load.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .task_chain import Link, StepCallback, TaskChain

logger = logging.getLogger(__name__)

GROUP_BOOT = "boot"
GROUP_PLUGINS = "plugins"
GROUP_NAV = "nav"

BOOT_GROUPS = (GROUP_BOOT, GROUP_PLUGINS, GROUP_NAV)


class OperationRegistry:
    """Maps group names to ordered operation lists."""

    def __init__(self, groups: Iterable[str] = BOOT_GROUPS):
        self._groups: Dict[str, List[Link]] = {}
        self.declare(*groups)

    def declare(self, *names: str) -> None:
        """Add empty groups; declaration order is the default run order."""
        for name in names:
            self._groups.setdefault(name, [])

    def register(self, group: str, op: Link) -> Link:
        """Append ``op`` to ``group``, declaring the group if needed."""
        self._groups.setdefault(group, []).append(op)
        return op

    @property
    def group_names(self) -> List[str]:
        return list(self._groups)

    def operations(self, group: str) -> List[Link]:
        return list(self._groups.get(group, []))

    def flatten(self, groups: Optional[Sequence[str]] = None) -> List[Link]:
        """
        Operations of ``groups`` in the order given (all groups if None).

        Unknown group names are skipped.
        """
        if groups is None:
            groups = self.group_names
        ops: List[Link] = []
        for name in groups:
            if name not in self._groups:
                logger.warning("Skipping unknown operation group: %s", name)
                continue
            ops.extend(self._groups[name])
        return ops

    async def run_groups(
        self,
        groups: Optional[Sequence[str]] = None,
        args: Sequence[Any] = (),
        on_success: Optional[Callable[[Any], None]] = None,
        on_failure: Optional[Callable[[Exception], None]] = None,
        on_step: Optional[StepCallback] = None,
    ) -> Any:
        """
        Run the operations of ``groups`` as one chain.

        Each op is awaited with ``*args``. ``on_step(completed, total)`` fires
        after every successful op. Exactly one of ``on_success(result)`` or
        ``on_failure(error)`` fires; a failure stops the remaining ops.

        Returns:
            The final op's result, or None if an op failed
        """
        ops = self.flatten(groups)
        logger.info(
            "Running %d operation(s) from groups: %s",
            len(ops), ", ".join(groups) if groups is not None else "all",
        )
        chain = TaskChain(ops, on_step=on_step)
        try:
            result = await chain.run(*args)
        except Exception as error:
            logger.error("Operation chain failed: %s", error)
            if on_failure:
                on_failure(error)
            return None

        if on_success:
            on_success(result)
        return result
