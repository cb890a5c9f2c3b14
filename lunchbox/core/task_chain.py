"""
Sequential execution of asynchronous operations.

A chain awaits its links one at a time, passing every link the same
arguments. The first link to raise stops the chain and the exception
propagates as-is. A chain is itself awaitable with the same signature as
a link, so chains nest.
"""

import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)

Link = Callable[..., Awaitable[Any]]
StepCallback = Callable[[int, int], None]


def _link_name(link: Link) -> str:
    return getattr(link, "__qualname__", None) or getattr(link, "__name__", None) or repr(link)


class TaskChain:
    """An ordered list of async links run strictly one after another."""

    def __init__(self, links: Iterable[Link] = (), on_step: Optional[StepCallback] = None):
        self.links: List[Link] = list(links)
        self.on_step = on_step

    def add(self, link: Link) -> "TaskChain":
        self.links.append(link)
        return self

    def __len__(self) -> int:
        return len(self.links)

    async def run(self, *args: Any) -> Any:
        """
        Await each link in order.

        Returns:
            The last link's result, or None for an empty chain
        """
        result = None
        total = len(self.links)
        for index, link in enumerate(self.links, start=1):
            logger.debug("Chain link %d/%d: %s", index, total, _link_name(link))
            result = await link(*args)
            if self.on_step:
                self.on_step(index, total)
        return result

    async def __call__(self, *args: Any) -> Any:
        return await self.run(*args)


async def run_chain(links: Iterable[Link], *args: Any, on_step: Optional[StepCallback] = None) -> Any:
    """Build a chain from ``links`` and run it with ``args``."""
    return await TaskChain(links, on_step=on_step).run(*args)
