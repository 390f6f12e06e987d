import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

from tqdm import tqdm

from .models import TaskOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrentDispatcher:
    """
    Apply an async operation to N independent items at once.

    One task per item, no concurrency cap. An exception inside one task is
    caught at the task boundary, logged and recorded in that item's outcome;
    siblings keep running. ``run_all`` returns only once every task has
    finished, with outcomes in input order.
    """

    def __init__(self, progress: bool = False) -> None:
        self.progress = progress

    async def run_all(self,
                      items: Iterable[Any],
                      operation: Callable[[Any], Awaitable[T]],
                      *,
                      label: str = "tasks") -> List[TaskOutcome[T]]:
        items = list(items)
        if not items:
            logger.debug("No %s to run", label)
            return []

        bar: Optional[tqdm] = None
        if self.progress:
            bar = tqdm(total=len(items), desc=label, unit="item", leave=False)

        async def guarded(item: Any) -> TaskOutcome[T]:
            try:
                value = await operation(item)
                return TaskOutcome(item=item, value=value)
            except Exception as e:
                logger.error("%s: %r failed: %s", label, item, e)
                logger.debug("Traceback for %r", item, exc_info=True)
                return TaskOutcome(item=item, error=e)
            finally:
                if bar is not None:
                    bar.update(1)

        try:
            outcomes = await asyncio.gather(*(guarded(item) for item in items))
        finally:
            if bar is not None:
                bar.close()

        failed = sum(1 for o in outcomes if not o.ok)
        logger.debug("%s: %d/%d finished without error", label, len(outcomes) - failed, len(outcomes))
        return list(outcomes)


__all__ = ["ConcurrentDispatcher"]
