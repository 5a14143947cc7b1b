"""Config file change feed."""
from __future__ import annotations

import asyncio
import pathlib
from collections.abc import Callable

import watchfiles
from loguru import logger


def configFilter(path: pathlib.Path) -> Callable[[watchfiles.Change, str], bool]:
    """Only pass writes/creates of exactly 'path'.

    We watch the parent directory instead of the file itself because most
    editors save by writing a new file and renaming it over the old one.
    """
    target = path.resolve()

    def accept(change: watchfiles.Change, changed: str) -> bool:
        return change != watchfiles.Change.deleted and pathlib.Path(changed).resolve() == target

    return accept


async def watchConfig(
    path: pathlib.Path,
    onChange: Callable[[], None],
    stopEvent: asyncio.Event | None = None,
) -> None:
    """Call 'onChange' after every batch of changes to 'path' until 'stopEvent' is set."""
    path = pathlib.Path(path)
    logger.info("Watching {} for changes", path)

    async for changes in watchfiles.awatch(
        path.resolve().parent, watch_filter=configFilter(path), stop_event=stopEvent
    ):
        logger.debug("Config changed: {}", changes)
        onChange()
