"""Filesystem watch for the images directory.

Runs watchfiles.awatch in a background asyncio task and calls a
callback once per batch of coalesced changes that touch a photo or the
roster. The watcher only signals; it never reconciles by itself.
"""

import asyncio
import threading
from collections.abc import Callable
from pathlib import Path

import structlog
from watchfiles import Change, awatch

from src.identity.engine import is_image_filename

logger = structlog.get_logger()


def is_relevant_change(change: Change, path: str) -> bool:
    """True for image files and anything with "roster" in its name."""
    name = Path(path).name
    return is_image_filename(name) or "roster" in name.lower()


class DirectoryWatcher:
    """Watches one directory (non-recursive) for create/modify/delete events.

    The callback runs on the event loop that called start(), so it can
    touch loop-owned state directly. stop() may be called from any
    thread and any number of times: it sets a threading.Event that the
    blocked watch checks every step, which closes the underlying
    notifier and ends the task promptly.
    """

    def __init__(
        self,
        debounce_ms: int = 1600,
        force_polling: bool = False,
        poll_delay_ms: int = 300,
    ):
        """Initialize watcher.

        Args:
            debounce_ms: Window for coalescing events into one batch
            force_polling: Poll instead of using OS notifications
            poll_delay_ms: Poll interval when polling
        """
        self._debounce_ms = debounce_ms
        self._force_polling = force_polling
        self._poll_delay_ms = poll_delay_ms
        self._task: asyncio.Task | None = None
        self._stop_event: threading.Event | None = None
        self._directory: Path | None = None
        self._failure: str | None = None

    @property
    def directory(self) -> Path | None:
        return self._directory

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def failure(self) -> str | None:
        """Why the last watch stopped on its own, if it failed."""
        return self._failure

    def start(self, directory: Path, on_change: Callable[[], None]) -> None:
        """Start watching a directory.

        Must be called from a running event loop. A watch that is already
        running is stopped first.

        Args:
            directory: Directory to watch (not recursive)
            on_change: Called at most once per batch of relevant changes
        """
        self.stop()
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._directory = Path(directory)
        self._failure = None
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._directory, on_change, stop_event),
            name=f"watch:{self._directory}",
        )
        logger.info("Started directory watch", directory=str(self._directory))

    def stop(self) -> None:
        """Stop watching. Safe to call repeatedly and from any thread."""
        if self._stop_event is not None and not self._stop_event.is_set():
            self._stop_event.set()
            logger.info("Stopping directory watch", directory=str(self._directory))

    async def wait_closed(self) -> None:
        """Wait until the watch task has finished."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def _run(
        self,
        directory: Path,
        on_change: Callable[[], None],
        stop_event: threading.Event,
    ) -> None:
        try:
            async for changes in awatch(
                directory,
                watch_filter=is_relevant_change,
                debounce=self._debounce_ms,
                stop_event=stop_event,
                recursive=False,
                force_polling=self._force_polling,
                poll_delay_ms=self._poll_delay_ms,
            ):
                logger.info(
                    "Directory changed",
                    directory=str(directory),
                    files=sorted(Path(p).name for _, p in changes),
                )
                try:
                    on_change()
                except Exception as e:
                    logger.error("Directory change handler failed", error=str(e))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Watch failure degrades to manual reload only
            self._failure = str(e)
            logger.error(
                "Directory watch failed, manual reload only",
                directory=str(directory),
                error=str(e),
            )
        finally:
            logger.debug("Directory watch ended", directory=str(directory))
