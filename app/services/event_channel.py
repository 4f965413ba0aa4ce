"""
Inbound event channel.

Thread replies are acknowledged to Slack immediately and processed in the
background. Events sharing a correlation token go through one worker, in
arrival order; different tokens are handled concurrently. A worker exits
once its lane is empty, and the next event for that token starts a new one.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict

from app.schemas.command import ThreadEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[ThreadEvent], Awaitable[object]]

# Lane for events that carry no thread token
UNTHREADED = ""


class InboundEventChannel:
    def __init__(self, handler: EventHandler):
        self.handler = handler
        self._queues: Dict[str, asyncio.Queue] = {}
        self._workers: Dict[str, asyncio.Task] = {}
        self._closed = False

    def submit(self, event: ThreadEvent) -> None:
        """Queue an event; never blocks."""
        if self._closed:
            raise RuntimeError("Event channel is closed")

        lane = str(event.thread_token) if event.thread_token is not None else UNTHREADED
        queue = self._queues.get(lane)
        if queue is None:
            queue = asyncio.Queue()
            self._queues[lane] = queue
            self._workers[lane] = asyncio.create_task(self._run(lane, queue))
        queue.put_nowait(event)

    async def join(self) -> None:
        """Wait until every queued event has been handled and all lanes are idle."""
        while self._workers:
            await asyncio.gather(*list(self._workers.values()))

    async def close(self) -> None:
        """Stop accepting events and drain the outstanding ones."""
        self._closed = True
        await self.join()

    async def _run(self, lane: str, queue: asyncio.Queue) -> None:
        try:
            while True:
                event = await queue.get()
                try:
                    await self.handler(event)
                except Exception:
                    logger.exception(f"Unhandled error processing event in lane {lane or 'unthreaded'}")
                finally:
                    queue.task_done()
                if queue.empty():
                    break
        finally:
            # Nothing awaits between the empty check and this removal
            self._queues.pop(lane, None)
            self._workers.pop(lane, None)
