"""
Engine boundary - asynchronous message channels to the rule engine.

The core never calls the engine and waits for an answer. It writes requests
to one channel and reads events from another:

    core --EvaluateAll/SituationChanged--> [requests] --> engine
    core <--EvaluatedOne/Many/Ack--------- [events]   <-- engine

Every request is handled in its own task, so responses to successive
requests can interleave and arrive in any order. There are no correlation
ids and no cancellation; the core copes by applying results last-write-wins.

The IEngine abstraction keeps the control loop independent of the concrete
engine (bundled json-logic engine, subprocess, remote service...).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Set

from rule_simulator.bridge.messages import EngineEvent, EngineRequest

logger = logging.getLogger(__name__)

Emit = Callable[[EngineEvent], None]

_SETTLED = object()  # one per handled request, signals the request produced all its events
_CLOSE = object()


class IEngine(ABC):
    """
    Abstract interface for rule engines.

    An engine receives fire-and-forget requests and pushes any number of
    events through emit, in whatever order it likes.
    """

    @abstractmethod
    async def handle(self, request: EngineRequest, emit: Emit) -> None:
        """
        Process one request.

        Args:
            request: EvaluateAll or SituationChanged
            emit: Callback pushing an inbound event to the core
        """
        pass


class EngineBridge:
    """
    Two unidirectional asyncio channels between the core and an engine.

    Must be created and used inside a running event loop. Use as an async
    context manager, or call start() and close().

    Parameters
    ----------
    engine:
        The engine serving requests.
    fail_on_error:
        If ``True`` (recommended in tests), an exception raised by the
        engine is re-raised by next_event(). If ``False`` (production
        default) it is logged and the request yields no events.
    """

    def __init__(self, engine: IEngine, fail_on_error: bool = False) -> None:
        self._engine = engine
        self._fail_on_error = fail_on_error
        self._requests: asyncio.Queue = asyncio.Queue()
        self._events: asyncio.Queue = asyncio.Queue()
        self._in_flight = 0
        self._worker: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._error: Optional[BaseException] = None

    # -- Lifecycle --

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._serve(), name="engine-bridge")

    async def close(self) -> None:
        """Stop accepting requests and wait for in-flight handlers."""
        if self._worker is not None:
            self._requests.put_nowait(_CLOSE)
            await self._worker
            self._worker = None
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def __aenter__(self) -> "EngineBridge":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -- Core side --

    def send(self, request: EngineRequest) -> None:
        """Fire-and-forget: enqueue a request for the engine."""
        self._in_flight += 1
        self._requests.put_nowait(request)

    @property
    def in_flight(self) -> int:
        """Requests sent whose handler has not finished yet."""
        return self._in_flight

    async def next_event(self) -> Optional[EngineEvent]:
        """
        Wait for the next engine event.

        Returns None once every request sent so far has been fully handled
        and all of its events consumed.
        """
        while True:
            if self._error is not None:
                error, self._error = self._error, None
                raise error
            if self._in_flight == 0 and self._events.empty():
                return None
            item = await self._events.get()
            if item is _SETTLED:
                self._in_flight -= 1
                continue
            return item

    # -- Engine side --

    async def _serve(self) -> None:
        while True:
            request = await self._requests.get()
            if request is _CLOSE:
                break
            task = asyncio.create_task(self._handle(request))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _handle(self, request: EngineRequest) -> None:
        try:
            await self._engine.handle(request, self._events.put_nowait)
        except Exception as e:
            if self._fail_on_error:
                self._error = e
            else:
                logger.warning("Engine failed to handle %s: %s", type(request).__name__, e)
        finally:
            self._events.put_nowait(_SETTLED)
