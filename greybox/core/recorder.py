from __future__ import annotations

"""Step recorder
----------------
Asyncio FIFO chain of test steps with named sessions, plus the `Actor`
proxy that test code calls (`I.tap(...)`) to queue helper methods on it.

Every step awaits the one queued before it, so steps reach the backend in
the order they were queued. A failed step fails every later step of the
chain; `promise()` hands that failure to whoever awaits it.
"""

import asyncio
import contextvars
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from greybox.utils.logger import get_logger

# name of the recorder step executing in the current task, if any
_current_step: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("greybox_step", default=None)


@dataclass(frozen=True)
class SessionEvent:
    action: str  # "start" | "restore"
    name: str


@dataclass
class _Frame:
    name: Optional[str]
    tail: Optional[asyncio.Future]


def _join(*futures: Optional[asyncio.Future]) -> Optional[asyncio.Future]:
    pending = [f for f in futures if f is not None]
    if not pending:
        return None
    if len(pending) == 1:
        return pending[0]

    async def _wait_all() -> None:
        failure: Optional[BaseException] = None
        for f in pending:
            try:
                await f
            except Exception as exc:
                failure = failure or exc
        if failure is not None:
            raise failure

    return asyncio.get_running_loop().create_task(_wait_all())


class RecorderSession:
    """Named frames on top of the recorder's chain. At most one is active."""

    def __init__(self, recorder: "StepRecorder") -> None:
        self._recorder = recorder
        self._stack: List[_Frame] = []
        self._active: Optional[str] = None

    @property
    def active(self) -> Optional[str]:
        return self._active

    @property
    def depth(self) -> int:
        return len(self._stack)

    def start(self, name: str) -> None:
        """
        Divert later steps into session `name`.

        Inside a running step the session gets a fresh chain (the enclosing
        step is the one waiting for it). At top level it continues after the
        current tail.
        """
        rec = self._recorder
        self._stack.append(_Frame(self._active, rec._tail))
        self._active = name
        if _current_step.get() is not None:
            rec._tail = None
        rec.events.append(SessionEvent("start", name))
        rec.log.debug(f"Starting <{name}> session")

    def restore(self) -> None:
        """Close the active session and reactivate the one before it."""
        if not self._stack:
            raise RuntimeError("No recorder session to restore")
        rec = self._recorder
        frame = self._stack.pop()
        finished = self._active or "<unnamed>"
        self._active = frame.name
        rec._tail = _join(rec._tail, frame.tail)
        rec.events.append(SessionEvent("restore", finished))
        rec.log.debug(f"Finalize <{finished}> session")

    def reset(self) -> None:
        self._stack.clear()
        self._active = None


class StepRecorder:
    def __init__(self) -> None:
        self.log = get_logger(__name__)
        self._tail: Optional[asyncio.Future] = None
        self.session = RecorderSession(self)
        self.events: List[SessionEvent] = []

    def add(self, name: str, fn: Callable[[], Any], *, always: bool = False) -> asyncio.Future:
        """
        Queue `fn` after everything queued so far and return its future.

        With `always=True` the step runs even when an earlier step failed;
        the earlier failure is re-raised after it.
        """
        previous = self._tail
        session = self.session.active

        async def _step() -> Any:
            failure: Optional[BaseException] = None
            if previous is not None:
                if always:
                    try:
                        await previous
                    except Exception as exc:
                        failure = exc
                else:
                    await previous
            token = _current_step.set(name)
            try:
                prefix = f"[{session}] " if session else ""
                self.log.debug(f"{prefix}{name}")
                result = fn()
                if inspect.isawaitable(result):
                    result = await result
            finally:
                _current_step.reset(token)
            if failure is not None:
                raise failure
            return result

        task = asyncio.get_running_loop().create_task(_step())
        self._tail = task
        return task

    def promise(self) -> Awaitable[Any]:
        """Completion of everything queued so far."""
        if self._tail is None:
            done = asyncio.get_running_loop().create_future()
            done.set_result(None)
            return done
        return self._tail

    def reset(self) -> None:
        """Drop the chain and all session frames (between tests)."""
        self._tail = None
        self.session.reset()


class Actor:
    """
    The `I` of a test: every public helper method, queued on the recorder.

        I = Actor(helper, recorder)
        I.tap("#login")
        I.see("Welcome")
        await recorder.promise()
    """

    def __init__(self, helper: Any, recorder: StepRecorder) -> None:
        self._helper = helper
        self._recorder = recorder

    def __getattr__(self, name: str) -> Callable[..., asyncio.Future]:
        if name.startswith("_"):
            raise AttributeError(name)
        method = getattr(self._helper, name)
        if not callable(method):
            raise AttributeError(f"{type(self._helper).__name__}.{name} is not an action")

        def queue(*args: Any, **kwargs: Any) -> asyncio.Future:
            return self._recorder.add(name, lambda: method(*args, **kwargs))

        queue.__name__ = name
        return queue
