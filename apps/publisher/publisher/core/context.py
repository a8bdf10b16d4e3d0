"""Run context shared by every unit of work in one publish step.

Holds the inputs the caller has already materialized (release metadata,
builds, instances, replacements, binaries) and the run-wide cancellation
signal. Cancellation is cooperative: `guard()` races a network call
against the signal, so an in-flight request is abandoned as soon as the
run is cancelled and later calls fail fast.
"""

import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import Awaitable, Optional, TypeVar

from publisher.binaries.registry import BinaryRegistry
from publisher.core.config import BuildConfig
from publisher.core.errors import CancellationError
from publisher.core.types import ReleaseMetadata, RepositoryInstance

T = TypeVar("T")

DEADLINE_EXCEEDED = "deadline exceeded"


@dataclass
class PublishContext:
    metadata: ReleaseMetadata
    builds: list[BuildConfig] = field(default_factory=list)
    instances: list[RepositoryInstance] = field(default_factory=list)
    replacements: dict[str, str] = field(default_factory=dict)
    binaries: BinaryRegistry = field(default_factory=BinaryRegistry)
    parallelism: int = 4
    publish: bool = True

    _cancel_event: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)
    _cancel_reason: str = field(default="", init=False, repr=False)
    _deadline_handle: Optional[asyncio.TimerHandle] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.parallelism < 1:
            raise ValueError(f"parallelism must be >= 1, got {self.parallelism}")

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def cancel_reason(self) -> str:
        return self._cancel_reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Signal cancellation to every unit. The first reason wins."""
        if self._cancel_event.is_set():
            return
        self._cancel_reason = reason
        self._cancel_event.set()

    def start_deadline(self, seconds: float) -> None:
        """Cancel the run after `seconds`. Must be called inside the loop."""
        if seconds <= 0:
            return
        loop = asyncio.get_running_loop()
        self._deadline_handle = loop.call_later(seconds, self.cancel, DEADLINE_EXCEEDED)

    def stop_deadline(self) -> None:
        if self._deadline_handle is not None:
            self._deadline_handle.cancel()
            self._deadline_handle = None

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the run is cancelled first.

        Raises CancellationError when the signal fires before the
        awaitable completes; the awaitable is cancelled in that case.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise CancellationError(self._cancel_reason)

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._cancel_event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work.done():
            return work.result()

        work.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await work
        raise CancellationError(self._cancel_reason)
