from __future__ import annotations

from typing import Any, Callable, Protocol


class Scheduler(Protocol):
    """The subset of ``flask_socketio.SocketIO`` used to run timers."""

    def start_background_task(self, target: Callable[..., Any], *args: Any, **kwargs: Any) -> Any: ...

    def sleep(self, seconds: float = 0) -> Any: ...


class PhaseTimer:
    """A cancellable once-per-interval callback.

    ``on_tick`` receives the timer itself so the owner can drop ticks from
    a timer it has already replaced.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_tick: Callable[["PhaseTimer"], None],
        interval: float = 1.0,
    ) -> None:
        self._scheduler = scheduler
        self._on_tick = on_tick
        self.interval = interval
        self.cancelled = False
        self.started = False

    def start(self) -> "PhaseTimer":
        if not self.started:
            self.started = True
            self._scheduler.start_background_task(self._run)
        return self

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return self.started and not self.cancelled

    def _run(self) -> None:
        while not self.cancelled:
            self._scheduler.sleep(self.interval)
            if self.cancelled:
                break
            self._on_tick(self)
