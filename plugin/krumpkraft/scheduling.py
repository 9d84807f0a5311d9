"""
Thread-backed scheduling contexts for hosts that do not bring their own.

- worker: a thread pool for blocking network calls
- region: one thread; the only place world/entity state is mutated
- repeating timers: one daemon thread per timer; the interval is counted from
  the end of one tick to the start of the next, so ticks never overlap
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List

_log = logging.getLogger(__name__)


def _guarded(fn: Callable[[], None], context: str) -> Callable[[], None]:
    def run() -> None:
        try:
            fn()
        except Exception:
            _log.warning("%s task failed", context, exc_info=True)
    return run


class FixedRateTask:
    def __init__(self, fn: Callable[[], None], initial_delay_ms: int, interval_ms: int, name: str = "krumpkraft-timer"):
        self._fn = _guarded(fn, "timer")
        self._initial_delay = max(0, initial_delay_ms) / 1000.0
        self._interval = max(1, interval_ms) / 1000.0
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)

    def start(self) -> "FixedRateTask":
        self._thread.start()
        return self

    def _loop(self) -> None:
        if self._cancelled.wait(self._initial_delay):
            return
        while not self._cancelled.is_set():
            self._fn()
            if self._cancelled.wait(self._interval):
                return

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)


class ThreadedScheduler:
    def __init__(self, workers: int = 4):
        self._worker = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="krumpkraft-async")
        self._region = ThreadPoolExecutor(max_workers=1, thread_name_prefix="krumpkraft-region")
        self._timers: List[FixedRateTask] = []

    def run_async(self, fn: Callable[[], None]) -> None:
        self._worker.submit(_guarded(fn, "async"))

    def run_on_region(self, fn: Callable[[], None]) -> None:
        self._region.submit(_guarded(fn, "region"))

    def run_at_fixed_rate(self, fn: Callable[[], None], initial_delay_ms: int, interval_ms: int) -> FixedRateTask:
        task = FixedRateTask(fn, initial_delay_ms, interval_ms).start()
        self._timers = [t for t in self._timers if not t.cancelled]
        self._timers.append(task)
        return task

    def shutdown(self, wait: bool = True) -> None:
        for t in self._timers:
            t.cancel()
        if wait:
            for t in self._timers:
                t.join()
        self._timers = []
        self._worker.shutdown(wait=wait)
        self._region.shutdown(wait=wait)
