"""Bounded-concurrency mapping over a thread pool, in the spirit of ``p-map``.

``p_map_settled`` runs ``mapper`` over an iterable with at most
``concurrency`` calls in flight and returns one :class:`Settled` outcome per
input item, in input order. A failing call never cancels or hides the others:
its exception is captured on its own outcome (like ``Promise.allSettled``).

Non-goals
---------
- Timeouts and cancellation (callers' clients own those).
- Process pools.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Generic, TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


@dataclass(frozen=True, slots=True)
class Settled(Generic[InT, OutT]):
    """Outcome of one mapper call: either ``value`` or ``error`` is meaningful."""

    item: InT
    value: OutT | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def p_map_settled(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
) -> list[Settled[InT, OutT]]:
    """Map ``iterable`` through ``mapper`` with a sliding submission window.

    The iterable is consumed lazily: only ``concurrency`` items are submitted
    up front, and each completion tops the window up by one.
    """

    if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    it = enumerate(iterable)
    outcomes: dict[int, Settled[InT, OutT]] = {}
    in_flight: dict[Future[OutT], tuple[int, InT]] = {}

    def _submit(pool: ThreadPoolExecutor) -> bool:
        try:
            idx, item = next(it)
        except StopIteration:
            return False
        in_flight[pool.submit(mapper, item)] = (idx, item)
        return True

    with ThreadPoolExecutor(max_workers=concurrency) as pool:
        for _ in range(concurrency):
            if not _submit(pool):
                break

        while in_flight:
            done, _pending = wait(list(in_flight), return_when=FIRST_COMPLETED)
            for fut in done:
                idx, item = in_flight.pop(fut)
                try:
                    outcomes[idx] = Settled(item=item, value=fut.result())
                except Exception as e:  # noqa: BLE001 - captured per item
                    outcomes[idx] = Settled(item=item, error=e)
            for _ in range(len(done)):
                if not _submit(pool):
                    break

    return [outcomes[i] for i in range(len(outcomes))]


__all__ = ["Settled", "p_map_settled"]
