"""
Task selection strategies.

A strategy looks at one idle printer, the pending queue and the free pool,
and starts at most one task on that printer. Both strategies are greedy:
they take the first feasible task in queue order, with no backtracking
and no look-ahead over other printers. A strategy that finds nothing
returns None and changes nothing.
"""

import logging
from typing import List, Optional, Protocol, Sequence

from .capability import can_run, spool_set_matches
from .events import EventSink
from .pool import SpoolPool
from .swap import swap_spools
from .types import PrintTask, Printer, Spool, StrategyKind

logger = logging.getLogger(__name__)


class PrintingStrategy(Protocol):

    kind: StrategyKind

    def select_and_assign(
        self,
        printer: Printer,
        pending: List[PrintTask],
        printers: Sequence[Printer],
        pool: SpoolPool,
        emit: EventSink,
    ) -> Optional[str]:
        ...


def start_task(
    printer: Printer,
    task: PrintTask,
    pending: List[PrintTask],
    messages: List[str],
) -> str:
    """Move task from the queue onto the printer and finish the trace."""
    pending.remove(task)
    printer.current_task = task
    messages.append(f"- Started task: {task.describe()} on printer {printer.name}")
    logger.info(f"Started {task.describe()} on printer {printer.name}")
    return "\n".join(messages)


def first_fit_spools(task: PrintTask, pool: SpoolPool) -> Optional[List[Spool]]:
    """
    Assemble one free spool per color slot, first match in pool order.

    A spool is used for at most one slot. Returns None unless every slot
    is covered.
    """
    chosen: List[Spool] = []
    for color in task.colors:
        spool = pool.find_first(
            lambda candidate: candidate.matches(color, task.filament_type),
            exclude=[picked.spool_id for picked in chosen],
        )
        if spool is None:
            return None
        chosen.append(spool)
    return chosen


class FewestSpoolChanges:
    """Prefer tasks the loaded spools can print; otherwise load first-fit free spools."""

    kind = StrategyKind.FEWEST_SPOOL_CHANGES

    def select_and_assign(
        self,
        printer: Printer,
        pending: List[PrintTask],
        printers: Sequence[Printer],
        pool: SpoolPool,
        emit: EventSink,
    ) -> Optional[str]:
        if not printer.is_idle:
            return None

        loaded = pool.resolve(printer.loaded_spool_ids)
        if loaded:
            for task in pending:
                if can_run(printer, task) and spool_set_matches(loaded, task):
                    return start_task(printer, task, pending, [])

        for task in pending:
            if not can_run(printer, task):
                continue
            spools = first_fit_spools(task, pool)
            if spools is not None:
                messages = swap_spools(printer, spools, pool, emit)
                return start_task(printer, task, pending, messages)

        return None

    def __repr__(self) -> str:
        return "FewestSpoolChanges()"


class SmallestSufficientSpool:
    """
    Pick the spool that wastes the least filament.

    For each color slot a loaded spool with enough filament is reused
    first; otherwise the free spool with the smallest remaining length
    that still covers the slot is loaded, so large spools stay whole.
    """

    kind = StrategyKind.SMALLEST_SUFFICIENT_SPOOL

    def select_and_assign(
        self,
        printer: Printer,
        pending: List[PrintTask],
        printers: Sequence[Printer],
        pool: SpoolPool,
        emit: EventSink,
    ) -> Optional[str]:
        if not printer.is_idle:
            return None

        for task in pending:
            if not can_run(printer, task):
                continue
            spools = self._select_spools(printer, task, pool)
            if spools is None:
                continue
            chosen_ids = tuple(spool.spool_id for spool in spools)
            if chosen_ids == printer.loaded_spool_ids[:len(chosen_ids)]:
                messages = []
            else:
                messages = swap_spools(printer, spools, pool, emit)
            return start_task(printer, task, pending, messages)

        return None

    def _select_spools(
        self,
        printer: Printer,
        task: PrintTask,
        pool: SpoolPool,
    ) -> Optional[List[Spool]]:
        loaded = pool.resolve(printer.loaded_spool_ids)
        chosen: List[Spool] = []
        for slot, (color, needed) in enumerate(zip(task.colors, task.spec.filament_per_color)):

            def sufficient(spool: Spool) -> bool:
                return (
                    spool.matches(color, task.filament_type)
                    and spool.remaining_length >= needed
                    and spool not in chosen
                )

            # same slot first, so a loaded spool does not have to move
            ordered = loaded[slot:slot + 1] + loaded[:slot] + loaded[slot + 1:]
            spool = next((candidate for candidate in ordered if sufficient(candidate)), None)
            if spool is None:
                candidates = [candidate for candidate in pool if sufficient(candidate)]
                if not candidates:
                    return None
                spool = min(candidates, key=lambda candidate: candidate.remaining_length)
            chosen.append(spool)
        return chosen

    def __repr__(self) -> str:
        return "SmallestSufficientSpool()"


_STRATEGIES = {
    StrategyKind.FEWEST_SPOOL_CHANGES: FewestSpoolChanges,
    StrategyKind.SMALLEST_SUFFICIENT_SPOOL: SmallestSufficientSpool,
}


def create_strategy(kind) -> PrintingStrategy:
    """
    Build the strategy for a StrategyKind, menu code or strategy id.

    Raises:
        ValidationError: if kind does not name a strategy
    """
    return _STRATEGIES[StrategyKind.from_code(kind)]()
