"""
Spool swap executor.

Replaces a printer's loaded spools with a new set: the old spools go back
to the free pool first, then the new ones are taken from it. All
preconditions are checked before anything moves, so a rejected swap
leaves pool and printer untouched.
"""

import logging
from typing import List, Sequence

from .capability import color_capacity
from .events import EventKind, EventSink, PrintEvent
from .exceptions import InvariantViolation
from .pool import SpoolPool
from .types import Printer, PrinterVariant, Spool

logger = logging.getLogger(__name__)


def swap_spools(
    printer: Printer,
    new_spools: Sequence[Spool],
    pool: SpoolPool,
    emit: EventSink,
) -> List[str]:
    """
    Load new_spools onto printer, in slot order.

    Every new spool must be free or already loaded on this printer. A spool
    that stays in the same slot is not a change; every other spool placed
    produces one trace message and one SPOOL_CHANGE event.

    Args:
        printer: Printer to reload
        new_spools: Spools to load, slot order
        pool: Free pool the old spools return to
        emit: Event sink for spool change events

    Returns:
        Trace messages, one per spool placed

    Raises:
        InvariantViolation: if the set exceeds the printer's capacity, repeats
            a spool, or names a spool owned elsewhere
    """
    new_ids = [spool.spool_id for spool in new_spools]
    if len(new_ids) > color_capacity(printer):
        raise InvariantViolation(
            f"Printer {printer.name} holds {color_capacity(printer)} spools, "
            f"asked to load {len(new_ids)}"
        )
    if len(set(new_ids)) != len(new_ids):
        raise InvariantViolation(f"Spool listed twice for printer {printer.name}")
    old_ids = printer.loaded_spool_ids
    for spool in new_spools:
        if spool not in pool and spool.spool_id not in old_ids:
            raise InvariantViolation(
                f"Spool {spool.spool_id} is loaded on another printer"
            )

    for spool in pool.resolve(old_ids):
        pool.give(spool)
    for spool in new_spools:
        pool.take(spool)
    printer.loaded_spool_ids = tuple(new_ids)

    messages = []
    multi_slot = printer.variant == PrinterVariant.MULTICOLOR
    for position, spool in enumerate(new_spools):
        if position < len(old_ids) and old_ids[position] == spool.spool_id:
            continue
        message = f"- Spool change: Please place spool {spool.spool_id} in printer {printer.name}"
        if multi_slot:
            message += f" position {position + 1}"
        messages.append(message)
        logger.debug(f"Placed spool {spool.spool_id} in printer {printer.name} slot {position + 1}")
        emit(PrintEvent(EventKind.SPOOL_CHANGE, printer.printer_id, spool_id=spool.spool_id))

    return messages


def swap_spool(printer: Printer, spool: Spool, pool: SpoolPool, emit: EventSink) -> List[str]:
    """Single-spool form of swap_spools."""
    return swap_spools(printer, [spool], pool, emit)
