"""
Printer capability rules.

Pure functions deciding whether a printer can run a task at all,
independent of which spools end up being used:
- physical fit of the print in the build volume
- color capacity per printer variant
- variant eligibility (color count, ABS on open printers)
- whether a set of spools satisfies a task's color/material slots
"""

from typing import Sequence

from .types import FilamentType, PrintSpec, PrintTask, Printer, PrinterVariant, Spool


def physical_fit(printer: Printer, spec: PrintSpec) -> bool:
    """Check that the print's bounding box fits the printer's build volume."""
    return (
        spec.height <= printer.max_z
        and spec.width <= printer.max_x
        and spec.length <= printer.max_y
    )


def color_capacity(printer: Printer) -> int:
    """Number of spools the printer can hold at once."""
    if printer.variant == PrinterVariant.MULTICOLOR:
        return printer.max_colors
    return 1


def is_eligible(printer: Printer, task: PrintTask) -> bool:
    """
    Check whether the printer variant may run the task.

    - Standard: one color, no ABS (open build volume warps ABS)
    - Housed: one color, any material
    - MultiColor: up to max_colors colors, no ABS even when enclosed

    Args:
        printer: Printer to check
        task: Candidate task

    Returns:
        True if the variant accepts the task
    """
    colors = len(task.colors)
    if printer.variant == PrinterVariant.HOUSED:
        return colors == 1
    if printer.variant == PrinterVariant.MULTICOLOR:
        return task.filament_type != FilamentType.ABS and colors <= printer.max_colors
    return task.filament_type != FilamentType.ABS and colors == 1


def can_run(printer: Printer, task: PrintTask) -> bool:
    """Fit and eligibility together."""
    return physical_fit(printer, task.spec) and is_eligible(printer, task)


def spool_set_matches(spools: Sequence[Spool], task: PrintTask) -> bool:
    """
    Check that spools cover every color slot of the task, position by position.

    Extra spools beyond the task's slot count are ignored.
    """
    if len(spools) < len(task.colors):
        return False
    return all(
        spool.matches(color, task.filament_type)
        for spool, color in zip(spools, task.colors)
    )
