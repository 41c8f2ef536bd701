"""
Shared fixtures for the print farm tests.
"""

import pytest

from printfarm.types import FilamentType, PrintSpec, PrintTask, Printer, PrinterVariant, Spool


@pytest.fixture
def make_printer():
    """Build a printer; the build volume is a cube of the given size."""
    def _make(printer_id=1, variant=PrinterVariant.STANDARD, size=200,
              max_colors=1, housed=None, name=None):
        if housed is None:
            housed = variant == PrinterVariant.HOUSED
        return Printer(
            printer_id=printer_id,
            name=name or f"printer-{printer_id}",
            manufacturer="Acme",
            variant=variant,
            max_x=size,
            max_y=size,
            max_z=size,
            max_colors=max_colors,
            housed=housed,
        )
    return _make


@pytest.fixture
def make_spec():
    def _make(name="cube", size=50, lengths=(20.0,)):
        return PrintSpec(name, size, size, size, tuple(lengths), 60)
    return _make


@pytest.fixture
def make_task(make_spec):
    def _make(colors=("red",), filament_type=FilamentType.PLA, spec=None, lengths=None):
        if spec is None:
            spec = make_spec(
                name="-".join(colors),
                lengths=lengths or tuple(20.0 for _ in colors),
            )
        return PrintTask(spec, tuple(colors), filament_type)
    return _make


@pytest.fixture
def red_pla():
    return Spool(1, "red", FilamentType.PLA, 500.0)


@pytest.fixture
def cube():
    return PrintSpec("cube", 50, 50, 50, (20.0,), 60)
