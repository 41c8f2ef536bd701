"""
Print Farm Package

Assigns pending 3D print jobs to a fleet of printers that share a pool
of filament spools, using a pluggable selection strategy.
"""

__version__ = '0.1.0'

from .types import (
    FilamentType,
    PrinterVariant,
    StrategyKind,
    Spool,
    PrintSpec,
    PrintTask,
    Printer,
    SchedulingPolicy,
    Fleet,
)

from .exceptions import (
    PrintFarmError,
    ValidationError,
    InvariantViolation,
    InsufficientFilament,
)

from .capability import (
    physical_fit,
    color_capacity,
    is_eligible,
    can_run,
    spool_set_matches,
)

from .pool import SpoolPool
from .events import EventKind, PrintEvent, EventChannel, Metrics
from .swap import swap_spools, swap_spool

from .strategies import (
    PrintingStrategy,
    FewestSpoolChanges,
    SmallestSufficientSpool,
    create_strategy,
)

from .scheduler import PrintTaskHandler
from .server import create_app, run_server, load_fleet

__all__ = [
    'FilamentType',
    'PrinterVariant',
    'StrategyKind',
    'Spool',
    'PrintSpec',
    'PrintTask',
    'Printer',
    'SchedulingPolicy',
    'Fleet',
    'PrintFarmError',
    'ValidationError',
    'InvariantViolation',
    'InsufficientFilament',
    'physical_fit',
    'color_capacity',
    'is_eligible',
    'can_run',
    'spool_set_matches',
    'SpoolPool',
    'EventKind',
    'PrintEvent',
    'EventChannel',
    'Metrics',
    'swap_spools',
    'swap_spool',
    'PrintingStrategy',
    'FewestSpoolChanges',
    'SmallestSufficientSpool',
    'create_strategy',
    'PrintTaskHandler',
    'create_app',
    'run_server',
    'load_fleet',
]
