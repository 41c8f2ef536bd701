"""
Print task handler.

Owns the pending queue and the active strategy, and runs scheduling
passes over the fleet. Every public operation either completes or leaves
the queue, the printers and the spool pool as they were.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .capability import color_capacity
from .events import EventChannel, EventKind, Metrics, PrintEvent
from .exceptions import InsufficientFilament, InvariantViolation, ValidationError
from .pool import SpoolPool
from .strategies import PrintingStrategy, create_strategy
from .types import (
    FilamentType,
    Fleet,
    PrintSpec,
    PrintTask,
    Printer,
    SchedulingPolicy,
    Spool,
    StrategyKind,
)

logger = logging.getLogger(__name__)


class PrintTaskHandler:

    def __init__(
        self,
        prints: Iterable[PrintSpec],
        printers: Iterable[Printer],
        spools: Union[SpoolPool, Iterable[Spool]],
        policy: Optional[SchedulingPolicy] = None,
    ):
        self._prints: Dict[str, PrintSpec] = {}
        for spec in prints:
            if spec.name in self._prints:
                raise InvariantViolation(f"Duplicate print name {spec.name}")
            self._prints[spec.name] = spec

        self._printers: List[Printer] = list(printers)
        ids = [printer.printer_id for printer in self._printers]
        if len(set(ids)) != len(ids):
            raise InvariantViolation("Duplicate printer ids in fleet")

        self.pool = spools if isinstance(spools, SpoolPool) else SpoolPool(spools)
        # spools that arrive already loaded are owned by their printer, not the pool
        for printer in self._printers:
            for spool in self.pool.resolve(printer.loaded_spool_ids):
                self.pool.take(spool)

        self.policy = policy or SchedulingPolicy()
        self._strategy: PrintingStrategy = create_strategy(self.policy.strategy)
        self._pending: List[PrintTask] = []

        self.metrics = Metrics()
        self.events = EventChannel()
        self.events.subscribe(self.metrics)

        self.check_invariants()

    @classmethod
    def from_fleet(cls, fleet: Fleet, policy: Optional[SchedulingPolicy] = None) -> "PrintTaskHandler":
        return cls(fleet.prints, fleet.printers, fleet.spools, policy)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def prints(self) -> List[PrintSpec]:
        return list(self._prints.values())

    @property
    def printers(self) -> List[Printer]:
        return list(self._printers)

    @property
    def strategy(self) -> PrintingStrategy:
        return self._strategy

    def pending_tasks(self) -> List[PrintTask]:
        return list(self._pending)

    def running_printers(self) -> List[Printer]:
        return [printer for printer in self._printers if not printer.is_idle]

    def get_printer(self, printer_id: int) -> Printer:
        for printer in self._printers:
            if printer.printer_id == printer_id:
                return printer
        raise InvariantViolation(f"Cannot find a printer with ID {printer_id}")

    def printer_status(self, printer_id: int) -> Dict[str, Any]:
        printer = self.get_printer(printer_id)
        status = printer.to_dict()
        status["state"] = "idle" if printer.is_idle else "running"
        status["loaded_spools"] = [
            spool.to_dict() for spool in self.pool.resolve(printer.loaded_spool_ids)
        ]
        return status

    def available_colors(self, filament_type) -> List[str]:
        """Distinct colors of every known spool of a filament type, first seen first."""
        filament_type = FilamentType.from_code(filament_type)
        colors: List[str] = []
        for spool in self.pool.spools:
            if spool.filament_type == filament_type and spool.color not in colors:
                colors.append(spool.color)
        return colors

    @staticmethod
    def available_strategies() -> List[Tuple[str, str]]:
        return [(kind.value, kind.label) for kind in StrategyKind]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def enqueue(self, print_name: str, filament_type, colors: Sequence[str]) -> str:
        """
        Add a new task to the end of the pending queue.

        Args:
            print_name: Name of a known print spec
            filament_type: FilamentType, its name, or its menu code
            colors: One color per color slot of the print

        Returns:
            Confirmation message

        Raises:
            ValidationError: if the print is unknown, the filament type is
                invalid, or a color is unavailable for the filament type
        """
        try:
            if not isinstance(print_name, str):
                raise ValidationError(f"Invalid print name: {print_name!r}")
            spec = self._prints.get(print_name)
            if spec is None:
                raise ValidationError(f"Print {print_name} not found")
            filament = FilamentType.from_code(filament_type)
            if isinstance(colors, str):
                colors = [colors]
            elif not isinstance(colors, (list, tuple)):
                raise ValidationError(f"Colors must be a list, got {colors!r}")
            colors = tuple(colors)
            if not all(isinstance(color, str) for color in colors):
                raise ValidationError(f"Invalid colors: {list(colors)!r}")
            if len(colors) != spec.color_count:
                raise ValidationError(
                    f"Print {spec.name} needs {spec.color_count} colors, got {len(colors)}"
                )
            available = self.available_colors(filament)
            for color in colors:
                if color not in available:
                    raise ValidationError(f"Color {color} ({filament.value}) not found")
        except ValidationError as e:
            logger.warning(f"Rejected print task: {e}")
            raise

        task = PrintTask(spec, colors, filament)
        self._pending.append(task)
        logger.info(f"Queued {task.describe()} in {', '.join(colors)}")
        return "Print task added to the queue"

    def set_strategy(self, kind) -> None:
        """Switch the active strategy. Running tasks are not affected."""
        self._strategy = create_strategy(kind)
        self.policy.strategy = self._strategy.kind
        logger.info(f"Strategy set to {self._strategy.kind.value}")

    def schedule_printer(self, printer_id: int) -> Optional[str]:
        """
        Let the active strategy try to start a task on one printer.

        Returns:
            The trace for the started task, or None when the printer is busy
            or nothing fits
        """
        printer = self.get_printer(printer_id)
        if not printer.is_idle:
            return None
        return self._strategy.select_and_assign(
            printer, self._pending, self.printers, self.pool, self.events
        ) or None

    def run_scheduling_pass(self) -> List[str]:
        """
        Offer every idle printer, in fleet order, one chance to start a task.

        Greedy and order dependent: an early printer may take a task a later
        printer could also have run, and jobs nothing fits stay pending.

        Returns:
            One trace per printer that started a task
        """
        traces = []
        for printer in self._printers:
            if not printer.is_idle:
                continue
            trace = self._strategy.select_and_assign(
                printer, self._pending, self.printers, self.pool, self.events
            )
            if trace:
                traces.append(trace)

        logger.info(
            f"Scheduling pass started {len(traces)} tasks, {len(self._pending)} pending"
        )
        return traces

    def finalize(self, printer_id: int, success: bool) -> str:
        """
        Take the current task off a printer.

        A failed task goes back to the end of the queue; a successful one is
        counted as fulfilled. Either way the task's filament is consumed from
        the spools still loaded on the printer, slot by slot.

        Args:
            printer_id: Printer whose task is done
            success: Whether the print succeeded

        Returns:
            Trace describing the removal, the requeue of a failed task and
            any filament shortage

        Raises:
            InvariantViolation: if the printer is unknown or idle
        """
        printer = self.get_printer(printer_id)
        task = printer.current_task
        if task is None:
            raise InvariantViolation(
                f"Cannot find a running task on printer with ID {printer_id}"
            )

        printer.current_task = None
        if success:
            self.events.emit(PrintEvent(
                EventKind.JOB_COMPLETED, printer.printer_id, task_name=task.spec.name
            ))
        else:
            self._pending.append(task)

        messages = [f"Task {task.describe()} removed from printer {printer.name}"]
        if not success:
            messages.append(f"- Task {task.describe()} requeued")
        spools = self.pool.resolve(printer.loaded_spool_ids)
        for spool, amount in zip(spools, task.spec.filament_per_color):
            try:
                spool.consume(amount)
            except InsufficientFilament as e:
                logger.warning(f"Printer {printer.name}: {e}")
                messages.append(f"- Warning: {e}")

        logger.info(
            f"Finalized {task.describe()} on printer {printer.name} "
            f"({'success' if success else 'failed, requeued'})"
        )
        return "\n".join(messages)

    def check_invariants(self) -> None:
        """
        Verify spool ownership, printer capacity and task placement.

        Raises:
            InvariantViolation: describing the first broken invariant
        """
        owners: Dict[int, str] = {spool_id: "free pool" for spool_id in self.pool.free_ids}
        for printer in self._printers:
            if len(printer.loaded_spool_ids) > color_capacity(printer):
                raise InvariantViolation(f"Printer {printer.name} is over capacity")
            for spool_id in printer.loaded_spool_ids:
                if spool_id in owners:
                    raise InvariantViolation(
                        f"Spool {spool_id} owned by {owners[spool_id]} and printer {printer.name}"
                    )
                owners[spool_id] = f"printer {printer.name}"

        registered = {spool.spool_id for spool in self.pool.spools}
        if set(owners) != registered:
            raise InvariantViolation("Some spools have no owner")

        placed = list(self._pending)
        placed += [printer.current_task for printer in self.running_printers()]
        if len({id(task) for task in placed}) != len(placed):
            raise InvariantViolation("A task is queued or running twice")
