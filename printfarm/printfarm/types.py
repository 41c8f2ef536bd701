"""
Data models for the print farm.

This module defines the core data structures used in task assignment:
- Spools of filament shared by the fleet
- Print specifications and the print tasks created from them
- Printers and their variants
- The scheduling policy
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from enum import Enum

from .exceptions import InsufficientFilament, ValidationError


class FilamentType(Enum):
    """Filament materials a spool can hold."""
    PLA = "PLA"
    PETG = "PETG"
    ABS = "ABS"

    @classmethod
    def from_code(cls, code: Any) -> "FilamentType":
        """
        Resolve a filament type from its menu code (1, 2, 3) or its name.

        Raises:
            ValidationError: if the code does not name a filament type
        """
        if isinstance(code, cls):
            return code
        codes = {1: cls.PLA, 2: cls.PETG, 3: cls.ABS}
        if isinstance(code, int) and not isinstance(code, bool):
            if code in codes:
                return codes[code]
        elif isinstance(code, str):
            key = code.strip().upper()
            if key.isdigit() and int(key) in codes:
                return codes[int(key)]
            if key in cls.__members__:
                return cls[key]
        raise ValidationError(f"Invalid filament type: {code!r}")


class PrinterVariant(Enum):
    """Printer kinds with different capabilities."""
    STANDARD = "standard"
    HOUSED = "housed"
    MULTICOLOR = "multicolor"


class StrategyKind(Enum):
    """Available task selection strategies."""
    FEWEST_SPOOL_CHANGES = "fewest_spool_changes"
    SMALLEST_SUFFICIENT_SPOOL = "smallest_sufficient_spool"

    @property
    def label(self) -> str:
        return _STRATEGY_LABELS[self]

    @classmethod
    def from_code(cls, code: Any) -> "StrategyKind":
        """
        Resolve a strategy from its menu code (1, 2) or its id.

        Raises:
            ValidationError: if the code does not name a strategy
        """
        if isinstance(code, cls):
            return code
        members = list(cls)
        if isinstance(code, int) and not isinstance(code, bool):
            if 1 <= code <= len(members):
                return members[code - 1]
        elif isinstance(code, str):
            key = code.strip().lower()
            if key.isdigit() and 1 <= int(key) <= len(members):
                return members[int(key) - 1]
            for kind in members:
                if kind.value == key:
                    return kind
        raise ValidationError(f"Invalid strategy: {code!r}")


_STRATEGY_LABELS = {
    StrategyKind.FEWEST_SPOOL_CHANGES: "Less spool changes",
    StrategyKind.SMALLEST_SUFFICIENT_SPOOL: "Efficient spool usage",
}


@dataclass
class Spool:
    """
    A physical roll of filament.

    Attributes:
        spool_id: Unique identifier for the spool
        color: Filament color
        filament_type: Filament material
        remaining_length: Filament left on the spool
    """
    spool_id: int
    color: str
    filament_type: FilamentType
    remaining_length: float

    def __post_init__(self):
        """Validate spool fields."""
        if self.remaining_length < 0:
            raise ValueError(
                f"Remaining length cannot be negative, got {self.remaining_length}"
            )

    def matches(self, color: str, filament_type: FilamentType) -> bool:
        return self.color == color and self.filament_type == filament_type

    def consume(self, amount: float) -> float:
        """
        Take filament off the spool.

        Args:
            amount: Length to consume

        Returns:
            The remaining length after consumption

        Raises:
            InsufficientFilament: if amount exceeds the remaining length;
                the spool is left unchanged
        """
        if amount < 0:
            raise ValueError(f"Cannot consume a negative amount, got {amount}")
        if amount > self.remaining_length:
            raise InsufficientFilament(self.spool_id, amount, self.remaining_length)
        self.remaining_length -= amount
        return self.remaining_length

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Spool":
        return cls(
            spool_id=int(data["id"]),
            color=str(data["color"]),
            filament_type=FilamentType.from_code(data["filamentType"]),
            remaining_length=float(data["length"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.spool_id,
            "color": self.color,
            "filament_type": self.filament_type.value,
            "remaining_length": self.remaining_length,
        }


@dataclass(frozen=True)
class PrintSpec:
    """
    Specification of an object that can be printed.

    Attributes:
        name: Unique name of the print
        height: Bounding box height in mm
        width: Bounding box width in mm
        length: Bounding box length in mm
        filament_per_color: Filament needed for each color slot, in slot order
        print_time: Estimated print time in minutes
    """
    name: str
    height: int
    width: int
    length: int
    filament_per_color: Tuple[float, ...]
    print_time: int = 0

    def __post_init__(self):
        """Validate print spec fields."""
        if not self.filament_per_color:
            raise ValueError(f"Print {self.name} needs at least one color slot")
        if any(amount < 0 for amount in self.filament_per_color):
            raise ValueError(f"Print {self.name} has a negative filament length")

    @property
    def color_count(self) -> int:
        return len(self.filament_per_color)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PrintSpec":
        lengths = data["filamentLength"]
        if isinstance(lengths, str):
            lengths = [part.strip() for part in lengths.split(",") if part.strip()]
        return cls(
            name=str(data["name"]),
            height=int(data["height"]),
            width=int(data["width"]),
            length=int(data["length"]),
            filament_per_color=tuple(float(amount) for amount in lengths),
            print_time=int(data.get("printTime", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "height": self.height,
            "width": self.width,
            "length": self.length,
            "filament_per_color": list(self.filament_per_color),
            "print_time": self.print_time,
        }


# eq=False: a task is identified by its instance, two identical requests are two jobs
@dataclass(frozen=True, eq=False)
class PrintTask:
    """
    A request to print one spec in a given material and set of colors.

    Attributes:
        spec: The print specification
        colors: Color per slot, in slot order
        filament_type: Filament material for every slot
    """
    spec: PrintSpec
    colors: Tuple[str, ...]
    filament_type: FilamentType

    def __post_init__(self):
        """Validate task fields."""
        if len(self.colors) != self.spec.color_count:
            raise ValueError(
                f"Print {self.spec.name} needs {self.spec.color_count} colors, "
                f"got {len(self.colors)}"
            )

    def describe(self) -> str:
        return f"{self.spec.name} {self.filament_type.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "print": self.spec.name,
            "colors": list(self.colors),
            "filament_type": self.filament_type.value,
        }


# Printer type codes used by the fleet data files
PRINTER_TYPE_CODES = {
    1: (PrinterVariant.STANDARD, False),
    2: (PrinterVariant.HOUSED, True),
    3: (PrinterVariant.MULTICOLOR, False),
    4: (PrinterVariant.MULTICOLOR, True),
}


@dataclass(eq=False)
class Printer:
    """
    A printer in the fleet.

    Loaded spools are stored as spool ids into the SpoolPool registry, in
    slot order.

    Attributes:
        printer_id: Unique identifier for the printer
        name: Display name
        manufacturer: Manufacturer name
        variant: Printer kind
        max_x: Build volume width in mm
        max_y: Build volume length in mm
        max_z: Build volume height in mm
        max_colors: Spool slots (MultiColor only, 1 otherwise)
        housed: Whether the build volume is enclosed
        loaded_spool_ids: Ids of the loaded spools, in slot order
        current_task: The task being printed, None when idle
    """
    printer_id: int
    name: str
    manufacturer: str
    variant: PrinterVariant
    max_x: int
    max_y: int
    max_z: int
    max_colors: int = 1
    housed: bool = False
    loaded_spool_ids: Tuple[int, ...] = ()
    current_task: Optional[PrintTask] = None

    def __post_init__(self):
        """Validate printer fields."""
        if self.variant == PrinterVariant.HOUSED and not self.housed:
            raise ValueError(f"Housed printer {self.name} must be enclosed")
        if self.variant == PrinterVariant.STANDARD and self.housed:
            raise ValueError(f"Standard printer {self.name} cannot be enclosed")
        if self.variant != PrinterVariant.MULTICOLOR and self.max_colors != 1:
            raise ValueError(
                f"Only multicolor printers hold more than one spool, got {self.max_colors}"
            )
        if self.max_colors < 1:
            raise ValueError(f"Max colors must be at least 1, got {self.max_colors}")
        self.loaded_spool_ids = tuple(self.loaded_spool_ids)

    @property
    def is_idle(self) -> bool:
        return self.current_task is None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Printer":
        code = int(data["type"])
        if code not in PRINTER_TYPE_CODES:
            raise ValueError(f"Invalid printer type: {code}")
        variant, housed = PRINTER_TYPE_CODES[code]
        max_colors = int(data.get("maxColors", 1)) if variant == PrinterVariant.MULTICOLOR else 1
        return cls(
            printer_id=int(data["id"]),
            name=str(data["name"]),
            manufacturer=str(data.get("manufacturer", "unknown")),
            variant=variant,
            max_x=int(data["maxX"]),
            max_y=int(data["maxY"]),
            max_z=int(data["maxZ"]),
            max_colors=max_colors,
            housed=housed,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.printer_id,
            "name": self.name,
            "manufacturer": self.manufacturer,
            "variant": self.variant.value,
            "housed": self.housed,
            "max_x": self.max_x,
            "max_y": self.max_y,
            "max_z": self.max_z,
            "max_colors": self.max_colors,
            "loaded_spools": list(self.loaded_spool_ids),
            "current_task": self.current_task.to_dict() if self.current_task else None,
        }


@dataclass
class SchedulingPolicy:
    """
    Policy configuration for the task handler.

    Attributes:
        strategy: Strategy used to pick a task for an idle printer
        reschedule_on_finalize: Try to give a printer new work right after
            its task is finalized
    """
    strategy: StrategyKind = StrategyKind.FEWEST_SPOOL_CHANGES
    reschedule_on_finalize: bool = True


@dataclass
class Fleet:
    """
    Entities loaded from fleet data.

    Attributes:
        prints: Known print specifications
        spools: Every spool, all initially free
        printers: Printers in fleet order
    """
    prints: List[PrintSpec] = field(default_factory=list)
    spools: List[Spool] = field(default_factory=list)
    printers: List[Printer] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Fleet":
        return cls(
            prints=[PrintSpec.from_dict(item) for item in data.get("prints", [])],
            spools=[Spool.from_dict(item) for item in data.get("spools", [])],
            printers=[Printer.from_dict(item) for item in data.get("printers", [])],
        )
