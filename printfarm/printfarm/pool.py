"""
Spool registry and free pool.

Every spool is registered once, keyed by id. The free pool is the ordered
list of ids not loaded on any printer; printers hold the ids of their
loaded spools. Taking and giving are ownership transfers, never copies.
"""

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .exceptions import InvariantViolation
from .types import Spool

logger = logging.getLogger(__name__)


class SpoolPool:

    def __init__(self, spools: Iterable[Spool] = ()) -> None:
        self._spools: Dict[int, Spool] = {}
        self._free: List[int] = []
        for spool in spools:
            if spool.spool_id in self._spools:
                raise InvariantViolation(f"Duplicate spool id {spool.spool_id}")
            self._spools[spool.spool_id] = spool
            self._free.append(spool.spool_id)

    def __len__(self) -> int:
        return len(self._free)

    def __iter__(self) -> Iterator[Spool]:
        """Free spools in pool order."""
        return iter([self._spools[spool_id] for spool_id in self._free])

    def __contains__(self, spool: Spool) -> bool:
        return spool.spool_id in self._free

    def get(self, spool_id: int) -> Spool:
        """Look up any registered spool, free or loaded."""
        try:
            return self._spools[spool_id]
        except KeyError:
            raise InvariantViolation(f"Unknown spool id {spool_id}") from None

    def resolve(self, spool_ids: Iterable[int]) -> List[Spool]:
        return [self.get(spool_id) for spool_id in spool_ids]

    @property
    def spools(self) -> List[Spool]:
        """Every registered spool in registration order."""
        return list(self._spools.values())

    @property
    def free_ids(self) -> List[int]:
        return list(self._free)

    def take(self, spool: Spool) -> None:
        if spool.spool_id not in self._free:
            raise InvariantViolation(f"Spool {spool.spool_id} is not in the free pool")
        self._free.remove(spool.spool_id)
        logger.debug(f"Spool {spool.spool_id} taken from the free pool")

    def give(self, spool: Spool) -> None:
        if self.get(spool.spool_id) is not spool:
            raise InvariantViolation(f"Spool {spool.spool_id} is not the registered instance")
        if spool.spool_id in self._free:
            raise InvariantViolation(f"Spool {spool.spool_id} is already in the free pool")
        self._free.append(spool.spool_id)
        logger.debug(f"Spool {spool.spool_id} returned to the free pool")

    def find_first(
        self,
        predicate: Callable[[Spool], bool],
        exclude: Iterable[int] = (),
    ) -> Optional[Spool]:
        """First free spool, in pool order, matching predicate and not excluded."""
        excluded = set(exclude)
        for spool_id in self._free:
            if spool_id in excluded:
                continue
            spool = self._spools[spool_id]
            if predicate(spool):
                return spool
        return None

    def __repr__(self) -> str:
        return f"SpoolPool(registered={len(self._spools)}, free={self._free})"
