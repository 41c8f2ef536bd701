"""
Unit tests for the spool pool and the spool swap executor.

Run with: pytest tests/test_pool.py
"""

import pytest

from printfarm.events import EventKind
from printfarm.exceptions import InvariantViolation
from printfarm.pool import SpoolPool
from printfarm.swap import swap_spool, swap_spools
from printfarm.types import FilamentType, PrinterVariant, Spool


@pytest.fixture
def spools():
    return [
        Spool(1, "red", FilamentType.PLA, 500.0),
        Spool(2, "blue", FilamentType.PLA, 300.0),
        Spool(3, "red", FilamentType.PLA, 100.0),
        Spool(4, "black", FilamentType.ABS, 800.0),
    ]


@pytest.fixture
def pool(spools):
    return SpoolPool(spools)


class TestSpoolPool:
    """Test ownership transfers in and out of the free pool."""

    def test_all_spools_start_free(self, pool, spools):
        assert len(pool) == 4
        assert list(pool) == spools
        assert pool.free_ids == [1, 2, 3, 4]

    def test_duplicate_ids_rejected(self):
        with pytest.raises(InvariantViolation):
            SpoolPool([Spool(1, "red", FilamentType.PLA, 1.0), Spool(1, "blue", FilamentType.PLA, 1.0)])

    def test_take_removes(self, pool, spools):
        pool.take(spools[1])

        assert spools[1] not in pool
        assert pool.free_ids == [1, 3, 4]
        # still registered
        assert pool.get(2) is spools[1]

    def test_take_twice_fails(self, pool, spools):
        pool.take(spools[0])

        with pytest.raises(InvariantViolation):
            pool.take(spools[0])

    def test_give_appends_to_end(self, pool, spools):
        """Returned spools go to the back of the pool order."""
        pool.take(spools[0])
        pool.give(spools[0])

        assert pool.free_ids == [2, 3, 4, 1]

    def test_give_free_spool_fails(self, pool, spools):
        with pytest.raises(InvariantViolation):
            pool.give(spools[0])

        assert pool.free_ids == [1, 2, 3, 4]

    def test_give_unknown_spool_fails(self, pool):
        with pytest.raises(InvariantViolation):
            pool.give(Spool(99, "green", FilamentType.PLA, 1.0))

    def test_give_foreign_instance_fails(self, pool, spools):
        """A copy with a registered id is not the registered spool."""
        pool.take(spools[0])

        with pytest.raises(InvariantViolation):
            pool.give(Spool(1, "red", FilamentType.PLA, 500.0))

    def test_get_unknown_id(self, pool):
        with pytest.raises(InvariantViolation):
            pool.get(42)

    def test_find_first_in_pool_order(self, pool):
        spool = pool.find_first(lambda s: s.color == "red")

        assert spool.spool_id == 1

    def test_find_first_with_exclusions(self, pool):
        spool = pool.find_first(lambda s: s.color == "red", exclude=[1])

        assert spool.spool_id == 3

    def test_find_first_no_match(self, pool):
        assert pool.find_first(lambda s: s.color == "green") is None


class TestSwap:
    """Test the spool swap executor."""

    def test_load_into_empty_printer(self, pool, spools, make_printer):
        printer = make_printer(name="Ender")
        events = []

        messages = swap_spool(printer, spools[0], pool, events.append)

        assert printer.loaded_spool_ids == (1,)
        assert spools[0] not in pool
        assert messages == ["- Spool change: Please place spool 1 in printer Ender"]
        assert [e.kind for e in events] == [EventKind.SPOOL_CHANGE]
        assert events[0].spool_id == 1

    def test_old_spool_returned(self, pool, spools, make_printer):
        printer = make_printer()
        swap_spool(printer, spools[0], pool, lambda event: None)

        swap_spool(printer, spools[1], pool, lambda event: None)

        assert printer.loaded_spool_ids == (2,)
        assert pool.free_ids == [3, 4, 1]

    def test_multicolor_positions(self, pool, spools, make_printer):
        """Multi-spool printers get a position per slot."""
        printer = make_printer(variant=PrinterVariant.MULTICOLOR, max_colors=4, name="XL")
        events = []

        messages = swap_spools(printer, [spools[1], spools[0]], pool, events.append)

        assert printer.loaded_spool_ids == (2, 1)
        assert messages == [
            "- Spool change: Please place spool 2 in printer XL position 1",
            "- Spool change: Please place spool 1 in printer XL position 2",
        ]
        assert len(events) == 2

    def test_spool_kept_in_same_slot_is_not_a_change(self, pool, spools, make_printer):
        printer = make_printer(variant=PrinterVariant.MULTICOLOR, max_colors=2)
        swap_spools(printer, [spools[0], spools[1]], pool, lambda event: None)
        events = []

        messages = swap_spools(printer, [spools[0], spools[2]], pool, events.append)

        assert printer.loaded_spool_ids == (1, 3)
        assert len(messages) == 1
        assert [e.spool_id for e in events] == [3]
        assert 2 in pool.free_ids

    def test_over_capacity_leaves_state_unchanged(self, pool, spools, make_printer):
        printer = make_printer()
        events = []

        with pytest.raises(InvariantViolation):
            swap_spools(printer, spools[:2], pool, events.append)

        assert printer.loaded_spool_ids == ()
        assert pool.free_ids == [1, 2, 3, 4]
        assert events == []

    def test_spool_on_other_printer_rejected(self, pool, spools, make_printer):
        first = make_printer(printer_id=1)
        second = make_printer(printer_id=2)
        swap_spool(first, spools[0], pool, lambda event: None)
        swap_spool(second, spools[1], pool, lambda event: None)

        with pytest.raises(InvariantViolation):
            swap_spool(second, spools[0], pool, lambda event: None)

        assert first.loaded_spool_ids == (1,)
        assert second.loaded_spool_ids == (2,)
        assert pool.free_ids == [3, 4]

    def test_repeated_spool_rejected(self, pool, spools, make_printer):
        printer = make_printer(variant=PrinterVariant.MULTICOLOR, max_colors=2)

        with pytest.raises(InvariantViolation):
            swap_spools(printer, [spools[0], spools[0]], pool, lambda event: None)

        assert pool.free_ids == [1, 2, 3, 4]

    def test_unload_with_empty_set(self, pool, spools, make_printer):
        printer = make_printer()
        swap_spool(printer, spools[0], pool, lambda event: None)

        messages = swap_spools(printer, [], pool, lambda event: None)

        assert messages == []
        assert printer.loaded_spool_ids == ()
        assert 1 in pool.free_ids
