from report_contacts.cache import CacheCell


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_empty_cell_is_invalid() -> None:
    cell: CacheCell[str] = CacheCell(60.0, clock=FakeClock())
    assert cell.is_valid() is False
    assert cell.value is None
    assert cell.fetched_at is None


def test_value_is_valid_until_ttl_elapses() -> None:
    clock = FakeClock()
    cell: CacheCell[str] = CacheCell(60.0, clock=clock)
    cell.store("payload")
    assert cell.fetched_at == 1000.0

    clock.now += 59.9
    assert cell.is_valid() is True

    clock.now += 0.1
    assert cell.is_valid() is False


def test_expiry_keeps_value_until_cleared() -> None:
    clock = FakeClock()
    cell: CacheCell[str] = CacheCell(1.0, clock=clock)
    cell.store("payload")
    clock.now += 5
    assert cell.is_valid() is False
    assert cell.value == "payload"

    cell.clear()
    assert cell.value is None
    assert cell.fetched_at is None


def test_zero_ttl_never_serves_from_cache() -> None:
    cell: CacheCell[str] = CacheCell(0.0, clock=FakeClock())
    cell.store("payload")
    assert cell.is_valid() is False
