from yeelight_discovery import DeviceRegistry, YeelightDevice


def make_device(device_id: str, name: str = "", bright: int = 100) -> YeelightDevice:
    return YeelightDevice(
        id=device_id,
        location="yeelight://192.168.1.10:55443",
        host="192.168.1.10",
        port=55443,
        name=name,
        bright=bright,
    )


def test_upsert_adds_in_first_seen_order():
    registry = DeviceRegistry()
    assert registry.upsert(make_device("b")) is True
    assert registry.upsert(make_device("a")) is True
    assert registry.upsert(make_device("c")) is True
    assert [d.id for d in registry.snapshot()] == ["b", "a", "c"]
    assert registry.count() == 3
    assert len(registry) == 3


def test_upsert_same_id_replaces_in_place():
    registry = DeviceRegistry()
    registry.upsert(make_device("a", name="old", bright=10))
    registry.upsert(make_device("b"))
    assert registry.upsert(make_device("a", name="new", bright=90)) is False
    assert registry.count() == 2
    devices = registry.snapshot()
    assert [d.id for d in devices] == ["a", "b"]
    assert devices[0].name == "new"
    assert devices[0].bright == 90


def test_first_registered_device_is_a_real_match():
    registry = DeviceRegistry()
    registry.upsert(make_device("first"))
    registry.upsert(make_device("first"))
    registry.upsert(make_device("first"))
    assert registry.count() == 1


def test_snapshot_is_a_copy():
    registry = DeviceRegistry()
    registry.upsert(make_device("a"))
    snapshot = registry.snapshot()
    snapshot.clear()
    snapshot.append(make_device("zzz"))
    assert [d.id for d in registry.snapshot()] == ["a"]


def test_get_and_contains():
    registry = DeviceRegistry()
    device = make_device("a")
    registry.upsert(device)
    assert registry.get("a") is device
    assert registry.get("missing") is None
    assert "a" in registry
    assert "missing" not in registry


def test_empty_registry():
    registry = DeviceRegistry()
    assert registry.count() == 0
    assert registry.snapshot() == []
    assert list(registry) == []
