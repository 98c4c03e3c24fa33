"""Tests for the presence engine: owner buckets and home/away derivation."""

from datetime import UTC, datetime, timedelta

from presenceboard.persona.engine import (
    confers_home,
    derive_presence,
    is_considered_home,
    time_since,
)
from presenceboard.persona.models import SYSTEM_OWNER_ID, Owner, OwnerKind
from presenceboard.registry.models import Device, PresenceType

NOW = datetime(2025, 8, 26, 22, 30, tzinfo=UTC)

OWNERS = {
    SYSTEM_OWNER_ID: Owner(id=SYSTEM_OWNER_ID, name="House", kind=OwnerKind.home),
    2: Owner(id=2, name="Alice"),
    3: Owner(id=3, name="Bob"),
}


def _device(mac: str, owner_id: int | None = 2, **overrides) -> Device:
    owner = OWNERS.get(owner_id) if owner_id is not None else None
    fields = dict(
        mac=mac,
        display="phone",
        connected=True,
        owner_id=owner_id,
        owner_name=owner.name if owner else None,
        presence_type=PresenceType.primary,
    )
    fields.update(overrides)
    return Device(**fields)


def _derive(devices: list[Device], minutes_ago: float = 0, window_minutes: float = 5):
    return derive_presence(
        {d.mac: d for d in devices},
        OWNERS,
        captured_at=NOW - timedelta(minutes=minutes_ago),
        consider_home=timedelta(minutes=window_minutes),
        now=NOW,
    )


class TestBuckets:
    def test_every_non_system_owner_gets_a_bucket(self):
        result = _derive([])
        assert set(result) == {2, 3}
        assert result[2].all == []
        assert result[2].is_home is False

    def test_primary_and_secondary_split(self):
        phone = _device("01", presence_type=PresenceType.primary)
        tablet = _device("02", presence_type=PresenceType.secondary)
        result = _derive([phone, tablet])
        assert result[2].primary == [phone]
        assert result[2].secondary == [tablet]
        assert result[2].all == [phone, tablet]

    def test_system_owner_devices_excluded(self):
        tv = _device("01", owner_id=SYSTEM_OWNER_ID)
        result = _derive([tv])
        assert SYSTEM_OWNER_ID not in result
        for presence in result.values():
            assert tv not in presence.all
            assert tv not in presence.primary
            assert tv not in presence.secondary

    def test_untracked_devices_excluded(self):
        laptop = _device("01", presence_type=None)
        result = _derive([laptop])
        assert result[2].all == []
        assert result[2].primary == []
        assert result[2].secondary == []

    def test_unresolved_owner_skipped(self):
        orphan = _device("01", owner_id=99, owner_name=None)
        result = _derive([orphan])
        assert all(p.all == [] for p in result.values())

    def test_unassigned_device_skipped(self):
        result = _derive([_device("01", owner_id=None)])
        assert all(p.all == [] for p in result.values())


class TestIsHome:
    def test_connected_primary_is_home(self):
        assert _derive([_device("01")])[2].is_home is True

    def test_disconnected_within_window_is_home(self):
        phone = _device("01", connected=False)
        assert _derive([phone], minutes_ago=3, window_minutes=5)[2].is_home is True

    def test_disconnected_outside_window_is_away(self):
        phone = _device("01", connected=False)
        assert _derive([phone], minutes_ago=3, window_minutes=1)[2].is_home is False

    def test_window_boundary_is_exclusive(self):
        phone = _device("01", connected=False)
        assert _derive([phone], minutes_ago=5, window_minutes=5)[2].is_home is False

    def test_secondary_never_triggers_home(self):
        tablet = _device("01", presence_type=PresenceType.secondary, connected=True)
        result = _derive([tablet])
        assert result[2].secondary == [tablet]
        assert result[2].is_home is False

    def test_primary_without_display_does_not_count(self):
        assert _derive([_device("01", display=None)])[2].is_home is False
        assert _derive([_device("01", display="")])[2].is_home is False

    def test_any_primary_device_is_enough(self):
        offline = _device("01", connected=False)
        online = _device("02", connected=True)
        assert _derive([offline, online], minutes_ago=60)[2].is_home is True

    def test_owners_are_independent(self):
        alice = _device("01", owner_id=2)
        bob = _device("02", owner_id=3, connected=False)
        result = _derive([alice, bob], minutes_ago=30)
        assert result[2].is_home is True
        assert result[3].is_home is False


class TestHelpers:
    def test_time_since_treats_naive_as_utc(self):
        naive = datetime(2025, 8, 26, 22, 27)
        assert time_since(naive, NOW) == timedelta(minutes=3)

    def test_is_considered_home(self):
        offline = _device("01", connected=False)
        assert is_considered_home(offline, timedelta(minutes=1), timedelta(minutes=5)) is True
        assert is_considered_home(offline, timedelta(minutes=10), timedelta(minutes=5)) is False

    def test_is_considered_home_ignores_presence_type(self):
        untracked = _device("01", presence_type=None)
        assert is_considered_home(untracked, timedelta(hours=1), timedelta(0)) is True

    def test_confers_home_requires_primary(self):
        tablet = _device("01", presence_type=PresenceType.secondary)
        assert confers_home(tablet, timedelta(0), timedelta(minutes=5)) is False
