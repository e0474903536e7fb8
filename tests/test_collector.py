"""
Tests for the stale-rule collector.
"""

import time

from collector import StaleRuleCollector
from rule_store import RestrictionRule

from conftest import CAGE, COLLAR, GHOST


class FlakySession:
    """Presence checks that blow up for one id."""

    def __init__(self, bad_id):
        self.bad_id = bad_id

    def object_exists(self, object_id):
        if object_id == self.bad_id:
            raise ConnectionError("presence service down")
        return False


def populate(store, *issuers):
    for issuer in issuers:
        store.add(RestrictionRule("detach", "", issuer))
        store.add(RestrictionRule("sendchat", "", issuer))


class TestSweep:

    def test_departed_issuers_evicted(self, store, world):
        populate(store, COLLAR, GHOST, CAGE)
        collector = StaleRuleCollector(store, world)
        assert collector.sweep() == [GHOST]
        assert store.issuers() == [COLLAR, CAGE]

    def test_one_clear_per_issuer(self, store, world, monkeypatch):
        populate(store, GHOST)
        calls = []
        original = store.clear_issuer
        monkeypatch.setattr(store, "clear_issuer", lambda i: calls.append(i) or original(i))

        StaleRuleCollector(store, world).sweep()
        assert calls == [GHOST]

    def test_unknown_presence_keeps_rules(self, store, world):
        populate(store, GHOST)
        world.presence_unknown = True
        assert StaleRuleCollector(store, world).sweep() == []
        assert len(store) == 2

    def test_failed_check_keeps_rules(self, store):
        populate(store, GHOST, CAGE)
        collector = StaleRuleCollector(store, FlakySession(GHOST))
        assert collector.sweep() == [CAGE]
        assert store.issuers() == [GHOST]

    def test_derezzed_object_evicted(self, store, world):
        populate(store, CAGE)
        world.remove_object(CAGE)
        assert StaleRuleCollector(store, world).sweep() == [CAGE]


class TestTimer:

    def test_background_sweep(self, store, world):
        populate(store, GHOST)
        collector = StaleRuleCollector(store, world, interval=0.01)
        collector.start()
        try:
            deadline = time.monotonic() + 2
            while len(store) and time.monotonic() < deadline:
                time.sleep(0.01)
            assert len(store) == 0
        finally:
            collector.stop()
        assert not collector.running

    def test_restart(self, store, world):
        collector = StaleRuleCollector(store, world, interval=60)
        collector.start()
        first = collector._thread
        collector.start()
        assert collector.running
        assert not first.is_alive()
        collector.stop()
        collector.stop()
        assert not collector.running
