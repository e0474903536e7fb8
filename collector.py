"""
Stale-Rule Collector
====================
Periodic sweep that drops rules whose issuing object has left the
simulation, so the rule store cannot grow without bound.

Presence is checked conservatively: if the session cannot say whether an
object exists, its rules stay.
"""

import logging
import threading
from typing import List, Optional

from rule_store import RuleStore
from collaborators import WorldSession


logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 120.0  # Two minutes


class StaleRuleCollector:
    """Background sweeper for rules issued by objects no longer in world."""

    def __init__(self, store: RuleStore, session: WorldSession, interval: float = DEFAULT_INTERVAL):
        self.store = store
        self.session = session
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def sweep(self) -> List[str]:
        """Clear every issuer that is definitely gone. Returns the evicted ids."""
        evicted = []
        for issuer_id in self.store.issuers():
            try:
                exists = self.session.object_exists(issuer_id)
            except Exception:
                logger.warning("Presence check failed for %s, keeping its rules", issuer_id, exc_info=True)
                continue

            if exists is False:
                self.store.clear_issuer(issuer_id)
                evicted.append(issuer_id)

        if evicted:
            logger.info("Stale-rule sweep evicted %d issuer(s)", len(evicted))
        return evicted

    # ─────────────────────────────────────────────────────────────
    # Timer Thread
    # ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start sweeping every `interval` seconds. Restarts if already running."""
        self.stop()
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._worker, args=(self._stop,),
                                        name="rlv-rule-collector", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=5)
        self._thread = None

    def _worker(self, stop: threading.Event) -> None:
        """Background worker for the periodic sweep."""
        while not stop.wait(self.interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Stale-rule sweep failed")
