"""
RLV Rule Store
==============
The set of currently active restrictions, keyed by issuing object.

A single lock guards the whole collection: chat processing and the
stale-rule sweep both mutate it from different threads. Queries copy what
they need under the lock and compute outside it, and change subscribers are
always called after the lock is released.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, field


logger = logging.getLogger(__name__)

# (rule or None for bulk changes, added)
ChangeCallback = Callable[[Optional['RestrictionRule'], bool], None]


@dataclass(frozen=True)
class RestrictionRule:
    """A single active restriction. issuer_name is a label, not identity."""
    behaviour: str
    option: str
    issuer_id: str
    issuer_name: str = field(default="", compare=False)

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.behaviour, self.issuer_id, self.option)

    @property
    def unqualified(self) -> bool:
        return self.option == ""

    def __str__(self) -> str:
        if self.option:
            return f"{self.behaviour}:{self.option}"
        return self.behaviour


class RuleStore:
    """Thread-safe collection of RestrictionRule, unique per (behaviour, issuer, option)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rules: List[RestrictionRule] = []
        self._subscribers: List[ChangeCallback] = []

    # ─────────────────────────────────────────────────────────────
    # Change Notification
    # ─────────────────────────────────────────────────────────────

    def subscribe(self, callback: ChangeCallback) -> None:
        """Register a callback fired whenever the active rule set changes."""
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: ChangeCallback) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def _notify(self, rule: Optional[RestrictionRule], added: bool) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(rule, added)

    # ─────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────

    def add(self, rule: RestrictionRule) -> None:
        """Insert a rule, replacing any rule with the same key."""
        with self._lock:
            self._rules = [r for r in self._rules if r.key != rule.key]
            self._rules.append(rule)
        self._notify(rule, True)

    def remove_matching(self, behaviour: str, issuer_id: str, option: str = "") -> int:
        """
        Remove rules of one behaviour from one issuer.

        An empty option removes all of that issuer's rules for the behaviour,
        whatever their option; otherwise only the exact match goes.
        """
        def matches(r: RestrictionRule) -> bool:
            if r.behaviour != behaviour or r.issuer_id != issuer_id:
                return False
            return option == "" or r.option == option

        removed = self._remove(matches)
        if removed:
            self._notify(RestrictionRule(behaviour, option, issuer_id), False)
        return removed

    def clear_issuer(self, issuer_id: str) -> int:
        """Remove every rule issued by one object."""
        removed = self._remove(lambda r: r.issuer_id == issuer_id)
        if removed:
            logger.debug("Cleared %d rules from %s", removed, issuer_id)
            self._notify(None, False)
        return removed

    def remove_where(self, issuer_id: str, behaviour_filter: str) -> int:
        """Remove an issuer's rules whose behaviour contains behaviour_filter."""
        removed = self._remove(
            lambda r: r.issuer_id == issuer_id and behaviour_filter in r.behaviour)
        if removed:
            self._notify(None, False)
        return removed

    def clear(self) -> int:
        """Drop every rule from every issuer."""
        with self._lock:
            removed = len(self._rules)
            self._rules = []
        if removed:
            self._notify(None, False)
        return removed

    def _remove(self, predicate: Callable[[RestrictionRule], bool]) -> int:
        with self._lock:
            before = len(self._rules)
            self._rules = [r for r in self._rules if not predicate(r)]
            return before - len(self._rules)

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    def rules(self, behaviour: Optional[str] = None, issuer_id: Optional[str] = None) -> List[RestrictionRule]:
        """Snapshot of the rules, optionally filtered by behaviour and/or issuer."""
        with self._lock:
            snapshot = list(self._rules)
        return [r for r in snapshot
                if (behaviour is None or r.behaviour == behaviour)
                and (issuer_id is None or r.issuer_id == issuer_id)]

    def has_rule(self, behaviour: str, issuer_id: Optional[str] = None, option: Optional[str] = None) -> bool:
        return any(option is None or r.option == option
                   for r in self.rules(behaviour, issuer_id))

    def is_restricted(self, behaviour: str) -> bool:
        """True if any issuer holds an unqualified rule for this behaviour."""
        return self.has_rule(behaviour, option="")

    def is_restricted_except(self, behaviour: str, exception_option: str) -> bool:
        """
        True if the behaviour is restricted and no rule for it carries
        exception_option (e.g. "no sendchannel, except channel 5").
        """
        rules = self.rules(behaviour)
        if not any(r.unqualified for r in rules):
            return False
        return not any(r.option == exception_option for r in rules)

    def options_for(self, behaviour: str) -> Set[str]:
        """All distinct non-empty options currently set for a behaviour."""
        return {r.option for r in self.rules(behaviour) if r.option}

    def issuers(self) -> List[str]:
        """Distinct issuer ids, in first-seen order."""
        seen: Dict[str, None] = {}
        for r in self.rules():
            seen.setdefault(r.issuer_id, None)
        return list(seen)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)
