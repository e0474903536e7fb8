"""
Pytest configuration and shared fixtures.
"""

import asyncio
from pathlib import Path

import pytest

from config import RlvSettings
from world import SimWorld
from rule_store import RuleStore
from rlv_engine import RlvEngine


WORLD_FILE = Path(__file__).parent.parent / "world.json"

# Objects rezzed in the sample world
COLLAR = "0f8e6c1a-5d2b-4c7e-8f90-1a2b3c4d5e01"   # attached, item-collar
CAGE = "0f8e6c1a-5d2b-4c7e-8f90-1a2b3c4d5e02"
CHAIR = "0f8e6c1a-5d2b-4c7e-8f90-1a2b3c4d5e03"
GHOST = "dead0000-0000-4000-8000-000000000000"    # never present

VELVET_CLUB = "6d3c2a5e-0b1f-4f3e-9a51-2f5c3a1b7c02"
HOSTESS = "8a1f0c2d-3e4b-4a5c-9d6e-7f8091a2b302"


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def world():
    """The sample world, freshly loaded for each test."""
    w = SimWorld()
    w.load(WORLD_FILE)
    return w


@pytest.fixture
def store():
    return RuleStore()


@pytest.fixture
def settings():
    """Enabled, no background sweeper, short timeouts."""
    return RlvSettings(enabled=True, cleanup_interval=0,
                       role_lookup_timeout=0.2, group_name_timeout=0.2)


@pytest.fixture
def engine(world, settings):
    e = RlvEngine(world, world, world, settings=settings)
    yield e
    e.close()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def say(engine, line, issuer=COLLAR, name="Leather Collar"):
    """Run one chat line through the engine synchronously."""
    return asyncio.run(engine.process_chat_line(line, issuer, name))


def replies(world, channel=None):
    """Texts sent on a channel (or all texts)."""
    return [t for c, t in world.outbox if channel is None or c == channel]
