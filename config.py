"""
RLV Configuration
=================
Settings read from the environment, with .env support via python-dotenv.
"""

import os
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class RlvSettings:
    enabled: bool = False
    debug_commands: bool = False
    shared_folder: str = "#RLV"
    cleanup_interval: float = 120.0      # Seconds between stale-rule sweeps
    role_lookup_timeout: float = 10.0    # Seconds to wait for a group role reply
    group_name_timeout: float = 5.0      # Seconds to wait for the active group name
    client_name: str = "RLV Engine"
    world_file: Path = Path(__file__).parent / "world.json"

    @classmethod
    def from_env(cls) -> 'RlvSettings':
        defaults = cls()
        return cls(
            enabled=_env_bool("RLV_ENABLED", defaults.enabled),
            debug_commands=_env_bool("RLV_DEBUG_COMMANDS", defaults.debug_commands),
            shared_folder=os.getenv("RLV_SHARED_FOLDER", defaults.shared_folder),
            cleanup_interval=_env_float("RLV_CLEANUP_INTERVAL", defaults.cleanup_interval),
            role_lookup_timeout=_env_float("RLV_ROLE_TIMEOUT", defaults.role_lookup_timeout),
            group_name_timeout=_env_float("RLV_GROUP_NAME_TIMEOUT", defaults.group_name_timeout),
            client_name=os.getenv("RLV_CLIENT_NAME", defaults.client_name),
            world_file=Path(os.getenv("RLV_WORLD_FILE", str(defaults.world_file))),
        )
