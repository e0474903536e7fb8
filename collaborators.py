"""
RLV Collaborators
=================
The boundary between the RLV engine and the rest of the client.

The engine never talks to the network or the outfit subsystem directly; it
goes through these three roles. world.SimWorld implements all of them for
the console and the tests.
"""

from typing import List, Optional, Protocol
from dataclasses import dataclass

from inventory import InventoryNode


@dataclass
class Group:
    id: str
    name: str


class WorldSession(Protocol):
    """Chat, presence, movement and teleport for the controlled avatar."""

    def send_chat(self, channel: int, text: str) -> None: ...

    def object_exists(self, object_id: str) -> Optional[bool]:
        """True/False if known, None if presence cannot be determined right now."""
        ...

    def region_name(self) -> str: ...

    def sitting_on(self) -> Optional[str]: ...

    async def teleport_global(self, x: float, y: float, z: float, lookat: Optional[float] = None) -> None: ...

    async def teleport_region(self, region: str, x: float, y: float, z: float, lookat: Optional[float] = None) -> None: ...

    async def sit_on(self, target_id: str) -> None: ...

    async def stand(self) -> None: ...

    async def sit_ground(self) -> None: ...

    async def set_heading(self, radians: float) -> None: ...


class OutfitManager(Protocol):
    """Read access to the shared folder tree and the worn state; outfit changes."""

    def restriction_root(self) -> Optional[InventoryNode]: ...

    def worn_items(self) -> List[InventoryNode]: ...

    def is_worn(self, item: InventoryNode) -> bool: ...

    def object_for_item(self, item: InventoryNode) -> Optional[str]:
        """In-world object id of an attached item."""
        ...

    def item_for_object(self, object_id: str) -> Optional[InventoryNode]: ...

    async def attach(self, items: List[InventoryNode], replace: bool = True) -> None: ...

    async def add_to_outfit(self, items: List[InventoryNode], replace: bool = True) -> None: ...

    async def remove_from_outfit(self, items: List[InventoryNode]) -> None: ...


class GroupService(Protocol):
    """Group membership and active title."""

    def find_group(self, name_or_id: str) -> Optional[Group]: ...

    async def active_group_name(self) -> Optional[str]: ...

    async def request_role_id(self, group_id: str, role_name: str) -> Optional[str]: ...

    async def activate_group(self, group_id: str) -> None: ...

    async def activate_title(self, group_id: str, role_id: str) -> None: ...
