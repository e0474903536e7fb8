"""
Simulated World
===============
A JSON-backed stand-in for the client's session, outfit and group
subsystems. It plays all three collaborator roles the RLV engine needs, so
the console and the tests can drive the engine without a live grid.

All data is stored in a single JSON file:

    {
      "meta":      {"name": ..., "region": ...},
      "avatar":    {"sitting_on": ..., "heading": ..., "position": [x, y, z],
                    "active_group": ..., "active_role": ...},
      "objects":   {object_id: {"name": ..., "attached_item": item_id}},
      "inventory": {"id": ..., "name": ..., "kind": "folder", "children": [...]},
      "worn":      [item_id, ...],
      "groups":    {group_id: {"name": ..., "roles": {role_id: role_name}}}
    }
"""

import asyncio
import json
import os
import uuid
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field, asdict

from inventory import FOLDER, OBJECT, InventoryNode, walk
from collaborators import Group


@dataclass
class WorldObject:
    """An object present in the region. Attachments point back at their inventory item."""
    id: str
    name: str
    attached_item: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        del data['id']
        return {k: v for k, v in data.items() if v or k == 'name'}


@dataclass
class GroupInfo:
    id: str
    name: str
    roles: Dict[str, str] = field(default_factory=dict)  # role_id -> role name


class SimWorld:
    """
    In-memory world state for one avatar.

    Implements WorldSession, OutfitManager and GroupService. Outbound chat
    and every side effect are recorded in `outbox` and `actions`.
    """

    def __init__(self, shared_folder: str = "#RLV"):
        self._lock = threading.RLock()
        self.shared_folder = shared_folder
        self.meta: Dict[str, Any] = {"version": "1.0", "name": "Unnamed World", "region": "Sandbox"}

        self.objects: Dict[str, WorldObject] = {}
        self.groups: Dict[str, GroupInfo] = {}
        self.inventory = InventoryNode("root", "My Inventory")
        self.worn: List[str] = []

        self.sitting_on_id: Optional[str] = None
        self.heading: float = 0.0
        self.position: List[float] = [128.0, 128.0, 25.0]
        self.active_group: Optional[str] = None
        self.active_role: Optional[str] = None

        # Simulated network latency (seconds) for the async lookups
        self.group_name_delay: float = 0.0
        self.role_lookup_delay: float = 0.0
        # When True, presence checks answer "unknown"
        self.presence_unknown = False

        self.outbox: List[tuple] = []   # (channel, text)
        self.actions: List[str] = []
        self.on_item_change: Optional[Callable[[InventoryNode, bool], None]] = None

        self._node_index: Dict[str, InventoryNode] = {}
        with self._lock:
            self.rebuild_indices()

    def rebuild_indices(self) -> None:
        """Clear and rebuild the id -> node index from the inventory tree."""
        self._node_index = {node.id: node for node in walk(self.inventory)}

    # ─────────────────────────────────────────────────────────────
    # File I/O
    # ─────────────────────────────────────────────────────────────

    def load(self, path) -> None:
        """Load the world from a JSON file."""
        if not os.path.exists(path):
            return

        with self._lock:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self.load_dict(data)

    def load_dict(self, data: Dict[str, Any]) -> None:
        with self._lock:
            self.meta = data.get("meta", self.meta)

            avatar = data.get("avatar", {})
            self.sitting_on_id = avatar.get("sitting_on") or None
            self.heading = float(avatar.get("heading", 0.0))
            self.position = list(avatar.get("position", self.position))
            self.active_group = avatar.get("active_group") or None
            self.active_role = avatar.get("active_role") or None

            self.objects = {
                oid: WorldObject(id=oid, name=o.get("name", ""), attached_item=o.get("attached_item", ""))
                for oid, o in data.get("objects", {}).items()
            }
            self.groups = {
                gid: GroupInfo(id=gid, name=g.get("name", ""), roles=dict(g.get("roles", {})))
                for gid, g in data.get("groups", {}).items()
            }
            if "inventory" in data:
                self.inventory = self._node_from_dict(data["inventory"], None)
            self.worn = list(data.get("worn", []))
            self.rebuild_indices()

    def save(self, path: Path) -> None:
        """Save world to JSON file atomically."""
        with self._lock:
            data = self.to_dict()

            temp_path = str(path) + ".tmp"
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
                os.replace(temp_path, path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'meta': self.meta,
                'avatar': {
                    'sitting_on': self.sitting_on_id,
                    'heading': self.heading,
                    'position': self.position,
                    'active_group': self.active_group,
                    'active_role': self.active_role,
                },
                'objects': {oid: o.to_dict() for oid, o in self.objects.items()},
                'inventory': self._node_to_dict(self.inventory),
                'worn': list(self.worn),
                'groups': {gid: {'name': g.name, 'roles': g.roles} for gid, g in self.groups.items()},
            }

    def _node_from_dict(self, data: Dict[str, Any], parent: Optional[InventoryNode]) -> InventoryNode:
        node = InventoryNode(
            id=data["id"],
            name=data.get("name", ""),
            kind=data.get("kind", FOLDER),
            layer=data.get("layer", ""),
            point=data.get("point", ""),
            parent=parent,
        )
        for child in data.get("children", []):
            node.children.append(self._node_from_dict(child, node))
        return node

    def _node_to_dict(self, node: InventoryNode) -> Dict[str, Any]:
        data = {"id": node.id, "name": node.name, "kind": node.kind}
        if node.layer:
            data["layer"] = node.layer
        if node.point:
            data["point"] = node.point
        if node.children:
            data["children"] = [self._node_to_dict(c) for c in node.children]
        return data

    # ─────────────────────────────────────────────────────────────
    # World Building
    # ─────────────────────────────────────────────────────────────

    def add_object(self, name: str, object_id: Optional[str] = None, attached_item: str = "") -> WorldObject:
        """Rez an object in the region."""
        with self._lock:
            obj = WorldObject(id=object_id or str(uuid.uuid4()), name=name, attached_item=attached_item)
            self.objects[obj.id] = obj
            return obj

    def remove_object(self, object_id: str) -> bool:
        """Derez an object. Returns True if it was present."""
        with self._lock:
            return self.objects.pop(object_id, None) is not None

    def add_group(self, name: str, group_id: Optional[str] = None, roles: Optional[Dict[str, str]] = None) -> GroupInfo:
        with self._lock:
            group = GroupInfo(id=group_id or str(uuid.uuid4()), name=name, roles=dict(roles or {}))
            self.groups[group.id] = group
            return group

    def get_node(self, node_id: str) -> Optional[InventoryNode]:
        with self._lock:
            return self._node_index.get(node_id)

    # ─────────────────────────────────────────────────────────────
    # WorldSession
    # ─────────────────────────────────────────────────────────────

    def send_chat(self, channel: int, text: str) -> None:
        with self._lock:
            self.outbox.append((channel, text))

    def object_exists(self, object_id: str) -> Optional[bool]:
        if self.presence_unknown:
            return None
        with self._lock:
            return object_id in self.objects

    def region_name(self) -> str:
        return self.meta.get("region", "")

    def sitting_on(self) -> Optional[str]:
        return self.sitting_on_id

    async def teleport_global(self, x: float, y: float, z: float, lookat: Optional[float] = None) -> None:
        with self._lock:
            self.position = [x, y, z]
            self.actions.append(f"teleport_global {x:g} {y:g} {z:g}")

    async def teleport_region(self, region: str, x: float, y: float, z: float, lookat: Optional[float] = None) -> None:
        with self._lock:
            self.meta["region"] = region
            self.position = [x, y, z]
            suffix = f" lookat={lookat:g}" if lookat is not None else ""
            self.actions.append(f"teleport_region {region} {x:g} {y:g} {z:g}{suffix}")

    async def sit_on(self, target_id: str) -> None:
        with self._lock:
            self.sitting_on_id = target_id
            self.actions.append(f"sit {target_id}")

    async def stand(self) -> None:
        with self._lock:
            self.sitting_on_id = None
            self.actions.append("stand")

    async def sit_ground(self) -> None:
        with self._lock:
            self.sitting_on_id = None
            self.actions.append("sit_ground")

    async def set_heading(self, radians: float) -> None:
        with self._lock:
            self.heading = radians
            self.actions.append(f"heading {radians:.4f}")

    # ─────────────────────────────────────────────────────────────
    # OutfitManager
    # ─────────────────────────────────────────────────────────────

    def restriction_root(self) -> Optional[InventoryNode]:
        for node in self.inventory.children:
            if node.is_folder and node.name == self.shared_folder:
                return node
        return None

    def worn_items(self) -> List[InventoryNode]:
        with self._lock:
            return [self._node_index[i] for i in self.worn if i in self._node_index]

    def is_worn(self, item: InventoryNode) -> bool:
        with self._lock:
            return item.id in self.worn

    def object_for_item(self, item: InventoryNode) -> Optional[str]:
        with self._lock:
            for obj in self.objects.values():
                if obj.attached_item == item.id:
                    return obj.id
        return None

    def item_for_object(self, object_id: str) -> Optional[InventoryNode]:
        with self._lock:
            obj = self.objects.get(object_id)
            if not obj or not obj.attached_item:
                return None
            return self._node_index.get(obj.attached_item)

    async def attach(self, items: List[InventoryNode], replace: bool = True) -> None:
        for item in items:
            if replace:
                occupants = [w for w in self.worn_items() if w.kind == OBJECT and w.point == item.point]
                await self.remove_from_outfit(occupants)
            with self._lock:
                if item.id in self.worn:
                    continue
                self.worn.append(item.id)
                self.add_object(item.name, attached_item=item.id)
                self.actions.append(f"attach {item.name}")
            self._item_changed(item, True)

    async def add_to_outfit(self, items: List[InventoryNode], replace: bool = True) -> None:
        for item in items:
            if replace:
                same_layer = [w for w in self.worn_items() if w.kind != OBJECT and w.layer == item.layer]
                await self.remove_from_outfit(same_layer)
            with self._lock:
                if item.id in self.worn:
                    continue
                self.worn.append(item.id)
                self.actions.append(f"wear {item.name}")
            self._item_changed(item, True)

    async def remove_from_outfit(self, items: List[InventoryNode]) -> None:
        for item in items:
            with self._lock:
                if item.id not in self.worn:
                    continue
                self.worn.remove(item.id)
                for oid in [o.id for o in self.objects.values() if o.attached_item == item.id]:
                    del self.objects[oid]
                self.actions.append(f"remove {item.name}")
            self._item_changed(item, False)

    def _item_changed(self, item: InventoryNode, added: bool) -> None:
        if self.on_item_change:
            self.on_item_change(item, added)

    # ─────────────────────────────────────────────────────────────
    # GroupService
    # ─────────────────────────────────────────────────────────────

    def find_group(self, name_or_id: str) -> Optional[Group]:
        target = name_or_id.strip().lower()
        if not target:
            return None
        with self._lock:
            for g in self.groups.values():
                if g.id.lower() == target or g.name.lower() == target:
                    return Group(id=g.id, name=g.name)
        return None

    async def active_group_name(self) -> Optional[str]:
        if self.group_name_delay:
            await asyncio.sleep(self.group_name_delay)
        with self._lock:
            group = self.groups.get(self.active_group) if self.active_group else None
            return group.name if group else None

    async def request_role_id(self, group_id: str, role_name: str) -> Optional[str]:
        if self.role_lookup_delay:
            await asyncio.sleep(self.role_lookup_delay)
        with self._lock:
            group = self.groups.get(group_id)
            if not group:
                return None
            for role_id, name in group.roles.items():
                if name.lower() == role_name.lower():
                    return role_id
        return None

    async def activate_group(self, group_id: str) -> None:
        with self._lock:
            self.active_group = group_id
            self.active_role = None
            self.actions.append(f"activate_group {group_id}")

    async def activate_title(self, group_id: str, role_id: str) -> None:
        with self._lock:
            self.active_role = role_id
            self.actions.append(f"activate_title {group_id} {role_id}")


# ─────────────────────────────────────────────────────────────────
# Quick test when run directly
# ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    world = SimWorld()
    world.load(Path(__file__).parent / "world.json")

    print("Loaded world", world.meta.get("name"), "with", len(world.objects), "objects")
    root = world.restriction_root()
    if root:
        for node in walk(root):
            print(f"  {node.id}: {node.name} ({node.kind})")
