"""
RLV Permissions
===============
Yes/no policy questions answered from the rule store.

The rest of the client asks these before acting on its own ("may I detach
this?", "what chat volume is this line allowed at?"), and the dispatcher
uses them to filter forced attach/detach requests.
"""

from enum import Enum
from typing import List, Optional

from inventory import BODYPARTS, InventoryNode, is_descendant_of, path_segments
from rule_store import RestrictionRule, RuleStore
from collaborators import OutfitManager


class ChatType(Enum):
    WHISPER = "whisper"
    NORMAL = "normal"
    SHOUT = "shout"


class RlvPermissions:
    """Derived permission checks over a RuleStore and the outfit state."""

    def __init__(self, store: RuleStore, outfit: OutfitManager):
        self.store = store
        self.outfit = outfit

    # ─────────────────────────────────────────────────────────────
    # Pass-through Queries
    # ─────────────────────────────────────────────────────────────

    def is_restricted(self, behaviour: str) -> bool:
        return self.store.is_restricted(behaviour)

    def is_restricted_except(self, behaviour: str, exception_option: str) -> bool:
        return self.store.is_restricted_except(behaviour, exception_option)

    def options_for(self, behaviour: str) -> set:
        return self.store.options_for(behaviour)

    # ─────────────────────────────────────────────────────────────
    # Shared Folder
    # ─────────────────────────────────────────────────────────────

    def is_in_shared_folder(self, item: InventoryNode) -> bool:
        root = self.outfit.restriction_root()
        return root is not None and is_descendant_of(item, root)

    def _folder_paths(self, item: InventoryNode) -> List[str]:
        """Lower-cased path of the item's folder and of each ancestor folder, deepest first."""
        root = self.outfit.restriction_root()
        if root is None or item.parent is None or not is_descendant_of(item, root):
            return []
        segments = [s.lower() for s in path_segments(item.parent, root)]
        return ["/".join(segments[:n]) for n in range(len(segments), 0, -1)]

    @staticmethod
    def _folder_locked(rules: List[RestrictionRule], this: str, all_this: str, paths: List[str]) -> bool:
        if not paths:
            return False
        own, lineage = paths[0], set(paths)
        for r in rules:
            option = r.option.strip("/").lower()
            if r.behaviour == this and option == own:
                return True
            if r.behaviour == all_this and option in lineage:
                return True
        return False

    # ─────────────────────────────────────────────────────────────
    # Attach / Detach
    # ─────────────────────────────────────────────────────────────

    def detach_locked(self, item: InventoryNode) -> bool:
        """Whether active rules pin this item, regardless of whether it is worn."""
        if item.layer in BODYPARTS:
            return True

        rules = self.store.rules()
        object_id = self.outfit.object_for_item(item)

        for r in rules:
            if r.behaviour == "detach":
                if r.unqualified and object_id and r.issuer_id == object_id:
                    return True
                if item.point and r.option.lower() == item.point:
                    return True
            elif r.behaviour == "remoutfit" and item.layer:
                if r.unqualified or r.option.lower() == item.layer:
                    return True

        return self._folder_locked(rules, "detachthis", "detachallthis", self._folder_paths(item))

    def can_detach(self, item: InventoryNode) -> bool:
        """An item that is not worn is trivially detachable."""
        if not self.outfit.is_worn(item):
            return True
        return not self.detach_locked(item)

    def attach_locked(self, item: InventoryNode) -> bool:
        rules = self.store.rules()
        for r in rules:
            if r.behaviour == "addattach" and item.point:
                if r.unqualified or r.option.lower() == item.point:
                    return True
            elif r.behaviour == "addoutfit" and item.layer:
                if r.unqualified or r.option.lower() == item.layer:
                    return True
        return self._folder_locked(rules, "attachthis", "attachallthis", self._folder_paths(item))

    def can_attach(self, item: InventoryNode) -> bool:
        return not self.attach_locked(item)

    # ─────────────────────────────────────────────────────────────
    # Chat
    # ─────────────────────────────────────────────────────────────

    def effective_chat_type(self, requested: ChatType) -> ChatType:
        """
        The volume a chat line actually goes out at.

        Checked in a fixed order: shout demotion first, then the normal->whisper
        collapse, then whisper promotion. Reordering changes results when
        several chat restrictions are active at once.
        """
        chat_type = requested
        if chat_type == ChatType.SHOUT and self.is_restricted("chatshout"):
            chat_type = ChatType.NORMAL
        if chat_type in (ChatType.NORMAL, ChatType.SHOUT) and self.is_restricted("chatnormal"):
            chat_type = ChatType.WHISPER
        if chat_type == ChatType.WHISPER and self.is_restricted("chatwhisper"):
            chat_type = ChatType.NORMAL
        return chat_type

    def can_send_chat(self, channel: int = 0) -> bool:
        if channel == 0:
            return not self.is_restricted("sendchat")
        return not self.is_restricted_except("sendchannel", str(channel))

    # ─────────────────────────────────────────────────────────────
    # Teleport
    # ─────────────────────────────────────────────────────────────

    def can_auto_accept_teleport(self, sender_id: Optional[str]) -> bool:
        """accepttp naming this sender, or an unqualified accepttp from anyone."""
        for r in self.store.rules("accepttp"):
            if r.unqualified or (sender_id and r.option.lower() == sender_id.lower()):
                return True
        return False
