"""
RLV Inventory Paths
===================
Path resolution and keyword search over the inventory tree that lives under
the shared restriction folder (#RLV by convention).

The engine only reads this tree. Every function here is pure: it walks the
nodes it is given and returns fresh values, never shared accumulators.
"""

from typing import Iterator, List, Optional, Sequence
from dataclasses import dataclass, field


HIDDEN_PREFIX = "."
PATH_SEPARATOR = "/"

# Node kinds
FOLDER = "folder"
WEARABLE = "wearable"
BODYPART = "bodypart"
OBJECT = "object"


# ─────────────────────────────────────────────────────────────────
# Outfit Vocabulary (RLV ordering, used by bitmask replies)
# ─────────────────────────────────────────────────────────────────

WEARABLE_TYPES = [
    "gloves", "jacket", "pants", "shirt", "shoes", "skirt", "socks",
    "underpants", "undershirt", "skin", "eyes", "hair", "shape",
    "alpha", "tattoo", "physics", "universe",
]

BODYPARTS = {"skin", "eyes", "hair", "shape"}

ATTACHMENT_POINTS = [
    "none", "chest", "skull", "left shoulder", "right shoulder",
    "left hand", "right hand", "left foot", "right foot", "spine",
    "pelvis", "mouth", "chin", "left ear", "right ear", "left eyeball",
    "right eyeball", "nose", "r upper arm", "r forearm", "l upper arm",
    "l forearm", "right hip", "r upper leg", "r lower leg", "left hip",
    "l upper leg", "l lower leg", "stomach", "left pec", "right pec",
    "center 2", "top right", "top", "top left", "center", "bottom left",
    "bottom", "bottom right", "neck", "avatar center",
]


@dataclass(eq=False)
class InventoryNode:
    """A folder or item in the inventory tree."""
    id: str
    name: str
    kind: str = FOLDER
    layer: str = ""   # Wearable type for wearables/bodyparts
    point: str = ""   # Default attachment point for objects
    parent: Optional['InventoryNode'] = field(default=None, repr=False)
    children: List['InventoryNode'] = field(default_factory=list, repr=False)

    @property
    def is_folder(self) -> bool:
        return self.kind == FOLDER

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(HIDDEN_PREFIX)

    def add_child(self, node: 'InventoryNode') -> 'InventoryNode':
        node.parent = self
        self.children.append(node)
        return node

    def folder(self, name: str, id: Optional[str] = None) -> 'InventoryNode':
        """Create a subfolder. Handy for building trees in code."""
        return self.add_child(InventoryNode(id or f"{self.id}/{name}", name))

    def item(self, name: str, kind: str = OBJECT, id: Optional[str] = None, **kwargs) -> 'InventoryNode':
        return self.add_child(InventoryNode(id or f"{self.id}/{name}", name, kind=kind, **kwargs))


# ─────────────────────────────────────────────────────────────────
# Tree Walking
# ─────────────────────────────────────────────────────────────────

def walk(root: InventoryNode) -> Iterator[InventoryNode]:
    """Pre-order traversal of root and everything below it."""
    yield root
    for child in root.children:
        yield from walk(child)


def subfolders(folder: InventoryNode) -> List[InventoryNode]:
    """Visible child folders, in tree order."""
    return [c for c in folder.children if c.is_folder and not c.is_hidden]


def folder_items(folder: InventoryNode, recursive: bool = False) -> List[InventoryNode]:
    """Items of a folder, optionally including visible subfolders' items."""
    items = [c for c in folder.children if not c.is_folder]
    if recursive:
        for sub in subfolders(folder):
            items.extend(folder_items(sub, recursive=True))
    return items


def is_descendant_of(node: InventoryNode, ancestor: InventoryNode) -> bool:
    current = node.parent
    while current is not None:
        if current is ancestor:
            return True
        current = current.parent
    return False


# ─────────────────────────────────────────────────────────────────
# Paths
# ─────────────────────────────────────────────────────────────────

def path_segments(node: InventoryNode, root: Optional[InventoryNode] = None) -> List[str]:
    """Names from just below root down to node. The root contributes nothing."""
    segments = []
    current = node
    while current is not None and current is not root and current.parent is not None:
        segments.append(current.name)
        current = current.parent
    segments.reverse()
    return segments


def full_path(node: InventoryNode, root: Optional[InventoryNode] = None) -> str:
    """
    Slash-delimited path of node, as shown in a breadcrumb.

    root is the designated top folder (e.g. #RLV); without one the walk stops
    at the parentless node. Either way the top contributes nothing.
    """
    return PATH_SEPARATOR.join(path_segments(node, root))


def find_folder(root: InventoryNode, path: str) -> Optional[InventoryNode]:
    """
    Resolve a '/'-delimited folder path below root, case-insensitively.

    Depth-first: when sibling folders share a name, the first one whose
    subtree completes the path wins.
    """
    segments = [s for s in path.strip().strip(PATH_SEPARATOR).lower().split(PATH_SEPARATOR)]
    if segments == [""]:
        return root
    return _find_segments(root, segments)


def _find_segments(folder: InventoryNode, segments: Sequence[str]) -> Optional[InventoryNode]:
    if not segments:
        return folder
    head, rest = segments[0], segments[1:]
    for child in folder.children:
        if child.is_folder and child.name.lower() == head:
            found = _find_segments(child, rest)
            if found:
                return found
    return None


# ─────────────────────────────────────────────────────────────────
# Keyword Search
# ─────────────────────────────────────────────────────────────────

def find_folders_by_keywords(root: InventoryNode, keywords: Sequence[str]) -> List[InventoryNode]:
    """
    Every visible folder below root whose path contains all keywords.

    Each keyword must equal one whole path segment (case-insensitive), in any
    order. Results are in pre-order discovery order. Hidden folders and
    their subtrees are skipped.
    """
    wanted = [k.strip().lower() for k in keywords if k.strip()]
    if not wanted:
        return []
    return _keyword_matches(root, [], wanted)


def _keyword_matches(folder: InventoryNode, ancestors: List[str], wanted: List[str]) -> List[InventoryNode]:
    matches = []
    for child in subfolders(folder):
        path = ancestors + [child.name.lower()]
        if all(k in path for k in wanted):
            matches.append(child)
        matches.extend(_keyword_matches(child, path, wanted))
    return matches


def best_keyword_match(root: InventoryNode, keywords: Sequence[str]) -> Optional[InventoryNode]:
    """The deepest keyword match; ties go to the first one found."""
    best = None
    best_depth = -1
    for folder in find_folders_by_keywords(root, keywords):
        depth = full_path(folder, root).count(PATH_SEPARATOR)
        if depth > best_depth:
            best, best_depth = folder, depth
    return best
