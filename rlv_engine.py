"""
RLV Engine
==========
Entry point and command dispatch for the RLV remote-control protocol.

Chat lines from in-world objects come in through process_chat_line(). Each
parsed command is either:

- a restriction toggle (param 'n' / 'y'), applied to the rule store,
- a query, answered on the numeric chat channel given as the param,
- an action, run through the collaborators only when param is 'force',
- a direct command ('clear'), run with whatever param it carries.

The engine holds no state between lines except the rule store.
"""

import asyncio
import logging
import math
import uuid
from typing import Awaitable, Callable, Dict, List, Optional
from dataclasses import dataclass, field

from config import RlvSettings
from rlv_parser import ParsedCommand, is_clear_line, is_command_line, parse_line
from rule_store import ChangeCallback, RestrictionRule, RuleStore
from inventory import (
    ATTACHMENT_POINTS, BODYPARTS, OBJECT, WEARABLE, WEARABLE_TYPES,
    InventoryNode, best_keyword_match, find_folder, find_folders_by_keywords,
    folder_items, full_path, is_descendant_of, subfolders,
)
from permissions import RlvPermissions
from collector import StaleRuleCollector
from collaborators import GroupService, OutfitManager, WorldSession
from notifications import item_change, parse_notify_option, rule_change


logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────
# Protocol Constants
# ─────────────────────────────────────────────────────────────────

RLV_VERSION = "RestrainedLife viewer v1.23"
RLV_VERSION_NEW = "RestrainedLove viewer v1.23"
RLV_VERSION_NUM = "1230100"
NULL_KEY = "00000000-0000-0000-0000-000000000000"

# Command kinds
QUERY = 'query'
ACTION = 'action'
DIRECT = 'direct'

Handler = Callable[[ParsedCommand], Awaitable[Optional[str]]]


class RlvArgumentError(ValueError):
    """A channel, coordinate, id or point argument could not be used."""


@dataclass
class CommandSpec:
    name: str
    handler: Handler
    kind: str
    usage: str = ""
    help: str = ""
    aliases: List[str] = field(default_factory=list)


class RlvEngine:
    """
    The RLV engine.

    Responsibilities:
    - Parse '@' chat lines and apply restriction toggles
    - Dispatch query/action verbs through a lookup table
    - Notify subscribers and @notify listeners when rules change
    - Run the stale-rule collector while enabled
    """

    def __init__(self, session: WorldSession, outfit: OutfitManager, groups: GroupService,
                 settings: Optional[RlvSettings] = None, store: Optional[RuleStore] = None):
        self.settings = settings or RlvSettings()
        self.session = session
        self.outfit = outfit
        self.groups = groups
        self.store = store or RuleStore()
        self.permissions = RlvPermissions(self.store, outfit)
        self.collector = StaleRuleCollector(self.store, session, self.settings.cleanup_interval)

        self.commands: Dict[str, CommandSpec] = {}
        self.command_meta: Dict[str, CommandSpec] = {}  # primary names only
        self._subscribers: List[ChangeCallback] = []
        self._enabled = False

        self.store.subscribe(self._on_rule_changed)
        self._register_builtins()
        self.enabled = self.settings.enabled

    def _register_builtins(self):
        """Register the built-in verb table."""
        # Version queries
        self.register_command('version', self._cmd_version, QUERY,
            usage='@version=<channel>', help='Reply with the RestrainedLife version string')
        self.register_command('versionnew', self._cmd_version_new, QUERY,
            usage='@versionnew=<channel>', help='Reply with the RestrainedLove version string')
        self.register_command('versionnum', self._cmd_version_num, QUERY,
            usage='@versionnum=<channel>', help='Reply with the numeric protocol version')

        # State queries
        self.register_command('getgroup', self._cmd_get_group, QUERY,
            usage='@getgroup=<channel>', help='Reply with the active group name or "none"')
        self.register_command('getsitid', self._cmd_get_sit_id, QUERY,
            usage='@getsitid=<channel>', help='Reply with the id of the object sat on')
        self.register_command('getstatus', self._cmd_get_status, QUERY,
            usage='@getstatus[:filter[;sep]]=<channel>', help="List the issuer's restrictions")
        self.register_command('getstatusall', self._cmd_get_status_all, QUERY,
            usage='@getstatusall[:filter[;sep]]=<channel>', help='List every restriction')
        self.register_command('getoutfit', self._cmd_get_outfit, QUERY,
            usage='@getoutfit[:layer]=<channel>', help='0/1 per worn wearable layer')
        self.register_command('getattach', self._cmd_get_attach, QUERY,
            usage='@getattach[:point]=<channel>', help='0/1 per occupied attachment point')

        # Shared folder queries
        self.register_command('getinv', self._cmd_get_inv, QUERY,
            usage='@getinv[:path]=<channel>', help='List subfolders of a shared folder')
        self.register_command('getinvworn', self._cmd_get_inv_worn, QUERY,
            usage='@getinvworn[:path]=<channel>', help='Worn summary of a shared folder')
        self.register_command('findfolder', self._cmd_find_folder, QUERY,
            usage='@findfolder:kw1&&kw2=<channel>', help='Path of the deepest keyword match')
        self.register_command('findfolders', self._cmd_find_folders, QUERY,
            usage='@findfolders:kw1&&kw2[;sep]=<channel>', help='Paths of every keyword match')
        self.register_command('getpath', self._cmd_get_path, QUERY,
            usage='@getpath[:point|layer]=<channel>', help='Folder of an attached item')
        self.register_command('getpathnew', self._cmd_get_path_new, QUERY,
            usage='@getpathnew[:point|layer]=<channel>', help='Folders of every matching item')

        # Movement actions
        self.register_command('sit', self._cmd_sit, ACTION,
            usage='@sit:<uuid>=force', help='Sit on an object')
        self.register_command('unsit', self._cmd_unsit, ACTION,
            usage='@unsit=force', help='Stand up')
        self.register_command('sitground', self._cmd_sit_ground, ACTION,
            usage='@sitground=force', help='Sit on the ground')
        self.register_command('setrot', self._cmd_set_rot, ACTION,
            usage='@setrot:<radians>=force', help='Turn the avatar')
        self.register_command('tpto', self._cmd_tp_to, ACTION,
            usage='@tpto:[region/]x/y/z[/lookat]=force', help='Teleport to coordinates')
        self.register_command('setgroup', self._cmd_set_group, ACTION,
            usage='@setgroup:<name|uuid>[;role]=force', help='Activate a group and optional role')

        # Outfit actions
        self.register_command('attach', self._cmd_attach, ACTION,
            usage='@attach:<path>=force', help='Wear a shared folder, replacing')
        self.register_command('attachover', self._cmd_attach_over, ACTION,
            usage='@attachover:<path>=force', help='Wear a shared folder, adding')
        self.register_command('attachoverorreplace', self._cmd_attach_over_or_replace, ACTION,
            usage='@attachoverorreplace:<path>=force', help="Wear a shared folder, '+' folders add")
        self.register_command('attachall', self._cmd_attach_all, ACTION,
            usage='@attachall:<path>=force', help='Wear a shared folder and its subfolders, replacing')
        self.register_command('attachallover', self._cmd_attach_all_over, ACTION,
            usage='@attachallover:<path>=force', help='Wear a shared folder and its subfolders, adding')
        self.register_command('attachalloverorreplace', self._cmd_attach_all_over_or_replace, ACTION,
            usage='@attachalloverorreplace:<path>=force', help="Recursive wear, '+' folders add")
        self.register_command('detach', self._cmd_detach, ACTION,
            aliases=['remattach'],
            usage='@detach[:point|path]=force', help='Take off attachments or a shared folder')
        self.register_command('detachall', self._cmd_detach_all, ACTION,
            usage='@detachall:<path>=force', help='Take off a shared folder and its subfolders')
        self.register_command('detachme', self._cmd_detach_me, ACTION,
            usage='@detachme=force', help='Detach the issuing object')
        self.register_command('remoutfit', self._cmd_rem_outfit, ACTION,
            usage='@remoutfit[:layer]=force', help='Take off wearables')

        # Rule maintenance
        self.register_command('clear', self._cmd_clear, DIRECT,
            usage='@clear[=filter]', help="Drop the issuer's rules matching a filter")

    def register_command(self, name: str, handler: Handler, kind: str,
                         aliases: List[str] = None, usage: str = None, help: str = ''):
        """Register a verb handler with metadata."""
        name_lower = name.lower()
        spec = CommandSpec(name_lower, handler, kind, usage or name, help, aliases or [])
        self.commands[name_lower] = spec
        self.command_meta[name_lower] = spec

        for alias in (aliases or []):
            self.commands[alias.lower()] = spec

    # ─────────────────────────────────────────────────────────────
    # Enable Flag & Change Notification
    # ─────────────────────────────────────────────────────────────

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool):
        value = bool(value)
        changed = value != self._enabled
        self._enabled = value

        if value and self.settings.cleanup_interval > 0:
            self.collector.interval = self.settings.cleanup_interval
            self.collector.start()
        else:
            self.collector.stop()

        if changed:
            self._fire(None, value)

    def close(self) -> None:
        """Stop background work."""
        self.collector.stop()

    def subscribe(self, callback: ChangeCallback) -> None:
        """Called with (rule, added) on rule changes, (None, enabled) on bulk changes."""
        self._subscribers.append(callback)

    def _fire(self, rule: Optional[RestrictionRule], added: bool) -> None:
        for callback in list(self._subscribers):
            callback(rule, added)

    def _on_rule_changed(self, rule: Optional[RestrictionRule], added: bool) -> None:
        if self.settings.debug_commands:
            logger.info("[RLV] Restriction Updated: %s (%s)", rule or "bulk", "added" if added else "removed")
        if rule is not None:
            self._send_notifications(rule_change(rule.behaviour, rule.option, added))
        self._fire(rule, added)

    def _send_notifications(self, text: str) -> None:
        """Send text to every @notify channel whose filter matches it."""
        sent = set()
        for r in self.store.rules("notify"):
            parsed = parse_notify_option(r.option)
            if not parsed:
                continue
            channel, filter_text = parsed
            if channel in sent or filter_text not in text:
                continue
            sent.add(channel)
            self.reply(channel, text)

    def report_item_change(self, item: InventoryNode, added: bool) -> None:
        """Tell @notify listeners that an item was worn/attached or taken off."""
        if not self.enabled:
            return
        if item.kind == OBJECT:
            kind, target = "object", item.point or "none"
        else:
            kind, target = "wearable", item.layer
        if added:
            legal = not self.permissions.attach_locked(item)
        else:
            legal = not self.permissions.detach_locked(item)
        self._send_notifications(str(item_change(kind, added, legal, target)))

    # ─────────────────────────────────────────────────────────────
    # Command Processing
    # ─────────────────────────────────────────────────────────────

    async def process_chat_line(self, text: str, issuer_id: str, issuer_name: str = "") -> bool:
        """
        Process one chat line from an issuer.

        Returns True if the line was an RLV command line (whether or not any
        segment matched), so the caller can hide it from ordinary chat.
        """
        if not self.enabled or not is_command_line(text):
            return False

        if is_clear_line(text):
            self.store.clear_issuer(issuer_id)
            return True

        for cmd in parse_line(text, issuer_id, issuer_name):
            await self.execute(cmd)
        return True

    async def execute(self, cmd: ParsedCommand) -> None:
        """Run one command. A failing command never stops the rest of its line."""
        try:
            await self._dispatch(cmd)
        except RlvArgumentError as e:
            logger.debug("Skipping @%s: %s", cmd, e)
        except asyncio.TimeoutError:
            logger.warning("Timed out running @%s", cmd)
        except Exception:
            logger.exception("Failed to run @%s from %s", cmd, cmd.issuer_id)

    async def _dispatch(self, cmd: ParsedCommand) -> None:
        spec = self.commands.get(cmd.behaviour)

        # Direct verbs take any param, including the toggle sentinels
        if spec and spec.kind == DIRECT:
            await spec.handler(cmd)
            return

        if cmd.is_add:
            self.store.add(RestrictionRule(cmd.behaviour, cmd.option, cmd.issuer_id, cmd.issuer_name))
            return
        if cmd.is_remove:
            self.store.remove_matching(cmd.behaviour, cmd.issuer_id, cmd.option)
            return

        if not spec:
            logger.debug("Unknown RLV behaviour: %s", cmd.behaviour)
            return

        if spec.kind == ACTION:
            if cmd.is_forced:
                await spec.handler(cmd)
        elif spec.kind == QUERY:
            channel = self._channel(cmd)
            reply = await spec.handler(cmd)
            if reply is not None:
                self.reply(channel, reply)

    def reply(self, channel: int, text: str) -> None:
        if self.settings.debug_commands:
            logger.info("[RLV] Send channel %d: %s", channel, text)
        self.session.send_chat(channel, text)

    # ─────────────────────────────────────────────────────────────
    # Argument Helpers
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def _channel(cmd: ParsedCommand) -> int:
        try:
            channel = int(cmd.param)
        except ValueError:
            raise RlvArgumentError(f"bad channel '{cmd.param}'")
        if channel <= 0:
            raise RlvArgumentError(f"channel must be positive, got {channel}")
        return channel

    @staticmethod
    def _float(text: str) -> float:
        try:
            value = float(text)
        except ValueError:
            raise RlvArgumentError(f"bad number '{text}'")
        if math.isnan(value) or math.isinf(value):
            raise RlvArgumentError(f"bad number '{text}'")
        return value

    def _shared_folder(self, path: str) -> Optional[InventoryNode]:
        root = self.outfit.restriction_root()
        if root is None:
            return None
        return find_folder(root, path)

    def _shared_path(self, node: InventoryNode) -> str:
        return full_path(node, self.outfit.restriction_root())

    def _worn(self, kind: Optional[str] = None) -> List[InventoryNode]:
        items = self.outfit.worn_items()
        if kind == OBJECT:
            return [i for i in items if i.kind == OBJECT]
        if kind == WEARABLE:
            return [i for i in items if i.kind != OBJECT]
        return items

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    async def _cmd_version(self, cmd: ParsedCommand) -> str:
        return f"{RLV_VERSION} ({self.settings.client_name})"

    async def _cmd_version_new(self, cmd: ParsedCommand) -> str:
        return f"{RLV_VERSION_NEW} ({self.settings.client_name})"

    async def _cmd_version_num(self, cmd: ParsedCommand) -> str:
        return RLV_VERSION_NUM

    async def _cmd_get_group(self, cmd: ParsedCommand) -> Optional[str]:
        try:
            name = await asyncio.wait_for(self.groups.active_group_name(),
                                          self.settings.group_name_timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out while waiting for the active group name")
            return None
        return name or "none"

    async def _cmd_get_sit_id(self, cmd: ParsedCommand) -> str:
        return self.session.sitting_on() or NULL_KEY

    async def _cmd_get_status(self, cmd: ParsedCommand) -> str:
        return self._status(cmd, cmd.issuer_id)

    async def _cmd_get_status_all(self, cmd: ParsedCommand) -> str:
        return self._status(cmd, None)

    def _status(self, cmd: ParsedCommand, issuer_id: Optional[str]) -> str:
        filter_text, _, separator = cmd.option.partition(';')
        separator = separator or "/"
        return "".join(f"{separator}{r}" for r in self.store.rules(issuer_id=issuer_id)
                       if filter_text in r.behaviour)

    async def _cmd_get_outfit(self, cmd: ParsedCommand) -> str:
        worn = {i.layer for i in self._worn(WEARABLE)}
        layer = cmd.option.lower()
        if layer:
            if layer not in WEARABLE_TYPES:
                raise RlvArgumentError(f"unknown layer '{cmd.option}'")
            return "1" if layer in worn else "0"
        return "".join("1" if t in worn else "0" for t in WEARABLE_TYPES)

    async def _cmd_get_attach(self, cmd: ParsedCommand) -> str:
        occupied = {i.point for i in self._worn(OBJECT)}
        point = cmd.option.lower()
        if point:
            if point not in ATTACHMENT_POINTS:
                raise RlvArgumentError(f"unknown attachment point '{cmd.option}'")
            return "1" if point in occupied else "0"
        return "".join("1" if p in occupied else "0" for p in ATTACHMENT_POINTS)

    async def _cmd_get_inv(self, cmd: ParsedCommand) -> str:
        folder = self._shared_folder(cmd.option)
        if folder is None:
            return ""
        return ",".join(f.name for f in subfolders(folder))

    async def _cmd_get_inv_worn(self, cmd: ParsedCommand) -> str:
        """
        '|XY' for the folder itself, then 'name|XY' per visible subfolder.

        X covers the folder's own items, Y everything below it:
        0 no items, 1 none worn, 2 some worn, 3 all worn.
        """
        folder = self._shared_folder(cmd.option)
        if folder is None:
            return ""
        parts = [f"|{self._worn_code(folder)}"]
        for sub in subfolders(folder):
            parts.append(f"{sub.name}|{self._worn_code(sub)}")
        return ",".join(parts)

    def _worn_code(self, folder: InventoryNode) -> str:
        own = folder_items(folder)
        below = [i for sub in subfolders(folder) for i in folder_items(sub, recursive=True)]
        return f"{self._worn_digit(own)}{self._worn_digit(below)}"

    def _worn_digit(self, items: List[InventoryNode]) -> int:
        if not items:
            return 0
        worn = sum(1 for i in items if self.outfit.is_worn(i))
        if worn == 0:
            return 1
        return 3 if worn == len(items) else 2

    async def _cmd_find_folder(self, cmd: ParsedCommand) -> str:
        root = self.outfit.restriction_root()
        if root is None:
            return ""
        best = best_keyword_match(root, cmd.option.split("&&"))
        return full_path(best, root) if best else ""

    async def _cmd_find_folders(self, cmd: ParsedCommand) -> str:
        root = self.outfit.restriction_root()
        if root is None:
            return ""
        keywords, _, separator = cmd.option.partition(';')
        matches = find_folders_by_keywords(root, keywords.split("&&"))
        return (separator or ",").join(full_path(f, root) for f in matches)

    async def _cmd_get_path(self, cmd: ParsedCommand) -> str:
        paths = self._item_paths(cmd)
        return paths[0] if paths else ""

    async def _cmd_get_path_new(self, cmd: ParsedCommand) -> str:
        return ",".join(self._item_paths(cmd))

    def _item_paths(self, cmd: ParsedCommand) -> List[str]:
        """Shared-folder paths of the issuer's item, or of items worn on a point/layer."""
        target = cmd.option.lower()
        if not target:
            item = self.outfit.item_for_object(cmd.issuer_id)
            items = [item] if item else []
        elif target in ATTACHMENT_POINTS:
            items = [i for i in self._worn(OBJECT) if i.point == target]
        elif target in WEARABLE_TYPES:
            items = [i for i in self._worn(WEARABLE) if i.layer == target]
        else:
            raise RlvArgumentError(f"unknown point or layer '{cmd.option}'")

        root = self.outfit.restriction_root()
        paths = []
        for item in items:
            if root is None or item.parent is None or not is_descendant_of(item, root):
                continue
            path = full_path(item.parent, root)
            if path not in paths:
                paths.append(path)
        return paths

    # ─────────────────────────────────────────────────────────────
    # Movement Actions
    # ─────────────────────────────────────────────────────────────

    async def _cmd_sit(self, cmd: ParsedCommand) -> None:
        try:
            target = uuid.UUID(cmd.option)
        except ValueError:
            raise RlvArgumentError(f"bad sit target '{cmd.option}'")
        await self.session.sit_on(str(target))

    async def _cmd_unsit(self, cmd: ParsedCommand) -> None:
        await self.session.stand()

    async def _cmd_sit_ground(self, cmd: ParsedCommand) -> None:
        await self.session.sit_ground()

    async def _cmd_set_rot(self, cmd: ParsedCommand) -> None:
        angle = self._float(cmd.option)
        await self.session.set_heading(math.pi / 2 - angle)

    async def _cmd_tp_to(self, cmd: ParsedCommand) -> None:
        """3 fields: global x/y/z. 4: region/x/y/z. 5: region/x/y/z/lookat."""
        fields = cmd.option.split('/')
        if len(fields) == 3:
            x, y, z = (self._float(f) for f in fields)
            await self.session.teleport_global(x, y, z)
        elif len(fields) in (4, 5):
            region = fields[0].strip()
            if not region:
                raise RlvArgumentError("missing region name")
            x, y, z = (self._float(f) for f in fields[1:4])
            lookat = self._float(fields[4]) if len(fields) == 5 else None
            await self.session.teleport_region(region, x, y, z, lookat)
        else:
            raise RlvArgumentError(f"bad coordinates '{cmd.option}'")

    async def _cmd_set_group(self, cmd: ParsedCommand) -> None:
        group_ref, _, role_name = cmd.option.partition(';')
        group = self.groups.find_group(group_ref.strip())
        if group is None:
            logger.debug("setgroup: no group matching '%s'", group_ref)
            return

        role_id = None
        role_name = role_name.strip()
        if role_name:
            try:
                role_id = await asyncio.wait_for(self.groups.request_role_id(group.id, role_name),
                                                 self.settings.role_lookup_timeout)
            except asyncio.TimeoutError:
                logger.warning("setgroup: timed out waiting for roles of %s, activating without title", group.name)

        await self.groups.activate_group(group.id)
        if role_id:
            await self.groups.activate_title(group.id, role_id)

    # ─────────────────────────────────────────────────────────────
    # Outfit Actions
    # ─────────────────────────────────────────────────────────────

    async def _cmd_attach(self, cmd: ParsedCommand) -> None:
        await self._attach_folder(cmd.option, recursive=False, replace=True)

    async def _cmd_attach_over(self, cmd: ParsedCommand) -> None:
        await self._attach_folder(cmd.option, recursive=False, replace=False)

    async def _cmd_attach_over_or_replace(self, cmd: ParsedCommand) -> None:
        await self._attach_folder(cmd.option, recursive=False, replace=None)

    async def _cmd_attach_all(self, cmd: ParsedCommand) -> None:
        await self._attach_folder(cmd.option, recursive=True, replace=True)

    async def _cmd_attach_all_over(self, cmd: ParsedCommand) -> None:
        await self._attach_folder(cmd.option, recursive=True, replace=False)

    async def _cmd_attach_all_over_or_replace(self, cmd: ParsedCommand) -> None:
        await self._attach_folder(cmd.option, recursive=True, replace=None)

    async def _attach_folder(self, path: str, recursive: bool, replace: Optional[bool]) -> None:
        """replace=None means folders named '+...' add and the rest replace."""
        folder = self._shared_folder(path)
        if folder is None or not path.strip():
            return
        if replace is None:
            replace = not folder.name.startswith('+')

        items = [i for i in folder_items(folder, recursive)
                 if not self.outfit.is_worn(i) and self.permissions.can_attach(i)]

        # Items that would knock off something pinned go on over it instead
        held = [i for i in items if self._displaces_locked(i)] if replace else items
        replacing = [i for i in items if i not in held]

        await self._wear(replacing, replace=True)
        await self._wear(held, replace=False)

    def _displaces_locked(self, item: InventoryNode) -> bool:
        """Whether a replacing attach of item would take off a worn item that may not come off."""
        if item.kind == OBJECT:
            occupants = [w for w in self._worn(OBJECT) if w.point == item.point]
        else:
            occupants = [w for w in self._worn(WEARABLE) if w.layer == item.layer]
        return any(not self.permissions.can_detach(w) for w in occupants)

    async def _wear(self, items: List[InventoryNode], replace: bool) -> None:
        wearables = [i for i in items if i.kind != OBJECT]
        objects = [i for i in items if i.kind == OBJECT]
        if wearables:
            await self.outfit.add_to_outfit(wearables, replace)
        if objects:
            await self.outfit.attach(objects, replace)

    async def _cmd_detach(self, cmd: ParsedCommand) -> None:
        target = cmd.option.strip()
        if not target:
            items = self._worn(OBJECT)
        elif target.lower() in ATTACHMENT_POINTS:
            items = [i for i in self._worn(OBJECT) if i.point == target.lower()]
        else:
            folder = self._shared_folder(target)
            items = folder_items(folder) if folder else []
        await self._detach_items(items)

    async def _cmd_detach_all(self, cmd: ParsedCommand) -> None:
        if not cmd.option.strip():
            return
        folder = self._shared_folder(cmd.option)
        if folder is not None:
            await self._detach_items(folder_items(folder, recursive=True))

    async def _cmd_detach_me(self, cmd: ParsedCommand) -> None:
        item = self.outfit.item_for_object(cmd.issuer_id)
        if item is not None:
            await self._detach_items([item])

    async def _cmd_rem_outfit(self, cmd: ParsedCommand) -> None:
        layer = cmd.option.strip().lower()
        if layer and layer not in WEARABLE_TYPES:
            raise RlvArgumentError(f"unknown layer '{cmd.option}'")
        items = [i for i in self._worn(WEARABLE)
                 if i.layer not in BODYPARTS and (not layer or i.layer == layer)]
        await self._detach_items(items)

    async def _detach_items(self, items: List[InventoryNode]) -> None:
        removable = [i for i in items if self.outfit.is_worn(i) and self.permissions.can_detach(i)]
        if removable:
            await self.outfit.remove_from_outfit(removable)

    # ─────────────────────────────────────────────────────────────
    # Rule Maintenance
    # ─────────────────────────────────────────────────────────────

    async def _cmd_clear(self, cmd: ParsedCommand) -> None:
        self.store.remove_where(cmd.issuer_id, cmd.param)
