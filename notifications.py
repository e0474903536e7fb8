"""
RLV Notifications
=================
Text reports sent to @notify listeners: rule changes ("/sendchat=n") and
outfit changes ("worn legally shirt", "detached illegally chest").
"""

from enum import Enum
from typing import Optional, Tuple
from dataclasses import dataclass


class Legality(Enum):
    LEGALLY = "legally"
    ILLEGALLY = "illegally"


@dataclass(frozen=True)
class RlvNotification:
    action: str
    type: Optional[str] = None
    legality: Optional[Legality] = None
    param: Optional[str] = None

    @classmethod
    def parse(cls, text: Optional[str]) -> 'RlvNotification':
        """Parse 'action [type] [legally|illegally] [param]'."""
        if not text or not text.strip():
            return cls("")

        text = text.strip()
        if ' ' not in text:
            return cls(text)

        action, rest = text.split(' ', 1)
        rest = rest.strip()

        words = rest.split(' ')
        for i, word in enumerate(words):
            if word in (Legality.LEGALLY.value, Legality.ILLEGALLY.value):
                type_ = ' '.join(words[:i]) or None
                param = ' '.join(words[i + 1:]) or None
                return cls(action, type_, Legality(word), param)

        if ' ' in rest:
            type_, param = rest.split(' ', 1)
            return cls(action, type_, None, param)
        return cls(action, rest)

    def __str__(self) -> str:
        if not self.action:
            return ""
        parts = [self.action]
        if self.type:
            parts.append(self.type)
        if self.legality:
            parts.append(self.legality.value)
        if self.param:
            parts.append(self.param)
        return ' '.join(parts)


def item_change(kind: str, added: bool, legal: bool, target: str) -> RlvNotification:
    """Report for a wearable ('worn'/'unworn') or an object ('attached'/'detached')."""
    if kind == "object":
        action = "attached" if added else "detached"
    else:
        action = "worn" if added else "unworn"
    legality = Legality.LEGALLY if legal else Legality.ILLEGALLY
    return RlvNotification(action, None, legality, target)


def rule_change(behaviour: str, option: str, added: bool) -> str:
    """The '/behaviour[:option]=n|y' line sent when a restriction changes."""
    rule = f"{behaviour}:{option}" if option else behaviour
    return f"/{rule}={'n' if added else 'y'}"


def parse_notify_option(option: str) -> Optional[Tuple[int, str]]:
    """Split a '@notify' option 'channel[;filter]'. None if the channel is not a number."""
    channel, _, filter_text = option.partition(';')
    try:
        number = int(channel.strip())
    except ValueError:
        return None
    return number, filter_text.strip()
