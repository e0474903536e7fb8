"""
RLV Command Parser
==================
Turns one raw chat line into structured RLV commands.

Grammar (one comma-separated segment):

    behaviour[:option]=param

- behaviour: anything except ':' and '='      (lower-cased)
- option:    anything except '='              (trimmed, case preserved)
- param:     a bare word                      (lower-cased)

Segments that do not match are silently dropped.
"""

import re
from typing import List, Optional
from dataclasses import dataclass


# ─────────────────────────────────────────────────────────────────
# Grammar Constants
# ─────────────────────────────────────────────────────────────────

COMMAND_PREFIX = "@"
CLEAR_KEYWORD = "clear"

PARAM_ADD = "n"        # Canonical "add this rule"
PARAM_REMOVE = "y"     # Canonical "remove this rule"
PARAM_FORCE = "force"  # Gates action verbs

# Folded into the canonical sentinels before anything else sees them
PARAM_SYNONYMS = {
    "add": PARAM_ADD,
    "rem": PARAM_REMOVE,
}

RLV_REGEX = re.compile(
    r"(?P<behaviour>[^:=]+)(:(?P<option>[^=]*))?=(?P<param>\w+)",
    re.IGNORECASE,
)


@dataclass
class ParsedCommand:
    """One matched segment of an RLV chat line."""
    behaviour: str
    option: str
    param: str
    issuer_id: str
    issuer_name: str = ""

    @property
    def is_add(self) -> bool:
        return self.param == PARAM_ADD

    @property
    def is_remove(self) -> bool:
        return self.param == PARAM_REMOVE

    @property
    def is_toggle(self) -> bool:
        """True if this command mutates the rule store instead of running a verb."""
        return self.param in (PARAM_ADD, PARAM_REMOVE)

    @property
    def is_forced(self) -> bool:
        return self.param == PARAM_FORCE

    def __str__(self) -> str:
        return format_command(self)


# ─────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────

def is_command_line(text: Optional[str]) -> bool:
    """Check whether a chat line is addressed to the RLV engine at all."""
    return bool(text) and text.startswith(COMMAND_PREFIX)


def is_clear_line(text: Optional[str]) -> bool:
    """The bare '@clear' line drops every rule of its issuer."""
    if not is_command_line(text):
        return False
    return text.strip().lower() == COMMAND_PREFIX + CLEAR_KEYWORD


def normalize_param(param: str) -> str:
    param = param.lower()
    return PARAM_SYNONYMS.get(param, param)


def parse_segment(segment: str, issuer_id: str, issuer_name: str = "") -> Optional[ParsedCommand]:
    """Match a single segment against the grammar. Returns None on mismatch."""
    segment = segment.strip()
    # Some controllers repeat the sentinel on every segment ("@a=n,@b=n")
    if segment.startswith(COMMAND_PREFIX):
        segment = segment[len(COMMAND_PREFIX):]
    m = RLV_REGEX.fullmatch(segment)
    if not m:
        return None

    return ParsedCommand(
        behaviour=m.group('behaviour').strip().lower(),
        option=(m.group('option') or "").strip(),
        param=normalize_param(m.group('param')),
        issuer_id=issuer_id,
        issuer_name=issuer_name,
    )


def parse_line(text: str, issuer_id: str, issuer_name: str = "") -> List[ParsedCommand]:
    """
    Parse a chat line into commands, preserving source order.

    Returns an empty list for lines that are not command lines, for the
    '@clear' special case, and for lines where no segment matches.
    """
    if not is_command_line(text) or is_clear_line(text):
        return []

    commands = []
    for segment in text[len(COMMAND_PREFIX):].split(','):
        cmd = parse_segment(segment, issuer_id, issuer_name)
        if cmd:
            commands.append(cmd)
    return commands


def format_command(cmd: ParsedCommand) -> str:
    """Render a parsed command back to 'behaviour[:option]=param'."""
    if cmd.option:
        return f"{cmd.behaviour}:{cmd.option}={cmd.param}"
    return f"{cmd.behaviour}={cmd.param}"
