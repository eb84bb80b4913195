# participium_bot/core/bots/report_bot/validators.py
"""
Text checks for the report bot.

Kept free of session state so they can be tested on their own.
"""
from __future__ import annotations

import re
from typing import Optional

__all__ = [
    "norm", "is_blank", "is_done_command",
    "split_command", "parse_link_code",
    "DONE_LITERALS",
]

# "Done" in English and Italian, compared case-insensitively
DONE_LITERALS = frozenset({"done", "fatto"})

_LINK_CODE_RE = re.compile(r"^[0-9]{6}$")
_COMMAND_RE = re.compile(r"^/([A-Za-z0-9_]+)(?:@[A-Za-z0-9_]+)?(?:\s+(.*))?$", re.DOTALL)


def norm(s: Optional[str]) -> str:
    """Strip whitespace from *s* (None-safe)."""
    return (s or "").strip()


def is_blank(s: Optional[str]) -> bool:
    return not norm(s)


def is_done_command(s: Optional[str]) -> bool:
    """True for the photo-step completion literal (``Done`` / ``Fatto``)."""
    return norm(s).lower() in DONE_LITERALS


def split_command(text: str) -> tuple[str, str] | None:
    """
    Split ``/cmd@BotName args`` into ``("cmd", "args")``.

    The command name is lower-cased and the ``@BotName`` suffix dropped.
    Returns None when *text* is not a command.
    """
    match = _COMMAND_RE.match(norm(text))
    if not match:
        return None
    return match.group(1).lower(), norm(match.group(2))


def parse_link_code(args: str) -> Optional[str]:
    """
    Validate ``/link`` arguments.

    Exactly one argument made of exactly six digits; anything else yields None.
    """
    parts = args.split()
    if len(parts) != 1:
        return None
    code = parts[0]
    return code if _LINK_CODE_RE.match(code) else None
