# participium_bot/core/engine/actions.py
"""
Inline button actions.

Telegram hands back a short ``callback_data`` string when a button is
pressed.  The transport decodes it once with ``decode_action`` and the rest
of the bot only ever sees one of the dataclasses below, so unknown or
malformed payloads never reach the wizard.

Wire format::

    cat_<index>      CategorySelect(index)
    done             PhotosDone()
    anon_yes/no      AnonymityChoice(anonymous)
    confirm_yes/no   ConfirmChoice(confirm)
    unlink_confirm   UnlinkChoice(confirm=True)
    unlink_cancel    UnlinkChoice(confirm=False)
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class CategorySelect:
    index: int


@dataclass(frozen=True)
class PhotosDone:
    pass


@dataclass(frozen=True)
class AnonymityChoice:
    anonymous: bool


@dataclass(frozen=True)
class ConfirmChoice:
    confirm: bool


@dataclass(frozen=True)
class UnlinkChoice:
    confirm: bool


ButtonAction = Union[CategorySelect, PhotosDone, AnonymityChoice, ConfirmChoice, UnlinkChoice]

_CATEGORY_RE = re.compile(r"^cat_(\d{1,3})$")

_FIXED_ACTIONS: dict[str, ButtonAction] = {
    "done": PhotosDone(),
    "anon_yes": AnonymityChoice(anonymous=True),
    "anon_no": AnonymityChoice(anonymous=False),
    "confirm_yes": ConfirmChoice(confirm=True),
    "confirm_no": ConfirmChoice(confirm=False),
    "unlink_confirm": UnlinkChoice(confirm=True),
    "unlink_cancel": UnlinkChoice(confirm=False),
}


def decode_action(data: str | None) -> ButtonAction | None:
    """Parse ``callback_data`` into an action, or None if it is not ours."""
    if not data:
        return None

    action = _FIXED_ACTIONS.get(data)
    if action is not None:
        return action

    match = _CATEGORY_RE.match(data)
    if match:
        return CategorySelect(index=int(match.group(1)))

    return None


def encode_action(action: ButtonAction) -> str:
    """Inverse of ``decode_action``."""
    if isinstance(action, CategorySelect):
        return f"cat_{action.index}"
    if isinstance(action, PhotosDone):
        return "done"
    if isinstance(action, AnonymityChoice):
        return "anon_yes" if action.anonymous else "anon_no"
    if isinstance(action, ConfirmChoice):
        return "confirm_yes" if action.confirm else "confirm_no"
    if isinstance(action, UnlinkChoice):
        return "unlink_confirm" if action.confirm else "unlink_cancel"
    raise TypeError(f"Unknown button action: {action!r}")
