# participium_bot/core/bots/report_bot/keyboards.py
"""Keyboards attached to report-bot prompts."""
from __future__ import annotations

from participium_bot.core.bots.report_bot.texts import get_text
from participium_bot.core.engine.actions import (
    AnonymityChoice,
    CategorySelect,
    ConfirmChoice,
    PhotosDone,
    UnlinkChoice,
)
from participium_bot.core.engine.domain import ReportCategory
from participium_bot.core.engine.ports import InlineButton, InlineKeyboard, LocationRequestKeyboard


def location_request_keyboard() -> LocationRequestKeyboard:
    return LocationRequestKeyboard(button_text=get_text("btn_send_location"))


def category_keyboard() -> InlineKeyboard:
    """One category per row; the button index is the category position."""
    return InlineKeyboard(rows=[
        [InlineButton(text=category.value, action=CategorySelect(index=i))]
        for i, category in enumerate(ReportCategory.ordered())
    ])


def done_keyboard() -> InlineKeyboard:
    return InlineKeyboard(rows=[[InlineButton(text=get_text("btn_done"), action=PhotosDone())]])


def anonymity_keyboard() -> InlineKeyboard:
    return InlineKeyboard(rows=[
        [InlineButton(text=get_text("btn_anon_yes"), action=AnonymityChoice(anonymous=True))],
        [InlineButton(text=get_text("btn_anon_no"), action=AnonymityChoice(anonymous=False))],
    ])


def confirm_keyboard() -> InlineKeyboard:
    return InlineKeyboard(rows=[
        [InlineButton(text=get_text("btn_confirm"), action=ConfirmChoice(confirm=True))],
        [InlineButton(text=get_text("btn_cancel"), action=ConfirmChoice(confirm=False))],
    ])


def unlink_keyboard() -> InlineKeyboard:
    # Both buttons on one row
    return InlineKeyboard(rows=[[
        InlineButton(text=get_text("btn_unlink_confirm"), action=UnlinkChoice(confirm=True)),
        InlineButton(text=get_text("btn_unlink_cancel"), action=UnlinkChoice(confirm=False)),
    ]])
