# tests/test_use_cases.py
"""Tests for command routing and account linking in ReportBotEngine"""
import pytest
from unittest.mock import AsyncMock

from participium_bot.core.bots.report_bot.texts import get_text
from participium_bot.core.engine.actions import UnlinkChoice
from participium_bot.core.engine.domain import LinkResult, StepOutcome
from participium_bot.core.engine.errors import ReportError
from participium_bot.core.engine.ports import InlineKeyboard
from participium_bot.core.engine.use_cases import ReportBotEngine
from participium_bot.infra.memory_session_store import InMemorySessionStore
from participium_bot.infra.metrics import get_metrics_collector

from conftest import FakeGateway, FakeUsers, button_event, text_event


class EngineTestBase:
    def setup_method(self):
        self.gateway = FakeGateway()
        self.users = FakeUsers()
        self.wizard = AsyncMock()
        self.wizard.store = InMemorySessionStore()
        self.engine = ReportBotEngine(
            gateway=self.gateway,
            wizard=self.wizard,
            users=self.users,
            call_timeout=1.0,
        )


class TestCommandRouting(EngineTestBase):
    @pytest.mark.asyncio
    async def test_start_sends_welcome(self):
        result = await self.engine.process_event(text_event("/start"))

        assert result == {"kind": "command", "outcome": "accepted"}
        assert self.gateway.last_text == get_text("welcome")
        self.wizard.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_help_with_bot_suffix(self):
        await self.engine.process_event(text_event("/help@ParticipiumBot"))
        assert self.gateway.last_text == get_text("help")

    @pytest.mark.asyncio
    async def test_newreport_delegates_to_wizard(self):
        self.wizard.start.return_value = True

        result = await self.engine.process_event(text_event("/newreport"))

        assert result["outcome"] == "advanced"
        self.wizard.start.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_plain_text_goes_to_wizard(self):
        self.wizard.dispatch.return_value = StepOutcome.IGNORED

        result = await self.engine.process_event(text_event("hello"))

        assert result == {"kind": "text", "outcome": "ignored"}
        self.wizard.dispatch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_metrics_recorded(self):
        await self.engine.process_event(text_event("/start"))

        collector = get_metrics_collector()
        assert collector.get_counter("bot_updates_total", kind="command") == 1
        assert "update_processing_seconds{kind=command}" in collector.get_metrics()["histograms"]


class TestLinkCommand(EngineTestBase):
    @pytest.mark.asyncio
    async def test_link_success(self):
        self.users.link_codes["mario"] = "123456"

        result = await self.engine.process_event(text_event("/link 123456"))

        assert result["outcome"] == "accepted"
        assert self.gateway.last_text == get_text(
            "ok_linked", message="Telegram account linked successfully"
        )

    @pytest.mark.asyncio
    async def test_link_requires_username(self):
        await self.engine.process_event(text_event("/link 123456", username=None))
        assert self.gateway.last_text == get_text("err_username_required_link")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["/link", "/link 123456 654321"])
    async def test_link_usage(self, text):
        result = await self.engine.process_event(text_event(text))

        assert result["outcome"] == "rejected"
        assert self.gateway.last_text == get_text("link_usage")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["12345", "1234567", "abcdef"])
    async def test_malformed_code_rejected_before_backend_call(self, code):
        self.users.verify_and_link = AsyncMock()

        await self.engine.process_event(text_event(f"/link {code}"))

        assert self.gateway.last_text == get_text("err_link_code_format")
        self.users.verify_and_link.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_code(self):
        self.users.link_codes["mario"] = "111111"

        result = await self.engine.process_event(text_event("/link 222222"))

        assert result["outcome"] == "rejected"
        assert self.gateway.last_text == get_text("err_link_failed")

    @pytest.mark.asyncio
    async def test_backend_down(self):
        self.users.verify_and_link = AsyncMock(side_effect=ReportError("unreachable"))

        await self.engine.process_event(text_event("/link 123456"))
        assert self.gateway.last_text == get_text("err_link_failed")


class TestUnlink(EngineTestBase):
    @pytest.mark.asyncio
    async def test_unlink_asks_for_confirmation(self):
        self.users.add("mario", user_id=7)

        result = await self.engine.process_event(text_event("/unlink"))

        assert result["outcome"] == "accepted"
        assert self.gateway.last_text == get_text("q_unlink")
        assert isinstance(self.gateway.last_keyboard, InlineKeyboard)
        assert self.users.unlinked == []

    @pytest.mark.asyncio
    async def test_unlink_not_linked(self):
        await self.engine.process_event(text_event("/unlink"))
        assert self.gateway.last_text == get_text("err_not_linked")

    @pytest.mark.asyncio
    async def test_unlink_requires_username(self):
        await self.engine.process_event(text_event("/unlink", username=None))
        assert self.gateway.last_text == get_text("err_username_required_unlink")

    @pytest.mark.asyncio
    async def test_unlink_lookup_failure(self):
        self.users.lookup_error = ReportError("timeout")
        await self.engine.process_event(text_event("/unlink"))
        assert self.gateway.last_text == get_text("err_unlink_failed")

    @pytest.mark.asyncio
    async def test_confirm_unlinks(self):
        self.users.add("mario", user_id=7)

        result = await self.engine.process_event(button_event(UnlinkChoice(True)))

        assert result == {"kind": "button", "outcome": "accepted"}
        assert self.users.unlinked == [7]
        assert self.gateway.answered == ["cbq-1"]
        assert self.gateway.last_text == get_text("ok_unlinked")
        self.wizard.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_keeps_link(self):
        self.users.add("mario", user_id=7)

        result = await self.engine.process_event(button_event(UnlinkChoice(False)))

        assert result["outcome"] == "cancelled"
        assert self.users.unlinked == []
        assert self.gateway.last_text == get_text("ok_unlink_cancelled")

    @pytest.mark.asyncio
    async def test_backend_refuses_unlink(self):
        self.users.add("mario", user_id=7)
        self.users.unlink_result = LinkResult(success=False, message="Account is not linked")

        result = await self.engine.process_event(button_event(UnlinkChoice(True)))

        assert result["outcome"] == "rejected"
        assert self.gateway.last_text == get_text("err_unlink_rejected", message="Account is not linked")

    @pytest.mark.asyncio
    async def test_account_vanished_before_confirm(self):
        result = await self.engine.process_event(button_event(UnlinkChoice(True)))

        assert result["outcome"] == "rejected"
        assert self.gateway.last_text == get_text("err_account_not_found")
