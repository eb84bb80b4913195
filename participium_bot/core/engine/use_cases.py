# participium_bot/core/engine/use_cases.py
import asyncio

from participium_bot.core.bots.report_bot import keyboards
from participium_bot.core.bots.report_bot.texts import get_text
from participium_bot.core.bots.report_bot.validators import parse_link_code, split_command
from participium_bot.core.engine.actions import UnlinkChoice
from participium_bot.core.engine.domain import ChatContext, InboundEvent, StepOutcome
from participium_bot.core.engine.errors import LinkError, ReportError
from participium_bot.core.engine.ports import ChatGateway, UserDirectory
from participium_bot.core.engine.wizard import ReportWizard
from participium_bot.infra.logging_config import LogContext, get_logger
from participium_bot.infra.metrics import AppMetrics

logger = get_logger(__name__)


class ReportBotEngine:
    """
    Application service / use-case layer.
    Workflow: acknowledge button → command routing → wizard dispatch.

    One instance serves every chat; per-chat state lives in the wizard's
    session store.
    """

    def __init__(
        self,
        *,
        gateway: ChatGateway,
        wizard: ReportWizard,
        users: UserDirectory,
        call_timeout: float = 10.0,
    ) -> None:
        self.gateway = gateway
        self.wizard = wizard
        self.users = users
        self.call_timeout = call_timeout

        self._commands = {
            "start": self._cmd_start,
            "help": self._cmd_help,
            "newreport": self._cmd_newreport,
            "link": self._cmd_link,
            "unlink": self._cmd_unlink,
        }

    def _context(self, event: InboundEvent) -> ChatContext:
        return ChatContext(chat_id=event.chat_id, username=event.username, gateway=self.gateway)

    async def process_event(self, event: InboundEvent) -> dict:
        """
        Handle one normalized update from any transport.

        Returns a small dict for logging and tests:
        ``{"kind": ..., "outcome": ...}``.
        """
        ctx = self._context(event)
        kind = event.kind
        AppMetrics.update_received(kind)

        # The chat lock must be taken before the first await: updates are
        # started in delivery order and the lock queues them FIFO.
        with AppMetrics.track_processing_time(kind):
            async with self.wizard.store.lock(ctx.chat_id):
                outcome = await self._route(ctx, event)
        return {"kind": kind, "outcome": outcome.value}

    async def _route(self, ctx: ChatContext, event: InboundEvent) -> StepOutcome:
        if event.is_button() and event.callback_query_id:
            await self.gateway.answer_button(event.callback_query_id)

        if isinstance(event.button, UnlinkChoice):
            return await self._handle_unlink_choice(ctx, event.button)

        if event.is_command():
            parsed = split_command(event.text or "")
            handler = self._commands.get(parsed[0]) if parsed else None
            if handler is not None:
                return await handler(ctx, parsed[1])

        return await self.wizard.dispatch(ctx, event)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _cmd_start(self, ctx: ChatContext, args: str) -> StepOutcome:
        await ctx.reply(get_text("welcome"))
        return StepOutcome.ACCEPTED

    async def _cmd_help(self, ctx: ChatContext, args: str) -> StepOutcome:
        await ctx.reply(get_text("help"))
        return StepOutcome.ACCEPTED

    async def _cmd_newreport(self, ctx: ChatContext, args: str) -> StepOutcome:
        started = await self.wizard.start(ctx)
        return StepOutcome.ADVANCED if started else StepOutcome.REJECTED

    async def _cmd_link(self, ctx: ChatContext, args: str) -> StepOutcome:
        if not ctx.username:
            await ctx.reply(get_text("err_username_required_link"))
            return StepOutcome.REJECTED

        if len(args.split()) != 1:
            await ctx.reply(get_text("link_usage"))
            return StepOutcome.REJECTED

        code = parse_link_code(args)
        if code is None:
            await ctx.reply(get_text("err_link_code_format"))
            return StepOutcome.REJECTED

        try:
            result = await asyncio.wait_for(
                self.users.verify_and_link(ctx.username, code), timeout=self.call_timeout
            )
        except (LinkError, ReportError, TimeoutError) as e:
            LogContext(logger, chat_id=ctx.chat_id).warning(
                f"Account linking failed: {type(e).__name__}: {e}"
            )
            await ctx.reply(get_text("err_link_failed"))
            return StepOutcome.REJECTED

        await ctx.reply(get_text("ok_linked", message=result.message))
        return StepOutcome.ACCEPTED

    async def _cmd_unlink(self, ctx: ChatContext, args: str) -> StepOutcome:
        if not ctx.username:
            await ctx.reply(get_text("err_username_required_unlink"))
            return StepOutcome.REJECTED

        try:
            user = await asyncio.wait_for(
                self.users.find_by_username(ctx.username), timeout=self.call_timeout
            )
        except (ReportError, TimeoutError) as e:
            LogContext(logger, chat_id=ctx.chat_id).warning(
                f"User lookup failed for /unlink: {type(e).__name__}: {e}"
            )
            await ctx.reply(get_text("err_unlink_failed"))
            return StepOutcome.REJECTED

        if user is None:
            await ctx.reply(get_text("err_not_linked"))
            return StepOutcome.REJECTED

        await ctx.reply(get_text("q_unlink"), keyboards.unlink_keyboard())
        return StepOutcome.ACCEPTED

    async def _handle_unlink_choice(self, ctx: ChatContext, choice: UnlinkChoice) -> StepOutcome:
        if not ctx.username:
            await ctx.reply(get_text("err_username_required_short"))
            return StepOutcome.REJECTED

        if not choice.confirm:
            await ctx.reply(get_text("ok_unlink_cancelled"))
            return StepOutcome.CANCELLED

        log = LogContext(logger, chat_id=ctx.chat_id)
        try:
            user = await asyncio.wait_for(
                self.users.find_by_username(ctx.username), timeout=self.call_timeout
            )
            if user is None:
                await ctx.reply(get_text("err_account_not_found"))
                return StepOutcome.REJECTED

            result = await asyncio.wait_for(self.users.unlink(user.id), timeout=self.call_timeout)
        except (ReportError, TimeoutError) as e:
            log.warning(f"Unlink failed: {type(e).__name__}: {e}")
            await ctx.reply(get_text("err_unlink_failed"))
            return StepOutcome.REJECTED

        if not result.success:
            await ctx.reply(get_text("err_unlink_rejected", message=result.message))
            return StepOutcome.REJECTED

        log.info("Telegram account unlinked")
        await ctx.reply(get_text("ok_unlinked"))
        return StepOutcome.ACCEPTED
