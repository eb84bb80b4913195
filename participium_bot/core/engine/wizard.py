# participium_bot/core/engine/wizard.py
"""
Report wizard: session lifecycle around the step handlers.

    /newreport ─► preconditions ─► WAITING_LOCATION ─► ... ─► WAITING_CONFIRMATION
                                                               │
                                          confirm ─► submit ───┤─► removed (success)
                                                               │─► kept (failure, confirm again)
                                          cancel  ─────────────┴─► removed

Callers hold the chat's store lock for the whole update (see
``ReportBotEngine.process_event``), so the session read, the external
calls and the write-back form one unit.
"""
from __future__ import annotations

import asyncio

from participium_bot.core.bots.report_bot import keyboards
from participium_bot.core.bots.report_bot.texts import get_text
from participium_bot.core.engine.actions import ConfirmChoice
from participium_bot.core.engine.domain import (
    BackendUser,
    ChatContext,
    ConversationSession,
    InboundEvent,
    StepOutcome,
    WizardStep,
)
from participium_bot.core.engine.errors import NotFoundError, ReportError
from participium_bot.core.engine.ports import SessionStore, UserDirectory
from participium_bot.core.engine.submission import SubmissionBridge, describe_submission_error
from participium_bot.core.handlers.report_steps import ReportStepHandlers
from participium_bot.infra.logging_config import LogContext, get_logger
from participium_bot.infra.metrics import AppMetrics

logger = get_logger(__name__)


class ReportWizard:
    def __init__(
        self,
        *,
        store: SessionStore,
        users: UserDirectory,
        steps: ReportStepHandlers,
        submission: SubmissionBridge,
        call_timeout: float = 10.0,
    ) -> None:
        self.store = store
        self.users = users
        self.steps = steps
        self.submission = submission
        self.call_timeout = call_timeout

    # ------------------------------------------------------------------
    # Flow start
    # ------------------------------------------------------------------

    async def start(self, ctx: ChatContext) -> bool:
        """
        Open a new intake session for ``ctx.chat_id``.

        Any session already open for the chat is discarded.  Returns False
        (and sends guidance) when the caller has no username, is not
        registered, or has not confirmed the account link.
        """
        log = LogContext(logger, chat_id=ctx.chat_id)

        if not ctx.username:
            await ctx.reply(get_text("err_username_required_report"))
            return False

        try:
            user = await self._find_user(ctx.username)
        except (ReportError, TimeoutError) as e:
            log.warning(f"User lookup failed at flow start: {type(e).__name__}: {e}")
            await ctx.reply(get_text("err_lookup_failed"))
            return False

        if user is None:
            await ctx.reply(get_text("err_not_registered"))
            return False

        if not user.telegram_link_confirmed:
            await ctx.reply(get_text("err_link_not_confirmed"))
            return False

        if self.store.get(ctx.chat_id) is not None:
            log.info("Replacing open report session")
        self.store.put(
            ctx.chat_id,
            ConversationSession(chat_id=ctx.chat_id, username=ctx.username),
        )

        AppMetrics.session_started()
        log.info("Report session started")
        await ctx.reply(get_text("q_location"), keyboards.location_request_keyboard())
        return True

    # ------------------------------------------------------------------
    # Inbound input
    # ------------------------------------------------------------------

    async def dispatch(self, ctx: ChatContext, event: InboundEvent) -> StepOutcome:
        """Route one location/text/photo/button event to the current step."""
        session = self.store.get(ctx.chat_id)
        if session is None:
            return StepOutcome.IGNORED

        step = session.step
        outcome = await self._route(ctx, session, event)

        if outcome == StepOutcome.IGNORED:
            AppMetrics.input_ignored(step.value)
        else:
            LogContext(logger, chat_id=ctx.chat_id, step=step.value).debug(
                f"{event.kind} → {outcome.value}"
            )
        return outcome

    async def _route(
        self, ctx: ChatContext, session: ConversationSession, event: InboundEvent
    ) -> StepOutcome:
        if event.is_button():
            action = event.button
            if action is None:
                return StepOutcome.IGNORED
            if isinstance(action, ConfirmChoice):
                if session.step != WizardStep.WAITING_CONFIRMATION:
                    return StepOutcome.IGNORED
                if action.confirm:
                    return await self._submit(ctx, session)
                return await self._cancel(ctx)
            return await self.steps.handle_button(ctx, session, action)

        if event.has_location():
            return await self.steps.handle_location(ctx, session, event.location)

        if event.has_photo():
            return await self.steps.handle_photo(ctx, session, event.photo)

        if event.has_text():
            return await self.steps.handle_text(ctx, session, event.text)

        return StepOutcome.IGNORED

    # ------------------------------------------------------------------
    # Confirmation gate
    # ------------------------------------------------------------------

    async def _cancel(self, ctx: ChatContext) -> StepOutcome:
        self.store.remove(ctx.chat_id)
        AppMetrics.session_cancelled()
        await ctx.reply(get_text("ok_cancelled"))
        return StepOutcome.CANCELLED

    async def _submit(self, ctx: ChatContext, session: ConversationSession) -> StepOutcome:
        log = LogContext(logger, chat_id=ctx.chat_id, step=session.step.value)

        try:
            user = await self._find_user(session.username)
            if user is None:
                raise NotFoundError("User not found")

            if not user.telegram_link_confirmed:
                await ctx.reply(get_text("err_link_not_confirmed_submit"))
                return StepOutcome.REJECTED

            report_id = await asyncio.wait_for(
                self.submission.submit(session.draft, user.id), timeout=self.call_timeout
            )

        except ReportError as e:
            log.warning(f"Report submission failed ({e.kind}): {e.detail}")
            AppMetrics.submission_failed(e.kind)
            await ctx.reply(describe_submission_error(e))
            return StepOutcome.REJECTED

        except TimeoutError:
            log.warning("Report submission timed out")
            AppMetrics.submission_failed("unspecified")
            await ctx.reply(describe_submission_error(ReportError("Submission timed out")))
            return StepOutcome.REJECTED

        except Exception as e:
            log.error(f"Unexpected submission error: {type(e).__name__}: {e}", exc_info=True)
            AppMetrics.submission_failed("unspecified")
            await ctx.reply(describe_submission_error(e))
            return StepOutcome.REJECTED

        self.store.remove(ctx.chat_id)
        AppMetrics.report_submitted()
        LogContext(logger, chat_id=ctx.chat_id, report_id=str(report_id)).info("Report submitted")
        await ctx.reply(get_text("ok_submitted", report_id=report_id))
        return StepOutcome.SUBMITTED

    async def _find_user(self, username: str) -> BackendUser | None:
        return await asyncio.wait_for(
            self.users.find_by_username(username), timeout=self.call_timeout
        )
