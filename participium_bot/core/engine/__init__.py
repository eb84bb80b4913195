# participium_bot/core/engine/__init__.py
"""
Core engine -- transport-agnostic report intake.

This package contains the domain models, button actions, error taxonomy,
collaborator protocols (ports), the photo collector, the submission
bridge, the report wizard and the use-case entry point (ReportBotEngine).

Canonical imports:
    from participium_bot.core.engine import ReportBotEngine, ReportWizard
    from participium_bot.core.engine.domain import ConversationSession, InboundEvent
    from participium_bot.core.engine.ports import SessionStore
"""
from participium_bot.core.engine.domain import (  # noqa: F401
    WizardStep,
    StepOutcome,
    ReportCategory,
    ReportDraft,
    ConversationSession,
    InboundEvent,
    ChatContext,
)
from participium_bot.core.engine.actions import ButtonAction, decode_action, encode_action  # noqa: F401
from participium_bot.core.engine.ports import (  # noqa: F401
    ChatGateway,
    SessionStore,
    AddressResolver,
    UserDirectory,
    ReportService,
)
from participium_bot.core.engine.wizard import ReportWizard  # noqa: F401
from participium_bot.core.engine.use_cases import ReportBotEngine  # noqa: F401
