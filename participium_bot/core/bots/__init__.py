# participium_bot/core/bots/__init__.py
"""
Bot bundles.

Each bundle keeps the chat-facing pieces of one bot together:
texts, keyboards and input validators.  Flow logic lives in
``participium_bot.core.engine`` and ``participium_bot.core.handlers``.
"""
