# participium_bot/core/bots/report_bot/__init__.py
"""
Report bot bundle.

Sub-modules:
    texts      : get_text(key, **params) accessor and the message table
    keyboards  : inline / reply keyboards for each step
    validators : text checks (blank input, Done literal, link code)
"""
