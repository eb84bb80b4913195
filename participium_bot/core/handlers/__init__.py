# participium_bot/core/handlers/__init__.py
"""
Step handlers for the report wizard, one per inbound input shape.
"""
