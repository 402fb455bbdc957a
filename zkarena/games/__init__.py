"""
Games module - Game-specific engines.

Each game has its own subpackage with:
- Rules (per-table constants)
- Session record
- Engine (handlers and views)
"""
