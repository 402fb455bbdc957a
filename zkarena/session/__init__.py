"""
Session Module - Manages game tables.

A table hosts one game engine:
- Created on demand, by game type
- Initialized once with a verification key
- Runs any number of sessions (start_game resets)
- Closed explicitly or when idle

Tables are in-memory only.
"""

from .manager import GameType, Table, TableManager

__all__ = [
    "GameType",
    "Table",
    "TableManager",
]
