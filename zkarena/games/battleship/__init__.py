"""
Battleship - 5x5 hidden-board game with proof-gated shot results.
"""

from .state import BattleshipPhase, BattleshipRules, BattleshipSession, SHOT_HIT, SHOT_MISS
from .engine import BattleshipEngine

__all__ = [
    "BattleshipEngine",
    "BattleshipPhase",
    "BattleshipRules",
    "BattleshipSession",
    "SHOT_HIT",
    "SHOT_MISS",
]
