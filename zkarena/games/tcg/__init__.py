"""
Card Combat - Turn-based creature duel with proof-gated card draws.
"""

from .state import Creature, TcgPhase, TcgRules, TcgSession
from .combat import clash, damage, wound
from .engine import TcgEngine

__all__ = [
    "Creature",
    "TcgEngine",
    "TcgPhase",
    "TcgRules",
    "TcgSession",
    "clash",
    "damage",
    "wound",
]
