"""
Combat resolution - pure functions, no session access.
"""

from __future__ import annotations

from .state import Creature


def damage(hp: int, amount: int) -> int:
    """Subtract damage, saturating at zero."""
    return max(hp - amount, 0)


def wound(creature: Creature, incoming: int) -> Creature | None:
    """
    Apply incoming damage to a creature.

    Returns None if it dies (health <= incoming), otherwise the wounded
    creature, whose attack drops by the damage taken.
    """
    if creature.health <= incoming:
        return None
    return Creature(
        attack=damage(creature.attack, incoming),
        health=creature.health - incoming,
    )


def clash(attacker: Creature, defender: Creature) -> tuple[Creature | None, Creature | None]:
    """
    Simultaneous creature combat.

    Both damage amounts come from pre-combat stats.
    """
    return wound(attacker, defender.attack), wound(defender, attacker.attack)
