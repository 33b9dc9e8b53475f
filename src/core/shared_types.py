"""
Type definitions used across layers
"""

from enum import StrEnum


class Symbol(StrEnum):
    X = "X"
    O = "O"  # noqa: E741

    @property
    def opponent(self) -> "Symbol":
        return Symbol.O if self is Symbol.X else Symbol.X

    @property
    def side(self) -> "Side":
        """Side 1 always plays X."""
        return Side.PLAYER1 if self is Symbol.X else Side.PLAYER2


class Side(StrEnum):
    PLAYER1 = "player1"
    PLAYER2 = "player2"

    @property
    def symbol(self) -> Symbol:
        return Symbol.X if self is Side.PLAYER1 else Symbol.O

    @property
    def default_name(self) -> str:
        return "Player 1" if self is Side.PLAYER1 else "Player 2"


# --- NOTE a finished round is signalled by `winner`. There is no draw status: the vanishing rule keeps every round playable.
