"""
Table rules for the infinite-deck hit/stand model.

Card model:
    Every draw is an independent value 1–10, each with probability 1/10.
    An ace always counts 1 (no soft totals); ten-valued ranks collapse into 10.

Dealer:
    Draws while below ``dealer_stands_on`` (17), stands on 17–21, busts above 21.

Derived constants:
    max_total = target + max_card = 31 — the largest total reachable by one
    draw from a non-bust hand.  Every memo table is sized from it.
"""

from __future__ import annotations

from dataclasses import dataclass

# ─── Rule constants ───────────────────────────────────────────────────────────

TARGET: int = 21
"""Highest non-bust total."""

MAX_CARD: int = 10
"""Largest single-card value; card values are 1..MAX_CARD."""

DEALER_STANDS_ON: int = 17
"""Dealer stops drawing once the running total reaches this value."""

PLAYER_TOTALS: range = range(4, TARGET + 1)
"""Player totals covered by the results table (4–21)."""

UPCARDS: range = range(1, MAX_CARD + 1)
"""Valid dealer upcards (1–10)."""


# ─── TableRules ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TableRules:
    """Immutable rule set consumed by the solver and the reporting layer.

    Attributes:
        target:           Highest non-bust total.
        max_card:         Largest card value; the deck is uniform over 1..max_card.
        dealer_stands_on: Dealer stands on this total or higher.

    Raises:
        ValueError: If the rules are inconsistent.
    """

    target: int = TARGET
    max_card: int = MAX_CARD
    dealer_stands_on: int = DEALER_STANDS_ON

    def __post_init__(self) -> None:
        if self.target < 1:
            raise ValueError(f"target must be positive, got {self.target}")
        if self.max_card < 1:
            raise ValueError(f"max_card must be positive, got {self.max_card}")
        if not 1 <= self.dealer_stands_on <= self.target:
            raise ValueError(
                f"dealer_stands_on must lie in [1, {self.target}], got {self.dealer_stands_on}"
            )

    @property
    def max_total(self) -> int:
        """Largest total reachable by one draw from a non-bust hand."""
        return self.target + self.max_card

    @property
    def card_values(self) -> range:
        return range(1, self.max_card + 1)

    def is_bust(self, total: int) -> bool:
        """Return True if *total* exceeds the target.

        Examples:
            >>> DEFAULT_RULES.is_bust(22)
            True
            >>> DEFAULT_RULES.is_bust(21)
            False
        """
        return total > self.target

    def is_valid_upcard(self, upcard: int) -> bool:
        """Return True if *upcard* is a card value the dealer can show.

        Examples:
            >>> DEFAULT_RULES.is_valid_upcard(1)
            True
            >>> DEFAULT_RULES.is_valid_upcard(11)
            False
        """
        return 1 <= upcard <= self.max_card


DEFAULT_RULES: TableRules = TableRules()
"""Standard rules: target 21, cards 1–10, dealer stands on 17."""
