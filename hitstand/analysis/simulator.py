"""
Monte Carlo simulator for validating the hit/stand solver.

Plays hands from a fixed player total against a fixed dealer upcard with an
infinite deck: every draw is an independent uniform value 1–10.  Win, loss and
push frequencies should converge to the exact probabilities from
``hitstand.solvers.baseline_dp``.

The player starts at ``player_total`` (the cards that made it are irrelevant
with an infinite deck), acts via a PlayerStrategy callable, then the dealer
draws a hole card and hits below 17.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from scipy import stats

from hitstand.engine.rules import DEFAULT_RULES, TableRules
from hitstand.solvers.baseline_dp import Action, DecisionOutcome, compute_options

logger = logging.getLogger(__name__)

PlayerStrategy = Callable[[int, int], Action]
"""Callable(player_total, dealer_upcard) → Action."""


# ─── Result type ──────────────────────────────────────────────────────────────


@dataclass
class SimulationResult:
    """Aggregate statistics from a Monte Carlo run.

    Attributes:
        player_total:  Starting player total.
        dealer_upcard: Dealer's visible card.
        n_hands:       Number of hands simulated.
        n_wins:        Hands the player won.
        n_losses:      Hands the player lost.
        n_pushes:      Hands that tied.
    """

    player_total: int
    dealer_upcard: int
    n_hands: int
    n_wins: int
    n_losses: int
    n_pushes: int

    @property
    def win_rate(self) -> float:
        return self.n_wins / self.n_hands

    @property
    def loss_rate(self) -> float:
        return self.n_losses / self.n_hands

    @property
    def push_rate(self) -> float:
        return self.n_pushes / self.n_hands

    def ci_95(self, rate: float) -> float:
        """Half-width of the normal-approximation 95% interval for *rate*."""
        return 1.96 * math.sqrt(rate * (1.0 - rate) / self.n_hands)

    def agrees_with(self, exact: DecisionOutcome, confidence: float = 0.999) -> bool:
        """Check the observed win and loss rates against exact probabilities.

        Each rate must lie within the two-sided normal-approximation band of
        the exact binomial proportion at *confidence*.  A degenerate exact
        probability (0 or 1) must be matched exactly.
        """
        z = stats.norm.ppf((1.0 + confidence) / 2.0)
        for observed, expected in ((self.win_rate, exact.win), (self.loss_rate, exact.loss)):
            se = math.sqrt(max(expected * (1.0 - expected), 0.0) / self.n_hands)
            if abs(observed - expected) > z * se + 1e-12:
                return False
        return True

    def __str__(self) -> str:
        return (
            f"Total {self.player_total} vs {self.dealer_upcard} | "
            f"Hands: {self.n_hands:,} | "
            f"Win: {self.win_rate:.4f} ±{self.ci_95(self.win_rate):.4f} | "
            f"Loss: {self.loss_rate:.4f} ±{self.ci_95(self.loss_rate):.4f} | "
            f"Push: {self.push_rate:.4f}"
        )


# ─── Single-hand mechanics ────────────────────────────────────────────────────


def draw_card(rng: np.random.Generator, rules: TableRules = DEFAULT_RULES) -> int:
    """Draw one card value from the infinite deck."""
    return int(rng.integers(1, rules.max_card + 1))


def play_dealer(
    dealer_upcard: int,
    rng: np.random.Generator,
    rules: TableRules = DEFAULT_RULES,
) -> int:
    """Draw the hole card and hit below ``dealer_stands_on``; return the final total."""
    total = dealer_upcard + draw_card(rng, rules)
    while total < rules.dealer_stands_on:
        total += draw_card(rng, rules)
    return total


def play_player(
    player_total: int,
    dealer_upcard: int,
    strategy: PlayerStrategy,
    rng: np.random.Generator,
    rules: TableRules = DEFAULT_RULES,
) -> int:
    """Apply *strategy* until it stands or the hand busts; return the final total."""
    total = player_total
    while not rules.is_bust(total) and strategy(total, dealer_upcard) == Action.HIT:
        total += draw_card(rng, rules)
    return total


def settle(player_total: int, dealer_total: int, rules: TableRules = DEFAULT_RULES) -> int:
    """Return +1 (player wins), -1 (player loses) or 0 (push).

    Examples:
        >>> settle(22, 18)    # player bust loses even if the dealer would bust
        -1
        >>> settle(18, 23)
        1
        >>> settle(19, 19)
        0
    """
    if rules.is_bust(player_total):
        return -1
    if rules.is_bust(dealer_total) or dealer_total < player_total:
        return 1
    if dealer_total == player_total:
        return 0
    return -1


# ─── Core simulation loop ─────────────────────────────────────────────────────


def simulate_hands(
    player_total: int,
    dealer_upcard: int,
    strategy: PlayerStrategy,
    n_hands: int = 100_000,
    seed: int | None = 42,
    rules: TableRules = DEFAULT_RULES,
) -> SimulationResult:
    """Simulate *n_hands* from one starting state and count outcomes.

    Args:
        player_total:  Player's starting total.
        dealer_upcard: Dealer's visible card.
        strategy:      PlayerStrategy deciding hit or stand at each total.
        n_hands:       Number of hands to play.
        seed:          Seed for ``numpy.random.default_rng``; None for a
                       non-deterministic run.
        rules:         Rule set.

    Returns:
        SimulationResult with win/loss/push counts.

    Raises:
        ValueError: If *n_hands* is not positive.
    """
    if n_hands < 1:
        raise ValueError(f"n_hands must be positive, got {n_hands}")

    rng = np.random.default_rng(seed)
    logger.debug(
        "simulating %d hands: total %d vs upcard %d (seed=%s)",
        n_hands,
        player_total,
        dealer_upcard,
        seed,
    )

    n_wins = n_losses = n_pushes = 0
    for _ in range(n_hands):
        final_player = play_player(player_total, dealer_upcard, strategy, rng, rules)
        if rules.is_bust(final_player):
            # Dealer cards don't matter once the player busts.
            n_losses += 1
            continue
        result = settle(final_player, play_dealer(dealer_upcard, rng, rules), rules)
        if result > 0:
            n_wins += 1
        elif result < 0:
            n_losses += 1
        else:
            n_pushes += 1

    return SimulationResult(
        player_total=player_total,
        dealer_upcard=dealer_upcard,
        n_hands=n_hands,
        n_wins=n_wins,
        n_losses=n_losses,
        n_pushes=n_pushes,
    )


# ─── Strategy factories ───────────────────────────────────────────────────────


def make_stand_strategy() -> PlayerStrategy:
    """Return a strategy that always stands."""

    def _strategy(player_total: int, dealer_upcard: int) -> Action:
        return Action.STAND

    return _strategy


def make_threshold_strategy(stand_threshold: int = 17) -> PlayerStrategy:
    """Return a strategy that hits below *stand_threshold* and stands otherwise."""

    def _strategy(player_total: int, dealer_upcard: int) -> Action:
        return Action.STAND if player_total >= stand_threshold else Action.HIT

    return _strategy


def make_optimal_strategy(rules: TableRules = DEFAULT_RULES) -> PlayerStrategy:
    """Return a strategy that follows the solver's optimal policy.

    Decisions are looked up from ``compute_options`` and cached per
    (total, upcard), so each state is solved once per strategy instance.
    """
    cache: dict[tuple[int, int], Action] = {}

    def _strategy(player_total: int, dealer_upcard: int) -> Action:
        key = (player_total, dealer_upcard)
        if key not in cache:
            report = compute_options(player_total, dealer_upcard, rules)
            cache[key] = report.optimal_action or Action.STAND
        return cache[key]

    return _strategy


# ─── Validation convenience ───────────────────────────────────────────────────


def run_validation(
    player_total: int,
    dealer_upcard: int,
    n_hands: int = 100_000,
    seed: int = 42,
    rules: TableRules = DEFAULT_RULES,
) -> dict[str, tuple[SimulationResult, DecisionOutcome]]:
    """Simulate standing and optimal play and pair each with the exact outcome.

    Returns:
        ``{'stand': (sim, exact), 'optimal': (sim, exact)}``.
    """
    report = compute_options(player_total, dealer_upcard, rules)
    stand_sim = simulate_hands(
        player_total, dealer_upcard, make_stand_strategy(), n_hands, seed, rules
    )
    optimal_sim = simulate_hands(
        player_total, dealer_upcard, make_optimal_strategy(rules), n_hands, seed, rules
    )
    return {
        "stand": (stand_sim, report.stand),
        "optimal": (optimal_sim, report.optimal),
    }


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    total = int(sys.argv[1]) if len(sys.argv) > 1 else 12
    upcard = int(sys.argv[2]) if len(sys.argv) > 2 else 6
    hands = int(sys.argv[3]) if len(sys.argv) > 3 else 200_000

    print(f"Monte Carlo validation — total {total} vs upcard {upcard}, {hands:,} hands\n")
    for name, (sim, exact) in run_validation(total, upcard, n_hands=hands).items():
        print(f"{name:<8} {sim}")
        agrees = "agrees" if sim.agrees_with(exact) else "DISAGREES"
        print(f"{'':<8} exact win {exact.win:.4f}  exact loss {exact.loss:.4f}  ({agrees})")
