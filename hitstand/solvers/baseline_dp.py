"""
Baseline DP solver for the infinite-deck hit/stand model.

Fixed dealer strategy: draw below 17, stand on 17–21.
Every card is an independent value 1–10 with probability 1/10 (ace = 1).

Two mutually dependent recursions, memoized per public call:

    _dealer_outcome  P(dealer busts / ends below / ends equal to a player total)
                     from a dealer running total.
    _optimal         the player's win-maximising stand/hit choice from a total,
                     with hit continuations following the same policy.

Both recursions are acyclic (each draw strictly increases a total), so the
memo needs no cycle guard.  Tables are sized from ``TableRules.max_total``
(target + max card = 31).

``solve_backward`` builds the identical tables bottom-up into dense numpy
arrays, from the bust zone down to the lowest totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from hitstand.engine.rules import DEFAULT_RULES, TableRules

logger = logging.getLogger(__name__)


# ─── Action labels ────────────────────────────────────────────────────────────


class Action(Enum):
    """Decision taken by the optimal policy at a player total."""

    HIT = "HIT"
    STAND = "STAND"


class BestAction(Enum):
    """Report label from comparing standing against one immediate hit."""

    STAND = "stand"
    HIT = "hit"
    EQUAL = "equal"


# ─── Value types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DealerOutcome:
    """Dealer terminal distribution relative to one player total.

    Attributes:
        bust:  P(dealer exceeds 21).
        less:  P(dealer stands below the player total).
        equal: P(dealer stands on the player total).
    """

    bust: float
    less: float
    equal: float

    @property
    def dealer_wins(self) -> float:
        """P(dealer stands above the player total without busting)."""
        return 1.0 - (self.bust + self.less + self.equal)


@dataclass(frozen=True)
class DecisionOutcome:
    """Win and loss probability of one action; pushes make up the remainder."""

    win: float
    loss: float


_BUSTED: DecisionOutcome = DecisionOutcome(win=0.0, loss=1.0)
_ZERO: DecisionOutcome = DecisionOutcome(win=0.0, loss=0.0)


@dataclass(frozen=True)
class OptionsReport:
    """Stand, immediate-hit and optimal outcomes for one (total, upcard) pair.

    Attributes:
        player_total:   Player hand total.
        dealer_upcard:  Dealer's visible card.
        stand:          Outcome of standing now.
        hit:            Outcome of one hit followed by optimal play.
        optimal:        Outcome of the optimal policy from this total.
        best_action:    Label from ``stand.win`` vs ``hit.win``; None when the
                        upcard is out of range.
        optimal_action: Action the optimal policy takes here; None when the
                        upcard is out of range.
    """

    player_total: int
    dealer_upcard: int
    stand: DecisionOutcome
    hit: DecisionOutcome
    optimal: DecisionOutcome
    best_action: BestAction | None
    optimal_action: Action | None

    @classmethod
    def empty(cls, player_total: int, dealer_upcard: int) -> OptionsReport:
        """All-zero report returned for an out-of-range upcard."""
        return cls(
            player_total=player_total,
            dealer_upcard=dealer_upcard,
            stand=_ZERO,
            hit=_ZERO,
            optimal=_ZERO,
            best_action=None,
            optimal_action=None,
        )


# ─── Dealer outcome model ─────────────────────────────────────────────────────


def _dealer_outcome(
    dealer_total: int,
    player_total: int,
    rules: TableRules,
    memo: dict,
) -> DealerOutcome:
    """Recursively compute the dealer's outcome from *dealer_total*.

    Args:
        dealer_total: Dealer running total (1 – max_total).
        player_total: Player total the dealer is compared against.
        rules:        Rule set.
        memo:         Per-call cache, keys prefixed with ``'dealer'``.

    Returns:
        DealerOutcome for this state.
    """
    key = ("dealer", dealer_total, player_total)
    if key in memo:
        return memo[key]

    if dealer_total > rules.target:
        result = DealerOutcome(bust=1.0, less=0.0, equal=0.0)
    elif dealer_total >= rules.dealer_stands_on:
        result = DealerOutcome(
            bust=0.0,
            less=1.0 if dealer_total < player_total else 0.0,
            equal=1.0 if dealer_total == player_total else 0.0,
        )
    else:
        acc_bust = acc_less = acc_equal = 0.0
        for value in rules.card_values:
            next_total = dealer_total + value
            if next_total > rules.max_total:
                # Beyond the table: unreachable from a drawing total, counted as bust.
                acc_bust += 1.0
                continue
            sub = _dealer_outcome(next_total, player_total, rules, memo)
            acc_bust += sub.bust
            acc_less += sub.less
            acc_equal += sub.equal
        result = DealerOutcome(
            bust=acc_bust / rules.max_card,
            less=acc_less / rules.max_card,
            equal=acc_equal / rules.max_card,
        )

    memo[key] = result
    return result


# ─── Stand evaluator ──────────────────────────────────────────────────────────


def _stand_outcome(
    player_total: int,
    dealer_upcard: int,
    rules: TableRules,
    memo: dict,
) -> DecisionOutcome:
    """Win/loss for standing on *player_total*, averaged over the hole card."""
    if rules.is_bust(player_total):
        return _BUSTED

    key = ("stand", player_total)
    if key in memo:
        return memo[key]

    win = loss = 0.0
    for hole in rules.card_values:
        start = dealer_upcard + hole
        if start > rules.target:
            # Two-card dealer bust, reachable only when 2 * max_card > target.
            win += 1.0
            continue
        dealer = _dealer_outcome(start, player_total, rules, memo)
        win += dealer.bust + dealer.less
        loss += dealer.dealer_wins

    result = DecisionOutcome(win=win / rules.max_card, loss=loss / rules.max_card)
    memo[key] = result
    return result


# ─── Optimal policy ───────────────────────────────────────────────────────────


def _optimal(
    player_total: int,
    dealer_upcard: int,
    rules: TableRules,
    memo: dict,
) -> tuple[DecisionOutcome, Action]:
    """Return the optimal (outcome, action) from *player_total*.

    Stand is chosen when its win probability is at least that of hitting
    (ties go to standing).  The hit branch averages the optimal outcome of
    every next total.

    Args:
        player_total:  Player total.
        dealer_upcard: Dealer's visible card.
        rules:         Rule set.
        memo:          Per-call cache, keys prefixed with ``'opt'``.

    Returns:
        ``(outcome, action)`` under optimal play.  Busted totals return
        ``(win=0, loss=1)`` with ``Action.STAND``.
    """
    if rules.is_bust(player_total):
        return _BUSTED, Action.STAND

    key = ("opt", player_total)
    if key in memo:
        return memo[key]

    stand = _stand_outcome(player_total, dealer_upcard, rules, memo)

    hit_win = hit_loss = 0.0
    for value in rules.card_values:
        continuation, _ = _optimal(player_total + value, dealer_upcard, rules, memo)
        hit_win += continuation.win
        hit_loss += continuation.loss
    hit = DecisionOutcome(win=hit_win / rules.max_card, loss=hit_loss / rules.max_card)

    if stand.win >= hit.win:
        result: tuple[DecisionOutcome, Action] = (stand, Action.STAND)
    else:
        result = (hit, Action.HIT)

    memo[key] = result
    return result


def _immediate_hit_outcome(
    player_total: int,
    dealer_upcard: int,
    rules: TableRules,
    memo: dict,
) -> DecisionOutcome:
    """Outcome of taking exactly one card now, then playing optimally.

    Reported next to the stand outcome to build the ``best_action`` label.
    Kept apart from the hit branch inside ``_optimal``: the label compares
    with a strict inequality and may disagree with the policy's decision.
    """
    win = loss = 0.0
    for value in rules.card_values:
        continuation, _ = _optimal(player_total + value, dealer_upcard, rules, memo)
        win += continuation.win
        loss += continuation.loss
    return DecisionOutcome(win=win / rules.max_card, loss=loss / rules.max_card)


def _best_action_label(stand: DecisionOutcome, hit: DecisionOutcome) -> BestAction:
    if stand.win > hit.win:
        return BestAction.STAND
    if hit.win > stand.win:
        return BestAction.HIT
    return BestAction.EQUAL


# ─── Public API ───────────────────────────────────────────────────────────────


def dealer_outcome(
    dealer_total: int,
    player_total: int,
    rules: TableRules = DEFAULT_RULES,
) -> DealerOutcome:
    """Dealer bust/less/equal probabilities from a running total.

    Examples:
        >>> dealer_outcome(22, 18)
        DealerOutcome(bust=1.0, less=0.0, equal=0.0)
        >>> dealer_outcome(18, 18)
        DealerOutcome(bust=0.0, less=0.0, equal=1.0)
    """
    return _dealer_outcome(dealer_total, player_total, rules, {})


def stand_outcome(
    player_total: int,
    dealer_upcard: int,
    rules: TableRules = DEFAULT_RULES,
) -> DecisionOutcome:
    """Win/loss probability of standing on *player_total* against *dealer_upcard*."""
    return _stand_outcome(player_total, dealer_upcard, rules, {})


def immediate_hit_outcome(
    player_total: int,
    dealer_upcard: int,
    rules: TableRules = DEFAULT_RULES,
) -> DecisionOutcome:
    """Win/loss probability of one hit followed by optimal play."""
    return _immediate_hit_outcome(player_total, dealer_upcard, rules, {})


def optimal_action(
    player_total: int,
    dealer_upcard: int,
    rules: TableRules = DEFAULT_RULES,
) -> tuple[Action, DecisionOutcome]:
    """Return the optimal action at *player_total* and the outcome it achieves."""
    outcome, action = _optimal(player_total, dealer_upcard, rules, {})
    return action, outcome


def optimal_outcome(
    player_total: int,
    dealer_upcard: int,
    rules: TableRules = DEFAULT_RULES,
) -> DecisionOutcome:
    """Win/loss probability under the optimal policy from *player_total*."""
    outcome, _ = _optimal(player_total, dealer_upcard, rules, {})
    return outcome


def compute_options(
    player_total: int,
    dealer_upcard: int,
    rules: TableRules = DEFAULT_RULES,
) -> OptionsReport:
    """Compute stand, immediate-hit and optimal outcomes for one pair.

    An upcard outside ``[1, max_card]`` returns the all-zero report from
    :meth:`OptionsReport.empty` instead of raising.

    Memo tables are local to this call, so repeated calls with the same
    arguments return identical floats and calls can run in parallel.

    Args:
        player_total:  Player total, normally 4–21.
        dealer_upcard: Dealer's visible card, 1–10.
        rules:         Rule set.

    Returns:
        OptionsReport for the pair.
    """
    if not rules.is_valid_upcard(dealer_upcard):
        logger.debug("upcard %d out of range; returning empty report", dealer_upcard)
        return OptionsReport.empty(player_total, dealer_upcard)

    memo: dict = {}
    optimal, action = _optimal(player_total, dealer_upcard, rules, memo)
    stand = _stand_outcome(player_total, dealer_upcard, rules, memo)
    hit = _immediate_hit_outcome(player_total, dealer_upcard, rules, memo)

    return OptionsReport(
        player_total=player_total,
        dealer_upcard=dealer_upcard,
        stand=stand,
        hit=hit,
        optimal=optimal,
        best_action=_best_action_label(stand, hit),
        optimal_action=action,
    )


def optimal_win_loss(
    player_total: int,
    dealer_upcard: int,
    rules: TableRules = DEFAULT_RULES,
) -> tuple[float, float]:
    """Return ``(win, loss)`` under the optimal policy; zeros for a bad upcard."""
    report = compute_options(player_total, dealer_upcard, rules)
    return report.optimal.win, report.optimal.loss


# ─── Backward induction ───────────────────────────────────────────────────────


@dataclass
class PolicyTable:
    """Dense tables for one upcard built by :func:`solve_backward`.

    Attributes:
        dealer_upcard: Upcard the tables were solved for.
        dealer_bust:   ``(max_total+1, target+1)`` P(bust) by (dealer total, player total).
        dealer_less:   Same shape, P(dealer ends below the player total).
        dealer_equal:  Same shape, P(dealer ends on the player total).
        stand_win:     ``(max_total+1,)`` P(win) standing, by player total.
        stand_loss:    ``(max_total+1,)`` P(loss) standing.
        opt_win:       ``(max_total+1,)`` P(win) under the optimal policy.
        opt_loss:      ``(max_total+1,)`` P(loss) under the optimal policy.
        hit_chosen:    ``(max_total+1,)`` bool, True where the policy hits.
    """

    dealer_upcard: int
    dealer_bust: np.ndarray
    dealer_less: np.ndarray
    dealer_equal: np.ndarray
    stand_win: np.ndarray
    stand_loss: np.ndarray
    opt_win: np.ndarray
    opt_loss: np.ndarray
    hit_chosen: np.ndarray

    def action(self, player_total: int) -> Action:
        return Action.HIT if self.hit_chosen[player_total] else Action.STAND

    def optimal(self, player_total: int) -> DecisionOutcome:
        return DecisionOutcome(
            win=float(self.opt_win[player_total]),
            loss=float(self.opt_loss[player_total]),
        )

    def stand(self, player_total: int) -> DecisionOutcome:
        return DecisionOutcome(
            win=float(self.stand_win[player_total]),
            loss=float(self.stand_loss[player_total]),
        )


def _fill_dealer_tables(
    rules: TableRules,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    size = rules.max_total + 1
    n_player = rules.target + 1
    bust = np.zeros((size, n_player))
    less = np.zeros((size, n_player))
    equal = np.zeros((size, n_player))

    for dealer_total in range(rules.max_total, 0, -1):
        if dealer_total > rules.target:
            bust[dealer_total, :] = 1.0
        elif dealer_total >= rules.dealer_stands_on:
            less[dealer_total, dealer_total + 1 :] = 1.0
            equal[dealer_total, dealer_total] = 1.0
        else:
            for player_total in range(n_player):
                acc_bust = acc_less = acc_equal = 0.0
                for value in rules.card_values:
                    next_total = dealer_total + value
                    if next_total > rules.max_total:
                        acc_bust += 1.0
                        continue
                    acc_bust += bust[next_total, player_total]
                    acc_less += less[next_total, player_total]
                    acc_equal += equal[next_total, player_total]
                bust[dealer_total, player_total] = acc_bust / rules.max_card
                less[dealer_total, player_total] = acc_less / rules.max_card
                equal[dealer_total, player_total] = acc_equal / rules.max_card

    return bust, less, equal


def solve_backward(
    dealer_upcard: int,
    rules: TableRules = DEFAULT_RULES,
) -> PolicyTable:
    """Solve every player total for one upcard by bottom-up backward induction.

    Produces the same values as the memoized recursion, accumulated in the
    same card order, but iterates from the highest totals downward instead of
    recursing.

    Args:
        dealer_upcard: Dealer's visible card, 1 – max_card.
        rules:         Rule set.

    Returns:
        PolicyTable covering player totals 0 – max_total.

    Raises:
        ValueError: If *dealer_upcard* is out of range.
    """
    if not rules.is_valid_upcard(dealer_upcard):
        raise ValueError(f"dealer_upcard must lie in [1, {rules.max_card}], got {dealer_upcard}")

    bust, less, equal = _fill_dealer_tables(rules)
    size = rules.max_total + 1

    stand_win = np.zeros(size)
    stand_loss = np.zeros(size)
    for player_total in range(size):
        if rules.is_bust(player_total):
            stand_loss[player_total] = 1.0
            continue
        win = loss = 0.0
        for hole in rules.card_values:
            start = dealer_upcard + hole
            if start > rules.target:
                win += 1.0
                continue
            b = bust[start, player_total]
            lt = less[start, player_total]
            eq = equal[start, player_total]
            win += b + lt
            loss += 1.0 - (b + lt + eq)
        stand_win[player_total] = win / rules.max_card
        stand_loss[player_total] = loss / rules.max_card

    opt_win = np.zeros(size)
    opt_loss = np.zeros(size)
    hit_chosen = np.zeros(size, dtype=bool)
    for player_total in range(rules.max_total, -1, -1):
        if rules.is_bust(player_total):
            opt_loss[player_total] = 1.0
            continue
        hit_win = hit_loss = 0.0
        for value in rules.card_values:
            hit_win += opt_win[player_total + value]
            hit_loss += opt_loss[player_total + value]
        hit_win /= rules.max_card
        hit_loss /= rules.max_card
        if stand_win[player_total] >= hit_win:
            opt_win[player_total] = stand_win[player_total]
            opt_loss[player_total] = stand_loss[player_total]
        else:
            opt_win[player_total] = hit_win
            opt_loss[player_total] = hit_loss
            hit_chosen[player_total] = True

    logger.debug(
        "solved upcard %d: policy hits on %d of %d totals",
        dealer_upcard,
        int(hit_chosen.sum()),
        rules.target + 1,
    )

    return PolicyTable(
        dealer_upcard=dealer_upcard,
        dealer_bust=bust,
        dealer_less=less,
        dealer_equal=equal,
        stand_win=stand_win,
        stand_loss=stand_loss,
        opt_win=opt_win,
        opt_loss=opt_loss,
        hit_chosen=hit_chosen,
    )


def solve(rules: TableRules = DEFAULT_RULES) -> dict[int, PolicyTable]:
    """Build the backward-induction policy table for every upcard.

    Returns:
        Dict mapping upcard (1 – max_card) to its PolicyTable.
    """
    return {upcard: solve_backward(upcard, rules) for upcard in rules.card_values}
