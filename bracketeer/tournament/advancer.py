"""Round advancement for elimination brackets."""

from __future__ import annotations

import logging
import random

from bracketeer.core.constants import STATUS_COMPLETED

from .generator import pair_round
from .models import Tournament

logger = logging.getLogger(__name__)


def round_winners(tournament: Tournament, round_number: int) -> list[tuple[str, str]]:
    """Return ``(id, name)`` winners of a round in ledger order, byes included."""
    winners = []
    for m in tournament.matchups:
        if m.round == round_number and m.completed and m.winnerId:
            winners.append((m.winnerId, m.winner_name or m.winnerId))
    return winners


def advance_round(tournament: Tournament, rng: random.Random | None = None) -> Tournament:
    """Generate the next elimination round or crown the champion.

    Returns the tournament unchanged while the current round is still open or
    when a later round already exists, so repeated calls are harmless.
    """
    if not tournament.is_elimination:
        return tournament

    current = tournament.currentRound
    round_matchups = [m for m in tournament.matchups if m.round == current]
    if not round_matchups or any(not m.completed for m in round_matchups):
        return tournament
    if any(m.round > current for m in tournament.matchups):
        return tournament

    winners = round_winners(tournament, current)
    if not winners:
        return tournament
    logger.info("Round %d of %s complete with %d winners", current, tournament.id, len(winners))

    if len(winners) == 1:
        champion_id, champion_name = winners[0]
        logger.info("%s is the champion of %s", champion_name, tournament.id)
        return tournament.with_matchups(
            list(tournament.matchups),
            status=STATUS_COMPLETED,
            championId=champion_id,
            championName=champion_name,
        )

    next_round = pair_round(current + 1, winners, rng or random.Random())
    logger.info("Generated round %d with %d matches", current + 1, len(next_round))
    return tournament.with_matchups(
        list(tournament.matchups) + next_round, currentRound=current + 1
    )
