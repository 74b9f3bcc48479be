"""Operations on the match ledger: recording, correcting and scheduling results."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from dataclasses import replace

from bracketeer.core.constants import STATUS_COMPLETED, STATUS_IN_PROGRESS
from bracketeer.errors import InvariantViolation, MatchNotFoundError, ValidationError

from .advancer import advance_round
from .models import MatchKey, Matchup, Tournament

logger = logging.getLogger(__name__)


def find_matchup_index(matchups: list[Matchup], key: MatchKey) -> int:
    """Return the position of the matchup addressed by ``key``.

    Raises:
        MatchNotFoundError: If no matchup has that key.
    """
    for index, m in enumerate(matchups):
        if m.key == key:
            return index
    raise MatchNotFoundError(key)


def _cascade_winner_change(
    matchups: list[Matchup], source: Matchup, old_winner: str, new_winner: str
) -> list[Matchup]:
    """Replace ``old_winner`` with ``new_winner`` in every later-round matchup.

    A later bye moves to the new winner and stays decided. Other touched
    matchups that were already decided are reopened; their own downstream
    matchups are left alone.
    """
    new_name = source.name_of(new_winner) or new_winner
    updated = []
    for m in matchups:
        if m.round <= source.round or not m.has_side(old_winner):
            updated.append(m)
            continue
        if m.side1Id == old_winner:
            m = replace(m, side1Id=new_winner, side1Name=new_name)
        else:
            m = replace(m, side2Id=new_winner, side2Name=new_name)
        if m.is_bye:
            m = replace(m, completed=True, winnerId=new_winner)
        elif m.completed:
            m = replace(m, completed=False, winnerId=None)
        logger.info(
            "Round %d match %d now features %s instead of %s",
            m.round,
            m.matchNumber,
            new_name,
            old_winner,
        )
        updated.append(m)
    return updated


def set_winner(tournament: Tournament, key: MatchKey, winner_id: str) -> Tournament:
    """Record or override the winner of one matchup.

    Correcting an elimination result moves the new winner into every later
    round the old winner had reached and reopens the tournament.

    Raises:
        MatchNotFoundError: If ``key`` does not address a matchup.
        ValidationError: If the winner is not one of the two sides or the
            matchup is a bye.
    """
    matchups = list(tournament.matchups)
    index = find_matchup_index(matchups, key)
    target = matchups[index]

    if target.is_bye:
        raise ValidationError("Bye matchups advance automatically.")
    if not target.has_side(winner_id):
        raise ValidationError(
            f"Winner {winner_id} is not a side of round {key.round} match {key.matchNumber}."
        )

    previous = target.winnerId if target.completed else None
    if previous == winner_id:
        return tournament

    target = replace(target, completed=True, winnerId=winner_id)
    matchups[index] = target

    if previous is None:
        return tournament.with_matchups(matchups)

    logger.info(
        "Winner of round %d match %d in %s changed from %s to %s",
        key.round,
        key.matchNumber,
        tournament.id,
        previous,
        winner_id,
    )
    if tournament.is_elimination:
        matchups = _cascade_winner_change(matchups, target, previous, winner_id)

    reopen = tournament.is_elimination or tournament.status == STATUS_COMPLETED
    if not reopen:
        return tournament.with_matchups(matchups)
    return tournament.with_matchups(
        matchups,
        status=STATUS_IN_PROGRESS,
        championId=None,
        championName=None,
    )


def record_match_result(
    tournament: Tournament,
    key: MatchKey,
    winner_id: str,
    rng: random.Random | None = None,
) -> Tournament:
    """Apply a reported result and advance the bracket when a round closes.

    A correction inside the current round is advanced too, so fixing the
    final crowns the new winner.
    """
    if tournament.status not in (STATUS_IN_PROGRESS, STATUS_COMPLETED):
        raise ValidationError("Tournament has not started.")

    index = find_matchup_index(tournament.matchups, key)
    target = tournament.matchups[index]

    updated = set_winner(tournament, key, winner_id)
    if updated is tournament or not updated.is_elimination:
        return updated
    if not target.completed or target.round == updated.currentRound:
        updated = advance_round(updated, rng)
    return updated


def set_scheduled_time(
    tournament: Tournament, key: MatchKey, scheduled_time: str | None
) -> Tournament:
    """Attach a freeform scheduled time to one matchup."""
    matchups = list(tournament.matchups)
    index = find_matchup_index(matchups, key)
    matchups[index] = replace(matchups[index], scheduledTime=scheduled_time or None)
    return tournament.with_matchups(matchups)


def check_ledger(matchups: Iterable[Matchup]) -> None:
    """Verify that every decided matchup was won by one of its sides.

    Raises:
        InvariantViolation: On the first inconsistent matchup.
    """
    for m in matchups:
        if m.completed and not m.has_side(m.winnerId or ""):
            logger.error(
                "Round %d match %d is completed with winner %r outside %s vs %s",
                m.round,
                m.matchNumber,
                m.winnerId,
                m.side1Id,
                m.side2Id,
            )
            raise InvariantViolation(
                f"Round {m.round} match {m.matchNumber} has an invalid winner."
            )
