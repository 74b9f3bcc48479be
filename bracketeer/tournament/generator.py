"""Schedule generation for elimination brackets and round robin leagues."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Sequence
from typing import Optional

from bracketeer.core.constants import (
    BYE_ID_PREFIX,
    BYE_NAME,
    MIN_ENTRANTS,
    MIN_TEAMS,
    TEAM_SIZE,
)
from bracketeer.errors import (
    InsufficientEntrantsError,
    InsufficientTeamsError,
    InvalidTeamSizeError,
)

from .entrants import partition_teams
from .models import Entrant, Matchup, Team

logger = logging.getLogger(__name__)


def bye_id() -> str:
    """Return a fresh synthetic opponent id for a bye."""
    return f"{BYE_ID_PREFIX}{int(time.time() * 1000)}"


def pair_round(
    round_number: int,
    sides: Sequence[tuple[str, str]],
    rng: random.Random,
) -> list[Matchup]:
    """Pair ``(id, name)`` sides consecutively into one elimination round.

    With an odd count one side, chosen with ``rng``, is removed first and
    gets a completed bye matchup appended after the regular pairings.
    """
    remaining = list(sides)
    bye_side = None
    if len(remaining) % 2 != 0:
        bye_side = remaining.pop(rng.randrange(len(remaining)))

    matchups = []
    for i in range(0, len(remaining), 2):
        (id1, name1), (id2, name2) = remaining[i], remaining[i + 1]
        matchups.append(
            Matchup(
                round=round_number,
                matchNumber=len(matchups) + 1,
                side1Id=id1,
                side2Id=id2,
                side1Name=name1,
                side2Name=name2,
            )
        )

    if bye_side is not None:
        logger.info("%s received a bye in round %d", bye_side[1], round_number)
        matchups.append(
            Matchup(
                round=round_number,
                matchNumber=len(matchups) + 1,
                side1Id=bye_side[0],
                side2Id=bye_id(),
                side1Name=bye_side[1],
                side2Name=BYE_NAME,
                completed=True,
                winnerId=bye_side[0],
                isBye=True,
            )
        )
    return matchups


class TournamentGenerator:
    """Utility class for generating tournament matches."""

    MIN_PARTICIPANTS = MIN_ENTRANTS

    @staticmethod
    def generate_elimination(
        entrants: Sequence[Entrant], rng: random.Random | None = None
    ) -> list[Matchup]:
        """Generate the first round of a single elimination bracket.

        Raises:
            InsufficientEntrantsError: If fewer than two entrants are given.
        """
        if len(entrants) < TournamentGenerator.MIN_PARTICIPANTS:
            raise InsufficientEntrantsError(len(entrants), TournamentGenerator.MIN_PARTICIPANTS)

        rng = rng or random.Random()
        shuffled = list(entrants)
        rng.shuffle(shuffled)

        logger.info("Creating elimination matchups for %d players", len(shuffled))
        return pair_round(1, [(e.id, e.name) for e in shuffled], rng)

    @staticmethod
    def generate_round_robin(teams: Sequence[Team]) -> list[Matchup]:
        """Generate the full round robin schedule using the circle method.

        Every team pairing expands into one matchup per roster slot.

        Raises:
            InvalidTeamSizeError: If any team does not have a full roster.
            InsufficientTeamsError: If fewer than two teams are given.
        """
        valid, invalid = partition_teams(teams)
        if invalid:
            raise InvalidTeamSizeError([t.name for t in invalid], TEAM_SIZE)
        if len(valid) < MIN_TEAMS:
            raise InsufficientTeamsError(len(valid), MIN_TEAMS)

        # None pads an odd field; that slot sits out the round
        slots: list[Optional[Team]] = list(valid)
        if len(slots) % 2 != 0:
            slots.append(None)

        num_participants = len(slots)
        num_rounds = num_participants - 1
        matches: list[Matchup] = []

        for round_index in range(num_rounds):
            round_number = round_index + 1
            match_number = 1
            for i in range(num_participants // 2):
                team1 = slots[i]
                team2 = slots[num_participants - 1 - i]
                if team1 is None or team2 is None:
                    continue
                for slot in range(TEAM_SIZE):
                    matches.append(
                        Matchup(
                            round=round_number,
                            matchNumber=match_number,
                            side1Id=team1.id,
                            side2Id=team2.id,
                            side1Name=team1.name,
                            side2Name=team2.name,
                            playerMatchNumber=slot + 1,
                            player1Id=team1.memberIds[slot],
                            player2Id=team2.memberIds[slot],
                            player1Name=team1.member_name(slot),
                            player2Name=team2.member_name(slot),
                        )
                    )
                    match_number += 1
            # Keep the first element fixed, rotate the others
            slots = [slots[0], slots[-1]] + slots[1:-1]

        logger.info(
            "Created %d round robin matchups over %d rounds for %d teams",
            len(matches),
            num_rounds,
            len(valid),
        )
        return matches
