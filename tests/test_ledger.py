"""Tests for recording, correcting and scheduling matchup results."""

from __future__ import annotations

import random
import unittest
from dataclasses import replace

from bracketeer.core.constants import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_UNSTARTED,
)
from bracketeer.errors import InvariantViolation, MatchNotFoundError, ValidationError
from bracketeer.tournament.generator import TournamentGenerator
from bracketeer.tournament.ledger import (
    check_ledger,
    record_match_result,
    set_scheduled_time,
    set_winner,
)
from bracketeer.tournament.models import Entrant, MatchKey, Matchup, Team, Tournament


def elimination(*names: str) -> Tournament:
    """An in-progress elimination tournament with a fixed round 1."""
    players = [Entrant(id=n, name=n.upper()) for n in names]
    matchups = [
        Matchup(
            round=1,
            matchNumber=i // 2 + 1,
            side1Id=players[i].id,
            side2Id=players[i + 1].id,
            side1Name=players[i].name,
            side2Name=players[i + 1].name,
        )
        for i in range(0, len(players), 2)
    ]
    return Tournament(
        id="elim",
        name="Cup",
        kind="elimination",
        players=players,
        matchups=matchups,
        status=STATUS_IN_PROGRESS,
    )


def round_robin() -> Tournament:
    teams = [
        Team(id=t, name=t.upper(), memberIds=[f"{t}{k}" for k in range(1, 6)])
        for t in ("t1", "t2")
    ]
    return Tournament(
        id="rr",
        name="League",
        kind="roundrobin",
        teams=teams,
        matchups=TournamentGenerator.generate_round_robin(teams),
        status=STATUS_IN_PROGRESS,
    )


def key_of(tournament: Tournament, round_number: int, match_number: int) -> MatchKey:
    for m in tournament.matchups:
        if m.round == round_number and m.matchNumber == match_number:
            return m.key
    raise AssertionError(f"no round {round_number} match {match_number}")


def play(tournament: Tournament, round_number: int, match_number: int, winner: str) -> Tournament:
    key = key_of(tournament, round_number, match_number)
    return record_match_result(tournament, key, winner, random.Random(0))


class SetWinnerTestCase(unittest.TestCase):
    """Test case for set_winner."""

    def test_first_result_completes_matchup(self) -> None:
        tournament = elimination("a", "b", "c", "d")
        key = key_of(tournament, 1, 1)

        updated = set_winner(tournament, key, "b")

        self.assertTrue(updated.matchups[0].completed)
        self.assertEqual(updated.matchups[0].winnerId, "b")
        self.assertFalse(updated.matchups[1].completed)
        # The input tournament is left untouched
        self.assertFalse(tournament.matchups[0].completed)

    def test_unknown_key(self) -> None:
        tournament = elimination("a", "b")
        with self.assertRaises(MatchNotFoundError):
            set_winner(tournament, MatchKey("a", "b", 2, 1), "a")
        with self.assertRaises(MatchNotFoundError):
            set_winner(tournament, MatchKey("b", "a", 1, 1), "a")

    def test_winner_must_be_a_side(self) -> None:
        tournament = elimination("a", "b")
        with self.assertRaises(ValidationError):
            set_winner(tournament, key_of(tournament, 1, 1), "z")

    def test_bye_cannot_be_overridden(self) -> None:
        players = [Entrant(id=p, name=p) for p in ("a", "b", "c")]
        matchups = TournamentGenerator.generate_elimination(players, random.Random(2))
        tournament = Tournament(
            id="t", name="T", kind="elimination", players=players,
            matchups=matchups, status=STATUS_IN_PROGRESS,
        )
        bye = next(m for m in matchups if m.isBye)

        with self.assertRaises(ValidationError):
            set_winner(tournament, bye.key, bye.side1Id)

    def test_same_winner_is_a_no_op(self) -> None:
        tournament = set_winner(elimination("a", "b"), MatchKey("a", "b", 1, 1), "a")
        self.assertIs(set_winner(tournament, MatchKey("a", "b", 1, 1), "a"), tournament)


class CascadeTestCase(unittest.TestCase):
    """Test case for correcting elimination results."""

    def test_correction_replaces_old_winner_in_later_rounds(self) -> None:
        tournament = elimination("a", "b", "c", "d")
        tournament = play(tournament, 1, 1, "a")
        tournament = play(tournament, 1, 2, "c")
        tournament = play(tournament, 2, 1, "a")
        self.assertEqual(tournament.status, STATUS_COMPLETED)
        self.assertEqual(tournament.championId, "a")

        corrected = play(tournament, 1, 1, "b")

        final = next(m for m in corrected.matchups if m.round == 2)
        self.assertEqual((final.side1Id, final.side1Name), ("b", "B"))
        self.assertEqual(final.side2Id, "c")
        self.assertFalse(final.completed)
        self.assertIsNone(final.winnerId)
        self.assertEqual(corrected.status, STATUS_IN_PROGRESS)
        self.assertIsNone(corrected.championId)
        self.assertIsNone(corrected.championName)
        for m in corrected.matchups:
            if m.round > 1:
                self.assertFalse(m.has_side("a"))

    def test_correction_only_reaches_matchups_with_the_old_winner(self) -> None:
        """Matchups that did not include the old winner keep their result."""
        tournament = elimination("a", "b", "c", "d", "e", "f", "g", "h")
        for match_number, winner in enumerate(("a", "c", "e", "g"), start=1):
            tournament = play(tournament, 1, match_number, winner)
        tournament = play(tournament, 2, 1, "c")
        tournament = play(tournament, 2, 2, "e")
        tournament = play(tournament, 3, 1, "c")
        self.assertEqual(tournament.championId, "c")

        corrected = play(tournament, 1, 1, "b")

        semi = key_of(corrected, 2, 1)
        self.assertEqual((semi.side1Id, semi.side2Id), ("b", "c"))
        semi_matchup = next(m for m in corrected.matchups if m.key == semi)
        self.assertFalse(semi_matchup.completed)
        # Single-level propagation: the final is not re-opened because "a"
        # never reached it, even though its semi-final is undecided again.
        final = next(m for m in corrected.matchups if m.round == 3)
        self.assertTrue(final.completed)
        self.assertEqual(final.winnerId, "c")
        self.assertEqual(corrected.status, STATUS_IN_PROGRESS)
        self.assertIsNone(corrected.championId)

    def test_correction_moves_a_later_bye(self) -> None:
        tournament = elimination("a", "b", "c", "d", "e", "f")
        for match_number, winner in enumerate(("a", "c", "e"), start=1):
            tournament = play(tournament, 1, match_number, winner)
        bye = next(m for m in tournament.matchups if m.round == 2 and m.is_bye)
        fed_by = next(
            m for m in tournament.matchups if m.round == 1 and m.winnerId == bye.side1Id
        )
        new_winner = fed_by.loser_id

        corrected = play(tournament, 1, fed_by.matchNumber, new_winner)

        moved = next(m for m in corrected.matchups if m.round == 2 and m.is_bye)
        self.assertEqual(moved.side1Id, new_winner)
        self.assertTrue(moved.completed)
        self.assertEqual(moved.winnerId, new_winner)
        check_ledger(corrected.matchups)

        # The bracket can still finish the round and move on
        real = next(m for m in corrected.matchups if m.round == 2 and not m.is_bye)
        advanced = play(corrected, 2, real.matchNumber, real.side1Id)
        final = [m for m in advanced.matchups if m.round == 3]
        self.assertEqual(len(final), 1)
        self.assertTrue(final[0].has_side(new_winner))

    def test_correcting_the_final_crowns_the_new_winner(self) -> None:
        tournament = play(elimination("a", "b"), 1, 1, "b")
        self.assertEqual(tournament.championId, "b")

        corrected = play(tournament, 1, 1, "a")

        self.assertEqual(corrected.status, STATUS_COMPLETED)
        self.assertEqual((corrected.championId, corrected.championName), ("a", "A"))
        self.assertIs(play(corrected, 1, 1, "a"), corrected)

    def test_correcting_a_later_final_crowns_the_new_winner(self) -> None:
        tournament = elimination("a", "b", "c", "d")
        tournament = play(tournament, 1, 1, "a")
        tournament = play(tournament, 1, 2, "c")
        tournament = play(tournament, 2, 1, "a")

        corrected = play(tournament, 2, 1, "c")

        self.assertEqual(corrected.status, STATUS_COMPLETED)
        self.assertEqual(corrected.championId, "c")
        self.assertEqual(len(corrected.matchups), 3)

    def test_correction_does_not_generate_a_round(self) -> None:
        tournament = elimination("a", "b", "c", "d")
        tournament = play(tournament, 1, 1, "a")
        tournament = play(tournament, 1, 2, "c")

        corrected = play(tournament, 1, 2, "d")

        self.assertEqual(len([m for m in corrected.matchups if m.round == 2]), 1)
        self.assertEqual(corrected.currentRound, 2)

    def test_round_robin_correction_does_not_cascade(self) -> None:
        tournament = round_robin()
        for match_number in range(1, 6):
            tournament = play(tournament, 1, match_number, "t1")
        before = [m for m in tournament.matchups if m.matchNumber != 1]

        corrected = play(tournament, 1, 1, "t2")

        self.assertEqual(corrected.matchups[0].winnerId, "t2")
        self.assertEqual([m for m in corrected.matchups if m.matchNumber != 1], before)
        self.assertEqual(corrected.status, STATUS_IN_PROGRESS)

    def test_round_robin_correction_reopens_completed_league(self) -> None:
        tournament = round_robin()
        for match_number in range(1, 6):
            tournament = play(tournament, 1, match_number, "t1")
        tournament = replace(
            tournament, status=STATUS_COMPLETED, championId="t1", championName="T1"
        )

        corrected = play(tournament, 1, 1, "t2")

        self.assertEqual(corrected.status, STATUS_IN_PROGRESS)
        self.assertIsNone(corrected.championId)


class RecordMatchResultTestCase(unittest.TestCase):
    """Test case for record_match_result."""

    def test_unstarted_tournament_is_rejected(self) -> None:
        tournament = replace(elimination("a", "b"), status=STATUS_UNSTARTED)
        with self.assertRaises(ValidationError):
            record_match_result(tournament, MatchKey("a", "b", 1, 1), "a")

    def test_round_robin_never_advances(self) -> None:
        tournament = round_robin()
        for match_number in range(1, 6):
            tournament = play(tournament, 1, match_number, "t2")
        self.assertEqual(len(tournament.matchups), 5)
        self.assertEqual(tournament.currentRound, 1)
        self.assertEqual(tournament.status, STATUS_IN_PROGRESS)


class ScheduledTimeTestCase(unittest.TestCase):
    """Test case for set_scheduled_time."""

    def test_sets_and_clears_time(self) -> None:
        tournament = elimination("a", "b", "c", "d")
        key = key_of(tournament, 1, 2)

        scheduled = set_scheduled_time(tournament, key, "Sat 10:00, court 2")
        self.assertEqual(scheduled.matchups[1].scheduledTime, "Sat 10:00, court 2")
        self.assertIsNone(scheduled.matchups[0].scheduledTime)

        cleared = set_scheduled_time(scheduled, key, "")
        self.assertIsNone(cleared.matchups[1].scheduledTime)

    def test_unknown_key(self) -> None:
        with self.assertRaises(MatchNotFoundError):
            set_scheduled_time(elimination("a", "b"), MatchKey("x", "y", 1, 1), "now")


class CheckLedgerTestCase(unittest.TestCase):
    """Test case for the ledger consistency check."""

    def test_consistent_ledger_passes(self) -> None:
        tournament = play(elimination("a", "b", "c", "d"), 1, 1, "a")
        check_ledger(tournament.matchups)

    def test_winner_outside_sides_is_a_violation(self) -> None:
        broken = Matchup(
            round=1, matchNumber=1, side1Id="a", side2Id="b",
            side1Name="A", side2Name="B", completed=True, winnerId="z",
        )
        with self.assertLogs("bracketeer.tournament.ledger", level="ERROR"):
            with self.assertRaises(InvariantViolation):
                check_ledger([broken])


if __name__ == "__main__":
    unittest.main()
