"""Standings and results views derived from the match ledger."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from bracketeer.core.constants import (
    ENTRANT_ACTIVE,
    ENTRANT_CHAMPION,
    ENTRANT_ELIMINATED,
    PAIRING_TIE_POINTS,
    PAIRING_WIN_POINTS,
    PARTIAL_LEADER_SHARE,
    PARTIAL_TIED_SHARE,
    PARTIAL_TRAILER_SHARE,
    TEAM_SIZE,
)

from .models import Entrant, Matchup, Team, Tournament


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Get the display name of a round counted back from the last one."""
    if round_number == total_rounds:
        return "Final"
    if round_number == total_rounds - 1:
        return "Semi-Final"
    if round_number == total_rounds - 2:
        return "Quarter-Final"
    if round_number == 1:
        return "First Round"
    return f"Round {round_number}"


def _decided(matchups: Sequence[Matchup]) -> list[Matchup]:
    return [m for m in matchups if m.completed and m.winnerId]


def compute_elimination_results(
    players: Sequence[Entrant], matchups: Sequence[Matchup]
) -> dict[str, Any]:
    """Rank elimination entrants by how far they got."""
    status: dict[str, dict[str, Any]] = {
        p.id: {
            "id": p.id,
            "name": p.name,
            "status": ENTRANT_ACTIVE,
            "wins": 0,
            "losses": 0,
            "reachedRound": 1,
            "eliminatedInRound": None,
            "eliminatedBy": None,
        }
        for p in players
    }
    names = {p.id: p.name for p in players}

    total_rounds = max((m.round for m in matchups), default=1)
    decided = [m for m in _decided(matchups) if not m.is_bye]

    history = []
    for m in decided:
        winner_id = m.winnerId
        loser_id = m.loser_id
        winner_name = names.get(winner_id) or m.winner_name or "Unknown"
        loser_name = names.get(loser_id) or m.name_of(loser_id) or "Unknown"
        history.append(
            {
                "round": m.round,
                "roundName": get_round_name(m.round, total_rounds),
                "winnerId": winner_id,
                "winner": winner_name,
                "loserId": loser_id,
                "loser": loser_name,
            }
        )

        if winner_id in status:
            w = status[winner_id]
            w["wins"] += 1
            w["reachedRound"] = max(w["reachedRound"], m.round + 1)
        if loser_id in status:
            loser = status[loser_id]
            loser["losses"] += 1
            loser["status"] = ENTRANT_ELIMINATED
            loser["eliminatedInRound"] = m.round
            loser["eliminatedBy"] = winner_name
            loser["reachedRound"] = m.round

    active = [s for s in status.values() if s["status"] == ENTRANT_ACTIVE]
    if len(active) == 1 and decided:
        active[0]["status"] = ENTRANT_CHAMPION

    ranked = sorted(status.values(), key=lambda s: s["name"])
    ranked.sort(key=lambda s: (s["reachedRound"], s["wins"]), reverse=True)
    ranked.sort(key=lambda s: s["status"] != ENTRANT_CHAMPION)

    progression = [
        {
            "round": r,
            "roundName": get_round_name(r, total_rounds),
            "totalMatches": sum(1 for m in matchups if m.round == r),
            "completedMatches": sum(1 for m in _decided(matchups) if m.round == r),
        }
        for r in range(1, total_rounds + 1)
    ]

    champion = next((s for s in ranked if s["status"] == ENTRANT_CHAMPION), None)
    return {
        "kind": "elimination",
        "players": ranked,
        "roundProgression": progression,
        "matchHistory": list(reversed(history)),
        "tournamentStats": {
            "totalRounds": total_rounds,
            "champion": champion,
            "isComplete": len(active) <= 1 and bool(decided),
        },
    }


def aggregate_pairings(matchups: Sequence[Matchup]) -> dict[tuple[str, str], dict[str, Any]]:
    """Fold decided sub-matches into one record per unordered team pairing."""
    pairings: dict[tuple[str, str], dict[str, Any]] = {}
    for m in _decided(matchups):
        pairing_key = tuple(sorted((m.side1Id, m.side2Id)))
        if pairing_key not in pairings:
            pairings[pairing_key] = {
                "team1Id": m.side1Id,
                "team2Id": m.side2Id,
                "team1Wins": 0,
                "team2Wins": 0,
                "completedCount": 0,
            }
        pairing = pairings[pairing_key]
        if m.winnerId == pairing["team1Id"]:
            pairing["team1Wins"] += 1
        elif m.winnerId == pairing["team2Id"]:
            pairing["team2Wins"] += 1
        pairing["completedCount"] += 1
    return pairings


def pairing_points(team1_wins: int, team2_wins: int, completed_count: int) -> tuple[float, float]:
    """Return the points each team earns from one pairing so far."""
    if completed_count <= 0:
        return 0.0, 0.0
    if completed_count >= TEAM_SIZE:
        if team1_wins > team2_wins:
            return float(PAIRING_WIN_POINTS), 0.0
        if team2_wins > team1_wins:
            return 0.0, float(PAIRING_WIN_POINTS)
        return float(PAIRING_TIE_POINTS), float(PAIRING_TIE_POINTS)

    # Partial series: share the points earned so far by current lead
    progress = completed_count / TEAM_SIZE * PAIRING_WIN_POINTS
    if team1_wins > team2_wins:
        return progress * PARTIAL_LEADER_SHARE, progress * PARTIAL_TRAILER_SHARE
    if team2_wins > team1_wins:
        return progress * PARTIAL_TRAILER_SHARE, progress * PARTIAL_LEADER_SHARE
    return progress * PARTIAL_TIED_SHARE, progress * PARTIAL_TIED_SHARE


def _head_to_head(wins: int, losses: int, played: bool) -> dict[str, Any]:
    result = None
    if wins > losses:
        result = "W"
    elif losses > wins:
        result = "L"
    return {"wins": wins, "losses": losses, "played": 1 if played else 0, "result": result}


def compute_round_robin_results(
    teams: Sequence[Team], matchups: Sequence[Matchup]
) -> dict[str, Any]:
    """Build the points table for a round robin league."""
    stats: dict[str, dict[str, Any]] = {
        t.id: {
            "id": t.id,
            "name": t.name,
            "points": 0.0,
            "totalWins": 0,
            "totalMatches": 0,
            "individualWins": 0,
            "individualLosses": 0,
            "results": {
                o.id: _head_to_head(0, 0, False) for o in teams if o.id != t.id
            },
        }
        for t in teams
    }

    for pairing in aggregate_pairings(matchups).values():
        t1, t2 = pairing["team1Id"], pairing["team2Id"]
        w1, w2 = pairing["team1Wins"], pairing["team2Wins"]
        count = pairing["completedCount"]
        if t1 not in stats or t2 not in stats:
            continue

        stats[t1]["individualWins"] += w1
        stats[t1]["individualLosses"] += w2
        stats[t2]["individualWins"] += w2
        stats[t2]["individualLosses"] += w1
        stats[t1]["results"][t2] = _head_to_head(w1, w2, count > 0)
        stats[t2]["results"][t1] = _head_to_head(w2, w1, count > 0)

        p1, p2 = pairing_points(w1, w2, count)
        stats[t1]["points"] += p1
        stats[t2]["points"] += p2

        if count >= TEAM_SIZE:
            stats[t1]["totalMatches"] += 1
            stats[t2]["totalMatches"] += 1
            if w1 > w2:
                stats[t1]["totalWins"] += 1
            elif w2 > w1:
                stats[t2]["totalWins"] += 1

    table = sorted(
        stats.values(),
        key=lambda s: (s["points"], s["totalWins"], s["individualWins"]),
        reverse=True,
    )

    completed = sum(1 for m in matchups if m.completed)
    is_complete = bool(matchups) and completed == len(matchups)
    return {
        "kind": "roundrobin",
        "tableData": table,
        "tournamentStats": {
            "isComplete": is_complete,
            "champion": table[0] if is_complete and table else None,
            "totalMatches": len(matchups),
            "completedMatches": completed,
        },
    }


def compute_standings(tournament: Tournament) -> dict[str, Any]:
    """Derive the results view appropriate for the tournament's kind."""
    if tournament.is_elimination:
        return compute_elimination_results(tournament.players, tournament.matchups)
    return compute_round_robin_results(tournament.teams, tournament.matchups)
