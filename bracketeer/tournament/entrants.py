"""Normalization of raw player and team records into entrants."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from bracketeer.core.constants import TEAM_SIZE

from .models import Entrant, Team

logger = logging.getLogger(__name__)


def _first_present(data: Mapping[str, Any], *keys: str) -> str | None:
    """Return the first non-empty string value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return value
    return None


def display_name(data: Mapping[str, Any], raw_id: str) -> str:
    """Pick a display name: explicit name, then an email-like id, then the id."""
    name = _first_present(data, "name", "displayName", "userName")
    if name:
        return name
    email = _first_present(data, "email")
    if email:
        return email
    return raw_id


def normalize_entrants(raw_list: Iterable[Any] | None) -> list[Entrant]:
    """Turn loosely shaped player records into entrants.

    Records that are not mappings or have no id are dropped, as are repeated
    ids (the first occurrence wins). The result is never longer than the input.
    """
    entrants: list[Entrant] = []
    seen: set[str] = set()
    dropped = 0
    for raw in raw_list or []:
        if not isinstance(raw, Mapping):
            dropped += 1
            continue
        entrant_id = _first_present(raw, "id", "userId", "uid")
        if not entrant_id or entrant_id in seen:
            dropped += 1
            continue
        seen.add(entrant_id)
        entrants.append(Entrant(id=entrant_id, name=display_name(raw, entrant_id)))

    if dropped:
        logger.warning("Dropped %d malformed or duplicate entrant records", dropped)
    return entrants


def normalize_teams(raw_list: Iterable[Any] | None) -> list[Team]:
    """Turn loosely shaped team records into teams.

    Roster size is not checked here; see :func:`partition_teams`.
    """
    teams: list[Team] = []
    seen: set[str] = set()
    dropped = 0
    for raw in raw_list or []:
        if not isinstance(raw, Mapping):
            dropped += 1
            continue
        team_id = _first_present(raw, "id", "teamId")
        if not team_id or team_id in seen:
            dropped += 1
            continue
        seen.add(team_id)

        members = raw.get("memberIds") or raw.get("members") or []
        member_ids = [str(m) for m in members if m is not None and str(m).strip()]
        member_names = [str(n) for n in raw.get("memberNames") or []]
        teams.append(
            Team(
                id=team_id,
                name=_first_present(raw, "name", "teamName") or team_id,
                memberIds=member_ids,
                memberNames=member_names,
            )
        )

    if dropped:
        logger.warning("Dropped %d malformed or duplicate team records", dropped)
    return teams


def partition_teams(teams: Iterable[Team]) -> tuple[list[Team], list[Team]]:
    """Split teams into those with a full roster and those without."""
    valid: list[Team] = []
    invalid: list[Team] = []
    for team in teams:
        (valid if len(team.memberIds) == TEAM_SIZE else invalid).append(team)
    return valid, invalid


def entrants_from_registrations(registrations: Iterable[Mapping[str, Any]]) -> list[Entrant]:
    """Build elimination entrants from approved individual registrations."""
    return normalize_entrants(
        {"id": r.get("userId"), "name": r.get("userName"), "email": r.get("email")}
        for r in registrations
    )


def teams_from_registrations(registrations: Iterable[Mapping[str, Any]]) -> list[Team]:
    """Build round robin teams from approved team registrations."""
    return normalize_teams(
        {
            "id": r.get("teamId"),
            "name": r.get("teamName"),
            "memberIds": r.get("members"),
            "memberNames": r.get("memberNames"),
        }
        for r in registrations
    )
