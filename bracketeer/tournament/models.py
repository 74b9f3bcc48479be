"""Data models for the tournament engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Optional, TypedDict

from bracketeer.core.constants import (
    BYE_ID_PREFIX,
    KIND_ELIMINATION,
    KIND_ROUND_ROBIN,
    STATUS_UNSTARTED,
)
from bracketeer.core.types import FirestoreDocument
from bracketeer.errors import ValidationError

TOURNAMENT_KINDS = (KIND_ELIMINATION, KIND_ROUND_ROBIN)


class Registration(TypedDict, total=False):
    """A pending or approved registration stored on the tournament."""

    userId: str
    userName: str
    email: str
    type: str  # individual/team
    teamId: str
    teamName: str
    members: list[str]
    memberNames: list[str]


class MatchupDocument(TypedDict, total=False):
    """A single matchup as stored inside the tournament's ledger field."""

    round: int
    matchNumber: int
    side1Id: str
    side2Id: str
    side1Name: str
    side2Name: str
    completed: bool
    winnerId: Optional[str]
    scheduledTime: Optional[str]
    isBye: bool
    playerMatchNumber: Optional[int]
    player1Id: Optional[str]
    player2Id: Optional[str]
    player1Name: Optional[str]
    player2Name: Optional[str]


class TournamentDocument(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    name: str
    kind: str
    players: list[dict[str, Any]]
    teams: list[dict[str, Any]]
    matchups: list[MatchupDocument]
    currentRound: int
    status: str
    championId: Optional[str]
    championName: Optional[str]
    pendingRegistrations: list[Registration]
    approvedRegistrations: list[Registration]


@dataclass
class Entrant:
    """An individual participant."""

    id: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize for Firestore."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Entrant:
        """Build an entrant from a stored record."""
        return cls(id=str(data["id"]), name=str(data.get("name") or data["id"]))


@dataclass
class Team:
    """A round robin team with an ordered roster."""

    id: str
    name: str
    memberIds: list[str] = field(default_factory=list)
    memberNames: list[str] = field(default_factory=list)

    def member_name(self, index: int) -> str:
        """Return the display name of the member at ``index``."""
        if index < len(self.memberNames) and self.memberNames[index]:
            return self.memberNames[index]
        return self.memberIds[index]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for Firestore."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Team:
        """Build a team from a stored record."""
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            memberIds=[str(m) for m in data.get("memberIds", [])],
            memberNames=[str(n) for n in data.get("memberNames", [])],
        )


@dataclass(frozen=True)
class MatchKey:
    """Identifies one matchup in the ledger."""

    side1Id: str
    side2Id: str
    round: int
    matchNumber: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchKey:
        """Build a key from request or document fields."""
        try:
            return cls(
                side1Id=str(data["side1Id"]),
                side2Id=str(data["side2Id"]),
                round=int(data["round"]),
                matchNumber=int(data["matchNumber"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(
                "A matchup is identified by side1Id, side2Id, round and matchNumber."
            ) from e


@dataclass
class Matchup:
    """A matchup document from the ledger."""

    round: int
    matchNumber: int
    side1Id: str
    side2Id: str
    side1Name: str
    side2Name: str
    completed: bool = False
    winnerId: Optional[str] = None
    scheduledTime: Optional[str] = None
    isBye: bool = False
    playerMatchNumber: Optional[int] = None
    player1Id: Optional[str] = None
    player2Id: Optional[str] = None
    player1Name: Optional[str] = None
    player2Name: Optional[str] = None

    @property
    def key(self) -> MatchKey:
        """The key that addresses this matchup."""
        return MatchKey(self.side1Id, self.side2Id, self.round, self.matchNumber)

    @property
    def is_bye(self) -> bool:
        """Whether either side is a synthetic bye."""
        return self.isBye or self.side2Id.startswith(BYE_ID_PREFIX)

    def has_side(self, side_id: str) -> bool:
        return side_id in (self.side1Id, self.side2Id)

    def name_of(self, side_id: Optional[str]) -> Optional[str]:
        """Return the display name of one of the two sides."""
        if side_id == self.side1Id:
            return self.side1Name
        if side_id == self.side2Id:
            return self.side2Name
        return None

    @property
    def winner_name(self) -> Optional[str]:
        return self.name_of(self.winnerId)

    @property
    def loser_id(self) -> Optional[str]:
        if self.winnerId is None:
            return None
        return self.side2Id if self.winnerId == self.side1Id else self.side1Id

    def to_dict(self) -> MatchupDocument:
        """Serialize for Firestore, omitting round robin fields when unset."""
        data = asdict(self)
        if self.playerMatchNumber is None:
            for name in (
                "playerMatchNumber",
                "player1Id",
                "player2Id",
                "player1Name",
                "player2Name",
            ):
                data.pop(name)
        return data  # type: ignore[return-value]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Matchup:
        """Build a matchup from a stored ledger entry."""
        return cls(
            round=int(data.get("round") or 1),
            matchNumber=int(data.get("matchNumber") or 1),
            side1Id=str(data["side1Id"]),
            side2Id=str(data["side2Id"]),
            side1Name=str(data.get("side1Name") or data["side1Id"]),
            side2Name=str(data.get("side2Name") or data["side2Id"]),
            completed=bool(data.get("completed", False)),
            winnerId=data.get("winnerId"),
            scheduledTime=data.get("scheduledTime"),
            isBye=bool(data.get("isBye", False)),
            playerMatchNumber=data.get("playerMatchNumber"),
            player1Id=data.get("player1Id"),
            player2Id=data.get("player2Id"),
            player1Name=data.get("player1Name"),
            player2Name=data.get("player2Name"),
        )


@dataclass
class Tournament:
    """A tournament and its ledger.

    ``kind`` is resolved once when the document is loaded. Elimination
    tournaments carry ``players`` and round robin tournaments carry
    ``teams``; the other list stays empty.
    """

    id: str
    name: str
    kind: str
    players: list[Entrant] = field(default_factory=list)
    teams: list[Team] = field(default_factory=list)
    matchups: list[Matchup] = field(default_factory=list)
    currentRound: int = 1
    status: str = STATUS_UNSTARTED
    championId: Optional[str] = None
    championName: Optional[str] = None
    revision: int = 0
    pendingRegistrations: list[Registration] = field(default_factory=list)
    approvedRegistrations: list[Registration] = field(default_factory=list)
    createdAt: Any = None

    @property
    def is_elimination(self) -> bool:
        return self.kind == KIND_ELIMINATION

    @property
    def is_round_robin(self) -> bool:
        return self.kind == KIND_ROUND_ROBIN

    def with_matchups(self, matchups: list[Matchup], **changes: Any) -> Tournament:
        """Return a copy with a new ledger and any other field changes."""
        return replace(self, matchups=matchups, **changes)

    def to_dict(self) -> TournamentDocument:
        """Serialize for Firestore and JSON responses."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "matchups": [m.to_dict() for m in self.matchups],
            "currentRound": self.currentRound,
            "status": self.status,
            "championId": self.championId,
            "championName": self.championName,
            "revision": self.revision,
            "pendingRegistrations": list(self.pendingRegistrations),
            "approvedRegistrations": list(self.approvedRegistrations),
            "createdAt": self.createdAt,
        }
        if self.is_elimination:
            data["players"] = [p.to_dict() for p in self.players]
        else:
            data["teams"] = [t.to_dict() for t in self.teams]
        return data  # type: ignore[return-value]

    def ledger_fields(self) -> dict[str, Any]:
        """The fields an engine command rewrites."""
        return {
            "matchups": [m.to_dict() for m in self.matchups],
            "currentRound": self.currentRound,
            "status": self.status,
            "championId": self.championId,
            "championName": self.championName,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], tournament_id: str | None = None) -> Tournament:
        """Load a tournament document, resolving its kind."""
        kind = data.get("kind")
        if kind not in TOURNAMENT_KINDS:
            raise ValidationError(f"Unknown tournament kind: {kind!r}.")

        players: list[Entrant] = []
        teams: list[Team] = []
        if kind == KIND_ELIMINATION:
            players = [Entrant.from_dict(p) for p in data.get("players") or []]
        else:
            teams = [Team.from_dict(t) for t in data.get("teams") or []]

        return cls(
            id=tournament_id or str(data.get("id", "")),
            name=str(data.get("name", "")),
            kind=kind,
            players=players,
            teams=teams,
            matchups=[Matchup.from_dict(m) for m in data.get("matchups") or []],
            currentRound=int(data.get("currentRound") or 1),
            status=data.get("status") or STATUS_UNSTARTED,
            championId=data.get("championId"),
            championName=data.get("championName"),
            revision=int(data.get("revision") or 0),
            pendingRegistrations=list(data.get("pendingRegistrations") or []),
            approvedRegistrations=list(data.get("approvedRegistrations") or []),
            createdAt=data.get("createdAt"),
        )
