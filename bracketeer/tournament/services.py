"""Service layer for tournament business logic."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from bracketeer.core.constants import (
    REGISTRATION_INDIVIDUAL,
    REGISTRATION_TEAM,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_UNSTARTED,
    TEAM_SIZE,
)
from bracketeer.errors import (
    ConcurrentModificationError,
    DuplicateResourceError,
    InvalidTeamSizeError,
    NotFoundError,
    TournamentNotFoundError,
    ValidationError,
)

from .entrants import display_name, entrants_from_registrations, teams_from_registrations
from .generator import TournamentGenerator
from .ledger import check_ledger, set_scheduled_time
from .ledger import record_match_result as apply_match_result
from .models import TOURNAMENT_KINDS, MatchKey, Registration, Tournament
from .standings import compute_standings as derive_standings
from .store import TournamentStore, store_errors

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)

Command = Callable[[Tournament], Tournament]


class TournamentService:
    """Handles business logic and data access for tournaments."""

    @staticmethod
    def _apply_command_transaction(
        transaction: Transaction,
        ref: DocumentReference,
        command: Command,
        expected_revision: int | None,
    ) -> Tournament:
        """Read the tournament, apply ``command`` and write the result back."""
        snapshot = cast("DocumentSnapshot", ref.get(transaction=transaction))
        if not snapshot.exists:
            raise TournamentNotFoundError(ref.id)

        current = Tournament.from_dict(snapshot.to_dict() or {}, ref.id)
        if expected_revision is not None and current.revision != expected_revision:
            raise ConcurrentModificationError(expected_revision, current.revision)

        updated = command(current)
        check_ledger(updated.matchups)
        updated = replace(updated, revision=current.revision + 1)

        fields = dict(updated.to_dict())
        fields.pop("id", None)
        fields.pop("createdAt", None)
        fields["updatedAt"] = firestore.SERVER_TIMESTAMP
        transaction.update(ref, fields)
        return updated

    @staticmethod
    def _run_command(
        tournament_id: str,
        command: Command,
        expected_revision: int | None = None,
        db: Client | None = None,
    ) -> Tournament:
        """Run ``command`` as one read-modify-write inside a transaction."""
        if db is None:
            db = firestore.client()
        ref = TournamentStore.document(db, tournament_id)
        apply = firestore.transactional(TournamentService._apply_command_transaction)
        with store_errors("update tournament", tournament_id):
            return cast(Tournament, apply(db.transaction(), ref, command, expected_revision))

    @staticmethod
    def create_tournament(data: dict[str, Any], db: Client | None = None) -> str:
        """Create an unstarted tournament and return its ID."""
        if db is None:
            db = firestore.client()

        name = str(data.get("name") or "").strip()
        if not name:
            raise ValidationError("Tournament name is required.")
        kind = data.get("kind")
        if kind not in TOURNAMENT_KINDS:
            raise ValidationError(f"Tournament kind must be one of {', '.join(TOURNAMENT_KINDS)}.")

        payload = dict(Tournament(id="", name=name, kind=kind).to_dict())
        payload.pop("id")
        payload["createdAt"] = firestore.SERVER_TIMESTAMP
        tournament_id = TournamentStore.create(db, payload)
        logger.info("Created %s tournament %s (%s)", kind, tournament_id, name)
        return tournament_id

    @staticmethod
    def get_tournament(tournament_id: str, db: Client | None = None) -> Tournament:
        """Fetch a tournament by ID."""
        if db is None:
            db = firestore.client()
        return Tournament.from_dict(TournamentStore.get(db, tournament_id), tournament_id)

    @staticmethod
    def list_tournaments(
        status: str | None = None, kind: str | None = None, db: Client | None = None
    ) -> list[Tournament]:
        """Fetch tournaments, optionally filtered by status and kind."""
        if db is None:
            db = firestore.client()
        return [
            Tournament.from_dict(data, data["id"])
            for data in TournamentStore.query(db, status=status, kind=kind)
        ]

    @staticmethod
    def update_tournament(
        tournament_id: str, update_data: dict[str, Any], db: Client | None = None
    ) -> None:
        """Update the tournament name, or its kind while it is unstarted."""
        if db is None:
            db = firestore.client()
        tournament = TournamentService.get_tournament(tournament_id, db)

        fields: dict[str, Any] = {}
        if "name" in update_data:
            name = str(update_data["name"] or "").strip()
            if not name:
                raise ValidationError("Tournament name is required.")
            fields["name"] = name
        if "kind" in update_data and update_data["kind"] != tournament.kind:
            if update_data["kind"] not in TOURNAMENT_KINDS:
                raise ValidationError(f"Unknown tournament kind: {update_data['kind']!r}.")
            has_registrations = bool(
                tournament.pendingRegistrations or tournament.approvedRegistrations
            )
            if tournament.status != STATUS_UNSTARTED or has_registrations:
                raise ValidationError("The kind of a tournament with registrations cannot change.")
            fields["kind"] = update_data["kind"]

        if fields:
            TournamentStore.update(db, tournament_id, fields)

    @staticmethod
    def delete_tournament(tournament_id: str, db: Client | None = None) -> None:
        """Delete a tournament document."""
        if db is None:
            db = firestore.client()
        TournamentStore.get(db, tournament_id)
        TournamentStore.delete(db, tournament_id)

    @staticmethod
    def _registration_id(registration: Registration) -> str | None:
        if registration.get("type") == REGISTRATION_TEAM:
            return registration.get("teamId")
        return registration.get("userId")

    @staticmethod
    def _build_registration(tournament: Tournament, data: dict[str, Any]) -> Registration:
        """Validate a registration request against the tournament kind."""
        user_id = str(data.get("userId") or "").strip()
        if not user_id:
            raise ValidationError("userId is required to register.")

        registration: Registration = {
            "userId": user_id,
            "userName": display_name(data, user_id),
        }
        if data.get("email"):
            registration["email"] = str(data["email"])

        if tournament.is_elimination:
            registration["type"] = REGISTRATION_INDIVIDUAL
            return registration

        team_id = str(data.get("teamId") or "").strip()
        if not team_id:
            raise ValidationError("Round robin tournaments require a team registration.")
        members = [str(m) for m in data.get("members") or []]
        team_name = str(data.get("teamName") or team_id)
        if len(members) != TEAM_SIZE:
            raise InvalidTeamSizeError([team_name], TEAM_SIZE)

        registration.update(
            {
                "type": REGISTRATION_TEAM,
                "teamId": team_id,
                "teamName": team_name,
                "members": members,
            }
        )
        if data.get("memberNames"):
            registration["memberNames"] = [str(n) for n in data["memberNames"]]
        return registration

    @staticmethod
    def register(
        tournament_id: str, data: dict[str, Any], db: Client | None = None
    ) -> Registration:
        """Submit a registration for organizer approval.

        The duplicate check and the write happen in one transaction.
        """
        submitted: list[Registration] = []

        def add(tournament: Tournament) -> Tournament:
            if tournament.status != STATUS_UNSTARTED:
                raise ValidationError("Registration is closed for this tournament.")

            registration = TournamentService._build_registration(tournament, data)
            reg_id = TournamentService._registration_id(registration)
            existing = tournament.pendingRegistrations + tournament.approvedRegistrations
            if any(TournamentService._registration_id(r) == reg_id for r in existing):
                raise DuplicateResourceError(f"{reg_id} is already registered.")

            submitted.append(registration)
            return replace(
                tournament,
                pendingRegistrations=tournament.pendingRegistrations + [registration],
            )

        TournamentService._run_command(tournament_id, add, db=db)
        return submitted[-1]

    @staticmethod
    def _without(registrations: list[Registration], registration_id: str) -> list[Registration]:
        return [
            r for r in registrations
            if TournamentService._registration_id(r) != registration_id
        ]

    @staticmethod
    def _find_pending(tournament: Tournament, registration_id: str) -> Registration:
        for registration in tournament.pendingRegistrations:
            if TournamentService._registration_id(registration) == registration_id:
                return registration
        raise NotFoundError(f"No pending registration for {registration_id}.")

    @staticmethod
    def approve_registration(
        tournament_id: str, registration_id: str, db: Client | None = None
    ) -> None:
        """Move a pending registration to the approved list."""

        def approve(tournament: Tournament) -> Tournament:
            if tournament.status != STATUS_UNSTARTED:
                raise ValidationError("Registration is closed for this tournament.")
            registration = TournamentService._find_pending(tournament, registration_id)
            return replace(
                tournament,
                pendingRegistrations=TournamentService._without(
                    tournament.pendingRegistrations, registration_id
                ),
                approvedRegistrations=tournament.approvedRegistrations + [registration],
            )

        TournamentService._run_command(tournament_id, approve, db=db)

    @staticmethod
    def reject_registration(
        tournament_id: str, registration_id: str, db: Client | None = None
    ) -> None:
        """Drop a pending registration."""

        def reject(tournament: Tournament) -> Tournament:
            TournamentService._find_pending(tournament, registration_id)
            return replace(
                tournament,
                pendingRegistrations=TournamentService._without(
                    tournament.pendingRegistrations, registration_id
                ),
            )

        TournamentService._run_command(tournament_id, reject, db=db)

    @staticmethod
    def start_tournament(
        tournament_id: str,
        rng: random.Random | None = None,
        expected_revision: int | None = None,
        db: Client | None = None,
    ) -> Tournament:
        """Generate the schedule from approved registrations and start play."""

        def start(tournament: Tournament) -> Tournament:
            if tournament.status != STATUS_UNSTARTED:
                raise ValidationError("Tournament has already started.")
            if tournament.is_elimination:
                players = entrants_from_registrations(
                    r for r in tournament.approvedRegistrations
                    if r.get("type") == REGISTRATION_INDIVIDUAL
                )
                return replace(
                    tournament,
                    players=players,
                    matchups=TournamentGenerator.generate_elimination(players, rng),
                    currentRound=1,
                    status=STATUS_IN_PROGRESS,
                )

            teams = teams_from_registrations(
                r for r in tournament.approvedRegistrations
                if r.get("type") == REGISTRATION_TEAM
            )
            return replace(
                tournament,
                teams=teams,
                matchups=TournamentGenerator.generate_round_robin(teams),
                currentRound=1,
                status=STATUS_IN_PROGRESS,
            )

        tournament = TournamentService._run_command(tournament_id, start, expected_revision, db)
        logger.info(
            "Started tournament %s with %d matchups", tournament_id, len(tournament.matchups)
        )
        return tournament

    @staticmethod
    def record_match_result(
        tournament_id: str,
        key: MatchKey,
        winner_id: str,
        expected_revision: int | None = None,
        rng: random.Random | None = None,
        db: Client | None = None,
    ) -> Tournament:
        """Record or correct a match winner and advance the bracket."""
        return TournamentService._run_command(
            tournament_id,
            lambda t: apply_match_result(t, key, winner_id, rng),
            expected_revision,
            db,
        )

    @staticmethod
    def set_match_time(
        tournament_id: str,
        key: MatchKey,
        scheduled_time: str | None,
        expected_revision: int | None = None,
        db: Client | None = None,
    ) -> Tournament:
        """Set the freeform scheduled time of a matchup."""
        return TournamentService._run_command(
            tournament_id,
            lambda t: set_scheduled_time(t, key, scheduled_time),
            expected_revision,
            db,
        )

    @staticmethod
    def compute_standings(tournament_id: str, db: Client | None = None) -> dict[str, Any]:
        """Derive the current standings of a tournament."""
        return derive_standings(TournamentService.get_tournament(tournament_id, db))

    @staticmethod
    def complete_tournament(
        tournament_id: str,
        expected_revision: int | None = None,
        db: Client | None = None,
    ) -> Tournament:
        """Finalize a round robin once every matchup has a winner."""

        def complete(tournament: Tournament) -> Tournament:
            if not tournament.is_round_robin:
                raise ValidationError(
                    "Elimination tournaments complete when the final is decided."
                )
            if tournament.status != STATUS_IN_PROGRESS:
                raise ValidationError("Only a tournament in progress can be completed.")
            results = derive_standings(tournament)
            stats = results["tournamentStats"]
            if not stats["isComplete"]:
                undecided = stats["totalMatches"] - stats["completedMatches"]
                raise ValidationError(f"{undecided} matchups are still undecided.")
            champion = stats["champion"]
            return replace(
                tournament,
                status=STATUS_COMPLETED,
                championId=champion["id"],
                championName=champion["name"],
            )

        tournament = TournamentService._run_command(tournament_id, complete, expected_revision, db)
        logger.info("%s won tournament %s", tournament.championName, tournament_id)
        return tournament
