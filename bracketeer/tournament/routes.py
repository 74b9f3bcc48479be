"""Routes for the tournament blueprint."""

from __future__ import annotations

import random
from typing import Any

from flask import current_app, jsonify, request

from bracketeer.errors import ValidationError

from . import bp
from .models import MatchKey
from .services import TournamentService


def _payload() -> dict[str, Any]:
    """Return the JSON body of the request, or an empty dict."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _expected_revision(data: dict[str, Any]) -> int | None:
    """Read the optional optimistic-lock revision sent by the client."""
    revision = data.get("revision")
    if revision is None:
        return None
    try:
        return int(revision)
    except (TypeError, ValueError) as e:
        raise ValidationError("revision must be an integer.") from e


def _pairing_rng() -> random.Random:
    """Return the random source used for pairings and byes."""
    seed = current_app.config.get("PAIRING_SEED")
    return random.Random(seed) if seed is not None else random.Random()


@bp.route("/", methods=["GET"])
def list_tournaments() -> Any:
    """List tournaments, optionally filtered by status and kind."""
    tournaments = TournamentService.list_tournaments(
        status=request.args.get("status"), kind=request.args.get("kind")
    )
    return jsonify({"tournaments": [t.to_dict() for t in tournaments]})


@bp.route("/", methods=["POST"])
def create_tournament() -> Any:
    """Create a new tournament."""
    tournament_id = TournamentService.create_tournament(_payload())
    current_app.logger.info(f"Tournament {tournament_id} created.")
    return jsonify({"success": True, "id": tournament_id}), 201


@bp.route("/<string:tournament_id>", methods=["GET"])
def view_tournament(tournament_id: str) -> Any:
    """Return a tournament with its ledger."""
    return jsonify(TournamentService.get_tournament(tournament_id).to_dict())


@bp.route("/<string:tournament_id>", methods=["PATCH"])
def edit_tournament(tournament_id: str) -> Any:
    """Edit tournament details."""
    TournamentService.update_tournament(tournament_id, _payload())
    return jsonify(TournamentService.get_tournament(tournament_id).to_dict())


@bp.route("/<string:tournament_id>", methods=["DELETE"])
def delete_tournament(tournament_id: str) -> Any:
    """Delete a tournament."""
    TournamentService.delete_tournament(tournament_id)
    current_app.logger.info(f"Tournament {tournament_id} deleted.")
    return jsonify({"success": True})


@bp.route("/<string:tournament_id>/registrations", methods=["POST"])
def register(tournament_id: str) -> Any:
    """Submit a registration for approval."""
    registration = TournamentService.register(tournament_id, _payload())
    return jsonify({"success": True, "registration": registration}), 201


@bp.route(
    "/<string:tournament_id>/registrations/<string:registration_id>/approve",
    methods=["POST"],
)
def approve_registration(tournament_id: str, registration_id: str) -> Any:
    """Approve a pending registration."""
    TournamentService.approve_registration(tournament_id, registration_id)
    return jsonify({"success": True})


@bp.route(
    "/<string:tournament_id>/registrations/<string:registration_id>/reject",
    methods=["POST"],
)
def reject_registration(tournament_id: str, registration_id: str) -> Any:
    """Reject a pending registration."""
    TournamentService.reject_registration(tournament_id, registration_id)
    return jsonify({"success": True})


@bp.route("/<string:tournament_id>/start", methods=["POST"])
def start_tournament(tournament_id: str) -> Any:
    """Generate the schedule and start the tournament."""
    data = _payload()
    tournament = TournamentService.start_tournament(
        tournament_id, rng=_pairing_rng(), expected_revision=_expected_revision(data)
    )
    return jsonify(tournament.to_dict())


@bp.route("/<string:tournament_id>/results", methods=["POST"])
def record_result(tournament_id: str) -> Any:
    """Record or correct the winner of a matchup."""
    data = _payload()
    winner_id = data.get("winnerId")
    if not winner_id:
        raise ValidationError("winnerId is required.")
    tournament = TournamentService.record_match_result(
        tournament_id,
        MatchKey.from_dict(data),
        str(winner_id),
        expected_revision=_expected_revision(data),
        rng=_pairing_rng(),
    )
    return jsonify(tournament.to_dict())


@bp.route("/<string:tournament_id>/schedule", methods=["POST"])
def schedule_match(tournament_id: str) -> Any:
    """Set the scheduled time of a matchup."""
    data = _payload()
    tournament = TournamentService.set_match_time(
        tournament_id,
        MatchKey.from_dict(data),
        data.get("scheduledTime"),
        expected_revision=_expected_revision(data),
    )
    return jsonify(tournament.to_dict())


@bp.route("/<string:tournament_id>/standings", methods=["GET"])
def standings(tournament_id: str) -> Any:
    """Return the standings view."""
    return jsonify(TournamentService.compute_standings(tournament_id))


@bp.route("/<string:tournament_id>/complete", methods=["POST"])
def complete_tournament(tournament_id: str) -> Any:
    """Finalize a round robin tournament."""
    data = _payload()
    tournament = TournamentService.complete_tournament(
        tournament_id, expected_revision=_expected_revision(data)
    )
    return jsonify(tournament.to_dict())
