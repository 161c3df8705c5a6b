"""
Web application module for the Futsal Tracker.

This module contains the Flask web server that exposes the live-match console
as JSON API endpoints and streams match changes to viewers with
Server-Sent Events.
"""
import json
import logging
import os
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request, send_from_directory
from werkzeug.exceptions import HTTPException

from ..services import (
    InvalidFormatSettings, MatchError, NotFound, RosterValidationError, ServiceFactory
)
from ..utils import (
    APP_TITLE, AUTOSAVE_DIR, DEFAULT_HOST, DEFAULT_PORT, STREAM_KEEPALIVE_SECONDS
)

logger = logging.getLogger(__name__)


class BadPayload(ValueError):
    """Request body is missing a field or has the wrong type."""


class WebAppState:
    """
    State holder for the web application.

    Uses the service factory so every endpoint shares one store, one lock
    registry and one broadcaster.
    """

    def __init__(self, factory: Optional[ServiceFactory] = None, save_dir: str = AUTOSAVE_DIR):
        self.service_factory = factory or ServiceFactory()
        self.save_dir = save_dir
        services = self.service_factory.create_complete_service_suite()
        self.store = services['store']
        self.locks = services['locks']
        self.broadcaster = services['broadcaster']
        self.event_log = services['events']
        self.match_service = services['matches']
        self.lineup_service = services['lineups']
        self.roster_service = services['roster']
        self.report_service = services['reports']
        self.persistence_service = services['persistence']


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadPayload("Request body must be a JSON object")
    return data


def _require_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or value is None:
        raise BadPayload(f"{key} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadPayload(f"{key} must be an integer")


def _optional_int(data: Dict[str, Any], key: str) -> Optional[int]:
    if data.get(key) is None:
        return None
    return _require_int(data, key)


def _int_list(data: Dict[str, Any], key: str) -> list:
    values = data.get(key, [])
    if not isinstance(values, list):
        raise BadPayload(f"{key} must be a list of player ids")
    try:
        return [int(v) for v in values]
    except (TypeError, ValueError):
        raise BadPayload(f"{key} must be a list of player ids")


def _optional_bool(data: Dict[str, Any], key: str, default: Optional[bool]) -> Optional[bool]:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise BadPayload(f"{key} must be a boolean")
    return value


def _save_path(save_dir: str, name: Any) -> str:
    """Resolve a save file name inside ``save_dir``; paths are rejected."""
    if not isinstance(name, str) or not name.strip():
        raise BadPayload("path must be a file name")
    name = name.strip()
    if os.path.basename(name) != name or name in (".", "..") or "\\" in name:
        raise BadPayload(f"path must be a plain file name inside the save directory, got {name!r}")
    return os.path.join(save_dir, name)


def create_app(state: Optional[WebAppState] = None, static_folder: str = ".") -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        state: Services to serve; a fresh in-memory suite when omitted
        static_folder: Directory to serve the client page from

    Returns:
        Configured Flask application instance
    """
    app_state = state or WebAppState()
    app = Flask(__name__, static_folder=static_folder, static_url_path="")
    app.config["APP_STATE"] = app_state

    # ==================== Error handling ==================== #

    @app.errorhandler(MatchError)
    def handle_match_error(e: MatchError):
        if isinstance(e, NotFound):
            status = 404
        elif isinstance(e, InvalidFormatSettings):
            status = 400
        else:
            status = 409
        logger.warning("%s %s rejected: %s (%s)", request.method, request.path, e, e.code)
        return jsonify(e.to_dict()), status

    @app.errorhandler(RosterValidationError)
    def handle_roster_error(e: RosterValidationError):
        logger.warning("%s %s rejected: %s", request.method, request.path, e)
        return jsonify(e.to_dict()), 400

    @app.errorhandler(ValueError)
    def handle_bad_payload(e: ValueError):
        logger.warning("%s %s bad request: %s", request.method, request.path, e)
        return jsonify({"success": False, "error": str(e), "code": "BadRequest"}), 400

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"success": False, "error": e.description, "code": e.name}), e.code
        logger.exception("Unexpected error in %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "Internal server error", "code": "InternalError"}), 500

    # ==================== Pages ==================== #

    @app.route("/")
    def index():
        """Serve the client page when one is bundled."""
        if app.static_folder and os.path.exists(os.path.join(app.static_folder, "index.html")):
            response = send_from_directory(app.static_folder, "index.html")
            response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
            return response
        return jsonify({"success": True, "app": APP_TITLE})

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "viewers": app_state.broadcaster.subscriber_count})

    # ==================== Teams and players ==================== #

    @app.route("/api/teams", methods=["GET"])
    def get_teams():
        teams = app_state.roster_service.list_teams()
        return jsonify({"success": True, "teams": [t.to_dict() for t in teams]})

    @app.route("/api/teams", methods=["POST"])
    def create_team():
        data = _json_body()
        team = app_state.roster_service.create_team(data.get("name", ""))
        return jsonify({"success": True, "team": team.to_dict()}), 201

    @app.route("/api/teams/<int:team_id>", methods=["DELETE"])
    def delete_team(team_id: int):
        """Soft delete a team and its players."""
        app_state.roster_service.delete_team(team_id)
        return jsonify({"success": True})

    @app.route("/api/teams/<int:team_id>/players", methods=["GET"])
    def get_team_players(team_id: int):
        players = app_state.roster_service.players_of(team_id)
        return jsonify({"success": True, "players": [p.to_dict() for p in players]})

    @app.route("/api/teams/<int:team_id>/matches", methods=["GET"])
    def get_team_matches(team_id: int):
        matches = app_state.match_service.list_matches(team_id)
        return jsonify({"success": True, "matches": [m.to_dict() for m in matches]})

    @app.route("/api/players", methods=["POST"])
    def create_player():
        data = _json_body()
        player = app_state.roster_service.create_player(
            _require_int(data, "teamId"),
            data.get("name", ""),
            data.get("jerseyNumber"),
            data.get("position"),
        )
        return jsonify({"success": True, "player": player.to_dict()}), 201

    @app.route("/api/players/<int:player_id>", methods=["PUT"])
    def update_player(player_id: int):
        player = app_state.roster_service.update_player(player_id, _json_body())
        return jsonify({"success": True, "player": player.to_dict()})

    @app.route("/api/players/<int:player_id>", methods=["DELETE"])
    def delete_player(player_id: int):
        """Soft delete a player."""
        app_state.roster_service.delete_player(player_id)
        return jsonify({"success": True})

    # ==================== Matches ==================== #

    @app.route("/api/matches", methods=["GET"])
    def get_matches():
        matches = app_state.match_service.list_matches()
        return jsonify({"success": True, "matches": [m.to_dict() for m in matches]})

    @app.route("/api/matches", methods=["POST"])
    def create_match():
        data = _json_body()
        match = app_state.match_service.create_match(
            _require_int(data, "teamId"),
            data.get("opponent", ""),
            data.get("venue", ""),
            data.get("competition", ""),
            data.get("matchDate"),
            data.get("format", "league"),
            data.get("formatSettings"),
        )
        return jsonify({"success": True, "match": match.to_dict()}), 201

    @app.route("/api/matches/<int:match_id>", methods=["GET"])
    def get_match(match_id: int):
        match = app_state.match_service.get_match(match_id)
        return jsonify({"success": True, "match": match.to_dict()})

    # ==================== Live console ==================== #

    @app.route("/api/matches/<int:match_id>/start", methods=["POST"])
    def start_match(match_id: int):
        starters = _int_list(_json_body(), "starters")
        match = app_state.match_service.start_match(match_id, starters)
        return jsonify({"success": True, "match": match.to_dict()})

    @app.route("/api/matches/<int:match_id>/timer", methods=["POST"])
    def toggle_timer(match_id: int):
        """Flip the clock, or set it with ``{"running": bool}``."""
        data = _json_body()
        running = _optional_bool(data, "running", None)
        match = app_state.match_service.toggle_timer(match_id, running)
        return jsonify({"success": True, "match": match.to_dict()})

    @app.route("/api/matches/<int:match_id>/tick", methods=["POST"])
    def advance_clock(match_id: int):
        """Advance the running clock; called periodically by the console."""
        data = _json_body()
        seconds = _optional_int(data, "seconds")
        match = app_state.match_service.advance_clock(match_id, 1 if seconds is None else seconds)
        return jsonify({"success": True, "match": match.to_dict()})

    @app.route("/api/matches/<int:match_id>/goal", methods=["POST"])
    def record_goal(match_id: int):
        data = _json_body()
        match = app_state.match_service.record_goal(
            match_id,
            _optional_int(data, "playerId"),
            for_home_side=_optional_bool(data, "forHomeSide", True),
        )
        return jsonify({"success": True, "match": match.to_dict()})

    @app.route("/api/matches/<int:match_id>/card", methods=["POST"])
    def record_card(match_id: int):
        data = _json_body()
        event = app_state.match_service.record_card(
            match_id, _require_int(data, "playerId"), data.get("color", "")
        )
        return jsonify({"success": True, "event": event.to_dict()})

    @app.route("/api/matches/<int:match_id>/foul", methods=["POST"])
    def record_foul(match_id: int):
        data = _json_body()
        event = app_state.match_service.record_foul(match_id, _require_int(data, "playerId"))
        return jsonify({"success": True, "event": event.to_dict()})

    @app.route("/api/matches/<int:match_id>/timeout", methods=["POST"])
    def record_timeout(match_id: int):
        event = app_state.match_service.record_timeout(match_id, _json_body().get("description"))
        return jsonify({"success": True, "event": event.to_dict()})

    @app.route("/api/matches/<int:match_id>/substitution", methods=["POST"])
    def substitute(match_id: int):
        data = _json_body()
        match = app_state.lineup_service.substitute(
            match_id, _require_int(data, "playerOut"), _require_int(data, "playerIn")
        )
        return jsonify({"success": True, "match": match.to_dict()})

    @app.route("/api/matches/<int:match_id>/halftime", methods=["POST"])
    def apply_halftime_changes(match_id: int):
        data = _json_body()
        match = app_state.lineup_service.apply_halftime_changes(
            match_id, _int_list(data, "playersOut"), _int_list(data, "playersIn")
        )
        return jsonify({"success": True, "match": match.to_dict()})

    @app.route("/api/matches/<int:match_id>/next-half", methods=["POST"])
    def start_next_half(match_id: int):
        match = app_state.lineup_service.start_next_half(match_id)
        return jsonify({"success": True, "match": match.to_dict()})

    @app.route("/api/matches/<int:match_id>/end", methods=["POST"])
    def end_match(match_id: int):
        match = app_state.match_service.end_match(match_id)
        return jsonify({"success": True, "match": match.to_dict()})

    # ==================== Events, stats, reports ==================== #

    @app.route("/api/matches/<int:match_id>/events", methods=["GET"])
    def get_events(match_id: int):
        app_state.match_service.get_match(match_id)
        events = app_state.event_log.events_for(match_id)
        return jsonify({"success": True, "events": [e.to_dict() for e in events]})

    @app.route("/api/matches/<int:match_id>/stats", methods=["GET"])
    def get_stats(match_id: int):
        stats = app_state.match_service.player_stats(match_id)
        return jsonify({"success": True, "stats": [s.to_dict() for s in stats]})

    @app.route("/api/matches/<int:match_id>/report", methods=["GET"])
    def get_report(match_id: int):
        """Match report as JSON, or CSV with ``?format=csv``."""
        if request.args.get("format") == "csv":
            csv_text = app_state.report_service.export_match_report_csv(match_id)
            return Response(
                csv_text,
                mimetype="text/csv",
                headers={"Content-Disposition": f"attachment; filename=match_{match_id}_report.csv"},
            )

        report = app_state.report_service.generate_match_report(match_id)
        return jsonify({
            "success": True,
            "report": {
                "matchId": report.match_id,
                "opponent": report.opponent,
                "status": report.status,
                "homeScore": report.home_score,
                "awayScore": report.away_score,
                "currentHalf": report.current_half,
                "numberOfHalves": report.number_of_halves,
                "currentTime": report.current_time,
                "substitutions": report.substitutions,
                "timeouts": report.timeouts,
                "eventCounts": report.event_counts,
                "averageTimeOnField": report.average_time_on_field,
                "players": [
                    {
                        "playerId": p.player_id,
                        "name": p.name,
                        "jerseyNumber": p.jersey_number,
                        "position": p.position,
                        "isStarter": p.is_starter,
                        "onField": p.on_field,
                        "timeOnField": p.time_on_field,
                        "goals": p.goals,
                        "fouls": p.fouls,
                        "yellowCards": p.yellow_cards,
                        "redCards": p.red_cards,
                        "fieldShare": p.field_share,
                    }
                    for p in report.players
                ],
            },
        })

    # ==================== Live stream ==================== #

    @app.route("/api/stream", methods=["GET"])
    def stream():
        """
        Server-Sent Events feed of ``matchUpdate`` and ``newEvent`` payloads.

        ``?matchId=`` limits the feed to one match.
        """
        match_id = request.args.get("matchId", type=int)
        broadcaster = app_state.broadcaster

        def generate():
            channel = broadcaster.subscribe(match_id)
            try:
                yield ": connected\n\n"
                while True:
                    payload = channel.get(timeout=STREAM_KEEPALIVE_SECONDS)
                    if payload is None:
                        yield ": keep-alive\n\n"
                        continue
                    yield f"event: {payload['type']}\ndata: {json.dumps(payload)}\n\n"
            finally:
                broadcaster.unsubscribe(channel)

        return Response(
            generate(),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    # ==================== Persistence ==================== #

    @app.route("/api/save", methods=["POST"])
    def save_store():
        """
        Return the store snapshot, also writing it when ``path`` is given.

        ``path`` is a file name inside the save directory.
        """
        data = _json_body()
        path = None
        if data.get("path") is not None:
            path = _save_path(app_state.save_dir, data["path"])
            app_state.persistence_service.save_to_file(app_state.store, path)
        return jsonify({"success": True, "data": app_state.store.snapshot(), "path": path})

    @app.route("/api/load", methods=["POST"])
    def load_store():
        """Replace the store from uploaded ``data`` or a saved file name ``path``."""
        data = _json_body()
        if data.get("path") is not None:
            path = _save_path(app_state.save_dir, data["path"])
            try:
                app_state.persistence_service.load_from_file(app_state.store, path, app_state.locks)
            except FileNotFoundError as e:
                return jsonify({"success": False, "error": str(e), "code": "NotFound"}), 404
        elif isinstance(data.get("data"), dict):
            app_state.persistence_service.restore_store(app_state.store, data["data"], app_state.locks)
        else:
            raise BadPayload("Either data or path is required")
        return jsonify({"success": True, "message": "Store loaded successfully"})

    return app


def run_web_app(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, static_folder: str = ".") -> None:
    """
    Run the web application.

    Args:
        host: Host address to bind to (default: localhost only)
        port: Port number to listen on
        static_folder: Directory containing the client page
    """
    app = create_app(static_folder=static_folder)
    logger.info("Serving %s on http://%s:%s", APP_TITLE, host, port)
    # Threaded so viewer streams do not block the console
    app.run(host=host, port=port, debug=False, threaded=True)
