"""
Web application module for the Sideline Rotation engine.

This module contains the Flask web server that exposes the match session
service as JSON API endpoints. Routes only translate HTTP to service calls;
every rotation decision happens in the services.
"""
import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from ..exceptions import (
    InvalidTeamConfigError, MatchNotConfiguredError, RotationEngineError, UnknownPlayerError,
)
from ..models import Player, TeamConfig
from ..models.team_mode import derive_configuration_state
from ..services.service_factory import ServiceFactory
from ..utils import now_ts
from ..utils.constants import (
    DEFAULT_PERIOD_COUNT, DEFAULT_PERIOD_DURATION_MIN, DURATION_OPTIONS_MIN, FORMAT_5V5, FORMATS, PERIOD_OPTIONS,
)

logger = logging.getLogger(__name__)


class WebAppState:
    """
    State holder for the web application.

    Services are created through the factory; the session exists once a
    squad has been configured.
    """

    def __init__(self, service_factory: Optional[ServiceFactory] = None):
        self.service_factory = service_factory or ServiceFactory()
        services = self.service_factory.create_complete_service_suite()
        self.session_service = services['session']
        self.session = None

    def require_session(self):
        if self.session is None:
            raise MatchNotConfiguredError()
        return self.session

    def analytics_service(self):
        return self.service_factory.create_analytics_service(self.require_session())


def _payload() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def _timestamp(data: Dict[str, Any]) -> float:
    """Client clock if provided, server clock otherwise."""
    ts = data.get("ts")
    return now_ts() if ts is None else ts


def create_app(config: Optional[Dict[str, Any]] = None,
               app_state: Optional[WebAppState] = None) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        config: Optional Flask config overrides
        app_state: Optional pre-built state (tests inject their own)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    if config:
        app.config.update(config)
    state = app_state or WebAppState()
    app.extensions["sideline_rotation"] = state

    def _respond(result, error_status: int = 400):
        body = result.to_dict()
        if result.success:
            body["state"] = state.session_service.state(state.session)
            return jsonify(body)
        return jsonify(body), error_status

    @app.errorhandler(UnknownPlayerError)
    def handle_unknown_player(error):
        return jsonify({"success": False, "error": str(error), "player_id": error.player_id}), 404

    @app.errorhandler(InvalidTeamConfigError)
    def handle_invalid_config(error):
        return jsonify({"success": False, "error": str(error)}), 400

    @app.errorhandler(MatchNotConfiguredError)
    def handle_missing_session(error):
        return jsonify({"success": False, "error": str(error)}), 409

    @app.errorhandler(RotationEngineError)
    def handle_engine_error(error):
        logger.exception("Unhandled engine error")
        return jsonify({"success": False, "error": str(error)}), 400

    # ==================== Configuration ==================== #

    @app.route("/api/config/options", methods=["GET"])
    def get_config_options():
        """Options the configuration screen may offer for a squad size."""
        format = request.args.get("format", FORMAT_5V5)
        try:
            squad_size = int(request.args.get("squad_size", 0))
        except ValueError:
            return jsonify({"success": False, "error": "squad_size must be an integer"}), 400

        options = derive_configuration_state(format, squad_size)
        return jsonify({
            "success": True,
            "format": options.format,
            "squad_size": options.squad_size,
            "sections_enabled": options.sections_enabled,
            "available_formations": options.available_formations,
            "available_substitution_types": [t.value for t in options.available_substitution_types],
            "paired_role_strategy_applicable": options.paired_role_strategy_applicable,
            "team_config": options.team_config.to_dict() if options.team_config else None,
            "formats": FORMATS,
            "period_options": PERIOD_OPTIONS,
            "duration_options_min": DURATION_OPTIONS_MIN,
        })

    @app.route("/api/config", methods=["POST"])
    def configure_match():
        """Create a match session for a squad and team configuration."""
        data = _payload()
        squad = data.get("players") or []
        if not squad:
            return jsonify({"success": False, "error": "At least one player is required"}), 400

        if isinstance(squad[0], dict):
            squad = [Player.from_dict(item) for item in squad]

        team_data = dict(data.get("team_config") or {})
        team_data.setdefault("squad_size", len(squad))
        team_config = TeamConfig.from_dict(team_data)

        goalies = data.get("period_goalies") or {}
        if not isinstance(goalies, dict):
            return jsonify({"success": False, "error": "period_goalies must map periods to player ids"}), 400
        state.session = state.session_service.create_session(
            squad,
            team_config,
            period_goalie_ids=goalies,
            period_count=data.get("period_count", DEFAULT_PERIOD_COUNT),
            period_duration_min=data.get("period_duration_min", DEFAULT_PERIOD_DURATION_MIN),
            captain_id=data.get("captain_id"),
        )
        return jsonify({"success": True, "state": state.session_service.state(state.session)})

    @app.route("/api/state", methods=["GET"])
    def get_state():
        """Get current session state."""
        session = state.require_session()
        return jsonify({"success": True, "state": state.session_service.state(session)})

    # ==================== Formation edits ==================== #

    @app.route("/api/formation/slot", methods=["POST"])
    def assign_slot():
        data = _payload()
        slot_id = data.get("slot_id")
        if not slot_id:
            return jsonify({"success": False, "error": "slot_id is required"}), 400
        session = state.require_session()
        ts = _timestamp(data) if session.period_active else None
        result = state.session_service.assign_slot(session, slot_id, data.get("player_id") or "", ts)
        return _respond(result)

    @app.route("/api/goalie", methods=["POST"])
    def change_goalie():
        data = _payload()
        player_id = data.get("player_id")
        if not player_id:
            return jsonify({"success": False, "error": "player_id is required"}), 400
        session = state.require_session()
        ts = _timestamp(data) if session.period_active else None
        return _respond(state.session_service.change_goalie(session, player_id, ts))

    @app.route("/api/period-goalie", methods=["POST"])
    def set_period_goalie():
        data = _payload()
        session = state.require_session()
        ts = _timestamp(data) if session.period_active else None
        result = state.session_service.set_period_goalie(
            session, data.get("period", session.current_period), data.get("player_id") or "", ts
        )
        return _respond(result)

    @app.route("/api/players/<player_id>/inactive", methods=["POST"])
    def set_player_inactive(player_id):
        """Toggle a substitute's inactive flag."""
        data = _payload()
        session = state.require_session()
        result = state.session_service.set_player_inactive(
            session, player_id, bool(data.get("inactive", True)), _timestamp(data)
        )
        return _respond(result)

    @app.route("/api/recommendation", methods=["GET"])
    def get_recommendation():
        session = state.require_session()
        recommendation = state.session_service.recommend_formation(session)
        return jsonify({"success": True, "recommendation": recommendation.to_dict()})

    @app.route("/api/recommendation", methods=["POST"])
    def apply_recommendation():
        session = state.require_session()
        return _respond(state.session_service.apply_recommendation(session), error_status=409)

    @app.route("/api/undo", methods=["POST"])
    def undo_action():
        """Undo the last formation edit."""
        return _respond(state.session_service.undo(state.require_session()))

    @app.route("/api/redo", methods=["POST"])
    def redo_action():
        return _respond(state.session_service.redo(state.require_session()))

    # ==================== Clock events ==================== #

    @app.route("/api/period/start", methods=["POST"])
    def start_period():
        data = _payload()
        result = state.session_service.start_period(state.require_session(), _timestamp(data))
        return _respond(result, error_status=409)

    @app.route("/api/clock/tick", methods=["POST"])
    def tick():
        data = _payload()
        paused = data.get("paused")
        result = state.session_service.tick(
            state.require_session(), _timestamp(data), None if paused is None else bool(paused)
        )
        return _respond(result, error_status=409)

    @app.route("/api/clock/pause", methods=["POST"])
    def pause():
        result = state.session_service.pause(state.require_session(), _timestamp(_payload()))
        return _respond(result, error_status=409)

    @app.route("/api/clock/resume", methods=["POST"])
    def resume():
        result = state.session_service.resume(state.require_session(), _timestamp(_payload()))
        return _respond(result, error_status=409)

    @app.route("/api/substitute", methods=["POST"])
    def substitute():
        data = _payload()
        result = state.session_service.substitute(
            state.require_session(), _timestamp(data), data.get("count", 1)
        )
        return _respond(result, error_status=409)

    @app.route("/api/period/end", methods=["POST"])
    def end_period():
        result = state.session_service.end_period(state.require_session(), _timestamp(_payload()))
        return _respond(result, error_status=409)

    # ==================== Reports ==================== #

    @app.route("/api/report", methods=["GET"])
    def get_report():
        analytics = state.analytics_service()
        return jsonify({"success": True, "report": analytics.report_to_dict()})

    @app.route("/api/report/csv", methods=["GET"])
    def export_report_csv():
        """Download the match report as CSV."""
        analytics = state.analytics_service()
        try:
            csv_text = analytics.generate_report_csv()
        except ValueError as e:
            return jsonify({"success": False, "error": str(e)}), 400
        response = app.response_class(csv_text, mimetype="text/csv")
        response.headers["Content-Disposition"] = "attachment; filename=match_report.csv"
        return response

    return app


def run_web_app(host: str = "127.0.0.1", port: int = 7122, debug: bool = False) -> None:
    """
    Run the web application.

    Args:
        host: Host address to bind to (default: localhost only)
        port: Port number to listen on
        debug: Enable the Flask debugger
    """
    app = create_app()
    logger.info("Serving %s on %s:%s", __name__, host, port)
    app.run(host=host, port=port, debug=debug)
