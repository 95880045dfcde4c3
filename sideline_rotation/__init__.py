"""
Sideline Rotation

Rotation and formation engine for small-sided youth matches: team-mode slot
schemas, a rotation queue, time-in-role tracking, formation validation,
goalie reassignment and fair formation recommendations.
"""
from .exceptions import InvalidTeamConfigError, RotationEngineError, UnknownPlayerError
from .models import MatchSession, Player, TeamConfig
from .services import MatchSessionService, ServiceFactory
from .utils import fmt_mmss, now_ts, APP_TITLE

__version__ = "1.0.0"

__all__ = [
    "InvalidTeamConfigError", "RotationEngineError", "UnknownPlayerError",
    "MatchSession", "Player", "TeamConfig", "MatchSessionService", "ServiceFactory",
    "fmt_mmss", "now_ts", "APP_TITLE",
]
