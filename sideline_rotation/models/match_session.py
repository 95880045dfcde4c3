"""
MatchSession model for the Sideline Rotation engine.

The session is the single owner of the formation, rotation queue, team
configuration and player stats for one match. It is mutated only through
``MatchSessionService`` so formation and queue invariants hold at every
boundary.
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .formation import Formation
from .game_log import GameLogEntry, PeriodGoalieAssignment, SubstitutionRecord
from .player import Player
from .team_mode import TeamConfig, TeamMode
from ..exceptions import UnknownPlayerError
from ..utils import DEFAULT_PERIOD_COUNT
from ..utils.constants import DEFAULT_PERIOD_DURATION_MIN

if TYPE_CHECKING:
    from ..services.rotation_queue import RotationQueue


@dataclass
class MatchSession:
    """
    Complete state of one match.

    Attributes:
        team_config: Per-match team configuration
        players: Squad keyed by player id, in squad order
        formation: Current slot assignment
        rotation_queue: Who comes off next (front first)
        period_goalies: Goalie per period
        current_period: 1-based period number
        period_count: Number of periods in the match
        period_duration_seconds: Planned period length
        is_paused: Whether the match clock is paused
        period_active: Whether a period is running
        period_start_ts: When the current period started (epoch seconds)
        captain_id: Optional captain for the match
        game_log: Closed period snapshots
        period_substitutions: Substitutions executed in the running period
        match_finished: Whether the last period has been closed
    """
    team_config: TeamConfig
    players: Dict[str, Player]
    formation: Formation
    rotation_queue: "RotationQueue"
    period_goalies: PeriodGoalieAssignment
    current_period: int = 1
    period_count: int = DEFAULT_PERIOD_COUNT
    period_duration_seconds: int = DEFAULT_PERIOD_DURATION_MIN * 60
    is_paused: bool = False
    period_active: bool = False
    period_start_ts: Optional[float] = None
    captain_id: Optional[str] = None
    game_log: List[GameLogEntry] = field(default_factory=list)
    period_substitutions: List[SubstitutionRecord] = field(default_factory=list)
    match_finished: bool = False

    @property
    def team_mode(self) -> TeamMode:
        return self.formation.team_mode

    @property
    def squad_ids(self) -> List[str]:
        return list(self.players.keys())

    def get_player(self, player_id: str) -> Player:
        """Return a squad player or raise ``UnknownPlayerError``."""
        try:
            return self.players[player_id]
        except KeyError:
            raise UnknownPlayerError(player_id) from None

    def has_player(self, player_id: str) -> bool:
        return player_id in self.players

    def active_outfield_ids(self) -> List[str]:
        """Squad players that are neither the goalie nor inactive."""
        goalie = self.formation.goalie
        return [
            pid for pid, player in self.players.items()
            if pid != goalie and not player.is_inactive
        ]

    def inactive_ids(self) -> List[str]:
        return [pid for pid, player in self.players.items() if player.is_inactive]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "team_config": self.team_config.to_dict(),
            "team_mode": self.team_mode.key,
            "players": [player.to_dict() for player in self.players.values()],
            "formation": self.formation.to_dict(),
            "rotation_queue": self.rotation_queue.to_array(),
            "inactive_players": self.rotation_queue.inactive_players(),
            "period_goalies": self.period_goalies.to_dict(),
            "current_period": self.current_period,
            "period_count": self.period_count,
            "period_duration_seconds": self.period_duration_seconds,
            "is_paused": self.is_paused,
            "period_active": self.period_active,
            "period_start_ts": self.period_start_ts,
            "captain_id": self.captain_id,
            "match_finished": self.match_finished,
            "game_log": [entry.to_dict() for entry in self.game_log],
        }
