"""
Player model for the Sideline Rotation engine.

This module contains the Player dataclass and its per-match statistics:
current period status and role, time spent in each role bucket and
period counters used for fairness bookkeeping.
"""
import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..utils import coerce_seconds


class PlayerStatus(Enum):
    """Where a player is during the current period."""
    ON_FIELD = "on_field"
    SUBSTITUTE = "substitute"
    GOALIE = "goalie"


class PlayerRole(Enum):
    """Role a player fills during the current stint."""
    GOALIE = "goalie"
    DEFENDER = "defender"
    MIDFIELDER = "midfielder"
    ATTACKER = "attacker"
    SUBSTITUTE = "substitute"


OUTFIELD_ROLES = (PlayerRole.DEFENDER, PlayerRole.MIDFIELDER, PlayerRole.ATTACKER)

# Time bucket per outfield role
ROLE_TIME_FIELDS = {
    PlayerRole.DEFENDER: "time_as_defender_seconds",
    PlayerRole.MIDFIELDER: "time_as_midfielder_seconds",
    PlayerRole.ATTACKER: "time_as_attacker_seconds",
}

# Period counter per role
ROLE_PERIOD_FIELDS = {
    PlayerRole.GOALIE: "periods_as_goalie",
    PlayerRole.DEFENDER: "periods_as_defender",
    PlayerRole.MIDFIELDER: "periods_as_midfielder",
    PlayerRole.ATTACKER: "periods_as_attacker",
}

TIME_FIELDS = (
    "time_on_field_seconds",
    "time_as_defender_seconds",
    "time_as_midfielder_seconds",
    "time_as_attacker_seconds",
    "time_as_goalie_seconds",
    "time_as_sub_seconds",
)

PERIOD_FIELDS = (
    "periods_as_goalie",
    "periods_as_defender",
    "periods_as_midfielder",
    "periods_as_attacker",
)


def _enum_or_none(enum_cls, value):
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


@dataclass
class PlayerStats:
    """Per-match statistics for a single player."""
    current_period_status: Optional[PlayerStatus] = None
    current_period_role: Optional[PlayerRole] = None
    current_pair_key: Optional[str] = None
    is_inactive: bool = False
    started_match_as: Optional[PlayerStatus] = None
    # Last outfield role played, remembered while on the bench
    last_field_role: Optional[PlayerRole] = None
    # Time accumulators (seconds)
    time_on_field_seconds: int = 0
    time_as_defender_seconds: int = 0
    time_as_midfielder_seconds: int = 0
    time_as_attacker_seconds: int = 0
    time_as_goalie_seconds: int = 0
    time_as_sub_seconds: int = 0
    # Period counters
    periods_as_goalie: int = 0
    periods_as_defender: int = 0
    periods_as_midfielder: int = 0
    periods_as_attacker: int = 0
    # Epoch seconds when the current stint started
    last_stint_start_ts: Optional[float] = None

    def role_time(self, role: PlayerRole) -> int:
        """Return accumulated seconds for an outfield role (0 for other roles)."""
        field_name = ROLE_TIME_FIELDS.get(role)
        return getattr(self, field_name) if field_name else 0

    @property
    def attacker_surplus_seconds(self) -> int:
        """Attacker time minus defender time; positive means attack-heavy."""
        return self.time_as_attacker_seconds - self.time_as_defender_seconds

    def copy(self) -> "PlayerStats":
        """Return an independent copy."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            "current_period_status": self.current_period_status.value if self.current_period_status else None,
            "current_period_role": self.current_period_role.value if self.current_period_role else None,
            "current_pair_key": self.current_pair_key,
            "is_inactive": self.is_inactive,
            "started_match_as": self.started_match_as.value if self.started_match_as else None,
            "last_field_role": self.last_field_role.value if self.last_field_role else None,
            "last_stint_start_ts": self.last_stint_start_ts,
        }
        for name in TIME_FIELDS + PERIOD_FIELDS:
            data[name] = getattr(self, name)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PlayerStats":
        """Create from dictionary, coercing invalid counters to zero."""
        if not data:
            return cls()
        stats = cls(
            current_period_status=_enum_or_none(PlayerStatus, data.get("current_period_status")),
            current_period_role=_enum_or_none(PlayerRole, data.get("current_period_role")),
            current_pair_key=data.get("current_pair_key"),
            is_inactive=bool(data.get("is_inactive", False)),
            started_match_as=_enum_or_none(PlayerStatus, data.get("started_match_as")),
            last_field_role=_enum_or_none(PlayerRole, data.get("last_field_role")),
            last_stint_start_ts=data.get("last_stint_start_ts"),
        )
        for name in TIME_FIELDS + PERIOD_FIELDS:
            setattr(stats, name, coerce_seconds(data.get(name, 0), field_name=name))
        return stats


@dataclass
class Player:
    """
    Represents a squad member for one match.

    Attributes:
        id: Unique player identifier used in formations and queues
        name: Display name
        is_captain: Whether the player captains the team this match
        stats: Live per-match statistics
    """
    id: str
    name: str = ""
    is_captain: bool = False
    stats: PlayerStats = field(default_factory=PlayerStats)

    @property
    def is_inactive(self) -> bool:
        return self.stats.is_inactive

    def reset_for_match(self) -> None:
        """Clear all per-match statistics."""
        self.stats = PlayerStats()

    def copy(self) -> "Player":
        """Return a deep, independent copy."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert player to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "is_captain": self.is_captain,
            "stats": self.stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        """Create player from dictionary."""
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            is_captain=bool(data.get("is_captain", False)),
            stats=PlayerStats.from_dict(data.get("stats")),
        )


def initialize_players(names: Iterable[str], captain_id: Optional[str] = None) -> List[Player]:
    """
    Create players with fresh stats and sequential ids (``p1``, ``p2``, ...).

    Args:
        names: Display names in squad order
        captain_id: Optional id of the captain

    Returns:
        List of players in the same order as ``names``
    """
    players = []
    for index, name in enumerate(names):
        player_id = f"p{index + 1}"
        players.append(Player(id=player_id, name=name, is_captain=player_id == captain_id))
    return players
