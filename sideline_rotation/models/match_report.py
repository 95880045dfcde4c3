"""Dataclasses representing end-of-match reports."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RolePoints:
    """Three match points split between goalie, defender and attacker."""

    goalie_points: float = 0.0
    defender_points: float = 0.0
    attacker_points: float = 0.0


@dataclass
class PlayerTimeSummary:
    """Aggregated playing time information for a single player."""

    id: str
    name: str
    is_captain: bool
    started_match_as: Optional[str]
    time_on_field_seconds: int
    time_as_defender_seconds: int
    time_as_midfielder_seconds: int
    time_as_attacker_seconds: int
    time_as_goalie_seconds: int
    time_as_sub_seconds: int
    periods_as_goalie: int
    periods_as_defender: int
    periods_as_midfielder: int
    periods_as_attacker: int
    role_points: RolePoints = field(default_factory=RolePoints)


@dataclass
class MatchReport:
    """Snapshot of playing time distribution after the closed periods."""

    generated_ts: float
    team_mode: str
    squad_size: int
    periods_played: int
    players: List[PlayerTimeSummary] = field(default_factory=list)
    average_field_seconds: float = 0.0
    median_field_seconds: float = 0.0
    min_field_seconds: int = 0
    max_field_seconds: int = 0
