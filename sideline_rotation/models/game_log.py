"""Per-period records: goalie assignments and the immutable game log."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from .player import PlayerStats


@dataclass(frozen=True)
class SubstitutionRecord:
    """One executed substitution."""
    ts: float
    players_off: Tuple[str, ...]
    players_on: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ts": self.ts,
            "players_off": list(self.players_off),
            "players_on": list(self.players_on),
        }


@dataclass(frozen=True)
class GameLogEntry:
    """
    Snapshot of a closed period.

    Attributes:
        period_number: 1-based period number
        start_ts: Epoch seconds when the period started
        end_ts: Epoch seconds when the period closed
        player_stats: Deep copy of every player's stats at period close
        substitutions: Substitutions executed during the period
        goalie_id: Goalie for the period
        formation: Serialised formation at period close
    """
    period_number: int
    start_ts: Optional[float]
    end_ts: float
    player_stats: Mapping[str, PlayerStats]
    substitutions: Tuple[SubstitutionRecord, ...] = ()
    goalie_id: str = ""
    formation: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only views so a stored entry cannot be edited through its mappings
        object.__setattr__(self, "player_stats", MappingProxyType(dict(self.player_stats)))
        object.__setattr__(self, "formation", MappingProxyType(dict(self.formation)))
        object.__setattr__(self, "substitutions", tuple(self.substitutions))

    @property
    def duration_seconds(self) -> int:
        if self.start_ts is None:
            return 0
        return max(0, int(self.end_ts - self.start_ts))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period_number": self.period_number,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "duration_seconds": self.duration_seconds,
            "goalie_id": self.goalie_id,
            "formation": dict(self.formation),
            "player_stats": {pid: stats.to_dict() for pid, stats in self.player_stats.items()},
            "substitutions": [record.to_dict() for record in self.substitutions],
        }


@dataclass
class PeriodGoalieAssignment:
    """
    Goalie chosen per period.

    Period 1's choice cascades forward to later periods that were never
    explicitly overridden and whose value is still the period-1 default
    (or unset).
    """
    period_count: int
    goalie_ids: Dict[int, str] = field(default_factory=dict)
    overridden: Set[int] = field(default_factory=set)

    def get(self, period: int) -> str:
        return self.goalie_ids.get(period, "")

    def set(self, period: int, player_id: str) -> None:
        previous = dict(self.goalie_ids)
        self.goalie_ids[period] = player_id or ""

        if period == 1:
            for later in range(2, self.period_count + 1):
                if later in self.overridden:
                    continue
                if not previous.get(later) or previous.get(later) == previous.get(1):
                    self.goalie_ids[later] = player_id or ""
        elif player_id:
            self.overridden.add(period)
        else:
            self.overridden.discard(period)

    def as_list(self) -> List[str]:
        return [self.get(period) for period in range(1, self.period_count + 1)]

    def copy(self) -> "PeriodGoalieAssignment":
        return PeriodGoalieAssignment(self.period_count, dict(self.goalie_ids), set(self.overridden))

    def to_dict(self) -> Dict[str, str]:
        return {str(period): player_id for period, player_id in sorted(self.goalie_ids.items())}
