"""
Per-player time-in-role bookkeeping.

Every status or role transition first closes out the running stint into the
bucket of the *previous* status/role and then restarts the stint clock.
Paused intervals are closed out as zero.
"""

import copy
import logging
from typing import Dict, Iterable, Optional

from ..models.player import Player, PlayerRole, PlayerStats, PlayerStatus, ROLE_TIME_FIELDS
from ..utils import coerce_timestamp

logger = logging.getLogger(__name__)


class PlayerTimeTracker:
    """Close out and restart player stints as the match clock moves."""

    def stint_seconds(self, stats: PlayerStats, current_ts: float, is_paused: bool = False) -> int:
        """Seconds the running stint would contribute if closed at ``current_ts``."""
        if is_paused or stats.last_stint_start_ts is None:
            return 0
        start = coerce_timestamp(stats.last_stint_start_ts)
        if start is None:
            return 0
        return max(0, int(current_ts - start))

    def update_player_time_stats(self, player: Player, current_ts: float, is_paused: bool) -> int:
        """
        Close out the running stint and restart it at ``current_ts``.

        Elapsed time (clamped at zero, whole seconds) is added to the bucket
        of the player's current status and role. The stint start advances
        only by the seconds credited, so a sub-second remainder carries into
        the next close-out. Nothing is added while paused, but the stint start
        still moves to ``current_ts``.

        Returns:
            Seconds added
        """
        ts = coerce_timestamp(current_ts)
        if ts is None:
            return 0

        stats = player.stats
        elapsed = self.stint_seconds(stats, ts, is_paused)
        start = coerce_timestamp(stats.last_stint_start_ts)
        if elapsed:
            self._add_to_bucket(player, elapsed)
        if is_paused or start is None or ts < start:
            stats.last_stint_start_ts = ts
        else:
            stats.last_stint_start_ts = start + elapsed
        return elapsed

    def _add_to_bucket(self, player: Player, elapsed: int) -> None:
        stats = player.stats
        status = stats.current_period_status
        if status == PlayerStatus.ON_FIELD:
            role_field = ROLE_TIME_FIELDS.get(stats.current_period_role)
            if role_field is None:
                logger.warning("Player %s on field without an outfield role (%s); %ss not counted",
                               player.id, stats.current_period_role, elapsed)
                return
            setattr(stats, role_field, getattr(stats, role_field) + elapsed)
            stats.time_on_field_seconds += elapsed
        elif status == PlayerStatus.SUBSTITUTE:
            stats.time_as_sub_seconds += elapsed
        elif status == PlayerStatus.GOALIE:
            stats.time_as_goalie_seconds += elapsed

    def handle_role_change(self, player: Player, new_role: Optional[PlayerRole],
                           current_ts: float, is_paused: bool) -> None:
        """Close out the stint in the old role, then switch role."""
        self.update_player_time_stats(player, current_ts, is_paused)
        player.stats.current_period_role = new_role
        if new_role in ROLE_TIME_FIELDS:
            player.stats.last_field_role = new_role

    def handle_status_change(self, player: Player, new_status: Optional[PlayerStatus],
                             new_role: Optional[PlayerRole], current_ts: float, is_paused: bool,
                             pair_key: Optional[str] = None) -> None:
        """Close out the stint, then switch status, role and pair key together."""
        self.update_player_time_stats(player, current_ts, is_paused)
        stats = player.stats
        if stats.current_period_role in ROLE_TIME_FIELDS:
            stats.last_field_role = stats.current_period_role
        stats.current_period_status = new_status
        stats.current_period_role = new_role
        stats.current_pair_key = pair_key
        if new_role in ROLE_TIME_FIELDS:
            stats.last_field_role = new_role

    def start_stint(self, player: Player, current_ts: float) -> None:
        """Start a fresh stint without closing out anything."""
        player.stats.last_stint_start_ts = coerce_timestamp(current_ts)

    def stop_stint(self, player: Player, current_ts: float, is_paused: bool) -> None:
        """Close out the stint and leave the clock stopped."""
        self.update_player_time_stats(player, current_ts, is_paused)
        player.stats.last_stint_start_ts = None

    def tick_players(self, players: Iterable[Player], current_ts: float, is_paused: bool) -> None:
        """Clock wake-up: close out and restart every running stint."""
        for player in players:
            if player.stats.last_stint_start_ts is not None:
                self.update_player_time_stats(player, current_ts, is_paused)

    def snapshot_players(self, players: Iterable[Player]) -> Dict[str, PlayerStats]:
        """Deep, independent copy of every player's stats keyed by id."""
        return {player.id: copy.deepcopy(player.stats) for player in players}
