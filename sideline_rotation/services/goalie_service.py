"""
Goalie reassignment: swap a player into goal and the former goalie into their slot.

The new formation, queue and period goalie map are computed on copies and
committed to the session together, so a failed request never leaves the
session half-updated.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .time_tracker import PlayerTimeTracker
from ..models.formation import initialize_player_role_and_status
from ..models.match_session import MatchSession
from ..models.team_mode import GOALIE_SLOT
from ..exceptions import UnknownPlayerError

logger = logging.getLogger(__name__)


@dataclass
class GoalieChange:
    """Outcome of a goalie reassignment."""
    changed: bool
    new_goalie_id: str
    former_goalie_id: str = ""
    vacated_slot: Optional[str] = None
    reason: Optional[str] = None


class GoalieReassignmentService:
    """Swap goalies while keeping formation, queue and stats consistent."""

    def __init__(self, time_tracker: Optional[PlayerTimeTracker] = None):
        self.time_tracker = time_tracker or PlayerTimeTracker()

    def reassign_goalie(self, session: MatchSession, new_goalie_id: str,
                        current_ts: Optional[float] = None) -> GoalieChange:
        """
        Make ``new_goalie_id`` the goalie.

        Raises:
            UnknownPlayerError: If the player is not part of the squad
        """
        new_goalie = session.get_player(new_goalie_id)
        former_goalie_id = session.formation.goalie

        if new_goalie_id == former_goalie_id:
            return GoalieChange(False, new_goalie_id, former_goalie_id, reason="Player is already the goalie")

        if new_goalie.is_inactive:
            logger.warning("Ignoring goalie change to inactive player %s", new_goalie_id)
            return GoalieChange(False, new_goalie_id, former_goalie_id,
                                reason=f"Player '{new_goalie_id}' is inactive")

        formation = session.formation.copy()
        queue = session.rotation_queue.clone()
        period_goalies = session.period_goalies.copy()

        vacated_slot = formation.find_slot(new_goalie_id)
        formation.set_slot(GOALIE_SLOT, new_goalie_id)
        if vacated_slot is not None:
            formation.set_slot(vacated_slot, former_goalie_id)

        queue.remove_player(new_goalie_id)
        if former_goalie_id:
            former_goalie = session.get_player(former_goalie_id)
            if former_goalie.is_inactive:
                queue.deactivate_player(former_goalie_id)
            else:
                queue.add_player(former_goalie_id, "end")

        period_goalies.set(session.current_period, new_goalie_id)

        session.formation = formation
        session.rotation_queue = queue
        session.period_goalies = period_goalies

        self._refresh_player(session, new_goalie_id, current_ts)
        if former_goalie_id:
            self._refresh_player(session, former_goalie_id, current_ts)

        logger.debug("Goalie %s -> %s (vacated slot %s)", former_goalie_id or "-", new_goalie_id, vacated_slot)
        return GoalieChange(True, new_goalie_id, former_goalie_id, vacated_slot)

    def _refresh_player(self, session: MatchSession, player_id: str, current_ts: Optional[float]) -> None:
        """Re-derive status, role and pair key from the committed formation."""
        player = session.get_player(player_id)
        role, status, pair_key = initialize_player_role_and_status(player_id, session.formation)
        if session.period_active and current_ts is not None:
            self.time_tracker.handle_status_change(player, status, role, current_ts, session.is_paused, pair_key)
        else:
            player.stats.current_period_status = status
            player.stats.current_period_role = role
            player.stats.current_pair_key = pair_key
