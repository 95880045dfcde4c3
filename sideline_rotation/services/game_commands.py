"""
Command pattern implementation for formation edits.

Every coach edit (slot assignment, goalie change, inactive toggle, applying
a recommendation) runs as a command that snapshots the session first, so
undo restores the exact previous state.
"""
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from .formation_validator import FormationValidationService
from .goalie_service import GoalieReassignmentService
from .recommendation_service import Recommendation
from .time_tracker import PlayerTimeTracker
from ..models import MatchSession, Player
from ..models.formation import Formation, initialize_player_role_and_status
from ..models.game_log import PeriodGoalieAssignment
from ..models.team_mode import GOALIE_SLOT, SlotKind
from ..utils import now_ts

logger = logging.getLogger(__name__)


class Command(ABC):
    """Abstract base class for all session commands - Command pattern."""

    error: Optional[str] = None

    @abstractmethod
    def execute(self) -> bool:
        """
        Execute the command.

        Returns:
            True if command executed successfully, False otherwise
        """
        pass

    @abstractmethod
    def undo(self) -> bool:
        """
        Undo the command.

        Returns:
            True if command undone successfully, False otherwise
        """
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get human-readable description of the command."""
        pass


@dataclass
class SessionSnapshot:
    """Deep copy of the mutable parts of a session for undo."""
    timestamp: float
    formation: Formation
    rotation_queue: object
    period_goalies: PeriodGoalieAssignment
    players: Dict[str, Player]

    @classmethod
    def from_session(cls, session: MatchSession) -> 'SessionSnapshot':
        """Create snapshot from the current session."""
        return cls(
            timestamp=now_ts(),
            formation=session.formation.copy(),
            rotation_queue=session.rotation_queue.clone(),
            period_goalies=session.period_goalies.copy(),
            players=copy.deepcopy(session.players),
        )

    def restore(self, session: MatchSession) -> None:
        session.formation = self.formation.copy()
        session.rotation_queue = self.rotation_queue.clone()
        session.period_goalies = self.period_goalies.copy()
        session.players = copy.deepcopy(self.players)


class SessionCommand(Command):
    """Base for commands that restore a snapshot on undo."""

    def __init__(self, session: MatchSession, current_ts: Optional[float] = None):
        self.session = session
        self.current_ts = current_ts
        self.error: Optional[str] = None
        self._previous_state: Optional[SessionSnapshot] = None

    def execute(self) -> bool:
        self.error = None
        self._previous_state = SessionSnapshot.from_session(self.session)
        success = self._apply()
        if not success:
            self._previous_state = None
        return success

    @abstractmethod
    def _apply(self) -> bool:
        pass

    def undo(self) -> bool:
        """Restore the session as it was before this command."""
        if self._previous_state is None:
            return False
        self._previous_state.restore(self.session)
        return True

    def _reject(self, reason: str) -> bool:
        self.error = reason
        logger.warning("%s rejected: %s", self.description, reason)
        return False

    def _refresh_players(self, tracker: PlayerTimeTracker, player_ids) -> None:
        """Re-derive status, role and pair key for players after a formation change."""
        session = self.session
        for player_id in player_ids:
            if not player_id or not session.has_player(player_id):
                continue
            player = session.players[player_id]
            role, status, pair_key = initialize_player_role_and_status(player_id, session.formation)
            if session.period_active and self.current_ts is not None:
                tracker.handle_status_change(player, status, role, self.current_ts, session.is_paused, pair_key)
            else:
                player.stats.current_period_status = status
                player.stats.current_period_role = role
                player.stats.current_pair_key = pair_key


class AssignSlotCommand(SessionCommand):
    """Put a player into an outfield slot, swapping when the formation is complete."""

    def __init__(self, session: MatchSession, validator: FormationValidationService,
                 tracker: PlayerTimeTracker, slot_id: str, player_id: str,
                 current_ts: Optional[float] = None):
        super().__init__(session, current_ts)
        self.validator = validator
        self.tracker = tracker
        self.slot_id = slot_id
        self.player_id = player_id or ""

    def _apply(self) -> bool:
        session = self.session
        if self.slot_id == GOALIE_SLOT:
            return self._reject("Use the goalie change to assign the goalie slot")
        if self.player_id:
            player = session.get_player(self.player_id)
            definition = session.formation.schema.slot(self.slot_id)
            if player.is_inactive and definition is not None and definition.kind == SlotKind.FIELD:
                return self._reject(f"Player '{self.player_id}' is inactive")

        result = self.validator.validate_assignment(session.formation, self.slot_id, self.player_id)
        if not result.is_valid:
            return self._reject(result.reason)

        formation = session.formation.copy()
        displaced = formation.get(self.slot_id)
        formation.set_slot(self.slot_id, self.player_id)
        if result.swap_slot:
            formation.set_slot(result.swap_slot, displaced)
        session.formation = formation

        self._refresh_players(self.tracker, {self.player_id, displaced})
        logger.debug("Assigned %s to %s (swap with %s)", self.player_id or "-", self.slot_id, result.swap_slot)
        return True

    @property
    def description(self) -> str:
        return f"Assign {self.player_id or 'nobody'} to {self.slot_id}"


class ChangeGoalieCommand(SessionCommand):
    """Swap a player into goal."""

    def __init__(self, session: MatchSession, goalie_service: GoalieReassignmentService,
                 player_id: str, current_ts: Optional[float] = None):
        super().__init__(session, current_ts)
        self.goalie_service = goalie_service
        self.player_id = player_id

    def _apply(self) -> bool:
        change = self.goalie_service.reassign_goalie(self.session, self.player_id, self.current_ts)
        if not change.changed:
            return self._reject(change.reason or "Goalie unchanged")
        return True

    @property
    def description(self) -> str:
        return f"Goalie {self.player_id}"


class SetPlayerInactiveCommand(SessionCommand):
    """
    Toggle a substitute's inactive flag.

    Inactive players drop out of the rotation queue and sit in the bottom
    substitute slots; a reactivated player becomes the first substitute
    and rejoins the queue at the end.
    """

    def __init__(self, session: MatchSession, tracker: PlayerTimeTracker, player_id: str,
                 inactive: bool, current_ts: Optional[float] = None):
        super().__init__(session, current_ts)
        self.tracker = tracker
        self.player_id = player_id
        self.inactive = inactive

    def _apply(self) -> bool:
        session = self.session
        player = session.get_player(self.player_id)
        schema = session.formation.schema

        if not schema.supports_inactive_players:
            return self._reject(f"Team mode {session.team_mode.key} does not support inactive players")
        if player.is_inactive == self.inactive:
            return self._reject(f"Player '{self.player_id}' is already {'inactive' if self.inactive else 'active'}")
        if self.player_id == session.formation.goalie:
            return self._reject("The goalie cannot be set inactive")

        slot_id = session.formation.find_slot(self.player_id)
        substitute_slots = schema.substitute_slot_ids
        if slot_id not in substitute_slots:
            return self._reject("Only substitutes can be set inactive or active")

        if self.inactive and len(session.inactive_ids()) >= schema.max_inactive_count:
            return self._reject("At least one substitute must stay active")

        substitutes = [session.formation.get(s) for s in substitute_slots]
        substitutes.remove(self.player_id)
        actives = [pid for pid in substitutes if pid and not session.players[pid].is_inactive]
        inactives = [pid for pid in substitutes if pid and session.players[pid].is_inactive]
        if self.inactive:
            ordered = actives + [self.player_id] + inactives
        else:
            ordered = [self.player_id] + actives + inactives

        formation = session.formation.copy()
        for index, sub_slot in enumerate(substitute_slots):
            formation.set_slot(sub_slot, ordered[index] if index < len(ordered) else "")
        session.formation = formation

        if self.inactive:
            session.rotation_queue.deactivate_player(self.player_id)
            if self.current_ts is not None:
                self.tracker.stop_stint(player, self.current_ts, session.is_paused)
        else:
            session.rotation_queue.activate_player(self.player_id)
            if session.period_active and self.current_ts is not None:
                self.tracker.start_stint(player, self.current_ts)
        player.stats.is_inactive = self.inactive

        for pid in ordered:
            session.players[pid].stats.current_pair_key = formation.find_slot(pid)
        return True

    @property
    def description(self) -> str:
        return f"{'Inactivate' if self.inactive else 'Activate'} {self.player_id}"


class ApplyRecommendationCommand(SessionCommand):
    """Replace the formation and queue with a recommendation."""

    def __init__(self, session: MatchSession, tracker: PlayerTimeTracker,
                 recommendation: Recommendation, current_ts: Optional[float] = None):
        super().__init__(session, current_ts)
        self.tracker = tracker
        self.recommendation = recommendation

    def _apply(self) -> bool:
        session = self.session
        formation = self.recommendation.formation
        if formation.team_mode != session.team_mode:
            return self._reject("Recommendation is for a different team mode")
        for player_id in formation.assigned_ids():
            session.get_player(player_id)
        if formation.goalie and session.players[formation.goalie].is_inactive:
            return self._reject(f"Player '{formation.goalie}' is inactive")

        session.formation = formation.copy()
        if formation.goalie != session.period_goalies.get(session.current_period):
            session.period_goalies.set(session.current_period, formation.goalie)
        eligible = session.active_outfield_ids()
        # Keep every active outfield player queued even if the suggestion left them out
        order = list(self.recommendation.rotation_queue) + eligible
        session.rotation_queue.initialize(
            [pid for pid in order if pid in eligible],
            session.inactive_ids(),
        )
        self._refresh_players(self.tracker, session.squad_ids)
        return True

    @property
    def description(self) -> str:
        return "Apply recommended formation"


class GameCommandManager:
    """
    Manager for executing and tracking session commands with undo/redo support.
    """

    def __init__(self, max_history: int = 50):
        """
        Initialize command manager.

        Args:
            max_history: Maximum number of commands to keep in history
        """
        self.max_history = max_history
        self._command_history: List[Command] = []
        self._current_index = -1

    def execute_command(self, command: Command) -> bool:
        """
        Execute a command and add it to history.

        Args:
            command: Command to execute

        Returns:
            True if command executed successfully
        """
        success = command.execute()

        if success:
            # Remove any commands after current index (for redo functionality)
            self._command_history = self._command_history[:self._current_index + 1]

            self._command_history.append(command)
            self._current_index += 1

            # Trim history if too long
            if len(self._command_history) > self.max_history:
                self._command_history.pop(0)
                self._current_index -= 1

        return success

    def undo(self) -> bool:
        """
        Undo the last command.

        Returns:
            True if undo was successful
        """
        if not self.can_undo():
            return False

        command = self._command_history[self._current_index]
        success = command.undo()

        if success:
            self._current_index -= 1
            logger.debug("Undid: %s", command.description)

        return success

    def redo(self) -> bool:
        """
        Redo the next command.

        Returns:
            True if redo was successful
        """
        if not self.can_redo():
            return False

        command = self._command_history[self._current_index + 1]
        success = command.execute()

        if success:
            self._current_index += 1

        return success

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self._current_index >= 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self._current_index < len(self._command_history) - 1

    def get_command_history(self) -> List[str]:
        """Get history of command descriptions."""
        return [cmd.description for cmd in self._command_history]

    def clear_history(self) -> None:
        """Clear command history."""
        self._command_history.clear()
        self._current_index = -1
