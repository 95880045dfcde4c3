"""
Match session service: the event API of the rotation engine.

Every mutation of a ``MatchSession`` goes through this service. Structural
problems come back as ``EditResult`` objects; only references to players
outside the squad raise (``UnknownPlayerError``).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .formation_validator import FormationValidationService, ValidationResult
from .game_commands import (
    AssignSlotCommand, ApplyRecommendationCommand, ChangeGoalieCommand,
    GameCommandManager, SetPlayerInactiveCommand,
)
from .goalie_service import GoalieReassignmentService
from .paired_role_strategy import (
    can_use_paired_role_strategy, is_paired_rotation_active, normalize_paired_role_strategy, roles_for_reentry,
)
from .recommendation_service import Recommendation, get_recommendation_generator
from .rotation_queue import RotationQueue, build_paired_rotation_queue
from .time_tracker import PlayerTimeTracker
from ..exceptions import InvalidTeamConfigError, UnknownPlayerError
from ..models import MatchSession, Player, PlayerRole, PlayerStatus
from ..models.formation import Formation, initialize_player_role_and_status
from ..models.game_log import GameLogEntry, PeriodGoalieAssignment, SubstitutionRecord
from ..models.player import ROLE_PERIOD_FIELDS, initialize_players
from ..models.team_mode import TeamConfig, pair_slot_id, validate_team_config
from ..utils import coerce_count, coerce_period, coerce_seconds, coerce_timestamp, DEFAULT_PERIOD_COUNT
from ..utils.constants import DEFAULT_PERIOD_DURATION_MIN, FIELD_PAIR_KEYS, SUB_PAIR_KEY

logger = logging.getLogger(__name__)


@dataclass
class EditResult:
    """Outcome of a session operation."""
    success: bool
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.error:
            result["error"] = self.error
        result.update(self.data)
        return result


class MatchSessionService:
    """
    Owns the transitions of a match session.

    Formation edits run as undoable commands; clock events (start, tick,
    pause, substitute, end) are applied directly.
    """

    def __init__(self, validator: Optional[FormationValidationService] = None,
                 time_tracker: Optional[PlayerTimeTracker] = None,
                 goalie_service: Optional[GoalieReassignmentService] = None,
                 command_manager: Optional[GameCommandManager] = None):
        self.validator = validator or FormationValidationService()
        self.time_tracker = time_tracker or PlayerTimeTracker()
        self.goalie_service = goalie_service or GoalieReassignmentService(self.time_tracker)
        self.command_manager = command_manager or GameCommandManager()

    # ---------- Session setup ---------- #

    def create_session(self, squad: Sequence[Union[Player, str]], team_config: TeamConfig,
                       period_goalie_ids: Optional[Dict[int, str]] = None,
                       period_count: int = DEFAULT_PERIOD_COUNT,
                       period_duration_min: int = DEFAULT_PERIOD_DURATION_MIN,
                       captain_id: Optional[str] = None) -> MatchSession:
        """
        Create a session for a selected squad.

        Args:
            squad: Players, or display names (ids ``p1``..``pn`` are assigned)
            team_config: Team configuration for the match
            period_goalie_ids: Optional goalie pre-selection per period
            period_count: Number of periods
            period_duration_min: Planned period length in minutes
            captain_id: Optional captain

        Raises:
            InvalidTeamConfigError: If the configuration is invalid or does
                not match the squad size
        """
        validate_team_config(team_config)
        team_config = normalize_paired_role_strategy(team_config)
        if squad and isinstance(squad[0], str):
            players = initialize_players(squad, captain_id)
        else:
            players = list(squad)

        if len(players) != team_config.squad_size:
            raise InvalidTeamConfigError(
                f"Squad has {len(players)} players but the configuration expects {team_config.squad_size}"
            )
        if len({p.id for p in players}) != len(players):
            raise InvalidTeamConfigError("Player ids must be unique")

        for player in players:
            player.reset_for_match()
            player.is_captain = player.id == captain_id

        period_count = coerce_period(period_count, default=DEFAULT_PERIOD_COUNT)
        goalies = PeriodGoalieAssignment(period_count)
        by_id = {p.id: p for p in players}
        requested = [(coerce_period(period, maximum=period_count), goalie_id)
                     for period, goalie_id in (period_goalie_ids or {}).items()]
        for period, goalie_id in sorted(requested, key=lambda item: item[0]):
            if goalie_id and goalie_id not in by_id:
                raise UnknownPlayerError(goalie_id)
            goalies.set(period, goalie_id)

        goalie_id = goalies.get(1)
        formation = Formation.empty(team_config.team_mode, goalie_id)
        session = MatchSession(
            team_config=team_config,
            players=by_id,
            formation=formation,
            rotation_queue=RotationQueue(),
            period_goalies=goalies,
            period_count=period_count,
            period_duration_seconds=max(1, coerce_seconds(
                period_duration_min, DEFAULT_PERIOD_DURATION_MIN, "period duration")) * 60,
            captain_id=captain_id,
        )
        session.rotation_queue.initialize(session.active_outfield_ids())
        if goalie_id:
            self._set_player_position(session, goalie_id)
        self.command_manager.clear_history()
        logger.info("Created %s session with %s players", session.team_mode.key, len(players))
        return session

    # ---------- Formation edits ---------- #

    def assign_slot(self, session: MatchSession, slot_id: str, player_id: str,
                    current_ts: Optional[float] = None) -> EditResult:
        """Assign a player to a slot; the goalie slot routes to a goalie change."""
        if slot_id == "goalie":
            return self.change_goalie(session, player_id, current_ts)
        command = AssignSlotCommand(session, self.validator, self.time_tracker, slot_id, player_id, current_ts)
        return self._run(session, command)

    def change_goalie(self, session: MatchSession, player_id: str,
                      current_ts: Optional[float] = None) -> EditResult:
        """Swap ``player_id`` into goal. Choosing the current goalie is a no-op."""
        session.get_player(player_id)
        if player_id == session.formation.goalie:
            return self._result(session, True)
        command = ChangeGoalieCommand(session, self.goalie_service, player_id, current_ts)
        return self._run(session, command)

    def set_period_goalie(self, session: MatchSession, period: int, player_id: str,
                          current_ts: Optional[float] = None) -> EditResult:
        """
        Pre-select the goalie for a period.

        The running (or next to start) period applies the change to the
        formation through a goalie swap; later periods only record it.
        """
        if player_id:
            session.get_player(player_id)
        period = coerce_period(period, maximum=session.period_count)
        if period < session.current_period:
            return EditResult(False, f"Period {period} is already closed")
        if period == session.current_period and player_id:
            return self.change_goalie(session, player_id, current_ts)
        session.period_goalies.set(period, player_id)
        return self._result(session, True)

    def set_player_inactive(self, session: MatchSession, player_id: str, inactive: bool = True,
                            current_ts: Optional[float] = None) -> EditResult:
        command = SetPlayerInactiveCommand(session, self.time_tracker, player_id, inactive, current_ts)
        return self._run(session, command)

    def recommend_formation(self, session: MatchSession) -> Recommendation:
        """Suggest a formation for the current period from accumulated stats."""
        previous_formation = None
        previous_goalie_id = None
        if session.game_log:
            last = session.game_log[-1]
            previous_formation = Formation.from_dict(session.team_mode, dict(last.formation))
            previous_goalie_id = last.goalie_id
        goalie_id = session.period_goalies.get(session.current_period) or session.formation.goalie
        generator = get_recommendation_generator(session.team_mode)
        return generator.recommend(goalie_id, list(session.players.values()),
                                   previous_formation, previous_goalie_id)

    def apply_recommendation(self, session: MatchSession, recommendation: Optional[Recommendation] = None,
                             current_ts: Optional[float] = None) -> EditResult:
        if session.period_active:
            return EditResult(False, "Cannot replace the formation during a running period")
        recommendation = recommendation or self.recommend_formation(session)
        command = ApplyRecommendationCommand(session, self.time_tracker, recommendation, current_ts)
        result = self._run(session, command)
        if result.success:
            result.data["next_to_rotate_off"] = recommendation.next_to_rotate_off
        return result

    def undo(self, session: MatchSession) -> EditResult:
        if not self.command_manager.undo():
            return EditResult(False, "Nothing to undo")
        return self._result(session, True)

    def redo(self, session: MatchSession) -> EditResult:
        if not self.command_manager.redo():
            return EditResult(False, "Nothing to redo")
        return self._result(session, True)

    def validate_formation(self, session: MatchSession) -> ValidationResult:
        return self.validator.validate(session.formation, session.squad_ids)

    def is_ready_to_start(self, session: MatchSession) -> bool:
        return (not session.period_active and not session.match_finished
                and self.validator.is_complete(session.formation, session.team_mode))

    # ---------- Clock events ---------- #

    def start_period(self, session: MatchSession, current_ts: float) -> EditResult:
        """Start the current period if the formation is complete."""
        if session.match_finished:
            return EditResult(False, "The match is finished")
        if session.period_active:
            return EditResult(False, f"Period {session.current_period} is already running")
        ts = coerce_timestamp(current_ts)
        if ts is None:
            return EditResult(False, "Invalid timestamp")

        validation = self.validate_formation(session)
        if not validation.is_valid:
            return EditResult(False, validation.reason, {"errors": validation.errors})

        if can_use_paired_role_strategy(session.team_config):
            # Defender and attacker of a side come off together
            ordered = build_paired_rotation_queue(session.formation).to_array()
            session.rotation_queue.initialize(ordered, session.inactive_ids())
        self._sync_queue(session)
        session.period_active = True
        session.is_paused = False
        session.period_start_ts = ts
        session.period_substitutions = []
        if session.period_goalies.get(session.current_period) != session.formation.goalie:
            session.period_goalies.set(session.current_period, session.formation.goalie)

        for player in session.players.values():
            role, status, pair_key = initialize_player_role_and_status(player.id, session.formation)
            stats = player.stats
            stats.current_period_status = status
            stats.current_period_role = role
            stats.current_pair_key = pair_key
            if role in (PlayerRole.DEFENDER, PlayerRole.MIDFIELDER, PlayerRole.ATTACKER):
                stats.last_field_role = role
            if session.current_period == 1 and stats.started_match_as is None:
                stats.started_match_as = status
            counter = ROLE_PERIOD_FIELDS.get(role) if status != PlayerStatus.SUBSTITUTE else None
            if counter:
                setattr(stats, counter, getattr(stats, counter) + 1)
            if status is not None and not player.is_inactive:
                self.time_tracker.start_stint(player, ts)
            else:
                stats.last_stint_start_ts = None

        self.command_manager.clear_history()
        logger.info("Period %s started", session.current_period)
        return self._result(session, True)

    def tick(self, session: MatchSession, current_ts: float, is_paused: Optional[bool] = None) -> EditResult:
        """Clock wake-up: accumulate time for every running stint."""
        if not session.period_active:
            return EditResult(False, "No period is running")
        if is_paused is not None and is_paused != session.is_paused:
            return self.pause(session, current_ts) if is_paused else self.resume(session, current_ts)
        self.time_tracker.tick_players(session.players.values(), current_ts, session.is_paused)
        return self._result(session, True)

    def pause(self, session: MatchSession, current_ts: float) -> EditResult:
        if not session.period_active:
            return EditResult(False, "No period is running")
        if session.is_paused:
            return self._result(session, True)
        self.time_tracker.tick_players(session.players.values(), current_ts, False)
        session.is_paused = True
        # Undo snapshots hold stint starts from before the pause
        self.command_manager.clear_history()
        return self._result(session, True)

    def resume(self, session: MatchSession, current_ts: float) -> EditResult:
        if not session.period_active:
            return EditResult(False, "No period is running")
        if not session.is_paused:
            return self._result(session, True)
        # Closes out the paused interval as zero and restarts stints
        self.time_tracker.tick_players(session.players.values(), current_ts, True)
        session.is_paused = False
        self.command_manager.clear_history()
        return self._result(session, True)

    def substitute(self, session: MatchSession, current_ts: float, count: int = 1) -> EditResult:
        """
        Rotate players at the front of the queue off the field.

        Paired modes swap the next field pair with the substitute pair.
        Individual modes bring on the first ``count`` active substitutes.
        """
        if not session.period_active:
            return EditResult(False, "No period is running")
        ts = coerce_timestamp(current_ts)
        if ts is None:
            return EditResult(False, "Invalid timestamp")

        if session.formation.schema.is_paired:
            moves = self._pair_substitution(session)
        else:
            moves = self._individual_substitution(session, count)
        if isinstance(moves, str):
            return EditResult(False, moves)

        players_off, players_on, formation = moves
        session.formation = formation
        for player_id in players_off:
            session.rotation_queue.rotate_player(player_id)
        for player_id in set(players_off) | set(players_on) | set(formation.substitute_player_ids()):
            self._set_player_position(session, player_id, ts)

        record = SubstitutionRecord(ts, tuple(players_off), tuple(players_on))
        session.period_substitutions.append(record)
        self.command_manager.clear_history()
        logger.debug("Substitution at %s: off %s, on %s", ts, players_off, players_on)
        return self._result(session, True, substitution=record.to_dict())

    def end_period(self, session: MatchSession, current_ts: float) -> EditResult:
        """Close the running period and store its snapshot in the game log."""
        if not session.period_active:
            return EditResult(False, "No period is running")
        ts = coerce_timestamp(current_ts, fallback=session.period_start_ts)

        for player in session.players.values():
            if player.stats.last_stint_start_ts is not None:
                self.time_tracker.stop_stint(player, ts, session.is_paused)

        entry = GameLogEntry(
            period_number=session.current_period,
            start_ts=session.period_start_ts,
            end_ts=ts,
            player_stats=self.time_tracker.snapshot_players(session.players.values()),
            substitutions=tuple(session.period_substitutions),
            goalie_id=session.formation.goalie,
            formation=session.formation.to_dict(),
        )
        session.game_log.append(entry)
        session.period_active = False
        session.period_start_ts = None
        session.period_substitutions = []

        if session.current_period >= session.period_count:
            session.match_finished = True
            logger.info("Match finished after period %s", session.current_period)
        else:
            session.current_period += 1
            next_goalie = session.period_goalies.get(session.current_period)
            if next_goalie and next_goalie != session.formation.goalie:
                self.goalie_service.reassign_goalie(session, next_goalie)
        self.command_manager.clear_history()
        return self._result(session, True, log_entry=entry.to_dict())

    # ---------- State ---------- #

    def state(self, session: MatchSession) -> Dict[str, Any]:
        """Session state plus validation and rotation hints."""
        data = session.to_dict()
        validation = self.validate_formation(session)
        data["is_complete"] = self.validator.is_complete(session.formation, session.team_mode)
        data["completeness"] = self.validator.completeness(session.formation)
        data["validation_errors"] = validation.errors
        data["can_start_period"] = self.is_ready_to_start(session)
        data["next_to_rotate_off"] = session.rotation_queue.next_active_player(1)
        data["can_undo"] = self.command_manager.can_undo()
        return data

    # ---------- Internals ---------- #

    def _run(self, session: MatchSession, command) -> EditResult:
        if not self.command_manager.execute_command(command):
            return EditResult(False, command.error or "Edit rejected",
                              {"is_complete": self.validator.is_complete(session.formation)})
        return self._result(session, True)

    def _result(self, session: MatchSession, success: bool, **data: Any) -> EditResult:
        data.setdefault("is_complete", self.validator.is_complete(session.formation))
        return EditResult(success, None, data)

    def _sync_queue(self, session: MatchSession) -> None:
        """Drop stale ids and append missing active outfield players."""
        queue = session.rotation_queue
        eligible = session.active_outfield_ids()
        for player_id in queue.to_array():
            if player_id not in eligible:
                queue.remove_player(player_id)
        for player_id in eligible:
            if not queue.contains(player_id):
                queue.add_player(player_id, "end")
        for player_id in session.inactive_ids():
            if not queue.is_inactive(player_id):
                queue.deactivate_player(player_id)

    def _set_player_position(self, session: MatchSession, player_id: str,
                             current_ts: Optional[float] = None) -> None:
        player = session.get_player(player_id)
        role, status, pair_key = initialize_player_role_and_status(player_id, session.formation)
        if session.period_active and current_ts is not None and not player.is_inactive:
            self.time_tracker.handle_status_change(player, status, role, current_ts, session.is_paused, pair_key)
        else:
            player.stats.current_period_status = status
            player.stats.current_period_role = role
            player.stats.current_pair_key = pair_key

    def _field_queue_order(self, session: MatchSession, field_ids: Iterable[str]) -> List[str]:
        field_set = set(field_ids)
        return [pid for pid in session.rotation_queue.to_array() if pid in field_set]

    def _pair_substitution(self, session: MatchSession):
        formation = session.formation
        field_pairs = {key: formation.pair(key) for key in FIELD_PAIR_KEYS}
        sub_pair = formation.pair(SUB_PAIR_KEY)
        if not sub_pair["defender"] or not sub_pair["attacker"]:
            return "The substitute pair is incomplete"

        leaving_key = None
        for player_id in session.rotation_queue.to_array():
            for key, pair in field_pairs.items():
                if player_id in pair.values():
                    leaving_key = key
                    break
            if leaving_key:
                break
        if leaving_key is None:
            return "No field pair in the rotation queue"

        leaving = field_pairs[leaving_key]
        updated = formation.copy()
        for role in ("defender", "attacker"):
            updated.set_slot(pair_slot_id(leaving_key, role), sub_pair[role])
            updated.set_slot(pair_slot_id(SUB_PAIR_KEY, role), leaving[role])
        players_off = [pid for pid in session.rotation_queue.to_array() if pid in leaving.values()]
        players_on = [sub_pair["defender"], sub_pair["attacker"]]
        return players_off, players_on, updated

    def _individual_substitution(self, session: MatchSession, count: int):
        formation = session.formation
        schema = formation.schema
        substitute_slots = schema.substitute_slot_ids
        active_subs = [formation.get(s) for s in substitute_slots
                       if formation.get(s) and not session.players[formation.get(s)].is_inactive]
        inactive_subs = [formation.get(s) for s in substitute_slots
                         if formation.get(s) and session.players[formation.get(s)].is_inactive]
        if not active_subs:
            return "No active substitutes"

        count = min(coerce_count(count), len(active_subs))
        players_off = self._field_queue_order(session, formation.field_player_ids())[:count]
        if len(players_off) < count:
            return "Not enough field players in the rotation queue"
        players_on = active_subs[:count]

        updated = formation.copy()
        vacated = {pid: formation.find_slot(pid) for pid in players_off}

        if is_paired_rotation_active(session.team_config, count):
            previous_roles = {pid: session.players[pid].stats.last_field_role for pid in players_on}
            first, second = players_on
            if previous_roles[first] == PlayerRole.ATTACKER or previous_roles[second] == PlayerRole.DEFENDER:
                first, second = second, first
            strategy = session.team_config.paired_role_strategy
            if previous_roles[first] is None and previous_roles[second] is None:
                # First stint: no roles to keep or swap yet
                strategy = None
            defender_id, attacker_id = roles_for_reentry(strategy, first, second)
            defender_slot = next((s for s in vacated.values() if schema.slot(s).role == PlayerRole.DEFENDER), None)
            attacker_slot = next((s for s in vacated.values() if schema.slot(s).role == PlayerRole.ATTACKER), None)
            if defender_slot and attacker_slot:
                updated.set_slot(defender_slot, defender_id)
                updated.set_slot(attacker_slot, attacker_id)
            else:
                for incoming, outgoing in zip(players_on, players_off):
                    updated.set_slot(vacated[outgoing], incoming)
        else:
            for incoming, outgoing in zip(players_on, players_off):
                updated.set_slot(vacated[outgoing], incoming)

        bench = active_subs[count:] + players_off + inactive_subs
        for index, slot_id in enumerate(substitute_slots):
            updated.set_slot(slot_id, bench[index] if index < len(bench) else "")
        return players_off, players_on, updated
