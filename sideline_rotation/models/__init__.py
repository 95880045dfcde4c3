"""
Models package for the Sideline Rotation engine.

This package contains the core data models used throughout the application.
"""
from .player import Player, PlayerStats, PlayerStatus, PlayerRole, initialize_players
from .team_mode import (
    TeamMode, TeamModeSchema, TeamConfig, TeamConfigState, SubstitutionType, PairedRoleStrategy,
    SlotKind, SlotDefinition, get_schema, resolve_team_mode, validate_team_config,
    INDIVIDUAL_5, INDIVIDUAL_6, INDIVIDUAL_7, INDIVIDUAL_8, PAIRS_7,
)
from .formation import Formation, RoleAndStatus, initialize_player_role_and_status
from .game_log import GameLogEntry, PeriodGoalieAssignment, SubstitutionRecord
from .match_session import MatchSession
from .match_report import MatchReport, PlayerTimeSummary, RolePoints

__all__ = [
    "Player", "PlayerStats", "PlayerStatus", "PlayerRole", "initialize_players",
    "TeamMode", "TeamModeSchema", "TeamConfig", "TeamConfigState", "SubstitutionType",
    "PairedRoleStrategy", "SlotKind", "SlotDefinition", "get_schema", "resolve_team_mode",
    "validate_team_config", "INDIVIDUAL_5", "INDIVIDUAL_6", "INDIVIDUAL_7", "INDIVIDUAL_8", "PAIRS_7",
    "Formation", "RoleAndStatus", "initialize_player_role_and_status",
    "GameLogEntry", "PeriodGoalieAssignment", "SubstitutionRecord",
    "MatchSession", "MatchReport", "PlayerTimeSummary", "RolePoints",
]
