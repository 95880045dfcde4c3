"""
Services package for the Sideline Rotation engine.

This package contains service classes that handle business logic.
Includes factory for proper dependency injection.
"""
from .rotation_queue import RotationQueue, build_paired_rotation_queue
from .time_tracker import PlayerTimeTracker
from .formation_validator import FormationValidationService, ValidationResult
from .goalie_service import GoalieChange, GoalieReassignmentService
from .recommendation_service import Recommendation, get_recommendation_generator
from .game_commands import GameCommandManager
from .session_service import EditResult, MatchSessionService
from .analytics_service import AnalyticsService, MatchReportExporter, calculate_role_points
from .service_factory import ServiceFactory

__all__ = [
    "RotationQueue", "build_paired_rotation_queue", "PlayerTimeTracker",
    "FormationValidationService", "ValidationResult", "GoalieChange",
    "GoalieReassignmentService", "Recommendation", "get_recommendation_generator",
    "GameCommandManager", "EditResult", "MatchSessionService",
    "AnalyticsService", "MatchReportExporter", "calculate_role_points", "ServiceFactory",
]
