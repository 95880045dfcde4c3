"""
Service Factory for dependency injection.

This module provides a factory for creating properly configured service instances
with their dependencies injected, so the web layer and tests share one wiring.
"""
from typing import Optional

from .analytics_service import AnalyticsService, ExportServiceInterface, MatchReportExporter
from .formation_validator import FormationValidationService
from .game_commands import GameCommandManager
from .goalie_service import GoalieReassignmentService
from .session_service import MatchSessionService
from .time_tracker import PlayerTimeTracker
from ..models import MatchSession


class ServiceFactory:
    """
    Factory for creating service instances with proper dependency injection.

    Stateless helpers (validator, time tracker, exporter) are shared across
    everything the factory creates.
    """

    def __init__(self):
        """Initialize factory with default configurations."""
        self._validator: Optional[FormationValidationService] = None
        self._time_tracker: Optional[PlayerTimeTracker] = None
        self._export_service: Optional[ExportServiceInterface] = None

    def create_goalie_service(self) -> GoalieReassignmentService:
        return GoalieReassignmentService(self._get_time_tracker())

    def create_session_service(self, max_history: int = 50) -> MatchSessionService:
        """
        Create MatchSessionService with injected dependencies.

        Args:
            max_history: Undo history length for formation edits

        Returns:
            Configured MatchSessionService instance
        """
        return MatchSessionService(
            validator=self._get_validator(),
            time_tracker=self._get_time_tracker(),
            goalie_service=self.create_goalie_service(),
            command_manager=GameCommandManager(max_history=max_history),
        )

    def create_analytics_service(self, session: MatchSession) -> AnalyticsService:
        """
        Create AnalyticsService with injected dependencies.

        Args:
            session: Match session to analyze

        Returns:
            Configured AnalyticsService instance
        """
        return AnalyticsService(session=session, export_service=self._get_export_service())

    def create_complete_service_suite(self, session: Optional[MatchSession] = None) -> dict:
        """
        Create a complete suite of services with proper dependencies.

        Args:
            session: Optional session for the session-bound services

        Returns:
            Dictionary containing all configured services
        """
        suite = {
            'validator': self._get_validator(),
            'time_tracker': self._get_time_tracker(),
            'session': self.create_session_service(),
        }
        if session is not None:
            suite['analytics'] = self.create_analytics_service(session)
        return suite

    def _get_validator(self) -> FormationValidationService:
        """Get or create singleton formation validator."""
        if self._validator is None:
            self._validator = FormationValidationService()
        return self._validator

    def _get_time_tracker(self) -> PlayerTimeTracker:
        """Get or create singleton time tracker."""
        if self._time_tracker is None:
            self._time_tracker = PlayerTimeTracker()
        return self._time_tracker

    def _get_export_service(self) -> ExportServiceInterface:
        """Get or create singleton export service."""
        if self._export_service is None:
            self._export_service = MatchReportExporter()
        return self._export_service

    def configure_custom_validator(self, validator: FormationValidationService) -> None:
        """
        Configure custom formation validator.

        Args:
            validator: Custom validator implementation
        """
        self._validator = validator

    def configure_custom_export_service(self, export_service: ExportServiceInterface) -> None:
        """
        Configure custom export service.

        Args:
            export_service: Custom export service implementation
        """
        self._export_service = export_service
