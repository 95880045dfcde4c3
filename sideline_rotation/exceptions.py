"""Exceptions raised by the Sideline Rotation engine.

Only programming-contract violations are raised; structural validation
failures are reported through result objects instead.
"""


class RotationEngineError(Exception):
    """Base class for engine errors."""
    pass


class UnknownPlayerError(RotationEngineError):
    """Raised when an operation references a player id absent from the squad."""

    def __init__(self, player_id: str):
        super().__init__(f"Player '{player_id}' is not part of the squad")
        self.player_id = player_id


class InvalidTeamConfigError(RotationEngineError):
    """Raised when a team configuration cannot be satisfied."""
    pass


class MatchNotConfiguredError(RotationEngineError):
    """Raised when a match operation is requested before a squad is configured."""

    def __init__(self):
        super().__init__("No match has been configured")
