"""
Formation validation service for gating period start and rejecting bad edits.

Structural problems (empty slots, a player in two slots, strangers in the
formation) are reported through ``ValidationResult`` objects and never raised.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, Iterable, List, Optional

from ..models.formation import Formation
from ..models.team_mode import GOALIE_SLOT, SlotKind, TeamMode, get_schema

logger = logging.getLogger(__name__)


class ValidationResult:
    """Result of a validation operation with success status and error messages."""

    def __init__(self, is_valid: bool = True, errors: Optional[List[str]] = None):
        self.is_valid = is_valid
        self.errors = errors or []
        # Set when an assignment is accepted as a swap with another slot
        self.swap_slot: Optional[str] = None

    def add_error(self, error: str) -> None:
        """Add an error message and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def combine(self, other: 'ValidationResult') -> 'ValidationResult':
        """Combine with another validation result."""
        result = ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            errors=self.errors + other.errors
        )
        result.swap_slot = self.swap_slot or other.swap_slot
        return result

    @property
    def reason(self) -> Optional[str]:
        """First error message, for display."""
        return self.errors[0] if self.errors else None


class ValidationRule(ABC):
    """Abstract base class for validation rules."""

    @abstractmethod
    def validate(self, *args, **kwargs) -> ValidationResult:
        """Perform validation and return result."""
        pass


class SlotCompletenessRule(ValidationRule):
    """Every slot of the schema must hold a player id."""

    def validate(self, formation: Formation) -> ValidationResult:
        result = ValidationResult()
        for slot_id in formation.schema.slot_ids:
            if not formation.get(slot_id):
                result.add_error(f"Slot '{slot_id}' is empty")
        return result


class UniqueAssignmentRule(ValidationRule):
    """No player id may appear in more than one slot (goalie included)."""

    def validate(self, formation: Formation) -> ValidationResult:
        result = ValidationResult()
        counts = Counter(formation.assigned_ids())
        for player_id, count in counts.items():
            if count > 1:
                result.add_error(f"Player '{player_id}' is assigned to {count} slots")
        return result


class GoaliePresenceRule(ValidationRule):
    """Exactly one goalie slot, and it must be filled."""

    def validate(self, formation: Formation) -> ValidationResult:
        result = ValidationResult()
        goalie_slots = [s for s in formation.schema.slots if s.kind == SlotKind.GOALIE]
        if len(goalie_slots) != 1:
            result.add_error(f"Formation must have exactly 1 goalie slot, found {len(goalie_slots)}")
        elif not formation.goalie:
            result.add_error("No goalie selected")
        return result


class SquadMembershipRule(ValidationRule):
    """Every assigned id must belong to the squad."""

    def __init__(self, squad_ids: Iterable[str]):
        self.squad_ids = set(squad_ids)

    def validate(self, formation: Formation) -> ValidationResult:
        result = ValidationResult()
        for slot_id, player_id in formation.slots.items():
            if player_id and player_id not in self.squad_ids:
                result.add_error(f"Player '{player_id}' in slot '{slot_id}' is not in the squad")
        return result


class FormationValidationService:
    """
    Formation validation service.

    Orchestrates the validation rules used to gate "start period" and to
    screen single-slot edits before they are written.
    """

    def __init__(self):
        self.completeness_rule = SlotCompletenessRule()
        self.uniqueness_rule = UniqueAssignmentRule()
        self.goalie_rule = GoaliePresenceRule()

    def is_complete(self, formation: Formation, team_mode: Optional[TeamMode] = None) -> bool:
        """
        True when every slot of ``team_mode`` holds an id and no id repeats.

        Args:
            formation: Formation to check
            team_mode: Team mode whose schema defines the required slots
                (defaults to the formation's own)
        """
        schema = get_schema(team_mode or formation.team_mode)
        values = [formation.get(slot_id) for slot_id in schema.slot_ids]
        return all(values) and len(set(values)) == len(values)

    def validate(self, formation: Formation, squad_ids: Iterable[str]) -> ValidationResult:
        """
        Perform full formation validation.

        Args:
            formation: Formation to validate
            squad_ids: Ids of the selected squad

        Returns:
            ValidationResult with success status and any error messages;
            the first message is the team mode's completion prompt when
            the formation is not complete
        """
        result = ValidationResult()
        result = result.combine(self.goalie_rule.validate(formation))
        result = result.combine(self.completeness_rule.validate(formation))
        result = result.combine(self.uniqueness_rule.validate(formation))
        result = result.combine(SquadMembershipRule(squad_ids).validate(formation))

        if not result.is_valid:
            result.errors.insert(0, formation.schema.validation_message)
        return result

    def validate_assignment(self, formation: Formation, slot_id: str, player_id: str) -> ValidationResult:
        """
        Screen a single slot edit before it is written.

        A player already placed elsewhere is rejected, except when the
        formation is complete and both slots are outfield slots: then the
        edit is accepted as a swap and ``swap_slot`` names the other slot.
        """
        result = ValidationResult()

        if not formation.has_slot(slot_id):
            result.add_error(f"Unknown slot: {slot_id}")
            return result

        if not player_id:
            return result

        current_slot = formation.find_slot(player_id)
        if current_slot is None or current_slot == slot_id:
            return result

        both_outfield = slot_id != GOALIE_SLOT and current_slot != GOALIE_SLOT
        if both_outfield and self.is_complete(formation):
            result.swap_slot = current_slot
            return result

        result.add_error(f"Player '{player_id}' is already assigned to '{current_slot}'")
        logger.warning("Rejected assignment of %s to %s: already in %s", player_id, slot_id, current_slot)
        return result

    def completeness(self, formation: Formation) -> Dict[str, int]:
        """Filled and total slot counts."""
        total = len(formation.schema.slot_ids)
        return {"assigned": total - len(formation.empty_slots()), "total": total}
