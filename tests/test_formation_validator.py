"""
Unit tests for formation validation: gating period start and screening edits.
"""
import unittest

from sideline_rotation.models import Formation, INDIVIDUAL_6, PAIRS_7
from sideline_rotation.services.formation_validator import FormationValidationService

SQUAD_6 = ["p1", "p2", "p3", "p4", "p5", "p6"]


def complete_individual_6() -> Formation:
    return Formation(INDIVIDUAL_6, {
        "goalie": "p1",
        "leftDefender": "p2", "rightDefender": "p3",
        "leftAttacker": "p4", "rightAttacker": "p5",
        "substitute_1": "p6",
    })


class TestFormationValidationService(unittest.TestCase):

    def setUp(self) -> None:
        self.validator = FormationValidationService()

    def test_complete_formation_is_valid(self):
        formation = complete_individual_6()
        self.assertTrue(self.validator.is_complete(formation))
        result = self.validator.validate(formation, SQUAD_6)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, [])

    def test_empty_slot_blocks_start(self):
        formation = complete_individual_6().with_slot("substitute_1", "")
        result = self.validator.validate(formation, SQUAD_6)

        self.assertFalse(self.validator.is_complete(formation))
        self.assertFalse(result.is_valid)
        self.assertEqual(
            result.reason,
            "Please complete the team formation with 1 goalie and 5 unique outfield players.",
        )
        self.assertIn("Slot 'substitute_1' is empty", result.errors)

    def test_duplicate_player_is_invalid(self):
        formation = complete_individual_6().with_slot("substitute_1", "p2")
        result = self.validator.validate(formation, SQUAD_6)

        self.assertFalse(self.validator.is_complete(formation))
        self.assertIn("Player 'p2' is assigned to 2 slots", result.errors)

    def test_player_outside_squad_is_invalid(self):
        formation = complete_individual_6().with_slot("substitute_1", "p9")
        result = self.validator.validate(formation, SQUAD_6)
        self.assertFalse(result.is_valid)
        self.assertIn("Player 'p9' in slot 'substitute_1' is not in the squad", result.errors)

    def test_missing_goalie(self):
        formation = complete_individual_6().with_slot("goalie", "")
        result = self.validator.validate(formation, SQUAD_6)
        self.assertIn("No goalie selected", result.errors)

    def test_completeness_counts(self):
        formation = Formation.empty(PAIRS_7, "p1")
        self.assertEqual(self.validator.completeness(formation), {"assigned": 1, "total": 7})

    def test_assignment_rejected_while_incomplete(self):
        formation = Formation(INDIVIDUAL_6, {"goalie": "p1", "leftDefender": "p2"})
        result = self.validator.validate_assignment(formation, "rightDefender", "p2")

        self.assertFalse(result.is_valid)
        self.assertEqual(result.reason, "Player 'p2' is already assigned to 'leftDefender'")

    def test_assignment_becomes_swap_when_complete(self):
        formation = complete_individual_6()
        result = self.validator.validate_assignment(formation, "leftDefender", "p6")

        self.assertTrue(result.is_valid)
        self.assertEqual(result.swap_slot, "substitute_1")

    def test_goalie_never_swapped_through_slot_edit(self):
        formation = complete_individual_6()
        result = self.validator.validate_assignment(formation, "leftDefender", "p1")
        self.assertFalse(result.is_valid)

    def test_unknown_slot(self):
        result = self.validator.validate_assignment(complete_individual_6(), "striker", "p2")
        self.assertEqual(result.reason, "Unknown slot: striker")

    def test_clearing_and_same_slot_are_accepted(self):
        formation = complete_individual_6()
        self.assertTrue(self.validator.validate_assignment(formation, "leftDefender", "").is_valid)
        self.assertTrue(self.validator.validate_assignment(formation, "leftDefender", "p2").is_valid)


if __name__ == "__main__":
    unittest.main()
