"""
Unit tests for the match session service: setup, period lifecycle,
substitutions and time accounting.
"""
import unittest

from sideline_rotation.exceptions import InvalidTeamConfigError, UnknownPlayerError
from sideline_rotation.models import Player, PlayerRole, PlayerStatus, TeamConfig
from sideline_rotation.models.player import TIME_FIELDS
from sideline_rotation.services import MatchSessionService

LINEUP_6 = {
    "leftDefender": "p2", "rightDefender": "p3", "leftAttacker": "p4", "rightAttacker": "p5",
    "substitute_1": "p6",
}

LINEUP_8 = {
    "leftDefender": "p2", "rightDefender": "p3", "leftAttacker": "p4", "rightAttacker": "p5",
    "substitute_1": "p6", "substitute_2": "p7", "substitute_3": "p8",
}


def total_seconds(player: Player) -> int:
    stats = player.stats
    return stats.time_on_field_seconds + stats.time_as_goalie_seconds + stats.time_as_sub_seconds


class SessionTestCase(unittest.TestCase):
    squad_size = 6
    lineup = LINEUP_6

    def setUp(self) -> None:
        self.service = MatchSessionService()
        config = TeamConfig.create(squad_size=self.squad_size)
        names = [f"Player {i}" for i in range(1, self.squad_size + 1)]
        self.session = self.service.create_session(names, config, period_goalie_ids={1: "p1"})

    def fill_lineup(self) -> None:
        for slot_id, player_id in self.lineup.items():
            result = self.service.assign_slot(self.session, slot_id, player_id)
            self.assertTrue(result.success, result.error)

    def assert_queue_complete(self) -> None:
        self.assertEqual(
            sorted(self.session.rotation_queue.to_array()),
            sorted(self.session.active_outfield_ids()),
        )


class TestSessionSetup(SessionTestCase):

    def test_squad_names_get_sequential_ids(self):
        self.assertEqual(self.session.squad_ids, ["p1", "p2", "p3", "p4", "p5", "p6"])
        self.assertEqual(self.session.players["p1"].name, "Player 1")
        self.assertEqual(self.session.formation.goalie, "p1")
        self.assertEqual(self.session.period_goalies.as_list(), ["p1", "p1", "p1"])
        self.assert_queue_complete()

    def test_squad_size_must_match_config(self):
        with self.assertRaises(InvalidTeamConfigError):
            self.service.create_session(["A", "B", "C", "D", "E"], TeamConfig.create(squad_size=6))

    def test_unknown_goalie_raises(self):
        with self.assertRaises(UnknownPlayerError):
            self.service.create_session([f"P{i}" for i in range(6)], TeamConfig.create(squad_size=6),
                                        period_goalie_ids={1: "p42"})

    def test_period_duration(self):
        self.assertEqual(self.session.period_duration_seconds, 15 * 60)

    def test_bad_numbers_are_coerced(self):
        session = self.service.create_session(
            [f"P{i}" for i in range(6)], TeamConfig.create(squad_size=6),
            period_goalie_ids={"first": "p1", "2": "p3"}, period_duration_min="long",
        )

        self.assertEqual(session.period_goalies.get(1), "p1")
        self.assertEqual(session.period_goalies.get(2), "p3")
        self.assertEqual(session.period_duration_seconds, 15 * 60)


class TestIndividualSixScenario(SessionTestCase):
    """Incomplete formation blocks the start; completing it enables it."""

    def test_incomplete_then_complete(self):
        self.service.assign_slot(self.session, "leftDefender", "p2")
        self.service.assign_slot(self.session, "rightDefender", "p3")

        validation = self.service.validate_formation(self.session)
        self.assertFalse(validation.is_valid)
        self.assertEqual(
            validation.reason,
            "Please complete the team formation with 1 goalie and 5 unique outfield players.",
        )
        self.assertFalse(self.service.is_ready_to_start(self.session))
        rejected = self.service.start_period(self.session, 1000)
        self.assertFalse(rejected.success)
        self.assertFalse(self.session.period_active)

        for slot_id in ("leftAttacker", "rightAttacker", "substitute_1"):
            self.service.assign_slot(self.session, slot_id, LINEUP_6[slot_id])

        self.assertTrue(self.service.is_ready_to_start(self.session))
        started = self.service.start_period(self.session, 1000)
        self.assertTrue(started.success)
        self.assertTrue(self.session.period_active)

        p2 = self.session.players["p2"].stats
        self.assertEqual(p2.current_period_status, PlayerStatus.ON_FIELD)
        self.assertEqual(p2.current_period_role, PlayerRole.DEFENDER)
        self.assertEqual(p2.started_match_as, PlayerStatus.ON_FIELD)
        self.assertEqual(p2.periods_as_defender, 1)
        p6 = self.session.players["p6"].stats
        self.assertEqual(p6.current_period_status, PlayerStatus.SUBSTITUTE)
        self.assertEqual(p6.periods_as_defender + p6.periods_as_attacker, 0)
        self.assertEqual(self.session.players["p1"].stats.periods_as_goalie, 1)

    def test_duplicate_assignment_rejected_while_incomplete(self):
        self.service.assign_slot(self.session, "leftDefender", "p2")
        result = self.service.assign_slot(self.session, "rightDefender", "p2")

        self.assertFalse(result.success)
        self.assertEqual(result.error, "Player 'p2' is already assigned to 'leftDefender'")
        self.assertEqual(self.session.formation.get("rightDefender"), "")

    def test_assignment_swaps_when_complete(self):
        self.fill_lineup()
        result = self.service.assign_slot(self.session, "leftDefender", "p6")

        self.assertTrue(result.success)
        self.assertEqual(self.session.formation.get("leftDefender"), "p6")
        self.assertEqual(self.session.formation.get("substitute_1"), "p2")
        self.assertEqual(self.session.players["p2"].stats.current_period_status, PlayerStatus.SUBSTITUTE)

    def test_goalie_slot_routes_to_goalie_change(self):
        self.fill_lineup()
        result = self.service.assign_slot(self.session, "goalie", "p4")

        self.assertTrue(result.success)
        self.assertEqual(self.session.formation.goalie, "p4")
        self.assertEqual(self.session.formation.get("leftAttacker"), "p1")


class TestPeriodLifecycle(SessionTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.fill_lineup()
        self.assertTrue(self.service.start_period(self.session, 1000).success)

    def test_time_conservation_with_pause_and_substitution(self):
        self.service.tick(self.session, 1100)
        self.assertTrue(self.service.substitute(self.session, 1200).success)
        self.service.pause(self.session, 1300)
        self.service.tick(self.session, 1350)
        self.service.resume(self.session, 1400)
        self.service.end_period(self.session, 1500)

        for player in self.session.players.values():
            self.assertEqual(total_seconds(player), 400, player.id)

        p2 = self.session.players["p2"].stats
        self.assertEqual(p2.time_as_defender_seconds, 200)
        self.assertEqual(p2.time_as_sub_seconds, 200)
        p6 = self.session.players["p6"].stats
        self.assertEqual(p6.time_as_sub_seconds, 200)
        self.assertEqual(p6.time_as_defender_seconds, 200)

    def test_pause_accumulates_nothing(self):
        self.service.pause(self.session, 1060)
        before = {pid: total_seconds(p) for pid, p in self.session.players.items()}
        self.service.tick(self.session, 1500)
        after = {pid: total_seconds(p) for pid, p in self.session.players.items()}

        self.assertEqual(before, after)
        self.assertTrue(self.session.is_paused)

    def test_tick_with_paused_flag_pauses(self):
        self.service.tick(self.session, 1030, is_paused=True)
        self.assertTrue(self.session.is_paused)
        self.service.tick(self.session, 1090, is_paused=False)
        self.assertFalse(self.session.is_paused)
        self.service.tick(self.session, 1100)
        self.assertEqual(self.session.players["p2"].stats.time_on_field_seconds, 40)

    def test_pause_clears_undo_history(self):
        self.assertTrue(self.service.assign_slot(self.session, "leftDefender", "p3", 1050).success)
        self.service.pause(self.session, 1100)

        self.assertFalse(self.service.undo(self.session).success)
        self.service.resume(self.session, 1200)
        self.service.end_period(self.session, 1300)

        for player in self.session.players.values():
            self.assertEqual(total_seconds(player), 200, player.id)

    def test_undo_while_paused_keeps_time(self):
        self.service.pause(self.session, 1100)
        self.assertTrue(self.service.assign_slot(self.session, "leftDefender", "p3", 1150).success)
        self.assertTrue(self.service.undo(self.session).success)
        self.service.resume(self.session, 1200)
        self.service.end_period(self.session, 1300)

        self.assertEqual(self.session.formation.get("leftDefender"), "p2")
        for player in self.session.players.values():
            self.assertEqual(total_seconds(player), 200, player.id)

    def test_substitution_count_is_coerced(self):
        result = self.service.substitute(self.session, 1100, count="two")

        self.assertTrue(result.success)
        self.assertEqual(result.data["substitution"]["players_off"], ["p2"])

    def test_substitution_rotates_queue(self):
        result = self.service.substitute(self.session, 1120)

        self.assertTrue(result.success)
        self.assertEqual(result.data["substitution"], {"ts": 1120, "players_off": ["p2"], "players_on": ["p6"]})
        self.assertEqual(self.session.formation.get("leftDefender"), "p6")
        self.assertEqual(self.session.formation.get("substitute_1"), "p2")
        self.assertEqual(self.session.rotation_queue.to_array(), ["p3", "p4", "p5", "p6", "p2"])
        self.assertEqual(self.session.players["p2"].stats.last_field_role, PlayerRole.DEFENDER)
        self.assert_queue_complete()

    def test_end_period_logs_snapshot_and_advances(self):
        self.service.substitute(self.session, 1100)
        result = self.service.end_period(self.session, 1600)

        self.assertTrue(result.success)
        self.assertFalse(self.session.period_active)
        self.assertEqual(self.session.current_period, 2)
        entry = self.session.game_log[0]
        self.assertEqual(entry.period_number, 1)
        self.assertEqual(entry.duration_seconds, 600)
        self.assertEqual(len(entry.substitutions), 1)
        self.assertEqual(entry.goalie_id, "p1")

        # Later play does not change the stored snapshot
        self.service.start_period(self.session, 2000)
        self.service.tick(self.session, 2300)
        self.assertEqual(entry.player_stats["p1"].time_as_goalie_seconds, 600)
        self.assertEqual(self.session.players["p1"].stats.time_as_goalie_seconds, 900)

    def test_next_period_goalie_applied_at_period_end(self):
        self.assertTrue(self.service.set_period_goalie(self.session, 2, "p3").success)
        self.service.end_period(self.session, 1600)

        self.assertEqual(self.session.formation.goalie, "p3")
        self.assertEqual(self.session.formation.get("rightDefender"), "p1")
        self.assertIn("p1", self.session.rotation_queue)
        self.assertNotIn("p3", self.session.rotation_queue)

    def test_closed_period_goalie_cannot_change(self):
        self.service.end_period(self.session, 1600)
        result = self.service.set_period_goalie(self.session, 1, "p4")
        self.assertFalse(result.success)

    def test_match_finishes_after_last_period(self):
        for period_start in (2000, 3000):
            self.service.end_period(self.session, period_start - 100)
            self.assertTrue(self.service.start_period(self.session, period_start).success)
        self.service.end_period(self.session, 3900)

        self.assertTrue(self.session.match_finished)
        self.assertEqual(len(self.session.game_log), 3)
        self.assertFalse(self.service.start_period(self.session, 4000).success)

    def test_clock_events_require_running_period(self):
        self.service.end_period(self.session, 1100)
        self.assertFalse(self.service.tick(self.session, 1200).success)
        self.assertFalse(self.service.substitute(self.session, 1200).success)
        self.assertFalse(self.service.end_period(self.session, 1200).success)

    def test_state_contains_rotation_hints(self):
        state = self.service.state(self.session)

        self.assertTrue(state["is_complete"])
        self.assertEqual(state["next_to_rotate_off"], ["p2"])
        self.assertEqual(state["team_mode"], "individual_6")
        self.assertEqual(state["validation_errors"], [])
        self.assertFalse(state["can_start_period"])


class TestInactivePlayers(SessionTestCase):
    squad_size = 8
    lineup = LINEUP_8

    def setUp(self) -> None:
        super().setUp()
        self.fill_lineup()

    def subs(self):
        return [self.session.formation.get(s) for s in ("substitute_1", "substitute_2", "substitute_3")]

    def test_inactive_players_sink_to_bottom(self):
        self.assertTrue(self.service.set_player_inactive(self.session, "p6", True).success)
        self.assertEqual(self.subs(), ["p7", "p8", "p6"])
        self.assertNotIn("p6", self.session.rotation_queue)
        self.assertEqual(self.session.rotation_queue.inactive_players(), ["p6"])
        self.assert_queue_complete()

    def test_one_substitute_stays_active(self):
        self.service.set_player_inactive(self.session, "p7", True)
        self.service.set_player_inactive(self.session, "p8", True)
        result = self.service.set_player_inactive(self.session, "p6", True)

        self.assertFalse(result.success)
        self.assertEqual(result.error, "At least one substitute must stay active")

    def test_reactivated_player_becomes_first_substitute(self):
        self.service.set_player_inactive(self.session, "p7", True)
        self.service.set_player_inactive(self.session, "p8", True)
        self.service.set_player_inactive(self.session, "p7", False)

        self.assertEqual(self.subs(), ["p7", "p6", "p8"])
        self.assertEqual(self.session.rotation_queue.to_array()[-1], "p7")

    def test_field_player_cannot_be_inactivated(self):
        result = self.service.set_player_inactive(self.session, "p2", True)
        self.assertFalse(result.success)
        self.assertFalse(self.session.players["p2"].is_inactive)

    def test_inactive_player_accumulates_no_time(self):
        self.service.set_player_inactive(self.session, "p8", True)
        self.service.start_period(self.session, 0)
        self.service.tick(self.session, 300)

        self.assertEqual(total_seconds(self.session.players["p8"]), 0)
        self.assertEqual(self.session.players["p7"].stats.time_as_sub_seconds, 300)

    def test_inactive_player_skipped_by_substitution(self):
        self.service.set_player_inactive(self.session, "p6", True)
        self.service.start_period(self.session, 0)
        result = self.service.substitute(self.session, 100)

        self.assertEqual(result.data["substitution"]["players_on"], ["p7"])
        self.assertEqual(self.subs(), ["p8", "p2", "p6"])

    def test_unsupported_mode_rejects_inactive(self):
        service = MatchSessionService()
        session = service.create_session([f"P{i}" for i in range(6)], TeamConfig.create(squad_size=6))
        result = service.set_player_inactive(session, "p2", True)
        self.assertFalse(result.success)


class TestRecommendations(SessionTestCase):

    def test_apply_recommendation_completes_formation(self):
        result = self.service.apply_recommendation(self.session)

        self.assertTrue(result.success, result.error)
        self.assertTrue(self.service.is_ready_to_start(self.session))
        self.assertEqual(self.session.formation.goalie, "p1")
        self.assert_queue_complete()

    def test_apply_rejected_during_period(self):
        self.service.apply_recommendation(self.session)
        self.service.start_period(self.session, 0)
        result = self.service.apply_recommendation(self.session)
        self.assertFalse(result.success)

    def test_recommendation_uses_period_goalie(self):
        self.service.set_period_goalie(self.session, 1, "p4")
        recommendation = self.service.recommend_formation(self.session)
        self.assertEqual(recommendation.formation.goalie, "p4")


if __name__ == "__main__":
    unittest.main()
