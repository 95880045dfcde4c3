"""Tests for match reports, role points and CSV export."""

import csv
import io

import pytest

from sideline_rotation.models import PlayerStats, TeamConfig
from sideline_rotation.services import MatchSessionService, ServiceFactory
from sideline_rotation.services.analytics_service import (
    AnalyticsService, calculate_role_points, round_to_nearest_half,
)

LINEUP_6 = {
    "leftDefender": "p2", "rightDefender": "p3", "leftAttacker": "p4", "rightAttacker": "p5",
    "substitute_1": "p6",
}


@pytest.fixture
def played_session():
    service = MatchSessionService()
    session = service.create_session([f"Player {i}" for i in range(1, 7)], TeamConfig.create(squad_size=6),
                                     period_goalie_ids={1: "p1"}, captain_id="p3")
    for slot_id, player_id in LINEUP_6.items():
        service.assign_slot(session, slot_id, player_id)
    service.start_period(session, 0)
    service.substitute(session, 300)
    service.end_period(session, 600)
    return session


def stats(goalie_periods=0, defender=0, attacker=0) -> PlayerStats:
    return PlayerStats(periods_as_goalie=goalie_periods,
                       time_as_defender_seconds=defender,
                       time_as_attacker_seconds=attacker)


def test_round_to_nearest_half_rounds_half_up():
    assert round_to_nearest_half(0.75) == 1.0
    assert round_to_nearest_half(2.25) == 2.5
    assert round_to_nearest_half(1.2) == 1.0


@pytest.mark.parametrize("player_stats, expected", [
    (stats(1, 100, 300), (1.0, 0.5, 1.5)),
    (stats(0, 200, 100), (0.0, 2.0, 1.0)),
    (stats(0, 100, 300), (0.0, 1.0, 2.0)),
    (stats(0, 300, 100), (0.0, 2.0, 1.0)),
    (stats(3, 100, 100), (3.0, 0.0, 0.0)),
    (stats(1, 0, 0), (1.0, 0.0, 0.0)),
])
def test_role_points(player_stats, expected):
    points = calculate_role_points(player_stats)
    assert (points.goalie_points, points.defender_points, points.attacker_points) == expected


def test_role_points_always_sum_to_three_with_outfield_time():
    for defender in range(0, 601, 37):
        points = calculate_role_points(stats(0, defender, 600 - defender))
        assert points.goalie_points + points.defender_points + points.attacker_points == 3


def test_match_report_summary(played_session):
    report = AnalyticsService(played_session).generate_match_report()

    assert report.team_mode == "individual_6"
    assert report.squad_size == 6
    assert report.periods_played == 1
    assert [summary.id for summary in report.players] == ["p3", "p4", "p5", "p2", "p6", "p1"]
    assert report.average_field_seconds == 400
    assert report.median_field_seconds == 450
    assert report.min_field_seconds == 0
    assert report.max_field_seconds == 600

    by_id = {summary.id: summary for summary in report.players}
    assert by_id["p1"].time_as_goalie_seconds == 600
    assert by_id["p1"].role_points.goalie_points == 1
    assert by_id["p3"].is_captain is True
    assert by_id["p6"].started_match_as == "substitute"
    assert by_id["p6"].time_as_sub_seconds == 300


def test_report_csv_contains_player_rows(played_session):
    analytics = ServiceFactory().create_analytics_service(played_session)
    rows = list(csv.reader(io.StringIO(analytics.generate_report_csv())))

    assert rows[0] == ["Sideline Rotation Report"]
    assert ["Team Mode", "individual_6"] in rows
    header_index = rows.index(next(row for row in rows if row and row[0] == "Id"))
    player_rows = rows[header_index + 1:]
    assert len(player_rows) == 6
    assert player_rows[0][:2] == ["p3", "Player 3"]
    assert player_rows[0][2] == "yes"


def test_compact_export(played_session):
    text = AnalyticsService(played_session).export_match_report_csv()
    lines = text.splitlines()

    assert lines[0] == "Name,Field Time (min),Goalie Time (min),Bench Time (min),Points"
    assert lines[-1] == "Player 1,0.0,10.0,0.0,G1/D0/A0"


def test_report_before_any_period_uses_live_stats():
    service = MatchSessionService()
    session = service.create_session([f"P{i}" for i in range(6)], TeamConfig.create(squad_size=6))
    report = AnalyticsService(session).generate_match_report()

    assert report.periods_played == 0
    assert report.max_field_seconds == 0


def test_compact_export_quotes_names_with_commas():
    service = MatchSessionService()
    names = ["Smith, Jo"] + [f"P{i}" for i in range(5)]
    session = service.create_session(names, TeamConfig.create(squad_size=6))

    rows = list(csv.reader(io.StringIO(AnalyticsService(session).export_match_report_csv())))

    assert rows[0] == ["Name", "Field Time (min)", "Goalie Time (min)", "Bench Time (min)", "Points"]
    assert ["Smith, Jo", "0.0", "0.0", "0.0", "G0/D0/A0"] in rows
    assert all(len(row) == 5 for row in rows)
