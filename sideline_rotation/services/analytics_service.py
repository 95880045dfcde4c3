"""Analytics helpers: match reports, role points and CSV export."""

from __future__ import annotations

import csv
import datetime as dt
import io
import math
import statistics
from dataclasses import asdict
from typing import Dict, List, Mapping, Optional, Protocol

from ..models import MatchSession, PlayerStats
from ..models.match_report import MatchReport, PlayerTimeSummary, RolePoints
from ..utils import now_ts
from ..utils.constants import APP_TITLE, ROLE_POINTS_TOTAL


class ExportServiceInterface(Protocol):
    """Interface for data export."""

    def export_to_csv(self, report: MatchReport) -> str:
        """Export report to CSV format."""
        ...


def round_to_nearest_half(value: float) -> float:
    """Round half up to the nearest 0.5."""
    return math.floor(value * 2 + 0.5) / 2


def calculate_role_points(stats: PlayerStats) -> RolePoints:
    """
    Split the match's three role points for a player.

    One point per period in goal; the rest is split between defender and
    attacker in proportion to time, rounded to halves, with any rounding
    difference given to the role with more time.
    """
    goalie_points = float(stats.periods_as_goalie)
    remaining = ROLE_POINTS_TOTAL - goalie_points
    if remaining <= 0:
        return RolePoints(goalie_points, 0.0, 0.0)

    defender_time = stats.time_as_defender_seconds
    attacker_time = stats.time_as_attacker_seconds
    outfield_time = defender_time + attacker_time
    if outfield_time == 0:
        return RolePoints(goalie_points, 0.0, 0.0)

    defender_ratio = defender_time / outfield_time
    attacker_ratio = attacker_time / outfield_time
    defender_points = round_to_nearest_half(defender_ratio * remaining)
    attacker_points = round_to_nearest_half(attacker_ratio * remaining)

    difference = remaining - (defender_points + attacker_points)
    if difference:
        if defender_ratio > attacker_ratio:
            defender_points += difference
        else:
            attacker_points += difference

    return RolePoints(goalie_points, defender_points, attacker_points)


class MatchReportExporter:
    """Compact per-player CSV table."""

    def export_to_csv(self, report: MatchReport) -> str:
        """Export match report to CSV format."""
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(["Name", "Field Time (min)", "Goalie Time (min)", "Bench Time (min)", "Points"])

        for summary in report.players:
            points = summary.role_points
            writer.writerow([
                summary.name,
                f"{summary.time_on_field_seconds / 60:.1f}",
                f"{summary.time_as_goalie_seconds / 60:.1f}",
                f"{summary.time_as_sub_seconds / 60:.1f}",
                f"G{points.goalie_points:g}/D{points.defender_points:g}/A{points.attacker_points:g}",
            ])

        return output.getvalue()


class AnalyticsService:
    """Generate reports describing playing time and role distribution."""

    def __init__(self, session: MatchSession,
                 export_service: Optional[ExportServiceInterface] = None) -> None:
        self.session = session
        self.export_service = export_service or MatchReportExporter()

    def _stats_source(self) -> Mapping[str, PlayerStats]:
        """Latest closed period snapshot, or live stats before any period closed."""
        if self.session.game_log:
            return self.session.game_log[-1].player_stats
        return {pid: player.stats for pid, player in self.session.players.items()}

    def generate_match_report(self) -> MatchReport:
        """Build a :class:`MatchReport` from the game log."""
        source = self._stats_source()
        summaries: List[PlayerTimeSummary] = []

        for player_id, player in self.session.players.items():
            stats = source.get(player_id, player.stats)
            summaries.append(
                PlayerTimeSummary(
                    id=player_id,
                    name=player.name,
                    is_captain=player.is_captain,
                    started_match_as=stats.started_match_as.value if stats.started_match_as else None,
                    time_on_field_seconds=stats.time_on_field_seconds,
                    time_as_defender_seconds=stats.time_as_defender_seconds,
                    time_as_midfielder_seconds=stats.time_as_midfielder_seconds,
                    time_as_attacker_seconds=stats.time_as_attacker_seconds,
                    time_as_goalie_seconds=stats.time_as_goalie_seconds,
                    time_as_sub_seconds=stats.time_as_sub_seconds,
                    periods_as_goalie=stats.periods_as_goalie,
                    periods_as_defender=stats.periods_as_defender,
                    periods_as_midfielder=stats.periods_as_midfielder,
                    periods_as_attacker=stats.periods_as_attacker,
                    role_points=calculate_role_points(stats),
                )
            )

        summaries.sort(key=lambda item: (-item.time_on_field_seconds, item.name))
        totals = [summary.time_on_field_seconds for summary in summaries]

        return MatchReport(
            generated_ts=now_ts(),
            team_mode=self.session.team_mode.key,
            squad_size=len(summaries),
            periods_played=len(self.session.game_log),
            players=summaries,
            average_field_seconds=statistics.mean(totals) if totals else 0.0,
            median_field_seconds=statistics.median(totals) if totals else 0.0,
            min_field_seconds=min(totals) if totals else 0,
            max_field_seconds=max(totals) if totals else 0,
        )

    def report_to_dict(self, report: Optional[MatchReport] = None) -> Dict:
        return asdict(report or self.generate_match_report())

    def generate_report_csv(self, report: Optional[MatchReport] = None) -> str:
        """Return a CSV document describing the match report.

        Args:
            report: Optional pre-generated :class:`MatchReport` snapshot.

        Returns:
            CSV formatted string containing summary information followed by a
            table of player level metrics.

        Raises:
            ValueError: If there are no players to include in the report.
        """

        report = report or self.generate_match_report()
        if report.squad_size == 0:
            raise ValueError("Cannot export analytics without any players")

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        generated_dt = dt.datetime.fromtimestamp(report.generated_ts)
        writer.writerow([f"{APP_TITLE} Report"])
        writer.writerow(["Generated", generated_dt.isoformat(timespec="seconds")])
        writer.writerow(["Team Mode", report.team_mode])
        writer.writerow(["Squad Size", report.squad_size])
        writer.writerow(["Periods Played", report.periods_played])
        writer.writerow(["Average Field Seconds", round(report.average_field_seconds, 2)])
        writer.writerow(["Median Field Seconds", round(report.median_field_seconds, 2)])
        writer.writerow(["Minimum Field Seconds", report.min_field_seconds])
        writer.writerow(["Maximum Field Seconds", report.max_field_seconds])
        writer.writerow([])

        writer.writerow(
            [
                "Id",
                "Name",
                "Captain",
                "Started As",
                "Field Seconds",
                "Defender Seconds",
                "Midfielder Seconds",
                "Attacker Seconds",
                "Goalie Seconds",
                "Substitute Seconds",
                "Goalie Points",
                "Defender Points",
                "Attacker Points",
            ]
        )

        for summary in report.players:
            points = summary.role_points
            writer.writerow(
                [
                    summary.id,
                    summary.name,
                    "yes" if summary.is_captain else "no",
                    summary.started_match_as or "",
                    summary.time_on_field_seconds,
                    summary.time_as_defender_seconds,
                    summary.time_as_midfielder_seconds,
                    summary.time_as_attacker_seconds,
                    summary.time_as_goalie_seconds,
                    summary.time_as_sub_seconds,
                    points.goalie_points,
                    points.defender_points,
                    points.attacker_points,
                ]
            )

        csv_text = buffer.getvalue()
        buffer.close()
        return csv_text

    def export_match_report_csv(self) -> str:
        """Export the match report through the injected export service."""
        return self.export_service.export_to_csv(self.generate_match_report())
