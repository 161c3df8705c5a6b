"""Match report helpers for the Futsal Tracker."""

from __future__ import annotations

import csv
import io
from collections import Counter
from typing import List, Optional, Protocol

from ..models import EventType, MatchReport, PlayerMatchSummary
from ..utils import fmt_mmss
from .errors import NotFound
from .storage import MatchStore


class ExportServiceInterface(Protocol):
    """Interface for data export."""

    def export_to_csv(self, report: MatchReport) -> str:
        """Export report to CSV format."""
        ...


class MatchReportExporter:
    """Writes a :class:`MatchReport` as a CSV document."""

    def export_to_csv(self, report: MatchReport) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        writer.writerow(["Futsal Tracker Match Report"])
        writer.writerow(["Match", report.match_id])
        writer.writerow(["Opponent", report.opponent])
        writer.writerow(["Status", report.status])
        writer.writerow(["Score", f"{report.home_score}-{report.away_score}"])
        writer.writerow(["Half", f"{report.current_half}/{report.number_of_halves}"])
        writer.writerow(["Clock", fmt_mmss(report.current_time)])
        writer.writerow(["Substitutions", report.substitutions])
        writer.writerow(["Timeouts", report.timeouts])
        writer.writerow([])

        writer.writerow(
            [
                "Player",
                "Number",
                "Position",
                "Starter",
                "On Field",
                "Time On Field",
                "Goals",
                "Fouls",
                "Yellow Cards",
                "Red Cards",
                "Field Share (%)",
            ]
        )
        for summary in report.players:
            writer.writerow(
                [
                    summary.name,
                    summary.jersey_number if summary.jersey_number is not None else "",
                    summary.position or "",
                    "yes" if summary.is_starter else "no",
                    "yes" if summary.on_field else "no",
                    fmt_mmss(summary.time_on_field),
                    summary.goals,
                    summary.fouls,
                    summary.yellow_cards,
                    summary.red_cards,
                    round(summary.field_share * 100, 1),
                ]
            )

        csv_text = buffer.getvalue()
        buffer.close()
        return csv_text


class MatchReportService:
    """
    Build reports from the stored match, its stats and its event log.

    Every player with a PlayerStat row is listed: starters plus anyone who
    came on or was credited with a goal or foul.
    """

    def __init__(self, store: MatchStore, export_service: Optional[ExportServiceInterface] = None):
        self.store = store
        self.export_service = export_service or MatchReportExporter()

    def generate_match_report(self, match_id: int) -> MatchReport:
        match = self.store.get_match(match_id)
        if match is None:
            raise NotFound(f"Match {match_id} not found", match_id)

        stats = self.store.list_player_stats(match_id)
        events = self.store.list_events(match_id)
        counts = Counter(event.event_type.value for event in events)
        cards = Counter(
            (event.player_id, event.event_type) for event in events if event.event_type.is_card
        )

        # Every on-field player accrues clock time, so the total divided by the
        # lineup size is the time played so far.
        played = sum(stat.time_on_field for stat in stats) / match.format_settings.players_on_field

        summaries: List[PlayerMatchSummary] = []
        for stat in stats:
            player = self.store.get_player(stat.player_id)
            summaries.append(
                PlayerMatchSummary(
                    player_id=stat.player_id,
                    name=player.name if player else f"Player {stat.player_id}",
                    jersey_number=player.jersey_number if player else None,
                    position=player.position if player else None,
                    is_starter=stat.is_starter,
                    on_field=stat.is_currently_on_field,
                    time_on_field=stat.time_on_field,
                    goals=stat.goals,
                    fouls=stat.fouls,
                    yellow_cards=cards.get((stat.player_id, EventType.YELLOW_CARD), 0),
                    red_cards=cards.get((stat.player_id, EventType.RED_CARD), 0),
                    field_share=stat.time_on_field / played if played > 0 else 0.0,
                )
            )

        summaries.sort(key=lambda item: (-item.time_on_field, item.jersey_number or 0))
        times = [summary.time_on_field for summary in summaries]

        return MatchReport(
            match_id=match.id,
            opponent=match.opponent,
            status=match.status.value,
            home_score=match.home_score,
            away_score=match.away_score,
            current_half=match.current_half,
            number_of_halves=match.format_settings.number_of_halves,
            current_time=match.current_time,
            substitutions=counts.get(EventType.SUBSTITUTION.value, 0),
            timeouts=counts.get(EventType.TIMEOUT.value, 0),
            players=summaries,
            event_counts=dict(counts),
            average_time_on_field=sum(times) / len(times) if times else 0.0,
        )

    def export_match_report_csv(self, match_id: int) -> str:
        report = self.generate_match_report(match_id)
        return self.export_service.export_to_csv(report)
