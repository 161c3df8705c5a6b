"""
Unit tests for MatchService.

Covers the scheduled -> in_progress -> finished lifecycle, the clock, and
goal/card/foul/timeout logging.
"""
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from futsaltracker.models import EventType, MatchStatus
from futsaltracker.services import (
    IllegalTransition, InvalidFormatSettings, InvalidLineupSize, InvalidPlayer,
    MatchNotLive, NotFound
)
from tests.support import LiveMatchFixture


class TestCreateMatch(unittest.TestCase):
    """Match scheduling and format settings."""

    def setUp(self) -> None:
        self.fx = LiveMatchFixture()

    def test_new_match_is_scheduled_with_clean_state(self) -> None:
        match = self.fx.match
        self.assertEqual(match.status, MatchStatus.SCHEDULED)
        self.assertEqual((match.home_score, match.away_score), (0, 0))
        self.assertEqual(match.current_half, 1)
        self.assertEqual(match.current_time, 0)
        self.assertFalse(match.timer_running)
        self.assertEqual(match.active_players, frozenset())
        self.assertIsNone(match.started_at)

    def test_format_defaults_are_filled(self) -> None:
        match = self.fx.matches.create_match(
            self.fx.team.id, "Otro", "Pabellon", "Copa", "2026-11-02T18:00:00Z", "tournament"
        )
        settings = match.format_settings
        self.assertEqual(settings.half_duration, 20)
        self.assertEqual(settings.number_of_halves, 2)
        self.assertEqual(settings.players_on_field, 5)
        self.assertEqual(match.match_date, datetime(2026, 11, 2, 18, 0, tzinfo=timezone.utc))

    def test_rejects_non_positive_settings(self) -> None:
        for bad in ({"playersOnField": 0}, {"halfDuration": -5}, {"numberOfHalves": "two"},
                    {"playersOnField": True}):
            with self.subTest(settings=bad):
                with self.assertRaises(InvalidFormatSettings):
                    self.fx.matches.create_match(
                        self.fx.team.id, "X", "Y", "Z", "2026-11-02T18:00:00", "league", bad
                    )

    def test_rejects_unknown_format_and_team(self) -> None:
        with self.assertRaises(InvalidFormatSettings):
            self.fx.matches.create_match(self.fx.team.id, "X", "Y", "Z", "2026-11-02", "friendly")
        with self.assertRaises(NotFound):
            self.fx.matches.create_match(999, "X", "Y", "Z", "2026-11-02")

    def test_rejects_inactive_team(self) -> None:
        self.fx.roster.delete_team(self.fx.rival.id)
        with self.assertRaises(InvalidPlayer):
            self.fx.matches.create_match(self.fx.rival.id, "X", "Y", "Z", "2026-11-02")


class TestStartMatch(unittest.TestCase):
    """Kickoff preconditions and effects."""

    def setUp(self) -> None:
        self.fx = LiveMatchFixture()

    def test_start_with_five_starters(self) -> None:
        match = self.fx.start()

        self.assertEqual(match.status, MatchStatus.IN_PROGRESS)
        self.assertEqual(match.active_players, frozenset(self.fx.starters()))
        self.assertTrue(match.timer_running)
        self.assertEqual(match.current_half, 1)
        self.assertEqual(match.current_time, 0)
        self.assertIsNotNone(match.started_at)

        stats = self.fx.store.list_player_stats(match.id)
        self.assertEqual(len(stats), 5)
        self.assertTrue(all(s.is_starter and s.is_currently_on_field for s in stats))

    def test_start_with_four_starters_fails(self) -> None:
        with self.assertRaises(InvalidLineupSize):
            self.fx.start(count=4)
        match = self.fx.matches.get_match(self.fx.match.id)
        self.assertEqual(match.status, MatchStatus.SCHEDULED)
        self.assertEqual(self.fx.store.list_player_stats(match.id), [])

    def test_duplicate_starter_counts_as_wrong_size(self) -> None:
        starters = self.fx.starters(4) + [self.fx.player_ids[0]]
        with self.assertRaises(InvalidLineupSize):
            self.fx.matches.start_match(self.fx.match.id, starters)

    def test_foreign_or_inactive_starter_fails(self) -> None:
        foreign = self.fx.starters(4) + [self.fx.foreign_players[0].id]
        with self.assertRaises(InvalidPlayer):
            self.fx.matches.start_match(self.fx.match.id, foreign)

        self.fx.roster.delete_player(self.fx.player_ids[5])
        inactive = self.fx.starters(4) + [self.fx.player_ids[5]]
        with self.assertRaises(InvalidPlayer):
            self.fx.matches.start_match(self.fx.match.id, inactive)
        self.assertEqual(self.fx.store.list_player_stats(self.fx.match.id), [])

    def test_start_twice_is_illegal(self) -> None:
        self.fx.start()
        with self.assertRaises(IllegalTransition):
            self.fx.start()

    def test_unknown_match(self) -> None:
        with self.assertRaises(NotFound):
            self.fx.matches.start_match(404, self.fx.starters())


class TestClock(unittest.TestCase):
    """Timer toggling and clock advancement."""

    def setUp(self) -> None:
        self.fx = LiveMatchFixture()

    def test_toggle_requires_live_match(self) -> None:
        with self.assertRaises(IllegalTransition):
            self.fx.matches.toggle_timer(self.fx.match.id)

    def test_toggle_flips_and_explicit_state_is_noop(self) -> None:
        self.fx.start()
        match = self.fx.matches.toggle_timer(self.fx.match.id)
        self.assertFalse(match.timer_running)
        match = self.fx.matches.toggle_timer(self.fx.match.id, running=False)
        self.assertFalse(match.timer_running)
        match = self.fx.matches.toggle_timer(self.fx.match.id)
        self.assertTrue(match.timer_running)

    def test_advance_only_while_running(self) -> None:
        self.fx.start()
        match = self.fx.matches.advance_clock(self.fx.match.id, 30)
        self.assertEqual(match.current_time, 30)

        self.fx.pause()
        match = self.fx.matches.advance_clock(self.fx.match.id, 30)
        self.assertEqual(match.current_time, 30)

    def test_advance_before_kickoff_is_noop(self) -> None:
        match = self.fx.matches.advance_clock(self.fx.match.id, 10)
        self.assertEqual(match.current_time, 0)

    def test_negative_delta_is_rejected(self) -> None:
        self.fx.start()
        with self.assertRaises(ValueError):
            self.fx.matches.advance_clock(self.fx.match.id, -1)

    def test_time_on_field_accrues_for_players_on_field(self) -> None:
        self.fx.start()
        self.fx.matches.advance_clock(self.fx.match.id, 45)
        self.fx.lineups.substitute(self.fx.match.id, self.fx.player_ids[0], self.fx.player_ids[5])
        self.fx.matches.advance_clock(self.fx.match.id, 15)

        stats = {s.player_id: s for s in self.fx.store.list_player_stats(self.fx.match.id)}
        self.assertEqual(stats[self.fx.player_ids[0]].time_on_field, 45)
        self.assertEqual(stats[self.fx.player_ids[1]].time_on_field, 60)
        self.assertEqual(stats[self.fx.player_ids[5]].time_on_field, 15)


class TestScoring(unittest.TestCase):
    """Goals, cards, fouls and timeouts."""

    def setUp(self) -> None:
        self.fx = LiveMatchFixture()
        self.fx.start()
        self.match_id = self.fx.match.id
        self.scorer = self.fx.player_ids[3]

    def test_goal_increments_home_score_and_appends_event(self) -> None:
        self.fx.matches.record_goal(self.match_id, self.scorer)
        self.fx.matches.record_goal(self.match_id, self.scorer)
        self.fx.matches.advance_clock(self.match_id, 90)
        before = len(self.fx.event_log.events_for(self.match_id))

        match = self.fx.matches.record_goal(self.match_id, self.scorer, for_home_side=True)

        self.assertEqual(match.home_score, 3)
        self.assertEqual(match.away_score, 0)
        events = self.fx.event_log.events_for(self.match_id)
        self.assertEqual(len(events), before + 1)
        tail = events[-1]
        self.assertEqual(tail.event_type, EventType.GOAL)
        self.assertEqual(tail.player_id, self.scorer)
        self.assertEqual(tail.event_time, 90)
        self.assertEqual(tail.half, 1)
        self.assertEqual(tail.description, "Goal by #4 Player 4")
        self.assertEqual(self.fx.store.get_player_stat(self.match_id, self.scorer).goals, 3)

    def test_away_goal_credits_nobody(self) -> None:
        match = self.fx.matches.record_goal(self.match_id, for_home_side=False)
        self.assertEqual((match.home_score, match.away_score), (0, 1))
        self.assertTrue(all(s.goals == 0 for s in self.fx.store.list_player_stats(self.match_id)))
        self.assertEqual(self.fx.event_log.events_for(self.match_id)[-1].metadata, {"side": "away"})

    def test_home_goal_needs_a_team_scorer(self) -> None:
        with self.assertRaises(InvalidPlayer):
            self.fx.matches.record_goal(self.match_id, None)
        with self.assertRaises(InvalidPlayer):
            self.fx.matches.record_goal(self.match_id, self.fx.foreign_players[0].id)
        self.assertEqual(self.fx.matches.get_match(self.match_id).home_score, 0)
        self.assertEqual(self.fx.event_log.events_for(self.match_id), ())

    def test_goal_outside_play_is_rejected(self) -> None:
        self.fx.matches.end_match(self.match_id)
        with self.assertRaises(MatchNotLive):
            self.fx.matches.record_goal(self.match_id, self.scorer)

    def test_card_has_no_side_effects(self) -> None:
        before = self.fx.matches.get_match(self.match_id)
        event = self.fx.matches.record_card(self.match_id, self.scorer, "red")
        after = self.fx.matches.get_match(self.match_id)

        self.assertEqual(event.event_type, EventType.RED_CARD)
        self.assertEqual(event.metadata, {"color": "red"})
        self.assertEqual(after.active_players, before.active_players)
        self.assertEqual((after.home_score, after.away_score), (before.home_score, before.away_score))

    def test_card_rules(self) -> None:
        with self.assertRaises(ValueError):
            self.fx.matches.record_card(self.match_id, self.scorer, "green")
        with self.assertRaises(InvalidPlayer):
            self.fx.matches.record_card(self.match_id, self.fx.foreign_players[0].id, "yellow")

        fresh = LiveMatchFixture()
        with self.assertRaises(MatchNotLive):
            fresh.matches.record_card(fresh.match.id, fresh.player_ids[0], "yellow")

    def test_foul_counts_against_player(self) -> None:
        self.fx.matches.record_foul(self.match_id, self.scorer)
        event = self.fx.matches.record_foul(self.match_id, self.scorer)
        self.assertEqual(event.event_type, EventType.FOUL)
        self.assertEqual(self.fx.store.get_player_stat(self.match_id, self.scorer).fouls, 2)

    def test_timeout_pauses_the_clock(self) -> None:
        event = self.fx.matches.record_timeout(self.match_id)
        self.assertEqual(event.event_type, EventType.TIMEOUT)
        self.assertFalse(self.fx.matches.get_match(self.match_id).timer_running)


class TestEndMatch(unittest.TestCase):
    """Finishing a match."""

    def setUp(self) -> None:
        self.fx = LiveMatchFixture()

    def test_end_before_start_is_illegal(self) -> None:
        with self.assertRaises(IllegalTransition):
            self.fx.matches.end_match(self.fx.match.id)

    def test_end_twice_keeps_first_timestamp(self) -> None:
        self.fx.start()
        first_end = datetime(2026, 10, 1, 20, 0, tzinfo=timezone.utc)
        with patch("futsaltracker.services.match_service.utc_now", return_value=first_end):
            match = self.fx.matches.end_match(self.fx.match.id)
        self.assertEqual(match.status, MatchStatus.FINISHED)
        self.assertFalse(match.timer_running)
        self.assertEqual(match.ended_at, first_end)

        with self.assertRaises(IllegalTransition):
            self.fx.matches.end_match(self.fx.match.id)
        self.assertEqual(self.fx.matches.get_match(self.fx.match.id).ended_at, first_end)

    def test_no_transition_out_of_finished(self) -> None:
        self.fx.start()
        self.fx.matches.end_match(self.fx.match.id)
        with self.assertRaises(IllegalTransition):
            self.fx.matches.toggle_timer(self.fx.match.id)
        with self.assertRaises(IllegalTransition):
            self.fx.start()


if __name__ == "__main__":
    unittest.main()
