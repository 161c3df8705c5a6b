"""
Unit tests for LineupService.

Single substitutions, the halftime batch and half progression.
"""
import unittest

from futsaltracker.models import EventType
from futsaltracker.services import (
    ForeignPlayer, IllegalTransition, InvalidLineupSize, NoMoreHalves,
    PlayerAlreadyOnField, PlayerNotOnField, UnbalancedSubstitution
)
from tests.support import LiveMatchFixture


class TestSubstitute(unittest.TestCase):
    """Live one-for-one swaps."""

    def setUp(self) -> None:
        self.fx = LiveMatchFixture()
        self.fx.start()
        self.match_id = self.fx.match.id
        self.on = self.fx.starters()
        self.off = self.fx.bench()

    def test_swap_keeps_lineup_size(self) -> None:
        match = self.fx.lineups.substitute(self.match_id, self.on[0], self.off[0])

        self.assertEqual(len(match.active_players), 5)
        self.assertNotIn(self.on[0], match.active_players)
        self.assertIn(self.off[0], match.active_players)

        stats = {s.player_id: s for s in self.fx.store.list_player_stats(self.match_id)}
        self.assertFalse(stats[self.on[0]].is_currently_on_field)
        self.assertTrue(stats[self.on[0]].is_starter)
        self.assertTrue(stats[self.off[0]].is_currently_on_field)
        self.assertFalse(stats[self.off[0]].is_starter)

        event = self.fx.event_log.events_for(self.match_id)[-1]
        self.assertEqual(event.event_type, EventType.SUBSTITUTION)
        self.assertEqual(event.metadata, {"playerOut": self.on[0], "playerIn": self.off[0]})
        self.assertEqual(event.description, "Substitution: #1 Player 1 out, #6 Player 6 in")

    def test_swap_back_in_reuses_stat_row(self) -> None:
        self.fx.lineups.substitute(self.match_id, self.on[0], self.off[0])
        self.fx.lineups.substitute(self.match_id, self.off[0], self.on[0])

        stats = self.fx.store.list_player_stats(self.match_id)
        self.assertEqual(len(stats), 6)
        row = self.fx.store.get_player_stat(self.match_id, self.on[0])
        self.assertTrue(row.is_starter)
        self.assertTrue(row.is_currently_on_field)

    def test_player_out_must_be_on_field(self) -> None:
        with self.assertRaises(PlayerNotOnField):
            self.fx.lineups.substitute(self.match_id, self.off[0], self.off[1])

    def test_player_in_must_be_on_bench(self) -> None:
        with self.assertRaises(PlayerAlreadyOnField):
            self.fx.lineups.substitute(self.match_id, self.on[0], self.on[1])

    def test_player_in_must_belong_to_team(self) -> None:
        with self.assertRaises(ForeignPlayer):
            self.fx.lineups.substitute(self.match_id, self.on[0], self.fx.foreign_players[0].id)

        self.fx.roster.delete_player(self.off[0])
        with self.assertRaises(ForeignPlayer):
            self.fx.lineups.substitute(self.match_id, self.on[0], self.off[0])

    def test_failed_swap_changes_nothing(self) -> None:
        before = self.fx.matches.get_match(self.match_id)
        with self.assertRaises(PlayerNotOnField):
            self.fx.lineups.substitute(self.match_id, 999, self.off[0])
        self.assertEqual(self.fx.matches.get_match(self.match_id), before)
        self.assertEqual(self.fx.event_log.events_for(self.match_id), ())

    def test_substitution_outside_play(self) -> None:
        fresh = LiveMatchFixture()
        with self.assertRaises(IllegalTransition):
            fresh.lineups.substitute(fresh.match.id, fresh.player_ids[0], fresh.player_ids[5])

    def test_bench_lists_players_off_the_field(self) -> None:
        self.assertEqual(sorted(self.fx.lineups.bench(self.match_id)), sorted(self.off))


class TestHalftimeChanges(unittest.TestCase):
    """Batched changes while the clock is stopped."""

    def setUp(self) -> None:
        self.fx = LiveMatchFixture()
        self.fx.start()
        self.fx.pause()
        self.match_id = self.fx.match.id
        self.on = self.fx.starters()
        self.off = self.fx.bench()

    def test_batch_is_applied_in_one_go(self) -> None:
        match = self.fx.lineups.apply_halftime_changes(self.match_id, self.on[:2], self.off[:2])

        expected = (frozenset(self.on) - set(self.on[:2])) | set(self.off[:2])
        self.assertEqual(match.active_players, expected)
        events = self.fx.event_log.events_for(self.match_id)
        self.assertEqual(len(events), 2)
        self.assertTrue(all(e.metadata.get("halftime") for e in events))

    def test_unbalanced_batch_changes_nothing(self) -> None:
        before = self.fx.matches.get_match(self.match_id)
        with self.assertRaises(UnbalancedSubstitution):
            self.fx.lineups.apply_halftime_changes(self.match_id, self.on[:2], self.off[:1])

        after = self.fx.matches.get_match(self.match_id)
        self.assertEqual(after.active_players, before.active_players)
        self.assertEqual(self.fx.event_log.events_for(self.match_id), ())

    def test_one_bad_swap_rejects_the_batch(self) -> None:
        with self.assertRaises(ForeignPlayer):
            self.fx.lineups.apply_halftime_changes(
                self.match_id,
                self.on[:2],
                [self.off[0], self.fx.foreign_players[0].id],
            )
        match = self.fx.matches.get_match(self.match_id)
        self.assertEqual(match.active_players, frozenset(self.on))
        self.assertEqual(self.fx.event_log.events_for(self.match_id), ())

    def test_swaps_are_checked_against_lineup_before_batch(self) -> None:
        # off[0] comes on and immediately goes off again in the same batch
        with self.assertRaises(PlayerNotOnField):
            self.fx.lineups.apply_halftime_changes(
                self.match_id, [self.on[0], self.off[0]], [self.off[0], self.off[1]]
            )

    def test_duplicates_are_rejected(self) -> None:
        with self.assertRaises(InvalidLineupSize):
            self.fx.lineups.apply_halftime_changes(
                self.match_id, [self.on[0], self.on[0]], self.off[:2]
            )

    def test_requires_stopped_clock(self) -> None:
        self.fx.matches.toggle_timer(self.match_id, running=True)
        with self.assertRaises(IllegalTransition):
            self.fx.lineups.apply_halftime_changes(self.match_id, self.on[:1], self.off[:1])

    def test_empty_batch_is_noop(self) -> None:
        match = self.fx.lineups.apply_halftime_changes(self.match_id, [], [])
        self.assertEqual(match.active_players, frozenset(self.on))
        self.assertEqual(self.fx.event_log.events_for(self.match_id), ())


class TestNextHalf(unittest.TestCase):
    """Half progression."""

    def test_next_half_resets_clock_and_runs(self) -> None:
        fx = LiveMatchFixture()
        fx.start()
        fx.matches.advance_clock(fx.match.id, 1500)
        fx.pause()

        match = fx.lineups.start_next_half(fx.match.id)

        self.assertEqual(match.current_half, 2)
        self.assertEqual(match.current_time, 0)
        self.assertTrue(match.timer_running)
        self.assertEqual(match.active_players, frozenset(fx.starters()))

    def test_no_half_beyond_configured_count(self) -> None:
        fx = LiveMatchFixture()
        fx.start()
        fx.lineups.start_next_half(fx.match.id)

        with self.assertRaises(NoMoreHalves):
            fx.lineups.start_next_half(fx.match.id)
        self.assertEqual(fx.matches.get_match(fx.match.id).current_half, 2)

    def test_single_half_match(self) -> None:
        fx = LiveMatchFixture(number_of_halves=1)
        fx.start()
        with self.assertRaises(NoMoreHalves):
            fx.lineups.start_next_half(fx.match.id)

    def test_next_half_before_kickoff(self) -> None:
        fx = LiveMatchFixture()
        with self.assertRaises(IllegalTransition):
            fx.lineups.start_next_half(fx.match.id)

    def test_smaller_format_lineup(self) -> None:
        fx = LiveMatchFixture(players_on_field=3)
        match = fx.start(count=3)
        self.assertEqual(len(match.active_players), 3)
        match = fx.lineups.substitute(match.id, fx.player_ids[0], fx.player_ids[4])
        self.assertEqual(len(match.active_players), 3)


if __name__ == "__main__":
    unittest.main()
