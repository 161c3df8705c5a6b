"""Shared fixtures for the live-match tests."""
from datetime import datetime, timezone

from futsaltracker.services import ServiceFactory

POSITIONS = ["Portero", "Cierre", "Ala", "Ala", "Pivot", "Cierre", "Ala", "Pivot"]


class LiveMatchFixture:
    """
    A factory-built service suite with one team of eight players, a foreign
    team of two players and one scheduled league match (5 on field, 2 halves).
    """

    def __init__(self, players_on_field: int = 5, number_of_halves: int = 2):
        self.factory = ServiceFactory()
        services = self.factory.create_complete_service_suite()
        self.store = services['store']
        self.broadcaster = services['broadcaster']
        self.event_log = services['events']
        self.matches = services['matches']
        self.lineups = services['lineups']
        self.roster = services['roster']
        self.reports = services['reports']
        self.locks = services['locks']

        self.team = self.roster.create_team("Los Halcones")
        self.players = [
            self.roster.create_player(self.team.id, f"Player {n}", n, POSITIONS[n - 1])
            for n in range(1, 9)
        ]
        self.rival = self.roster.create_team("Rivales FC")
        self.foreign_players = [
            self.roster.create_player(self.rival.id, f"Rival {n}", n, "Ala") for n in range(1, 3)
        ]
        self.match = self.matches.create_match(
            self.team.id,
            "Rivales FC",
            "Polideportivo Norte",
            "Liga Local",
            datetime(2026, 10, 1, 19, 0, tzinfo=timezone.utc),
            "league",
            {"playersOnField": players_on_field, "numberOfHalves": number_of_halves},
        )

    @property
    def player_ids(self):
        return [p.id for p in self.players]

    def starters(self, count: int = 5):
        return self.player_ids[:count]

    def bench(self, count: int = 5):
        return self.player_ids[count:]

    def start(self, count: int = 5):
        return self.matches.start_match(self.match.id, self.starters(count))

    def pause(self):
        return self.matches.toggle_timer(self.match.id, running=False)
