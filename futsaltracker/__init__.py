"""
Futsal Tracker

Tracks amateur futsal teams, rosters and matches, and runs a live in-match
console: clock control, goal, card and substitution logging, halftime lineup
changes, and real-time updates pushed to every connected viewer.
"""
from .models import Team, Player, Match, MatchEvent, PlayerStat
from .services import (
    ServiceFactory, MatchService, LineupService, EventLog, LiveBroadcaster,
    InMemoryMatchStore
)
from .ui import create_app, run_web_app
from .utils import fmt_mmss, APP_TITLE

__version__ = "1.0.0"

__all__ = [
    "Team", "Player", "Match", "MatchEvent", "PlayerStat", "ServiceFactory",
    "MatchService", "LineupService", "EventLog", "LiveBroadcaster",
    "InMemoryMatchStore", "create_app", "run_web_app", "fmt_mmss",
    "APP_TITLE"
]
