"""
Models package for the Futsal Tracker.

This package contains the core data models used throughout the application.
"""
from .team import Team, Player, player_label
from .match import Match, MatchStatus, MatchFormat, FormatSettings
from .match_event import MatchEvent, EventType, CardColor
from .player_stat import PlayerStat
from .match_report import MatchReport, PlayerMatchSummary

__all__ = [
    "Team", "Player", "player_label", "Match", "MatchStatus", "MatchFormat",
    "FormatSettings", "MatchEvent", "EventType", "CardColor", "PlayerStat",
    "MatchReport", "PlayerMatchSummary"
]
