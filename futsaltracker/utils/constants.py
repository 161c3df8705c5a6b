"""
Constants for the Futsal Tracker application.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "Futsal Tracker"

# Match format defaults (minutes per half, halves, players on field)
LEAGUE_HALF_DURATION_MIN = 25
TOURNAMENT_HALF_DURATION_MIN = 20
DEFAULT_NUMBER_OF_HALVES = 2
DEFAULT_PLAYERS_ON_FIELD = 5

FORMAT_DEFAULTS = {
    "league": {
        "halfDuration": LEAGUE_HALF_DURATION_MIN,
        "numberOfHalves": DEFAULT_NUMBER_OF_HALVES,
        "playersOnField": DEFAULT_PLAYERS_ON_FIELD,
    },
    "tournament": {
        "halfDuration": TOURNAMENT_HALF_DURATION_MIN,
        "numberOfHalves": DEFAULT_NUMBER_OF_HALVES,
        "playersOnField": DEFAULT_PLAYERS_ON_FIELD,
    },
}

# Futsal positions
FUTSAL_POSITIONS = ["Portero", "Cierre", "Ala", "Pivot"]

MIN_JERSEY_NUMBER = 1
MAX_JERSEY_NUMBER = 99

# Live viewers
VIEWER_QUEUE_SIZE = 100
STREAM_KEEPALIVE_SECONDS = 15

# Web server
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7122

AUTOSAVE_DIR = "autosave"
