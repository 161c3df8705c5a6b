#!/usr/bin/env python3
"""
Main entry point for the Futsal Tracker web application.

This script launches the Flask-based web server. ``FUTSAL_HOST``,
``FUTSAL_PORT`` and ``FUTSAL_LOG_LEVEL`` override the defaults.
"""
import logging
import os

from futsaltracker.ui.web_app import run_web_app
from futsaltracker.utils import DEFAULT_HOST, DEFAULT_PORT

if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("FUTSAL_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Serve the client page from the project root when one is present
    project_root = os.path.dirname(os.path.abspath(__file__))
    run_web_app(
        host=os.environ.get("FUTSAL_HOST", DEFAULT_HOST),
        port=int(os.environ.get("FUTSAL_PORT", DEFAULT_PORT)),
        static_folder=project_root,
    )
