"""
Persistence service for the Futsal Tracker application.

This module handles saving and loading the in-memory match store to/from
JSON files.
"""
import datetime
import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from ..utils import AUTOSAVE_DIR
from .match_locks import MatchLockRegistry
from .storage import InMemoryMatchStore

logger = logging.getLogger(__name__)


class PersistenceService:
    """
    Service for persisting the match store to JSON files.

    Saves capture a consistent snapshot of every table, so a live match can
    be resumed after loading.
    """

    @staticmethod
    def save_to_file(store: InMemoryMatchStore, file_path: str) -> None:
        """
        Save the store to a JSON file.

        Args:
            store: The store to save
            file_path: Path where to save the file

        Raises:
            OSError: If the file cannot be written
        """
        snapshot = store.snapshot()

        directory = os.path.dirname(file_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, indent=2, ensure_ascii=False)
        logger.info("Saved %d matches to %s", len(snapshot["matches"]), file_path)

    @staticmethod
    def restore_store(
        store: InMemoryMatchStore,
        data: Dict[str, Any],
        locks: Optional[MatchLockRegistry] = None,
    ) -> None:
        """
        Replace the store contents with a snapshot.

        When ``locks`` is given, every match known before or after the load is
        locked first, so no live command can straddle the swap.

        Raises:
            ValueError: If the snapshot structure is invalid
        """
        try:
            if locks is None:
                store.restore(data)
                return
            match_ids = {match.id for match in store.list_matches()}
            match_ids.update(int(item["id"]) for item in data.get("matches", []))
            with locks.hold_all(match_ids):
                store.restore(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid save file structure: {e}") from e

    @staticmethod
    def load_from_file(
        store: InMemoryMatchStore,
        file_path: str,
        locks: Optional[MatchLockRegistry] = None,
    ) -> None:
        """
        Replace the store contents with a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file contains invalid JSON
            ValueError: If JSON structure is invalid
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Save file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("Save file must contain a JSON object")

        PersistenceService.restore_store(store, data, locks)
        logger.info("Loaded store from %s", file_path)

    @staticmethod
    def auto_save(store: InMemoryMatchStore, auto_save_dir: str = AUTOSAVE_DIR) -> Optional[str]:
        """
        Save the store under a timestamped name.

        Returns:
            Path to saved file, or None if save failed
        """
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        file_path = os.path.join(auto_save_dir, f"futsal_autosave_{timestamp}.json")
        try:
            PersistenceService.save_to_file(store, file_path)
        except OSError as e:
            # Auto-save should not crash the application
            logger.warning("Auto-save to %s failed: %s", file_path, e)
            return None
        return file_path

    @staticmethod
    def get_recent_saves(save_dir: str = AUTOSAVE_DIR, limit: int = 10) -> List[Tuple[str, float]]:
        """
        Get list of recent save files.

        Returns:
            List of tuples (filename, modification_time) sorted by newest first
        """
        if not os.path.exists(save_dir):
            return []

        try:
            json_files = []
            for filename in os.listdir(save_dir):
                if filename.endswith('.json'):
                    file_path = os.path.join(save_dir, filename)
                    if os.path.isfile(file_path):
                        json_files.append((filename, os.path.getmtime(file_path)))

            json_files.sort(key=lambda x: x[1], reverse=True)
            return json_files[:limit]
        except OSError:
            return []
