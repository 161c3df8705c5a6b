"""
Service Factory for dependency injection.

This module provides a factory for creating properly configured service
instances that share one store, one lock registry and one broadcaster.
"""
from typing import Optional

from .broadcaster import LiveBroadcaster
from .event_log import EventLog
from .lineup_service import LineupService
from .match_locks import MatchLockRegistry
from .match_service import MatchService
from .persistence_service import PersistenceService
from .report_service import MatchReportExporter, MatchReportService
from .roster_service import RosterService
from .storage import InMemoryMatchStore, MatchStore


class ServiceFactory:
    """
    Factory for creating service instances with proper dependency injection.

    Shared collaborators are created lazily and reused, so every service made
    by one factory sees the same matches and the same viewers.
    """

    def __init__(self, store: Optional[MatchStore] = None):
        """Initialize factory, optionally around an existing store."""
        self._store: Optional[MatchStore] = store
        self._locks: Optional[MatchLockRegistry] = None
        self._broadcaster: Optional[LiveBroadcaster] = None
        self._event_log: Optional[EventLog] = None
        self._export_service: Optional[MatchReportExporter] = None

    def create_match_service(self) -> MatchService:
        return MatchService(
            self._get_store(), self._get_event_log(), self._get_broadcaster(), self._get_locks()
        )

    def create_lineup_service(self) -> LineupService:
        return LineupService(
            self._get_store(), self._get_event_log(), self._get_broadcaster(), self._get_locks()
        )

    def create_roster_service(self) -> RosterService:
        return RosterService(self._get_store())

    def create_report_service(self) -> MatchReportService:
        return MatchReportService(self._get_store(), export_service=self._get_export_service())

    def create_complete_service_suite(self) -> dict:
        """
        Create a complete suite of services with proper dependencies.

        Returns:
            Dictionary containing all configured services
        """
        return {
            'store': self._get_store(),
            'locks': self._get_locks(),
            'broadcaster': self._get_broadcaster(),
            'events': self._get_event_log(),
            'matches': self.create_match_service(),
            'lineups': self.create_lineup_service(),
            'roster': self.create_roster_service(),
            'reports': self.create_report_service(),
            'persistence': PersistenceService(),
        }

    def _get_store(self) -> MatchStore:
        """Get singleton store."""
        if self._store is None:
            self._store = InMemoryMatchStore()
        return self._store

    def _get_locks(self) -> MatchLockRegistry:
        if self._locks is None:
            self._locks = MatchLockRegistry()
        return self._locks

    def _get_broadcaster(self) -> LiveBroadcaster:
        if self._broadcaster is None:
            self._broadcaster = LiveBroadcaster()
        return self._broadcaster

    def _get_event_log(self) -> EventLog:
        if self._event_log is None:
            self._event_log = EventLog(self._get_store(), self._get_broadcaster())
        return self._event_log

    def _get_export_service(self) -> MatchReportExporter:
        if self._export_service is None:
            self._export_service = MatchReportExporter()
        return self._export_service

    def configure_custom_export_service(self, exporter: MatchReportExporter) -> None:
        """Swap the report exporter used by report services created afterwards."""
        self._export_service = exporter
