"""
Observable cache of the dispatcher board's mission list.

One MissionStore is created per Flask application (see server.create_app) and
kept in app.extensions['mission_store']. Mission writes call invalidate();
the next get() refetches and every subscriber is told about the new list.
"""
import logging
from threading import RLock
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class MissionStore:

    def __init__(self, fetcher: Callable[[], list]):
        self._fetcher = fetcher
        self._missions: Optional[list] = None
        self._listeners: List[Callable[[list], None]] = []
        self._lock = RLock()

    @property
    def is_loaded(self) -> bool:
        return self._missions is not None

    def subscribe(self, listener: Callable[[list], None]) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again."""
        with self._lock:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Callable[[list], None]) -> bool:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
                return True
        return False

    def get(self) -> list:
        with self._lock:
            if self._missions is None:
                return self.refresh()
            return self._missions

    def refresh(self) -> list:
        with self._lock:
            missions = self._fetcher()
            self._missions = missions
            listeners = list(self._listeners)
        logger.debug(f"Mission store refreshed with {len(missions)} missions, notifying {len(listeners)} listeners")
        for listener in listeners:
            try:
                listener(missions)
            except Exception as e:
                logger.error(f"Mission store listener failed: {e}", exc_info=True)
        return missions

    def invalidate(self, refetch: bool = False) -> None:
        """Drop the cached list; with refetch=True reload (and notify) immediately."""
        with self._lock:
            self._missions = None
        if refetch:
            self.refresh()


def get_mission_store(app=None) -> Optional[MissionStore]:
    """The store of `app` (or the current app), if one was set up."""
    if app is None:
        from flask import current_app, has_app_context
        if not has_app_context():
            return None
        app = current_app
    return app.extensions.get('mission_store')
