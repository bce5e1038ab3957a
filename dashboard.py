"""
Dashboard collaborator.
Reads snapshots from the store for display and recomputes a fresh snapshot on demand through a
registered refresh callback.
"""
from typing import Callable, Optional, Dict, Any
import logging
from scoring.models import Snapshot
from scoring.utils import ScoringConfig
from storage.store import MetricsStore
from pipeline import build_report, check_alerts
from report.renderer import render

logger = logging.getLogger(__name__)


class Dashboard:
    def __init__(self, store: MetricsStore, config: Optional[ScoringConfig] = None):
        self.store = store
        self.config = config or ScoringConfig()
        self._refresh_callback: Optional[Callable[[], Snapshot]] = None

    def register_refresh(self, callback: Callable[[], Snapshot]) -> None:
        """Register the callable that recomputes and stores a fresh snapshot."""
        self._refresh_callback = callback

    def refresh(self, history: int = 10) -> Dict[str, Any]:
        """Invoke the refresh callback (if any) and return the updated view."""
        if self._refresh_callback is None:
            logger.info('No refresh callback registered; showing stored metrics')
        else:
            self._refresh_callback()
        return self.view(history)

    def view(self, history: int = 10) -> Dict[str, Any]:
        latest = self.store.get_latest_metrics()
        return {
            'latest': latest.to_dict(),
            'history': [s.to_dict() for s in self.store.get_metrics_history(history, since_days=self.config.history_days)],
            'summary': build_report(latest)['summary'],
            'alerts': check_alerts(latest, self.config),
        }

    def render(self, fmt: str = 'html', history: int = 10) -> str:
        latest = self.store.get_latest_metrics()
        return render(
            latest,
            fmt=fmt,
            summary=build_report(latest)['summary'],
            history=self.store.get_metrics_history(history, since_days=self.config.history_days),
        )
