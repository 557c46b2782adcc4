"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

from rehearsal.config.settings import get_settings
from rehearsal.core.notifications import LoggingNotifier, Notifier, WebhookNotifier
from rehearsal.core.practice_scheduler import PracticeScheduler
from rehearsal.core.question_bank import StaticQuestionBank
from rehearsal.core.session_engine import SessionEngine
from rehearsal.core.storage import InMemoryStorage, StorageBackend


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_storage: StorageBackend | None = None
_engine: SessionEngine | None = None
_scheduler: PracticeScheduler | None = None
_notifier: Notifier | None = None


def get_storage() -> StorageBackend:
    """Get the storage backend singleton."""
    global _storage

    if _storage is None:
        _storage = InMemoryStorage()

    return _storage


def get_notifier() -> Notifier:
    """
    Get the notifier singleton.

    Posts to the configured webhook, otherwise writes to the log.
    """
    global _notifier

    if _notifier is None:
        settings = get_settings()
        if settings.notification_webhook_url:
            _notifier = WebhookNotifier(
                settings.notification_webhook_url,
                token=settings.notification_webhook_token,
                timeout=settings.notification_timeout,
            )
        else:
            _notifier = LoggingNotifier()

    return _notifier


def get_scheduler() -> PracticeScheduler:
    """Get the practice scheduler singleton."""
    global _scheduler

    if _scheduler is None:
        _scheduler = PracticeScheduler(
            storage=get_storage(),
            notifier=get_notifier(),
            settings=get_settings(),
        )

    return _scheduler


def get_engine() -> SessionEngine:
    """
    Get the session engine singleton.

    Lazily initializes the engine and subscribes the scheduler to its
    events so completed sessions count toward streaks.
    """
    global _engine

    if _engine is None:
        scheduler = get_scheduler()
        _engine = SessionEngine(
            storage=get_storage(),
            question_source=StaticQuestionBank(),
            settings=get_settings(),
        )
        _engine.on_session_completed(scheduler.handle_session_completed)
        _engine.on_event(scheduler.handle_session_started)

    return _engine


async def cleanup():
    """Cleanup resources on shutdown."""
    global _storage, _engine, _scheduler, _notifier

    if _engine:
        _engine.shutdown()
        _engine = None

    if _scheduler:
        await _scheduler.shutdown()
        _scheduler = None

    if isinstance(_notifier, WebhookNotifier):
        await _notifier.close()
    _notifier = None

    _storage = None
