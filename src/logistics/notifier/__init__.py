"""Notifier adapter registry — follow-up scheduler and transactional mailer.

Uses fake adapters by default. NOTIFIER_ADAPTER selects the implementation.
"""

import os

_scheduler_instance = None
_mailer_instance = None


def _adapter_name() -> str:
    adapter = os.environ.get("NOTIFIER_ADAPTER", "fake")
    if adapter != "fake":
        raise ValueError(f"Unknown notifier adapter: {adapter}")
    return adapter


def get_scheduler():
    """Return the configured follow-up scheduler (singleton)."""
    global _scheduler_instance
    if _scheduler_instance is None:
        _adapter_name()
        from logistics.notifier.fake_scheduler import FakeFollowUpScheduler

        _scheduler_instance = FakeFollowUpScheduler()
    return _scheduler_instance


def get_mailer():
    """Return the configured transactional mailer (singleton)."""
    global _mailer_instance
    if _mailer_instance is None:
        _adapter_name()
        from logistics.notifier.fake_mailer import FakeMailer

        _mailer_instance = FakeMailer()
    return _mailer_instance


def reset_notifiers():
    """Reset the notifier singletons (useful for testing)."""
    global _scheduler_instance, _mailer_instance
    _scheduler_instance = None
    _mailer_instance = None
