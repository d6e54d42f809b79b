"""arq worker settings module.

Import path for arq CLI: arq wordflow.workers.settings.WorkerSettings
"""

from __future__ import annotations

from wordflow.workers.outbox_worker import WorkerSettings

__all__ = ["WorkerSettings"]
