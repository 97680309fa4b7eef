from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from flask import Flask, current_app

logger = logging.getLogger(__name__)

EXTENSION_KEY = "background_tasks"


class BackgroundTasks:
    """Fire-and-forget dispatcher for side effects of a committed write.

    A task never raises into its caller: failures are logged and the
    session used by the task is rolled back. With ``TASKS_EAGER`` the task
    runs inline, which keeps tests deterministic.
    """

    def __init__(self, app: Flask | None = None) -> None:
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        app.config.setdefault("TASKS_EAGER", False)
        app.config.setdefault("TASK_WORKERS", 4)
        executor = None
        if not app.config["TASKS_EAGER"]:
            executor = ThreadPoolExecutor(
                max_workers=app.config["TASK_WORKERS"],
                thread_name_prefix="adhivakta-task",
            )
        app.extensions[EXTENSION_KEY] = executor

    def submit(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future | None:
        app = current_app._get_current_object()
        executor = app.extensions.get(EXTENSION_KEY)
        if app.config.get("TASKS_EAGER") or executor is None:
            self._run_inline(name, fn, args, kwargs)
            return None
        return executor.submit(self._run_in_context, app, name, fn, args, kwargs)

    def _run_inline(self, name: str, fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        try:
            fn(*args, **kwargs)
        except Exception:
            _session_rollback()
            logger.exception("Task %s failed (non-blocking)", name)

    def _run_in_context(self, app: Flask, name: str, fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        with app.app_context():
            try:
                fn(*args, **kwargs)
            except Exception:
                _session_rollback()
                logger.exception("Task %s failed (non-blocking)", name)
            finally:
                sqlalchemy = current_app.extensions.get("sqlalchemy")
                if sqlalchemy is not None:
                    sqlalchemy.session.remove()


def _session_rollback() -> None:
    sqlalchemy = current_app.extensions.get("sqlalchemy")
    if sqlalchemy is not None:
        sqlalchemy.session.rollback()
