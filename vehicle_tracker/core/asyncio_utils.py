"""Asyncio helpers for background tasks that must not lose exceptions."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional

from .logging_utils import LoggerLike, ensure_structured_logger


def _task_label(task: asyncio.Task[Any], context: Optional[str]) -> str:
    if context:
        return context
    return task.get_name() or "background task"


def add_task_exception_logger(
    task: asyncio.Task[Any],
    *,
    logger: LoggerLike = None,
    context: Optional[str] = None,
) -> asyncio.Task[Any]:
    """Retrieve and log the exception of ``task`` once it finishes.

    Without this, fire-and-forget failures surface as "Task exception was
    never retrieved" warnings long after the fact.
    """
    task_logger = ensure_structured_logger(logger, fallback_name="asyncio")

    def _done(done_task: asyncio.Task[Any]) -> None:
        if done_task.cancelled():
            return
        exc = done_task.exception()
        if exc is not None:
            task_logger.error(
                "Unhandled exception in %s: %s",
                _task_label(done_task, context),
                exc,
                exc_info=exc,
            )

    task.add_done_callback(_done)
    return task


def create_logged_task(
    coro: Awaitable[Any],
    *,
    logger: LoggerLike = None,
    context: Optional[str] = None,
    pending: Optional[set[asyncio.Task[Any]]] = None,
) -> asyncio.Task[Any]:
    """Create a task on the running loop that won't lose exceptions."""
    loop = asyncio.get_running_loop()
    task = loop.create_task(coro, name=context)
    add_task_exception_logger(task, logger=logger, context=context)

    if pending is not None:
        pending.add(task)
        task.add_done_callback(pending.discard)

    return task


async def cancel_and_wait(task: Optional[asyncio.Task[Any]], *, timeout: float = 2.0) -> None:
    """Cancel ``task`` and wait (bounded) for it to unwind."""
    if task is None or task.done():
        return
    task.cancel()
    # asyncio.wait neither re-raises the task's exception nor swallows our own cancellation
    await asyncio.wait({task}, timeout=timeout)


__all__ = ["add_task_exception_logger", "create_logged_task", "cancel_and_wait"]
