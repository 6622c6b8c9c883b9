"""
Structure change notification.

Replaces a process-wide "structure changed" event bus with explicit
subscriptions and a per-job invalidation token that recompute paths read.
"""

from collections.abc import Callable

from ...core.observability import get_logger, log_error_with_context
from ...domain.shared.base import DomainEvent

logger = get_logger(__name__)

StructureListener = Callable[[DomainEvent], None]


class StructureChangeNotifier:
    """
    Per-job invalidation tokens plus subscriber callbacks.

    ``notify`` bumps the job's token before calling listeners, so a listener
    that recomputes sees the new token. A failing listener is logged and the
    remaining listeners still run.
    """

    def __init__(self) -> None:
        self._tokens: dict[tuple[str, str], int] = {}
        self._listeners: list[StructureListener] = []
        self._history: list[DomainEvent] = []
        self._max_history_size = 200

    def token(self, studio_id: str, job_id: str) -> int:
        return self._tokens.get((studio_id, job_id), 0)

    def subscribe(self, listener: StructureListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: StructureListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self, event: DomainEvent) -> int:
        key = (event.studio_id, event.job_id)
        self._tokens[key] = self._tokens.get(key, 0) + 1
        self._history.append(event)
        if len(self._history) > self._max_history_size:
            self._history.pop(0)

        logger.info(
            "Structure changed",
            event_type=type(event).__name__,
            studio_id=event.studio_id,
            job_id=event.job_id,
            token=self._tokens[key],
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as error:
                log_error_with_context(
                    error,
                    "structure_listener",
                    {"event_type": type(event).__name__, "job_id": event.job_id},
                )
        return self._tokens[key]

    def history(self, job_id: str | None = None) -> list[DomainEvent]:
        if job_id is None:
            return list(self._history)
        return [event for event in self._history if event.job_id == job_id]
