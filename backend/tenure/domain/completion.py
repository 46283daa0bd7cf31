"""Edge-triggered "all assessments complete" notification."""

from collections.abc import Callable

import structlog

from tenure.schemas.discover import CompletionFlags

logger = structlog.get_logger(__name__)

AllCompleteListener = Callable[[CompletionFlags], None]


class CompletionTracker:
    """Tracks completion flags and fires once per false -> true transition of AND(flags).

    Flags observed before prime() only establish the baseline, so restoring
    already-complete sessions at load time never fires the notification.
    """

    def __init__(self):
        self._flags = CompletionFlags()
        self._primed = False
        self._listeners: list[AllCompleteListener] = []
        self.notifications = 0

    @property
    def flags(self) -> CompletionFlags:
        return self._flags

    @property
    def all_complete(self) -> bool:
        return self._flags.all_complete

    def on_all_complete(self, listener: AllCompleteListener) -> None:
        self._listeners.append(listener)

    def prime(self, flags: CompletionFlags) -> None:
        """Record the load-time baseline without notifying."""
        self._flags = flags
        self._primed = True

    def update(self, flags: CompletionFlags) -> bool:
        """Observe new flags.

        Returns:
            True if this update fired the all-complete notification
        """
        was_complete = self._flags.all_complete
        self._flags = flags

        if not self._primed:
            return False

        if flags.all_complete and not was_complete:
            self._fire(flags)
            return True
        return False

    def _fire(self, flags: CompletionFlags) -> None:
        self.notifications += 1
        logger.info("all_assessments_complete", notifications=self.notifications)
        for listener in list(self._listeners):
            try:
                listener(flags)
            except Exception as e:
                logger.warning(
                    "completion_listener_failed", error=str(e), error_type=type(e).__name__
                )
