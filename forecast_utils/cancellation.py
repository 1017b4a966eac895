import threading
import time

from common.errors import PipelineCancelledError, PipelineTimeoutError


class CancellationToken:
    """
    Cooperative cancellation handle for a long-running training call.

    The caller can cancel explicitly from another thread, or give a timeout
    in seconds after which the token reports itself as expired.

    :param timeout: Seconds from creation until the deadline, None for no deadline
    :type timeout: float or None
    """

    def __init__(self, timeout=None):
        self._event = threading.Event()
        self.timeout = timeout
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()

    @property
    def expired(self):
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def triggered(self):
        return self.cancelled or self.expired

    def raise_if_triggered(self):
        """
        :raises PipelineCancelledError: If cancel() was called
        :raises PipelineTimeoutError: If the deadline has passed
        """
        if self.cancelled:
            raise PipelineCancelledError("Training was cancelled")
        if self.expired:
            raise PipelineTimeoutError(f"Training exceeded the timeout of {self.timeout} seconds",
                                       details={'timeout': self.timeout})
