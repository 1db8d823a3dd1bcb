"""SubmissionGuard: single-flight lock for the submit operation.

The survey runs on one event loop; handlers and network continuations
interleave but never run in parallel, so a plain boolean is enough.  The
lock is non-blocking: a second submit while one is in flight is dropped,
not queued.

Usage::

    if not guard.acquire():
        return  # already submitting
    try:
        ...
    finally:
        guard.release()
"""


class SubmissionGuard:
    def __init__(self) -> None:
        self._held = False

    @property
    def locked(self) -> bool:
        return self._held

    def acquire(self) -> bool:
        """Take the lock.  Returns False immediately if it is already held."""
        if self._held:
            return False
        self._held = True
        return True

    def release(self) -> None:
        self._held = False
