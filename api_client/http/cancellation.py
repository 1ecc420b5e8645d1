"""Cooperative cancellation for in-flight calls.

A CancellationHandle is created per call and observed by the executor at
every suspension point. The CancellationRegistry maps caller-chosen keys
to the handles of in-flight calls so external code can cancel them.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from enum import Enum

from api_client.http.errors import CancelKeyInUseError
from api_client.observability import get_logger


logger = get_logger("http")


class AbortReason(str, Enum):
    """Why a handle was aborted."""

    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"


class KeyCollisionPolicy(str, Enum):
    """What register() does when the key is already held.

    - REPLACE: overwrite the mapping, leaving the old handle running
    - CANCEL_PREVIOUS: abort the old handle, then replace it
    - REJECT: raise CancelKeyInUseError
    """

    REPLACE = "REPLACE"
    CANCEL_PREVIOUS = "CANCEL_PREVIOUS"
    REJECT = "REJECT"


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class CancellationHandle:
    """Abortable token shared by the executor and the registry.

    The first abort wins; later calls are ignored. Abort may be triggered
    from any thread; waiters are woken on the loop that owns the handle.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Initialize the handle.

        Args:
            loop: Event loop the waiting call runs on. Defaults to the
                running loop, if any.
        """
        self._loop = loop or _running_loop()
        self._event = asyncio.Event()
        self._reason: AbortReason | None = None
        self._lock = threading.Lock()

    @property
    def aborted(self) -> bool:
        """Check if the handle has been aborted."""
        return self._reason is not None

    @property
    def reason(self) -> AbortReason | None:
        """Get the abort reason, or None while still live."""
        return self._reason

    def abort(self, reason: AbortReason = AbortReason.CANCELLED) -> bool:
        """Fire the abort signal.

        Args:
            reason: Why the handle is aborted.

        Returns:
            True if this call aborted the handle, False if already aborted.
        """
        with self._lock:
            if self._reason is not None:
                return False
            self._reason = reason

        if self._loop is None or _running_loop() is self._loop:
            self._event.set()
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._event.set)
        return True

    async def wait(self) -> AbortReason:
        """Suspend until the handle is aborted.

        Returns:
            The abort reason.
        """
        await self._event.wait()
        return self._reason or AbortReason.CANCELLED


@dataclass
class CancellationRegistry:
    """Thread-safe map of cancel keys to in-flight handles.

    Attributes:
        collision_policy: Behavior when registering an already-held key.
    """

    collision_policy: KeyCollisionPolicy = KeyCollisionPolicy.REPLACE

    _handles: dict[str, CancellationHandle] = field(init=False, default_factory=dict)
    _lock: threading.Lock = field(
        init=False, default_factory=threading.Lock, repr=False
    )

    def register(self, key: str, handle: CancellationHandle) -> None:
        """Store a handle under a key.

        Args:
            key: Caller-chosen cancel key.
            handle: Handle of the call being started.

        Raises:
            CancelKeyInUseError: If the key is held and the policy is REJECT.
        """
        with self._lock:
            previous = self._handles.get(key)
            if previous is not None and previous is not handle:
                if self.collision_policy == KeyCollisionPolicy.REJECT:
                    raise CancelKeyInUseError(key)
                if self.collision_policy == KeyCollisionPolicy.CANCEL_PREVIOUS:
                    previous.abort(AbortReason.CANCELLED)
                logger.debug(
                    "cancel_key_replaced",
                    cancel_key=key,
                    policy=self.collision_policy.value,
                )
            self._handles[key] = handle

    def cancel(self, key: str) -> bool:
        """Abort and forget the handle stored under a key.

        Args:
            key: Cancel key.

        Returns:
            True if a handle was found, False for unknown keys.
        """
        with self._lock:
            handle = self._handles.pop(key, None)

        if handle is None:
            return False

        handle.abort(AbortReason.CANCELLED)
        return True

    def release(self, key: str, handle: CancellationHandle) -> bool:
        """Forget a key without aborting, if it still maps to the handle.

        Args:
            key: Cancel key.
            handle: Handle owned by the finishing call.

        Returns:
            True if the mapping was removed.
        """
        with self._lock:
            if self._handles.get(key) is handle:
                del self._handles[key]
                return True
            return False

    def get(self, key: str) -> CancellationHandle | None:
        """Get the handle currently stored under a key."""
        with self._lock:
            return self._handles.get(key)

    def keys(self) -> list[str]:
        """Get a snapshot of the registered keys."""
        with self._lock:
            return list(self._handles)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)
