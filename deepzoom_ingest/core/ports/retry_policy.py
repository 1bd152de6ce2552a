# deepzoom_ingest/core/ports/retry_policy.py
from typing import Any, Awaitable, Callable, Protocol

class IRetryPolicy(Protocol):
    """
    Port for wrapping a single network step of a tile task.
    """

    async def call(self, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Awaits `fn(*args, **kwargs)`, retrying per policy; re-raises the last error."""
        ...
