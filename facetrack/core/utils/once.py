"""One-shot asynchronous initialization guard."""
import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class AsyncOnce(Generic[T]):
    """Run an async factory exactly once and cache its result.

    Concurrent callers wait on the same lock, so the factory never runs twice.
    A factory that raises is not cached; the next caller retries it.

    Example:
        ```python
        ensure_collection = AsyncOnce(recognizer.ensure_collection)
        await ensure_collection.get()
        await ensure_collection.get()  # no second call
        ```
    """

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._lock: Optional[asyncio.Lock] = None
        self._done = False
        self._value: Optional[T] = None

    @property
    def done(self) -> bool:
        """Whether the factory has completed successfully."""
        return self._done

    async def get(self) -> T:
        """Return the cached value, running the factory on first use."""
        if self._done:
            return self._value
        if self._lock is None:
            # Created on first use so it belongs to the running loop
            self._lock = asyncio.Lock()
        async with self._lock:
            if not self._done:
                self._value = await self._factory()
                self._done = True
        return self._value

    def reset(self) -> None:
        """Forget the cached value so the next call runs the factory again."""
        self._done = False
        self._value = None
        self._lock = None
