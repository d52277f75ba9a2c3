"""Drives an IModelBackend with a bounded retry policy."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from deep_truth.domain.errors import ModelInvocationError
from deep_truth.domain.events import EventKind, PipelineEvent
from deep_truth.ports.interfaces import IModelBackend, IPipelineObserver, NullObserver

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 5.0


class ResponseRetriever:
    """
    Streams one prompt through the backend and returns the joined answer.

    Each attempt concatenates fragments in arrival order. An exception while
    opening or reading the stream fails the attempt and its partial buffer is
    dropped. After the last failed attempt ModelInvocationError is raised,
    chained from the backend's own error.
    """

    def __init__(
        self,
        backend: IModelBackend,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY_SECONDS,
        observer: Optional[IPipelineObserver] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._backend = backend
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._observer = observer or NullObserver()
        self._sleep = sleep

    async def retrieve(self, prompt: str, index: Optional[int] = None) -> str:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                response, fragments = await self._stream_once(prompt)
            except Exception as exc:  # noqa: BLE001 - every backend failure counts as an attempt
                last_error = exc
                logger.warning(
                    "Error getting %s response (attempt %d/%d) for article %s: %s",
                    self._backend.name, attempt, self.max_attempts, index, exc,
                )
                self._observer.notify(PipelineEvent(
                    EventKind.ATTEMPT_FAILED,
                    index=index,
                    attempt=attempt,
                    detail={"error": str(exc), "max_attempts": self.max_attempts},
                ))
                if attempt < self.max_attempts:
                    logger.info("Retrying in %.1f seconds...", self.retry_delay)
                    await self._sleep(self.retry_delay)
                continue

            logger.debug("Received %d fragments from %s on attempt %d", fragments, self._backend.name, attempt)
            self._observer.notify(PipelineEvent(
                EventKind.RESPONSE_RECEIVED,
                index=index,
                attempt=attempt,
                detail={"fragments": fragments, "chars": len(response)},
            ))
            return response.strip()

        raise ModelInvocationError(self.max_attempts, index, str(last_error)) from last_error

    async def _stream_once(self, prompt: str):
        parts = []
        async for fragment in self._backend.invoke(prompt):
            if fragment:
                parts.append(fragment)
        return "".join(parts), len(parts)
