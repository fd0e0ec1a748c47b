"""
Ordered "first success wins" execution of alternative producers.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Sequence[Any])


@dataclass(frozen=True)
class Producer(Generic[T]):
    """A named zero-argument coroutine function yielding a sequence."""

    name: str
    call: Callable[[], Awaitable[T]]


class FallbackChain(Generic[T]):
    """
    Run producers strictly in order and keep the first non-empty result.

    Exceptions raised by a producer are logged and swallowed; the next
    producer is tried. There are no retries, timeouts or parallel attempts.
    """

    def __init__(self, producers: Sequence[Producer[T]], name: str = "fallback"):
        self.producers: List[Producer[T]] = list(producers)
        self.name = name

    async def run(self, default: Optional[T] = None) -> T:
        for producer in self.producers:
            try:
                result = await producer.call()
            except Exception as error:
                logger.warning("%s: producer %s failed: %s", self.name, producer.name, error)
                continue

            if result:
                logger.debug("%s: producer %s succeeded", self.name, producer.name)
                return result
            logger.info("%s: producer %s returned nothing", self.name, producer.name)

        logger.warning("%s: all %d producers exhausted", self.name, len(self.producers))
        return default if default is not None else []  # type: ignore[return-value]


async def first_success(producers: Sequence[Producer[T]], default: Optional[T] = None) -> T:
    return await FallbackChain(producers).run(default)
