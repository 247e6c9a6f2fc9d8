"""CachingModelInvoker — bounded, time-limited response cache around a ModelInvoker."""

import hashlib
import json
import time
from collections import OrderedDict
from collections.abc import Callable

from det_eval.invoker.domain.invoker import ModelInvoker
from det_eval.invoker.domain.observer import InvokerObserver
from det_eval.invoker.domain.request import InvocationRequest, InvocationResult

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_CAPACITY = 100


def cache_key(request: InvocationRequest) -> str:
    """SHA-256 over the request fields that determine the answer.

    Text is stripped before hashing so that incidental whitespace does not
    split otherwise identical requests.
    """
    payload = {
        "model": request.model_id.strip(),
        "system": request.system_prompt.strip(),
        "messages": [
            {
                "role": message.role,
                "text": (message.text or "").strip(),
                "tool_uses": [use.model_dump() for use in message.tool_uses],
                "tool_use_id": message.tool_use_id,
            }
            for message in request.messages
        ],
        "tools": sorted(spec.name for spec in request.tool_catalog),
        "temperature": request.temperature,
        "max_tokens": request.max_tokens,
    }
    encoded = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


class CachingModelInvoker:
    """Wraps any ModelInvoker with an LRU cache bounded by capacity and TTL.

    Only successful results are cached; failures always propagate. Never wrap
    the invoker used for determinism runs with this, since repeated requests
    would be answered from memory.

    Does NOT inherit from ModelInvoker (structural typing via Protocol).
    """

    def __init__(
        self,
        inner: ModelInvoker,
        observer: InvokerObserver,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._inner = inner
        self._observer = observer
        self._ttl_seconds = ttl_seconds
        self._capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, InvocationResult]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def invoke(self, request: InvocationRequest) -> InvocationResult:
        key = cache_key(request=request)
        now = self._clock()

        entry = self._entries.get(key)
        if entry is not None:
            stored_at, result = entry
            age = now - stored_at
            if age <= self._ttl_seconds:
                self._entries.move_to_end(key)
                self._observer.cache_hit(
                    model=request.model_id, key=key[:12], age_seconds=age
                )
                return result
            del self._entries[key]
            self._observer.cache_evicted(key=key[:12], reason="expired")

        result = await self._inner.invoke(request=request)
        self._entries[key] = (self._clock(), result)
        self._entries.move_to_end(key)
        while len(self._entries) > self._capacity:
            evicted, _ = self._entries.popitem(last=False)
            self._observer.cache_evicted(key=evicted[:12], reason="capacity")
        return result

    def clear(self) -> None:
        self._entries.clear()
