"""
Keyed query cache sitting between the routes and the store.

Reads are cached under tuple keys such as ("solutions", problem_id).
Concurrent reads of the same key share one in-flight load. Mutations never
touch cached values directly: they call invalidate_for() and the affected
keys are looked up in INVALIDATION_MAP, so the whole consistency story of
the app lives in that one table.

Entries expire after QUERY_CACHE_TTL seconds and at most
QUERY_CACHE_MAXSIZE keys are held, least recently used evicted first.
Each worker process has its own cache, so expiry bounds how long a
mutation made in another process stays invisible here.
"""
import logging
import threading
import time
from concurrent.futures import Future
from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60
DEFAULT_MAXSIZE = 1024


# Mutation type -> key prefixes whose cached reads it can make stale
INVALIDATION_MAP = {
    'insert_problem': lambda problem_id, **_: [
        ('problem', problem_id),
        ('problems',),
        ('featured-problems',),
        ('stats',),
    ],
    'insert_solution': lambda problem_id, **_: [
        ('solutions', problem_id),
        ('problem', problem_id),
        ('problems',),
        ('featured-problems',),
        ('stats',),
    ],
    'toggle_upvote': lambda problem_id, user_id, **_: [
        ('solutions', problem_id),
        ('problem', problem_id),
        ('user-upvotes', user_id),
        ('problems',),
        ('featured-problems',),
        ('stats',),
    ],
    'sign_up': lambda **_: [
        ('stats',),
    ],
    'sign_out': lambda user_id, **_: [
        ('user-upvotes', user_id),
    ],
}


def _matches(key, prefix):
    return key[:len(prefix)] == prefix


class QueryCache:
    """Thread-safe, size and age bounded key -> result mapping with in-flight request deduplication"""

    def __init__(self, enabled=True, ttl=DEFAULT_TTL, maxsize=DEFAULT_MAXSIZE, timer=time.monotonic):
        self.enabled = enabled
        self._timer = timer
        self._lock = threading.Lock()
        self._results = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._inflight = {}

    def init_app(self, app):
        self.enabled = app.config.get('QUERY_CACHE_ENABLED', True)
        with self._lock:
            self._results = TTLCache(
                maxsize=app.config.get('QUERY_CACHE_MAXSIZE', DEFAULT_MAXSIZE),
                ttl=app.config.get('QUERY_CACHE_TTL', DEFAULT_TTL),
                timer=self._timer,
            )
            self._inflight.clear()
        app.extensions['query_cache'] = self

    def __len__(self):
        with self._lock:
            self._results.expire()
            return len(self._results)

    def fetch(self, key, loader):
        """
        Return the cached result for key, running loader() on a miss.

        Callers arriving while another caller is loading the same key wait
        for that load and get its result (or its exception). Failed loads
        and None results are never cached.
        """
        key = tuple(key)
        if not self.enabled:
            return loader()

        with self._lock:
            try:
                value = self._results[key]
            except KeyError:
                pass
            else:
                logger.debug("Cache hit for %s", key)
                return value
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            logger.debug("Joining in-flight load for %s", key)
            return future.result()

        logger.debug("Cache miss for %s", key)
        try:
            value = loader()
        except Exception as exc:
            with self._lock:
                if self._inflight.get(key) is future:
                    del self._inflight[key]
            future.set_exception(exc)
            raise

        with self._lock:
            # An invalidation during the load detaches the future; its result is stale
            if self._inflight.get(key) is future:
                del self._inflight[key]
                if value is not None:
                    self._results[key] = value
        future.set_result(value)
        return value

    def invalidate(self, prefix):
        """Drop every cached or in-flight key starting with prefix. Returns the number of keys dropped."""
        prefix = tuple(prefix)
        with self._lock:
            self._results.expire()
            stale = [k for k in self._results if _matches(k, prefix)]
            for k in stale:
                self._results.pop(k, None)
            detached = [k for k in self._inflight if _matches(k, prefix)]
            for k in detached:
                del self._inflight[k]
        if stale or detached:
            logger.debug("Invalidated %d keys for prefix %s", len(stale) + len(detached), prefix)
        return len(stale) + len(detached)

    def invalidate_for(self, mutation, **params):
        """Invalidate everything the given mutation type can affect"""
        if mutation not in INVALIDATION_MAP:
            raise ValueError(f"Unknown mutation type: {mutation}")
        prefixes = INVALIDATION_MAP[mutation](**params)
        for prefix in prefixes:
            self.invalidate(prefix)
        return prefixes

    def contains(self, key):
        with self._lock:
            return tuple(key) in self._results

    def clear(self):
        with self._lock:
            self._results.clear()
            self._inflight.clear()
