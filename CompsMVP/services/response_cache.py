# CompsMVP/services/response_cache.py
import time


class ResponseCache:
    """
    TTL cache for provider responses, keyed by serialized query.

    One instance is created per app and handed to every provider client,
    so tests can build their own and inspect it. No locking: two identical
    concurrent misses may both go upstream.
    """

    def __init__(self, ttl=60 * 60, max_entries=512, clock=time.time):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries = {}
        self._stats = {"hits": 0, "misses": 0, "evictions": 0}

    def get(self, key):
        entry = self._entries.get(key)
        if not entry:
            self._stats["misses"] += 1
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            self._entries.pop(key, None)
            self._stats["misses"] += 1
            return None
        self._stats["hits"] += 1
        return value

    def set(self, key, value, ttl=None):
        if key not in self._entries and len(self._entries) >= self.max_entries:
            self._evict()
        self._entries[key] = (self._clock() + (self.ttl if ttl is None else ttl), value)

    def clear(self):
        self._entries.clear()
        for k in self._stats:
            self._stats[k] = 0

    def stats(self):
        return {**self._stats, "size": len(self._entries)}

    def __len__(self):
        return len(self._entries)

    def _evict(self):
        now = self._clock()
        expired = [k for k, (exp, _v) in self._entries.items() if exp <= now]
        for k in expired:
            self._entries.pop(k, None)
            self._stats["evictions"] += 1
        if len(self._entries) >= self.max_entries:
            oldest_key = min(self._entries.items(), key=lambda item: item[1][0])[0]
            self._entries.pop(oldest_key, None)
            self._stats["evictions"] += 1
