"""
Bounded TTL cache for generated responses.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from .config import CacheConfig
from .logging_config import get_logger
from .timestamp_utils import monotonic_ms

logger = get_logger(__name__)

_PUNCTUATION = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')


@dataclass
class CacheEntry:
    key: str
    value: str
    inserted_at: float  # milliseconds on the cache clock
    ttl_ms: float

    def is_expired(self, now_ms: float) -> bool:
        return now_ms - self.inserted_at >= self.ttl_ms


class EvictionPolicy(Protocol):
    """Chooses which keys to drop once the cache is over capacity."""

    def select_victims(self, entries: Sequence[CacheEntry], max_size: int) -> List[str]:
        ...


class OldestFirstEviction:
    """Evict the oldest ``fraction`` of entries, and never leave the cache over capacity."""

    def __init__(self, fraction: float = 0.2):
        if not 0.0 < fraction <= 1.0:
            raise ValueError(f'Eviction fraction must be in (0, 1], got {fraction}')
        self.fraction = fraction

    def select_victims(self, entries: Sequence[CacheEntry], max_size: int) -> List[str]:
        if len(entries) <= max_size:
            return []
        ordered = sorted(entries, key=lambda entry: entry.inserted_at)
        count = max(int(len(ordered) * self.fraction), len(ordered) - max_size)
        return [entry.key for entry in ordered[:count]]


def normalize_key(raw: str, length: int = 50) -> str:
    """Fold near-duplicate inputs onto the same key.

    Lowercases, strips punctuation, joins words with underscores and
    truncates, so "I'm stressed!!" and "im stressed" collide.
    """
    text = _PUNCTUATION.sub('', (raw or '').lower())
    text = _WHITESPACE.sub('_', text.strip())
    return text[:length]


def build_key(persona: str, user_input: str, emotion: str) -> str:
    """Raw key for a generated reply; persona and emotion lead so truncation keeps them."""
    return f'{persona} {emotion} {user_input}'


class ResponseCache:
    """Single-threaded TTL cache with capacity-triggered eviction."""

    def __init__(self,
                 max_size: int = 100,
                 default_ttl_ms: float = 300000,
                 key_length: int = 50,
                 policy: Optional[EvictionPolicy] = None,
                 clock: Callable[[], float] = monotonic_ms):
        self.max_size = max_size
        self.default_ttl_ms = default_ttl_ms
        self.key_length = key_length
        self.policy = policy or OldestFirstEviction()
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

        self.stats = {'hits': 0, 'misses': 0, 'expired': 0, 'evicted': 0}

    @classmethod
    def from_config(cls, cache_config: CacheConfig, clock: Callable[[], float] = monotonic_ms) -> 'ResponseCache':
        return cls(max_size=cache_config.max_size,
                   default_ttl_ms=cache_config.ttl_ms,
                   key_length=cache_config.key_length,
                   policy=OldestFirstEviction(cache_config.evict_fraction),
                   clock=clock)

    def normalize_key(self, raw: str) -> str:
        return normalize_key(raw, self.key_length)

    def get(self, key: str) -> Optional[str]:
        """
        Get a cached value.

        Args:
            key: Raw key; normalized before lookup

        Returns:
            Cached value, or None on a miss or an expired entry
        """
        normalized = self.normalize_key(key)
        entry = self._entries.get(normalized)

        if entry is None:
            self.stats['misses'] += 1
            return None

        if entry.is_expired(self._clock()):
            del self._entries[normalized]
            self.stats['expired'] += 1
            self.stats['misses'] += 1
            logger.debug(f'Cache entry expired: {normalized}')
            return None

        self.stats['hits'] += 1
        return entry.value

    def set(self, key: str, value: str, ttl_ms: Optional[float] = None) -> None:
        """
        Store a value and run the eviction policy if over capacity.

        Args:
            key: Raw key; normalized before storage
            value: Value to cache
            ttl_ms: Time to live in milliseconds (uses the cache default if None)
        """
        normalized = self.normalize_key(key)
        self._entries[normalized] = CacheEntry(key=normalized,
                                               value=value,
                                               inserted_at=self._clock(),
                                               ttl_ms=self.default_ttl_ms if ttl_ms is None else ttl_ms)
        self._evict_if_needed()

    def _evict_if_needed(self) -> None:
        victims = self.policy.select_victims(list(self._entries.values()), self.max_size)
        for victim in victims:
            self._entries.pop(victim, None)
        if victims:
            self.stats['evicted'] += len(victims)
            logger.debug(f'Evicted {len(victims)} cache entries, {len(self._entries)} remain')

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(self.normalize_key(key))
        return entry is not None and not entry.is_expired(self._clock())
