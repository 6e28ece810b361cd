"""Cache subsystem — entries, the path store and the timer policies."""

from memfile.cache.entry import ArmedPolicy, CacheEntry, PolicyKind
from memfile.cache.policies import PolicyEngine
from memfile.cache.stats import CacheStats
from memfile.cache.store import EntrySlot, EntryStore, StatSnapshot

__all__ = [
    "ArmedPolicy",
    "CacheEntry",
    "CacheStats",
    "EntrySlot",
    "EntryStore",
    "PolicyEngine",
    "PolicyKind",
    "StatSnapshot",
]
