"""
In-memory implementation of Bayes storage interface, dood!

Mirrors the Redis key layout in plain dictionaries. Every procedure runs under
one asyncio.Lock, which gives the same all-or-nothing visibility as the Lua
scripts for callers sharing this instance. Useful for tests and for embedding
the classifier in a single process without Redis.
"""

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from .exceptions import StorageProcedureError
from .models import COUNT_OUT_OF_RANGE, MAX_COUNT
from .storage_interface import BayesStorageInterface, labelsKey, splitArgv, tallyKey, tokenTableKey

logger = logging.getLogger(__name__)


class MemoryBayesStorage(BayesStorageInterface):
    """
    In-memory storage with the same semantics as RedisBayesStorage
    """

    def __init__(self):
        self._sets: Dict[str, Set[str]] = {}
        self._hashes: Dict[str, Dict[str, int]] = {}
        self._counters: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    def keys(self) -> List[str]:
        """All keys currently stored, sorted"""
        return sorted(set(self._sets) | set(self._hashes) | set(self._counters))

    def _deleteKey(self, key: str) -> int:
        deleted = 0
        for storage in (self._sets, self._hashes, self._counters):
            if key in storage:
                del storage[key]
                deleted += 1
        return deleted

    def _checkCounts(self, counts: List[int]) -> None:
        """Refuse counts the Redis procedures would refuse, before any change"""
        for count in counts:
            if not 1 <= count <= MAX_COUNT:
                raise StorageProcedureError(f"{COUNT_OUT_OF_RANGE}: {count}")

    def _scoreLabels(
        self, namespace: str, correction: float, tokens: List[str]
    ) -> List[Tuple[str, float, bool]]:
        """Shared scoring pass of scores() and classify(), must be called under the lock"""
        results: List[Tuple[str, float, bool]] = []
        for label in sorted(self._sets.get(labelsKey(namespace), set())):
            tally = self._counters.get(tallyKey(namespace, label), 0)
            if tally <= 0:
                continue

            table = self._hashes.get(tokenTableKey(namespace, label), {})
            score = 0.0
            matched = False
            for token in tokens:
                count = table.get(token)
                if count is not None and count > 0:
                    matched = True
                else:
                    count = correction
                score += math.log(count / tally)

            results.append((label, score, matched))
        return results

    async def flush(self, namespace: str) -> int:
        async with self._lock:
            labels = self._sets.pop(labelsKey(namespace), set())
            for label in labels:
                self._hashes.pop(tokenTableKey(namespace, label), None)
                self._counters.pop(tallyKey(namespace, label), None)
            return len(labels)

    async def train(self, namespace: str, argv: Sequence[Any]) -> int:
        label, tokens, counts = splitArgv(argv)
        self._checkCounts(counts)
        async with self._lock:
            tKey = tallyKey(namespace, label)
            total = sum(counts)
            if total > MAX_COUNT:
                raise StorageProcedureError(f"{COUNT_OUT_OF_RANGE}: total of {label}")

            tally = self._counters.get(tKey, 0)
            if total <= 0:
                return tally
            if tally + total > MAX_COUNT:
                raise StorageProcedureError(f"{COUNT_OUT_OF_RANGE}: tally of {label}")

            self._sets.setdefault(labelsKey(namespace), set()).add(label)
            table = self._hashes.setdefault(tokenTableKey(namespace, label), {})
            for token, delta in zip(tokens, counts):
                table[token] = table.get(token, 0) + delta

            self._counters[tKey] = tally + total
            return tally + total

    async def untrain(self, namespace: str, argv: Sequence[Any]) -> int:
        label, tokens, counts = splitArgv(argv)
        self._checkCounts(counts)
        async with self._lock:
            table = self._hashes.get(tokenTableKey(namespace, label), {})
            for token, delta in zip(tokens, counts):
                current = table.get(token)
                if current is not None and current - delta > 0:
                    table[token] = current - delta
                else:
                    table.pop(token, None)

            tally = sum(table.values())
            if tally <= 0:
                self._hashes.pop(tokenTableKey(namespace, label), None)
                self._counters.pop(tallyKey(namespace, label), None)
                labels = self._sets.get(labelsKey(namespace))
                if labels is not None:
                    labels.discard(label)
                    if not labels:
                        del self._sets[labelsKey(namespace)]
                return 0

            self._counters[tallyKey(namespace, label)] = tally
            return tally

    async def scores(self, namespace: str, argv: Sequence[Any]) -> List[Any]:
        correction, tokens, _ = splitArgv(argv)
        async with self._lock:
            results = self._scoreLabels(namespace, float(correction), tokens)

        reply: List[Any] = []
        for label, score, _ in results:
            reply.extend((label, score))
        return reply

    async def classify(self, namespace: str, argv: Sequence[Any]) -> Optional[Any]:
        correction, tokens, _ = splitArgv(argv)
        async with self._lock:
            results = self._scoreLabels(namespace, float(correction), tokens)

        if not any(matched for _, _, matched in results):
            return None

        bestLabel: Optional[str] = None
        bestScore = 0.0
        for label, score, _ in results:
            if bestLabel is None or score > bestScore:
                bestLabel, bestScore = label, score
        return bestLabel

    async def getLabels(self, namespace: str) -> List[str]:
        async with self._lock:
            return sorted(self._sets.get(labelsKey(namespace), set()))

    async def getTokenCounts(self, namespace: str, label: str) -> Dict[str, int]:
        async with self._lock:
            return dict(self._hashes.get(tokenTableKey(namespace, label), {}))

    async def getTally(self, namespace: str, label: str) -> int:
        async with self._lock:
            return self._counters.get(tallyKey(namespace, label), 0)

    async def purge(self, namespace: str) -> int:
        async with self._lock:
            deleted = 0
            for key in self.keys():
                if key.startswith(namespace):
                    deleted += self._deleteKey(key)
            logger.info(f"Purged {deleted} keys starting with '{namespace}'")
            return deleted
