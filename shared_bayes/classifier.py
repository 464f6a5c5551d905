"""
Naive Bayes classifier facade, dood!

The classifier keeps no state of its own: labels, token tables and tallies
live in the store under the classifier namespace. Every public operation
tokenizes the item, builds a flat argument vector and runs exactly one atomic
procedure of the storage backend.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

import redis.asyncio as redis

from .exceptions import ClassifierConfigError, StorageProcedureError
from .models import DEFAULT_CORRECTION, LABELS_SUFFIX, TALLY_PREFIX, ClassifierConfig, LabelStats, ModelStats
from .redis_storage import RedisBayesStorage
from .storage_interface import BayesStorageInterface, buildArgv
from .tokenizer import validateOccurrences

if TYPE_CHECKING:
    from .config import ConfigManager

logger = logging.getLogger(__name__)

Tokenizer = Callable[[Any], Mapping[str, int]]


class NaiveBayesClassifier:
    """
    Online Naive Bayes classifier backed by a shared store

    Example:
        >>> bayes = NaiveBayesClassifier(namespace="playground:", tokenizer=WordTokenizer())
        >>> await bayes.train("ham", "this is a good message")
        >>> await bayes.train("spam", "price from Nigeria needs your help")
        >>> await bayes.classify("Nigeria needs help")
        'spam'
    """

    def __init__(
        self,
        namespace: str,
        tokenizer: Tokenizer,
        storage: Optional[BayesStorageInterface] = None,
        correction: float = DEFAULT_CORRECTION,
        redisClient: Optional[redis.Redis] = None,
    ):
        """
        Initialize classifier

        Args:
            namespace: Prefix of every key this classifier touches
            tokenizer: Callable returning token => positive count mapping for an item
            storage: Storage backend, RedisBayesStorage over redisClient if None
            correction: Substitute count for tokens unseen under a label
            redisClient: redis.asyncio client, default local connection if None

        Raises:
            ClassifierConfigError: If namespace, tokenizer or correction is invalid
        """
        self.config = ClassifierConfig(namespace=namespace, correction=correction)

        if tokenizer is None:
            raise ClassifierConfigError("Missing tokenizer")
        if not callable(tokenizer):
            raise ClassifierConfigError(f"Tokenizer must be callable, got {type(tokenizer).__name__}")
        self.tokenizer = tokenizer

        if storage is None:
            if redisClient is None:
                redisClient = redis.Redis(decode_responses=True)
            storage = RedisBayesStorage(redisClient)
        self.storage = storage

        logger.info(
            f"Initialized NaiveBayesClassifier in namespace '{self.namespace}' "
            f"with {type(self.storage).__name__}, correction={self.correction}"
        )

    @classmethod
    def fromConfig(
        cls,
        configManager: "ConfigManager",
        tokenizer: Tokenizer,
        storage: Optional[BayesStorageInterface] = None,
    ) -> "NaiveBayesClassifier":
        """
        Create classifier from configuration

        Args:
            configManager: Loaded configuration
            tokenizer: Tokenizer to use
            storage: Storage backend, Redis client built from [redis] section if None
        """
        classifierConfig = configManager.getClassifierConfig()
        redisClient = None
        if storage is None:
            redisClient = configManager.createRedisClient()

        return cls(
            namespace=classifierConfig.namespace,
            tokenizer=tokenizer,
            storage=storage,
            correction=classifierConfig.correction,
            redisClient=redisClient,
        )

    @property
    def namespace(self) -> str:
        return self.config.namespace

    @property
    def correction(self) -> float:
        return self.config.correction

    def _checkLabel(self, label: str) -> None:
        if not isinstance(label, str) or not label:
            raise ClassifierConfigError(f"Label must be a non-empty string, got {label!r}")
        if label == LABELS_SUFFIX or label.startswith(TALLY_PREFIX):
            raise ClassifierConfigError(f"Label '{label}' collides with classifier bookkeeping keys")

    def _tokenize(self, item: Any) -> Dict[str, int]:
        return validateOccurrences(self.tokenizer(item))

    async def flush(self) -> None:
        """
        Cleanup all the keys this classifier could have created

        Keys under the namespace not reachable from the label set are left
        untouched, use purgeNamespace() to delete everything.
        """
        flushed = await self.storage.flush(self.namespace)
        logger.info(f"Flushed {flushed} labels in namespace '{self.namespace}'")

    async def train(self, label: str, item: Any) -> Dict[str, int]:
        """
        Train the given item as label

        Args:
            label: Label to train
            item: Anything the tokenizer understands

        Returns:
            Token occurrences produced by the tokenizer
        """
        self._checkLabel(label)
        occurrences = self._tokenize(item)

        tally = await self.storage.train(self.namespace, buildArgv(label, occurrences))
        logger.debug(f"Trained '{label}' with {len(occurrences)} tokens, tally is {tally}")
        return occurrences

    async def untrain(self, label: str, item: Any) -> Dict[str, int]:
        """
        The opposite of train()

        Counts never go below zero: exhausted tokens are deleted, and the label
        itself is deleted once its tally drops to zero.

        Args:
            label: Label to untrain
            item: Anything the tokenizer understands

        Returns:
            Token occurrences produced by the tokenizer
        """
        self._checkLabel(label)
        occurrences = self._tokenize(item)

        tally = await self.storage.untrain(self.namespace, buildArgv(label, occurrences))
        if tally <= 0:
            logger.info(f"Label '{label}' exhausted and removed from namespace '{self.namespace}'")
        else:
            logger.debug(f"Untrained '{label}' with {len(occurrences)} tokens, tally is {tally}")
        return occurrences

    async def classify(self, item: Any) -> Optional[str]:
        """
        Get the most probable label for an item

        Returns:
            Best label (lexicographically smallest on ties), or None if there
            are no labels or none of them knows any token of the item
        """
        occurrences = self._tokenize(item)

        label = await self.storage.classify(self.namespace, buildArgv(self.correction, occurrences))
        logger.debug(f"Classified item with {len(occurrences)} tokens as {label!r}")
        return label

    async def scores(self, item: Any) -> Dict[str, float]:
        """
        Get log-likelihood scores of an item for each known label

        Returns:
            Label => score for every label with positive tally
        """
        occurrences = self._tokenize(item)

        reply = await self.storage.scores(self.namespace, buildArgv(self.correction, occurrences))
        if len(reply) % 2:
            raise StorageProcedureError(f"Scores reply has odd length {len(reply)}")

        ret: Dict[str, float] = {}
        for i in range(0, len(reply), 2):
            try:
                ret[reply[i]] = float(reply[i + 1])
            except (TypeError, ValueError) as e:
                raise StorageProcedureError(f"Invalid score {reply[i + 1]!r} for label '{reply[i]}'") from e
        return ret

    async def labels(self) -> List[str]:
        """Get all active labels, sorted"""
        return await self.storage.getLabels(self.namespace)

    async def tokenCounts(self, label: str) -> Dict[str, int]:
        """Get token => count table of a label"""
        self._checkLabel(label)
        return await self.storage.getTokenCounts(self.namespace, label)

    async def tally(self, label: str) -> int:
        """Get tally of a label, 0 if it doesn't exist"""
        self._checkLabel(label)
        return await self.storage.getTally(self.namespace, label)

    async def getModelStats(self) -> ModelStats:
        """
        Get information about the current model

        Reads every label separately, so the result may mix states
        of concurrent train()/untrain() calls.
        """
        stats = ModelStats(namespace=self.namespace)
        for label in await self.labels():
            tokenCounts = await self.storage.getTokenCounts(self.namespace, label)
            tally = await self.storage.getTally(self.namespace, label)
            stats.labels.append(LabelStats(label=label, tally=tally, vocabularySize=len(tokenCounts)))
        return stats

    async def close(self) -> None:
        """Release storage backend resources"""
        await self.storage.close()

    async def purgeNamespace(self) -> int:
        """
        Delete ALL keys starting with the namespace, beware

        Returns:
            Number of keys deleted
        """
        deleted = await self.storage.purge(self.namespace)
        logger.warning(f"Purged {deleted} keys in namespace '{self.namespace}'")
        return deleted
