"""
Shared Bayes - online Naive Bayes classifier with state in Redis, dood!

All model state (label set, per-label token tables and tallies) lives in the
store under a namespace prefix. Every operation runs as one atomic procedure
(a Lua script in Redis), so any number of processes can train and classify
against the same model concurrently.

Main Components:
- NaiveBayesClassifier: Public facade (train, untrain, classify, scores, flush)
- BayesStorageInterface: Abstract atomic procedures
- RedisBayesStorage: Lua script implementation of the procedures
- MemoryBayesStorage: In-process implementation for tests and embedding
- WordTokenizer: Default text tokenizer

Usage:
    from shared_bayes import NaiveBayesClassifier, WordTokenizer

    bayes = NaiveBayesClassifier(namespace="playground:", tokenizer=WordTokenizer())

    await bayes.train("ham", "this is a good message")
    await bayes.train("spam", "price from Nigeria needs your help")

    label = await bayes.classify("Nigeria needs help")  # "spam"
    scores = await bayes.scores("Nigeria needs help")  # {"ham": ..., "spam": ...}
"""

from .classifier import NaiveBayesClassifier
from .config import ConfigManager
from .exceptions import BayesError, ClassifierConfigError, StorageProcedureError, TokenizerContractError
from .memory_storage import MemoryBayesStorage
from .models import DEFAULT_CORRECTION, MAX_COUNT, ClassifierConfig, LabelStats, ModelStats
from .redis_storage import RedisBayesStorage
from .storage_interface import BayesStorageInterface
from .tokenizer import TokenizerConfig, WordTokenizer, validateOccurrences

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "NaiveBayesClassifier",
    "ConfigManager",
    # Storage
    "BayesStorageInterface",
    "RedisBayesStorage",
    "MemoryBayesStorage",
    # Tokenizer
    "WordTokenizer",
    "TokenizerConfig",
    "validateOccurrences",
    # Data models
    "ClassifierConfig",
    "LabelStats",
    "ModelStats",
    "DEFAULT_CORRECTION",
    "MAX_COUNT",
    # Exceptions
    "BayesError",
    "ClassifierConfigError",
    "TokenizerContractError",
    "StorageProcedureError",
]
