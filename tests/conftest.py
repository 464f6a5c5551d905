"""
Pytest configuration and common fixtures for shared-bayes tests.

Classifier fixtures are parametrized over both storage backends, so every
behavioural test runs against the in-memory store and against the real Lua
scripts executed by fakeredis.
"""

import logging

import fakeredis
import pytest

from shared_bayes import BayesStorageInterface, MemoryBayesStorage, NaiveBayesClassifier, RedisBayesStorage
from shared_bayes.tokenizer import WordTokenizer
from tests.utils import TEST_NAMESPACE

# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def fakeServer() -> fakeredis.FakeServer:
    """
    Provide an isolated fake Redis server.

    Returns:
        fakeredis.FakeServer: Server shared by all clients of one test
    """
    return fakeredis.FakeServer()


@pytest.fixture
def redisClient(fakeServer):
    """
    Provide an async Redis client connected to the fake server.

    Returns:
        fakeredis.FakeAsyncRedis: Client with decode_responses enabled
    """
    return fakeredis.FakeAsyncRedis(server=fakeServer, decode_responses=True)


@pytest.fixture(params=["memory", "redis"])
def storage(request, redisClient) -> BayesStorageInterface:
    """
    Provide each storage backend in turn.

    Returns:
        BayesStorageInterface: MemoryBayesStorage or RedisBayesStorage
    """
    if request.param == "memory":
        return MemoryBayesStorage()
    return RedisBayesStorage(redisClient)


@pytest.fixture
def tokenizer() -> WordTokenizer:
    """Provide default word tokenizer."""
    return WordTokenizer()


@pytest.fixture
def classifier(storage, tokenizer) -> NaiveBayesClassifier:
    """
    Provide classifier over the parametrized storage backend.

    Returns:
        NaiveBayesClassifier: Classifier in TEST_NAMESPACE
    """
    return NaiveBayesClassifier(namespace=TEST_NAMESPACE, tokenizer=tokenizer, storage=storage)


# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture
def rootLogger():
    """
    Save and restore root logger state around a test.

    initLogging() replaces root handlers, this puts pytest's own back.
    """
    root = logging.getLogger()
    savedHandlers = root.handlers[:]
    savedLevel = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in savedHandlers:
            handler.close()
    for handler in savedHandlers:
        root.addHandler(handler)
    root.setLevel(savedLevel)
