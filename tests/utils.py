"""
Test utility functions and helpers.

This module provides assertion helpers and backend inspection utilities
shared by the classifier tests.
"""

from typing import Any, Dict, List
from unittest.mock import AsyncMock

from shared_bayes import BayesStorageInterface, MemoryBayesStorage, NaiveBayesClassifier

TEST_NAMESPACE = "test:"

# ============================================================================
# Backend Inspection
# ============================================================================


async def storedKeys(storage: BayesStorageInterface) -> List[str]:
    """
    List every key present in the backend.

    Args:
        storage: Backend to inspect

    Returns:
        Sorted list of keys
    """
    if isinstance(storage, MemoryBayesStorage):
        return storage.keys()
    return sorted(await storage.client.keys("*"))


def createMockStorage(**returnValues: Any) -> AsyncMock:
    """
    Create a mock storage backend.

    Args:
        **returnValues: Return values of procedures, e.g. scores=["a", "1.0"]

    Returns:
        AsyncMock: Mock with BayesStorageInterface spec
    """
    storage = AsyncMock(spec=BayesStorageInterface)
    for name, value in returnValues.items():
        getattr(storage, name).return_value = value
    return storage


# ============================================================================
# Assertion Helpers
# ============================================================================


async def assertTallyInvariant(classifier: NaiveBayesClassifier) -> Dict[str, int]:
    """
    Check that every label has a positive tally equal to the sum of its table.

    Args:
        classifier: Classifier to inspect

    Returns:
        Label => tally of all active labels
    """
    tallies: Dict[str, int] = {}
    for label in await classifier.labels():
        tokenCounts = await classifier.tokenCounts(label)
        tally = await classifier.tally(label)
        assert tally > 0, f"Label '{label}' is active with tally {tally}"
        assert tally == sum(tokenCounts.values()), f"Tally of '{label}' drifted: {tally} != {tokenCounts}"
        assert all(count > 0 for count in tokenCounts.values()), f"Non-positive count in '{label}': {tokenCounts}"
        tallies[label] = tally
    return tallies
