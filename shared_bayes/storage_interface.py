"""
Abstract storage interface for the shared Bayes classifier, dood!

This module defines the atomic procedures every storage backend must provide.
Each procedure runs as one indivisible step against the store: a concurrent
caller sees either none or all of its effect.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .models import LABELS_SUFFIX, TALLY_PREFIX


def labelsKey(namespace: str) -> str:
    """Key of the label set"""
    return namespace + LABELS_SUFFIX


def tokenTableKey(namespace: str, label: str) -> str:
    """Key of the token table of a label"""
    return namespace + label


def tallyKey(namespace: str, label: str) -> str:
    """Key of the tally counter of a label"""
    return namespace + TALLY_PREFIX + label


def buildArgv(head: Any, occurrences: Mapping[str, int]) -> List[Any]:
    """
    Build the flat argument vector passed to a procedure

    Args:
        head: Label for train/untrain, correction for scores/classify
        occurrences: Token => occurrence count

    Returns:
        [head, N, token_1 .. token_N, count_1 .. count_N]
    """
    tokens = list(occurrences.keys())
    return [head, len(tokens), *tokens, *(occurrences[token] for token in tokens)]


def splitArgv(argv: Sequence[Any]) -> Tuple[Any, List[str], List[int]]:
    """Inverse of buildArgv(), used by backends which run procedures in Python"""
    numTokens = int(argv[1])
    tokens = [str(token) for token in argv[2 : 2 + numTokens]]
    counts = [int(count) for count in argv[2 + numTokens : 2 + 2 * numTokens]]
    return argv[0], tokens, counts


class BayesStorageInterface(ABC):
    """
    Abstract interface for classifier storage operations

    Procedures receive the namespace and a flat argument vector built with
    buildArgv(). Implementations can run them as server-side scripts (Redis)
    or inside a lock-protected critical section (in-memory).
    """

    @abstractmethod
    async def flush(self, namespace: str) -> int:
        """
        Delete every label reachable from the label set and the set itself

        Args:
            namespace: Key prefix of the classifier

        Returns:
            Number of labels deleted
        """
        pass

    @abstractmethod
    async def train(self, namespace: str, argv: Sequence[Any]) -> int:
        """
        Add token counts to a label, creating it if needed

        Args:
            namespace: Key prefix of the classifier
            argv: [label, N, tokens..., counts...]

        Returns:
            New tally of the label
        """
        pass

    @abstractmethod
    async def untrain(self, namespace: str, argv: Sequence[Any]) -> int:
        """
        Remove token counts from a label, deleting exhausted tokens and labels

        Args:
            namespace: Key prefix of the classifier
            argv: [label, N, tokens..., counts...]

        Returns:
            New tally of the label (0 if the label was deleted)
        """
        pass

    @abstractmethod
    async def scores(self, namespace: str, argv: Sequence[Any]) -> List[Any]:
        """
        Compute log-likelihood scores of every label with positive tally

        Args:
            namespace: Key prefix of the classifier
            argv: [correction, N, tokens..., counts...]

        Returns:
            Flat list [label, score, label, score, ...]
        """
        pass

    @abstractmethod
    async def classify(self, namespace: str, argv: Sequence[Any]) -> Optional[Any]:
        """
        Compute the best scoring label

        Args:
            namespace: Key prefix of the classifier
            argv: [correction, N, tokens..., counts...]

        Returns:
            Best label, or None if no label has positive tally
            or no label shares a token with the query
        """
        pass

    @abstractmethod
    async def getLabels(self, namespace: str) -> List[str]:
        """Get members of the label set"""
        pass

    @abstractmethod
    async def getTokenCounts(self, namespace: str, label: str) -> Dict[str, int]:
        """Get the token table of a label"""
        pass

    @abstractmethod
    async def getTally(self, namespace: str, label: str) -> int:
        """Get the tally of a label (0 if absent)"""
        pass

    async def close(self) -> None:
        """Release backend resources, no-op by default"""
        pass

    @abstractmethod
    async def purge(self, namespace: str) -> int:
        """
        Delete every key starting with the namespace

        Not atomic, meant for maintenance only.

        Returns:
            Number of keys deleted
        """
        pass
