"""
Default tokenizer and tokenizer contract check, dood!

A tokenizer is any callable turning an item into a mapping of token to
positive occurrence count. The classifier does not care how tokens are
produced, WordTokenizer is a simple text implementation used by the CLI.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .exceptions import TokenizerContractError
from .models import MAX_COUNT


@dataclass
class TokenizerConfig:
    """Configuration for word tokenizer"""

    minTokenLength: int = 1
    maxTokenLength: int = 50
    lowercase: bool = True
    removeUrls: bool = False
    useBigrams: bool = False  # Include word pairs
    stopwords: Set[str] = field(default_factory=set)  # Words to ignore

    def __post_init__(self):
        """Validate tokenizer configuration"""
        if self.minTokenLength < 1:
            raise ValueError("minTokenLength must be at least 1")
        if self.maxTokenLength < self.minTokenLength:
            raise ValueError("maxTokenLength must be >= minTokenLength")


class WordTokenizer:
    """
    Splits text into words and counts occurrences

    Example:
        >>> WordTokenizer()("Nigeria needs your help, help!")
        {'nigeria': 1, 'needs': 1, 'your': 1, 'help': 2}
    """

    def __init__(self, config: Optional[TokenizerConfig] = None):
        self.config = config or TokenizerConfig()

        self._urlPattern = re.compile(r"https?://\S+|www\.\S+")
        self._wordPattern = re.compile(r"\b\w+\b")

    def __call__(self, item: Any) -> Dict[str, int]:
        return self.countTokens(item)

    def tokenize(self, text: str) -> List[str]:
        """
        Convert text into list of tokens

        Args:
            text: Text to tokenize

        Returns:
            List of tokens in order of appearance (words, then bigrams)
        """
        if not text or not text.strip():
            return []

        if self.config.removeUrls:
            text = self._urlPattern.sub(" ", text)
        if self.config.lowercase:
            text = text.lower()

        words = [
            word
            for word in self._wordPattern.findall(text)
            if self.config.minTokenLength <= len(word) <= self.config.maxTokenLength
            and word.lower() not in self.config.stopwords
        ]

        tokens = words.copy()
        if self.config.useBigrams and len(words) > 1:
            tokens.extend(f"{words[i]}_{words[i + 1]}" for i in range(len(words) - 1))

        return tokens

    def countTokens(self, item: Any) -> Dict[str, int]:
        """Get token => occurrences mapping for an item"""
        counts: Dict[str, int] = {}
        for token in self.tokenize(str(item)):
            counts[token] = counts.get(token, 0) + 1
        return counts


def validateOccurrences(occurrences: Any) -> Dict[str, int]:
    """
    Check tokenizer output against the tokenizer contract

    Args:
        occurrences: Whatever the tokenizer returned

    Returns:
        Plain dict copy of the occurrences

    Raises:
        TokenizerContractError: If it is not a mapping of non-empty string
            tokens to integer counts in 1..MAX_COUNT
    """
    if not isinstance(occurrences, Mapping):
        raise TokenizerContractError(f"tokenizer() didn't return a mapping, got {type(occurrences).__name__}")

    ret: Dict[str, int] = {}
    for token, count in occurrences.items():
        if not isinstance(token, str) or not token:
            raise TokenizerContractError(f"Token must be a non-empty string, got {token!r}")
        if isinstance(count, bool) or not isinstance(count, int):
            raise TokenizerContractError(f"Count of token '{token}' must be an integer, got {type(count).__name__}")
        if count <= 0:
            raise TokenizerContractError(f"Count of token '{token}' must be positive, got {count}")
        if count > MAX_COUNT:
            raise TokenizerContractError(f"Count of token '{token}' exceeds {MAX_COUNT}, got {count}")
        ret[token] = count

    return ret
