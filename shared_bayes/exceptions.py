"""
Shared Bayes exceptions

This module defines the exception hierarchy for the classifier.
All classifier-related errors inherit from BayesError base class.
Errors coming from the Redis client are never wrapped and propagate as-is,
except the out-of-range refusal the procedures send themselves.
"""


class BayesError(Exception):
    """
    Base exception for all classifier errors.

    Catch this to handle any classifier error generically.
    """

    pass


class ClassifierConfigError(BayesError):
    """
    Exception raised when classifier configuration is invalid.

    This exception is raised before any store access when:
    - Namespace is missing or empty
    - Tokenizer is missing or not callable
    - Correction constant is not a positive number
    - Label is empty or collides with a bookkeeping key
    - Configuration file is missing or malformed
    """

    pass


class TokenizerContractError(BayesError):
    """
    Exception raised when a tokenizer returns something other than
    a mapping of non-empty string tokens to positive integer counts.
    """

    pass


class StorageProcedureError(BayesError):
    """
    Exception raised when an atomic procedure refuses its arguments or
    returns a reply which cannot be parsed.

    Raised when:
    - A count or the resulting tally would exceed MAX_COUNT (nothing is written)
    - A procedure name is unknown to the backend
    - A scores reply has odd length or a non-numeric score
    """

    pass
