"""Error types raised by the retrieval engine.

Only caller contract violations propagate out of the engine. Embedding
failures are converted into ``EmbeddingUnavailable`` results by the provider
and never reach the caller as exceptions.
"""


class RetrievalError(Exception):
    """Base class for retrieval engine errors."""


class InvalidFilterCombinationError(RetrievalError, ValueError):
    """Caller-supplied filters are malformed.

    Attributes:
        field: Name of the offending filter field, when known.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class EmbeddingClientError(RetrievalError):
    """The external embedding API call failed.

    Raised by embedding clients; the provider catches it and degrades to an
    unavailable result.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
