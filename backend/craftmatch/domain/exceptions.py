"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class InvalidRequestError(Exception):
    """Raised when a match request is malformed (e.g. empty query text).

    Rejected before any classification work begins.
    """

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)


class RetrievalUnavailableError(Exception):
    """Raised when the candidate profile store cannot be reached.

    Fatal to the request; never retried automatically.
    """

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        detail = f": {type(cause).__name__}" if cause else ""
        super().__init__(f"Profile store unavailable during {operation}{detail}")


class ClassificationDegradedError(Exception):
    """Raised by the AI fallback classifier when it cannot produce a usable result.

    Recovered by the orchestrator, which keeps the heuristic result.
    """

    def __init__(self, reason: str, attempts: int = 0):
        self.reason = reason
        self.attempts = attempts
        super().__init__(f"AI classification degraded after {attempts} attempt(s): {reason}")


class CacheUnavailableError(Exception):
    """Raised when the query analysis cache cannot serve a lookup or write."""


class MatchingPipelineError(Exception):
    """Wraps an unexpected failure caught at the orchestrator boundary."""

    def __init__(self, search_id: str, cause: Exception):
        self.search_id = search_id
        self.cause = cause
        super().__init__(f"Matching pipeline failed for search '{search_id}'")


class ChatProviderError(Exception):
    """Raised when a chat provider returns an error.

    Provider-agnostic — works for OpenRouter, Groq, OpenAI, etc.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")
