"""Custom exception hierarchy for docqa.

All application exceptions inherit from :class:`DocQAError`, which carries an
optional ``provider_name`` so error handlers can identify which external
service (e.g. "openai", "anthropic", "chromadb") caused the failure.

The hierarchy is organized by pipeline stage:

    DocQAError  (base -- catch-all for any docqa error)
    +-- ExtractionError      (file unreadable / unsupported format)
    +-- IngestionError       (one upload failed somewhere in the pipeline)
    +-- StoreError           (embedding service or vector database failure)
    +-- QueryError           (invalid question, e.g. empty)
    +-- ReindexError         (full rebuild of the collection failed)
    +-- LLMError             (language-model call failure)
    +-- ServiceTimeoutError  (a bounded network call expired)
    +-- ConfigurationError   (startup / missing config)

The action layer (``docqa.api.middleware``) turns every one of these into a
structured ``{"success": false, "error": ...}`` response.
"""


class DocQAError(Exception):
    """Base exception for all docqa errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    output, e.g. ``[openai_embedding] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ExtractionError(DocQAError):
    """Raised when a file cannot be read or is not a supported format."""

    def __init__(
        self,
        message: str = "Document text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IngestionError(DocQAError):
    """Raised when ingesting a single uploaded file fails at any step."""

    def __init__(
        self,
        message: str = "Document ingestion failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ReindexError(DocQAError):
    """Raised when rebuilding the embedding collection fails.

    Per-file extraction failures during a reindex are logged and skipped,
    they never surface as this error.
    """

    def __init__(
        self,
        message: str = "Reindexing failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Retrieval / generation errors
# ---------------------------------------------------------------------------

class StoreError(DocQAError):
    """Raised when the embedding service or the vector database fails."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QueryError(DocQAError):
    """Raised when a question cannot be answered as asked (e.g. it is empty)."""

    def __init__(
        self,
        message: str = "No query provided",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(DocQAError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ServiceTimeoutError(DocQAError, TimeoutError):
    """Raised when an embedding or LLM call exceeds its time budget.

    Also a :class:`TimeoutError`, so callers can tell a slow provider apart
    from a failing one without knowing about the docqa hierarchy.
    """

    def __init__(
        self,
        message: str = "External service call timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Startup errors
# ---------------------------------------------------------------------------

class ConfigurationError(DocQAError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
