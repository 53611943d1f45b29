"""Utility modules for docqa.

- **errors** -- Domain-specific exception hierarchy rooted at DocQAError;
  each pipeline stage raises its own subclass so the API layer can map
  failures to the right status code.
- **concurrency** -- ``with_timeout`` bound for embedding and LLM calls.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from docqa.utils.concurrency import with_timeout
from docqa.utils.errors import (
    ConfigurationError,
    DocQAError,
    ExtractionError,
    IngestionError,
    LLMError,
    QueryError,
    ReindexError,
    ServiceTimeoutError,
    StoreError,
)
from docqa.utils.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "ConfigurationError",
    "DocQAError",
    "ExtractionError",
    "IngestionError",
    "LLMError",
    "QueryError",
    "ReindexError",
    "ServiceTimeoutError",
    "StoreError",
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "get_logger",
    "with_timeout",
]
