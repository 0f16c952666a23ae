"""Custom exception hierarchy for the knowledge hub.

All application exceptions inherit from :class:`KnowledgeHubError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "sqlite_article_store", "document_converter") raised the
failure, and a class-level ``status_code`` used by the API error middleware.

The hierarchy is organized by where the failure originates:

    KnowledgeHubError  (base -- catch-all for any knowledge hub error)
    +-- ValidationError           (missing/invalid caller input)        400
    +-- DuplicateIdentifierError  (identifier collision on insert)      409
    +-- NotFoundError             (no record for an identifier)         404
    +-- NoSectionsFoundError      (splitter found nothing to import)    400
    +-- ExtractionError           (document converter produced no text) 400
    |   +-- UnsupportedFormatError
    +-- StoreUnavailableError     (persistence layer unreachable)       503
    +-- AuthenticationError       (missing/invalid credentials)         401
    +-- AuthorizationError        (identity lacks the required role)    403
    +-- ConfigurationError        (startup / missing config)            500

Bulk operations report DuplicateIdentifierError per item instead of raising,
so a single collision never aborts a batch.
"""


class KnowledgeHubError(Exception):
    """Base exception for all knowledge hub errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  The ``__str__`` method prefixes the provider name in
    brackets for structured log output, e.g. ``[sqlite_article_store] ...``.
    """

    status_code: int = 500

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
# Caller input errors
# ---------------------------------------------------------------------------

class ValidationError(KnowledgeHubError):
    """Raised when a required field is missing or a value is invalid.

    Raised before any write happens, so there are no partial side effects.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid request",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NoSectionsFoundError(KnowledgeHubError):
    """Raised when non-empty input yields zero sections for the chosen strategy."""

    status_code = 400

    def __init__(
        self,
        message: str = "No sections found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence errors
# ---------------------------------------------------------------------------

class DuplicateIdentifierError(KnowledgeHubError):
    """Raised when an article identifier already exists in the store."""

    status_code = 409

    def __init__(
        self,
        identifier: str,
        message: str | None = None,
        provider_name: str | None = None,
    ) -> None:
        self._identifier = identifier
        super().__init__(
            message=message or f"Article {identifier} already exists",
            provider_name=provider_name,
        )

    @property
    def identifier(self) -> str:
        return self._identifier


class NotFoundError(KnowledgeHubError):
    """Raised when no article matches the requested identifier."""

    status_code = 404

    def __init__(
        self,
        message: str = "Not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreUnavailableError(KnowledgeHubError):
    """Raised when the persistence layer cannot be reached.

    No retry is attempted here; retry policy belongs to the storage layer.
    """

    status_code = 503

    def __init__(
        self,
        message: str = "Article store is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Document extraction errors
# ---------------------------------------------------------------------------

class ExtractionError(KnowledgeHubError):
    """Raised when a document converter yields no usable text."""

    status_code = 400

    def __init__(
        self,
        message: str = "No text extracted",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedFormatError(ExtractionError):
    """Raised when no converter handles the declared file extension."""

    def __init__(
        self,
        message: str = "Unsupported document format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Identity errors
# ---------------------------------------------------------------------------

class AuthenticationError(KnowledgeHubError):
    """Raised when a request carries no token or an invalid/expired one."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AuthorizationError(KnowledgeHubError):
    """Raised when an authenticated identity lacks the required role."""

    status_code = 403

    def __init__(
        self,
        message: str = "Not allowed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Startup errors
# ---------------------------------------------------------------------------

class ConfigurationError(KnowledgeHubError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
