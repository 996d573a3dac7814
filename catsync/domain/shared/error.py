"""Error hierarchy for catsync.

Error layers:
- CatSyncError: Base class for all catsync errors
- DomainError: Business rule violations, validation failures (4xx responses)
- InfrastructureError: System-level failures like store/network issues (503 responses)
- Sync errors: per-event and per-entity failures of the synchronization engine.
  These never reach the HTTP layer; they are routed to the retry queue or logged.

Domain and infrastructure errors are mapped to HTTP responses by the global
exception handler in app.py.
"""


class CatSyncError(Exception):
    """Base class for all catsync errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (business logic violations - typically 4xx)
# =============================================================================


class DomainError(CatSyncError):
    """Base class for domain/business errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


# =============================================================================
# Infrastructure Errors (system-level failures - typically 503)
# =============================================================================


class InfrastructureError(CatSyncError):
    """Base class for infrastructure/system errors."""


class StorageUnavailableError(InfrastructureError):
    """Cache store could not be read."""


class StoreWriteError(InfrastructureError):
    """Cache store or search index rejected a write. Retryable."""


class SearchUnavailableError(InfrastructureError):
    """Search index could not answer a query."""


class FeedConnectionError(InfrastructureError):
    """Change feed subscription dropped. Not retried automatically."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""


# =============================================================================
# Sync Errors
# =============================================================================


class ReferenceResolutionError(CatSyncError):
    """Category lookup against the upstream catalog failed.

    An absent category is not an error; this is raised only when the
    lookup itself errors.
    """

    def __init__(self, category_id: str, cause: BaseException) -> None:
        super().__init__(f"Failed to resolve category '{category_id}': {cause}")
        self.category_id = category_id
        self.cause = cause


class SyncError(CatSyncError):
    """Failure to apply one change event to the downstream stores.

    Wraps the first adapter (or enrichment) error encountered.
    """

    def __init__(self, entity_id: str, cause: BaseException) -> None:
        super().__init__(f"Failed to sync '{entity_id}': {cause}")
        self.entity_id = entity_id
        self.cause = cause


class BootstrapError(CatSyncError):
    """Reconciliation of a single entity failed during bootstrap."""

    def __init__(self, entity_id: str, cause: BaseException) -> None:
        super().__init__(f"Failed to reconcile '{entity_id}': {cause}")
        self.entity_id = entity_id
        self.cause = cause
