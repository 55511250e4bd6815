class RatingCoreException(Exception):
    """Base exception for all rating-core errors."""
    pass

class NotFoundError(RatingCoreException):
    """Raised when the addressed entity does not exist in the store."""
    def __init__(self, entity_id: str, message: str = "Entity not found."):
        self.entity_id = entity_id
        super().__init__(f"{message} id={entity_id}")

class UnavailableError(RatingCoreException):
    """Raised when the backing store cannot be reached. Safe to retry."""
    pass

class ConflictError(RatingCoreException):
    """Raised on a duplicate id or a concurrent modification."""
    def __init__(self, entity_id: str, message: str = "Conflicting write."):
        self.entity_id = entity_id
        super().__init__(f"{message} id={entity_id}")

class RejectedError(RatingCoreException):
    """Raised when a strategy refuses an operation for a domain reason."""
    def __init__(self, reason_code: str, message: str = ""):
        self.reason_code = reason_code
        super().__init__(message or reason_code)


class UseCaseError(RatingCoreException):
    """Terminal failure of a use case. The original error is kept as `cause`."""
    retryable = False

    def __init__(self, message: str, cause: Exception = None):
        self.cause = cause
        super().__init__(message)

class DomainNotFound(UseCaseError):
    """The resource does not exist."""
    pass

class InfrastructureUnavailable(UseCaseError):
    """Storage could not be reached; the caller may retry."""
    retryable = True

class DomainConflict(UseCaseError):
    """The entity changed or vanished between load and persist."""
    pass

class DomainRejected(UseCaseError):
    """The injected strategy refused the operation."""
    def __init__(self, message: str, reason_code: str, cause: Exception = None):
        self.reason_code = reason_code
        super().__init__(message, cause)
