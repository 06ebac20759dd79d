"""
Exceptions raised by the service layer.

Hierarchy:
- ServiceError
  - StoreError (persistence)
    - StoreUnavailable
  - ExportError (PDF rendering / writing)
  - AuthError (identity operations)

Absence is not an exception: store lookups return None / False when a
composition does not exist or belongs to someone else.
"""


class ServiceError(Exception):
    """Base exception for all service-layer errors."""
    retryable: bool = False


class StoreError(ServiceError):
    retryable = True


class StoreUnavailable(StoreError):
    """The database could not be reached or rejected the write."""
    retryable = True


class ExportError(ServiceError):
    retryable = False


class AuthError(ServiceError):
    retryable = False


class InvalidCredentials(AuthError):
    pass


class AccountConflict(AuthError):
    """Email or username already registered to another account."""
    pass


class InvalidRefreshToken(AuthError):
    pass
