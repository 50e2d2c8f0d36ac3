"""
Custom exceptions for the Portus services.
All exceptions inherit from base PortusException.
"""


# ============================================================================
# Base Exception
# ============================================================================

class PortusException(Exception):
    """Base exception for all application errors"""
    def __init__(self, message: str, detail: dict = None):
        self.message = message
        self.detail = detail or {}
        super().__init__(self.message)


# ============================================================================
# Request Exceptions
# ============================================================================

class BadRequestError(PortusException):
    """Required request fields are missing or empty"""


class WeakPasswordError(PortusException):
    """Asset password does not satisfy the password policy"""


class AssetNotFoundError(PortusException):
    """Asset id is not present in the catalog"""


class ForbiddenError(PortusException):
    """Presented download token does not match the asset password"""


# ============================================================================
# Availability Exceptions
# ============================================================================

class ServiceUnavailableError(PortusException):
    """Backing storage could not be reached or returned unusable data"""


class CatalogUnavailableError(ServiceUnavailableError):
    """Catalog document could not be fetched or parsed"""


class CatalogWriteError(CatalogUnavailableError):
    """Catalog document could not be written back"""


class PartialFailureError(PortusException):
    """
    A mutation completed only one of its two writes.

    detail carries what was left behind: the orphaned object key after a
    failed registration, or the dangling asset id after a failed revoke.
    """


# ============================================================================
# Object Store Exceptions
# ============================================================================

class ObjectStoreException(ServiceUnavailableError):
    """Base exception for object store errors"""


class ObjectNotFoundError(ObjectStoreException):
    """Object key doesn't exist in the bucket"""


class ObjectStoreAccessDeniedError(ObjectStoreException):
    """Bucket missing or access denied (credentials/permissions issue)"""


class ObjectStoreReadError(ObjectStoreException):
    """Failed to read or list objects"""


class ObjectStoreWriteError(ObjectStoreException):
    """Failed to write an object"""


class ObjectStoreDeleteError(ObjectStoreException):
    """Failed to delete an object"""


# ============================================================================
# Admin Session Exceptions
# ============================================================================

class NotAuthenticatedError(PortusException):
    """No authenticated administrator session"""


class InvalidCredentialsError(PortusException):
    """Administrator login rejected"""
