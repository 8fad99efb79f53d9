"""Storage service exceptions."""


class StorageError(Exception):
    """Base storage exception."""
    pass


class NotFoundError(StorageError):
    """Object not found in storage."""
    pass


class PermissionDeniedError(StorageError):
    """Permission denied for storage operation."""
    pass


class TransientError(StorageError):
    """Transient error (network, throttling, server error); safe to retry."""
    pass


class ConfigurationError(StorageError):
    """Storage configuration error."""
    pass


class ValidationError(StorageError):
    """Invalid key or argument (e.g. path escaping the storage root)."""
    pass


class SigningError(StorageError):
    """Presigned URL could not be produced."""
    pass


class ObjectExistsError(StorageError):
    """Conditional write refused: the key already holds an object."""
    pass
