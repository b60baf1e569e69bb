"""Error taxonomy for the SafeDrive backend"""


class SafeDriveError(Exception):
    """Base class for errors raised by the service layer"""


class ValidationError(SafeDriveError):
    """Ingestion payload failed schema validation; never persisted"""

    def __init__(self, entity: str, reason: str):
        self.entity = entity
        self.reason = reason
        super().__init__(f"Invalid {entity} data: {reason}")


class AuthError(SafeDriveError):
    """Missing or invalid shared-secret credential"""


class StorageError(SafeDriveError):
    """Record store failed to complete a read or write"""


class UpstreamUnavailable(SafeDriveError):
    """Weather provider unreachable or returned unusable data"""


class NotificationError(SafeDriveError):
    """Mail dispatch failed"""


class InvalidInputError(SafeDriveError):
    """Risk query parameters are missing or malformed"""
