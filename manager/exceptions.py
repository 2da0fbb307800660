"""Custom exception classes for the media synchronization layer."""


class MediaSyncException(Exception):
    """
    Base exception class for all media synchronization errors.
    """
    pass


class StoreUnavailableError(MediaSyncException):
    """
    Raised when the metadata store or the blob store call fails outright
    (network, auth, quota). Always surfaced to the user with a retry option.
    """

    def __init__(self, message: str, store: str = "metadata"):
        super().__init__(message)
        self.store = store


class InvalidArgumentError(MediaSyncException):
    """
    Raised when a precondition is violated before any remote call is made,
    e.g. a deep search keyword that is too short or an empty upload batch.
    """
    pass


class InvalidStateError(MediaSyncException):
    """
    Raised on programming-level misuse, e.g. fetching a next page before
    the first page was fetched. Not user-facing.
    """
    pass


class AssetNotFoundError(MediaSyncException):
    """
    Raised when a requested asset record does not exist in the metadata store.
    """
    pass


class BlobStoreNotConfiguredError(MediaSyncException):
    """
    Raised when the blob store credentials required for an operation are missing.
    """
    pass


class BlobDeleteFailedError(MediaSyncException):
    """
    Raised when the blob store answered a delete request without removing the blob.
    """
    pass
