"""Pydantic schemas for API requests and responses."""

from blobproxy.schemas.blobs import DeleteBlobRequest, DeleteBlobResponse
from blobproxy.schemas.common import ErrorResponse

__all__ = [
    "DeleteBlobRequest",
    "DeleteBlobResponse",
    "ErrorResponse",
]
