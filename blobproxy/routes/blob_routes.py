"""Blob store API routes."""

from fastapi import APIRouter, Depends

from blobproxy.schemas.blobs import DeleteBlobRequest, DeleteBlobResponse
from blobproxy.schemas.common import ErrorResponse
from common.logging_config import get_logger
from manager.blobstore_client import BlobStoreClient
from manager.exceptions import BlobDeleteFailedError, InvalidArgumentError

logger = get_logger(__name__)

router = APIRouter(prefix="/blobs", tags=["Blobs"])

_blob_client: BlobStoreClient = None


def set_blob_client(client: BlobStoreClient):
    """Set the global blob store client instance"""
    global _blob_client
    _blob_client = client


def get_blob_client() -> BlobStoreClient:
    """Dependency to get the blob store client, created from the environment on first use"""
    global _blob_client
    if _blob_client is None:
        _blob_client = BlobStoreClient()
    return _blob_client


@router.post(
    "/delete",
    response_model=DeleteBlobResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def delete_blob(
    request: DeleteBlobRequest,
    blob_client: BlobStoreClient = Depends(get_blob_client),
):
    """
    Delete a blob with a signed request so the API secret never leaves the server.

    Parameters:
        - publicId: Blob reference returned by the upload
        - resourceType: image, video or raw (default image)

    Returns:
        - success: True once the blob is gone

    Raises:
        - 400: Public ID missing
        - 500: Blob store not configured, or the blob store refused the delete
        - 503: Blob store unreachable
    """
    if not request.public_id:
        raise InvalidArgumentError("Public ID is required")

    deleted = await blob_client.delete_by_ref(request.public_id, request.resource_type)
    if not deleted:
        raise BlobDeleteFailedError(f"Failed to delete blob {request.public_id}")

    logger.info(f"Blob deleted via proxy [blob_ref={request.public_id}] [resource_type={request.resource_type}]")
    return DeleteBlobResponse(success=True)
