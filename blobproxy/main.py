"""Entry point for the blob-delete proxy service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from blobproxy.config import PROXY_HOST, PROXY_PORT, PROXY_RELOAD
from blobproxy.routes.blob_routes import router as blob_router
from blobproxy.routes.blob_routes import set_blob_client
from common.logging_config import setup_logging
from manager.exceptions import (
    BlobDeleteFailedError,
    BlobStoreNotConfiguredError,
    InvalidArgumentError,
    MediaSyncException,
    StoreUnavailableError,
)

logger = setup_logging('blobproxy')

app = FastAPI(
    title="Media Sync Blob Proxy",
    description="Signs and forwards blob store deletes on behalf of the media library",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("shutdown")
async def shutdown_event():
    """
    Close the blob store client on application shutdown.
    """
    from blobproxy.routes.blob_routes import _blob_client

    logger.info("Blob proxy shutting down...")
    if _blob_client is not None:
        await _blob_client.close()
        set_blob_client(None)
        logger.info("Blob store client closed")


@app.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid argument error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "INVALID_ARGUMENT"}
    )


@app.exception_handler(BlobStoreNotConfiguredError)
async def blob_store_not_configured_handler(request: Request, exc: BlobStoreNotConfiguredError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Blob store not configured: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Cloudinary credentials not configured", "code": "BLOB_STORE_NOT_CONFIGURED"}
    )


@app.exception_handler(BlobDeleteFailedError)
async def blob_delete_failed_handler(request: Request, exc: BlobDeleteFailedError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Blob delete failed: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "DELETE_FAILED"}
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Store unavailable error: {exc} [request_id={request_id}] [store={exc.store}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "code": "STORE_UNAVAILABLE"}
    )


@app.exception_handler(MediaSyncException)
async def media_sync_exception_handler(request: Request, exc: MediaSyncException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Media sync exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


app.include_router(blob_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for container healthchecks.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "blobproxy"}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "blobproxy.main:app",
        host=PROXY_HOST,
        port=PROXY_PORT,
        reload=PROXY_RELOAD
    )


if __name__ == "__main__":
    main()
