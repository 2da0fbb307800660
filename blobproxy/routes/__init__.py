"""API routes package."""

from blobproxy.routes.blob_routes import router as blob_router

__all__ = ["blob_router"]
