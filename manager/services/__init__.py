"""Service layer coordinating the metadata and blob stores."""

from manager.services.upload_service import UploadCoordinator
from manager.services.delete_service import DeleteCoordinator

__all__ = [
    "UploadCoordinator",
    "DeleteCoordinator",
]
