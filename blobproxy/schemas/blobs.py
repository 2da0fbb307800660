"""Pydantic schemas for blob endpoints."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class DeleteBlobRequest(BaseModel):
    """Request model for deleting a blob by its public id."""
    model_config = ConfigDict(populate_by_name=True)

    public_id: Optional[str] = Field(default=None, alias="publicId")
    resource_type: Literal["image", "video", "raw"] = Field(default="image", alias="resourceType")


class DeleteBlobResponse(BaseModel):
    """Response model for a successful blob delete."""
    success: bool
