"""Utility helper functions for the media synchronization layer."""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from common.types import AssetRecord, AssetType

logger = logging.getLogger(__name__)

BLOB_FOLDERS = {
    AssetType.IMAGE: "images",
    AssetType.AUDIO: "audio",
    AssetType.VIDEO: "videos",
    AssetType.DOCUMENT: "documents",
}


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def classify_content_type(content_type: Optional[str]) -> AssetType:
    """
    Map a MIME type to the asset type it is stored as.

    Args:
        content_type: MIME type (e.g., "audio/mpeg"); empty or unknown types are documents

    Returns:
        AssetType for the content
    """
    mime = (content_type or "").lower()
    if mime.startswith("image/"):
        return AssetType.IMAGE
    if mime.startswith("audio/"):
        return AssetType.AUDIO
    if mime.startswith("video/"):
        return AssetType.VIDEO
    return AssetType.DOCUMENT


def resource_type_for_content_type(content_type: Optional[str]) -> str:
    """
    Blob store resource class for a MIME type. The CDN stores audio under
    its video pipeline and everything that is not media as raw.
    """
    mime = (content_type or "").lower()
    if mime.startswith("image/"):
        return "image"
    if mime.startswith("video/") or "audio" in mime:
        return "video"
    return "raw"


def resource_type_hint(record: AssetRecord) -> str:
    """
    Resource class to pass to the blob store when deleting a record's blob.

    Args:
        record: Asset record being deleted

    Returns:
        Stored resource type if known, otherwise one derived from the asset type
    """
    if record.resource_type:
        return record.resource_type
    if record.type in (AssetType.AUDIO, AssetType.VIDEO):
        return "video"
    if record.type == AssetType.DOCUMENT:
        return "raw"
    return "image"


def blob_folder_for(asset_type: AssetType, prefix: str) -> str:
    return f"{prefix}/{BLOB_FOLDERS[asset_type]}"


def file_format(name: str) -> str:
    """Extension of a file name without the dot, or an empty string."""
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def case_variants(keyword: str) -> List[str]:
    """
    Case spellings a case-sensitive store has to be queried with to find a keyword.

    Args:
        keyword: Search keyword as typed

    Returns:
        Lower case, Title case and UPPER case spellings without duplicates
    """
    variants = [keyword.lower()]

    title_case = keyword[:1].upper() + keyword[1:].lower()
    if title_case not in variants:
        variants.append(title_case)

    upper_case = keyword.upper()
    if upper_case not in variants:
        variants.append(upper_case)

    return variants


def emit_notice(on_notice, notice) -> None:
    """
    Hand a notice to the caller's callback, if any. A failing callback is
    logged and never interrupts the store operation that produced the notice.
    """
    if on_notice is None:
        return
    try:
        on_notice(notice)
    except Exception as e:
        logger.error(f"Notice callback failed: {e}", exc_info=True)
