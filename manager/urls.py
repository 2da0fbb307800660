"""Delivery URL transformations for assets served by the CDN."""

import re

UPLOAD_SEGMENT = "/upload/"
CDN_MARKER = "cloudinary"


def _transform(url: str, transformation: str) -> str:
    if not url or CDN_MARKER not in url:
        return url
    parts = url.split(UPLOAD_SEGMENT)
    if len(parts) != 2:
        return url
    return f"{parts[0]}{UPLOAD_SEGMENT}{transformation}/{parts[1]}"


def optimized_image_url(url: str, width: int = 800, quality: int = 80) -> str:
    return _transform(url, f"w_{width},q_{quality},f_auto")


def audio_stream_url(url: str) -> str:
    return _transform(url, "q_auto,fl_streaming_attachment")


def video_stream_url(url: str, quality: str = "auto") -> str:
    return _transform(url, f"q_{quality},f_auto")


def thumbnail_url(url: str, width: int = 300) -> str:
    """
    Square JPEG thumbnail of an image or the first frame of a video.
    """
    if not url or CDN_MARKER not in url:
        return url
    parts = url.split(UPLOAD_SEGMENT)
    if len(parts) != 2:
        return url
    path = re.sub(r"\.[^./]+$", ".jpg", parts[1])
    return f"{parts[0]}{UPLOAD_SEGMENT}w_{width},h_{width},c_fill,f_jpg/{path}"
