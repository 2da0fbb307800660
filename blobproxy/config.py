"""Configuration settings for the blob-delete proxy service."""

import os


PROXY_HOST = os.environ.get("MEDIASYNC_PROXY_HOST", "0.0.0.0")

PROXY_PORT = int(os.environ.get("MEDIASYNC_PROXY_PORT", "8000"))

PROXY_RELOAD = os.environ.get("MEDIASYNC_PROXY_RELOAD", "false").lower() == "true"
