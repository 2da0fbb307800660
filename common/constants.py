"""Project-wide constants (page sizes, collection names, blob store limits)."""

DEFAULT_PAGE_SIZE: int = 500
DEEP_SEARCH_MIN_LENGTH: int = 2

DEFAULT_UPLOAD_CONCURRENCY: int = 3

GLOBAL_SCOPE_KEY: str = "global"
GLOBAL_COLLECTION: str = "media_assets"
ZONE_COLLECTION: str = "zone_media_assets"

BLOB_STORE_TIMEOUT_SECONDS: int = 120
BLOB_STORE_DEFAULT_BASE_URL: str = "https://api.cloudinary.com"

DEFAULT_FOLDER_PREFIX: str = "media-library"
