"""Repository layer for data access."""

from manager.repositories.asset_repository import AssetRepository

__all__ = [
    "AssetRepository",
]
