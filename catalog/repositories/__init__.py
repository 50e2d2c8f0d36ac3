"""
Repository package for catalog operations.
"""
from .catalog_repository import CatalogRepository

__all__ = [
    "CatalogRepository",
]
