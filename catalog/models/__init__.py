"""
Catalog models package.
"""
from .asset import Asset, Catalog

__all__ = [
    "Asset",
    "Catalog",
]
