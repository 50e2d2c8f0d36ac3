"""
Asset and Catalog models.

The catalog is a single JSON document stored in the bucket:

    {"assets": [{"assetId", "fileName", "cosObjectKey", "password",
                 "createdAt", "createdBy"}, ...]}

Fields this code does not model are kept and written back unchanged.
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Asset(BaseModel):
    """
    One downloadable file and its access token.

    Attributes:
        asset_id: Unique identifier, <name-without-extension>-<uuid4>
        file_name: Original upload name, used as the download save name
        cos_object_key: Object key holding the bytes (may include a folder prefix)
        password: Plaintext shared secret acting as the download token
        created_at: Registration timestamp (UTC)
        created_by: Email of the uploading administrator
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow"
    )

    asset_id: str
    file_name: str
    cos_object_key: str
    password: str = Field(repr=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    created_by: Optional[str] = None


class Catalog(BaseModel):
    """Ordered list of assets; order is insertion order and carries no meaning."""
    model_config = ConfigDict(extra="allow")

    assets: List[Asset] = Field(default_factory=list)

    @classmethod
    def from_json(cls, raw: bytes) -> "Catalog":
        return cls.model_validate_json(raw)

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True, indent=2).encode("utf-8")

    def find(self, asset_id: str) -> Optional[Asset]:
        for asset in self.assets:
            if asset.asset_id == asset_id:
                return asset
        return None

    def with_asset(self, asset: Asset) -> "Catalog":
        """Return a copy with asset appended. Raises ValueError on a duplicate id."""
        if self.find(asset.asset_id) is not None:
            raise ValueError(f"Duplicate asset id: {asset.asset_id}")
        return self.model_copy(update={"assets": [*self.assets, asset]})

    def without_asset(self, asset_id: str) -> "Catalog":
        return self.model_copy(update={"assets": [a for a in self.assets if a.asset_id != asset_id]})

    def referencing(self, object_key: str) -> List[Asset]:
        """All assets whose bytes live at object_key."""
        return [a for a in self.assets if a.cos_object_key == object_key]
