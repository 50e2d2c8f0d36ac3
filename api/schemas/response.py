"""
Response schemas for API endpoints.
Field names go out in camelCase to match the catalog document.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


class AssetResponse(CamelModel):
    """Response schema for a single catalog asset"""
    asset_id: str
    file_name: str
    cos_object_key: str
    password: str
    created_at: datetime
    created_by: Optional[str] = None


class AssetListResponse(CamelModel):
    success: bool = True
    assets: List[AssetResponse]


class UploadResponse(CamelModel):
    """Response schema for a completed upload"""
    success: bool = True
    asset: AssetResponse
    download_url: str


class ObjectResponse(CamelModel):
    """Response schema for a bucket listing entry"""
    key: str
    size: int
    last_modified: Optional[datetime] = None


class ObjectListResponse(CamelModel):
    success: bool = True
    files: List[ObjectResponse]


class SuccessResponse(CamelModel):
    success: bool = True


