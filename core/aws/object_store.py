"""
Object store interface shared by both services.
The catalog document and the asset payloads live behind this interface.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List, Optional, Protocol, runtime_checkable


@dataclass
class ObjectInfo:
    """Listing entry for a stored object"""
    key: str
    size: int
    last_modified: Optional[datetime] = None


@runtime_checkable
class ObjectStream(Protocol):
    """Chunked, closable read of a single object."""

    def iter_chunks(self) -> Iterator[bytes]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """
    Key/byte-blob storage.

    Implementations raise ObjectStoreException subclasses, never raw
    transport errors; a missing key is always ObjectNotFoundError.
    """

    def get_object(self, key: str) -> bytes:
        ...

    def open_object_stream(self, key: str, chunk_size: int) -> ObjectStream:
        ...

    def put_object(self, key: str, data: bytes, content_type: str) -> None:
        ...

    def delete_object(self, key: str) -> None:
        ...

    def list_objects(self, prefix: str = "") -> List[ObjectInfo]:
        ...
