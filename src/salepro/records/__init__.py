"""Record storage layer -- pluggable entity stores over the hosted record API.

Provides abstract RecordStore interface with concrete implementations:
- RemoteRecordStore: Hosted record API via an injected RecordStoreClient
- InMemoryRecordStore: Dict-backed store for development and tests
- build_stores: Builds one store per entity for the configured backend
"""

from src.salepro.records.adapter import RecordStore
from src.salepro.records.client import RecordStoreClient
from src.salepro.records.memory import InMemoryRecordStore
from src.salepro.records.registry import RecordStores, build_stores
from src.salepro.records.remote import RemoteRecordStore

__all__ = [
    "RecordStore",
    "RecordStoreClient",
    "RemoteRecordStore",
    "InMemoryRecordStore",
    "RecordStores",
    "build_stores",
]
