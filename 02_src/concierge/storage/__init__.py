"""Storage module."""

from .dynamodb import DynamoRecordStore
from .storage import IPreferenceStore, IRecordStore, IStorage, Storage

__all__ = ["DynamoRecordStore", "IPreferenceStore", "IRecordStore", "IStorage", "Storage"]
