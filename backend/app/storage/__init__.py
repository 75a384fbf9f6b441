from .records import COLLECTIONS, JsonRecordStore, MemoryRecordStore, RecordStore
