from .history import HistoryRecorder, JsonlHistoryRecorder
from .record_store import JsonRecordStore, RecordStore

__all__ = ["RecordStore", "JsonRecordStore", "HistoryRecorder", "JsonlHistoryRecorder"]
