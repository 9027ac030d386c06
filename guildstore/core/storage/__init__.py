"""Record storage for guild data."""

from guildstore.core.storage.record_store import Record, RecordStore, YamlRecordStore

__all__ = ["Record", "RecordStore", "YamlRecordStore"]
