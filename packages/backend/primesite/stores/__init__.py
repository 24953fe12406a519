from .local_drafts import LocalDraftStore
from .remote_records import RemoteRecordStore

__all__ = ["LocalDraftStore", "RemoteRecordStore"]
