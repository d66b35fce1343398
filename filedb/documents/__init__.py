"""
FileDB Documents — the file-backed JSON document store.

Physical storage: {storage.data_dir}/{name}.json
"""

from filedb.documents.models import FileRequest, KeyRequest, SetRequest
from filedb.documents.service import DocumentStore

__all__ = [
    "DocumentStore",
    "FileRequest",
    "KeyRequest",
    "SetRequest",
]
