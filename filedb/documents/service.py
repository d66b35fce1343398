"""
FileDB Document Store — Logged access to named JSON documents on disk.

Handles:
- Create / read / delete of whole documents (one file per document)
- Read-modify-write of single top-level properties
- Merging every stored document into one aggregate file
- Key-set comparisons between two documents

Every public operation appends exactly one line to the audit log, on
success and on failure, before returning or raising.

Failure policy per operation:

    create_file   InvalidArgumentError / ConflictError      raised
    get_file      NotFoundError                             raised
    get           NotFoundError raised; missing key         logged, returns None
    set           NotFoundError                             raised
    remove        NotFoundError raised; missing key         logged as success
    delete_file   missing document                          logged, returns False
    merge_data    StorageIOError (any file aborts merge)    raised

Physical storage:
    {storage.data_dir}/{name}        e.g. db/scott.json
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from filedb.documents.models import SEED_DOCUMENTS
from filedb.engine.audit import AuditLog
from filedb.engine.config import FileDBConfig
from filedb.engine.errors import (
    ConflictError,
    FileDBError,
    InvalidArgumentError,
    NotFoundError,
    StorageIOError,
)

logger = logging.getLogger("filedb.documents.service")


def _render(value: Any) -> str:
    """Audit-friendly text for a property value."""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


class DocumentStore:
    """
    File-backed JSON document store.

    With ``lock_documents`` enabled, each document name has an asyncio.Lock
    held across every read-modify-write cycle, so concurrent set/remove calls
    on one document serialize instead of losing updates. Without it the
    last writer wins, but writes are still whole-file atomic replacements
    and the document stays valid JSON.
    """

    def __init__(
        self,
        data_dir: Path | str,
        audit: AuditLog,
        extension: str = ".json",
        merge_file: Optional[Path | str] = None,
        exclude: Iterable[str] = ("package",),
        lock_documents: bool = True,
        indent: Optional[int] = None,
    ):
        self._data_dir = Path(data_dir)
        self._audit = audit
        self._extension = extension
        self._merge_file = Path(merge_file) if merge_file else self._data_dir.parent / "merge.json"
        self._exclude = tuple(exclude)
        self._lock_documents = lock_documents
        self._indent = indent
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_config(cls, config: FileDBConfig) -> "DocumentStore":
        return cls(
            data_dir=config.data_path,
            audit=AuditLog(config.log_path),
            extension=config.storage.extension,
            merge_file=config.merge_path,
            exclude=config.storage.exclude,
            lock_documents=config.storage.lock_documents,
            indent=config.storage.indent,
        )

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def audit(self) -> AuditLog:
        return self._audit

    @property
    def merge_file(self) -> Path:
        return self._merge_file

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------

    async def _log(self, message: str, error: bool = False) -> None:
        await asyncio.to_thread(self._audit.append, message, error)

    async def _reject(self, err: FileDBError) -> FileDBError:
        """Audit-log a failure and hand it back for raising."""
        logger.debug(repr(err))
        await self._log(err.message, error=True)
        return err

    @contextlib.asynccontextmanager
    async def _lock_for(self, name: str):
        """
        Hold the per-document lock for ``name``.

        Entries live only while some caller holds or waits on them, so names
        that never existed or were deleted leave nothing behind.
        """
        if not self._lock_documents:
            yield
            return
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
            self._lock_users[name] = 0
        self._lock_users[name] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[name] -= 1
            if not self._lock_users[name]:
                del self._locks[name]
                del self._lock_users[name]

    def _check_name(self, name: Any, operation: str, require_extension: bool = False) -> str:
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(
                "Filename is missing", parameter="fileName", operation=operation,
            )
        if "/" in name or "\\" in name or name in (".", ".."):
            raise InvalidArgumentError(
                f"invalid file name {name}", parameter="fileName",
                document=name, operation=operation,
            )
        if require_extension and (
            not name.endswith(self._extension) or name == self._extension
        ):
            raise InvalidArgumentError(
                f"only files with {self._extension} extension allowed",
                parameter="fileName", document=name, operation=operation,
            )
        return name

    def _path(self, name: str) -> Path:
        return self._data_dir / name

    def _read_object(self, name: str, operation: str) -> Dict[str, Any]:
        """Read and parse one document. Runs in a worker thread."""
        path = self._path(name)
        try:
            raw = path.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError):
            raise NotFoundError(
                f"No such file or directory {name}", document=name, operation=operation,
            )
        except OSError as e:
            raise StorageIOError(
                f"Could not read {name}: {e.strerror or e}", document=name, operation=operation,
            ) from e
        try:
            content = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageIOError(
                f"{name} is not valid JSON: {e.msg}", document=name, operation=operation,
            ) from e
        if not isinstance(content, dict):
            raise StorageIOError(
                f"{name} does not contain a JSON object", document=name, operation=operation,
            )
        return content

    def _write_atomic(self, path: Path, content: Any) -> None:
        """Write JSON to a temp file beside ``path`` then rename over it."""
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(content, f, indent=self._indent)
            os.replace(tmp, path)
        except BaseException:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise

    def _write_object(self, name: str, content: Dict[str, Any], operation: str) -> None:
        try:
            self._write_atomic(self._path(name), content)
        except OSError as e:
            raise StorageIOError(
                f"Could not write {name}: {e.strerror or e}", document=name, operation=operation,
            ) from e

    def _create_empty(self, name: str) -> None:
        """Link a finished ``{}`` temp file into place; fails if ``name`` exists."""
        path = self._path(name)
        tmp = path.with_name(f".{name}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            tmp.write_text("{}", encoding="utf-8")
            os.link(tmp, path)
        except FileExistsError:
            raise ConflictError(f"{name} already exists", document=name, operation="create")
        except OSError as e:
            raise StorageIOError(
                f"Could not create {name}: {e.strerror or e}", document=name, operation="create",
            ) from e
        finally:
            with contextlib.suppress(OSError):
                tmp.unlink()

    def _document_names(self) -> List[str]:
        merge_path = self._merge_file.resolve()
        names = []
        for entry in self._data_dir.iterdir():
            if not entry.is_file() or entry.name.startswith("."):
                continue
            if not entry.name.endswith(self._extension):
                continue
            if any(pattern in entry.name for pattern in self._exclude):
                continue
            if entry.resolve() == merge_path:
                continue
            names.append(entry.name)
        return sorted(names)

    def _stem(self, name: str) -> str:
        return name[: -len(self._extension)]

    @staticmethod
    def has_key(content: Dict[str, Any], key: str) -> bool:
        """Explicit presence check; falsy stored values still count as present."""
        return key in content

    # -------------------------------------------------------------------
    # Whole documents
    # -------------------------------------------------------------------

    async def create_file(self, name: str) -> str:
        """
        Create a new document containing ``{}``.

        Raises InvalidArgumentError for a missing name or wrong extension
        (storage untouched) and ConflictError if the document exists.
        """
        try:
            self._check_name(name, "create", require_extension=True)
            async with self._lock_for(name):
                await asyncio.to_thread(self._create_empty, name)
        except FileDBError as e:
            raise await self._reject(e)
        await self._log(f"{name}: created")
        logger.info(f"Created document {name}")
        return name

    async def get_file(self, name: str) -> bytes:
        """Return the raw, unparsed content of a document."""
        try:
            self._check_name(name, "get_file")
            raw = await asyncio.to_thread(self._path(name).read_bytes)
        except FileDBError as e:
            raise await self._reject(e)
        except (FileNotFoundError, IsADirectoryError):
            raise await self._reject(NotFoundError(
                f"No such file or directory {name}", document=name, operation="get_file",
            ))
        except OSError as e:
            raise await self._reject(StorageIOError(
                f"Could not read {name}: {e.strerror or e}", document=name, operation="get_file",
            ))
        await self._log(raw.decode("utf-8", errors="replace"))
        return raw

    async def delete_file(self, name: str) -> bool:
        """
        Remove a document. A missing document is logged as an error and
        reported by returning False; it is never raised.
        """
        try:
            self._check_name(name, "delete")
            async with self._lock_for(name):
                await asyncio.to_thread(self._path(name).unlink)
        except FileDBError as e:
            raise await self._reject(e)
        except (FileNotFoundError, IsADirectoryError):
            await self._log(f"{name} does not exist", error=True)
            return False
        except OSError as e:
            raise await self._reject(StorageIOError(
                f"Could not delete {name}: {e.strerror or e}", document=name, operation="delete",
            ))
        await self._log(f"{name} successfully deleted")
        logger.info(f"Deleted document {name}")
        return True

    async def list_files(self) -> List[str]:
        """Names of all stored documents, sorted."""
        try:
            names = await asyncio.to_thread(self._document_names)
        except OSError as e:
            raise await self._reject(StorageIOError(
                f"Could not list {self._data_dir}: {e.strerror or e}", operation="list",
            ))
        await self._log(f"{len(names)} documents listed")
        return names

    # -------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------

    async def get(self, name: str, key: str) -> Any:
        """
        Return ``content[key]``.

        A key that is not present is logged as an invalid key and yields
        None. Stored falsy values (0, "", false, null) are real values.
        """
        try:
            self._check_name(name, "get")
            content = await asyncio.to_thread(self._read_object, name, "get")
        except FileDBError as e:
            raise await self._reject(e)
        if not self.has_key(content, key):
            await self._log(f"{key} invalid key on {name}", error=True)
            return None
        value = content[key]
        await self._log(_render(value))
        return value

    async def set(self, name: str, key: str, value: Any) -> None:
        """Assign ``content[key] = value`` and rewrite the whole document."""
        try:
            self._check_name(name, "set")
            async with self._lock_for(name):
                content = await asyncio.to_thread(self._read_object, name, "set")
                content[key] = value
                await asyncio.to_thread(self._write_object, name, content, "set")
        except FileDBError as e:
            raise await self._reject(e)
        await self._log(f"{key}: {_render(value)} set in {name}")

    async def remove(self, name: str, key: str) -> bool:
        """
        Delete ``content[key]`` and rewrite the document. Removing an absent
        key is a logged no-op. Returns whether the key was present.
        """
        try:
            self._check_name(name, "remove")
            async with self._lock_for(name):
                content = await asyncio.to_thread(self._read_object, name, "remove")
                present = self.has_key(content, key)
                if present:
                    del content[key]
                    await asyncio.to_thread(self._write_object, name, content, "remove")
        except FileDBError as e:
            raise await self._reject(e)
        await self._log(f"{key} deleted from {name}")
        return present

    # -------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------

    def _merge(self) -> Dict[str, Any]:
        names = self._document_names()
        merged = {self._stem(name): self._read_object(name, "merge") for name in names}
        self._merge_file.parent.mkdir(parents=True, exist_ok=True)
        self._write_atomic(self._merge_file, merged)
        return merged

    async def merge_data(self) -> Dict[str, Any]:
        """
        Combine every document into ``{stem: content}`` and write it to the
        merge file. One unreadable document aborts the whole merge.
        """
        try:
            merged = await asyncio.to_thread(self._merge)
        except (FileDBError, OSError) as e:
            detail = e.message if isinstance(e, FileDBError) else (e.strerror or str(e))
            await self._log(f"merged unsuccessfully {detail}", error=True)
            raise StorageIOError(f"merged unsuccessfully {detail}", operation="merge") from e
        await self._log("Merged successfully")
        logger.info(f"Merged {len(merged)} documents into {self._merge_file}")
        return merged

    async def _key_sets(self, a: str, b: str, operation: str) -> tuple:
        self._check_name(a, operation)
        self._check_name(b, operation)
        first = await asyncio.to_thread(self._read_object, a, operation)
        second = await asyncio.to_thread(self._read_object, b, operation)
        return list(first), list(second)

    async def union(self, a: str, b: str) -> List[str]:
        """
        Keys present in either document, without duplicates.

        Example:
            union('scott.json', 'andrew.json')
            # ['firstname', 'lastname', 'email', 'username']
        """
        try:
            first, second = await self._key_sets(a, b, "union")
        except FileDBError as e:
            raise await self._reject(e)
        keys = first + [k for k in second if k not in first]
        await self._log(f"union of {a} and {b}: {', '.join(keys)}")
        return keys

    async def intersect(self, a: str, b: str) -> List[str]:
        """Keys both documents share, in the first document's order."""
        try:
            first, second = await self._key_sets(a, b, "intersect")
        except FileDBError as e:
            raise await self._reject(e)
        keys = [k for k in first if k in second]
        await self._log(f"intersection of {a} and {b}: {', '.join(keys)}")
        return keys

    async def difference(self, a: str, b: str) -> List[str]:
        """
        Keys present in exactly one of the two documents.

        Example:
            difference('scott.json', 'andrew.json')
            # ['username']
        """
        try:
            first, second = await self._key_sets(a, b, "difference")
        except FileDBError as e:
            raise await self._reject(e)
        keys = [k for k in first if k not in second] + [k for k in second if k not in first]
        await self._log(f"difference of {a} and {b}: {', '.join(keys)}")
        return keys

    # -------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------

    def _reset(self) -> List[str]:
        for name, content in SEED_DOCUMENTS.items():
            self._write_atomic(self._path(name), content)
        self._audit.truncate()
        return list(SEED_DOCUMENTS)

    async def reset(self) -> List[str]:
        """
        Rewrite the seed documents and empty the audit log. Other documents
        are left alone.
        """
        try:
            names = await asyncio.to_thread(self._reset)
        except OSError as e:
            raise await self._reject(StorageIOError(
                f"reset failed: {e.strerror or e}", operation="reset",
            ))
        await self._log("database reset")
        logger.info(f"Reset seed documents: {', '.join(names)}")
        return names
