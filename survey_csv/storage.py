"""
Persistence for the survey dataset.

The dataset lives as one CSV text blob under a fixed key in a text store.
Stores are injected; SurveyStorage never reaches for a global backend.

Backends:
- MemoryStore: dict-backed, for tests and embedding
- FileStore: one file per key under a data directory, atomic replace on write

append() is a read-modify-write cycle. It is serialised with a lock inside
one process; separate processes writing the same file can still lose
updates.
"""

from __future__ import annotations

import codecs
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from charset_normalizer import from_bytes

from .codec import decode, encode
from .models import SurveyRecord
from .rules import STORAGE_KEY

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base error for text store failures."""


class StorageReadError(StorageError):
    pass


class StorageWriteError(StorageError):
    pass


class TextStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, text: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, text: str) -> None:
        self._data[key] = text


def decode_text(raw: bytes) -> str:
    """
    Decode stored bytes to text.

    Rules:
    - Plain UTF-8 without a BOM is what FileStore writes; it is returned
      verbatim, so CR inside field values survives.
    - UTF-8 with a BOM is an export put back in place; BOM is dropped.
    - Otherwise use charset-normalizer's best guess (spreadsheets often
      re-save as cp950/Big5).
    - If that fails too, decode UTF-8 with replacement characters.
    - Only foreign files (BOM or non-UTF-8) get CRLF/CR normalised to LF.
    """
    if raw.startswith(codecs.BOM_UTF8):
        text = raw[len(codecs.BOM_UTF8):].decode("utf-8", errors="replace")
    else:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            match = from_bytes(raw).best()
            if match is not None:
                logger.warning("Stored CSV is not UTF-8; decoded as %s", match.encoding)
                text = str(match)
            else:
                logger.warning("Stored CSV encoding not detected; decoding with replacement")
                text = raw.decode("utf-8", errors="replace")

    return text.replace("\r\n", "\n").replace("\r", "\n")


class FileStore:
    """Keeps each key in <directory>/<key>.csv, UTF-8 without BOM."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.csv"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageReadError(f"Failed to read {path}: {e}") from e
        return decode_text(raw)

    def set(self, key: str, text: str) -> None:
        path = self.path_for(key)
        tmp_name = None
        try:
            data = text.encode("utf-8")
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, UnicodeEncodeError) as e:
            raise StorageWriteError(f"Failed to write {path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)


class SurveyStorage:
    """Load-all / append-one operations over a keyed CSV blob."""

    def __init__(self, store: TextStore, key: str = STORAGE_KEY) -> None:
        self.store = store
        self.key = key
        self._lock = threading.Lock()

    def _load(self) -> List[SurveyRecord]:
        try:
            text = self.store.get(self.key)
        except StorageReadError:
            raise
        except (OSError, StorageError) as e:
            raise StorageReadError(f"Failed to read {self.key!r}: {e}") from e

        if not text:
            return []
        return decode(text)

    def read_all(self) -> List[SurveyRecord]:
        """Return every stored record in submission order. Never raises."""
        try:
            return self._load()
        except StorageReadError as e:
            logger.warning("Reading %r failed, treating as empty: %s", self.key, e)
            return []

    def append(self, record: Union[SurveyRecord, Dict[str, Any]]) -> SurveyRecord:
        """
        Add one record at the end of the dataset and persist the whole file.

        Raises:
            StorageReadError: if the current text cannot be read. Nothing is
                written, so earlier responses are not overwritten.
            StorageWriteError: if the store rejects the write. The previously
                stored text is left as it was.
        """
        if not isinstance(record, SurveyRecord):
            record = SurveyRecord(**record)

        with self._lock:
            records = self._load()
            records.append(record)
            text = encode(records)
            try:
                self.store.set(self.key, text)
            except StorageWriteError:
                raise
            except (OSError, StorageError) as e:
                raise StorageWriteError(f"Failed to store {self.key!r}: {e}") from e

        logger.info("Appended survey response (%d total)", len(records))
        return record

    def export_text(self) -> str:
        return encode(self.read_all())


__all__ = [
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "TextStore",
    "MemoryStore",
    "FileStore",
    "SurveyStorage",
    "decode_text",
]
