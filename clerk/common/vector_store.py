"""
Vector Store

Flat JSON file of chunk records. The whole file is read before every
operation and rewritten after every mutation; a missing file is an empty
store. An in-process lock serializes load-modify-save cycles. Separate
processes writing the same file are still last-writer-wins.
"""

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Union

from .errors import InvalidArgument, StorageFailure

logger = logging.getLogger("clerk.common.vector_store")

ID_SEPARATOR = "::"


@dataclass
class ChunkRecord:
    """One embedded chunk of a source document"""
    identifier: str
    parent_identifier: str
    text: str
    embedding: List[float] = field(default_factory=list)

    @staticmethod
    def make_identifier(parent_identifier: str, index: int) -> str:
        return f"{parent_identifier}{ID_SEPARATOR}{index}"

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "parentIdentifier": self.parent_identifier,
            "text": self.text,
            "embedding": self.embedding,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChunkRecord":
        return cls(
            identifier=data["identifier"],
            parent_identifier=data["parentIdentifier"],
            text=data["text"],
            embedding=[float(v) for v in data["embedding"]],
        )


class VectorStore:
    """
    File-backed, append-only collection of ChunkRecords.

    Usage:
        store = VectorStore("~/.clerk/vector_store.json")
        records = store.load()
        with store.transaction() as records:
            records.append(record)   # saved on exit
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> List[ChunkRecord]:
        """Read every record from disk. Missing file -> empty list."""
        with self._lock:
            return self._read()

    def save(self, records: List[ChunkRecord]) -> None:
        """Overwrite the file with ``records``."""
        with self._lock:
            self._write(records)

    @contextmanager
    def transaction(self) -> Iterator[List[ChunkRecord]]:
        """Hold the store lock across load, caller mutation and save.

        The save only happens when the block exits without an exception.
        """
        with self._lock:
            records = self._read()
            yield records
            self._write(records)

    def append(self, new_records: List[ChunkRecord]) -> int:
        """Append records and persist once. Returns the new store size."""
        with self.transaction() as records:
            check_consistency(records, new_records)
            records.extend(new_records)
            return len(records)

    def append_document(
        self,
        parent_identifier: str,
        texts: List[str],
        embeddings: List[List[float]],
    ) -> List[ChunkRecord]:
        """Append one document's chunks as ``<parent>::<n>`` records.

        Numbering continues after any chunks already stored for the parent,
        so re-indexing a document never reuses an identifier. Returns the
        records that were added.
        """
        with self._lock:
            offset = sum(1 for r in self._read() if r.parent_identifier == parent_identifier)
            new_records = [
                ChunkRecord(
                    identifier=ChunkRecord.make_identifier(parent_identifier, offset + i),
                    parent_identifier=parent_identifier,
                    text=text,
                    embedding=embedding,
                )
                for i, (text, embedding) in enumerate(zip(texts, embeddings))
            ]
            self.append(new_records)
        return new_records

    def count(self) -> int:
        return len(self.load())

    def _read(self) -> List[ChunkRecord]:
        if not self._path.exists():
            return []

        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageFailure(f"Vector store {self._path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StorageFailure(f"Cannot read vector store {self._path}: {e}") from e

        if not isinstance(data, list):
            raise StorageFailure(f"Vector store {self._path} must contain a JSON array")

        try:
            return [ChunkRecord.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageFailure(f"Malformed record in vector store {self._path}: {e}") from e

    def _write(self, records: List[ChunkRecord]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump([r.to_dict() for r in records], f, ensure_ascii=False)
        except OSError as e:
            raise StorageFailure(f"Cannot write vector store {self._path}: {e}") from e

        logger.debug("Saved %d records to %s", len(records), self._path)


def check_consistency(existing: List[ChunkRecord], new_records: List[ChunkRecord]) -> None:
    """Enforce unique identifiers and a single embedding dimension."""
    seen = {r.identifier for r in existing}
    dims = {len(r.embedding) for r in existing[:1]}
    for record in new_records:
        if record.identifier in seen:
            raise InvalidArgument(f"Duplicate chunk identifier: {record.identifier}")
        seen.add(record.identifier)
        dims.add(len(record.embedding))
    if len(dims) > 1:
        raise InvalidArgument(f"Embedding dimension mismatch: {sorted(dims)}")
