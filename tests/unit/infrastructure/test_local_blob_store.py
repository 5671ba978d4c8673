"""
Unit tests for LocalBlobStore.

Covers atomic writes, the size cap, cleanup of partial files, idempotent
deletion and orphan purging.
"""

import io
import os
from unittest.mock import patch

import pytest
from werkzeug.exceptions import ClientDisconnected

from secureshare.domain.errors import BlobNotFoundError, PayloadTooLargeError, StorageError
from secureshare.domain.file_storage.value_objects import FileId
from secureshare.infrastructure.local_blob_store import LocalBlobStore


class FailingStream(io.RawIOBase):
    """Yields some bytes and then fails like a dropped connection."""

    def __init__(self, good_bytes: bytes):
        self._buffer = io.BytesIO(good_bytes)

    def readable(self):
        return True

    def read(self, size=-1):
        data = self._buffer.read(size)
        if not data:
            raise ClientDisconnected()
        return data


def partial_files(store: LocalBlobStore):
    return list(store.partial_path.iterdir())


class TestLocalBlobStoreInit:
    def test_creates_directories(self, tmp_path):
        store = LocalBlobStore(str(tmp_path / "a" / "b"), max_bytes=10)

        assert store.base_path.is_dir()
        assert store.partial_path.is_dir()

    def test_rejects_non_positive_cap(self, tmp_path):
        with pytest.raises(ValueError):
            LocalBlobStore(str(tmp_path), max_bytes=0)


class TestLocalBlobStoreWrite:
    def test_write_then_read_back(self, blob_store):
        file_id = FileId.generate()

        size = blob_store.write(file_id, io.BytesIO(b"hello"))

        assert size == 5
        assert blob_store.exists(file_id)
        with blob_store.open(file_id) as stream:
            assert stream.read() == b"hello"
        assert partial_files(blob_store) == []

    def test_empty_payload(self, blob_store):
        file_id = FileId.generate()

        assert blob_store.write(file_id, io.BytesIO(b"")) == 0
        with blob_store.open(file_id) as stream:
            assert stream.read() == b""

    def test_payload_spanning_many_chunks(self, blob_store):
        file_id = FileId.generate()
        payload = os.urandom(blob_store.chunk_size * 7 + 3)

        assert blob_store.write(file_id, io.BytesIO(payload)) == len(payload)
        with blob_store.open(file_id) as stream:
            assert stream.read() == payload

    def test_payload_exactly_at_cap_is_accepted(self, blob_store):
        file_id = FileId.generate()

        assert blob_store.write(file_id, io.BytesIO(b"x" * blob_store.max_bytes)) == blob_store.max_bytes

    def test_payload_over_cap_leaves_nothing_behind(self, blob_store):
        file_id = FileId.generate()

        with pytest.raises(PayloadTooLargeError) as exc_info:
            blob_store.write(file_id, io.BytesIO(b"x" * (blob_store.max_bytes + 1)))

        assert exc_info.value.limit == blob_store.max_bytes
        assert not blob_store.exists(file_id)
        assert partial_files(blob_store) == []

    def test_aborted_stream_leaves_nothing_behind(self, blob_store):
        file_id = FileId.generate()

        with pytest.raises(ClientDisconnected):
            blob_store.write(file_id, FailingStream(b"partial data"))

        assert not blob_store.exists(file_id)
        assert partial_files(blob_store) == []

    def test_existing_payload_is_never_overwritten(self, blob_store):
        file_id = FileId.generate()
        blob_store.write(file_id, io.BytesIO(b"first"))

        with pytest.raises(StorageError):
            blob_store.write(file_id, io.BytesIO(b"second"))

        with blob_store.open(file_id) as stream:
            assert stream.read() == b"first"

    def test_rename_failure_is_storage_error(self, blob_store):
        file_id = FileId.generate()

        with patch("secureshare.infrastructure.local_blob_store.os.replace",
                   side_effect=OSError("read-only file system")):
            with pytest.raises(StorageError):
                blob_store.write(file_id, io.BytesIO(b"data"))

        assert partial_files(blob_store) == []


class TestLocalBlobStoreReadDelete:
    def test_open_missing_payload(self, blob_store):
        with pytest.raises(BlobNotFoundError):
            blob_store.open(FileId.generate())

    def test_delete_is_idempotent(self, blob_store):
        file_id = FileId.generate()
        blob_store.write(file_id, io.BytesIO(b"data"))

        assert blob_store.delete(file_id) is True
        assert blob_store.delete(file_id) is False
        assert not blob_store.exists(file_id)

    def test_open_reader_survives_delete(self, blob_store):
        file_id = FileId.generate()
        blob_store.write(file_id, io.BytesIO(b"still readable"))

        with blob_store.open(file_id) as stream:
            blob_store.delete(file_id)
            assert stream.read() == b"still readable"

    def test_path_for_stays_inside_base(self, blob_store):
        file_id = FileId.generate()

        path = blob_store.path_for(file_id)

        assert os.path.dirname(path) == str(blob_store.base_path)
        assert os.path.basename(path) == file_id.value


class TestLocalBlobStorePurge:
    def test_purges_unknown_payloads_and_partials(self, blob_store):
        live = FileId.generate()
        orphan = FileId.generate()
        blob_store.write(live, io.BytesIO(b"live"))
        blob_store.write(orphan, io.BytesIO(b"orphan"))
        (blob_store.partial_path / "leftover.tmp").write_bytes(b"half")

        removed = blob_store.purge_orphans([live])

        assert removed == 2
        assert blob_store.exists(live)
        assert not blob_store.exists(orphan)
        assert partial_files(blob_store) == []

    def test_purge_with_no_live_ids_empties_store(self, blob_store):
        for _ in range(3):
            blob_store.write(FileId.generate(), io.BytesIO(b"x"))

        assert blob_store.purge_orphans([]) == 3
        assert [p for p in blob_store.base_path.iterdir() if p.is_file()] == []
