import io
import time
from threading import Lock
from typing import BinaryIO, Callable, Optional
from uuid import uuid4

import pytest
from faker import Faker

from chunk_upload_service.models.completed_part import CompletedPart
from chunk_upload_service.models.destination import Destination
from chunk_upload_service.models.upload_request import UploadRequest
from chunk_upload_service.s3_client import PutObjectResult
from chunk_upload_service.schemas import ChunkUploadConfig, S3ServiceConfig

fake = Faker()

PART_SIZE = 16
QUEUE_SIZE = 4


class FakeObjectStoreClient:
    """In-memory object store, records every call it receives."""

    # pylint: disable=too-many-instance-attributes
    def __init__(self) -> None:
        self.lock = Lock()
        self.objects: dict[str, bytes] = {}
        self.uploads: dict[str, dict[int, bytes]] = {}
        self.calls: list[str] = []
        self.part_log: list[tuple[str, int]] = []
        self.failing_parts: set[int] = set()
        self.part_delays: dict[int, float] = {}
        self.on_upload_part: Optional[Callable[[int], None]] = None
        self.fail_create = False
        self.fail_complete = False
        self.fail_abort = False
        self.residual_listings: list[int] = []
        self.keep_parts_after_abort = False
        self.completed_manifest: list[CompletedPart] = []
        self.part_sizes: dict[int, int] = {}

    def _record(self, call: str) -> None:
        with self.lock:
            self.calls.append(call)

    def put_object(self, request: UploadRequest, body: BinaryIO) -> PutObjectResult:
        self._record("put_object")
        self.objects[request.key] = _transfer(body)
        return PutObjectResult(key=request.key, etag=f'"{uuid4().hex}"')

    def create_multipart_upload(self, request: UploadRequest) -> str:
        self._record("create_multipart_upload")
        if self.fail_create:
            raise RuntimeError("create failed")
        upload_id = uuid4().hex
        self.uploads[upload_id] = {}
        return upload_id

    def upload_part(
        self, upload_id: str, part_number: int, body: BinaryIO, request: UploadRequest
    ) -> str:
        self._record("upload_part")
        with self.lock:
            self.part_log.append(("start", part_number))
        try:
            if self.on_upload_part is not None:
                self.on_upload_part(part_number)
            if delay := self.part_delays.get(part_number):
                time.sleep(delay)
            if part_number in self.failing_parts:
                raise RuntimeError(f"part {part_number} failed")
            data = _transfer(body)
            with self.lock:
                self.uploads[upload_id][part_number] = data
                self.part_sizes[part_number] = len(data)
            return f'"etag-{part_number}"'
        finally:
            with self.lock:
                self.part_log.append(("end", part_number))

    def complete_multipart_upload(
        self, upload_id: str, request: UploadRequest, parts: list[CompletedPart]
    ) -> str:
        self._record("complete_multipart_upload")
        if self.fail_complete:
            raise RuntimeError("complete failed")
        stored = self.uploads.pop(upload_id)
        self.objects[request.key] = b"".join(
            stored[part["PartNumber"]] for part in parts
        )
        self.completed_manifest = parts
        return request.key

    def abort_multipart_upload(self, upload_id: str, request: UploadRequest) -> None:
        self._record("abort_multipart_upload")
        if self.fail_abort:
            raise RuntimeError("abort failed")
        if not self.keep_parts_after_abort:
            self.uploads.pop(upload_id, None)

    def list_parts(self, upload_id: str, request: UploadRequest) -> list[CompletedPart]:
        self._record("list_parts")
        if self.residual_listings:
            count = self.residual_listings.pop(0)
            return [
                CompletedPart(PartNumber=number, ETag=f'"etag-{number}"')
                for number in range(1, count + 1)
            ]
        return [
            CompletedPart(PartNumber=number, ETag=f'"etag-{number}"')
            for number in sorted(self.uploads.get(upload_id, {}))
        ]


class ShortReadStream(io.RawIOBase):
    """Seekable raw stream returning at most `max_read` bytes per read."""

    def __init__(self, payload: bytes, max_read: int = 3) -> None:
        super().__init__()
        self._buffer = io.BytesIO(payload)
        self._max_read = max_read

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._buffer.seek(offset, whence)

    def tell(self) -> int:
        return self._buffer.tell()

    def readinto(self, buffer) -> int:
        chunk = self._buffer.read(min(self._max_read, len(buffer)))
        buffer[: len(chunk)] = chunk
        return len(chunk)


def _transfer(body: BinaryIO) -> bytes:
    # checksum pass first, then the actual transfer in small reads
    body.read()
    body.seek(0)
    chunks = []
    while chunk := body.read(5):
        chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def store_client() -> FakeObjectStoreClient:
    return FakeObjectStoreClient()


@pytest.fixture
def upload_config() -> ChunkUploadConfig:
    return ChunkUploadConfig(queue_size=QUEUE_SIZE, default_part_size=PART_SIZE)


@pytest.fixture
def destination() -> Destination:
    return Destination(bucket=fake.user_name(), key=fake.file_path(depth=2))


@pytest.fixture
def s3_config() -> S3ServiceConfig:
    return S3ServiceConfig(
        s3_access_key=fake.password(),
        s3_endpoint_url=fake.url(),
        s3_secret_key=fake.password(),
    )
