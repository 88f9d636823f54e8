import dataclasses
import io
import json
import os
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

import fsspec
from pydantic import BaseModel

from .exceptions import PayloadTooLarge, UnsupportedBodyType, UploadError
from .logger import logger
from .models.body_kind import BodyKind

_STRUCTURED_TYPES = (dict, list, tuple, int, float, bool)


@dataclass
class SanitizedBody:
    kind: BodyKind
    byte_length: int
    data: Any
    start: int = 0
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def read_range(self, offset: int, length: int) -> bytes | memoryview:
        if offset < 0 or offset + length > self.byte_length:
            raise ValueError(
                f"Range {offset}:{offset + length} outside of body of "
                f"{self.byte_length} Bytes"
            )
        if self.kind == BodyKind.FILE:
            return local_filesystem().cat_file(
                os.fspath(self.data), start=offset, end=offset + length
            )
        if self.kind == BodyKind.STREAM:
            # parts are read from worker threads sharing one file object
            with self._lock:
                self.data.seek(self.start + offset)
                return self._read_exactly(offset, length)
        return self.data[offset : offset + length]

    def _read_exactly(self, offset: int, length: int) -> bytes:
        # raw streams may return fewer bytes than asked for
        chunks = []
        remaining = length
        while remaining > 0:
            chunk = self.data.read(remaining)
            if not chunk:
                raise UploadError(
                    f"Stream ended {remaining} Bytes before the end of range "
                    f"{offset}:{offset + length}"
                )
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)


def local_filesystem() -> fsspec.AbstractFileSystem:
    return fsspec.filesystem("file")


def sanitize(
    body: Any, max_object_size: int, key: str | None = None
) -> SanitizedBody:
    """
    Resolve the kind of the body once and compute its byte length.

    Byte payloads are passed through as a memoryview, text and structured
    payloads are encoded exactly once. Raises `PayloadTooLarge` before any
    network call when the body exceeds `max_object_size`.
    """
    try:
        sanitized = _normalize(body)
    except UnsupportedBodyType as exception:
        exception.key = key
        logger.error(
            "Cannot determine length of body",
            extra={"key": key, "body_type": type(body).__name__},
        )
        raise exception
    logger.debug(
        "Body sanitized",
        extra={
            "key": key,
            "kind": sanitized.kind.value,
            "byte_length": sanitized.byte_length,
        },
    )
    if sanitized.byte_length > max_object_size:
        raise PayloadTooLarge(
            size=sanitized.byte_length, limit=max_object_size, key=key
        )
    return sanitized


def _normalize(body: Any) -> SanitizedBody:
    if body is None:
        return _in_memory(BodyKind.BYTES, b"")
    if isinstance(body, (bytes, bytearray, memoryview)):
        return _in_memory(BodyKind.BYTES, body)
    if isinstance(body, str):
        return _in_memory(BodyKind.TEXT, body.encode("utf-8"))
    if isinstance(body, os.PathLike):
        return SanitizedBody(
            kind=BodyKind.FILE,
            byte_length=local_filesystem().size(os.fspath(body)),
            data=body,
        )
    if _is_stream(body):
        return _from_stream(body)
    if isinstance(body, BaseModel) or (
        dataclasses.is_dataclass(body) and not isinstance(body, type)
    ):
        return _in_memory(BodyKind.STRUCTURED, _serialize(body))
    if isinstance(body, _STRUCTURED_TYPES):
        return _in_memory(BodyKind.STRUCTURED, _serialize(body))
    if _supports_buffer(body):
        return _in_memory(BodyKind.BYTES, body)
    raise UnsupportedBodyType(type(body))


def _in_memory(
    kind: BodyKind, payload: bytes | bytearray | memoryview
) -> SanitizedBody:
    view = memoryview(payload)
    if view.c_contiguous:
        view = view.cast("B")
    else:
        view = memoryview(view.tobytes())
    return SanitizedBody(kind=kind, byte_length=view.nbytes, data=view)


def _supports_buffer(body: Any) -> bool:
    try:
        memoryview(body)
    except TypeError:
        return False
    return True


def _is_stream(body: Any) -> bool:
    return all(callable(getattr(body, name, None)) for name in ("read", "seek", "tell"))


def _from_stream(stream: Any) -> SanitizedBody:
    if isinstance(stream, io.TextIOBase):
        raise UnsupportedBodyType(type(stream))
    if callable(getattr(stream, "seekable", None)) and not stream.seekable():
        raise UnsupportedBodyType(type(stream))
    try:
        start = stream.tell()
        stream.seek(0, io.SEEK_END)
        end = stream.tell()
        stream.seek(start)
    except (OSError, ValueError) as exception:
        raise UnsupportedBodyType(type(stream)) from exception
    return SanitizedBody(
        kind=BodyKind.STREAM, byte_length=end - start, data=stream, start=start
    )


def _serialize(body: Any) -> bytes:
    payload = body
    if isinstance(body, BaseModel):
        payload = body.model_dump(mode="json")
    elif dataclasses.is_dataclass(body):
        payload = dataclasses.asdict(body)
    try:
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exception:
        raise UnsupportedBodyType(type(body)) from exception
