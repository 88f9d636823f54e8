import io
from threading import Lock
from typing import Callable, Optional

from .logger import logger
from .models.part import Part
from .models.progress_event import ProgressEvent

ProgressSink = Callable[[ProgressEvent], None]
ProgressListener = Callable[[int], None]

# listener key of a body sent with a single PUT
SINGLE_PUT = 0


class ProgressAggregator:
    """
    Folds per-part byte positions reported by the transport into one
    monotonically non-decreasing counter and forwards it to the sink.

    Listeners are registered per part and have to be deregistered once the
    part transfer is over, a deregistered listener ignores further ticks.
    """

    def __init__(self, key: str, total: int, sink: Optional[ProgressSink] = None):
        self.key = key
        self.total = total
        self._sink = sink
        self._loaded = 0
        self._listeners: dict[int, ProgressListener] = {}
        self._lock = Lock()

    @property
    def loaded(self) -> int:
        return self._loaded

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def register(self, part: Part) -> ProgressListener:
        def listener(position: int) -> None:
            with self._lock:
                if self._listeners.get(part.part_number) is not listener:
                    return
                # rewound reads (retries, checksums) report positions seen before
                delta = max(0, position - part.last_uploaded_bytes)
                part.last_uploaded_bytes = max(part.last_uploaded_bytes, position)
                self._add(part.part_number, delta)

        with self._lock:
            self._listeners[part.part_number] = listener
        return listener

    def register_body(self) -> ProgressListener:
        """Listener for a body uploaded with a single PUT."""
        uploaded = Part(
            part_number=SINGLE_PUT, offset=0, length=self.total, source=None
        )
        return self.register(uploaded)

    def deregister(self, part: Part) -> None:
        with self._lock:
            self._listeners.pop(part.part_number, None)

    def release_all(self) -> None:
        with self._lock:
            self._listeners.clear()

    def _add(self, part_number: int, delta: int) -> None:
        self._loaded += delta
        if self._sink is None:
            return
        event = ProgressEvent(
            loaded=self._loaded,
            total=self.total,
            part=None if part_number == SINGLE_PUT else part_number,
            key=self.key,
        )
        try:
            self._sink(event)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception(
                "Progress sink failed",
                extra={"key": self.key, "part_number": part_number},
            )


class PartBodyReader(io.RawIOBase):
    """
    Seekable read-only view over the bytes of one part, reports the position
    reached after every read to the progress listener.

    Progress counts bytes read, not bytes acknowledged by the store. botocore
    reads the whole part once for its checksum before sending it, so a part
    reaches its full length when the checksum is computed and later rereads
    are clamped away by the aggregator.
    """

    def __init__(self, data: bytes | memoryview, listener: Optional[ProgressListener]):
        super().__init__()
        self._data = memoryview(data)
        self._position = 0
        self._listener = listener

    def __len__(self) -> int:
        return self._data.nbytes

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = self._data.nbytes + offset
        else:
            raise ValueError(f"Invalid whence {whence}")
        self._position = min(max(position, 0), self._data.nbytes)
        return self._position

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = self._data.nbytes - self._position
        chunk = self._data[self._position : self._position + size]
        self._position += chunk.nbytes
        if self._listener is not None:
            self._listener(self._position)
        return chunk.tobytes()

    def readinto(self, buffer) -> int:
        chunk = self.read(len(buffer))
        buffer[: len(chunk)] = chunk
        return len(chunk)
