from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..body_sanitizer import SanitizedBody  # pylint: disable=relative-beyond-top-level


@dataclass
class Part:
    part_number: int
    offset: int
    length: int
    source: "SanitizedBody"
    etag: Optional[str] = None
    last_uploaded_bytes: int = 0

    def read(self) -> bytes | memoryview:
        """Bytes of this part, a view into the body whenever it is in memory."""
        return self.source.read_range(self.offset, self.length)
