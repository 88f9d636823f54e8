from dataclasses import dataclass, field
from typing import Any, Optional

from .completed_part import CompletedPart  # pylint: disable=relative-beyond-top-level
from .part import Part  # pylint: disable=relative-beyond-top-level


@dataclass
class UploadSession:
    key: str
    total_bytes: int = 0
    body: Any = None
    upload_id: Optional[str] = None
    completed_parts: list[CompletedPart] = field(default_factory=list)
    bytes_uploaded: int = 0

    def record(self, part: Part) -> None:
        if not part.etag:
            raise ValueError(f"Part {part.part_number} has no ETag")
        if any(done["PartNumber"] == part.part_number for done in self.completed_parts):
            raise ValueError(f"Part {part.part_number} already recorded")
        self.completed_parts.append(
            CompletedPart(PartNumber=part.part_number, ETag=part.etag)
        )

    def manifest(self) -> list[CompletedPart]:
        return sorted(self.completed_parts, key=lambda p: p["PartNumber"])

    def reset(self) -> None:
        self.body = None
        self.completed_parts = []
        self.bytes_uploaded = 0
        self.total_bytes = 0
