from dataclasses import dataclass
from typing import Optional

from .upload_method import UploadMethod  # pylint: disable=relative-beyond-top-level


@dataclass
class UploadResponseDto:
    method: UploadMethod
    key: str
    etag: Optional[str] = None
    upload_id: Optional[str] = None
    parts_count: int = 0
