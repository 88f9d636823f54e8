from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ProgressEvent:
    loaded: int
    total: int
    part: Optional[int]
    key: str
