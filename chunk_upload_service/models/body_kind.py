from enum import Enum


class BodyKind(Enum):
    BYTES = "bytes"
    TEXT = "text"
    STRUCTURED = "structured"
    STREAM = "stream"
    FILE = "file"
