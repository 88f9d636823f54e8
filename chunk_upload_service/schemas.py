from pydantic.dataclasses import dataclass

from .constants import (
    DEFAULT_PART_SIZE,
    DEFAULT_QUEUE_SIZE,
    MAX_OBJECT_SIZE,
    MAX_PART_COUNT,
    MAX_PART_SIZE,
)


@dataclass
class ChunkUploadConfig:
    # pylint: disable=too-many-instance-attributes
    queue_size: int = DEFAULT_QUEUE_SIZE
    default_part_size: int = DEFAULT_PART_SIZE
    max_part_size: int = MAX_PART_SIZE
    max_part_count: int = MAX_PART_COUNT
    max_object_size: int = MAX_OBJECT_SIZE
    cleanup_verify_attempts: int = 1
    cleanup_verify_interval_sec: float = 0.0

    def __post_init__(self) -> None:
        if self.queue_size <= 0:
            raise ValueError("Queue size must be a positive number")
        if self.default_part_size <= 0 or self.max_part_count <= 0:
            raise ValueError("Part size and part count must be positive numbers")
        if self.default_part_size > self.max_part_size:
            raise ValueError("Default part size cannot exceed maximum part size")
        if self.cleanup_verify_attempts < 1:
            raise ValueError("At least one clean up verification is required")


@dataclass
class S3ServiceConfig:
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: str | None = None
    s3_region: str | None = None
    use_accelerate_endpoint: bool = False
