from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_PART_SIZE,
    DEFAULT_QUEUE_SIZE,
    MAX_OBJECT_SIZE,
    MAX_PART_COUNT,
    MAX_PART_SIZE,
)
from .schemas import ChunkUploadConfig, S3ServiceConfig


class ChunkUploadSettings(BaseSettings):
    """
    Class for storing settings of the chunk upload service.
    Every field is read from the environment with the `CHUNK_UPLOAD_` prefix.
    """

    # pylint: disable=too-many-instance-attributes
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: str | None = None
    s3_region: str | None = None
    use_accelerate_endpoint: bool = False

    queue_size: int = Field(
        default=DEFAULT_QUEUE_SIZE,
        description="Number of parts uploaded simultaneously in one batch.",
    )
    default_part_size: int = Field(
        default=DEFAULT_PART_SIZE,
        description="Part size in bytes, smaller bodies are sent with a single PUT.",
    )
    max_part_size: int = MAX_PART_SIZE
    max_part_count: int = MAX_PART_COUNT
    max_object_size: int = MAX_OBJECT_SIZE
    cleanup_verify_attempts: int = Field(
        default=1,
        description="How many times parts are listed after an abort before giving up.",
    )
    cleanup_verify_interval_sec: float = 0.0

    model_config = SettingsConfigDict(
        env_prefix="CHUNK_UPLOAD_", env_file=".env", extra="ignore"
    )

    def to_upload_config(self) -> ChunkUploadConfig:
        return ChunkUploadConfig(
            queue_size=self.queue_size,
            default_part_size=self.default_part_size,
            max_part_size=self.max_part_size,
            max_part_count=self.max_part_count,
            max_object_size=self.max_object_size,
            cleanup_verify_attempts=self.cleanup_verify_attempts,
            cleanup_verify_interval_sec=self.cleanup_verify_interval_sec,
        )

    def to_s3_config(self) -> S3ServiceConfig:
        return S3ServiceConfig(
            s3_endpoint_url=self.s3_endpoint_url,
            s3_access_key=self.s3_access_key,
            s3_secret_key=self.s3_secret_key,
            s3_region=self.s3_region,
            use_accelerate_endpoint=self.use_accelerate_endpoint,
        )
