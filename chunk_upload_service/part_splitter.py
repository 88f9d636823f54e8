import math

from .body_sanitizer import SanitizedBody
from .exceptions import PayloadTooLarge
from .models.part import Part
from .schemas import ChunkUploadConfig


def select_part_size(total_bytes: int, config: ChunkUploadConfig) -> int:
    """
    Smallest power-of-two multiple of the default part size that keeps the
    number of parts within the store limit, capped at the max part size.
    """
    if math.ceil(total_bytes / config.max_part_size) > config.max_part_count:
        raise PayloadTooLarge(
            size=total_bytes, limit=config.max_part_size * config.max_part_count
        )
    part_size = config.default_part_size
    while math.ceil(total_bytes / part_size) > config.max_part_count:
        part_size *= 2
    return min(part_size, config.max_part_size)


def split(body: SanitizedBody, part_size: int) -> list[Part]:
    if part_size <= 0:
        raise ValueError("Part size must be a positive number")

    parts: list[Part] = []
    for offset in range(0, body.byte_length, part_size):
        parts.append(
            Part(
                part_number=len(parts) + 1,
                offset=offset,
                length=min(part_size, body.byte_length - offset),
                source=body,
            )
        )
    return parts
