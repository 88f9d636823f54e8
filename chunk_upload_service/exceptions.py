class UploadError(Exception):
    """Base exception for failed uploads, carries the destination and upload id."""

    def __init__(
        self,
        reason: str,
        key: str | None = None,
        upload_id: str | None = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.key = key
        self.upload_id = upload_id


class PayloadTooLarge(UploadError):
    """Body is bigger than the store allows for a single object."""

    def __init__(self, size: int, limit: int, key: str | None = None) -> None:
        super().__init__(
            f"File size bigger than object limit of {limit} Bytes, got {size} Bytes",
            key=key,
        )
        self.size = size
        self.limit = limit


class UnsupportedBodyType(UploadError):
    """Byte length of the body cannot be determined."""

    def __init__(self, body_type: type, key: str | None = None) -> None:
        super().__init__(
            f"Cannot determine length of body of type {body_type.__name__}", key=key
        )
        self.body_type = body_type


class SessionCreationFailed(UploadError):
    """The store rejected the multipart upload initiation."""


class PartUploadFailed(UploadError):
    """A single part transfer failed, remaining parts are abandoned."""

    def __init__(
        self, part_number: int, key: str | None = None, upload_id: str | None = None
    ) -> None:
        super().__init__(
            f"Failed to upload part {part_number}", key=key, upload_id=upload_id
        )
        self.part_number = part_number


class FinalizationFailed(UploadError):
    """Completing the multipart upload failed after every part succeeded."""


class CleanupFailed(UploadError):
    """
    Parts are still listed for an aborted multipart upload.
    Storage is orphaned and has to be swept manually (e.g. lifecycle rule).
    """

    def __init__(
        self,
        residual_parts: int,
        original_error: BaseException,
        key: str | None = None,
        upload_id: str | None = None,
    ) -> None:
        super().__init__(
            f"Multipart upload clean up failed, {residual_parts} parts left",
            key=key,
            upload_id=upload_id,
        )
        self.residual_parts = residual_parts
        self.original_error = original_error


class IncorrectSchemaException(Exception):
    """Url needs to start with `s3://`"""
