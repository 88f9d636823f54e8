import dataclasses
from typing import Any, Callable, Optional

from .chunk_upload import ChunkUploadService
from .logger import logger
from .models.destination import Destination
from .models.progress_event import ProgressEvent
from .models.upload_request import UploadRequest
from .s3_client import ObjectStoreClient
from .schemas import ChunkUploadConfig
from .url import parse_url

_REQUEST_OPTIONS = {
    field.name for field in dataclasses.fields(UploadRequest)
} - {"destination", "body"}


class ChunkStorage:
    """
    Storage provider putting objects through `ChunkUploadService`.

    Provider-level defaults (bucket, content type, encryption...) are merged
    with the options of each `put` call, call options win.
    """

    def __init__(
        self,
        client: ObjectStoreClient,
        config: Optional[ChunkUploadConfig] = None,
        **defaults: Any,
    ) -> None:
        self.uploader = ChunkUploadService(client, config)
        self._options: dict[str, Any] = {}
        self.configure(**defaults)

    def configure(self, **options: Any) -> dict[str, Any]:
        """Merge `options` into the provider defaults and return the result."""
        _check_options(options)
        self._options = {**self._options, **options}
        if not self._options.get("bucket"):
            logger.debug("Do not have bucket yet")
        return dict(self._options)

    def put(
        self,
        key: str,
        body: Any,
        progress_callback: Optional[Callable[[ProgressEvent], None]] = None,
        **options: Any,
    ) -> dict[str, str]:
        _check_options(options)
        merged = {**self._options, **options}
        bucket = merged.pop("bucket", None)
        if not bucket:
            raise ValueError("Bucket has to be configured or passed to put")
        destination = Destination(bucket=bucket, key=key)
        return self._put(destination, body, progress_callback, merged)

    def put_url(
        self,
        url: str,
        body: Any,
        progress_callback: Optional[Callable[[ProgressEvent], None]] = None,
        **options: Any,
    ) -> dict[str, str]:
        destination = parse_url(url)
        return self.put(
            destination.key,
            body,
            progress_callback,
            **{**options, "bucket": destination.bucket},
        )

    def _put(
        self,
        destination: Destination,
        body: Any,
        progress_callback: Optional[Callable[[ProgressEvent], None]],
        options: dict[str, Any],
    ) -> dict[str, str]:
        if progress_callback is not None and not callable(progress_callback):
            logger.warning(
                "progress_callback should be a function, not a %s",
                type(progress_callback).__name__,
            )
            progress_callback = None

        options = {name: value for name, value in options.items() if value is not None}
        request = UploadRequest(destination=destination, body=body, **options)
        try:
            response = self.uploader.upload(request, progress_sink=progress_callback)
        except Exception as exception:
            logger.warning(
                "Error uploading",
                extra={"bucket": destination.bucket, "key": destination.key},
            )
            raise exception

        logger.debug(
            "Upload success",
            extra={"key": destination.key, "method": response.method.value},
        )
        return {"key": destination.key}


def _check_options(options: dict[str, Any]) -> None:
    unknown = set(options) - _REQUEST_OPTIONS - {"bucket"}
    if unknown:
        raise ValueError(f"Unknown upload options: {', '.join(sorted(unknown))}")
