import time
from concurrent.futures import Executor, ThreadPoolExecutor, wait
from typing import Optional

from .body_sanitizer import SanitizedBody, sanitize
from .exceptions import (
    CleanupFailed,
    FinalizationFailed,
    PartUploadFailed,
    SessionCreationFailed,
    UploadError,
)
from .logger import logger
from .models.completed_part import CompletedPart
from .models.part import Part
from .models.upload_method import UploadMethod
from .models.upload_request import UploadRequest
from .models.upload_response_dto import UploadResponseDto
from .models.upload_session import UploadSession
from .part_splitter import select_part_size, split
from .progress import PartBodyReader, ProgressAggregator, ProgressSink
from .s3_client import ObjectStoreClient
from .schemas import ChunkUploadConfig


class ChunkUploadService:
    """
    Uploads one object either with a single PUT or, above the part size, as
    a multipart upload sent in sequential batches of `queue_size` parts.

    The multipart upload id is owned by one `upload` call, which either
    completes or aborts it before returning.
    """

    def __init__(
        self,
        client: ObjectStoreClient,
        config: Optional[ChunkUploadConfig] = None,
        progress_sink: Optional[ProgressSink] = None,
    ) -> None:
        self.client = client
        self.config = config or ChunkUploadConfig()
        self.progress_sink = progress_sink

    def upload(
        self, request: UploadRequest, progress_sink: Optional[ProgressSink] = None
    ) -> UploadResponseDto:
        session = UploadSession(key=request.key)
        try:
            body = sanitize(request.body, self.config.max_object_size, key=request.key)
            session.body = body
            session.total_bytes = body.byte_length
            progress = ProgressAggregator(
                key=request.key,
                total=body.byte_length,
                sink=progress_sink or self.progress_sink,
            )

            if body.byte_length <= self.config.default_part_size:
                # Multipart upload is not required
                return self._put_object(request, body, progress)
            return self._multipart_upload(request, session, progress)
        finally:
            session.reset()

    def _put_object(
        self, request: UploadRequest, body: SanitizedBody, progress: ProgressAggregator
    ) -> UploadResponseDto:
        logger.debug(
            "Uploading object",
            extra={"bucket": request.bucket, "key": request.key},
        )
        try:
            reader = PartBodyReader(
                body.read_range(0, body.byte_length), progress.register_body()
            )
            result = self.client.put_object(request, reader)
        except Exception as exception:
            logger.exception("Failed to upload object", extra={"key": request.key})
            raise UploadError("Failed to upload object", key=request.key) from exception
        finally:
            progress.release_all()

        logger.info(
            "Object uploaded", extra={"bucket": request.bucket, "key": request.key}
        )
        return UploadResponseDto(
            method=UploadMethod.SINGLE_PUT,
            key=result["key"],
            etag=result.get("etag"),
        )

    def _multipart_upload(
        self,
        request: UploadRequest,
        session: UploadSession,
        progress: ProgressAggregator,
    ) -> UploadResponseDto:
        part_size = select_part_size(session.total_bytes, self.config)
        session.upload_id = self._create_multipart_upload(request)

        try:
            parts = split(session.body, part_size)
            queue_size = self.config.queue_size
            with ThreadPoolExecutor(
                max_workers=queue_size, thread_name_prefix="chunk-upload"
            ) as executor:
                for start in range(0, len(parts), queue_size):
                    # Upload as many as `queue_size` parts simultaneously
                    batch = parts[start : start + queue_size]
                    self._upload_parts(executor, request, session, progress, batch)

            progress.release_all()
            key = self._complete_multipart_upload(request, session)
        except BaseException as exception:  # pylint: disable=broad-exception-caught
            # interrupts abort the upload too, then propagate unchanged
            logger.exception(
                "Error. Cancelling the multipart upload.",
                extra={"key": request.key, "upload_id": session.upload_id},
            )
            self._cleanup(request, session, progress, exception)
            raise exception

        return UploadResponseDto(
            method=UploadMethod.MULTIPART,
            key=key,
            upload_id=session.upload_id,
            parts_count=len(parts),
        )

    def _create_multipart_upload(self, request: UploadRequest) -> str:
        logger.debug(
            "Initiating upload in chunks",
            extra={"bucket": request.bucket, "key": request.key},
        )
        try:
            upload_id = self.client.create_multipart_upload(request)
        except Exception as exception:
            logger.exception("Failed to initiate upload", extra={"key": request.key})
            raise SessionCreationFailed(
                "Failed to initiate multipart upload", key=request.key
            ) from exception
        logger.debug(
            "Upload initiated", extra={"key": request.key, "upload_id": upload_id}
        )
        return upload_id

    def _upload_parts(
        self,
        executor: Executor,
        request: UploadRequest,
        session: UploadSession,
        progress: ProgressAggregator,
        batch: list[Part],
    ) -> None:
        futures = [
            executor.submit(
                self._upload_part, request, session.upload_id, part, progress
            )
            for part in batch
        ]
        # siblings of a failed part still run to completion before raising
        wait(futures)

        # results are matched to parts by position, not by arrival
        for part, future in zip(batch, futures):
            part.etag = future.result()
            session.record(part)
        session.bytes_uploaded = progress.loaded

    def _upload_part(
        self,
        request: UploadRequest,
        upload_id: str,
        part: Part,
        progress: ProgressAggregator,
    ) -> str:
        logger.debug(
            "Uploading chunk part",
            extra={"key": request.key, "part_number": part.part_number},
        )
        listener = progress.register(part)
        try:
            body = PartBodyReader(part.read(), listener)
            etag = self.client.upload_part(upload_id, part.part_number, body, request)
        except Exception as exception:
            logger.exception(
                "Error happened while uploading a part",
                extra={"key": request.key, "part_number": part.part_number},
            )
            raise PartUploadFailed(
                part.part_number, key=request.key, upload_id=upload_id
            ) from exception
        finally:
            progress.deregister(part)

        if not etag:
            raise PartUploadFailed(
                part.part_number, key=request.key, upload_id=upload_id
            )
        logger.debug(
            "Uploaded chunk part",
            extra={
                "key": request.key,
                "part_number": part.part_number,
                "upload_id": upload_id,
            },
        )
        return etag

    def _complete_multipart_upload(
        self, request: UploadRequest, session: UploadSession
    ) -> str:
        logger.debug(
            "Completing upload in chunks",
            extra={"key": request.key, "upload_id": session.upload_id},
        )
        try:
            key = self.client.complete_multipart_upload(
                session.upload_id, request, session.manifest()
            )
        except Exception as exception:
            logger.exception(
                "Error happened while finishing the upload.",
                extra={"key": request.key, "upload_id": session.upload_id},
            )
            raise FinalizationFailed(
                "Failed to complete multipart upload",
                key=request.key,
                upload_id=session.upload_id,
            ) from exception
        logger.info(
            "Upload completed in chunks",
            extra={"key": key, "upload_id": session.upload_id},
        )
        return key

    def _cleanup(
        self,
        request: UploadRequest,
        session: UploadSession,
        progress: ProgressAggregator,
        error: BaseException,
    ) -> None:
        upload_id = session.upload_id
        session.reset()
        progress.release_all()
        if upload_id is None:
            return

        context = {"key": request.key, "upload_id": upload_id}
        logger.debug("Aborting upload", extra=context)
        try:
            self.client.abort_multipart_upload(upload_id, request)
            residual_parts = self._residual_parts(request, upload_id)
        except Exception:  # pylint: disable=broad-exception-caught
            # the triggering error stays the one surfaced to the caller
            logger.exception("Failed to abort upload", extra=context)
            return

        if residual_parts:
            logger.error(
                "Multipart upload clean up failed.",
                extra={
                    "key": request.key,
                    "upload_id": upload_id,
                    "residual_parts": len(residual_parts),
                },
            )
            if not isinstance(error, Exception):
                return
            raise CleanupFailed(
                len(residual_parts), error, key=request.key, upload_id=upload_id
            ) from error
        logger.info("Upload aborted", extra=context)

    def _residual_parts(
        self, request: UploadRequest, upload_id: str
    ) -> list[CompletedPart]:
        attempts = self.config.cleanup_verify_attempts
        for attempt in range(attempts):
            parts = self.client.list_parts(upload_id, request)
            if not parts or attempt == attempts - 1:
                return parts
            logger.warning(
                "Parts still listed after abort, checking again...",
                extra={"upload_id": upload_id, "residual_parts": len(parts)},
            )
            time.sleep(self.config.cleanup_verify_interval_sec)
        raise NotImplementedError("This should never be reached")
