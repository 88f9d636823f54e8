from typing import Any, BinaryIO, Protocol, TypedDict

import boto3
import botocore.exceptions
from botocore.config import Config

from .logger import logger
from .models.completed_part import CompletedPart
from .models.upload_request import UploadRequest
from .schemas import S3ServiceConfig

_NO_SUCH_UPLOAD = "NoSuchUpload"


class PutObjectResult(TypedDict):
    key: str
    etag: str | None


class ObjectStoreClient(Protocol):
    def put_object(
        self, request: UploadRequest, body: BinaryIO
    ) -> PutObjectResult: ...

    def create_multipart_upload(self, request: UploadRequest) -> str: ...

    def upload_part(
        self, upload_id: str, part_number: int, body: BinaryIO, request: UploadRequest
    ) -> str: ...

    def complete_multipart_upload(
        self, upload_id: str, request: UploadRequest, parts: list[CompletedPart]
    ) -> str: ...

    def abort_multipart_upload(
        self, upload_id: str, request: UploadRequest
    ) -> None: ...

    def list_parts(
        self, upload_id: str, request: UploadRequest
    ) -> list[CompletedPart]: ...


class S3ObjectStoreClient:
    """ObjectStoreClient backed by a boto3 S3 client, retries are left to botocore."""

    client: Any = None

    def __init__(self, config: S3ServiceConfig) -> None:
        self.client = boto3.client(
            "s3",
            endpoint_url=config.s3_endpoint_url,
            aws_access_key_id=config.s3_access_key,
            aws_secret_access_key=config.s3_secret_key,
            region_name=config.s3_region,
            config=Config(
                s3={"use_accelerate_endpoint": config.use_accelerate_endpoint}
            ),
        )
        logger.info("Initiated client", extra={"endpoint_url": config.s3_endpoint_url})

    def put_object(self, request: UploadRequest, body: BinaryIO) -> PutObjectResult:
        response = self.client.put_object(Body=body, **request.object_params())
        return PutObjectResult(key=request.key, etag=response.get("ETag"))

    def create_multipart_upload(self, request: UploadRequest) -> str:
        response = self.client.create_multipart_upload(**request.object_params())
        return response["UploadId"]

    def upload_part(
        self, upload_id: str, part_number: int, body: BinaryIO, request: UploadRequest
    ) -> str:
        response = self.client.upload_part(
            Bucket=request.bucket,
            Key=request.key,
            PartNumber=part_number,
            UploadId=upload_id,
            Body=body,
            **request.part_params(),
        )
        return response["ETag"]

    def complete_multipart_upload(
        self, upload_id: str, request: UploadRequest, parts: list[CompletedPart]
    ) -> str:
        response = self.client.complete_multipart_upload(
            Bucket=request.bucket,
            Key=request.key,
            UploadId=upload_id,
            MultipartUpload={"Parts": parts},
        )
        return response.get("Key", request.key)

    def abort_multipart_upload(self, upload_id: str, request: UploadRequest) -> None:
        self.client.abort_multipart_upload(
            Bucket=request.bucket, Key=request.key, UploadId=upload_id
        )

    def list_parts(self, upload_id: str, request: UploadRequest) -> list[CompletedPart]:
        parts: list[CompletedPart] = []
        params = {"Bucket": request.bucket, "Key": request.key, "UploadId": upload_id}
        while True:
            try:
                response = self.client.list_parts(**params)
            except botocore.exceptions.ClientError as exception:
                # S3 forgets the upload id once an abort removed every part
                code = exception.response.get("Error", {}).get("Code")
                if code == _NO_SUCH_UPLOAD:
                    return parts
                raise exception
            parts.extend(
                CompletedPart(PartNumber=part["PartNumber"], ETag=part["ETag"])
                for part in response.get("Parts", [])
            )
            # a listing page holds at most 1000 parts
            if not response.get("IsTruncated"):
                return parts
            params["PartNumberMarker"] = response["NextPartNumberMarker"]
