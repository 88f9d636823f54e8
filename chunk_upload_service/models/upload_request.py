from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .destination import Destination  # pylint: disable=relative-beyond-top-level
from ..constants import DEFAULT_CONTENT_TYPE  # pylint: disable=relative-beyond-top-level

# UploadRequest attribute -> boto3 parameter, sent on PUT and create-multipart
_OBJECT_PARAMS = {
    "content_type": "ContentType",
    "content_encoding": "ContentEncoding",
    "content_disposition": "ContentDisposition",
    "cache_control": "CacheControl",
    "expires": "Expires",
    "metadata": "Metadata",
    "tagging": "Tagging",
    "acl": "ACL",
    "server_side_encryption": "ServerSideEncryption",
    "sse_kms_key_id": "SSEKMSKeyId",
}

# customer provided encryption keys must be repeated on every part
_PART_PARAMS = {
    "sse_customer_algorithm": "SSECustomerAlgorithm",
    "sse_customer_key": "SSECustomerKey",
    "sse_customer_key_md5": "SSECustomerKeyMD5",
}


@dataclass(frozen=True)
# pylint: disable=too-many-instance-attributes
class UploadRequest:
    destination: Destination
    body: Any
    content_type: str = DEFAULT_CONTENT_TYPE
    content_encoding: Optional[str] = None
    content_disposition: Optional[str] = None
    cache_control: Optional[str] = None
    expires: Optional[datetime] = None
    metadata: dict[str, str] = field(default_factory=dict)
    tagging: Optional[str] = None
    acl: Optional[str] = None
    server_side_encryption: Optional[str] = None
    sse_customer_algorithm: Optional[str] = None
    sse_customer_key: Optional[str] = None
    sse_customer_key_md5: Optional[str] = None
    sse_kms_key_id: Optional[str] = None

    @property
    def bucket(self) -> str:
        return self.destination.bucket

    @property
    def key(self) -> str:
        return self.destination.key

    def object_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": self.key}
        for attribute, name in _OBJECT_PARAMS.items():
            value = getattr(self, attribute)
            if value:
                params[name] = value
        params.update(self.part_params())
        return params

    def part_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for attribute, name in _PART_PARAMS.items():
            value = getattr(self, attribute)
            if value:
                params[name] = value
        return params
