from .exceptions import IncorrectSchemaException
from .models.destination import Destination

_S3_SCHEMA = "s3://"


def parse_url(url: str) -> Destination:
    if not url.startswith(_S3_SCHEMA):
        raise IncorrectSchemaException

    bucket, _, key = url[len(_S3_SCHEMA) :].partition("/")
    if not bucket or not key:
        raise ValueError(f"Url {url} has to name both bucket and key")

    return Destination(bucket=bucket, key=key)
