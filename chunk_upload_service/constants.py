KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB
TIB = 1024 * GIB

# Limits imposed by S3 on multipart uploads
DEFAULT_PART_SIZE = 5 * MIB
MAX_PART_SIZE = 5 * GIB
MAX_PART_COUNT = 10_000
MAX_OBJECT_SIZE = 5 * TIB

DEFAULT_QUEUE_SIZE = 4
DEFAULT_CONTENT_TYPE = "binary/octet-stream"
