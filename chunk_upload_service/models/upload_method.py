from enum import Enum


class UploadMethod(Enum):
    SINGLE_PUT = "single_put"
    MULTIPART = "multipart"
