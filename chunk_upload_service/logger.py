import logging

logger = logging.getLogger("chunk_upload_service")
