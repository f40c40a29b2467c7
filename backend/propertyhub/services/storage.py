"""
Attachment storage (S3 compatible object store, MinIO in development)

Clients never send file bytes through the API: they ask for a presigned
PUT URL, upload directly, then store the stable file URL on the record.
"""

import logging
import re
import time
from typing import Dict, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from propertyhub.core.config import settings
from propertyhub.core.errors import BadRequestError, ProcedureError

logger = logging.getLogger(__name__)

_client = None

UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def get_s3_client():
    global _client
    if _client is None:
        _client = boto3.client(
            "s3",
            endpoint_url=settings.STORAGE_ENDPOINT_URL,
            aws_access_key_id=settings.STORAGE_ACCESS_KEY,
            aws_secret_access_key=settings.STORAGE_SECRET_KEY,
            region_name=settings.STORAGE_REGION,
            config=Config(signature_version="s3v4"),
        )
    return _client


def sanitize_file_name(file_name: str) -> str:
    return UNSAFE_CHARS.sub("_", file_name)


def build_object_name(file_name: str, is_public: bool, timestamp_ms: Optional[int] = None) -> str:
    """public/attachments/<ms timestamp>-<sanitised name>"""
    timestamp_ms = timestamp_ms or int(time.time() * 1000)
    visibility = "public" if is_public else "private"
    return f"{visibility}/attachments/{timestamp_ms}-{sanitize_file_name(file_name)}"


def file_url_for(object_name: str) -> str:
    base = settings.STORAGE_PUBLIC_URL.rstrip("/")
    return f"{base}/{settings.STORAGE_BUCKET}/{object_name}"


def object_name_from_url(file_url: str) -> str:
    prefix = f"{settings.STORAGE_PUBLIC_URL.rstrip('/')}/{settings.STORAGE_BUCKET}/"
    if not file_url.startswith(prefix):
        raise BadRequestError("File URL does not belong to this storage bucket")
    return file_url[len(prefix):]


def create_upload_url(file_name: str, file_type: str, is_public: bool = False) -> Dict[str, str]:
    object_name = build_object_name(file_name, is_public)
    try:
        presigned_url = get_s3_client().generate_presigned_url(
            "put_object",
            Params={
                "Bucket": settings.STORAGE_BUCKET,
                "Key": object_name,
                "ContentType": file_type,
            },
            ExpiresIn=settings.STORAGE_URL_EXPIRY_SECONDS,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Presigned upload URL failed for {object_name}: {e}")
        raise ProcedureError("Could not create upload URL") from e

    logger.info(f"📎 Upload URL issued for {object_name}")
    return {
        "presigned_url": presigned_url,
        "file_url": file_url_for(object_name),
        "object_name": object_name,
    }


def create_download_url(file_url: str) -> str:
    """Public objects are served as-is; private ones get a short-lived GET URL"""
    object_name = object_name_from_url(file_url)
    if object_name.startswith("public/"):
        return file_url
    try:
        return get_s3_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": settings.STORAGE_BUCKET, "Key": object_name},
            ExpiresIn=settings.STORAGE_URL_EXPIRY_SECONDS,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Presigned download URL failed for {object_name}: {e}")
        raise ProcedureError("Could not create download URL") from e
