"""
File storage for meeting and project attachments.
Objects live in Cloudflare R2; downloads use short-lived presigned URLs.
"""

import logging
import time
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_SECRET_ACCESS_KEY
from ..utils.sanitization import sanitize_filename

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
}


class StorageError(Exception):
    """Raised when the object store rejects an upload"""


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def validate_upload(mime_type: str, size_bytes: int) -> Optional[str]:
    """Return an error message for a disallowed upload, None when acceptable"""
    if size_bytes > MAX_FILE_SIZE_BYTES:
        return "File too large. Maximum size is 10MB."
    if mime_type not in ALLOWED_MIME_TYPES:
        return "File type not allowed"
    return None


def build_storage_key(original_name: str, scope: str) -> str:
    """Keys look like meetboard/project-12/1700000000000-report.pdf"""
    return f"meetboard/{scope}/{int(time.time() * 1000)}-{sanitize_filename(original_name)}"


def upload_file(key: str, content: bytes, mime_type: str) -> None:
    try:
        get_r2_client().put_object(
            Bucket=R2_BUCKET_NAME, Key=key, Body=content, ContentType=mime_type
        )
        logger.info(f"✅ Uploaded {key} ({len(content)} bytes) to R2")
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ R2 upload failed for {key}: {e}")
        raise StorageError(str(e)) from e


def generate_presigned_url(key: str, expiration: int = 3600) -> Optional[str]:
    """Generate a presigned download URL, None if signing fails"""
    try:
        return get_r2_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": R2_BUCKET_NAME, "Key": key},
            ExpiresIn=expiration,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to generate presigned URL for {key}: {e}")
        return None
