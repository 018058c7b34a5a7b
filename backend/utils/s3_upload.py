import boto3
from botocore.exceptions import ClientError, NoCredentialsError, EndpointConnectionError
import uuid
import logging
import time

import config

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}


def _get_client():
    return boto3.client('s3', region_name=config.AWS_DEFAULT_REGION)


def upload_medicine_image(file_content: bytes, filename: str, medicine_id: int, max_retries: int = 3, backoff_base: float = 0.5) -> str:
    """Upload a medicine image to S3 and return its ``s3://`` URL.

    Retries on transient errors with exponential backoff. 4xx client errors fail immediately.
    """
    bucket_name = config.S3_BUCKET_NAME
    file_extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'bin'
    s3_key = f"medicines/{medicine_id}/{uuid.uuid4().hex}.{file_extension}"
    content_type = _CONTENT_TYPES.get(file_extension, 'application/octet-stream')

    logger.info(f"Uploading image for medicine_id={medicine_id} ({len(file_content)} bytes) to bucket {bucket_name}")
    s3_client = _get_client()

    last_exc = None
    for attempt in range(1, max_retries + 1):
        try:
            s3_client.put_object(
                Bucket=bucket_name,
                Key=s3_key,
                Body=file_content,
                ContentType=content_type,
            )
            logger.info(f"Upload successful for medicine_id={medicine_id} on attempt {attempt}")
            return f"s3://{bucket_name}/{s3_key}"
        except NoCredentialsError:
            logger.exception("No AWS credentials found for S3 upload")
            raise
        except (EndpointConnectionError, ClientError) as e:
            last_exc = e
            code = e.response.get('Error', {}).get('Code') if isinstance(e, ClientError) else None
            logger.warning(f"S3 upload attempt {attempt} failed for medicine_id={medicine_id}, code={code}: {e}")
            if code and (str(code).startswith('4') or code in ('AccessDenied', 'NoSuchBucket')):
                break
            if attempt < max_retries:
                time.sleep(backoff_base * (2 ** (attempt - 1)))

    logger.error(f"S3 upload failed permanently for medicine_id={medicine_id}: {last_exc}")
    raise RuntimeError(f"S3 upload failed: {last_exc}")


def delete_medicine_image(url: str) -> None:
    """Delete an object given its ``s3://bucket/key`` URL. Failures are logged."""
    if not url or not url.startswith("s3://"):
        logger.warning(f"Skipping delete of non-S3 image reference: {url}")
        return
    bucket_name, _, key = url[len("s3://"):].partition("/")
    try:
        _get_client().delete_object(Bucket=bucket_name, Key=key)
        logger.info(f"Deleted image {url}")
    except (ClientError, EndpointConnectionError, NoCredentialsError) as e:
        logger.warning(f"Could not delete image {url}: {e}")
