"""Content-addressed thumbnail storage on S3-compatible object storage.

Object keys are ``<prefix>/<sha256 of bytes>.<ext>``, so storing the same
bytes twice resolves to the same key and URL and never creates a second object.
"""

import hashlib
import logging

import boto3
import httpx
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from channel_ingest.config import Settings, get_settings
from channel_ingest.errors import UploadError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"

DOWNLOAD_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "image/avif,image/webp,image/*,*/*;q=0.8",
}


def extension_for(content_type: str | None) -> str:
    """'image/png' -> 'png', 'image/jpeg; charset=binary' -> 'jpeg', junk -> 'jpg'."""
    if not content_type:
        return "jpg"
    mime = content_type.split(";", 1)[0].strip().lower()
    _, _, subtype = mime.partition("/")
    return subtype or "jpg"


def content_key(data: bytes, content_type: str | None, prefix: str = "thumbnails") -> str:
    digest = hashlib.sha256(data).hexdigest()
    key = f"{digest}.{extension_for(content_type)}"
    return f"{prefix.strip('/')}/{key}" if prefix else key


class BlobStore:

    def __init__(
        self,
        client,
        bucket: str,
        endpoint: str,
        prefix: str = "thumbnails",
        http_client: httpx.Client | None = None,
        download_timeout: float = 30.0,
    ):
        self.client = client
        self.bucket = bucket
        self.endpoint = endpoint.rstrip("/")
        self.prefix = prefix
        self.http_client = http_client
        self.download_timeout = download_timeout

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "BlobStore":
        settings = settings or get_settings()
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            region_name=settings.s3_region,
            config=Config(s3={"addressing_style": "path"}),
        )
        return cls(
            client=client,
            bucket=settings.s3_bucket,
            endpoint=settings.s3_endpoint,
            prefix=settings.thumbnail_prefix,
            download_timeout=settings.thumbnail_download_timeout,
        )

    def url_for(self, key: str) -> str:
        return f"{self.endpoint}/{self.bucket}/{key}"

    def store(self, data: bytes, content_type: str | None = DEFAULT_CONTENT_TYPE) -> str:
        """Write bytes under their content digest and return the public URL."""
        content_type = content_type or DEFAULT_CONTENT_TYPE
        key = content_key(data, content_type, self.prefix)

        if self._exists(key):
            logger.debug(f"Blob {key} already stored, skipping upload")
            return self.url_for(key)

        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f"Upload of {key} failed: {e}") from e

        logger.info(f"Stored blob {key} ({len(data)} bytes)")
        return self.url_for(key)

    def fetch_and_store(self, source_url: str | None) -> str | None:
        """Mirror a remote image. Any download or upload failure yields None."""
        if not source_url:
            return None

        try:
            if self.http_client is not None:
                response = self.http_client.get(source_url, timeout=self.download_timeout)
            else:
                response = httpx.get(
                    source_url,
                    timeout=self.download_timeout,
                    follow_redirects=True,
                    headers=DOWNLOAD_HEADERS,
                )
        except httpx.HTTPError as e:
            logger.warning(f"Thumbnail download failed for {source_url}: {e}")
            return None

        if not 200 <= response.status_code < 300:
            logger.warning(f"Thumbnail download returned HTTP {response.status_code} for {source_url}")
            return None

        try:
            return self.store(response.content, response.headers.get("content-type"))
        except UploadError as e:
            logger.warning(f"Thumbnail upload failed for {source_url}: {e}")
            return None

    def _exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code not in ("404", "NoSuchKey", "NotFound"):
                logger.debug(f"head_object for {key} failed with {code}, uploading anyway")
            return False
        except BotoCoreError as e:
            logger.debug(f"head_object for {key} failed: {e}")
            return False
