import hashlib

import httpx
import pytest
from botocore.exceptions import ClientError

from channel_ingest.errors import UploadError
from channel_ingest.services.blob_store import BlobStore, content_key, extension_for


class _FakeS3:
    def __init__(self, fail_put: bool = False):
        self.objects = {}
        self.puts = 0
        self.fail_put = fail_put

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {"ContentLength": len(self.objects[Key])}

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail_put:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.puts += 1
        self.objects[Key] = Body


def _store(s3, handler=None):
    http_client = httpx.Client(transport=httpx.MockTransport(handler)) if handler else None
    return BlobStore(
        client=s3,
        bucket="channel-media",
        endpoint="http://minio.test:9000/",
        prefix="thumbnails",
        http_client=http_client,
    )


def test_extension_for():
    assert extension_for("image/png") == "png"
    assert extension_for("image/webp; charset=binary") == "webp"
    assert extension_for(None) == "jpg"
    assert extension_for("garbage") == "jpg"


def test_content_key_is_digest_of_bytes():
    data = b"\x89PNG fake image"
    digest = hashlib.sha256(data).hexdigest()

    assert content_key(data, "image/png") == f"thumbnails/{digest}.png"
    assert content_key(data, "image/png", prefix="") == f"{digest}.png"


def test_same_bytes_stored_once():
    s3 = _FakeS3()
    store = _store(s3)

    first = store.store(b"same bytes", "image/jpeg")
    second = store.store(b"same bytes", "image/jpeg")

    assert first == second
    assert first.startswith("http://minio.test:9000/channel-media/thumbnails/")
    assert first.endswith(".jpeg")
    assert s3.puts == 1


def test_different_bytes_get_different_keys():
    store = _store(_FakeS3())

    assert store.store(b"one") != store.store(b"two")


def test_upload_failure_raises():
    store = _store(_FakeS3(fail_put=True))

    with pytest.raises(UploadError):
        store.store(b"bytes")


def test_fetch_and_store_mirrors_image():
    s3 = _FakeS3()

    def handler(request):
        return httpx.Response(200, content=b"thumb", headers={"content-type": "image/png"})

    url = _store(s3, handler).fetch_and_store("https://i.ytimg.com/vi/abc/hq.jpg")

    digest = hashlib.sha256(b"thumb").hexdigest()
    assert url == f"http://minio.test:9000/channel-media/thumbnails/{digest}.png"


def test_fetch_and_store_http_error_status():
    s3 = _FakeS3()

    def handler(request):
        return httpx.Response(404)

    assert _store(s3, handler).fetch_and_store("https://i.ytimg.com/missing.jpg") is None
    assert s3.puts == 0


def test_fetch_and_store_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert _store(_FakeS3(), handler).fetch_and_store("https://i.ytimg.com/vi/abc/hq.jpg") is None


def test_fetch_and_store_upload_error_is_soft():
    def handler(request):
        return httpx.Response(200, content=b"thumb")

    assert _store(_FakeS3(fail_put=True), handler).fetch_and_store("https://i.ytimg.com/x.jpg") is None


def test_fetch_and_store_without_url():
    assert _store(_FakeS3()).fetch_and_store(None) is None
