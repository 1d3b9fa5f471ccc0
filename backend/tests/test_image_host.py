import pytest
from conftest import UPLOADED_URL, FakeCloudinary
from portfolio_api.core.errors import UploadFailureError
from portfolio_api.services.image_host import ImageHost, extract_public_id


def _image_host(fake: FakeCloudinary, **overrides) -> ImageHost:
    options = {
        "cloud_name": "demo",
        "api_key": "key",
        "api_secret": "secret",
        "uploader": fake,
    }
    options.update(overrides)
    return ImageHost(**options)


@pytest.mark.parametrize("url,expected", [
    (UPLOADED_URL, "profiles/abc123"),
    ("https://res.cloudinary.com/demo/image/upload/profiles/abc123.png", "profiles/abc123"),
    ("https://res.cloudinary.com/demo/image/upload/v99/avatar.webp", "avatar"),
    ("This user hasn't added a Photo yet.", None),
    ("https://example.com/images/avatar.png", None),
    ("", None),
    (None, None),
])
def test_extract_public_id(url, expected):
    assert extract_public_id(url) == expected


def test_upload_returns_secure_url_and_passes_credentials():
    fake = FakeCloudinary()

    url = _image_host(fake).upload(b"bytes", filename="me.png")

    assert url == UPLOADED_URL
    options = fake.uploads[0]["options"]
    assert fake.uploads[0]["content"] == b"bytes"
    assert options["folder"] == "profiles"
    assert options["cloud_name"] == "demo"
    assert options["api_key"] == "key"
    assert options["api_secret"] == "secret"


def test_upload_without_secure_url_fails():
    class NoUrlUploader(FakeCloudinary):
        def upload(self, file, **options):
            return {"public_id": "x"}

    with pytest.raises(UploadFailureError):
        _image_host(NoUrlUploader()).upload(b"bytes")


def test_upload_sdk_error_fails():
    fake = FakeCloudinary()
    fake.fail_upload = True

    with pytest.raises(UploadFailureError):
        _image_host(fake).upload(b"bytes")


def test_upload_network_error_fails():
    class OfflineUploader(FakeCloudinary):
        def upload(self, file, **options):
            raise ConnectionError("no route to host")

    with pytest.raises(UploadFailureError):
        _image_host(OfflineUploader()).upload(b"bytes")


def test_upload_requires_configuration():
    fake = FakeCloudinary()
    host = _image_host(fake, api_secret=None)

    assert not host.configured
    with pytest.raises(UploadFailureError) as excinfo:
        host.upload(b"bytes")
    assert excinfo.value.message == "Image host is not configured"
    assert fake.calls == 0


def test_delete_by_url_destroys_public_id():
    fake = FakeCloudinary()

    assert _image_host(fake).delete_by_url(UPLOADED_URL) is True
    assert fake.destroyed == ["profiles/abc123"]


def test_delete_by_url_skips_unparseable_url():
    fake = FakeCloudinary()

    assert _image_host(fake).delete_by_url("This user hasn't added a Photo yet.") is False
    assert fake.calls == 0


def test_delete_by_url_host_error_raises():
    fake = FakeCloudinary()
    fake.fail_destroy = True

    with pytest.raises(UploadFailureError):
        _image_host(fake).delete_by_url(UPLOADED_URL)
