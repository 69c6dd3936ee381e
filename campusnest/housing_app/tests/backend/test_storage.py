import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from housing_app.services.errors import UploadError
from housing_app.services.storage import StorageClient


@pytest.fixture
def storage():
    return StorageClient()


def test_no_buckets_initially(storage):
    assert storage.list_buckets() == []


def test_create_and_list_bucket(storage):
    storage.create_bucket("avatars", public=True)
    assert storage.list_buckets() == [{"id": "avatars", "name": "avatars", "public": True}]
    with pytest.raises(UploadError) as exc:
        storage.create_bucket("avatars")
    assert exc.value.code == "bucket_exists"


def test_upload_requires_bucket(storage):
    with pytest.raises(UploadError) as exc:
        storage.upload("missing", "a.txt", b"x")
    assert exc.value.code == "bucket_not_found"


def test_upload_and_public_url(storage):
    storage.create_bucket("docs")
    result = storage.upload("docs", "7/lease.txt", b"hello")
    assert result["path"] == "7/lease.txt"
    url = storage.get_public_url("docs", "7/lease.txt")["public_url"]
    assert url == "http://media.campusnest.test/media/storage/docs/7/lease.txt"


def test_upload_without_upsert_refuses_overwrite(storage):
    storage.create_bucket("docs")
    storage.upload("docs", "a.txt", b"one")
    with pytest.raises(UploadError) as exc:
        storage.upload("docs", "a.txt", b"two")
    assert exc.value.code == "duplicate"
    storage.upload("docs", "a.txt", SimpleUploadedFile("a.txt", b"two"), upsert=True)
    assert storage.remove("docs", ["a.txt", "never.txt"]) == ["a.txt"]


@pytest.mark.parametrize("path", ["../escape.txt", "", "."])
def test_bad_paths_rejected(storage, path):
    storage.create_bucket("docs")
    with pytest.raises(UploadError):
        storage.upload("docs", path, b"x")


def test_bad_bucket_name_rejected(storage):
    with pytest.raises(UploadError) as exc:
        storage.create_bucket("../etc")
    assert exc.value.code == "invalid_bucket"
