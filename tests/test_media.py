"""Media encoding and preview handle tests."""

import pytest

from fastapi_pod.exceptions import MediaEncodingError
from fastapi_pod.media import (
    CapturedMedia,
    PreviewHandles,
    decode_data_url,
    encode_media,
)
from fastapi_pod.models import MediaType


def test_encode_media_builds_data_url() -> None:
    assert encode_media(b"abc", "image/jpeg") == (
        "data:image/jpeg;base64,YWJj"
    )


def test_encode_media_rejects_non_bytes() -> None:
    with pytest.raises(MediaEncodingError):
        encode_media("not bytes", "image/jpeg")


def test_decode_data_url_returns_content_type_and_bytes() -> None:
    assert decode_data_url("data:video/webm;base64,YWJj") == (
        "video/webm",
        b"abc",
    )


@pytest.mark.parametrize(
    "payload",
    ["YWJj", "data:image/jpeg,YWJj", "data:image/jpeg;base64,@@@"],
)
def test_decode_data_url_rejects_garbage(payload) -> None:
    with pytest.raises(MediaEncodingError):
        decode_data_url(payload)


def test_captured_media_size() -> None:
    media = CapturedMedia(
        data=b"12345",
        media_type=MediaType.PHOTO,
        content_type="image/jpeg",
    )
    assert media.size == 5


class TestPreviewHandles:
    def test_create_tracks_handle(self) -> None:
        handles = PreviewHandles()
        handle = handles.create(b"x", "image/jpeg")

        assert handle.url.startswith("blob:pod/")
        assert handles.active == [handle]

    def test_revoke_marks_and_forgets(self) -> None:
        handles = PreviewHandles()
        handle = handles.create(b"x", "image/jpeg")

        handles.revoke(handle)

        assert handle.revoked
        assert handles.active == []

    def test_revoke_none_is_noop(self) -> None:
        PreviewHandles().revoke(None)

    def test_revoke_all(self) -> None:
        handles = PreviewHandles()
        first = handles.create(b"x", "image/jpeg")
        second = handles.create(b"y", "video/webm")

        assert handles.revoke_all() == 2
        assert first.revoked and second.revoked
        assert handles.active == []
