import pytest

from belindexer.media import Media, content_type_extensions, media_from_content_type


@pytest.mark.parametrize(
    "content_type, media",
    [
        ("application/json", Media.TEXT),
        ("application/pdf", Media.PDF),
        ("audio/mpeg", Media.AUDIO),
        ("image/png", Media.IMAGE),
        ("image/svg+xml", Media.IFRAME),
        ("text/html;charset=utf-8", Media.IFRAME),
        ("text/plain; charset=utf-8", Media.TEXT),
        ("model/stl", Media.UNKNOWN),
        ("video/webm", Media.VIDEO),
    ],
)
def test_known_content_types(content_type, media):
    assert media_from_content_type(content_type) is media


def test_match_is_exact():
    with pytest.raises(ValueError, match="unknown content type: IMAGE/PNG"):
        media_from_content_type("IMAGE/PNG")


def test_unknown_content_type():
    with pytest.raises(ValueError, match="unknown content type"):
        media_from_content_type("application/x-unknown")


def test_extensions():
    assert content_type_extensions("image/jpeg") == ("jpg", "jpeg")
    assert content_type_extensions("image/avif") == ()


def test_extensions_unknown():
    with pytest.raises(ValueError):
        content_type_extensions("nope/nope")