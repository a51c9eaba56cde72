import base64

import pytest

from services.asset_resolver import (
    from_asset_path, image_source_loaders, logo_loaders, resolve_first,
)


def test_first_successful_loader_wins():
    calls = []

    def failing():
        calls.append("failing")
        raise OSError("unreadable")

    def empty():
        calls.append("empty")
        return None

    def found():
        calls.append("found")
        return b"one"

    def never():
        calls.append("never")
        return b"two"

    assert resolve_first([failing, empty, found, never]) == b"one"
    assert calls == ["failing", "empty", "found"]


def test_nothing_resolves():
    assert resolve_first([lambda: None, lambda: b""]) is None
    assert resolve_first([]) is None


def test_data_url_source(tmp_path):
    encoded = base64.b64encode(b"\x89PNGdata").decode()
    assert resolve_first(image_source_loaders(f"data:image/png;base64,{encoded}", tmp_path)) == b"\x89PNGdata"


def test_plain_base64_source(tmp_path):
    encoded = base64.b64encode(b"raw-image").decode()
    assert resolve_first(image_source_loaders(encoded, tmp_path)) == b"raw-image"


def test_bytes_source(tmp_path):
    assert resolve_first(image_source_loaders(b"bytes", tmp_path)) == b"bytes"


@pytest.mark.parametrize("source", [None, "", "   "])
def test_empty_sources_have_no_loaders(source, tmp_path):
    assert image_source_loaders(source, tmp_path) == []


def test_asset_path_with_leading_slash(tmp_path):
    (tmp_path / "wire.png").write_bytes(b"file")
    assert resolve_first(image_source_loaders("/wire.png", tmp_path)) == b"file"


def test_asset_path_cannot_escape(tmp_path):
    assets = tmp_path / "assets"
    assets.mkdir()
    (tmp_path / "secret.png").write_bytes(b"secret")
    with pytest.raises(ValueError):
        from_asset_path("../secret.png", assets)()
    assert resolve_first([from_asset_path("../secret.png", assets)]) is None


def test_logo_candidates_in_order(tmp_path):
    (tmp_path / "second.png").write_bytes(b"second")
    (tmp_path / "third.png").write_bytes(b"third")
    loaders = logo_loaders(tmp_path, ["first.png", "second.png", "third.png"])
    assert resolve_first(loaders) == b"second"
