"""Ordered resolution of image assets.

A resolver is a list of zero-argument loaders tried in order; the first one that
returns non-empty bytes wins. Loaders may return ``None`` or raise to signal
"not here", so one chain covers inline payloads, data URLs and files on disk.
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

Loader = Callable[[], Optional[bytes]]
ImageSource = Union[bytes, str, None]


def resolve_first(loaders: Iterable[Loader]) -> Optional[bytes]:
    """Return the payload of the first loader that succeeds, or None."""
    for index, loader in enumerate(loaders):
        try:
            data = loader()
        except (OSError, ValueError, binascii.Error) as e:
            logger.debug(f"Asset candidate {index} failed: {e}")
            continue
        if data:
            return data
    return None


def from_bytes(data: Optional[bytes]) -> Loader:
    return lambda: data


def from_data_url(value: str) -> Loader:
    """Loader for ``data:image/png;base64,...`` URLs."""
    def load() -> Optional[bytes]:
        if not value.startswith("data:image/"):
            return None
        _, _, payload = value.partition(",")
        return base64.b64decode(payload, validate=True)
    return load


def from_base64(value: str) -> Loader:
    def load() -> Optional[bytes]:
        if value.startswith("data:"):
            return None
        return base64.b64decode(value, validate=True)
    return load


def from_asset_path(value: str, assets_dir: Path) -> Loader:
    """Loader for a file under ``assets_dir``; leading slashes are ignored."""
    def load() -> Optional[bytes]:
        root = assets_dir.resolve()
        candidate = (root / value.lstrip("/\\")).resolve()
        if root not in candidate.parents and candidate != root:
            raise ValueError(f"Asset path escapes assets directory: {value}")
        if not candidate.is_file():
            return None
        return candidate.read_bytes()
    return load


def image_source_loaders(source: ImageSource, assets_dir: Path) -> List[Loader]:
    """Candidate loaders for a wireframe given as bytes, data URL, base64 or path."""
    if source is None:
        return []
    if isinstance(source, (bytes, bytearray)):
        return [from_bytes(bytes(source))]
    value = source.strip()
    if not value:
        return []
    return [from_data_url(value), from_asset_path(value, assets_dir), from_base64(value)]


def logo_loaders(assets_dir: Path, candidates: Iterable[str]) -> List[Loader]:
    return [from_asset_path(name, assets_dir) for name in candidates]
