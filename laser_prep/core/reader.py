"""Image loading from local files or URLs.

Decodes any raster format Pillow understands into an RGBA image. Animated
files contribute their first frame only.
"""

from __future__ import annotations

import logging
import tempfile
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS: dict[str, str] = {
    ".png": "png",
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".webp": "webp",
    ".bmp": "bmp",
    ".gif": "gif",
    ".tif": "tiff",
    ".tiff": "tiff",
}


@dataclass
class SourceImage:
    """A decoded input image."""

    image: Image.Image  # RGBA PIL image
    path: Path
    format: str
    width: int
    height: int

    @property
    def source_id(self) -> str:
        """Identity used for result caching."""
        return str(self.path)


def detect_format(path: Path) -> str:
    """Detect image format from file extension."""
    suffix = path.suffix.lower()
    if suffix in SUPPORTED_FORMATS:
        return SUPPORTED_FORMATS[suffix]
    raise ValueError(f"Unsupported format: {suffix}")


def is_url(path: str) -> bool:
    """Check if the input looks like an HTTP(S) URL."""
    try:
        parsed = urlparse(str(path))
        return parsed.scheme in ("http", "https")
    except ValueError:
        return False


def _guess_extension_from_url(url: str) -> str:
    """Extract file extension from a URL path."""
    parsed = urlparse(url)
    suffix = Path(parsed.path).suffix.lower()
    if suffix in SUPPORTED_FORMATS:
        return suffix
    # Default to .png for ambiguous URLs; Pillow sniffs the real format
    return ".png"


def download_image(
    url: str,
    on_progress: Callable[[int, int], None] | None = None,
) -> Path:
    """Download an image from a URL to a temp file.

    Args:
        url: HTTP(S) URL to download.
        on_progress: optional callback(bytes_downloaded, total_bytes).

    Returns:
        Path to the downloaded temporary file.

    Raises:
        ValueError: if the URL is unreachable, returns an error or is empty.
    """
    ext = _guess_extension_from_url(url)
    tmp = tempfile.NamedTemporaryFile(suffix=ext, delete=False)
    tmp_path = Path(tmp.name)

    logger.info("Downloading %s", url)
    try:
        req = urllib.request.Request(url, headers={"User-Agent": "laser-prep/0.1"})
        with urllib.request.urlopen(req, timeout=30) as resp:
            total = int(resp.headers.get("Content-Length", 0))
            downloaded = 0
            while True:
                chunk = resp.read(65536)
                if not chunk:
                    break
                tmp.write(chunk)
                downloaded += len(chunk)
                if on_progress:
                    on_progress(downloaded, total)
        tmp.close()
    except urllib.error.URLError as e:
        tmp.close()
        tmp_path.unlink(missing_ok=True)
        raise ValueError(f"Failed to download {url}: {e}") from e
    except Exception:
        tmp.close()
        tmp_path.unlink(missing_ok=True)
        raise

    if tmp_path.stat().st_size == 0:
        tmp_path.unlink(missing_ok=True)
        raise ValueError(f"Downloaded file is empty: {url}")

    return tmp_path


def load_image(path: Path) -> SourceImage:
    """Decode a local image file into RGBA.

    EXIF orientation is applied so the pixels match what a viewer shows.
    """
    fmt = detect_format(path)
    try:
        with Image.open(path) as img:
            img.seek(0)
            oriented = ImageOps.exif_transpose(img)
            rgba = oriented.convert("RGBA")
    except UnidentifiedImageError as e:
        raise ValueError(f"Cannot decode image: {path}") from e

    logger.debug("Loaded %s (%s, %dx%d)", path, fmt, rgba.width, rgba.height)
    return SourceImage(
        image=rgba,
        path=path,
        format=fmt,
        width=rgba.width,
        height=rgba.height,
    )


def open_image(path: str | Path) -> SourceImage:
    """Open an image and return it decoded.

    Accepts local file paths or HTTP(S) URLs. URLs are downloaded
    to a temporary file first.
    """
    path_str = str(path)
    if not is_url(path_str):
        local_path = Path(path_str)
        if not local_path.exists():
            raise FileNotFoundError(f"File not found: {local_path}")
        return load_image(local_path)

    # Temp download is removed once decoded
    local_path = download_image(path_str)
    try:
        return load_image(local_path)
    finally:
        local_path.unlink(missing_ok=True)
