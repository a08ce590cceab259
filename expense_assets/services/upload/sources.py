"""
Image Sources

Web and native clients hand over captured images differently:
- native clients pass a file:// URI pointing at the captured photo
- web clients pass a data: URL holding the encoded image

DESIGN DECISION: Rather than two copies of the upload logic, there is one
ImageSource contract with one implementation per platform. The uploader
picks an implementation once, at startup, from AppSettings.client_platform.
"""

import asyncio
import base64
import binascii
import re
from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path
from urllib.parse import unquote_to_bytes, urlparse
from urllib.request import url2pathname

from PIL import Image, UnidentifiedImageError

from expense_assets.services.upload.errors import ImageSourceError


JPEG_MIME = "image/jpeg"

_DATA_URL_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(?:;[^;,]*)*),(?P<data>.*)$",
    re.DOTALL,
)


class ImageSource(ABC):
    """Turns a client-supplied image reference into bytes ready to upload."""

    @abstractmethod
    async def read(self, local_uri: str) -> bytes:
        """
        Load the image.

        Raises:
            ImageSourceError: If the reference cannot be read
        """
        pass


class FileUriSource(ImageSource):
    """Native clients: file:// URIs (or bare paths), uploaded byte-for-byte."""

    @staticmethod
    def to_path(local_uri: str) -> Path:
        parsed = urlparse(local_uri)
        if parsed.scheme == "file":
            return Path(url2pathname(parsed.path))
        if parsed.scheme == "":
            return Path(local_uri)
        raise ImageSourceError(f"Unsupported image URI scheme: {parsed.scheme}")

    async def read(self, local_uri: str) -> bytes:
        path = self.to_path(local_uri)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ImageSourceError(f"Could not read image at {path}: {e}") from e


class DataUrlSource(ImageSource):
    """
    Web clients: data: URLs.

    JPEG payloads are uploaded as-is. Anything else (PNG from a canvas,
    WebP from a file picker) is re-encoded to JPEG so the stored bytes
    match the .jpg key and image/jpeg content type.
    """

    def __init__(self, jpeg_quality: int = 90):
        self._jpeg_quality = jpeg_quality

    @staticmethod
    def decode(data_url: str) -> tuple[str, bytes]:
        """Split a data: URL into (mime_type, payload)."""
        match = _DATA_URL_RE.match(data_url)
        if not match:
            raise ImageSourceError("Failed to convert image data: not a data URL")

        mime = (match.group("mime") or "").lower()
        params = match.group("params").split(";")
        data = match.group("data")

        if "base64" in params:
            try:
                payload = base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ImageSourceError(f"Failed to convert image data: {e}") from e
        else:
            payload = unquote_to_bytes(data)

        if not payload:
            raise ImageSourceError("Failed to convert image data: empty payload")
        return mime, payload

    def _to_jpeg(self, payload: bytes) -> bytes:
        try:
            with Image.open(BytesIO(payload)) as img:
                if img.format == "JPEG":
                    return payload
                # JPEG has no alpha channel
                rgb = img.convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise ImageSourceError(f"Could not decode image: {e}") from e

        out = BytesIO()
        rgb.save(out, format="JPEG", quality=self._jpeg_quality)
        return out.getvalue()

    async def read(self, local_uri: str) -> bytes:
        mime, payload = self.decode(local_uri)
        if mime == JPEG_MIME:
            return payload
        return await asyncio.to_thread(self._to_jpeg, payload)


def select_image_source(platform: str) -> ImageSource:
    """Pick the ImageSource for a client platform ('native' or 'web')."""
    if platform == "native":
        return FileUriSource()
    if platform == "web":
        return DataUrlSource()
    raise ValueError(f"Unknown client platform: {platform}")
