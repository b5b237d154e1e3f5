"""
Image helpers.

Images travel through the explorer as data URLs ("data:image/png;base64,...")
so they can sit inside items, be stored as JSON, and be handed straight back
to the model as references.
"""
import base64
import binascii
import io
import os
from pathlib import Path
from typing import Optional

from PIL import Image

DEFAULT_MIME = "image/png"

# Uploads larger than this are downscaled before they go to the model
MAX_REFERENCE_SIDE = 2048


def bytes_to_data_url(data: bytes, mime_type: str = DEFAULT_MIME) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def data_url_to_bytes(data_url: str) -> tuple[bytes, str]:
    """
    Split a data URL into raw bytes and mime type.

    Accepts bare base64 too (treated as PNG).

    Raises:
        ValueError: If the payload is not valid base64
    """
    mime_type = DEFAULT_MIME
    payload = data_url
    if data_url.startswith("data:"):
        header, _, payload = data_url.partition(",")
        mime_type = header[len("data:"):].split(";")[0] or DEFAULT_MIME
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid image data: {e}") from e


def image_to_data_url(image: Image.Image) -> str:
    """Encode a PIL image as a PNG data URL."""
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return bytes_to_data_url(buffer.getvalue())


def load_image_as_data_url(image_path: str) -> str:
    """
    Load a photo or capture from disk as a PNG data URL.

    Any format Pillow reads is accepted; large images are downscaled.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not os.path.exists(image_path):
        raise FileNotFoundError(f"Image not found: {image_path}")

    with Image.open(image_path) as img:
        img.load()
        if max(img.size) > MAX_REFERENCE_SIDE:
            img.thumbnail((MAX_REFERENCE_SIDE, MAX_REFERENCE_SIDE))
        return image_to_data_url(img)


def save_data_url(data_url: str, output_path: str) -> Optional[str]:
    """Write a data URL image to disk. Returns the path, or None if undecodable."""
    try:
        data, _ = data_url_to_bytes(data_url)
    except ValueError as e:
        print(f"   ⚠️  Could not decode image for {output_path}: {e}")
        return None

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with Image.open(io.BytesIO(data)) as img:
        img.save(output_path)
    return output_path
