"""
External capability adapters.
"""
from .gemini import GeminiCapability, clean_json
from .images import (
    bytes_to_data_url,
    data_url_to_bytes,
    image_to_data_url,
    load_image_as_data_url,
    save_data_url,
)

__all__ = [
    "GeminiCapability",
    "clean_json",
    "bytes_to_data_url",
    "data_url_to_bytes",
    "image_to_data_url",
    "load_image_as_data_url",
    "save_data_url",
]
