"""Image media helpers -- MIME lookup and scratch files."""

from .classify import EXTENSION_TO_MIME, extension_for, image_mime
from .download import fetch_bytes
from .scratch import ScratchStore

__all__ = ["EXTENSION_TO_MIME", "ScratchStore", "extension_for", "fetch_bytes", "image_mime"]
