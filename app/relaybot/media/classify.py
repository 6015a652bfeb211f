"""Image MIME-type registry for attachments and generated files."""

from __future__ import annotations

EXTENSION_TO_MIME: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}

MIME_TO_EXTENSION: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
}


def _normalise(content_type: str | None) -> str:
    return (content_type or "").lower().split(";")[0].strip()


def image_mime(content_type: str | None, filename: str = "") -> str | None:
    """Return the image MIME type for an attachment, or ``None`` if it is not one.

    The declared content type wins; the filename extension is the fallback
    for clients that omit it.
    """
    mime = _normalise(content_type)
    if mime in MIME_TO_EXTENSION:
        return mime
    if mime:
        return None
    dot = filename.rfind(".")
    return EXTENSION_TO_MIME.get(filename[dot:].lower()) if dot != -1 else None


def extension_for(mime: str | None, default: str = ".png") -> str:
    return MIME_TO_EXTENSION.get(_normalise(mime), default)
