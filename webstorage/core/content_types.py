"""
File name to MIME type lookup.

The explicit table covers what users upload most and pins types that
the platform mimetypes registry reports inconsistently across systems.
Everything else falls through to mimetypes, then to octet-stream.
"""

import mimetypes
import os

from .models import DEFAULT_CONTENT_TYPE

CONTENT_TYPES = {
    # Images
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "ico": "image/vnd.microsoft.icon",
    "avif": "image/avif",
    "heic": "image/heic",
    # Audio / video
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "m4a": "audio/mp4",
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "webm": "video/webm",
    "mkv": "video/x-matroska",
    # Documents
    "pdf": "application/pdf",
    "txt": "text/plain",
    "csv": "text/csv",
    "md": "text/markdown",
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "json": "application/json",
    "xml": "application/xml",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    # Archives
    "zip": "application/zip",
    "gz": "application/gzip",
    "tar": "application/x-tar",
    "7z": "application/x-7z-compressed",
    "rar": "application/vnd.rar",
}


def resolve_content_type(file_name: str) -> str:
    """
    Guess a MIME type from a file name or path.

    Case-insensitive on the extension. Never fails: names without an
    extension, dotfiles and unknown extensions all give octet-stream.
    """
    base = os.path.basename(file_name or "")
    _, ext = os.path.splitext(base)
    ext = ext.lstrip(".").lower()
    if not ext:
        return DEFAULT_CONTENT_TYPE

    if ext in CONTENT_TYPES:
        return CONTENT_TYPES[ext]

    guessed, _ = mimetypes.guess_type(f"file.{ext}", strict=False)
    return guessed or DEFAULT_CONTENT_TYPE
