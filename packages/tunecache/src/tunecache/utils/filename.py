"""Filename helpers for Content-Disposition headers and type guessing."""

import mimetypes

from pathvalidate import sanitize_filename
from unidecode import unidecode

from tunecache.models.metadata import DEFAULT_CONTENT_TYPE

# Types the provider reports that mimetypes may not know about everywhere
_AUDIO_TYPES = {
    ".mp3": "audio/mpeg",
    ".flac": "audio/flac",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
}


def clean_filename(s: str, *, ascii_filenames: bool = False) -> str:
    """Sanitize a string for use in a filename.

    Optionally transliterates unicode characters to ASCII equivalents,
    then removes or replaces characters that are invalid in filenames.

    Args:
        s: String to sanitize.
        ascii_filenames: If True, transliterate unicode to ASCII before sanitizing.

    Returns:
        Sanitized string safe for use in filenames.

    Example:
        >>> clean_filename("AC/DC.mp3")
        'ACDC.mp3'
        >>> clean_filename("Björk.flac", ascii_filenames=True)
        'Bjork.flac'
    """
    if ascii_filenames:
        s = unidecode(s)
    return sanitize_filename(s)


def track_filename(track_id: str, media_type: str | None) -> str | None:
    """Build the filename offered to clients for a track.

    HTTP header values must be latin-1, so the name is transliterated to
    ASCII and double quotes are dropped by the sanitizer.

    Args:
        track_id: Provider track identifier.
        media_type: Declared media type such as ``MP3`` or ``flac``.

    Returns:
        ``"{id}.{type}"`` sanitized, or None when the type is unknown or
        nothing usable remains after sanitizing.
    """
    if not media_type or not media_type.strip():
        return None
    name = clean_filename(
        f"{track_id}.{media_type.strip().lower()}", ascii_filenames=True
    )
    return name or None


def guess_content_type(filename: str | None) -> str:
    """Guess an audio media type from a filename, defaulting to MP3."""
    if not filename:
        return DEFAULT_CONTENT_TYPE
    suffix = "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if suffix in _AUDIO_TYPES:
        return _AUDIO_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or DEFAULT_CONTENT_TYPE
