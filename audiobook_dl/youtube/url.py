"""
YouTube URL normalization.

Turns whatever the user pasted (short links, embeds, shorts, schemeless
watch URLs with timestamps and playlists attached) into one canonical
watch URL plus its 11-character video id.

Nothing in this module raises for bad input: a string that does not lead
to a YouTube video simply normalizes to None, which callers treat as
"not ready yet" rather than as an error.

Usage:
    from audiobook_dl.youtube.url import normalize

    canonical = normalize("youtu.be/dQw4w9WgXcQ?t=30")
    canonical.watch_url  # "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    canonical.video_id   # "dQw4w9WgXcQ"
"""

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlsplit


WATCH_URL_PREFIX = "https://www.youtube.com/watch?v="

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

# Best-effort id search used when structured parsing gives nothing usable.
# The lookahead keeps it from taking the first 11 characters of a longer token.
FALLBACK_ID_PATTERN = re.compile(
    r"(?:v=|/|be/|embed/|shorts/)([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"
)

SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

# Characters that end an id that was cut out of a larger string
ID_TERMINATORS = re.compile(r"[?#&]")


@dataclass(frozen=True)
class CanonicalUrl:
    """
    A YouTube video reference in canonical form.

    Attributes:
        watch_url: "https://www.youtube.com/watch?v=<video_id>"
        video_id: 11 characters from [A-Za-z0-9_-]
    """

    watch_url: str
    video_id: str

    @classmethod
    def from_video_id(cls, video_id: str) -> "CanonicalUrl":
        return cls(watch_url=f"{WATCH_URL_PREFIX}{video_id}", video_id=video_id)

    def __str__(self) -> str:
        return self.watch_url


def _fallback_video_id(text: str) -> str | None:
    """Search raw text for an id following one of the known markers."""
    match = FALLBACK_ID_PATTERN.search(text)
    return match.group(1) if match else None


def _first_query_value(query: str, name: str) -> str | None:
    values = parse_qs(query).get(name)
    return values[0] if values else None


def _video_id_from_parts(host: str, path: str, query: str) -> str | None:
    """
    Read the id out of an already-split URL.

    Args:
        host: Lowercased host name.
        path: URL path, starting with "/" (or empty).
        query: Raw query string without the leading "?".

    Returns:
        The candidate id (not yet validated), or None.
    """
    video_id = None

    # youtu.be short links, subdomains included (www.youtu.be)
    if host.endswith("youtu.be"):
        video_id = path[1:] if path.startswith("/") else path

    if host.endswith("youtube.com") or host.endswith("youtube-nocookie.com"):
        if path.startswith("/watch"):
            video_id = _first_query_value(query, "v")
        elif path.startswith("/embed/") or path.startswith("/shorts/"):
            segments = path.split("/")
            video_id = segments[2] if len(segments) > 2 else None
        else:
            video_id = _first_query_value(query, "v") or video_id

    if video_id:
        video_id = ID_TERMINATORS.split(video_id)[0]

    return video_id or None


def normalize(value: str | None) -> CanonicalUrl | None:
    """
    Normalize any YouTube-like input into a canonical watch URL.

    Args:
        value: Raw user input. None and blank strings are accepted.

    Returns:
        CanonicalUrl on success, None when the input does not resolve to a
        YouTube video reference.

    Behavior:
        1. Reject None, empty and whitespace-only input
        2. Prefix "https://" when no http(s) scheme is present
        3. Split the URL; if that fails, use the regex fallback only
        4. Pick the id by host and path (youtu.be, /watch, /embed/,
           /shorts/, any other path with a v= parameter)
        5. Cut the id at the first '?', '#' or '&'
        6. If the id is missing or not 11 valid characters, retry the
           regex fallback against the trimmed raw input
        7. Build the canonical URL from the validated id

    Examples:
        normalize("youtube.com/watch?v=dQw4w9WgXcQ&t=30").watch_url
        # "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

        normalize("not a url")
        # None

    Note:
        Idempotent: normalize(normalize(s).watch_url) == normalize(s).
    """
    if value is None:
        return None

    trimmed = value.strip()
    if not trimmed:
        return None

    url_str = trimmed if SCHEME_PATTERN.match(trimmed) else f"https://{trimmed}"

    try:
        parts = urlsplit(url_str)
        host = (parts.hostname or "").lower()
    except ValueError:
        video_id = _fallback_video_id(trimmed)
        return CanonicalUrl.from_video_id(video_id) if video_id else None

    video_id = _video_id_from_parts(host, parts.path, parts.query)

    if not video_id or not VIDEO_ID_PATTERN.match(video_id):
        video_id = _fallback_video_id(trimmed)

    if video_id and VIDEO_ID_PATTERN.match(video_id):
        return CanonicalUrl.from_video_id(video_id)

    return None


def extract_video_id(value: str | None) -> str | None:
    """Return the 11-character video id for any YouTube-like input, or None."""
    canonical = normalize(value)
    return canonical.video_id if canonical else None


def is_valid_youtube_url(value: str | None) -> bool:
    """True when the input resolves to a YouTube video."""
    return normalize(value) is not None
