"""
YouTube metadata lookup through the public oEmbed endpoint.

The oEmbed endpoint needs no API key and returns, among other things, the
video title and the channel name. Only those two fields are used: the
title becomes the book title candidate and the channel name the author
candidate. Anything else in the response is ignored.

Also provides thumbnail URL construction for a video id (img.youtube.com),
used by the `info` command.

Usage:
    from audiobook_dl.youtube.metadata import OEmbedMetadataFetcher

    fetcher = OEmbedMetadataFetcher(timeout=10)
    metadata = fetcher.fetch_metadata("dQw4w9WgXcQ")
    print(metadata.title, metadata.author_name)
"""

from dataclasses import dataclass
from typing import Protocol

import requests

from audiobook_dl.core.exceptions import MetadataFetchError
from audiobook_dl.core.logger import get_logger
from audiobook_dl.youtube.url import WATCH_URL_PREFIX


logger = get_logger(__name__)


OEMBED_ENDPOINT = "https://www.youtube.com/oembed"

THUMBNAIL_BASE_URL = "https://img.youtube.com/vi"

# Quality name -> image file served by img.youtube.com
THUMBNAIL_FILES = {
    "default": "default.jpg",
    "medium": "mqdefault.jpg",
    "high": "hqdefault.jpg",
    "max": "maxresdefault.jpg",
}

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class FetchedMetadata:
    """
    Metadata returned by YouTube for one video.

    Attributes:
        title: Video title. Example: "Dune - Frank Herbert (Full Audiobook)"
        author_name: Channel name. Example: "Audiobooks Channel"
    """

    title: str
    author_name: str


class MetadataFetcher(Protocol):
    """Anything that can look up metadata for a video id."""

    def fetch_metadata(self, video_id: str) -> FetchedMetadata:
        ...


class OEmbedMetadataFetcher:
    """
    Fetches title and channel name for a video through YouTube oEmbed.

    The fetcher keeps one requests.Session so consecutive lookups in a
    batch reuse the connection.

    Attributes:
        timeout: Seconds to wait for the oEmbed response.
        session: The HTTP session used for requests.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def fetch_metadata(self, video_id: str) -> FetchedMetadata:
        """
        Look up title and channel name for a video.

        Args:
            video_id: 11-character YouTube video id.

        Returns:
            FetchedMetadata with empty strings for missing fields.

        Raises:
            MetadataFetchError: On a non-success HTTP status (status_code
                set), on transport failures, or when the body is not a
                JSON object.
        """
        watch_url = f"{WATCH_URL_PREFIX}{video_id}"
        logger.debug(f"Fetching oEmbed metadata for {watch_url}")

        try:
            response = self.session.get(
                OEMBED_ENDPOINT,
                params={"url": watch_url, "format": "json"},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise MetadataFetchError(
                f"Error fetching YouTube metadata: {e}",
                details={"url": watch_url, "original_error": str(e)},
                video_id=video_id
            ) from e

        if not response.ok:
            raise MetadataFetchError(
                f"Failed to fetch metadata: {response.status_code} {response.reason}",
                details={"url": watch_url, "response": response.text[:200]},
                video_id=video_id,
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MetadataFetchError(
                "Error fetching YouTube metadata: response is not JSON",
                details={"url": watch_url, "original_error": str(e)},
                video_id=video_id
            ) from e

        if not isinstance(data, dict):
            raise MetadataFetchError(
                "Error fetching YouTube metadata: unexpected response shape",
                details={"url": watch_url},
                video_id=video_id
            )

        return FetchedMetadata(
            title=str(data.get("title") or ""),
            author_name=str(data.get("author_name") or "")
        )


def thumbnail_url(video_id: str, quality: str = "medium") -> str:
    """
    Build the thumbnail image URL for a video.

    Args:
        video_id: 11-character YouTube video id.
        quality: One of "default", "medium", "high", "max".

    Raises:
        ValueError: For an unknown quality name.

    Example:
        thumbnail_url("dQw4w9WgXcQ", "max")
        # "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"
    """
    try:
        filename = THUMBNAIL_FILES[quality]
    except KeyError:
        raise ValueError(
            f"Unknown thumbnail quality: {quality}. "
            f"Valid options: {', '.join(THUMBNAIL_FILES)}"
        ) from None
    return f"{THUMBNAIL_BASE_URL}/{video_id}/{filename}"
