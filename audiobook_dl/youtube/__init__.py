"""
YouTube integration module for audiobook-dl.

This module turns user input into canonical YouTube references and looks
up the metadata YouTube publishes for them.

Components:
    - normalize / CanonicalUrl: URL normalization to a watch URL + video id
    - OEmbedMetadataFetcher: title/channel lookup through oEmbed
    - thumbnail_url: thumbnail image URLs for a video id

Usage:
    from audiobook_dl.youtube import normalize, OEmbedMetadataFetcher

    canonical = normalize("https://youtu.be/dQw4w9WgXcQ")
    if canonical is not None:
        metadata = OEmbedMetadataFetcher().fetch_metadata(canonical.video_id)
"""

from audiobook_dl.youtube.url import (
    CanonicalUrl,
    extract_video_id,
    is_valid_youtube_url,
    normalize,
)
from audiobook_dl.youtube.metadata import (
    FetchedMetadata,
    MetadataFetcher,
    OEmbedMetadataFetcher,
    thumbnail_url,
)

__all__ = [
    # URL
    "CanonicalUrl",
    "normalize",
    "extract_video_id",
    "is_valid_youtube_url",
    # Metadata
    "FetchedMetadata",
    "MetadataFetcher",
    "OEmbedMetadataFetcher",
    "thumbnail_url",
]
