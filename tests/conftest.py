"""Test configuration and fixtures"""

import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from audiobook_dl.core.collection import RecordCollection
from audiobook_dl.core.exceptions import MetadataFetchError
from audiobook_dl.core.models import Record
from audiobook_dl.youtube.metadata import FetchedMetadata

VIDEO_ID = "dQw4w9WgXcQ"
OTHER_VIDEO_ID = "9bZkp7q19f0"
WATCH_URL = f"https://www.youtube.com/watch?v={VIDEO_ID}"
OTHER_WATCH_URL = f"https://www.youtube.com/watch?v={OTHER_VIDEO_ID}"


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def complete_record():
    """A record that passes the script validation gate"""
    return Record(
        url=f"https://youtu.be/{VIDEO_ID}",
        title="Dune",
        author="Frank Herbert",
        narrator="Scott Brick",
        series="Dune Chronicles",
        series_number=1,
        year=1965,
    )


@pytest.fixture
def collection():
    """Collection with one record for each video id"""
    return RecordCollection([
        Record(url=WATCH_URL),
        Record(url=OTHER_WATCH_URL, title="Gangnam Style", author="PSY"),
    ])


class FakeFetcher:
    """
    In-memory metadata fetcher.

    Answers from a dict keyed by video id. Ids mapped to an exception
    raise it. Every call is recorded in `calls`.
    """

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def fetch_metadata(self, video_id):
        self.calls.append(video_id)
        response = self.responses.get(video_id)
        if response is None:
            raise MetadataFetchError(
                "Failed to fetch metadata: 404 Not Found",
                video_id=video_id,
                status_code=404,
            )
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_fetcher():
    """Fetcher knowing both test videos"""
    return FakeFetcher({
        VIDEO_ID: FetchedMetadata(title="Never Gonna Give You Up", author_name="Rick Astley"),
        OTHER_VIDEO_ID: FetchedMetadata(title="PSY - GANGNAM STYLE", author_name="officialpsy"),
    })


@pytest.fixture
def mock_response():
    """Factory for requests.Response stand-ins"""
    def make(status_code=200, json_data=None, json_error=None):
        response = Mock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 400
        response.reason = "OK" if response.ok else "Not Found"
        response.text = "" if json_data is None else str(json_data)
        if json_error is not None:
            response.json.side_effect = json_error
        else:
            response.json.return_value = json_data
        return response
    return make
