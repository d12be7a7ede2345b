# tests/test_utils.py
"""Test utilities and helpers"""

import pytest

from audiobook_dl.core.collection import RecordCollection
from audiobook_dl.core.models import Record
from audiobook_dl.utils import (
    sanitize_filename,
    to_lower_case,
    to_name_case,
    to_sentence_case,
    to_upper_case,
    transform_field,
)


class TestHelpers:
    """Test helper functions"""

    def test_sanitize_filename(self):
        """Test filename sanitization removes path separators"""
        assert "/" not in sanitize_filename("AC/DC")
        assert sanitize_filename("Dune") == "Dune"

    def test_sentence_case(self):
        """Test sentence case"""
        assert to_sentence_case("the LORD of the rings") == "The lord of the rings"
        assert to_sentence_case("") == ""

    def test_name_case(self):
        """Test name case"""
        assert to_name_case("the LORD of the rings") == "The Lord Of The Rings"
        assert to_name_case("jean-luc  picard") == "Jean-luc  Picard"
        assert to_name_case("") == ""

    def test_upper_and_lower(self):
        """Test upper and lower case"""
        assert to_upper_case("Dune") == "DUNE"
        assert to_lower_case("Dune") == "dune"


class TestTransformField:
    """Test applying transforms through the collection"""

    def test_transform_title(self):
        """Test a transform updates only the chosen field"""
        record = Record(title="dune messiah", author="frank herbert")
        collection = RecordCollection([record])

        snapshot = transform_field(collection, record.id, "title", "name")

        assert snapshot[0].title == "Dune Messiah"
        assert snapshot[0].author == "frank herbert"

    def test_unknown_field(self):
        """Test non-text fields are rejected"""
        collection = RecordCollection()
        with pytest.raises(ValueError):
            transform_field(collection, collection.records[0].id, "url", "upper")

    def test_unknown_transform(self):
        """Test unknown transform names are rejected"""
        collection = RecordCollection()
        with pytest.raises(ValueError):
            transform_field(collection, collection.records[0].id, "title", "title")

    def test_unknown_record(self):
        """Test unknown ids leave the collection untouched"""
        collection = RecordCollection()
        before = collection.records
        assert transform_field(collection, "missing", "title", "upper") is before
