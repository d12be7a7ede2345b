# tests/test_csv_codec.py
"""Test CSV import and export"""

from audiobook_dl.core.models import Record
from audiobook_dl.library.csv_codec import (
    BOM,
    DEFAULT_COLUMNS,
    CsvColumn,
    decode,
    encode,
    read_csv_file,
    write_csv_file,
)

HEADER = "URL,Title,Author,Narrator,Series,Series Number,Year"


class TestDecode:
    """Test CSV parsing"""

    def test_basic_rows(self):
        """Test a header plus two rows"""
        text = "\n".join([
            HEADER,
            "https://youtu.be/dQw4w9WgXcQ,Dune,Frank Herbert,Scott Brick,Dune Chronicles,1,1965",
            "https://youtu.be/9bZkp7q19f0,Emma,Jane Austen,Juliet Stevenson,,,",
        ])

        records = decode(text)

        assert len(records) == 2
        assert records[0].title == "Dune"
        assert records[0].year == 1965
        assert records[1].series == ""
        assert records[1].series_number == 1
        assert records[1].year is None
        assert records[0].id != records[1].id

    def test_short_row_dropped(self):
        """Test rows with too few cells are dropped"""
        assert decode("https://youtu.be/abc,Title,Author,,,", False, 7) == []

    def test_short_row_accepted_with_fewer_columns(self):
        """Test the same row decodes when fewer columns are expected"""
        records = decode("https://youtu.be/abc,Title,Author,,,", False, 3)

        assert len(records) == 1
        record = records[0]
        assert (record.url, record.title, record.author) == ("https://youtu.be/abc", "Title", "Author")
        assert record.narrator == ""
        assert record.series_number == 1

    def test_header_skipped_only_when_requested(self):
        """Test the first row is data without a header"""
        text = "a,b,c,d,e,2,2001"
        assert decode(text, True, 7) == []
        assert decode(text, False, 7)[0].series_number == 2

    def test_bom_and_crlf(self):
        """Test a leading BOM and Windows line endings"""
        text = BOM + HEADER + "\r\n" + "u,t,a,n,s,3,1999\r\n"
        records = decode(text)
        assert len(records) == 1
        assert records[0].url == "u"
        assert records[0].year == 1999

    def test_quoted_cells(self):
        """Test commas, escaped quotes and newlines inside quotes"""
        text = '\n'.join([
            HEADER,
            'u,"Title, with comma","Author ""Quoted""","Line one\nLine two",,1,',
        ])

        record = decode(text)[0]

        assert record.title == "Title, with comma"
        assert record.author == 'Author "Quoted"'
        assert record.narrator == "Line one\nLine two"

    def test_blank_rows_and_trimming(self):
        """Test blank rows are skipped and cells are trimmed"""
        text = "\n".join([HEADER, "", "  ,  ,  ", " u , t , a , n , s , 2 , 2000 ", "   "])
        records = decode(text)

        assert len(records) == 1
        assert records[0].title == "t"
        assert records[0].series_number == 2

    def test_quoted_cells_keep_whitespace(self):
        """Test quoted cells are not trimmed, unquoted ones are"""
        text = "\n".join([HEADER, 'u ,  " Dune " , Frank Herbert ,"",,1,'])
        record = decode(text)[0]

        assert record.url == "u"
        assert record.title == " Dune "
        assert record.author == "Frank Herbert"
        assert record.narrator == ""

    def test_bad_numbers_fall_back(self):
        """Test unparseable numbers use defaults"""
        record = decode("u,t,a,n,s,first,unknown", False, 7)[0]
        assert record.series_number == 1
        assert record.year is None

    def test_empty_input(self):
        """Test empty text yields no records"""
        assert decode("") == []
        assert decode(BOM) == []


class TestEncode:
    """Test CSV serialization"""

    def test_header_and_bom(self):
        """Test the BOM and header row"""
        text = encode([])
        assert text == BOM + HEADER

    def test_row_values(self):
        """Test each column is written in order"""
        record = Record(url="u", title="t", author="a", narrator="n", series="s",
                        series_number=4, year=None)
        lines = encode([record]).split("\n")
        assert lines[1] == "u,t,a,n,s,4,"

    def test_quoting(self):
        """Test cells with special characters are quoted"""
        record = Record(title="A, B", author='Say "hi"', narrator="x\ny", series="plain")
        row = encode([record], [
            CsvColumn("title", "T"), CsvColumn("author", "A"),
            CsvColumn("narrator", "N"), CsvColumn("series", "S"),
        ]).split("\n", 1)[1]
        assert row == '"A, B","Say ""hi""","x\ny",plain'

    def test_edge_whitespace_quoted(self):
        """Test cells with leading or trailing whitespace are quoted"""
        record = Record(title=" Dune ", author="Frank Herbert")
        text = encode([record], [CsvColumn("title", "T"), CsvColumn("author", "A")])
        assert text.split("\n")[1] == '" Dune ",Frank Herbert'

    def test_custom_columns(self):
        """Test a column subset"""
        record = Record(url="u", title="t")
        text = encode([record], [CsvColumn("title", "Book")])
        assert text == BOM + "Book\nt"


class TestRoundTrip:
    """Test decode(encode(...)) keeps values"""

    def test_round_trip(self, complete_record):
        """Test values survive a round trip, ids do not"""
        tricky = Record(
            url="https://youtu.be/9bZkp7q19f0",
            title='Comma, "quote" and\nnewline',
            author="Жюль Верн",
            narrator="N",
            series="",
            series_number=3,
            year=None,
        )
        decoded = decode(encode([complete_record, tricky]), True, len(DEFAULT_COLUMNS))

        assert len(decoded) == 2
        for original, copy in zip([complete_record, tricky], decoded):
            assert copy.id != original.id
            for column in DEFAULT_COLUMNS:
                assert getattr(copy, column.key) == getattr(original, column.key)


    def test_round_trip_keeps_edge_whitespace(self):
        """Test leading and trailing whitespace survives a round trip"""
        record = Record(
            url="https://youtu.be/9bZkp7q19f0",
            title=" Dune ",
            author="Frank Herbert\t",
            narrator="  ",
            series="",
        )
        decoded = decode(encode([record]), True, len(DEFAULT_COLUMNS))[0]

        assert decoded.title == " Dune "
        assert decoded.author == "Frank Herbert\t"
        assert decoded.narrator == "  "


class TestFiles:
    """Test file helpers"""

    def test_write_then_read(self, temp_dir, complete_record):
        """Test writing and reading a CSV file"""
        path = temp_dir / "nested" / "books.csv"
        write_csv_file(path, [complete_record])

        assert path.read_bytes().startswith(b"\xef\xbb\xbf")
        records = read_csv_file(path)
        assert records[0].title == complete_record.title
