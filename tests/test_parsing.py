"""
Upload parsing and summarization tests.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

SAMPLE_CSV = """id,name,email,created_at,status,amount
1,John Doe,john@example.com,2024-01-15,active,1500.00
2,Jane Smith,jane@example.com,2024-01-18,active,2300.50
3,Bob Wilson,bob@example.com,2024-02-01,inactive,890.25
4,Alice Brown,alice@example.com,2024-02-10,active,3200.00
5,Charlie Davis,charlie@example.com,2024-02-15,pending,1750.75"""


def parse(text):
    from insightstream.backend.file_parser import TabularParser
    return TabularParser().parse_text(text)


class TestTabularParser:
    """Test CSV text -> typed rows."""

    def test_end_to_end_small_dataset(self):
        from insightstream.core.models import NumericCell, TextCell

        dataset = parse("a,b\n1,x\n2,y\n3,x")
        assert dataset.columns == ("a", "b")
        assert dataset.row_count == 3
        assert dataset.rows[0]["a"] == NumericCell(1.0)
        assert dataset.rows[2]["b"] == TextCell("x")

    def test_row_count_matches_line_count(self):
        dataset = parse(SAMPLE_CSV)
        assert dataset.row_count == len(SAMPLE_CSV.split("\n")) - 1
        for row in dataset.rows:
            assert tuple(row.keys()) == dataset.columns

    def test_numeric_cell_holds_float(self):
        from insightstream.core.models import NumericCell

        dataset = parse("value\n3.14")
        assert dataset.rows[0]["value"] == NumericCell(3.14)
        assert isinstance(dataset.rows[0]["value"].value, float)

    def test_partial_numbers_stay_text(self):
        from insightstream.core.models import NumericCell, TextCell

        dataset = parse("v\n12abc\nnan\n1e3\n -7 \n.5")
        cells = dataset.column_values("v")
        assert cells[0] == TextCell("12abc")
        assert cells[1] == TextCell("nan")
        assert cells[2] == NumericCell(1000.0)
        assert cells[3] == NumericCell(-7.0)
        assert cells[4] == NumericCell(0.5)

    def test_overflowing_numbers_stay_text(self):
        from insightstream.core.models import NumericCell, TextCell

        cells = parse("v\n1e400\n-1e400\n1e300").column_values("v")
        assert cells[0] == TextCell("1e400")
        assert cells[1] == TextCell("-1e400")
        assert cells[2] == NumericCell(1e300)

    def test_fewer_than_two_lines_is_empty(self):
        assert parse("").is_empty
        assert parse("a,b,c").is_empty
        assert parse("a,b,c\n").is_empty

    def test_missing_trailing_cells_become_empty_strings(self):
        from insightstream.core.models import NumericCell, TextCell

        dataset = parse("id,name,status\n1")
        row = dataset.rows[0]
        assert row["id"] == NumericCell(1.0)
        assert row["name"] == TextCell("")
        assert row["status"] == TextCell("")

    def test_extra_cells_are_ignored(self):
        dataset = parse("a\n1,2,3")
        assert dataset.columns == ("a",)
        assert list(dataset.rows[0].keys()) == ["a"]

    def test_quotes_are_stripped_not_respected(self):
        from insightstream.core.models import NumericCell, TextCell

        dataset = parse('"name","amount"\n"Bob","12.5"\n"Smith, J",3')
        assert dataset.columns == ("name", "amount")
        assert dataset.rows[0]["amount"] == NumericCell(12.5)
        # Quoted commas still split the row
        assert dataset.rows[1]["name"] == TextCell("Smith")
        assert dataset.rows[1]["amount"] == TextCell("J")

    def test_crlf_line_endings(self):
        from insightstream.core.models import NumericCell

        dataset = parse("a,b\r\n1,2\r\n3,4\r\n")
        assert dataset.row_count == 2
        assert dataset.rows[1]["b"] == NumericCell(4.0)

    def test_duplicate_and_blank_headers_are_made_unique(self):
        dataset = parse("a,a,\n1,2,3")
        assert dataset.columns == ("a", "a_2", "column_3")
        assert len(dataset.rows[0]) == 3

    def test_parse_file(self, tmp_path):
        from insightstream.backend.file_parser import TabularParser

        path = tmp_path / "data.csv"
        path.write_text("\ufeffa,b\n1,x\n", encoding="utf-8")
        dataset = TabularParser().parse(str(path))
        assert dataset.columns == ("a", "b")

    def test_parse_rejects_other_formats(self, tmp_path):
        from insightstream.backend.file_parser import TabularParser

        path = tmp_path / "data.xlsx"
        path.write_bytes(b"")
        with pytest.raises(ValueError):
            TabularParser().parse(str(path))


class TestRawDataExport:
    """Test CSV re-export."""

    def test_export_quotes_commas_and_blanks_missing(self):
        from insightstream.backend.file_parser import export_csv
        from insightstream.core.models import Dataset

        dataset = Dataset.from_records([
            {"name": "Smith, J", "amount": 2.0},
            {"name": "Bob", "amount": None},
        ])
        lines = export_csv(dataset).split("\n")
        assert lines[0] == "name,amount"
        assert lines[1] == '"Smith, J",2'
        assert lines[2] == "Bob,"

    def test_export_keeps_number_text(self):
        from insightstream.backend.file_parser import export_csv

        text = "id,name,price\n1,a,2.5\n2,b,0.125\n-3,c,1e3"
        assert export_csv(parse(text)) == "id,name,price\n1,a,2.5\n2,b,0.125\n-3,c,1000"

    def test_export_empty_dataset(self):
        from insightstream.backend.file_parser import export_csv
        from insightstream.core.models import Dataset

        assert export_csv(Dataset.empty()) == ""

    def test_export_filename(self):
        from insightstream.backend.file_parser import export_filename

        name = export_filename()
        assert name.startswith("data-export-")
        assert name.endswith(".csv")


class TestStatisticalSummarizer:
    """Test aggregates, histograms and category counts."""

    def test_end_to_end_summary(self):
        from insightstream.backend.summarizer import summarize

        summary = summarize(parse("a,b\n1,x\n2,y\n3,x"))
        stats = summary.numeric["a"]
        assert (stats.min, stats.max, stats.mean, stats.sum, stats.count) == (1, 3, 2, 6, 3)
        assert summary.categorical["b"].top == (("x", 2), ("y", 1))
        assert "a" not in summary.categorical
        assert "b" not in summary.numeric

    def test_mixed_column_is_both(self):
        from insightstream.backend.summarizer import categorical_columns, numeric_columns, numeric_summary

        dataset = parse("v\n1\nabc\n3")
        assert numeric_columns(dataset) == ["v"]
        assert categorical_columns(dataset) == ["v"]
        stats = numeric_summary(dataset, "v")
        assert stats.count == 2
        assert stats.sum == 4

    def test_column_without_numbers_has_no_numeric_summary(self):
        from insightstream.backend.summarizer import numeric_summary

        assert numeric_summary(parse("v\nx\ny"), "v") is None

    def test_histogram_counts_sum_and_last_bucket_includes_max(self):
        from insightstream.backend.summarizer import histogram

        dataset = parse("v\n" + "\n".join(str(i) for i in range(1, 11)))
        buckets = histogram(dataset, "v")
        assert len(buckets) == 5
        assert sum(b.count for b in buckets) == 10
        assert [b.count for b in buckets] == [2, 2, 2, 2, 2]
        assert buckets[-1].upper == 10

    def test_histogram_skewed_values(self):
        from insightstream.backend.summarizer import histogram

        dataset = parse("v\n0\n0.1\n0.2\n100\nfoo\n99.99")
        buckets = histogram(dataset, "v")
        assert sum(b.count for b in buckets) == 5
        assert buckets[0].count == 3
        assert buckets[-1].count == 2

    def test_histogram_value_on_edge_opens_its_bucket(self):
        from insightstream.backend.summarizer import histogram

        buckets = histogram(parse("v\n0\n0.6\n1"), "v")
        assert [b.count for b in buckets] == [1, 0, 0, 1, 1]
        assert buckets[3].range_label == "0.60-0.80"
        assert buckets[3].lower == 0.6

    def test_histogram_single_value_column(self):
        from insightstream.backend.summarizer import histogram

        buckets = histogram(parse("v\n5\n5\n5"), "v")
        assert [b.count for b in buckets] == [3, 0, 0, 0, 0]
        assert buckets[0].lower == 5
        assert buckets[0].upper == 6

    def test_histogram_without_numbers(self):
        from insightstream.backend.summarizer import histogram

        assert histogram(parse("v\nx"), "v") == []

    def test_category_ties_keep_first_seen_order(self):
        from insightstream.backend.summarizer import category_counts

        dataset = parse("c\nc\nb\na\nb\na\nc")
        assert category_counts(dataset, "c") == [("c", 2), ("b", 2), ("a", 2)]

    def test_numeric_categories_are_not_rounded(self):
        from insightstream.backend.summarizer import category_counts

        dataset = parse("v\n1.231\n1.234\nx\n2\n2.0")
        assert category_counts(dataset, "v") == [("2", 2), ("1.231", 1), ("1.234", 1), ("x", 1)]

    def test_category_top_n(self):
        from insightstream.backend.summarizer import category_counts

        dataset = parse("c\n" + "\n".join(["g", "a", "b", "c", "d", "e", "f", "g"]))
        counts = category_counts(dataset, "c")
        assert len(counts) == 5
        assert counts[0] == ("g", 2)

    def test_missing_values_count_as_unknown(self):
        from insightstream.backend.summarizer import category_counts
        from insightstream.core.models import Dataset

        dataset = Dataset.from_records([{"s": None}, {"s": "a"}, {"s": None}])
        assert category_counts(dataset, "s") == [("Unknown", 2), ("a", 1)]

    def test_summary_is_deterministic(self):
        from insightstream.backend.summarizer import summarize

        dataset = parse(SAMPLE_CSV)
        assert summarize(dataset) == summarize(dataset)

    def test_headline_metrics(self):
        from insightstream.backend.summarizer import headline_metrics

        metrics = dict(headline_metrics(parse(SAMPLE_CSV)))
        assert metrics["Total Records"] == "5"
        assert metrics["Active Count"] == "3 (60%)"
        assert metrics["Columns"] == "6"
        assert metrics["Total id"] == "15"

    def test_headline_metrics_empty(self):
        from insightstream.backend.summarizer import headline_metrics
        from insightstream.core.models import Dataset

        metrics = headline_metrics(Dataset.empty())
        assert all(value == "-" for _, value in metrics)


class TestDataset:
    """Test dataset helpers."""

    def test_from_records_tags_values(self):
        from insightstream.core.models import MISSING, Dataset, NumericCell, TextCell

        dataset = Dataset.from_records([{"a": 1, "b": "x"}, {"a": None, "c": True}])
        assert dataset.columns == ("a", "b", "c")
        assert dataset.rows[0]["a"] == NumericCell(1.0)
        assert dataset.rows[1]["a"] == MISSING
        assert dataset.rows[1]["b"] == MISSING
        assert dataset.rows[1]["c"] == TextCell("true")

    def test_to_dataframe(self):
        df = parse("a,b\n1,x\n2,y").to_dataframe()
        assert list(df.columns) == ["a", "b"]
        assert df["a"].sum() == 3

    def test_rows_are_read_only(self):
        from insightstream.core.models import NumericCell

        dataset = parse("a\n1")
        with pytest.raises(TypeError):
            dataset.rows[0]["a"] = NumericCell(2.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
