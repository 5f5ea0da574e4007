"""
Tests for data_pipeline.pipeline_io module.
"""
import pandas as pd

from data_pipeline.pipeline_io import (
    init_report,
    load_logical_table,
    load_source,
    log_error,
    log_info,
    log_warning,
    normalize_columns,
)


class TestRunReport:
    """Tests for the run report logging helpers."""

    def test_messages_recorded_and_printed(self, capsys):
        report = init_report()
        log_info("loaded", report)
        log_warning("odd", report)
        log_error("broken", report)

        assert report == {"errors": ["broken"], "warnings": ["odd"], "info": ["loaded"]}
        err = capsys.readouterr().err
        assert "[INFO] loaded" in err
        assert "[WARNING] odd" in err
        assert "[ERROR] broken" in err


class TestLoading:
    """Tests for CSV loading helpers."""

    def test_normalize_columns(self):
        df = pd.DataFrame(columns=[" Transactions_ID ", "Sale_Date"])
        assert list(normalize_columns(df).columns) == ["transaction_id", "sale_date"]

    def test_combines_matching_files(self, sample_records, tmp_path):
        """All retail_sales*.csv files should be concatenated."""
        pd.DataFrame(sample_records[:3]).to_csv(tmp_path / "retail_sales_2022.csv", index=False)
        pd.DataFrame(sample_records[3:]).to_csv(tmp_path / "retail_sales_2023.csv", index=False)
        pd.DataFrame(sample_records).to_csv(tmp_path / "customers.csv", index=False)

        report = init_report()
        df = load_logical_table(str(tmp_path), "retail_sales", report)

        assert len(df) == 8
        assert df["transaction_id"].tolist() == list(range(1, 9))
        assert any("combined 2 file(s) into 8 rows" in m for m in report["info"])

    def test_no_matching_files(self, tmp_path):
        report = init_report()
        assert load_logical_table(str(tmp_path), "retail_sales", report) is None
        assert report["errors"]

    def test_load_single_file(self, sample_records, tmp_path):
        path = tmp_path / "export.csv"
        pd.DataFrame(sample_records).to_csv(path, index=False)
        df = load_source(str(path), init_report())
        assert len(df) == 8

    def test_unreadable_file(self, tmp_path):
        """A file that is not valid CSV should be reported, not raised."""
        path = tmp_path / "retail_sales.csv"
        path.write_bytes(b"")
        report = init_report()
        assert load_logical_table(str(tmp_path), "retail_sales", report) is None
        assert any("Failed to load" in e for e in report["errors"])
