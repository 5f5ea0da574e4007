"""
Tests for data_pipeline.validate_raw_sales module.
"""
import pandas as pd

from data_pipeline import validate_raw_sales
from data_pipeline.validate_raw_sales import validate_table


class TestValidateTable:
    """Tests for validate_table function."""

    def test_clean_table_passes(self, sample_records):
        """A complete, consistent table should produce no errors or warnings."""
        report = validate_table(pd.DataFrame(sample_records), "retail_sales")
        assert report["errors"] == []
        assert report["warnings"] == []

    def test_empty_table(self):
        report = validate_table(pd.DataFrame(), "retail_sales")
        assert any("dataset is empty" in e for e in report["errors"])

    def test_missing_column(self, sample_records):
        df = pd.DataFrame(sample_records).drop(columns=["sale_time"])
        report = validate_table(df, "retail_sales")
        assert any("sale_time" in e for e in report["errors"])

    def test_duplicate_primary_key(self, sample_records):
        df = pd.DataFrame(sample_records + [dict(sample_records[0], total_sale=1.0)])
        report = validate_table(df, "retail_sales")
        assert any("duplicated primary key" in e for e in report["errors"])

    def test_negative_quantity(self, sample_records):
        df = pd.DataFrame(sample_records + [dict(sample_records[0], transaction_id=50, quantity=-2)])
        report = validate_table(df, "retail_sales")
        assert any("negative value(s) in numeric column `quantity`" in e for e in report["errors"])

    def test_incomplete_records_warn(self, raw_sales_df):
        """Incomplete rows are fixable by the contract, so only warn."""
        report = validate_table(raw_sales_df.drop_duplicates(), "retail_sales")
        assert report["errors"] == []
        assert any("3 incomplete record(s)" in w for w in report["warnings"])
        assert any("unparsable value(s) in `quantity`" in w for w in report["warnings"])

    def test_incomplete_records_strict(self, raw_sales_df, monkeypatch):
        """In strict mode incomplete rows should fail validation."""
        monkeypatch.setattr(validate_raw_sales, "VALIDATE_STRICT", True)
        report = validate_table(raw_sales_df.drop_duplicates(), "retail_sales")
        assert any("3 incomplete record(s)" in e for e in report["errors"])

    def test_total_sale_mismatch(self, sample_records):
        df = pd.DataFrame(sample_records + [dict(sample_records[0], transaction_id=60, total_sale=75.0)])
        report = validate_table(df, "retail_sales")
        assert report["errors"] == []
        assert any("total_sale differs" in w for w in report["warnings"])
