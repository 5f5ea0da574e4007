# =============================================================================
# VALIDATE RAW RETAIL SALES DATA
# =============================================================================
# - Enforce structural and semantic integrity of the raw retail sales table
# - Block data that would corrupt downstream aggregations or time buckets
# - Designed for deterministic execution in CI/CD pipelines


import os
import sys
from typing import Dict, List
import pandas as pd

from data_pipeline.apply_sales_data_contract import (
    coerce_column_types,
    find_incomplete_records,
)
from data_pipeline.pipeline_io import (
    DECIMAL_COLUMNS,
    PRIMARY_KEY,
    RAW_DATA_BASE_PATH,
    REQUIRED_COLUMNS,
    TABLE_NAME,
    init_report,
    load_logical_table,
    log_error,
    log_info,
    log_warning,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

VALIDATE_STRICT = os.getenv('VALIDATE_STRICT', 'false').lower() == 'true'

NON_NEGATIVE_COLUMNS = ['age', 'quantity', 'price_per_unit', 'cogs', 'total_sale']

# Allowed absolute gap between total_sale and quantity * price_per_unit
TOTAL_SALE_TOLERANCE = 0.01


# ------------------------------------------------------------
# BASE VALIDATIONS
# ------------------------------------------------------------

def run_base_validations(df: pd.DataFrame,
                         table_name: str,
                         report: Dict[str, List[str]]
                         ) -> bool:
    """
    Base structural validations.

    Returns False if structure is broken and later checks must not run.
    """

    if df.empty:
        log_error(f'{table_name}: dataset is empty', report)

        return False

    duplicate_columns = df.columns[df.columns.duplicated()].tolist()
    if duplicate_columns:
        log_error(
            f'{table_name}: duplicate column names detected: {duplicate_columns}',
            report
            )

        return False

    missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_columns:
        log_error(
            f'{table_name}: missing required column(s): {missing_columns}',
            report
            )

        return False

    pk_null_count = df[PRIMARY_KEY].isnull().any(axis=1).sum()
    if pk_null_count > 0:
        log_error(
            f'{table_name}: {pk_null_count} row(s) with null primary key values',
            report
            )

    duplicate_pk_count = df.duplicated(subset=PRIMARY_KEY).sum()
    if duplicate_pk_count > 0:
        log_error(
            f'{table_name}: {duplicate_pk_count} duplicated primary key value(s)',
            report
            )

    return True


# ------------------------------------------------------------
# COMPLETENESS VALIDATIONS
# ------------------------------------------------------------

def run_completeness_validations(df: pd.DataFrame,
                                 table_name: str,
                                 report: Dict[str, List[str]]
                                 ) -> None:
    """
    Missing and unparsable values.

    Incomplete rows are dropped by the contract, so they only warn unless
    VALIDATE_STRICT is set.
    """

    for col in REQUIRED_COLUMNS:
        missing_count = df[col].isna().sum()
        if missing_count > 0:
            log_info(f'{table_name}: {missing_count} missing value(s) in `{col}`', report)

    coerced = coerce_column_types(df[REQUIRED_COLUMNS])

    for col in REQUIRED_COLUMNS:
        unparsable_count = (coerced[col].isna() & df[col].notna()).sum()
        if unparsable_count > 0:
            log_warning(
                f'{table_name}: {unparsable_count} unparsable value(s) in `{col}`',
                report
                )

    incomplete_count = len(find_incomplete_records(coerced))
    if incomplete_count > 0:
        message = f'{table_name}: {incomplete_count} incomplete record(s)'
        if VALIDATE_STRICT:
            log_error(message, report)
        else:
            log_warning(message, report)


# ------------------------------------------------------------
# TRANSACTION DETAIL VALIDATIONS
# ------------------------------------------------------------

def run_transaction_detail_validations(df: pd.DataFrame,
                                       table_name: str,
                                       report: Dict[str, List[str]]
                                       ) -> None:
    """
    Transaction detail validations.

    Stops if aggregations would be corrupted.
    """

    coerced = coerce_column_types(df[REQUIRED_COLUMNS])

    for col in NON_NEGATIVE_COLUMNS:
        negative_count = (coerced[col] < 0).sum()
        if negative_count > 0:
            log_error(
                f'{table_name}: {negative_count} negative value(s) in numeric column `{col}`',
                report
                )

            return

    expected_total = coerced['quantity'] * coerced['price_per_unit']
    mismatch = (coerced['total_sale'] - expected_total).abs() > TOTAL_SALE_TOLERANCE
    mismatch_count = mismatch.sum()
    if mismatch_count > 0:
        log_warning(
            f'{table_name}: {mismatch_count} record(s) where total_sale differs '
            f'from quantity * price_per_unit',
            report
            )

    for col in DECIMAL_COLUMNS:
        log_info(
            f'{table_name}: `{col}` ranges {coerced[col].min()} to {coerced[col].max()}',
            report
            )


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def validate_table(df: pd.DataFrame, table_name: str) -> Dict[str, List[str]]:
    """
    Run every validation group against one raw table.

    Returns a fresh run report; structural failures skip the later groups.
    """

    report = init_report()

    log_info(f'{table_name}: validating {len(df)} row(s)', report)
    if run_base_validations(df, table_name, report):
        run_completeness_validations(df, table_name, report)
        run_transaction_detail_validations(df, table_name, report)

    return report


def main() -> None:
    report = init_report()

    df = load_logical_table(RAW_DATA_BASE_PATH, TABLE_NAME, report)
    if df is None:
        sys.exit(1)

    table_report = validate_table(df, TABLE_NAME)

    if report['errors'] or table_report['errors']:
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
