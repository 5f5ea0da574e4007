# =============================================================================
# Raw Sales Data Contract Enforcement
# =============================================================================
# - Enforce non-negotiable structural contracts on the raw retail sales table
# - Remove records that are duplicated, incomplete or unparsable
# - Produce a contract-compliant dataset that every sales report can trust


import os
import sys
from typing import Dict, List, Tuple
import numpy as np
import pandas as pd

from data_pipeline.exceptions import ContractViolation
from data_pipeline.pipeline_io import (
    CONTRACTED_DATA_BASE_PATH,
    DECIMAL_COLUMNS,
    INTEGER_COLUMNS,
    PRIMARY_KEY,
    RAW_DATA_BASE_PATH,
    REQUIRED_COLUMNS,
    TABLE_NAME,
    TEXT_COLUMNS,
    init_report,
    load_logical_table,
    log_error,
    log_info,
    log_warning,
    normalize_columns,
)


ONE_DAY = pd.Timedelta(days=1)


# ------------------------------------------------------------
# FATAL VALIDATION
# ------------------------------------------------------------

def validate_required_columns(df: pd.DataFrame) -> None:
    """
    Every schema column must exist.
    Any violation halts contract enforcement.
    """

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ContractViolation(f'{TABLE_NAME}: missing required column(s)', str(missing))


def validate_primary_key(df: pd.DataFrame) -> None:
    """
    Primary key must be unique once exact duplicates are removed.
    Any violation halts contract enforcement.
    """

    duplicated = df.duplicated(subset=PRIMARY_KEY, keep=False)
    if duplicated.any():
        keys = sorted(df.loc[duplicated, PRIMARY_KEY[0]].unique().tolist())
        raise ContractViolation(
            f'{TABLE_NAME}: {len(keys)} duplicated primary key value(s)',
            str(keys[:10])
            )


# ------------------------------------------------------------
# TYPE COERCION
# ------------------------------------------------------------

def parse_sale_dates(values: pd.Series) -> pd.Series:
    """
    Parse calendar dates. Unparsable values become NaT.
    """

    if pd.api.types.is_datetime64_any_dtype(values):

        return values.dt.normalize()

    return pd.to_datetime(values, errors='coerce').dt.normalize()


def parse_sale_times(values: pd.Series) -> pd.Series:
    """
    Parse time-of-day values into offsets from midnight.
    Unparsable values and offsets outside a single day become NaT.
    """

    if not pd.api.types.is_timedelta64_dtype(values):
        as_text = values.map(lambda v: str(v).strip() if pd.notna(v) else None).astype(object)
        values = pd.to_timedelta(as_text, errors='coerce')

    out_of_day = (values < pd.Timedelta(0)) | (values >= ONE_DAY)

    return values.mask(out_of_day)


def parse_decimals(values: pd.Series) -> pd.Series:
    """
    Parse finite numbers. Infinite or unparsable values become NaN.
    """

    numbers = pd.to_numeric(values, errors='coerce').astype('float64')

    return numbers.where(np.isfinite(numbers))


def parse_integers(values: pd.Series) -> pd.Series:
    """
    Parse whole numbers. Fractional, infinite or unparsable values become NaN.
    """

    numbers = parse_decimals(values)

    return numbers.where(numbers == numbers.round())


def parse_text(values: pd.Series) -> pd.Series:
    """
    Strip text values. Blank values become missing.
    """

    text = values.map(lambda v: str(v).strip() if pd.notna(v) else None)

    return text.mask(text == '')


def coerce_column_types(df: pd.DataFrame) -> pd.DataFrame:
    """
    Coerce every schema column to its contract type on a copy of `df`.
    Values that cannot be coerced are turned into missing values.
    """

    coerced = df.copy()
    coerced['sale_date'] = parse_sale_dates(coerced['sale_date'])
    coerced['sale_time'] = parse_sale_times(coerced['sale_time'])

    for col in INTEGER_COLUMNS:
        coerced[col] = parse_integers(coerced[col])

    for col in DECIMAL_COLUMNS:
        coerced[col] = parse_decimals(coerced[col])

    for col in TEXT_COLUMNS:
        coerced[col] = parse_text(coerced[col])

    return coerced


# ------------------------------------------------------------
# CONTRACT ENFORCEMENT
# ------------------------------------------------------------

def deduplicate_exact_records(df: pd.DataFrame) -> Tuple[pd.DataFrame, int]:
    """
    Remove exact duplicate rows representing the same sale.
    """

    duplicated = df.duplicated(keep='first')

    return df.loc[~duplicated], int(duplicated.sum())


def find_incomplete_records(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rows missing at least one required field. Does not modify `df`.
    """

    return df.loc[df[REQUIRED_COLUMNS].isna().any(axis=1)]


def drop_incomplete_records(df: pd.DataFrame) -> Tuple[pd.DataFrame, int]:
    """
    Keep only rows where every required field is present.

    Returns the filtered rows (input order) and the dropped row count.
    """

    incomplete = df[REQUIRED_COLUMNS].isna().any(axis=1)

    return df.loc[~incomplete].copy(), int(incomplete.sum())


def finalize_types(df: pd.DataFrame) -> pd.DataFrame:
    """
    Narrow complete columns to their final dtypes.
    """

    typed = df.copy()
    for col in INTEGER_COLUMNS:
        typed[col] = typed[col].astype('int64')

    for col in TEXT_COLUMNS:
        typed[col] = typed[col].astype(str)

    return typed.reset_index(drop=True)


def apply_contract(df: pd.DataFrame,
                   report: Dict[str, List[str]]
                   ) -> Tuple[pd.DataFrame, Dict[str, int]]:
    """
    Turn a raw sales table into a contract-compliant one.

    Applying the contract to already contracted data is a no-op.
    Raises ContractViolation when rows cannot be dropped to fix the table.
    """

    normalized = normalize_columns(df)
    validate_required_columns(normalized)

    extra_columns = [c for c in normalized.columns if c not in REQUIRED_COLUMNS]
    if extra_columns:
        log_info(f'{TABLE_NAME}: ignoring non-schema column(s): {extra_columns}', report)

    coerced = coerce_column_types(normalized[REQUIRED_COLUMNS])

    deduplicated, duplicate_count = deduplicate_exact_records(coerced)
    if duplicate_count > 0:
        log_warning(f'{TABLE_NAME}: removed {duplicate_count} exact duplicate record(s)', report)

    complete, incomplete_count = drop_incomplete_records(deduplicated)
    if incomplete_count > 0:
        log_warning(
            f'{TABLE_NAME}: removed {incomplete_count} record(s) with missing '
            f'or unparsable field(s)',
            report
            )

    contracted = finalize_types(complete)
    validate_primary_key(contracted)

    summary = {
        'input_rows': len(df),
        'duplicate_rows': duplicate_count,
        'incomplete_rows': incomplete_count,
        'output_rows': len(contracted),
    }
    log_info(f'{TABLE_NAME}: {summary["output_rows"]} of {summary["input_rows"]} '
             f'record(s) satisfy the contract',
             report)

    return contracted, summary


# ------------------------------------------------------------
# INPUT-OUTPUT HELPER
# ------------------------------------------------------------

def format_sale_time(value: pd.Timedelta) -> str:
    if pd.isna(value):

        return ''

    seconds = int(value.total_seconds())

    return f'{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}'


def to_output_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Render date and time columns as plain text for serialization.
    """

    out = df.copy()
    if 'sale_date' in out.columns and pd.api.types.is_datetime64_any_dtype(out['sale_date']):
        out['sale_date'] = out['sale_date'].dt.strftime('%Y-%m-%d')

    if 'sale_time' in out.columns and pd.api.types.is_timedelta64_dtype(out['sale_time']):
        out['sale_time'] = out['sale_time'].map(format_sale_time)

    return out


def write_contracted_data(df: pd.DataFrame, output_path: str) -> None:
    """
    Write contract-compliant data to contracted directory.
    Does not overwrite raw data.
    """

    os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)
    to_output_frame(df).to_csv(output_path, index=False)


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    df = load_logical_table(RAW_DATA_BASE_PATH, TABLE_NAME, report)
    if df is None:
        sys.exit(1)

    try:
        contracted, _ = apply_contract(df, report)

    except ContractViolation as e:
        log_error(str(e), report)
        sys.exit(1)

    output_path = os.path.join(CONTRACTED_DATA_BASE_PATH, f'{TABLE_NAME}.csv')
    write_contracted_data(contracted, output_path)
    log_info(f'Wrote contracted data: {output_path}', report)

    sys.exit(0)


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
