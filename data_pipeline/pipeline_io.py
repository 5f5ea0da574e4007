# =============================================================================
# SALES PIPELINE SHARED I/O
# =============================================================================
# - Shared configuration for every retail sales pipeline stage
# - Run report and console logging used by validation, contract and reports
# - Load the logical `retail_sales` table from one or more CSV files


import os
import sys
import glob
from typing import Dict, List, Optional
import pandas as pd


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

RAW_DATA_BASE_PATH = os.getenv('SALES_RAW_DATA_PATH', 'data/raw')
CONTRACTED_DATA_BASE_PATH = os.getenv('SALES_CONTRACTED_DATA_PATH', 'data/contracted')
TABLE_NAME = os.getenv('SALES_TABLE_NAME', 'retail_sales')

PRIMARY_KEY = ['transaction_id']

# Source column name -> contract column name
COLUMN_ALIASES = {
    'transactions_id': 'transaction_id',
}

REQUIRED_COLUMNS = [
    'transaction_id',
    'sale_date',
    'sale_time',
    'customer_id',
    'gender',
    'age',
    'category',
    'quantity',
    'price_per_unit',
    'cogs',
    'total_sale',
]

INTEGER_COLUMNS = ['transaction_id', 'customer_id', 'age', 'quantity']
DECIMAL_COLUMNS = ['price_per_unit', 'cogs', 'total_sale']
TEXT_COLUMNS = ['gender', 'category']


# ------------------------------------------------------------
# RUN REPORT & LOGS
# ------------------------------------------------------------

def init_report() -> Dict[str, List[str]]:

    return {
        'errors': [],
        'warnings': [],
        'info': []
    }


def log_info(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[INFO] {message}', file=sys.stderr)
    report['info'].append(message)


def log_warning(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[WARNING] {message}', file=sys.stderr)
    report['warnings'].append(message)


def log_error(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[ERROR] {message}', file=sys.stderr)
    report['errors'].append(message)


# ------------------------------------------------------------
# Input-Output Helpers
# ------------------------------------------------------------

def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Lower-case and strip column names, then apply known aliases.
    """

    renamed = df.rename(columns=lambda c: str(c).strip().lower())

    return renamed.rename(columns=COLUMN_ALIASES)


def load_csv_file(csv_path: str, table_name: str,
                  report: Dict[str, List[str]]
                  ) -> Optional[pd.DataFrame]:
    try:
        df = pd.read_csv(csv_path)
        log_info(f'Loaded {table_name} file: {os.path.basename(csv_path)} ({len(df)} rows)', report)

        return normalize_columns(df)

    except (OSError, ValueError) as e:
        log_error(f'Failed to load {table_name} file {csv_path}: {e}', report)

        return None


def load_logical_table(base_path: str,
                       table_name: str,
                       report: Dict[str, List[str]]
                       ) -> Optional[pd.DataFrame]:
    """
    Load and concatenate all CSV files belonging to a logical table.
    Files are identified by filename prefix: <table_name>*.csv
    """

    pattern = os.path.join(base_path, f'{table_name}*.csv')
    csv_files = sorted(glob.glob(pattern))

    if not csv_files:
        log_error(f'{table_name}: no files found matching pattern {pattern}', report)

        return None

    dfs = []
    for csv_path in csv_files:
        df = load_csv_file(csv_path, table_name, report)
        if df is not None:
            dfs.append(df)

    if not dfs:
        log_error(f'{table_name}: all matching files failed to load', report)

        return None

    combined_df = pd.concat(dfs, ignore_index=True)
    log_info(f'{table_name}: combined {len(csv_files)} file(s) into '
             f'{len(combined_df)} rows',
             report)

    return combined_df


def load_source(source: Optional[str],
                report: Dict[str, List[str]]
                ) -> Optional[pd.DataFrame]:
    """
    Load a single CSV file when `source` is a file, otherwise the logical
    table under `source` (or the raw data directory).
    """

    if source and os.path.isfile(source):

        return load_csv_file(source, TABLE_NAME, report)

    return load_logical_table(source or RAW_DATA_BASE_PATH, TABLE_NAME, report)
