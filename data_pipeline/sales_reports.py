# =============================================================================
# RETAIL SALES REPORTS
# =============================================================================
# - Fixed catalogue of descriptive reports over the contracted sales table
# - Every report is a pure read: the input frame is never modified
# - Deterministic ordering and tie-breaks so results are reproducible
# - Output: text table, JSON or CSV for downstream consumption


import re
import sys
import argparse
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union
import pandas as pd

from data_pipeline.apply_sales_data_contract import apply_contract, to_output_frame
from data_pipeline.exceptions import InvalidArgument, SalesPipelineError
from data_pipeline.pipeline_io import init_report, load_source, log_error, log_info


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

HIGH_VALUE_THRESHOLD = 1000
TOP_CUSTOMERS_LIMIT = 5
PREVIEW_LIMIT = 10

SHIFTS = ['Morning', 'Afternoon', 'Evening']

CATEGORY_MONTH_COLUMNS = ['transaction_id', 'sale_date', 'category', 'quantity', 'total_sale']

OUTPUT_FORMATS = ['text', 'json', 'csv']

YEAR_MONTH_PATTERN = re.compile(r'^(\d{4})-(\d{2})$')


# ------------------------------------------------------------
# PARAMETER VALIDATION
# ------------------------------------------------------------

def parse_report_date(value: Union[str, date]) -> pd.Timestamp:
    """
    Accept a date object or a `YYYY-MM-DD` string.
    """

    if isinstance(value, date):

        return pd.Timestamp(value).normalize()

    if not isinstance(value, str):
        raise InvalidArgument('Date must be a YYYY-MM-DD string', repr(value), 'sale_date')

    try:
        parsed = datetime.strptime(value.strip(), '%Y-%m-%d')

    except ValueError:
        raise InvalidArgument('Invalid date', repr(value), 'sale_date') from None

    return pd.Timestamp(parsed)


def parse_year_month(value: str) -> Tuple[int, int]:
    """
    Split a `YYYY-MM` string into (year, month).
    """

    match = YEAR_MONTH_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise InvalidArgument('Year-month must look like YYYY-MM', repr(value), 'year_month')

    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidArgument('Month out of range', repr(value), 'year_month')

    return year, month


def validate_positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidArgument(f'{name} must be an integer', repr(value), name)

    try:
        number = int(value)

    except (TypeError, ValueError):
        raise InvalidArgument(f'{name} must be an integer', repr(value), name) from None

    if isinstance(value, float) and number != value:
        raise InvalidArgument(f'{name} must be an integer', repr(value), name)

    if number <= 0:
        raise InvalidArgument(f'{name} must be greater than zero', repr(value), name)

    return number


def validate_number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise InvalidArgument(f'{name} must be numeric', repr(value), name)

    try:
        number = float(value)

    except (TypeError, ValueError):
        raise InvalidArgument(f'{name} must be numeric', repr(value), name) from None

    if pd.isna(number):
        raise InvalidArgument(f'{name} must be numeric', repr(value), name)

    return number


def validate_category(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument('Category must be a non-empty string', repr(value), 'category')

    return value.strip()


# ------------------------------------------------------------
# DATASET OVERVIEW
# ------------------------------------------------------------

def preview(df: pd.DataFrame, limit: int = PREVIEW_LIMIT) -> pd.DataFrame:
    limit = validate_positive_int(limit, 'limit')

    return df.head(limit).reset_index(drop=True)


def count_records(df: pd.DataFrame) -> int:
    return len(df)


def count_distinct_customers(df: pd.DataFrame) -> int:
    return int(df['customer_id'].nunique())


def distinct_categories(df: pd.DataFrame) -> Set[str]:
    return set(df['category'].unique())


# ------------------------------------------------------------
# TRANSACTION FILTERS
# ------------------------------------------------------------

def transactions_on_date(df: pd.DataFrame, sale_date: Union[str, date]) -> pd.DataFrame:
    day = parse_report_date(sale_date)

    return df.loc[df['sale_date'] == day].reset_index(drop=True)


def category_quantity_in_month(df: pd.DataFrame,
                               category: str,
                               min_quantity: int,
                               year_month: str
                               ) -> pd.DataFrame:
    """
    Transactions of `category` with at least `min_quantity` units sold
    during `year_month` (YYYY-MM).
    """

    category = validate_category(category)
    min_quantity = validate_number(min_quantity, 'min_quantity')
    year, month = parse_year_month(year_month)

    mask = (
        (df['category'] == category)
        & (df['quantity'] >= min_quantity)
        & (df['sale_date'].dt.year == year)
        & (df['sale_date'].dt.month == month)
    )

    return df.loc[mask, CATEGORY_MONTH_COLUMNS].reset_index(drop=True)


def high_value_transactions(df: pd.DataFrame,
                            threshold: float = HIGH_VALUE_THRESHOLD
                            ) -> pd.DataFrame:
    threshold = validate_number(threshold, 'threshold')

    return df.loc[df['total_sale'] > threshold].reset_index(drop=True)


# ------------------------------------------------------------
# CATEGORY & CUSTOMER AGGREGATES
# ------------------------------------------------------------

def category_totals(df: pd.DataFrame) -> pd.DataFrame:
    """
    One row per category: order count and net sale.
    """

    return (
        df.groupby('category', as_index=False)
        .agg(total_orders=('transaction_id', 'count'), net_sale=('total_sale', 'sum'))
    )


def average_age_for_category(df: pd.DataFrame, category: str) -> Optional[float]:
    """
    Average customer age for `category`, rounded half up to 2 decimals.

    None when the category has no sales, so an empty category is never
    reported as age 0.
    """

    category = validate_category(category)
    ages = df.loc[df['category'] == category, 'age']
    if ages.empty:

        return None

    mean_age = Decimal(int(ages.sum())) / Decimal(len(ages))

    return float(mean_age.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def gender_category_counts(df: pd.DataFrame) -> pd.DataFrame:
    return (
        df.groupby(['category', 'gender'])
        .size()
        .reset_index(name='total_trans')
    )


def unique_customers_per_category(df: pd.DataFrame) -> pd.DataFrame:
    return (
        df.groupby('category')['customer_id']
        .nunique()
        .reset_index(name='cnt_unique_cs')
    )


def top_customers(df: pd.DataFrame, limit: int = TOP_CUSTOMERS_LIMIT) -> pd.DataFrame:
    """
    Customers with the highest total spend, descending.

    Equal spend is ordered by ascending customer_id.
    """

    limit = validate_positive_int(limit, 'limit')

    totals = (
        df.groupby('customer_id', as_index=False)['total_sale']
        .sum()
        .rename(columns={'total_sale': 'total_sales'})
    )
    ranked = totals.sort_values(
        ['total_sales', 'customer_id'],
        ascending=[False, True],
        kind='mergesort'
        )

    return ranked.head(limit).reset_index(drop=True)


# ------------------------------------------------------------
# CALENDAR & TIME-OF-DAY AGGREGATES
# ------------------------------------------------------------

def monthly_average_sales(df: pd.DataFrame) -> pd.DataFrame:
    dated = df.assign(year=df['sale_date'].dt.year, month=df['sale_date'].dt.month)

    return (
        dated.groupby(['year', 'month'], as_index=False)['total_sale']
        .mean()
        .rename(columns={'total_sale': 'avg_sale'})
    )


def best_month_per_year(df: pd.DataFrame) -> pd.DataFrame:
    """
    Month with the highest average sale in each year.

    Months sharing the highest average resolve to the lowest month number.
    """

    ranked = monthly_average_sales(df).sort_values(
        ['year', 'avg_sale', 'month'],
        ascending=[True, False, True],
        kind='mergesort'
        )

    return ranked.drop_duplicates(subset='year', keep='first').reset_index(drop=True)


def classify_shift(hour: int) -> str:
    if isinstance(hour, bool) or not 0 <= hour <= 23:
        raise InvalidArgument('Hour must be between 0 and 23', repr(hour), 'hour')

    if hour < 12:
        return 'Morning'

    if hour <= 17:
        return 'Afternoon'

    return 'Evening'


def assign_shifts(df: pd.DataFrame) -> pd.DataFrame:
    hours = (df['sale_time'].dt.total_seconds() // 3600).astype('int64')

    return df.assign(shift=hours.map(classify_shift))


def shift_counts(df: pd.DataFrame) -> pd.DataFrame:
    """
    Orders per shift. Every shift is listed, with 0 when it has no orders.
    """

    counts = (
        assign_shifts(df)['shift']
        .value_counts()
        .reindex(SHIFTS, fill_value=0)
    )

    return counts.rename_axis('shift').reset_index(name='total_orders')


# ------------------------------------------------------------
# REPORT CATALOGUE
# ------------------------------------------------------------

# name -> (report function, required parameters, optional parameters)
REPORTS: Dict[str, Tuple[Callable[..., Any], List[str], List[str]]] = {
    'preview': (preview, [], ['limit']),
    'record-count': (count_records, [], []),
    'customer-count': (count_distinct_customers, [], []),
    'categories': (distinct_categories, [], []),
    'sales-on-date': (transactions_on_date, ['sale_date'], []),
    'category-month': (category_quantity_in_month, ['category', 'min_quantity', 'year_month'], []),
    'category-totals': (category_totals, [], []),
    'category-avg-age': (average_age_for_category, ['category'], []),
    'high-value': (high_value_transactions, [], ['threshold']),
    'gender-category': (gender_category_counts, [], []),
    'monthly-avg': (monthly_average_sales, [], []),
    'best-month': (best_month_per_year, [], []),
    'top-customers': (top_customers, [], ['limit']),
    'category-customers': (unique_customers_per_category, [], []),
    'shift-counts': (shift_counts, [], []),
}


def run_report(df: pd.DataFrame, name: str, **params: Any) -> Any:
    """
    Run a catalogue report by name.

    Parameters set to None are treated as not given, so report defaults apply.
    A given parameter the report does not take raises InvalidArgument.
    """

    if name not in REPORTS:
        raise InvalidArgument('Unknown report', repr(name), 'report')

    func, required, optional = REPORTS[name]
    given = {key: value for key, value in params.items() if value is not None}

    missing = [key for key in required if key not in given]
    if missing:
        raise InvalidArgument(f'Report {name} requires parameter(s)', str(missing), missing[0])

    unexpected = sorted(key for key in given if key not in required + optional)
    if unexpected:
        raise InvalidArgument(f'Report {name} does not take parameter(s)', str(unexpected), unexpected[0])

    return func(df, **given)


def to_result_frame(name: str, result: Any) -> pd.DataFrame:
    """
    Normalise any report result into a DataFrame for serialization.
    """

    if isinstance(result, pd.DataFrame):

        return to_output_frame(result)

    if isinstance(result, set):

        return pd.DataFrame({'category': sorted(result)})

    return pd.DataFrame({name.replace('-', '_'): [result]})


def render(frame: pd.DataFrame, output_format: str) -> str:
    if output_format == 'json':

        return frame.to_json(orient='records', indent=2)

    if output_format == 'csv':

        return frame.to_csv(index=False)

    if output_format == 'text':

        return frame.to_string(index=False)

    raise InvalidArgument('Unknown output format', repr(output_format), 'format')


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Run a retail sales report')
    parser.add_argument('report', choices=list(REPORTS), help='Report to run')
    parser.add_argument('--source', help='CSV file or directory of retail_sales*.csv files')
    parser.add_argument('--date', dest='sale_date', help='Sale date, YYYY-MM-DD')
    parser.add_argument('--category', help='Product category')
    parser.add_argument('--min-quantity', dest='min_quantity', help='Minimum units sold')
    parser.add_argument('--month', dest='year_month', help='Year and month, YYYY-MM')
    parser.add_argument('--threshold', help='High-value threshold (exclusive)')
    parser.add_argument('--limit', help='Number of rows to return')
    parser.add_argument('--format', dest='output_format', choices=OUTPUT_FORMATS, default='text')
    parser.add_argument('--output', help='Write the result to this file instead of stdout')

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Load the raw table, apply the contract once, then run one report.

    The rendered report is the only stdout output; run-report lines go to
    stderr. Exits 1 on load, contract or parameter errors.
    """

    args = build_parser().parse_args(argv)
    report = init_report()

    df = load_source(args.source, report)
    if df is None:
        sys.exit(1)

    try:
        contracted, _ = apply_contract(df, report)
        result = run_report(
            contracted,
            args.report,
            sale_date=args.sale_date,
            category=args.category,
            min_quantity=args.min_quantity,
            year_month=args.year_month,
            threshold=args.threshold,
            limit=args.limit,
            )

    except SalesPipelineError as e:
        log_error(str(e), report)
        sys.exit(1)

    rendered = render(to_result_frame(args.report, result), args.output_format)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as handle:
            handle.write(rendered)
        log_info(f'Wrote {args.report} report: {args.output}', report)

    else:
        print(rendered.rstrip('\n'))

    sys.exit(0)


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
