"""
Data processing utilities for keyword search-volume datasets.

This module loads the keyword CSV into KeywordSeries objects, normalises the
many column spellings seen in exported files, and computes the dataset-level
summaries and demographic aggregates shown on the dashboard.
"""

import logging
import re
from typing import Any, Dict, IO, List, Optional, Tuple, Union

import pandas as pd

from .exceptions import DatasetError
from .models import KeywordSeries
from .trend_calculator import period_key

PERIOD_COLUMN_PATTERN = re.compile(r'^(\d{4})[-./](\d{1,2})$')
AGE_COLUMN_PATTERN = re.compile(r'^\d+\s*대')

KEYWORD_ALIASES = ('keyword', '키워드')
PERIOD_ALIASES = ('month', 'period', 'date')
VOLUME_ALIASES = ('volume', 'search', '검색량')
MALE_ALIASES = ('male_percent', 'male', '남성')
FEMALE_ALIASES = ('female_percent', 'female', '여성')


def parse_period(value: Any) -> Optional[Tuple[int, int]]:
    """
    Parse a month identifier such as 2025-07, 2025.7 or 2025-07-01

    Args:
        value: Raw cell or column value

    Returns:
        Tuple of (year, month), or None when the value is not a valid month
    """
    text = str(value).strip()
    if len(text) >= 10 and text[7:8] in '-./':
        # full dates: keep the year-month prefix
        text = text[:7]
    match = PERIOD_COLUMN_PATTERN.match(text)
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def clean_volume(column: pd.Series) -> pd.Series:
    """Convert a raw volume column to non-negative integers."""
    cleaned = (column.astype(str)
               .str.replace(',', '', regex=False)
               .str.strip())
    numeric = pd.to_numeric(cleaned, errors='coerce').fillna(0)
    return numeric.clip(lower=0).round().astype(int)


def _find_column(columns: List[str], aliases: Tuple[str, ...], exclude: Tuple[str, ...] = ()) -> Optional[str]:
    for alias in aliases:
        for col in columns:
            if alias in col and not any(ex in col for ex in exclude):
                return col
    return None


def clean_csv_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardise column names of a keyword CSV

    Renames the keyword, gender, period and volume columns to canonical
    names and normalises month columns (wide layout) to YYYY-MM.

    Args:
        df: Raw DataFrame as read from the CSV

    Returns:
        DataFrame with canonical column names
    """
    if df.empty:
        return df

    df = df.rename(columns=lambda col: str(col).strip().lower())
    columns = list(df.columns)
    renames = {}

    keyword_col = _find_column(columns, KEYWORD_ALIASES)
    if keyword_col:
        renames[keyword_col] = 'keyword'

    female_col = _find_column(columns, FEMALE_ALIASES)
    if female_col:
        renames[female_col] = 'female_percent'
    male_col = _find_column([c for c in columns if c != female_col], MALE_ALIASES, exclude=('female',))
    if male_col:
        renames[male_col] = 'male_percent'

    invalid_periods = []
    for col in columns:
        if PERIOD_COLUMN_PATTERN.match(col):
            parsed = parse_period(col)
            if parsed:
                renames[col] = period_key(*parsed)
            else:
                invalid_periods.append(col)
    if invalid_periods:
        logging.warning(f"Dropping invalid month columns: {invalid_periods}")
        df = df.drop(columns=invalid_periods)
        columns = [c for c in columns if c not in invalid_periods]

    if not any(PERIOD_COLUMN_PATTERN.match(col) for col in columns):
        period_col = _find_column([c for c in columns if c not in renames], PERIOD_ALIASES)
        volume_col = _find_column([c for c in columns if c not in renames], VOLUME_ALIASES)
        if period_col:
            renames[period_col] = 'period'
        if volume_col:
            renames[volume_col] = 'volume'

    return df.rename(columns=renames)


def age_columns(columns: List[str]) -> Dict[str, str]:
    """Map age-bracket columns to their display labels."""
    labels = {}
    for col in columns:
        if col.startswith('age_'):
            labels[col] = col[len('age_'):]
        elif AGE_COLUMN_PATTERN.match(col):
            labels[col] = col
    return labels


def _read_float(row: pd.Series, column: str) -> float:
    if column not in row.index:
        return 0.0
    value = pd.to_numeric(row[column], errors='coerce')
    return 0.0 if pd.isna(value) else float(value)


def _demographics(row: pd.Series, age_labels: Dict[str, str]) -> Dict[str, Any]:
    return {
        'male_percent': _read_float(row, 'male_percent'),
        'female_percent': _read_float(row, 'female_percent'),
        'age_groups': {label: _read_float(row, col) for col, label in age_labels.items()},
    }


def _parse_wide(df: pd.DataFrame) -> Dict[str, KeywordSeries]:
    period_cols = [col for col in df.columns if PERIOD_COLUMN_PATTERN.match(col)]
    age_labels = age_columns(list(df.columns))
    for col in period_cols:
        df[col] = clean_volume(df[col])

    dataset: Dict[str, KeywordSeries] = {}
    for _, row in df.iterrows():
        keyword = str(row['keyword']).strip()
        if keyword in dataset:
            logging.warning(f"Duplicate keyword row '{keyword}' ignored")
            continue
        dataset[keyword] = KeywordSeries(
            keyword=keyword,
            monthly_data={col: int(row[col]) for col in period_cols},
            **_demographics(row, age_labels),
        )
    return dataset


def _parse_long(df: pd.DataFrame) -> Dict[str, KeywordSeries]:
    if 'period' not in df.columns or 'volume' not in df.columns:
        raise DatasetError(f"CSV needs month columns or period/volume columns. Found columns: {list(df.columns)}")

    df['volume'] = clean_volume(df['volume'])
    parsed = df['period'].map(parse_period)
    invalid = parsed.isna()
    if invalid.any():
        logging.warning(f"Dropping {int(invalid.sum())} rows with invalid month values")
    df = df[~invalid].assign(period=parsed[~invalid].map(lambda ym: period_key(*ym)))
    age_labels = age_columns(list(df.columns))

    dataset: Dict[str, KeywordSeries] = {}
    for keyword, group in df.groupby('keyword', sort=False):
        volumes = group.groupby('period', sort=True)['volume'].sum()
        dataset[keyword] = KeywordSeries(
            keyword=keyword,
            monthly_data={period: int(volume) for period, volume in volumes.items()},
            **_demographics(group.iloc[0], age_labels),
        )
    return dataset


def load_keyword_dataset(source: Union[str, IO]) -> Dict[str, KeywordSeries]:
    """
    Load a keyword CSV into KeywordSeries objects

    Both layouts are accepted: one row per keyword with a column per month
    (wide), or one row per keyword and month (long).

    Args:
        source: Path or file-like object with CSV content

    Returns:
        Dictionary mapping keyword to KeywordSeries, in file order

    Raises:
        DatasetError: When the file cannot be parsed into any keyword
    """
    try:
        df = pd.read_csv(source)
        if df.empty or len(df.columns) <= 1:
            if hasattr(source, 'seek'):
                source.seek(0)
            df = pd.read_csv(source, sep=';')
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DatasetError(f"Error reading keyword CSV: {e}") from e

    df = clean_csv_columns(df)
    if 'keyword' not in df.columns:
        raise DatasetError(f"CSV is missing a keyword column. Found columns: {list(df.columns)}")

    df = df.dropna(subset=['keyword']).copy()
    df['keyword'] = df['keyword'].astype(str).str.strip()
    df = df[df['keyword'] != '']

    if any(PERIOD_COLUMN_PATTERN.match(col) for col in df.columns):
        dataset = _parse_wide(df.copy())
    else:
        dataset = _parse_long(df.copy())

    if not dataset:
        raise DatasetError("No keywords found in dataset")

    logging.info(f"Loaded {len(dataset)} keywords from dataset")
    return dataset


def available_periods(dataset: Dict[str, KeywordSeries]) -> List[Tuple[int, int]]:
    """Sorted distinct (year, month) pairs present in the dataset."""
    periods = set()
    for series in dataset.values():
        for key in series.monthly_data:
            parsed = parse_period(key)
            if parsed:
                periods.add(parsed)
    return sorted(periods)


def calculate_dataset_statistics(dataset: Dict[str, KeywordSeries]) -> Dict[str, Any]:
    """
    Calculate summary statistics for a keyword dataset

    Args:
        dataset: Dictionary mapping keyword to KeywordSeries

    Returns:
        Dictionary with keyword count, covered months and total volume
    """
    periods = available_periods(dataset)
    return {
        "total_keywords": len(dataset),
        "num_months": len(periods),
        "first_period": period_key(*periods[0]) if periods else None,
        "last_period": period_key(*periods[-1]) if periods else None,
        "total_volume": sum(sum(s.monthly_data.values()) for s in dataset.values()),
    }


def calculate_gender_stats(dataset: Dict[str, KeywordSeries], keywords: List[str]) -> Dict[str, str]:
    """
    Average male and female shares over the selected keywords

    The two shares are averaged independently and are not forced to sum to
    100. Keywords missing from the dataset contribute nothing but still count
    in the divisor.

    Args:
        dataset: Dictionary mapping keyword to KeywordSeries
        keywords: Selected keywords

    Returns:
        Dictionary with ``male`` and ``female`` formatted to one decimal
    """
    count = len(keywords)
    if count == 0:
        return {"male": "0.0", "female": "0.0"}

    total_male = 0.0
    total_female = 0.0
    for keyword in keywords:
        series = dataset.get(keyword)
        if series:
            total_male += series.male_percent
            total_female += series.female_percent

    return {"male": f"{total_male / count:.1f}", "female": f"{total_female / count:.1f}"}


def age_group_frame(dataset: Dict[str, KeywordSeries], keywords: List[str]) -> pd.DataFrame:
    """
    Long-format age-bracket shares for the selected keywords

    Args:
        dataset: Dictionary mapping keyword to KeywordSeries
        keywords: Selected keywords

    Returns:
        DataFrame with columns keyword, age_group and percent
    """
    rows = [
        {"keyword": keyword, "age_group": label, "percent": float(percent)}
        for keyword in keywords if keyword in dataset
        for label, percent in dataset[keyword].age_groups.items()
    ]
    return pd.DataFrame(rows, columns=["keyword", "age_group", "percent"])
