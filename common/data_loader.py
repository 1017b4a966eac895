from datetime import date, datetime

import numpy as np
import pandas as pd
from tqdm import tqdm

from common.errors import MalformedRecordError
from config import CGM_COLUMN, CGM_COLUMN_ALIASES, DATE_COLUMN, NUTRITION_COLUMNS


def _normalize_header(name):
    return ''.join(str(name).lower().split())


def build_column_mapping(columns):
    """
    Map the actual CSV headers onto the canonical record field names.

    Matching ignores case and whitespace, so ``cgm (mg / dl)`` and
    ``CGM (mg/dl)`` both resolve to the canonical CGM column.

    :param columns: Headers as read from the file
    :type columns: list[str]
    :returns: Mapping of actual header to canonical name, only for headers that need renaming
    :rtype: dict
    """
    canonical = {_normalize_header(name): name for name in [DATE_COLUMN, CGM_COLUMN] + NUTRITION_COLUMNS}
    for alias in CGM_COLUMN_ALIASES:
        canonical[_normalize_header(alias)] = CGM_COLUMN

    col_mapping = {}
    for col in columns:
        target = canonical.get(_normalize_header(col))
        if target and target != col and target not in columns:
            col_mapping[col] = target

    return col_mapping


def to_float(value):
    """
    Parse a raw field as float, defaulting to 0.0 when missing or unparseable.

    :param value: Raw field value (string, number or None)
    :returns: Parsed value
    :rtype: float
    """
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if np.isnan(parsed):
        return 0.0
    return parsed


def parse_timestamp(value, index=None):
    """
    Parse a record timestamp into a local wall-clock datetime.

    Naive timestamps are taken as local time. Timestamps carrying an offset
    are converted to the local timezone of the running process.

    :param value: Raw timestamp (string, datetime or pandas.Timestamp)
    :param index: Row index, used in the error message
    :type index: int or None
    :returns: Parsed timestamp
    :rtype: datetime.datetime
    :raises MalformedRecordError: If the value is missing or cannot be parsed
    """
    where = f" in row {index}" if index is not None else ""

    if isinstance(value, pd.Timestamp):
        parsed = value
    elif isinstance(value, (datetime, date)):
        parsed = pd.Timestamp(value)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = pd.to_datetime(value.strip())
        except (TypeError, ValueError) as e:
            raise MalformedRecordError(
                f"Could not parse {DATE_COLUMN} value {value!r}{where}",
                details={'row': index, 'value': value}) from e
    else:
        raise MalformedRecordError(
            f"Missing {DATE_COLUMN} value{where}", details={'row': index, 'value': value})

    if pd.isna(parsed):
        raise MalformedRecordError(
            f"Could not parse {DATE_COLUMN} value {value!r}{where}", details={'row': index, 'value': value})

    result = parsed.to_pydatetime()
    if result.tzinfo is not None:
        result = result.astimezone()
    return result


def validate_records(rows):
    """
    Check that every raw record carries the required fields.

    The timestamp must be present and parseable in every row. The CGM field
    must be present; its value may be blank, in which case it is read as 0.

    :param rows: Ordered raw records
    :type rows: list[dict]
    :returns: The records as plain dicts, in the original order
    :rtype: list[dict]
    :raises MalformedRecordError: On the first invalid record
    """
    records = []
    for i, row in enumerate(tqdm(rows, desc="Validating records", leave=False)):
        if DATE_COLUMN not in row:
            raise MalformedRecordError(f"Row {i} has no {DATE_COLUMN} field", details={'row': i})
        if CGM_COLUMN not in row:
            raise MalformedRecordError(f"Row {i} has no {CGM_COLUMN} field", details={'row': i})
        parse_timestamp(row[DATE_COLUMN], index=i)
        records.append(dict(row))

    return records


def load_cgm_records(file_path):
    """
    Load CGM and nutrition records from a CSV file.

    Headers are matched case-insensitively onto the canonical names and
    the rows are returned in file order as string-valued dicts.

    :param file_path: Path to the CSV file
    :type file_path: str
    :returns: Validated raw records
    :rtype: list[dict]
    :raises MalformedRecordError: If required columns are missing or a timestamp cannot be parsed
    """
    df = pd.read_csv(file_path, dtype=str, keep_default_na=False)

    print("CGM data columns:", df.columns.tolist())

    col_mapping = build_column_mapping(df.columns.tolist())
    if col_mapping:
        print("Using column mapping:", col_mapping)
        df = df.rename(columns=col_mapping)

    missing = [col for col in [DATE_COLUMN, CGM_COLUMN] if col not in df.columns]
    if missing:
        raise MalformedRecordError(
            f"CSV file must contain {DATE_COLUMN} and {CGM_COLUMN} columns. Found: {df.columns.tolist()}",
            details={'missing': missing})

    absent_nutrition = [col for col in NUTRITION_COLUMNS if col not in df.columns]
    if absent_nutrition:
        print(f"Warning: Nutrition columns not found, using zeros: {absent_nutrition}")

    print(f"Input CSV has {len(df)} rows")
    return validate_records(df.to_dict('records'))
