"""
wine_eda.py

Config-driven EDA pipeline for the white wine quality dataset.

Features:
- Load the wine CSV from a configurable path (config.yaml).
- Normalise header names (R export, UCI raw file, snake_case).
- Detect and filter outliers using the IQR rule, one column at a time.
- Bucket the quality score into ordered quality groups.
- Compute descriptive statistics, correlations and grouped statistics.
- Export summary tables to CSV / Parquet.
- Designed as a reusable module (wine_report.py and streamlit_app.py import it).
"""

from __future__ import annotations

import copy
import re
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd
import yaml


# -----------------------------------------------------------------------------
# 1. Paths, schema & default config
# -----------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config.yaml"

ID_COLUMN = "row_id"
QUALITY_COLUMN = "quality"
QUALITY_GROUP_COLUMN = "quality_group"

MEASUREMENT_COLUMNS = [
    "fixed_acidity",
    "volatile_acidity",
    "citric_acid",
    "residual_sugar",
    "chlorides",
    "free_sulfur_dioxide",
    "total_sulfur_dioxide",
    "density",
    "pH",
    "sulphates",
    "alcohol",
]
NUMERIC_COLUMNS = MEASUREMENT_COLUMNS + [QUALITY_COLUMN]

# Header spellings used for the row id by R's write.csv and pandas' to_csv
ID_ALIASES = {"x", "", "unnamed_0", "id", "row_id"}

QUALITY_GROUPS = ["5", "6", "7", "8", "9"]

DEFAULT_CONFIG = {
    "data_path": "data/wineQualityWhites.csv",
    "csv_sep": ",",
    "output_dir": "output",
    "outliers": {
        "iqr_factor": 2.0,
        "columns": [
            "residual_sugar",
            "chlorides",
            "free_sulfur_dioxide",
            "total_sulfur_dioxide",
            "density",
        ],
    },
    "spline": {
        "n_knots": 5,
        "degree": 3,
    },
    "report": {
        "title": "White Wine Quality: Exploratory Data Analysis",
        "steps": [
            {"chart": "bar", "column": "quality"},
            {"chart": "histogram", "column": "fixed_acidity"},
            {"chart": "histogram", "column": "volatile_acidity"},
            {"chart": "histogram", "column": "citric_acid"},
            {"chart": "histogram", "column": "residual_sugar"},
            {"chart": "histogram", "column": "residual_sugar", "log_scale": True},
            {"chart": "histogram", "column": "chlorides"},
            {"chart": "histogram", "column": "chlorides", "filter_outliers": True},
            {"chart": "histogram", "column": "free_sulfur_dioxide", "filter_outliers": True},
            {"chart": "histogram", "column": "total_sulfur_dioxide"},
            {"chart": "histogram", "column": "density", "filter_outliers": True},
            {"chart": "histogram", "column": "pH"},
            {"chart": "histogram", "column": "sulphates"},
            {"chart": "histogram", "column": "alcohol"},
            {"chart": "boxplot", "column": "residual_sugar"},
            {"chart": "boxplot", "column": "chlorides"},
            {"chart": "boxplot", "column": "free_sulfur_dioxide"},
            {"chart": "group_boxplot", "column": "alcohol"},
            {"chart": "group_boxplot", "column": "density", "filter_outliers": True},
            {"chart": "group_boxplot", "column": "chlorides", "filter_outliers": True},
            {"chart": "group_boxplot", "column": "volatile_acidity"},
            {"chart": "scatter", "column": "alcohol", "y": "density", "filter_outliers": True},
            {"chart": "scatter", "column": "residual_sugar", "y": "density", "filter_outliers": True},
            {"chart": "heatmap", "column": "quality"},
            {
                "chart": "pairplot",
                "column": "quality",
                "columns": ["alcohol", "density", "residual_sugar", "chlorides", "quality"],
            },
            {"chart": "facet_scatter", "column": "alcohol", "y": "density", "filter_outliers": True},
            {"chart": "smooth", "column": "residual_sugar", "y": "density", "filter_outliers": True},
            {"chart": "smooth", "column": "alcohol", "y": "density", "filter_outliers": True},
        ],
    },
}


# -----------------------------------------------------------------------------
# 2. Config loading
# -----------------------------------------------------------------------------

def load_config(path: Path = DEFAULT_CONFIG_PATH) -> Dict:
    """
    Load configuration from a YAML file and merge with DEFAULT_CONFIG.

    Supports optional multi-dataset configs via:
      - active_dataset: <name>
      - datasets:
          <name>:
            data_path: ...
            csv_sep: ...
            outliers: ...
            report: ...
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # shallow merge with a bit of nested handling
        for key, value in raw.items():
            if (
                key in config
                and isinstance(config[key], dict)
                and isinstance(value, dict)
            ):
                cfg = config[key].copy()
                cfg.update(value)
                config[key] = cfg
            else:
                config[key] = value

        print(f"[INFO] Loaded config from {path}")
    else:
        print(f"[WARN] Config file not found at {path}, using DEFAULT_CONFIG")

    # -------- multi-dataset override --------
    active_dataset = config.get("active_dataset")
    datasets_cfg = config.get("datasets")

    if active_dataset and isinstance(datasets_cfg, dict):
        ds = datasets_cfg.get(active_dataset)
        if ds is None:
            print(
                f"[WARN] active_dataset '{active_dataset}' not found in 'datasets', "
                "using top-level config only."
            )
        else:
            overridable_keys = [
                "data_path",
                "csv_sep",
                "output_dir",
                "outliers",
                "spline",
                "report",
            ]
            for key in overridable_keys:
                if key in ds:
                    if isinstance(config.get(key), dict) and isinstance(
                        ds[key], dict
                    ):
                        merged = config[key].copy()
                        merged.update(ds[key])
                        config[key] = merged
                    else:
                        config[key] = ds[key]
            print(f"[INFO] Applied dataset-specific config for '{active_dataset}'")

    return config


# -----------------------------------------------------------------------------
# 3. Data loading
# -----------------------------------------------------------------------------

def normalize_column_name(name: str) -> str:
    """
    Lower-case a header and collapse spaces, dots and underscores into '_'.

    'fixed.acidity', 'fixed acidity' and 'Fixed_Acidity' all become
    'fixed_acidity'.
    """
    key = re.sub(r"[\s._:]+", "_", str(name).strip().lower())
    return key.strip("_")


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename the columns of a raw wine table to the canonical schema.

    The first column whose header looks like a row id becomes 'row_id'.
    Unknown columns are kept with their original names.
    """
    canonical = {normalize_column_name(col): col for col in NUMERIC_COLUMNS}

    renames = {}
    has_id = False
    for col in df.columns:
        key = normalize_column_name(col)
        if key in canonical:
            renames[col] = canonical[key]
        elif key in ID_ALIASES and not has_id:
            renames[col] = ID_COLUMN
            has_id = True

    return df.rename(columns=renames)


def validate_schema(df: pd.DataFrame) -> pd.DataFrame:
    """
    Check that all measurement columns and quality are present and numeric.

    Returns:
        A new DataFrame with float measurements, integer quality and
        integer row_id, ordered as row_id + measurements + quality.

    Raises:
        KeyError: if an expected column is missing.
        ValueError: if a column holds non-numeric, missing or fractional
            integer values, or row ids repeat.
    """
    missing = [col for col in NUMERIC_COLUMNS if col not in df.columns]
    if missing:
        raise KeyError(f"Expected columns are missing from data: {missing}")

    result = df.copy()

    if ID_COLUMN not in result.columns:
        result.insert(0, ID_COLUMN, np.arange(1, len(result) + 1))
        print(f"[CLEAN] No row id column found, added '{ID_COLUMN}' as 1..n")

    for col in MEASUREMENT_COLUMNS:
        try:
            result[col] = pd.to_numeric(result[col]).astype(float)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Column '{col}' is not numeric: {exc}") from exc

    for col in [ID_COLUMN, QUALITY_COLUMN]:
        try:
            values = pd.to_numeric(result[col], errors="raise")
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Column '{col}' is not numeric: {exc}") from exc
        if values.isna().any():
            raise ValueError(f"Column '{col}' contains missing values.")
        fractional = values[values % 1 != 0]
        if not fractional.empty:
            raise ValueError(
                f"Column '{col}' must hold whole numbers, got {fractional.head(5).tolist()}"
            )
        result[col] = values.astype(int)

    duplicated = result[ID_COLUMN][result[ID_COLUMN].duplicated()]
    if not duplicated.empty:
        raise ValueError(
            f"Column '{ID_COLUMN}' has duplicate ids: {sorted(duplicated.unique().tolist())[:5]}"
        )

    if result[MEASUREMENT_COLUMNS].isna().any().any():
        counts = result[MEASUREMENT_COLUMNS].isna().sum()
        raise ValueError(
            f"Measurement columns contain missing values: {counts[counts > 0].to_dict()}"
        )

    return result[[ID_COLUMN] + NUMERIC_COLUMNS].reset_index(drop=True)


def load_data(csv_path: Path, sep: str = ",") -> pd.DataFrame:
    """
    Load the wine dataset from a CSV file.

    Args:
        csv_path: Path to the CSV file.
        sep: Field separator (the UCI raw files use ';').

    Returns:
        A pandas DataFrame with row_id, the 11 measurements and quality.

    Raises:
        FileNotFoundError: if the file does not exist.
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    raw = pd.read_csv(csv_path, sep=sep)
    df = validate_schema(normalize_columns(raw))

    print(f"[INFO] Loaded data from {csv_path}")
    print(f"[INFO] Shape: {df.shape[0]} rows, {df.shape[1]} columns")
    return df


# -----------------------------------------------------------------------------
# 4. Quality groups
# -----------------------------------------------------------------------------

def quality_to_group(quality: int) -> str:
    """Map a single whole-number quality score to its quality group label."""
    if quality != int(quality):
        raise ValueError(f"Quality score {quality} is not a whole number")
    if quality < 0 or quality > 9:
        raise ValueError(f"Quality score {quality} is outside the mapped range 0-9")
    if quality <= 5:
        return "5"
    return str(int(quality))


def add_quality_group(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add an ordered categorical 'quality_group' column.

    Scores up to 5 share the "5" bucket, 6..9 keep their own label.

    Raises:
        KeyError: if 'quality' is missing.
        ValueError: if a score is fractional or falls outside 0..9.
    """
    if QUALITY_COLUMN not in df.columns:
        raise KeyError(f"Expected column '{QUALITY_COLUMN}' is missing from DataFrame.")

    result = df.copy()
    quality = result[QUALITY_COLUMN]

    invalid = quality[(quality < 0) | (quality > 9) | (quality % 1 != 0)]
    if not invalid.empty:
        raise ValueError(
            f"Quality scores must be whole numbers in 0-9, got: {sorted(invalid.unique().tolist())}"
        )

    labels = quality.map(quality_to_group)
    result[QUALITY_GROUP_COLUMN] = pd.Categorical(
        labels, categories=QUALITY_GROUPS, ordered=True
    )

    counts = result[QUALITY_GROUP_COLUMN].value_counts(sort=False)
    print(f"[INFO] Quality groups: {counts.to_dict()}")
    return result


# -----------------------------------------------------------------------------
# 5. Outlier detection & filtering (IQR)
# -----------------------------------------------------------------------------

def detect_outliers_iqr(series: pd.Series, factor: float = 2.0) -> Tuple[pd.Series, Dict[str, float]]:
    """
    Detect outliers in a numeric Series using the IQR rule.

    Args:
        series: Numeric pandas Series.
        factor: IQR multiplier k (2.0 for this report; 1.5 is the textbook value).

    Returns:
        mask: boolean Series (True = outlier)
        bounds: dict with q1, q3, iqr, lower_bound, upper_bound
    """
    if factor < 0:
        raise ValueError(f"IQR factor must be >= 0, got {factor}")

    q1 = series.quantile(0.25, interpolation="linear")
    q3 = series.quantile(0.75, interpolation="linear")
    iqr = q3 - q1

    lower_bound = q1 - factor * iqr
    upper_bound = q3 + factor * iqr

    mask = (series < lower_bound) | (series > upper_bound)

    bounds = {
        "q1": float(q1),
        "q3": float(q3),
        "iqr": float(iqr),
        "lower_bound": float(lower_bound),
        "upper_bound": float(upper_bound),
    }

    return mask, bounds


def filter_by_bounds(
    df: pd.DataFrame,
    column: str,
    lower: float,
    upper: float,
) -> pd.DataFrame:
    """
    Keep the rows whose value in `column` lies in [lower, upper] (inclusive).
    """
    if column not in df.columns:
        raise KeyError(f"Expected column '{column}' is missing.")

    keep = (df[column] >= lower) & (df[column] <= upper)
    return df.loc[keep].copy()


def filter_outliers(
    df: pd.DataFrame,
    column: str,
    factor: float = 2.0,
) -> pd.DataFrame:
    """
    Remove the IQR outliers of a single column.

    The input DataFrame is not modified; the returned frame keeps the
    original index so it can be compared against the source rows.
    """
    if column not in df.columns:
        raise KeyError(f"Expected column '{column}' is missing.")

    _, bounds = detect_outliers_iqr(df[column], factor=factor)
    result = filter_by_bounds(
        df, column, bounds["lower_bound"], bounds["upper_bound"]
    )

    print(
        f"  [OUTLIERS] Column '{column}': "
        f"{len(df) - len(result)} rows outside "
        f"[{bounds['lower_bound']:.4f}, {bounds['upper_bound']:.4f}], "
        f"rows before: {len(df)}, after: {len(result)}"
    )
    return result


def filter_outliers_per_column(
    df: pd.DataFrame,
    columns: Iterable[str],
    factor: float = 2.0,
) -> Dict[str, pd.DataFrame]:
    """
    Filter each column independently against the full dataset.

    Filters are never chained: every entry of the result is a subset of
    `df` filtered on exactly one column.
    """
    print(f"\n[INFO] Filtering outliers per column (k={factor}):")
    return {col: filter_outliers(df, col, factor=factor) for col in columns}


def get_outlier_summary(
    df: pd.DataFrame,
    columns: Iterable[str],
    factor: float = 2.0,
) -> pd.DataFrame:
    """
    Tabulate IQR bounds and outlier counts for each column.
    """
    rows = []
    for col in columns:
        if col not in df.columns:
            raise KeyError(f"Expected column '{col}' is missing.")
        mask, bounds = detect_outliers_iqr(df[col], factor=factor)
        rows.append(
            {
                "column": col,
                **bounds,
                "outliers": int(mask.sum()),
                "outlier_share": float(mask.mean()) if len(mask) else 0.0,
            }
        )
    return pd.DataFrame(rows).set_index("column")


# -----------------------------------------------------------------------------
# 6. Descriptive, correlation & grouped statistics
# -----------------------------------------------------------------------------

def get_quantile_summary(series: pd.Series) -> Dict[str, float]:
    """
    Five-number summary plus mean and IQR for one column.
    """
    q1 = float(series.quantile(0.25))
    q3 = float(series.quantile(0.75))
    return {
        "count": int(series.count()),
        "mean": float(series.mean()),
        "min": float(series.min()),
        "q1": q1,
        "median": float(series.median()),
        "q3": q3,
        "max": float(series.max()),
        "iqr": q3 - q1,
    }


def get_descriptive_stats(df: pd.DataFrame, numeric_cols: Iterable[str]) -> pd.DataFrame:
    """
    Compute descriptive statistics for the selected numeric columns.
    """
    stats = df[list(numeric_cols)].describe().T
    stats["iqr"] = stats["75%"] - stats["25%"]
    return stats


def get_correlations(
    df: pd.DataFrame,
    target: str = QUALITY_COLUMN,
    method: str = "pearson",
) -> pd.Series:
    """
    Correlation of every measurement with `target`, strongest first.
    """
    if target not in df.columns:
        raise KeyError(f"Expected column '{target}' is missing.")

    cols = [col for col in NUMERIC_COLUMNS if col in df.columns and col != target]
    corr = df[cols].corrwith(df[target], method=method)
    order = corr.abs().sort_values(ascending=False).index
    corr = corr.reindex(order)
    corr.name = f"corr_with_{target}"
    return corr


def get_correlation_matrix(
    df: pd.DataFrame,
    columns: Iterable[str] | None = None,
    method: str = "pearson",
) -> pd.DataFrame:
    cols = list(columns) if columns is not None else [
        col for col in NUMERIC_COLUMNS if col in df.columns
    ]
    return df[cols].corr(method=method)


def get_grouped_stats(df: pd.DataFrame) -> Dict[str, pd.DataFrame]:
    """
    Compute grouped statistics by quality:
      - mean of each measurement per quality group
      - median of each measurement per quality group
      - number of wines per raw quality score

    Returns:
        A dict mapping a name -> DataFrame.
    """
    stats: Dict[str, pd.DataFrame] = {}

    if QUALITY_COLUMN not in df.columns:
        raise KeyError(f"Expected column '{QUALITY_COLUMN}' is missing.")

    if QUALITY_GROUP_COLUMN not in df.columns:
        df = add_quality_group(df)

    measurements = [col for col in MEASUREMENT_COLUMNS if col in df.columns]
    grouped = df.groupby(QUALITY_GROUP_COLUMN, observed=False)[measurements]

    stats["mean_by_quality_group"] = grouped.mean()
    stats["median_by_quality_group"] = grouped.median()
    stats["count_by_quality"] = (
        df.groupby(QUALITY_COLUMN)
        .size()
        .rename("wines")
        .to_frame()
        .sort_index()
    )

    return stats


def print_stats_to_console(
    numeric_stats: pd.DataFrame,
    grouped_stats: Dict[str, pd.DataFrame],
    correlations: pd.Series | None = None,
) -> None:
    """
    Pretty-print numeric, correlation and grouped stats to the console.
    """
    print("\n[INFO] Descriptive statistics for numeric columns:")
    print(numeric_stats)

    if correlations is not None:
        print("\n[INFO] Correlation with quality:")
        print(correlations.round(3))

    for name, table in grouped_stats.items():
        print(f"\n[INFO] {name.replace('_', ' ').title()}:")
        print(table)


def save_summary_tables(
    tables: Dict[str, pd.DataFrame],
    output_dir: Path,
) -> List[Path]:
    """
    Save summary tables to CSV and, if possible, Parquet.

    Returns:
        The CSV paths written, in the order of `tables`.
    """
    summary_dir = output_dir / "summary"
    summary_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    for name, table in tables.items():
        if isinstance(table, pd.Series):
            table = table.to_frame()

        csv_path = summary_dir / f"{name}.csv"
        table.to_csv(csv_path, index=True)
        written.append(csv_path)
        print(f"[SUMMARY] Saved {name} to {csv_path}")

        try:
            parquet_path = summary_dir / f"{name}.parquet"
            table.to_parquet(parquet_path, index=True)
            print(f"[SUMMARY] Saved {name} to {parquet_path}")
        except Exception as exc:
            print(f"[WARN] Could not write Parquet for {name}: {exc}")

    return written


# -----------------------------------------------------------------------------
# 7. Main pipeline
# -----------------------------------------------------------------------------

def load_grouped_data(config: Dict) -> pd.DataFrame:
    """
    Load the configured CSV and attach quality groups.
    """
    data_path = PROJECT_ROOT / config["data_path"]
    df_raw = load_data(data_path, sep=config.get("csv_sep", ","))
    return add_quality_group(df_raw)


def main() -> int:
    try:
        config = load_config(PROJECT_ROOT / "config.yaml")

        output_dir = PROJECT_ROOT / config["output_dir"]
        iqr_factor = float(config["outliers"]["iqr_factor"])
        outlier_cols = config["outliers"]["columns"]

        # 1) Load data + quality groups
        df = load_grouped_data(config)

        # 2) Descriptive statistics on the full dataset
        numeric_stats = get_descriptive_stats(df, numeric_cols=NUMERIC_COLUMNS)

        # 3) Correlations and grouped statistics
        correlations = get_correlations(df)
        grouped_stats = get_grouped_stats(df)

        # 4) Outlier bounds, one column at a time
        outlier_summary = get_outlier_summary(df, outlier_cols, factor=iqr_factor)
        filtered = filter_outliers_per_column(df, outlier_cols, factor=iqr_factor)
        filtered_stats = pd.DataFrame(
            {col: get_quantile_summary(table[col]) for col, table in filtered.items()}
        ).T

        # 5) Print + save
        print_stats_to_console(numeric_stats, grouped_stats, correlations)
        print("\n[INFO] Outlier bounds:")
        print(outlier_summary)

        save_summary_tables(
            {
                "numeric_descriptive_stats": numeric_stats,
                "correlation_with_quality": correlations.to_frame(),
                "outlier_bounds": outlier_summary,
                "filtered_quantiles": filtered_stats,
                **grouped_stats,
            },
            output_dir=output_dir,
        )

        print("\n[DONE] EDA completed successfully.")
        return 0

    except Exception as exc:
        print(f"[ERROR] {exc}")
        return 1


# -----------------------------------------------------------------------------
# 8. Public API (for reuse as a module)
# -----------------------------------------------------------------------------

__all__ = [
    "PROJECT_ROOT",
    "MEASUREMENT_COLUMNS",
    "NUMERIC_COLUMNS",
    "QUALITY_GROUPS",
    "load_config",
    "load_data",
    "normalize_columns",
    "validate_schema",
    "quality_to_group",
    "add_quality_group",
    "detect_outliers_iqr",
    "filter_by_bounds",
    "filter_outliers",
    "filter_outliers_per_column",
    "get_outlier_summary",
    "get_quantile_summary",
    "get_descriptive_stats",
    "get_correlations",
    "get_correlation_matrix",
    "get_grouped_stats",
    "load_grouped_data",
]


if __name__ == "__main__":
    sys.exit(main())
