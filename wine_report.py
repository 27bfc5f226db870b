"""
wine_report.py

Chart-and-commentary report on top of the wine EDA pipeline from wine_eda.py.

Every report step pairs one chart with the statistic it illustrates:
- histograms / bar chart       -> quantile summary
- boxplots                     -> quantile summary + IQR outlier bounds
- boxplots by quality group    -> group medians and means
- scatter / faceted scatter    -> correlation coefficient(s)
- correlation heatmap/pairplot -> correlation with quality / matrix
- spline-smoothed trends       -> per-group correlation and fitted range

The spline fits are descriptive only (scikit-learn SplineTransformer +
LinearRegression); nothing is persisted or used for prediction.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.linear_model import LinearRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import SplineTransformer

from wine_eda import (
    PROJECT_ROOT,
    QUALITY_COLUMN,
    QUALITY_GROUP_COLUMN,
    add_quality_group,
    detect_outliers_iqr,
    filter_outliers,
    get_correlation_matrix,
    get_correlations,
    get_quantile_summary,
    load_config,
    load_grouped_data,
)


sns.set(style="whitegrid")


@dataclass
class ReportStep:
    """One chart plus the statistics printed underneath it."""

    title: str
    chart: str
    image_path: Optional[Path]
    stats: str
    rows: int
    notes: List[str] = field(default_factory=list)


# -------------------------------------------------------------------------
# 1. Spline trend
# -------------------------------------------------------------------------


def build_spline_pipeline(n_knots: int = 5, degree: int = 3) -> Pipeline:
    """
    B-spline basis expansion followed by an ordinary least-squares fit.
    """
    return Pipeline(
        steps=[
            ("spline", SplineTransformer(n_knots=n_knots, degree=degree)),
            ("model", LinearRegression()),
        ]
    )


def fit_spline_trend(
    x: pd.Series,
    y: pd.Series,
    n_knots: int = 5,
    degree: int = 3,
    grid_size: int = 100,
) -> pd.DataFrame:
    """
    Fit a smoothing spline of y on x and evaluate it on an even grid.

    Returns:
        DataFrame with columns 'x' and 'fitted' (grid_size rows).

    Raises:
        ValueError: if there are too few points or x is constant.
    """
    x_values = np.asarray(x, dtype=float)
    y_values = np.asarray(y, dtype=float)

    if x_values.shape != y_values.shape:
        raise ValueError("x and y must have the same length.")

    min_points = n_knots + degree
    if x_values.size < min_points:
        raise ValueError(
            f"Need at least {min_points} points for a spline fit, got {x_values.size}."
        )
    if np.isclose(x_values.min(), x_values.max()):
        raise ValueError("Cannot fit a spline trend on a constant x.")

    pipeline = build_spline_pipeline(n_knots=n_knots, degree=degree)
    pipeline.fit(x_values.reshape(-1, 1), y_values)

    grid = np.linspace(x_values.min(), x_values.max(), grid_size)
    fitted = pipeline.predict(grid.reshape(-1, 1))

    return pd.DataFrame({"x": grid, "fitted": fitted})


# -------------------------------------------------------------------------
# 2. Plotting functions
# -------------------------------------------------------------------------


def ensure_output_dir(output_dir: Path) -> None:
    """
    Create the output directory if it does not exist.
    """
    output_dir.mkdir(parents=True, exist_ok=True)


def _save_current_figure(file_path: Path) -> Path:
    plt.tight_layout()
    plt.savefig(file_path, dpi=140)
    plt.close()
    return file_path


def plot_bar_counts(df: pd.DataFrame, column: str, output_dir: Path) -> Path:
    ensure_output_dir(output_dir)

    counts = df[column].value_counts().sort_index()

    plt.figure(figsize=(9, 5))
    plt.bar(counts.index.astype(str), counts.values, edgecolor="black")
    plt.title(f"Number of wines by {column}", fontsize=14)
    plt.xlabel(column, fontsize=12)
    plt.ylabel("Count", fontsize=12)

    file_path = _save_current_figure(output_dir / f"bar_{column.lower()}.png")
    print(f"[PLOT] Saved bar chart for '{column}' to {file_path}")
    return file_path


def plot_histogram(
    df: pd.DataFrame,
    column: str,
    output_dir: Path,
    bins: int = 30,
    log_scale: bool = False,
    suffix: str = "",
) -> Path:
    ensure_output_dir(output_dir)

    values = df[column]
    if log_scale and values.min() <= 0:
        print(f"[WARN] '{column}' has non-positive values, using a linear scale.")
        log_scale = False
    if log_scale and values.min() == values.max():
        print(f"[WARN] '{column}' is constant, using a linear scale.")
        log_scale = False

    plt.figure(figsize=(9, 5))
    if log_scale:
        edges = np.logspace(np.log10(values.min()), np.log10(values.max()), bins + 1)
        plt.hist(values, bins=edges, edgecolor="black")
        plt.xscale("log")
        title = f"Histogram of {column} (log10 scale)"
    else:
        plt.hist(values, bins=bins, edgecolor="black")
        title = f"Histogram of {column}"
    plt.title(title, fontsize=14)
    plt.xlabel(column, fontsize=12)
    plt.ylabel("Frequency", fontsize=12)

    name = f"hist_{column.lower()}{'_log' if log_scale else ''}{suffix}.png"
    file_path = _save_current_figure(output_dir / name)
    print(f"[PLOT] Saved histogram for '{column}' to {file_path}")
    return file_path


def plot_boxplot(df: pd.DataFrame, column: str, output_dir: Path, suffix: str = "") -> Path:
    ensure_output_dir(output_dir)

    plt.figure(figsize=(5, 6))
    sns.boxplot(data=df, y=column)
    plt.title(f"Boxplot of {column}", fontsize=14)
    plt.ylabel(column, fontsize=12)

    file_path = _save_current_figure(output_dir / f"box_{column.lower()}{suffix}.png")
    print(f"[PLOT] Saved boxplot for '{column}' to {file_path}")
    return file_path


def plot_group_boxplot(
    df: pd.DataFrame,
    x_cat: str,
    y_num: str,
    output_dir: Path,
    suffix: str = "",
) -> Path:
    ensure_output_dir(output_dir)

    plt.figure(figsize=(11, 6))
    sns.boxplot(data=df, x=x_cat, y=y_num)
    plt.title(f"{y_num} by {x_cat}", fontsize=14)
    plt.xlabel(x_cat, fontsize=12)
    plt.ylabel(y_num, fontsize=12)

    file_path = _save_current_figure(
        output_dir / f"box_{y_num.lower()}_by_{x_cat.lower()}{suffix}.png"
    )
    print(f"[PLOT] Saved boxplot {y_num} by {x_cat} to {file_path}")
    return file_path


def plot_scatter(df: pd.DataFrame, x: str, y: str, output_dir: Path, suffix: str = "") -> Path:
    ensure_output_dir(output_dir)

    plt.figure(figsize=(9, 5))
    plt.scatter(df[x], df[y], alpha=0.3, s=10)
    plt.title(f"{x} vs {y}", fontsize=14)
    plt.xlabel(x, fontsize=12)
    plt.ylabel(y, fontsize=12)

    file_path = _save_current_figure(
        output_dir / f"scatter_{x.lower()}_vs_{y.lower()}{suffix}.png"
    )

    corr_value = df[x].corr(df[y])
    print(f"[PLOT] Saved scatter plot {x} vs {y} to {file_path}")
    print(f"[INFO] Correlation between {x} and {y}: {corr_value:.3f}")
    return file_path


def plot_correlation_heatmap(df: pd.DataFrame, output_dir: Path) -> Path:
    ensure_output_dir(output_dir)

    corr = get_correlation_matrix(df)

    plt.figure(figsize=(11, 9))
    sns.heatmap(corr, annot=True, fmt=".2f", cmap="coolwarm", vmin=-1, vmax=1)
    plt.title("Correlation heatmap (pearson)", fontsize=14)

    file_path = _save_current_figure(output_dir / "heatmap_correlation.png")
    print(f"[PLOT] Saved correlation heatmap to {file_path}")
    return file_path


def plot_pairplot(
    df: pd.DataFrame,
    columns: List[str],
    output_dir: Path,
    sample_size: int = 1000,
    random_state: int = 42,
) -> Path:
    ensure_output_dir(output_dir)

    sample = df if len(df) <= sample_size else df.sample(sample_size, random_state=random_state)
    grid = sns.pairplot(sample[columns], corner=True, plot_kws={"alpha": 0.3, "s": 10})

    file_path = output_dir / "pairplot.png"
    grid.savefig(file_path, dpi=100)
    plt.close(grid.figure)

    print(f"[PLOT] Saved pairplot of {len(columns)} columns to {file_path}")
    return file_path


def plot_facet_scatter(df: pd.DataFrame, x: str, y: str, output_dir: Path, suffix: str = "") -> Path:
    ensure_output_dir(output_dir)

    grid = sns.FacetGrid(df, col=QUALITY_GROUP_COLUMN, col_wrap=3, height=3.5)
    grid.map_dataframe(sns.scatterplot, x=x, y=y, alpha=0.3, s=10)
    grid.set_titles(col_template="quality {col_name}")
    grid.figure.suptitle(f"{y} vs {x} by quality group", fontsize=14)
    grid.figure.tight_layout()

    file_path = output_dir / f"facet_{y.lower()}_vs_{x.lower()}{suffix}.png"
    grid.savefig(file_path, dpi=120)
    plt.close(grid.figure)

    print(f"[PLOT] Saved faceted scatter {y} vs {x} to {file_path}")
    return file_path


def plot_smoothed_trend(
    df: pd.DataFrame,
    x: str,
    y: str,
    output_dir: Path,
    n_knots: int = 5,
    degree: int = 3,
    suffix: str = "",
) -> Tuple[Path, Dict[str, pd.DataFrame]]:
    """
    Scatter of y against x with one spline trend per quality group.

    Groups with too few points for a fit are drawn without a trend line.
    """
    ensure_output_dir(output_dir)

    trends: Dict[str, pd.DataFrame] = {}
    palette = sns.color_palette("viridis", n_colors=df[QUALITY_GROUP_COLUMN].cat.categories.size)

    plt.figure(figsize=(10, 6))
    for color, (group, part) in zip(
        palette, df.groupby(QUALITY_GROUP_COLUMN, observed=False)
    ):
        if part.empty:
            continue
        plt.scatter(part[x], part[y], alpha=0.15, s=8, color=color)
        try:
            trend = fit_spline_trend(part[x], part[y], n_knots=n_knots, degree=degree)
        except ValueError as exc:
            print(f"[WARN] No trend for quality group {group}: {exc}")
            continue
        trends[str(group)] = trend
        plt.plot(trend["x"], trend["fitted"], color=color, linewidth=2, label=f"quality {group}")

    plt.title(f"{y} vs {x} with spline trends by quality group", fontsize=14)
    plt.xlabel(x, fontsize=12)
    plt.ylabel(y, fontsize=12)
    if trends:
        plt.legend()

    file_path = _save_current_figure(
        output_dir / f"smooth_{y.lower()}_vs_{x.lower()}{suffix}.png"
    )
    print(f"[PLOT] Saved smoothed trend {y} vs {x} to {file_path}")
    return file_path, trends


# -------------------------------------------------------------------------
# 3. Derived-statistic printouts
# -------------------------------------------------------------------------


def format_summary(summary: Dict[str, float]) -> str:
    return ", ".join(
        f"{key}={value}" if key == "count" else f"{key}={value:.4g}"
        for key, value in summary.items()
    )


def describe_distribution(df: pd.DataFrame, column: str) -> str:
    return f"{column}: {format_summary(get_quantile_summary(df[column]))}"


def describe_outlier_bounds(df: pd.DataFrame, column: str, factor: float) -> str:
    mask, bounds = detect_outliers_iqr(df[column], factor=factor)
    return (
        f"IQR bounds (k={factor}): [{bounds['lower_bound']:.4g}, {bounds['upper_bound']:.4g}], "
        f"{int(mask.sum())} of {len(mask)} rows outside"
    )


def describe_groups(df: pd.DataFrame, column: str) -> str:
    table = (
        df.groupby(QUALITY_GROUP_COLUMN, observed=False)[column]
        .agg(["count", "median", "mean"])
        .round(4)
    )
    return table.to_string()


def describe_group_correlations(df: pd.DataFrame, x: str, y: str) -> str:
    lines = [f"overall corr({x}, {y}) = {df[x].corr(df[y]):.3f}"]
    for group, part in df.groupby(QUALITY_GROUP_COLUMN, observed=False):
        if len(part) < 2:
            lines.append(f"quality {group}: n={len(part)}, corr=n/a")
            continue
        lines.append(f"quality {group}: n={len(part)}, corr={part[x].corr(part[y]):.3f}")
    return "\n".join(lines)


# -------------------------------------------------------------------------
# 4. Report steps
# -------------------------------------------------------------------------


def _step_columns(step: Dict) -> List[str]:
    if step["chart"] == "heatmap":
        return [QUALITY_COLUMN]
    if step["chart"] == "pairplot":
        return list(step.get("columns", []))
    cols = [step["column"]]
    if "y" in step:
        cols.append(step["y"])
    return cols


def render_step(
    df: pd.DataFrame,
    step: Dict,
    output_dir: Path,
    factor: float = 2.0,
    spline_cfg: Optional[Dict] = None,
) -> Optional[ReportStep]:
    """
    Render one (column, chart) step and return its chart + statistics.

    Returns None when a referenced column is missing from `df`.
    """
    chart = step["chart"]
    column = step["column"]
    y = step.get("y")
    spline_cfg = spline_cfg or {}

    missing = [col for col in _step_columns(step) if col not in df.columns]
    if missing:
        print(f"[WARN] Columns {missing} not found for {chart} step, skipping.")
        return None

    notes: List[str] = []
    data = df
    suffix = ""
    if step.get("filter_outliers"):
        target = y if y is not None else column
        data = filter_outliers(df, target, factor=factor)
        suffix = "_filtered"
        notes.append(
            f"Filtered on {target} (k={factor}): {len(df) - len(data)} of {len(df)} rows removed."
        )

    if chart == "bar":
        image = plot_bar_counts(data, column, output_dir)
        counts = data[column].value_counts().sort_index()
        stats = "\n".join(f"{key}: {value}" for key, value in counts.items())
        title = f"Distribution of {column}"

    elif chart == "histogram":
        log_scale = bool(step.get("log_scale", False))
        image = plot_histogram(
            data,
            column,
            output_dir,
            bins=int(step.get("bins", 30)),
            log_scale=log_scale,
            suffix=suffix,
        )
        stats = describe_distribution(data, column)
        title = f"Histogram of {column}" + (" (log scale)" if log_scale else "")

    elif chart == "boxplot":
        image = plot_boxplot(data, column, output_dir, suffix=suffix)
        stats = "\n".join(
            [describe_distribution(data, column), describe_outlier_bounds(data, column, factor)]
        )
        title = f"Boxplot of {column}"

    elif chart == "group_boxplot":
        image = plot_group_boxplot(data, QUALITY_GROUP_COLUMN, column, output_dir, suffix=suffix)
        stats = describe_groups(data, column)
        title = f"{column} by quality group"

    elif chart == "scatter":
        image = plot_scatter(data, column, y, output_dir, suffix=suffix)
        stats = f"corr({column}, {y}) = {data[column].corr(data[y]):.3f}"
        title = f"{column} vs {y}"

    elif chart == "heatmap":
        image = plot_correlation_heatmap(data, output_dir)
        stats = get_correlations(data, target=column).round(3).to_string()
        title = f"Correlation with {column}"

    elif chart == "pairplot":
        cols = list(step["columns"])
        image = plot_pairplot(data, cols, output_dir)
        stats = get_correlation_matrix(data, cols).round(3).to_string()
        title = "Pairwise relationships"

    elif chart == "facet_scatter":
        image = plot_facet_scatter(data, column, y, output_dir, suffix=suffix)
        stats = describe_group_correlations(data, column, y)
        title = f"{y} vs {column} by quality group"

    elif chart == "smooth":
        image, trends = plot_smoothed_trend(
            data,
            column,
            y,
            output_dir,
            n_knots=int(spline_cfg.get("n_knots", 5)),
            degree=int(spline_cfg.get("degree", 3)),
            suffix=suffix,
        )
        lines = [describe_group_correlations(data, column, y)]
        for group, trend in trends.items():
            lines.append(
                f"trend quality {group}: fitted {y} from "
                f"{trend['fitted'].iloc[0]:.4g} to {trend['fitted'].iloc[-1]:.4g}"
            )
        stats = "\n".join(lines)
        title = f"{y} vs {column} with spline trends"

    else:
        raise ValueError(f"Unknown chart type '{chart}'")

    print(f"[REPORT] {title}")
    for line in notes:
        print(f"  {line}")
    print(stats)

    return ReportStep(
        title=title,
        chart=chart,
        image_path=image,
        stats=stats,
        rows=len(data),
        notes=notes,
    )


def render_report(
    df: pd.DataFrame,
    steps: List[Dict],
    output_dir: Path,
    factor: float = 2.0,
    spline_cfg: Optional[Dict] = None,
) -> List[ReportStep]:
    """
    Render every configured step in order, skipping the ones with missing columns.
    """
    if QUALITY_GROUP_COLUMN not in df.columns:
        df = add_quality_group(df)

    results: List[ReportStep] = []
    for step in steps:
        result = render_step(df, step, output_dir, factor=factor, spline_cfg=spline_cfg)
        if result is not None:
            results.append(result)

    print(f"[REPORT] Rendered {len(results)} of {len(steps)} steps")
    return results


def write_report_document(
    steps: List[ReportStep],
    path: Path,
    title: str = "White Wine Quality: Exploratory Data Analysis",
    rows: Optional[int] = None,
) -> Path:
    """
    Write the rendered steps as a Markdown document next to the charts.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [f"# {title}", ""]
    if rows is not None:
        lines += [f"Dataset: {rows} wines.", ""]

    for number, step in enumerate(steps, start=1):
        lines += [f"## {number}. {step.title}", ""]
        if step.image_path is not None:
            image = Path(step.image_path)
            try:
                image = image.relative_to(path.parent)
            except ValueError:
                pass
            lines += [f"![{step.title}]({image.as_posix()})", ""]
        for note in step.notes:
            lines += [f"_{note}_", ""]
        lines += ["```", step.stats, "```", ""]

    path.write_text("\n".join(lines), encoding="utf-8")
    print(f"[REPORT] Saved report document to {path}")
    return path


# -------------------------------------------------------------------------
# 5. Main
# -------------------------------------------------------------------------


def main() -> int:
    try:
        config = load_config(PROJECT_ROOT / "config.yaml")

        output_dir = PROJECT_ROOT / config["output_dir"]
        figures_dir = output_dir / "figures"
        iqr_factor = float(config["outliers"]["iqr_factor"])
        report_cfg = config["report"]

        df = load_grouped_data(config)

        steps = render_report(
            df,
            report_cfg["steps"],
            figures_dir,
            factor=iqr_factor,
            spline_cfg=config.get("spline"),
        )
        write_report_document(
            steps,
            output_dir / "report.md",
            title=report_cfg.get("title", "White Wine Quality: Exploratory Data Analysis"),
            rows=len(df),
        )

        print("[DONE] Report rendered successfully.")
        return 0
    except Exception as exc:
        print(f"[ERROR] {exc}")
        return 1


__all__ = [
    "ReportStep",
    "build_spline_pipeline",
    "fit_spline_trend",
    "render_step",
    "render_report",
    "write_report_document",
]


if __name__ == "__main__":
    sys.exit(main())
