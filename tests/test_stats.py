import pandas as pd
import pytest

from wine_eda import (
    MEASUREMENT_COLUMNS,
    NUMERIC_COLUMNS,
    add_quality_group,
    filter_outliers,
    get_correlations,
    get_descriptive_stats,
    get_grouped_stats,
    get_quantile_summary,
    save_summary_tables,
)


def test_quantiles_are_ordered_before_and_after_filtering(wine_df):
    for col in NUMERIC_COLUMNS:
        for data in (wine_df, filter_outliers(wine_df, col, factor=2.0)):
            summary = get_quantile_summary(data[col])
            assert summary["q1"] <= summary["median"] <= summary["q3"]
            assert summary["iqr"] >= 0


def test_quantile_summary_uses_linear_interpolation():
    summary = get_quantile_summary(pd.Series([1.0, 2.0, 3.0, 4.0]))

    assert summary["q1"] == pytest.approx(1.75)
    assert summary["median"] == pytest.approx(2.5)
    assert summary["q3"] == pytest.approx(3.25)
    assert summary["count"] == 4


def test_descriptive_stats_has_iqr(wine_df):
    stats = get_descriptive_stats(wine_df, NUMERIC_COLUMNS)

    assert list(stats.index) == NUMERIC_COLUMNS
    assert (stats["iqr"] == stats["75%"] - stats["25%"]).all()


def test_correlations_sorted_by_strength(wine_df):
    corr = get_correlations(wine_df)

    assert "quality" not in corr.index
    assert set(corr.index) == set(MEASUREMENT_COLUMNS)
    strengths = corr.abs().tolist()
    assert strengths == sorted(strengths, reverse=True)


def test_grouped_stats_by_quality_group(wine_df):
    stats = get_grouped_stats(add_quality_group(wine_df))

    means = stats["mean_by_quality_group"]
    assert list(means.index.astype(str)) == ["5", "6", "7", "8", "9"]
    low = wine_df[wine_df["quality"] <= 5]
    assert means.loc["5", "alcohol"] == pytest.approx(low["alcohol"].mean())

    counts = stats["count_by_quality"]
    assert counts["wines"].sum() == len(wine_df)


def test_save_summary_tables_writes_csv(tmp_path, wine_df):
    stats = get_descriptive_stats(wine_df, NUMERIC_COLUMNS)

    written = save_summary_tables(
        {"numeric_descriptive_stats": stats, "corr": get_correlations(wine_df)},
        tmp_path,
    )

    assert [p.name for p in written] == ["numeric_descriptive_stats.csv", "corr.csv"]
    assert all(p.exists() for p in written)


def test_save_summary_tables_warns_when_parquet_fails(tmp_path, wine_df, monkeypatch, capsys):
    def no_parquet(self, *args, **kwargs):
        raise ImportError("no parquet engine")

    monkeypatch.setattr(pd.DataFrame, "to_parquet", no_parquet)

    written = save_summary_tables(
        {"numeric_descriptive_stats": get_descriptive_stats(wine_df, NUMERIC_COLUMNS)},
        tmp_path,
    )

    out = capsys.readouterr().out
    assert "[WARN] Could not write Parquet for numeric_descriptive_stats" in out
    assert written[0].exists()
    assert not (tmp_path / "summary" / "numeric_descriptive_stats.parquet").exists()
