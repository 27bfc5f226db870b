# tests/test_filter_outliers.py

import pandas as pd
import pytest

from wine_eda import (
    NUMERIC_COLUMNS,
    filter_by_bounds,
    filter_outliers,
    filter_outliers_per_column,
)


def test_filter_by_bounds_removes_salty_row():
    df = pd.DataFrame({"row_id": [1, 2, 3], "chlorides": [0.01, 0.02, 0.5]})

    kept = filter_by_bounds(df, "chlorides", -0.02, 0.06)

    assert kept["row_id"].tolist() == [1, 2]
    assert kept["chlorides"].tolist() == [0.01, 0.02]


def test_filter_by_bounds_is_inclusive():
    df = pd.DataFrame({"x": [1.0, 2.0, 3.0]})

    kept = filter_by_bounds(df, "x", 1.0, 3.0)

    assert len(kept) == 3


def test_filter_outliers_leaves_input_untouched(wine_df):
    wine_df.loc[3, "chlorides"] = 9.9
    before = wine_df.copy()

    kept = filter_outliers(wine_df, "chlorides", factor=2.0)

    pd.testing.assert_frame_equal(wine_df, before)
    assert 3 not in kept.index
    assert len(kept) < len(wine_df)


@pytest.mark.parametrize("factor", [0.0, 0.5, 1.5, 2.0, 3.0])
def test_filter_outliers_returns_subset(wine_df, factor):
    for col in NUMERIC_COLUMNS:
        kept = filter_outliers(wine_df, col, factor=factor)

        assert len(kept) <= len(wine_df)
        assert set(kept["row_id"]).issubset(set(wine_df["row_id"]))
        pd.testing.assert_frame_equal(kept, wine_df.loc[kept.index])


def test_filter_outliers_with_wide_bounds_is_identity(wine_df):
    kept = filter_outliers(wine_df, "residual_sugar", factor=1000.0)

    pd.testing.assert_frame_equal(kept, wine_df)


def test_filter_outliers_per_column_is_not_chained(wine_df):
    wine_df.loc[0, "chlorides"] = 9.9
    wine_df.loc[1, "density"] = 2.0

    filtered = filter_outliers_per_column(wine_df, ["chlorides", "density"])

    assert 0 not in filtered["chlorides"].index
    assert 1 in filtered["chlorides"].index
    assert 1 not in filtered["density"].index
    assert 0 in filtered["density"].index


def test_filter_outliers_missing_column(wine_df):
    with pytest.raises(KeyError):
        filter_outliers(wine_df, "tannins")
