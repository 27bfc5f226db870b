# tests/test_load_data.py

from pathlib import Path

import pandas as pd
import pytest

from wine_eda import (
    ID_COLUMN,
    NUMERIC_COLUMNS,
    load_config,
    load_data,
    normalize_column_name,
)


R_HEADER = [
    "X", "fixed.acidity", "volatile.acidity", "citric.acid", "residual.sugar",
    "chlorides", "free.sulfur.dioxide", "total.sulfur.dioxide", "density",
    "pH", "sulphates", "alcohol", "quality",
]


def test_normalize_column_name_variants():
    assert normalize_column_name("fixed.acidity") == "fixed_acidity"
    assert normalize_column_name("fixed acidity") == "fixed_acidity"
    assert normalize_column_name(" Fixed_Acidity ") == "fixed_acidity"
    assert normalize_column_name("Unnamed: 0") == "unnamed_0"


def test_load_data_r_export(tmp_path, wine_df):
    csv_path = tmp_path / "wineQualityWhites.csv"
    raw = wine_df.copy()
    raw.columns = R_HEADER
    raw.to_csv(csv_path, index=False)

    df = load_data(csv_path)

    assert list(df.columns) == [ID_COLUMN] + NUMERIC_COLUMNS
    assert len(df) == len(wine_df)
    assert df["quality"].dtype.kind == "i"
    assert df[ID_COLUMN].tolist() == wine_df["row_id"].tolist()


def test_load_data_uci_file_without_row_id(tmp_path, wine_df):
    csv_path = tmp_path / "winequality-white.csv"
    raw = wine_df.drop(columns=["row_id"])
    raw.columns = [c.replace("_", " ") if c != "pH" else c for c in raw.columns]
    raw.to_csv(csv_path, sep=";", index=False)

    df = load_data(csv_path, sep=";")

    assert df[ID_COLUMN].tolist() == list(range(1, len(wine_df) + 1))
    assert df["free_sulfur_dioxide"].tolist() == pytest.approx(
        wine_df["free_sulfur_dioxide"].tolist()
    )


def test_load_data_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_data(tmp_path / "nope.csv")


def test_load_data_missing_column(tmp_path, wine_df):
    csv_path = tmp_path / "broken.csv"
    wine_df.drop(columns=["alcohol"]).to_csv(csv_path, index=False)

    with pytest.raises(KeyError, match="alcohol"):
        load_data(csv_path)


def test_load_data_non_numeric_value(tmp_path, wine_df):
    csv_path = tmp_path / "broken.csv"
    raw = wine_df.astype({"chlorides": object})
    raw.loc[2, "chlorides"] = "salty"
    raw.to_csv(csv_path, index=False)

    with pytest.raises(ValueError, match="chlorides"):
        load_data(csv_path)


def test_load_config_merges_with_defaults(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "outliers:\n"
        "  iqr_factor: 1.5\n"
        "active_dataset: red\n"
        "datasets:\n"
        "  red:\n"
        "    data_path: data/red.csv\n"
        "    csv_sep: ';'\n",
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config["outliers"]["iqr_factor"] == 1.5
    assert "chlorides" in config["outliers"]["columns"]
    assert config["data_path"] == "data/red.csv"
    assert config["csv_sep"] == ";"
    assert config["report"]["steps"]


def test_load_config_missing_file_uses_defaults(tmp_path):
    config = load_config(Path(tmp_path / "missing.yaml"))

    assert config["outliers"]["iqr_factor"] == 2.0
    assert config["output_dir"] == "output"


def test_load_data_rejects_fractional_quality(tmp_path, wine_df):
    csv_path = tmp_path / "fractional.csv"
    raw = wine_df.astype({"quality": float})
    raw.loc[0, "quality"] = 5.9
    raw.loc[1, "quality"] = 6.5
    raw.to_csv(csv_path, index=False)

    with pytest.raises(ValueError, match="quality"):
        load_data(csv_path)


def test_load_data_rejects_fractional_row_id(tmp_path, wine_df):
    csv_path = tmp_path / "fractional_id.csv"
    raw = wine_df.astype({"row_id": float})
    raw.loc[4, "row_id"] = 4.5
    raw.to_csv(csv_path, index=False)

    with pytest.raises(ValueError, match="row_id"):
        load_data(csv_path)


def test_load_data_rejects_duplicate_row_ids(tmp_path, wine_df):
    csv_path = tmp_path / "duplicate_ids.csv"
    raw = wine_df.copy()
    raw["row_id"] = 1
    raw.to_csv(csv_path, index=False)

    with pytest.raises(ValueError, match="duplicate"):
        load_data(csv_path)
