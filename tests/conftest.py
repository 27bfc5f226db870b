import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from wine_eda import MEASUREMENT_COLUMNS


def make_wine_frame(n: int = 200, seed: int = 0) -> pd.DataFrame:
    """Synthetic wines with roughly realistic ranges and quality 3..9."""
    rng = np.random.default_rng(seed)
    alcohol = rng.uniform(8.0, 14.0, n)
    data = {
        "row_id": np.arange(1, n + 1),
        "fixed_acidity": rng.normal(6.8, 0.8, n),
        "volatile_acidity": rng.normal(0.28, 0.1, n).clip(0.08),
        "citric_acid": rng.normal(0.33, 0.12, n).clip(0.0),
        "residual_sugar": rng.lognormal(1.5, 0.8, n),
        "chlorides": rng.normal(0.045, 0.02, n).clip(0.009),
        "free_sulfur_dioxide": rng.normal(35.0, 17.0, n).clip(2.0),
        "total_sulfur_dioxide": rng.normal(138.0, 42.0, n).clip(9.0),
        "density": 1.01 - 0.0015 * alcohol + rng.normal(0.0, 0.0005, n),
        "pH": rng.normal(3.19, 0.15, n),
        "sulphates": rng.normal(0.49, 0.11, n).clip(0.22),
        "alcohol": alcohol,
    }
    quality = np.tile(np.arange(3, 10), n // 7 + 1)[:n]
    data["quality"] = quality
    df = pd.DataFrame(data)
    return df[["row_id"] + MEASUREMENT_COLUMNS + ["quality"]]


@pytest.fixture
def wine_df() -> pd.DataFrame:
    return make_wine_frame()
