"""
Small demo script to show how the IQR-based outlier filter works on chlorides.

Run:

    python iqr_demo.py
"""

import pandas as pd

from wine_eda import detect_outliers_iqr, filter_outliers


def main() -> None:
    # Toy chlorides column with one salty wine
    values = [0.01, 0.02, 0.02, 0.03, 0.03, 0.04, 0.5]
    df = pd.DataFrame({"row_id": range(1, len(values) + 1), "chlorides": values})

    mask, bounds = detect_outliers_iqr(df["chlorides"], factor=2.0)
    kept = filter_outliers(df, "chlorides", factor=2.0)

    print("Input values:           ", values)
    print("Q1 (25th percentile):   ", bounds["q1"])
    print("Q3 (75th percentile):   ", bounds["q3"])
    print("IQR (Q3 - Q1):          ", bounds["iqr"])
    print("Lower bound (Q1-2*IQR): ", bounds["lower_bound"])
    print("Upper bound (Q3+2*IQR): ", bounds["upper_bound"])
    print("Outlier mask:           ", mask.tolist())
    print("Kept row ids:           ", kept["row_id"].tolist())


if __name__ == "__main__":
    main()
