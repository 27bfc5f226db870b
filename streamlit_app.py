"""
Simple Streamlit dashboard for the white wine quality dataset.

This reuses the EDA pipeline from wine_eda.py to:
  - load the data and attach quality groups
  - show descriptive and grouped stats
  - filter outliers interactively, one column at a time
  - for running python -m streamlit run streamlit_app.py
"""

from __future__ import annotations

import pandas as pd
import streamlit as st

from wine_eda import (
    MEASUREMENT_COLUMNS,
    NUMERIC_COLUMNS,
    QUALITY_GROUP_COLUMN,
    QUALITY_GROUPS,
    detect_outliers_iqr,
    filter_outliers,
    get_correlations,
    get_descriptive_stats,
    get_grouped_stats,
    load_config,
    load_grouped_data,
)


@st.cache_data(show_spinner=True)
def load_wine_data() -> pd.DataFrame:
    """
    Load the dataset once, then cache it for the app.
    """
    return load_grouped_data(load_config())


def main():
    st.set_page_config(page_title="White Wine EDA", layout="wide")
    st.title("🍷 White Wine Quality – EDA Dashboard")

    config = load_config()
    df = load_wine_data()

    with st.sidebar:
        st.header("⚙️ Options")
        show_raw = st.checkbox("Show data preview", value=False)
        selected_groups = st.multiselect(
            "Quality groups",
            options=QUALITY_GROUPS,
            default=QUALITY_GROUPS,
        )
        outlier_column = st.selectbox(
            "Filter outliers on (optional)",
            options=["(none)"] + MEASUREMENT_COLUMNS,
            index=0,
        )
        iqr_factor = st.slider(
            "IQR factor k",
            min_value=0.0,
            max_value=5.0,
            value=float(config["outliers"]["iqr_factor"]),
            step=0.5,
        )

    df_view = df[df[QUALITY_GROUP_COLUMN].isin(selected_groups)]
    if outlier_column != "(none)":
        _, bounds = detect_outliers_iqr(df_view[outlier_column], factor=iqr_factor)
        df_view = filter_outliers(df_view, outlier_column, factor=iqr_factor)
        st.caption(
            f"{outlier_column} kept within "
            f"[{bounds['lower_bound']:.4f}, {bounds['upper_bound']:.4f}]"
        )

    st.write(f"Number of wines after filters: **{len(df_view)}**")

    if show_raw:
        st.subheader("Data preview")
        st.dataframe(df_view.head(200))

    # Descriptive statistics
    st.subheader("Descriptive statistics")
    st.dataframe(get_descriptive_stats(df_view, numeric_cols=NUMERIC_COLUMNS))

    st.subheader("Correlation with quality")
    st.bar_chart(get_correlations(df_view))

    # Grouped statistics
    st.subheader("Statistics by quality")
    grouped = get_grouped_stats(df_view)
    tabs = st.tabs(["Mean by group", "Median by group", "Wines per score"])

    with tabs[0]:
        st.dataframe(grouped["mean_by_quality_group"])

    with tabs[1]:
        st.dataframe(grouped["median_by_quality_group"])

    with tabs[2]:
        st.bar_chart(grouped["count_by_quality"])

    # Simple charts
    st.subheader("Measurement by quality group")
    measurement = st.selectbox("Measurement", options=MEASUREMENT_COLUMNS, index=10)
    medians = grouped["median_by_quality_group"][measurement]
    st.line_chart(medians)
    st.scatter_chart(df_view, x=measurement, y="density", color=QUALITY_GROUP_COLUMN)


if __name__ == "__main__":
    main()
