"""
Shared data loading functions for the membership renewals dashboard.

The report artifacts are read from data/outputs/ by default, or from S3 when
REPORT_SOURCE=s3.
"""
import json
import pandas as pd
from data_pipeline.upload_data import DataUploader
import data_pipeline.config as config


def load_json_artifact(local_path: str, s3_path: str):
    """Load one report artifact from the configured source."""
    if config.report_source == "s3":
        uploader = DataUploader()
        return uploader.download_json_from_s3(config.aws_bucket_name, s3_path)
    with open(local_path) as f:
        return json.load(f)


def entries_to_df(entries: list) -> pd.DataFrame:
    """Convert [{"date": <epoch ms>, <type>: <value>}, ...] to a date-sorted DataFrame."""
    df = pd.DataFrame(entries)
    if df.empty:
        return pd.DataFrame(columns=["date"])

    df["date"] = pd.to_datetime(df["date"], unit="ms", utc=True).dt.tz_convert(
        config.myturn_timezone
    )
    return df.sort_values("date").reset_index(drop=True)


def load_cumulative_payments() -> pd.DataFrame:
    """Load the cumulative payments series."""
    entries = load_json_artifact(config.json_path_cum_payments, config.s3_path_cum_payments)
    return entries_to_df(entries)


def load_cumulative_counts() -> pd.DataFrame:
    """Load the cumulative renewal count series."""
    entries = load_json_artifact(config.json_path_cum_counts, config.s3_path_cum_counts)
    return entries_to_df(entries)


def load_generated_at() -> pd.Timestamp:
    """Load the timestamp of the last report run."""
    today = load_json_artifact(config.json_path_today, config.s3_path_today)
    return pd.to_datetime(today["today"], unit="ms", utc=True).tz_convert(
        config.myturn_timezone
    )
