"""
1.0 Ping Report Module
Appends ping outcomes to a CSV history file.

Layout (one row per endpoint per run):
    pinged_at, sitemap_url, endpoint, success, status_code, error, response_time_ms
"""

import logging
import os
from typing import Mapping

import pandas as pd

from sitemap_generator.ping import PingResult

logger = logging.getLogger(__name__)

# 1.1 Column order for the history file
REPORT_COLUMNS = [
    "pinged_at",
    "sitemap_url",
    "endpoint",
    "success",
    "status_code",
    "error",
    "response_time_ms",
]


def results_to_frame(results: Mapping[str, PingResult], sitemap_url: str) -> pd.DataFrame:
    """Convert ping results into a DataFrame with the report columns."""
    rows = []
    for result in results.values():
        row = result.to_dict()
        row["sitemap_url"] = sitemap_url
        rows.append(row)
    df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    if df.empty:
        return df
    df["status_code"] = df["status_code"].astype("Int64")
    df["response_time_ms"] = df["response_time_ms"].astype("Int64")
    return df


def save_ping_report(results: Mapping[str, PingResult], sitemap_url: str, path: str) -> pd.DataFrame:
    """
    2.0 Append ping results to the CSV history at path.

    The header is written only when the file is created.

    Returns:
        The rows appended
    """
    df = results_to_frame(results, sitemap_url)
    if df.empty:
        logger.info("No ping results to record")
        return df

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    file_exists = os.path.exists(path)
    df.to_csv(path, mode="a", header=not file_exists, index=False)
    logger.info(f"Recorded {len(df)} ping results in {path}")
    return df
