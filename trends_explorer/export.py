"""Export comparison tables and region rankings to pandas and CSV."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Sequence, Union

import pandas as pd

from trends_explorer.types import ComparisonTable, RegionScore

logger = logging.getLogger(__name__)


def comparison_to_frame(table: ComparisonTable) -> pd.DataFrame:
    """Return *table* as a DataFrame indexed by date, one column per keyword."""
    index = pd.DatetimeIndex(pd.to_datetime(list(table.timestamps)), name="date")
    return pd.DataFrame(
        {kw: list(values) for kw, values in table.series_by_keyword.items()},
        index=index,
        columns=table.keywords,
    )


def regions_to_frame(keyword: str, ranked: Sequence[RegionScore]) -> pd.DataFrame:
    """Return ranked regions as rows of ``keyword, rank, region_code, score``."""
    return pd.DataFrame(
        [
            {"keyword": keyword, "rank": rank, "region_code": r.region_code,
             "score": r.score}
            for rank, r in enumerate(ranked, start=1)
        ],
        columns=["keyword", "rank", "region_code", "score"],
    )


def write_comparison_csv(table: ComparisonTable,
                         output_path: Union[str, Path]) -> None:
    """Write a comparison table to CSV, merging with an existing file.

    When *output_path* exists, rows for the same date are replaced by the
    new values and new keyword columns are added; dates only present in
    the old file are kept.  Missing cells are written as ``0``.
    """
    intraday = any(isinstance(ts, datetime) for ts in table.timestamps)
    new_df = comparison_to_frame(table).reset_index()
    new_df["date"] = new_df["date"].dt.strftime(
        "%Y-%m-%d %H:%M:%S" if intraday else "%Y-%m-%d")
    _write_merged(new_df, Path(output_path), key=["date"])


def write_regions_csv(keyword: str, ranked: Sequence[RegionScore],
                      output_path: Union[str, Path]) -> None:
    """Write one keyword's region ranking, replacing that keyword's old rows."""
    if not ranked:
        logger.warning("No ranked regions for '%s'; skipping CSV output.",
                       keyword)
        return
    output_path = Path(output_path)
    new_df = regions_to_frame(keyword, ranked)
    if output_path.exists():
        existing_df = pd.read_csv(output_path)
        existing_df = existing_df[existing_df["keyword"] != keyword]
        new_df = pd.concat([existing_df, new_df], ignore_index=True)
    _write(new_df, output_path)


def _write_merged(new_df: pd.DataFrame, output_path: Path, key) -> None:
    if output_path.exists():
        existing_df = pd.read_csv(output_path)
        combined = pd.concat([existing_df, new_df], ignore_index=True)
        combined = combined.drop_duplicates(subset=key, keep="last")
        combined = combined.sort_values(key).fillna(0)
    else:
        combined = new_df
    _write(combined, output_path)


def _write(df: pd.DataFrame, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    logger.info("Wrote %d rows to %s", len(df), output_path)
