import re
from typing import Optional

import numpy as np
import pandas as pd

from variantdynamics.config import Analysis, Columns, Lineages

from .helper import clean_names, remove_empty


def sort_lineages(lineage_list, pattern=re.compile(r"[A-Z]+(\.\d+)*$")):
    assert len(lineage_list) == len(
        set(lineage_list)
    ), "Arg lineage_list must contain unique lineages!"
    # extract lineages that follow the specific pattern
    identifier = [lineage for lineage in lineage_list if pattern.match(lineage)]
    if len(identifier) == 0:
        return [], list(lineage_list)

    max_levels = max([len(lineage.split(".")) for lineage in identifier])

    # all other identifier
    other_identifier = [
        lineage for lineage in lineage_list if not pattern.match(lineage)
    ]

    identifier_levels = []
    for lineage in identifier:
        levels = lineage.split(".")
        while len(levels) < max_levels:
            levels = levels + ["0"]

        identifier_levels.append(levels)

    for i in reversed(range(max_levels)):
        identifier_levels.sort(
            key=lambda x: (x[i].isdigit(), int(x[i]) if x[i].isdigit() else x[i])
        )

    sorted_identifier = []
    for lineage in identifier_levels:
        sorted_identifier.append(".".join([i for i in lineage if i != "0"]))

    return sorted_identifier, other_identifier


def expand_lineage(lineage: str, aliases: dict) -> str:
    """
    Replaces the alias prefix of a pango lineage by its full name,
    e.g. AY.4.2 -> B.1.617.2.4.2.
    """
    head, _, tail = lineage.partition(".")
    if head not in aliases:
        return lineage
    expanded = aliases[head]
    # aliases may point to other aliases (e.g. EG -> XBB.1.9.2)
    if expanded.partition(".")[0] in aliases and expanded.partition(".")[0] != head:
        expanded = expand_lineage(expanded, aliases)
    return f"{expanded}.{tail}" if tail else expanded


def is_descendant(lineage: str, ancestor: str) -> bool:
    """True if lineage equals ancestor or is nested below it."""
    return lineage == ancestor or lineage.startswith(ancestor + ".")


def classify_major_lineages(
    lineage_list: list,
    major_lineages: list = Lineages.MAJOR,
    aliases: Optional[dict] = None,
    other: str = Lineages.OTHER,
) -> list:
    """
    Maps each lineage onto the set of major lineages.

    Without aliases only exact matches are kept, everything else becomes
    `other`. With a pango alias table each lineage is assigned to the most
    specific major lineage it descends from (e.g. AY.4 -> B.1.617.2,
    BQ.1 -> BA.5.3).

    :param lineage_list: list of lineage labels
    :param major_lineages: lineages of interest
    :param aliases: pango alias table (see get_aliases), defaults to None
    :param other: label of all remaining lineages
    :returns: list of major lineage labels, same length as lineage_list
    """
    major_set = set(major_lineages)
    if aliases is None:
        return [lineage if lineage in major_set else other for lineage in lineage_list]

    expanded_major = {major: expand_lineage(major, aliases) for major in major_lineages}
    # longest name first, so the most specific ancestor wins
    ordered = sorted(expanded_major.items(), key=lambda x: len(x[1]), reverse=True)

    classified = []
    for lineage in lineage_list:
        if lineage in major_set:
            classified.append(lineage)
            continue
        expanded = expand_lineage(str(lineage), aliases)
        match = next(
            (major for major, full in ordered if is_descendant(expanded, full)), other
        )
        classified.append(match)

    return classified


def _rename_first(df: pd.DataFrame, candidates: list, target: str) -> pd.DataFrame:
    if target in df.columns:
        return df
    for candidate in candidates:
        if candidate in df.columns:
            return df.rename(columns={candidate: target})
    raise KeyError(f"None of the columns {candidates} found, required for '{target}'.")


def clean_lineage_table(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Standardises a raw lineage count table.

    Column names are snake cased, the date column is renamed to
    collection_date, empty rows and columns are dropped and the columns
    collection_date, lineage and count are coerced to datetime, str and float.

    :param raw: table with a date, lineage and count column
    :returns: cleaned dataframe
    """
    df = remove_empty(clean_names(raw))
    df = _rename_first(df, Columns.DATE_ALIASES, Columns.DATE)

    df = df.dropna(subset=[Columns.DATE, Columns.LINEAGE]).assign(
        **{
            Columns.DATE: lambda df: pd.to_datetime(df[Columns.DATE]),
            Columns.LINEAGE: lambda df: df[Columns.LINEAGE].astype(str),
            Columns.COUNT: lambda df: pd.to_numeric(df[Columns.COUNT]),
        }
    )
    return df.reset_index(drop=True)


def classify_lineage_table(
    df: pd.DataFrame,
    major_lineages: list = Lineages.MAJOR,
    aliases: Optional[dict] = None,
) -> pd.DataFrame:
    """Replaces the lineage column of a cleaned table by its major lineage."""
    unique = df[Columns.LINEAGE].unique().tolist()
    classified = classify_major_lineages(unique, major_lineages, aliases)
    mapping = dict(zip(unique, classified))
    return df.assign(**{Columns.LINEAGE: df[Columns.LINEAGE].map(mapping)})


def lineage_frequencies(
    df: pd.DataFrame,
    date_col: str = Columns.DATE,
    group_col: str = Columns.LINEAGE,
    count_col: str = Columns.COUNT,
) -> pd.DataFrame:
    """
    Aggregates counts per date and group and computes frequencies.

    Dates without any sequenced sample (total count of zero) are dropped.

    :param df: table with date, group and count columns
    :returns: dataframe with the columns date_col, group_col, lineage_count,
        total_count and lineage_frequency sorted by date and group
    """
    counts = (
        df.groupby([date_col, group_col], as_index=False)[count_col]
        .sum()
        .rename(columns={count_col: Columns.LINEAGE_COUNT})
    )
    counts[Columns.TOTAL_COUNT] = counts.groupby(date_col)[
        Columns.LINEAGE_COUNT
    ].transform("sum")
    counts = counts[counts[Columns.TOTAL_COUNT] > 0].copy()
    counts[Columns.FREQUENCY] = (
        counts[Columns.LINEAGE_COUNT] / counts[Columns.TOTAL_COUNT]
    )
    return counts.sort_values([date_col, group_col]).reset_index(drop=True)


def check_frequencies(
    freq: pd.DataFrame, date_col: str = Columns.DATE, atol: float = 1e-9
) -> bool:
    """True if the frequencies at every date sum to one."""
    sums = freq.groupby(date_col)[Columns.FREQUENCY].sum().to_numpy()
    return bool(np.all(np.abs(sums - 1.0) <= atol))


def bin_dates(
    df: pd.DataFrame,
    days: int = Analysis.BIN_DAYS,
    date_col: str = Columns.DATE,
    origin=None,
) -> pd.DataFrame:
    """
    Assigns each row to a bin of `days` days, labelled by the first day of
    the bin. Bins start at origin, defaults to the earliest date.

    :returns: copy of df with an additional collection_date_bin column
    """
    dates = pd.to_datetime(df[date_col])
    origin = dates.min() if origin is None else pd.Timestamp(origin)
    offset = (dates - origin).dt.days // days * days
    return df.assign(**{Columns.DATE_BIN: origin + pd.to_timedelta(offset, unit="D")})


def frequency_series(
    freq: pd.DataFrame,
    group: str,
    group_col: str = Columns.LINEAGE,
    date_col: str = Columns.DATE,
    fill_missing: bool = True,
) -> pd.Series:
    """
    Extracts the frequency trajectory of one group as a date indexed series.

    :param fill_missing: dates at which other groups were sequenced but the
        group itself was not observed get a frequency of 0. Only valid when
        all groups share one total per date (lineages); groups with their
        own totals (regions) must keep unobserved dates missing
    """
    series = (
        freq[freq[group_col] == group]
        .set_index(date_col)[Columns.FREQUENCY]
        .sort_index()
        .rename(group)
    )
    if fill_missing:
        dates = pd.DatetimeIndex(sorted(freq[date_col].unique()))
        series = series.reindex(dates, fill_value=0.0)
        series.index.name = date_col
    return series


def compare_frequencies(sources: dict, lineage: str) -> pd.DataFrame:
    """
    Combines the trajectory of one lineage from several frequency tables.

    :param sources: mapping of source label to (frequency table, date column)
    :param lineage: the lineage to compare
    :returns: long dataframe with the columns source, collection_date and
        lineage_frequency
    """
    frames = []
    for label, (freq, date_col) in sources.items():
        series = frequency_series(freq, lineage, date_col=date_col)
        frames.append(
            pd.DataFrame(
                {
                    "source": label,
                    Columns.DATE: series.index,
                    Columns.FREQUENCY: series.to_numpy(),
                }
            )
        )
    return pd.concat(frames, ignore_index=True)


def clean_regional_records(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Standardises per sample detection records to the columns region,
    collection_date and detected (bool).
    """
    df = remove_empty(clean_names(raw))
    df = _rename_first(df, Columns.REGION_ALIASES, Columns.REGION)
    df = _rename_first(df, Columns.DATE_ALIASES, Columns.DATE)
    df = _rename_first(df, Columns.DETECTED_ALIASES, Columns.DETECTED)

    df = df.dropna(subset=[Columns.REGION, Columns.DATE, Columns.DETECTED])
    return df.assign(
        **{
            Columns.REGION: lambda df: df[Columns.REGION].astype(str),
            Columns.DATE: lambda df: pd.to_datetime(df[Columns.DATE]),
            Columns.DETECTED: lambda df: df[Columns.DETECTED].astype(bool),
        }
    ).reset_index(drop=True)[[Columns.REGION, Columns.DATE, Columns.DETECTED]]


def regional_frequencies(
    records: pd.DataFrame, freq: str = Analysis.REGIONAL_FREQ
) -> pd.DataFrame:
    """
    Weekly frequency of detected samples per region.

    :param records: cleaned records (see clean_regional_records)
    :param freq: pandas period frequency used to group dates, defaults to
        weeks ending on Sunday
    :returns: dataframe with the columns region, collection_date (start of
        the period), lineage_count (detected samples), total_count and
        lineage_frequency
    """
    weekly = records.assign(
        **{Columns.DATE: records[Columns.DATE].dt.to_period(freq).dt.start_time}
    )
    grouped = (
        weekly.groupby([Columns.REGION, Columns.DATE])[Columns.DETECTED]
        .agg(["sum", "size"])
        .reset_index()
        .rename(columns={"sum": Columns.LINEAGE_COUNT, "size": Columns.TOTAL_COUNT})
    )
    grouped[Columns.LINEAGE_COUNT] = grouped[Columns.LINEAGE_COUNT].astype(int)
    grouped[Columns.FREQUENCY] = (
        grouped[Columns.LINEAGE_COUNT] / grouped[Columns.TOTAL_COUNT]
    )
    return grouped.sort_values([Columns.REGION, Columns.DATE]).reset_index(drop=True)
