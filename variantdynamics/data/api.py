import io
import os
import tempfile
from pathlib import Path
from typing import Optional

import pandas as pd
import pyreadr
from requests import get

from variantdynamics.config import Sources


def is_url(location: str) -> bool:
    return str(location).startswith(("http://", "https://"))


def fetch(location: str, timeout: int = Sources.TIMEOUT) -> bytes:
    """
    Reads the raw content of a remote (http/https) or local file.

    :param location: url or path of the file
    :param timeout: request timeout in seconds, defaults to Sources.TIMEOUT
    :returns: the file content
    :raises requests.HTTPError: if the server does not answer with 200
    :raises FileNotFoundError: if a local file does not exist
    """
    if not is_url(location):
        return Path(location).read_bytes()

    response = get(location, timeout=timeout)

    if response.status_code != 200:
        response.raise_for_status()

    return response.content


def get_table(location: str, sep: Optional[str] = None, **kwargs) -> pd.DataFrame:
    """
    Loads a csv or tsv table.

    :param location: url or path of the table
    :param sep: column separator, defaults to tab for .tsv files and comma
        otherwise
    :returns: pandas dataframe
    """
    if sep is None:
        sep = "\t" if str(location).endswith(".tsv") else ","

    return pd.read_csv(io.BytesIO(fetch(location)), sep=sep, **kwargs)


def get_rds(location: str) -> pd.DataFrame:
    """
    Loads a data frame stored in an R data file (.rds).

    :param location: url or path of the rds file
    :returns: pandas dataframe
    """
    if is_url(location):
        fd, path = tempfile.mkstemp(suffix=".rds")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(fetch(location))
            result = pyreadr.read_r(path)
        finally:
            os.remove(path)
    else:
        result = pyreadr.read_r(str(Path(location)))

    # rds files hold a single unnamed object
    return next(iter(result.values()))


def get_weekly_lineages(location: str = Sources.WEEKLY_LINEAGES) -> pd.DataFrame:
    """
    Downloads weekly lineage counts (one row per date, lineage and count).
    """
    return get_table(location)


def get_daily_lineages(location: str = Sources.DAILY_LINEAGES) -> pd.DataFrame:
    """
    Downloads daily per lineage sequence counts.
    """
    return get_table(location)


def get_regional_delta(location: str = Sources.REGIONAL_DELTA) -> pd.DataFrame:
    """
    Loads the per sample regional Delta detection records (region, date,
    detected).
    """
    return get_rds(location)


def get_daily_cases(location: str = Sources.DAILY_CASES) -> pd.DataFrame:
    """
    Downloads daily national case counts.
    """
    return get_table(location)
