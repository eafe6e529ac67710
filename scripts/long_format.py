#!/usr/bin/env python3
"""
Observation loading and the tidy (app, host, company) table.

Input  data/<crawl>/hosts.csv   : app_id, hostname   (one row per observed app->host)
Output results/<crawl>/hosts_long.csv : app_id, hostname, company

Rows are never deduplicated here: a repeated (app, host) observation gives a
repeated output row. Distinct counting is left to the aggregation step.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Mapping

import pandas as pd

from host_attribution import normalize_hostname

OBSERVATION_COLS = ["app_id", "hostname"]
LONG_FORMAT_COLS = ["app_id", "hostname", "company"]

HOSTNAME_ALIASES = ("hostname", "host")

# how many missing hostnames to list in the error message
MAX_REPORTED_MISSING = 20


class MissingLookupEntryError(KeyError):
    """An observed hostname has no entry in the host lookup."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        shown = ", ".join(repr(h) for h in missing[:MAX_REPORTED_MISSING])
        more = f" (+{len(missing) - MAX_REPORTED_MISSING} more)" if len(missing) > MAX_REPORTED_MISSING else ""
        super().__init__(
            f"{len(missing)} hostnames missing from the lookup: {shown}{more}. "
            "The lookup was built from a different set of observations."
        )

    def __str__(self) -> str:
        return str(self.args[0])


def sniff_delimiter(path: Path) -> str:
    sample = path.read_text(encoding="utf-8", errors="ignore")[:4096]
    try:
        return csv.Sniffer().sniff(sample, delimiters=[",", "\t", ";"]).delimiter
    except csv.Error:
        return ","


def load_observations(path: Path) -> pd.DataFrame:
    df = pd.read_csv(path, sep=sniff_delimiter(path), dtype=str, keep_default_na=False)

    host_col = next((c for c in HOSTNAME_ALIASES if c in df.columns), None)
    missing = []
    if "app_id" not in df.columns:
        missing.append("app_id")
    if host_col is None:
        missing.append("hostname")
    if missing:
        raise ValueError(f"{path} missing columns: {missing}")

    out = df[["app_id", host_col]].rename(columns={host_col: "hostname"})
    out["app_id"] = out["app_id"].str.strip()
    out["hostname"] = out["hostname"].map(normalize_hostname)
    return out.reset_index(drop=True)


def expand_long_format(observations: pd.DataFrame, lookup: Mapping[str, str]) -> pd.DataFrame:
    """
    Left join every observation onto the host lookup, keeping input order.
    Raises MissingLookupEntryError instead of leaving a company blank.
    """
    hosts = observations["hostname"].map(normalize_hostname)

    missing = sorted({h for h in hosts.unique() if h not in lookup})
    if missing:
        raise MissingLookupEntryError(missing)

    out = pd.DataFrame({
        "app_id": observations["app_id"].astype(str).to_numpy(),
        "hostname": hosts.to_numpy(),
        "company": hosts.map(lookup.__getitem__).to_numpy(),
    }, columns=LONG_FORMAT_COLS)
    return out


def write_long_format(df: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, columns=LONG_FORMAT_COLS, lineterminator="\n", encoding="utf-8")


def read_long_format(path: Path) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = set(LONG_FORMAT_COLS) - set(df.columns)
    if missing:
        raise ValueError(f"{path} missing columns: {sorted(missing)}")
    return df[LONG_FORMAT_COLS]
