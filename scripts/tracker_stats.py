#!/usr/bin/env python3
"""
Aggregation over the long-format (app_id, hostname, company) table.

All per-app counts use distinct (app_id, hostname) pairs: a host observed
twice for the same app counts once. Apps with no observation count as 0.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from study_config import CRAWLS, UNKNOWN_COMPANY

STAT_COLS = ["count", "median", "q1", "q3", "iqr", "mode", "min", "max", "mean", "std"]
SUMMARY_COLS = STAT_COLS + ["gini"]

# Play Store genre -> super-genre. Games and family apps are handled in super_genre().
SUPER_GENRES = {
    "ART_AND_DESIGN": "Art & Photography",
    "PHOTOGRAPHY": "Art & Photography",
    "COMMUNICATION": "Communication & Social",
    "SOCIAL": "Communication & Social",
    "DATING": "Communication & Social",
    "EDUCATION": "Education",
    "BOOKS_AND_REFERENCE": "Education",
    "LIBRARIES_AND_DEMO": "Education",
    "HEALTH_AND_FITNESS": "Health & Fitness",
    "MEDICAL": "Health & Fitness",
    "NEWS_AND_MAGAZINES": "News",
    "WEATHER": "News",
    "MUSIC_AND_AUDIO": "Music",
    "ENTERTAINMENT": "Entertainment",
    "VIDEO_PLAYERS": "Entertainment",
    "COMICS": "Entertainment",
    "EVENTS": "Entertainment",
    "PRODUCTIVITY": "Productivity & Tools",
    "TOOLS": "Productivity & Tools",
    "PERSONALIZATION": "Productivity & Tools",
    "BUSINESS": "Productivity & Tools",
    "FINANCE": "Productivity & Tools",
    "LIFESTYLE": "Lifestyle",
    "SHOPPING": "Lifestyle",
    "FOOD_AND_DRINK": "Lifestyle",
    "HOUSE_AND_HOME": "Lifestyle",
    "BEAUTY": "Lifestyle",
    "PARENTING": "Lifestyle",
    "TRAVEL_AND_LOCAL": "Travel & Transport",
    "MAPS_AND_NAVIGATION": "Travel & Transport",
    "AUTO_AND_VEHICLES": "Travel & Transport",
    "SPORTS": "Sports",
}


def normalize_genre(genre) -> str:
    g = "" if genre is None else str(genre).strip().upper()
    if g in ("NAN", "NONE"):
        return ""
    return g.replace("&", "AND").replace(" ", "_").replace("__", "_")


def super_genre(genre, family_genre=None) -> str:
    if normalize_genre(family_genre):
        return "Family"
    g = normalize_genre(genre)
    if g.startswith("GAME"):
        return "Games"
    if g.startswith("FAMILY"):
        return "Family"
    return SUPER_GENRES.get(g, "Other")


def describe(values: Iterable[float]) -> Dict[str, float]:
    s = pd.Series(list(values), dtype="float64").dropna()
    if s.empty:
        out = {c: float("nan") for c in STAT_COLS}
        out["count"] = 0
        return out

    q1 = float(s.quantile(0.25))
    q3 = float(s.quantile(0.75))
    return {
        "count": int(s.count()),
        "median": float(s.median()),
        "q1": q1,
        "q3": q3,
        "iqr": q3 - q1,
        "mode": float(s.mode().min()),
        "min": float(s.min()),
        "max": float(s.max()),
        "mean": float(s.mean()),
        "std": float(s.std()),
    }


def gini(values: Iterable[float]) -> float:
    """Gini coefficient of a non-negative distribution (0 = equal, ->1 = concentrated)."""
    x = np.sort(np.asarray(list(values), dtype="float64"))
    n = x.size
    if n == 0:
        return 0.0
    total = x.sum()
    if total == 0:
        return 0.0
    i = np.arange(1, n + 1)
    return float((2.0 * np.sum(i * x)) / (n * total) - (n + 1.0) / n)


def distinct_app_hosts(long_df: pd.DataFrame) -> pd.DataFrame:
    df = long_df[long_df["hostname"].astype(str).str.strip() != ""]
    return df.drop_duplicates(["app_id", "hostname"])


def known_companies(long_df: pd.DataFrame) -> pd.DataFrame:
    return long_df[long_df["company"] != UNKNOWN_COMPANY]


def hosts_per_app(long_df: pd.DataFrame, app_ids: Iterable[str]) -> pd.Series:
    counts = distinct_app_hosts(long_df).groupby("app_id")["hostname"].nunique()
    return counts.reindex(pd.Index(sorted(set(app_ids)), name="app_id"), fill_value=0)


def companies_per_app(long_df: pd.DataFrame, app_ids: Iterable[str]) -> pd.Series:
    df = known_companies(distinct_app_hosts(long_df))
    counts = df.groupby("app_id")["company"].nunique()
    return counts.reindex(pd.Index(sorted(set(app_ids)), name="app_id"), fill_value=0)


def summarize_by_group(per_app: pd.Series, apps: pd.DataFrame, group_col: str = "super_genre") -> pd.DataFrame:
    """One summary row for all apps, then one per group value (sorted)."""
    rows = [summary_row("overall", per_app.to_numpy())]

    groups = apps.set_index("app_id")[group_col].reindex(per_app.index)
    for g in sorted(groups.dropna().unique()):
        vals = per_app[groups == g]
        rows.append(summary_row(g, vals.to_numpy()))
    return pd.DataFrame(rows, columns=["group"] + SUMMARY_COLS)


def summary_row(group: str, values) -> dict:
    """describe() plus the Gini coefficient of the per-app values across apps."""
    return {"group": group, **describe(values), "gini": gini(values)}


def _with_company_info(long_df: pd.DataFrame, infos: pd.DataFrame) -> pd.DataFrame:
    df = known_companies(distinct_app_hosts(long_df))
    df = df.merge(infos[["company", "country", "leaf_parent"]], on="company", how="left")
    # companies missing from the info table are their own leaf parent
    df["leaf_parent"] = df["leaf_parent"].fillna(df["company"])
    df["country"] = df["country"].fillna("")
    return df


def _prevalence(df: pd.DataFrame, key: str, n_apps: int) -> pd.DataFrame:
    out = (df.groupby(key)["app_id"]
             .nunique()
             .reset_index(name="apps"))
    out["share_of_apps"] = out["apps"] / n_apps if n_apps else 0.0
    return out.sort_values(["apps", key], ascending=[False, True]).reset_index(drop=True)


def company_prevalence(long_df: pd.DataFrame, infos: pd.DataFrame, n_apps: int) -> pd.DataFrame:
    df = _with_company_info(long_df, infos)
    out = _prevalence(df, "company", n_apps)
    meta = df.drop_duplicates("company")[["company", "leaf_parent", "country"]]
    out = out.merge(meta, on="company", how="left")
    return out[["company", "leaf_parent", "country", "apps", "share_of_apps"]]


def leaf_parent_prevalence(long_df: pd.DataFrame, infos: pd.DataFrame, n_apps: int) -> pd.DataFrame:
    return _prevalence(_with_company_info(long_df, infos), "leaf_parent", n_apps)


def country_prevalence(long_df: pd.DataFrame, infos: pd.DataFrame, n_apps: int) -> pd.DataFrame:
    """Apps referencing at least one company per owner country. Companies without a country are left out."""
    df = _with_company_info(long_df, infos)
    df = df[df["country"] != ""]
    return _prevalence(df, "country", n_apps)


def hosts_per_app_by(long_df: pd.DataFrame, infos: pd.DataFrame, app_ids: Iterable[str], key: str) -> pd.DataFrame:
    """
    One row per app, one column per company (key="company") or owner country
    (key="country"): distinct hosts of that company / country the app references.
    Companies without a country are left out of the country table.
    """
    index = pd.Index(sorted(set(app_ids)), name="app_id")
    df = _with_company_info(long_df, infos)
    if key == "country":
        df = df[df["country"] != ""]
    df = df[df["app_id"].isin(index)]
    if df.empty:
        return pd.DataFrame(index=index)

    wide = df.groupby(["app_id", key])["hostname"].nunique().unstack(fill_value=0)
    return wide.reindex(index, fill_value=0)


def summarize_by_dimension(long_df: pd.DataFrame, infos: pd.DataFrame, app_ids: Iterable[str], key: str) -> pd.DataFrame:
    """Summary row per company / country over all apps (apps not referencing it count 0)."""
    wide = hosts_per_app_by(long_df, infos, app_ids, key)
    rows = [summary_row(col, wide[col].to_numpy()) for col in sorted(wide.columns)]
    return pd.DataFrame(rows, columns=["group"] + SUMMARY_COLS)


def company_reference_gini(long_df: pd.DataFrame) -> float:
    df = known_companies(distinct_app_hosts(long_df))
    per_company = df.groupby("company")["app_id"].nunique()
    return gini(per_company.to_numpy())


def common_app_ids(mapping: pd.DataFrame, apps_by_crawl: Mapping[str, Iterable[str]]) -> Dict[str, set]:
    """
    App ids (per crawl) whose counterpart in the other crawl is also present.
    mapping columns: app_id_2017, app_id_2020
    """
    cols = [f"app_id_{c}" for c in CRAWLS]
    missing = [c for c in cols if c not in mapping.columns]
    if missing:
        raise ValueError(f"id mapping missing columns: {missing}")

    m = mapping[cols].astype(str).apply(lambda s: s.str.strip())
    keep = pd.Series(True, index=m.index)
    for crawl, col in zip(CRAWLS, cols):
        keep &= m[col].isin(set(apps_by_crawl.get(crawl, ())))
    m = m[keep]
    return {crawl: set(m[col]) for crawl, col in zip(CRAWLS, cols)}


def restrict_to_apps(df: pd.DataFrame, app_ids: Optional[set]) -> pd.DataFrame:
    if app_ids is None:
        return df
    return df[df["app_id"].isin(app_ids)].reset_index(drop=True)
