#!/usr/bin/env python3
"""
Tracker prevalence per crawl, and 2017 vs 2020 comparison.

Script: python3 scripts/analyze_tracker_prevalence.py [--common-only]

Inputs:
- results/<crawl>/hosts_long.csv   (from attribute_hosts.py)
- data/<crawl>/apps.csv            (app_id, genre[, family_genre])
- data/registry/companies.json     (country / root_parent per company)
- data/id_mapping.csv              (app_id_2017, app_id_2020; only with --common-only)

Outputs (results/<crawl>/analysis):
- hosts_per_app_summary.csv        (overall + per super-genre)
- companies_per_app_summary.csv    (overall + per super-genre)
- hosts_by_company_summary.csv     (per company: distinct hosts per app, over all apps)
- hosts_by_country_summary.csv     (per owner country: distinct hosts per app, over all apps)
- company_prevalence.csv
- leaf_parent_prevalence.csv
- country_prevalence.csv
- gini.csv

Outputs (results/comparison, only when both crawls are analysed):
- overall_summary.csv
- company_prevalence_change.csv
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
from loguru import logger

from company_info import company_info_frame, company_infos_from_records
from domain_patterns import load_registry_records
from long_format import read_long_format
from study_config import (
    CRAWLS,
    DATA_DIR,
    ID_MAPPING_CSV,
    REGISTRY_JSON,
    RESULTS_DIR,
    analysis_dir,
    apps_csv,
    configure_logging,
    long_format_csv,
)
from tracker_stats import (
    STAT_COLS,
    common_app_ids,
    companies_per_app,
    company_prevalence,
    company_reference_gini,
    country_prevalence,
    describe,
    hosts_per_app,
    leaf_parent_prevalence,
    restrict_to_apps,
    summarize_by_dimension,
    summarize_by_group,
    super_genre,
)


def load_apps(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise SystemExit(f"Missing {path}")
    apps = pd.read_csv(path, dtype=str, keep_default_na=False)
    if "app_id" not in apps.columns:
        raise SystemExit(f"{path} missing columns: ['app_id']")
    if "genre" not in apps.columns:
        apps["genre"] = ""
    if "family_genre" not in apps.columns:
        apps["family_genre"] = ""

    apps["app_id"] = apps["app_id"].str.strip()
    apps = apps[apps["app_id"] != ""].drop_duplicates("app_id").reset_index(drop=True)
    apps["super_genre"] = [super_genre(g, f) for g, f in zip(apps["genre"], apps["family_genre"])]
    return apps


def load_long(crawl: str, results_dir: Path) -> pd.DataFrame:
    path = long_format_csv(crawl, results_dir)
    if not path.exists():
        raise SystemExit(f"Missing {path} (run attribute_hosts.py first)")
    return read_long_format(path)


def analyse_crawl(
    crawl: str,
    long_df: pd.DataFrame,
    apps: pd.DataFrame,
    infos: pd.DataFrame,
    out_dir: Path,
) -> Dict[str, object]:
    out_dir.mkdir(parents=True, exist_ok=True)

    app_ids = set(apps["app_id"])
    unknown_apps = set(long_df["app_id"]) - app_ids
    if unknown_apps:
        logger.warning("[{}] {} apps in host table have no metadata, ignored", crawl, len(unknown_apps))
        long_df = restrict_to_apps(long_df, app_ids)

    n_apps = len(app_ids)
    hosts = hosts_per_app(long_df, app_ids)
    companies = companies_per_app(long_df, app_ids)

    summarize_by_group(hosts, apps).to_csv(out_dir / "hosts_per_app_summary.csv", index=False)
    summarize_by_group(companies, apps).to_csv(out_dir / "companies_per_app_summary.csv", index=False)

    summarize_by_dimension(long_df, infos, app_ids, "company").to_csv(
        out_dir / "hosts_by_company_summary.csv", index=False
    )
    summarize_by_dimension(long_df, infos, app_ids, "country").to_csv(
        out_dir / "hosts_by_country_summary.csv", index=False
    )

    comp = company_prevalence(long_df, infos, n_apps)
    comp.to_csv(out_dir / "company_prevalence.csv", index=False)
    leaf_parent_prevalence(long_df, infos, n_apps).to_csv(out_dir / "leaf_parent_prevalence.csv", index=False)
    country_prevalence(long_df, infos, n_apps).to_csv(out_dir / "country_prevalence.csv", index=False)

    g = company_reference_gini(long_df)
    pd.DataFrame([{"crawl": crawl, "n_apps": n_apps, "gini_company_references": g}]).to_csv(
        out_dir / "gini.csv", index=False
    )
    logger.info("[{}] {} apps, {} companies referenced, gini={:.3f}", crawl, n_apps, len(comp), g)

    return {
        "crawl": crawl,
        "hosts": describe(hosts.to_numpy()),
        "companies": describe(companies.to_numpy()),
        "gini": g,
        "company_prevalence": comp,
    }


def compare_crawls(results: Dict[str, Dict[str, object]], out_dir: Path) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)

    rows = []
    for crawl in CRAWLS:
        r = results[crawl]
        for metric in ("hosts", "companies"):
            rows.append({"crawl": crawl, "metric": f"{metric}_per_app", **r[metric]})
    overall = pd.DataFrame(rows, columns=["crawl", "metric"] + STAT_COLS)
    overall["gini_company_references"] = overall["crawl"].map({c: results[c]["gini"] for c in CRAWLS})
    overall.to_csv(out_dir / "overall_summary.csv", index=False)

    old, new = CRAWLS
    a = results[old]["company_prevalence"][["company", "apps", "share_of_apps"]]
    b = results[new]["company_prevalence"][["company", "apps", "share_of_apps"]]
    change = a.merge(b, on="company", how="outer", suffixes=(f"_{old}", f"_{new}"))
    for c in (f"apps_{old}", f"apps_{new}"):
        change[c] = change[c].fillna(0).astype(int)
    for c in (f"share_of_apps_{old}", f"share_of_apps_{new}"):
        change[c] = change[c].fillna(0.0)
    change["share_change"] = change[f"share_of_apps_{new}"] - change[f"share_of_apps_{old}"]
    change = change.sort_values(["share_change", "company"], ascending=[False, True])
    change.to_csv(out_dir / "company_prevalence_change.csv", index=False)


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Tracker prevalence statistics per crawl.")
    ap.add_argument("--crawl", choices=list(CRAWLS) + ["all"], default="all")
    ap.add_argument("--common-only", action="store_true",
                    help="only apps present in both crawls (uses the id mapping)")
    ap.add_argument("--mapping", type=Path, default=ID_MAPPING_CSV)
    ap.add_argument("--registry", type=Path, default=REGISTRY_JSON)
    ap.add_argument("--data-dir", type=Path, default=DATA_DIR)
    ap.add_argument("--results-dir", type=Path, default=RESULTS_DIR)
    ap.add_argument("--log-level", default="INFO")
    return ap.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)

    if not args.registry.exists():
        raise SystemExit(f"Missing {args.registry}")
    infos = company_info_frame(company_infos_from_records(load_registry_records(args.registry)).values())

    crawls = list(CRAWLS) if args.crawl == "all" else [args.crawl]
    apps = {c: load_apps(apps_csv(c, args.data_dir)) for c in crawls}

    keep: Dict[str, Optional[set]] = {c: None for c in crawls}
    if args.common_only:
        if not args.mapping.exists():
            raise SystemExit(f"Missing {args.mapping}")
        # the other crawl's metadata is needed to know which pairs are complete
        all_apps = {c: apps[c] if c in apps else load_apps(apps_csv(c, args.data_dir)) for c in CRAWLS}
        mapping = pd.read_csv(args.mapping, dtype=str, keep_default_na=False)
        common = common_app_ids(mapping, {c: all_apps[c]["app_id"] for c in CRAWLS})
        keep = {c: common[c] for c in crawls}
        logger.info("Restricting to {} app pairs present in both crawls", len(common[CRAWLS[0]]))

    results = {}
    for crawl in crawls:
        crawl_apps = restrict_to_apps(apps[crawl], keep[crawl])
        long_df = restrict_to_apps(load_long(crawl, args.results_dir), keep[crawl])
        out_dir = analysis_dir(crawl, args.results_dir)
        results[crawl] = analyse_crawl(crawl, long_df, crawl_apps, infos, out_dir)
        print(f"[OK] Wrote results to: {out_dir}")

    if all(c in results for c in CRAWLS):
        cmp_dir = args.results_dir / "comparison"
        compare_crawls(results, cmp_dir)
        print(f"[OK] Wrote comparison to: {cmp_dir}")


if __name__ == "__main__":
    main()
