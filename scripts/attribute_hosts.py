#!/usr/bin/env python3
"""
Attribute observed hosts to tracking companies and persist the long-format table.

Script: python3 scripts/attribute_hosts.py --crawl all

Inputs:
- data/registry/companies.json   (owner_name, doms, country, root_parent)
- data/<crawl>/hosts.csv          (app_id, hostname)

Outputs:
- results/<crawl>/hosts_long.csv  (app_id, hostname, company)

Attribution is the slow step. With --reuse an existing hosts_long.csv is kept
as is; without it the table is rebuilt from scratch.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Sequence

from loguru import logger

from domain_patterns import CompiledPattern, build_pattern_queue, load_registry
from host_attribution import build_host_lookup
from long_format import MissingLookupEntryError, expand_long_format, load_observations, write_long_format
from study_config import (
    CRAWLS,
    DATA_DIR,
    REGISTRY_JSON,
    RESULTS_DIR,
    configure_logging,
    hosts_csv,
    long_format_csv,
)


def attribute_crawl(
    crawl: str,
    patterns: Sequence[CompiledPattern],
    data_dir: Path = DATA_DIR,
    results_dir: Path = RESULTS_DIR,
) -> Path:
    in_path = hosts_csv(crawl, data_dir)
    if not in_path.exists():
        raise SystemExit(f"Missing {in_path}")

    obs = load_observations(in_path)
    logger.info("[{}] Loaded {} host observations from {}", crawl, len(obs), in_path)

    lookup = build_host_lookup(obs["hostname"], patterns)
    try:
        long_df = expand_long_format(obs, lookup)
    except MissingLookupEntryError as e:
        raise SystemExit(f"[{crawl}] Attribution aborted: {e}")

    out_path = long_format_csv(crawl, results_dir)
    write_long_format(long_df, out_path)
    return out_path


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Attribute app hosts to tracking companies.")
    ap.add_argument("--crawl", choices=list(CRAWLS) + ["all"], default="all")
    ap.add_argument("--reuse", action="store_true",
                    help="keep an existing long-format table instead of re-running attribution")
    ap.add_argument("--registry", type=Path, default=REGISTRY_JSON)
    ap.add_argument("--data-dir", type=Path, default=DATA_DIR)
    ap.add_argument("--results-dir", type=Path, default=RESULTS_DIR)
    ap.add_argument("--log-level", default="INFO")
    return ap.parse_args(argv)


def main(argv=None) -> List[Path]:
    args = parse_args(argv)
    configure_logging(args.log_level)

    crawls = list(CRAWLS) if args.crawl == "all" else [args.crawl]

    todo = []
    written: List[Path] = []
    for crawl in crawls:
        existing = long_format_csv(crawl, args.results_dir)
        if args.reuse and existing.exists():
            print(f"[SKIP] {crawl}: reusing {existing}")
            written.append(existing)
        else:
            todo.append(crawl)

    if todo:
        if not args.registry.exists():
            raise SystemExit(f"Missing {args.registry}")
        patterns = build_pattern_queue(load_registry(args.registry))

        for crawl in todo:
            out_path = attribute_crawl(crawl, patterns, args.data_dir, args.results_dir)
            print(f"[OK] Wrote {out_path}")
            written.append(out_path)

    return written


if __name__ == "__main__":
    main()
