#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

BASE_DIR = Path(__file__).resolve().parents[1]

DATA_DIR = BASE_DIR / "data"
RESULTS_DIR = BASE_DIR / "results"
REGISTRY_JSON = DATA_DIR / "registry" / "companies.json"
ID_MAPPING_CSV = DATA_DIR / "id_mapping.csv"

CRAWLS = ("2017", "2020")

# Company label for hosts that match no registered domain
UNKNOWN_COMPANY = "unknown"


def hosts_csv(crawl: str, data_dir: Path = DATA_DIR) -> Path:
    return data_dir / crawl / "hosts.csv"


def apps_csv(crawl: str, data_dir: Path = DATA_DIR) -> Path:
    return data_dir / crawl / "apps.csv"


def long_format_csv(crawl: str, results_dir: Path = RESULTS_DIR) -> Path:
    return results_dir / crawl / "hosts_long.csv"


def analysis_dir(crawl: str, results_dir: Path = RESULTS_DIR) -> Path:
    return results_dir / crawl / "analysis"


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
