#!/usr/bin/env python3
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import pandas as pd

COMPANY_INFO_COLS = ["company", "country", "root_parent", "leaf_parent"]


@dataclass(frozen=True)
class CompanyInfo:
    company: str
    country: str
    root_parent: Optional[str]
    leaf_parent: str


def _clean(x) -> str:
    if x is None:
        return ""
    return str(x).strip()


def make_company_info(company: str, country=None, root_parent=None) -> CompanyInfo:
    # leaf parent falls back to the company itself when no parent is recorded
    name = _clean(company)
    if not name:
        raise ValueError("company name must not be empty")
    parent = _clean(root_parent) or None
    return CompanyInfo(
        company=name,
        country=_clean(country).upper(),
        root_parent=parent,
        leaf_parent=parent or name,
    )


def company_infos_from_records(records: Iterable[dict]) -> Dict[str, CompanyInfo]:
    """First record wins when a company appears more than once."""
    out: Dict[str, CompanyInfo] = {}
    for rec in records:
        name = _clean(rec.get("owner_name"))
        if not name or name in out:
            continue
        out[name] = make_company_info(name, rec.get("country"), rec.get("root_parent"))
    return out


def company_info_frame(infos: Iterable[CompanyInfo]) -> pd.DataFrame:
    rows: List[dict] = [
        {
            "company": i.company,
            "country": i.country,
            "root_parent": i.root_parent or "",
            "leaf_parent": i.leaf_parent,
        }
        for i in infos
    ]
    return pd.DataFrame(rows, columns=COMPANY_INFO_COLS)
