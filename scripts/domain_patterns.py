#!/usr/bin/env python3
"""
Company domain registry and the compiled patterns used to attribute hosts.

Registry format (data/registry/companies.json), one record per company:
    {"owner_name": "...", "doms": ["a.com", "b.net"], "country": "us", "root_parent": "..."}

Every owned domain becomes one CompiledPattern. A pattern matches a hostname
when the domain occurs at the start of the hostname or right after a dot, and
the character after the occurrence (if any) is neither a letter nor a dot:
    tracker.com  ->  tracker.com, x.tracker.com          (match)
                     nottracker.com, tracker.company,
                     tracker.com.example.net             (no match)
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Tuple

from loguru import logger

CompanyDomainRegistry = Mapping[str, Tuple[str, ...]]


@dataclass(frozen=True)
class CompiledPattern:
    owner: str
    source_domain: str
    matcher: re.Pattern

    def matches(self, hostname: str) -> bool:
        return self.matcher.search(hostname) is not None


def load_registry_records(path: Path) -> List[dict]:
    with path.open("r", encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path}: expected a JSON list of company records")
    return records


def registry_from_records(records: Iterable[dict]) -> Dict[str, Tuple[str, ...]]:
    """
    Build owner -> domains, keeping file order for owners and domains.
    Empty / whitespace-only domains are dropped here so the compiler never sees them.
    A company listed twice gets its domains appended in order.
    A bare string in "doms" is read as a single domain; any other non-list value is skipped.
    """
    registry: Dict[str, List[str]] = {}
    skipped = 0
    for rec in records:
        owner = str(rec.get("owner_name") or "").strip()
        if not owner:
            continue
        doms = registry.setdefault(owner, [])

        raw = rec.get("doms") or []
        if isinstance(raw, str):
            logger.warning("{}: 'doms' is a string, reading it as one domain", owner)
            raw = [raw]
        elif not isinstance(raw, (list, tuple)):
            logger.warning("{}: 'doms' is a {}, skipping its domains", owner, type(raw).__name__)
            continue

        for d in raw:
            dom = str(d or "").strip()
            if not dom:
                skipped += 1
                logger.debug("Skipping empty domain entry for {}", owner)
                continue
            doms.append(dom)

    if skipped:
        logger.info("Skipped {} empty domain entries", skipped)
    return {owner: tuple(doms) for owner, doms in registry.items()}


def load_registry(path: Path) -> Dict[str, Tuple[str, ...]]:
    return registry_from_records(load_registry_records(path))


def compile_domain_pattern(owner: str, domain: str) -> CompiledPattern:
    # host names are case-insensitive
    rx = re.compile(r"(?:^|\.)" + re.escape(domain) + r"(?![A-Za-z.])", re.IGNORECASE)
    return CompiledPattern(owner=owner, source_domain=domain, matcher=rx)


def compile_registry(registry: CompanyDomainRegistry) -> List[CompiledPattern]:
    out: List[CompiledPattern] = []
    for owner, domains in registry.items():
        for dom in domains:
            if not dom or not dom.strip():
                continue
            out.append(compile_domain_pattern(owner, dom))
    return out


def prioritize_patterns(patterns: Iterable[CompiledPattern]) -> Tuple[CompiledPattern, ...]:
    # longest domain first; sorted() is stable so ties keep registry order
    return tuple(sorted(patterns, key=lambda p: -len(p.source_domain)))


def build_pattern_queue(registry: CompanyDomainRegistry) -> Tuple[CompiledPattern, ...]:
    queue = prioritize_patterns(compile_registry(registry))
    logger.info("Compiled {} domain patterns for {} companies", len(queue), len(registry))
    return queue
