#!/usr/bin/env python3
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from loguru import logger

from domain_patterns import CompiledPattern
from study_config import UNKNOWN_COMPANY


def normalize_hostname(hostname: Optional[object]) -> str:
    if hostname is None:
        return ""
    # pandas hands missing cells over as float NaN
    if isinstance(hostname, float) and hostname != hostname:
        return ""
    return str(hostname).strip()


def attribute_host(hostname: Optional[str], patterns: Sequence[CompiledPattern]) -> str:
    """
    Return the owner of the first pattern (in priority order) matching hostname.
    Later patterns are never tried once one matches.
    """
    host = normalize_hostname(hostname)
    if not host:
        return UNKNOWN_COMPANY

    for pattern in patterns:
        if pattern.matches(host):
            return pattern.owner
    return UNKNOWN_COMPANY


def build_host_lookup(
    hostnames: Iterable[Optional[str]],
    patterns: Sequence[CompiledPattern],
) -> Mapping[str, str]:
    """
    Attribute every distinct hostname exactly once.

    The result is read-only and keyed by the normalized hostname, so missing
    or blank hosts all share the "" key (attributed "unknown").
    """
    distinct = sorted({normalize_hostname(h) for h in hostnames})
    lookup = {host: attribute_host(host, patterns) for host in distinct}

    resolved = sum(1 for c in lookup.values() if c != UNKNOWN_COMPANY)
    logger.info(
        "Attributed {} distinct hosts: {} to known companies, {} unknown",
        len(lookup), resolved, len(lookup) - resolved,
    )
    return MappingProxyType(lookup)
