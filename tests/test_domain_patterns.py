"""Tests for registry loading, pattern compilation and priority order."""

import json

import pytest

from domain_patterns import (
    build_pattern_queue,
    compile_domain_pattern,
    compile_registry,
    load_registry,
    prioritize_patterns,
    registry_from_records,
)


def test_registry_drops_empty_domains(registry_records):
    registry = registry_from_records(registry_records)

    assert list(registry) == ["OwnerA", "OwnerB", "Metrics Ltd"]
    assert registry["OwnerB"] == ("ads.tracker.com",)
    assert registry["Metrics Ltd"] == ("metrics.io",)


def test_registry_merges_repeated_owner():
    registry = registry_from_records([
        {"owner_name": "X", "doms": ["a.com"]},
        {"owner_name": "", "doms": ["ignored.com"]},
        {"owner_name": "X", "doms": ["b.com"]},
    ])
    assert registry == {"X": ("a.com", "b.com")}


def test_load_registry_rejects_non_list(tmp_path):
    p = tmp_path / "companies.json"
    p.write_text(json.dumps({"owner_name": "X"}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_registry(p)


@pytest.mark.parametrize("host", [
    "tracker.com",
    "x.tracker.com",
    "a.b.tracker.com",
    "tracker.com:443",
    "x.tracker.com-cdn.net",
    "tracker.com1",
])
def test_pattern_matches_on_label_boundary(host):
    assert compile_domain_pattern("A", "tracker.com").matches(host)


@pytest.mark.parametrize("host", [
    "nottracker.com",
    "tracker.comx",
    "tracker.company",
    "tracker.com.evil.net",
    "trackerxcom",
    "",
])
def test_pattern_rejects_non_boundary(host):
    assert not compile_domain_pattern("A", "tracker.com").matches(host)


def test_dot_is_literal():
    p = compile_domain_pattern("A", "a.b")
    assert p.matches("x.a.b")
    assert not p.matches("x.axb")


def test_compile_registry_one_pattern_per_domain():
    patterns = compile_registry({"A": ("a.com", "b.com"), "B": ("c.com", "")})
    assert [(p.owner, p.source_domain) for p in patterns] == [
        ("A", "a.com"), ("A", "b.com"), ("B", "c.com"),
    ]


def test_priority_longest_first_stable_ties():
    patterns = compile_registry({
        "A": ("bb.com", "example.com"),
        "B": ("aa.com", "ads.example.com"),
    })
    queue = prioritize_patterns(patterns)

    assert [p.source_domain for p in queue] == ["ads.example.com", "example.com", "bb.com", "aa.com"]
    assert isinstance(queue, tuple)


def test_build_pattern_queue(registry_records):
    queue = build_pattern_queue(registry_from_records(registry_records))
    assert [p.owner for p in queue] == ["OwnerB", "OwnerA", "Metrics Ltd"]


def test_string_doms_read_as_one_domain():
    registry = registry_from_records([{"owner_name": "A", "doms": "ab.com"}])
    assert registry == {"A": ("ab.com",)}


@pytest.mark.parametrize("doms", [{"ab.com": 1}, 42])
def test_non_list_doms_skipped(doms):
    registry = registry_from_records([
        {"owner_name": "A", "doms": doms},
        {"owner_name": "B", "doms": ["b.com"]},
    ])
    assert registry == {"A": (), "B": ("b.com",)}
    assert compile_registry(registry)[0].source_domain == "b.com"


def test_pattern_ignores_case():
    p = compile_domain_pattern("A", "tracker.com")
    assert p.matches("X.Tracker.COM")
    assert not p.matches("Tracker.COMPANY")
    assert compile_domain_pattern("A", "Tracker.com").matches("x.tracker.com")
