"""Tests for the long-format expansion and its persistence."""

import pandas as pd
import pytest

from domain_patterns import build_pattern_queue
from host_attribution import build_host_lookup
from long_format import (
    LONG_FORMAT_COLS,
    MissingLookupEntryError,
    expand_long_format,
    load_observations,
    read_long_format,
    write_long_format,
)


@pytest.fixture
def queue():
    return build_pattern_queue({"OwnerA": ("tracker.com",), "OwnerB": ("ads.tracker.com",)})


def observations(rows):
    return pd.DataFrame(rows, columns=["app_id", "hostname"])


def test_end_to_end_scenario(queue):
    obs = observations([
        ("app1", "x.ads.tracker.com"),
        ("app1", "y.tracker.com"),
        ("app2", "unrelated.net"),
    ])
    out = expand_long_format(obs, build_host_lookup(obs["hostname"], queue))

    assert list(out.columns) == LONG_FORMAT_COLS
    assert list(out.itertuples(index=False, name=None)) == [
        ("app1", "x.ads.tracker.com", "OwnerB"),
        ("app1", "y.tracker.com", "OwnerA"),
        ("app2", "unrelated.net", "unknown"),
    ]


def test_one_row_per_observation_duplicates_kept(queue):
    obs = observations([
        ("app1", "y.tracker.com"),
        ("app1", "y.tracker.com"),
        ("app2", ""),
    ])
    out = expand_long_format(obs, build_host_lookup(obs["hostname"], queue))

    assert len(out) == 3
    assert out["company"].tolist() == ["OwnerA", "OwnerA", "unknown"]
    assert out["company"].notna().all()


def test_missing_lookup_entry_is_fatal(queue):
    lookup = build_host_lookup(["y.tracker.com"], queue)
    obs = observations([("app1", "y.tracker.com"), ("app2", "other.net")])

    with pytest.raises(MissingLookupEntryError) as exc:
        expand_long_format(obs, lookup)
    assert exc.value.missing == ["other.net"]
    assert "other.net" in str(exc.value)


def test_expansion_idempotent(queue, tmp_path):
    obs = observations([("b", "x.tracker.com"), ("a", "z.net"), ("b", "x.tracker.com")])
    lookup = build_host_lookup(obs["hostname"], queue)

    p1, p2 = tmp_path / "one.csv", tmp_path / "two.csv"
    write_long_format(expand_long_format(obs, lookup), p1)
    write_long_format(expand_long_format(obs, lookup), p2)

    assert p1.read_bytes() == p2.read_bytes()
    assert p1.read_text(encoding="utf-8").splitlines()[0] == "app_id,hostname,company"


def test_load_observations_accepts_host_alias(tmp_path):
    p = tmp_path / "hosts.csv"
    p.write_text("app_id\thost\napp1\t Y.tracker.com \napp2\t\n", encoding="utf-8")

    obs = load_observations(p)
    assert obs.to_dict("records") == [
        {"app_id": "app1", "hostname": "Y.tracker.com"},
        {"app_id": "app2", "hostname": ""},
    ]


def test_load_observations_missing_column(tmp_path):
    p = tmp_path / "hosts.csv"
    p.write_text("app,hostname\na,b.com\n", encoding="utf-8")
    with pytest.raises(ValueError, match="app_id"):
        load_observations(p)


def test_read_long_format_keeps_strings(tmp_path):
    p = tmp_path / "long.csv"
    write_long_format(pd.DataFrame([("001", "NA", "unknown")], columns=LONG_FORMAT_COLS), p)

    df = read_long_format(p)
    assert df.iloc[0].tolist() == ["001", "NA", "unknown"]


def test_load_observations_semicolon(tmp_path):
    p = tmp_path / "hosts.csv"
    p.write_text("app_id;hostname\napp1;y.tracker.com\napp2;z.net\n", encoding="utf-8")

    obs = load_observations(p)
    assert obs["hostname"].tolist() == ["y.tracker.com", "z.net"]
