"""Shared fixtures: a small registry and two crawls of host observations."""

import json

import pytest

REGISTRY = [
    {"owner_name": "OwnerA", "doms": ["tracker.com"], "country": "us", "root_parent": ""},
    {"owner_name": "OwnerB", "doms": ["ads.tracker.com", "  "], "country": "gb", "root_parent": "OwnerA"},
    {"owner_name": "Metrics Ltd", "doms": ["metrics.io", ""], "country": "de", "root_parent": None},
]

HOSTS_2017 = (
    "app_id,hostname\n"
    "app1,x.ads.tracker.com\n"
    "app1,y.tracker.com\n"
    "app1,y.tracker.com\n"
    "app2,unrelated.net\n"
    "app2,cdn.metrics.io\n"
)

HOSTS_2020 = (
    "app_id,hostname\n"
    "new1,tracker.com\n"
    "new2,metrics.io\n"
    "new3,nottracker.com\n"
)

APPS_2017 = (
    "app_id,genre,family_genre\n"
    "app1,GAME_ACTION,\n"
    "app2,Music & Audio,\n"
    "app4,TOOLS,\n"
)

APPS_2020 = (
    "app_id,genre,family_genre\n"
    "new1,GAME_ACTION,\n"
    "new2,MUSIC_AND_AUDIO,\n"
    "new3,EDUCATION,FAMILY_EDUCATION\n"
)

ID_MAPPING = (
    "app_id_2017,app_id_2020\n"
    "app1,new1\n"
    "app2,new2\n"
    "app4,gone\n"
)


@pytest.fixture
def registry_records():
    return [dict(r) for r in REGISTRY]


@pytest.fixture
def study_dirs(tmp_path):
    """data/ and results/ directories laid out the way the drivers expect."""
    data = tmp_path / "data"
    results = tmp_path / "results"
    (data / "registry").mkdir(parents=True)
    (data / "registry" / "companies.json").write_text(json.dumps(REGISTRY), encoding="utf-8")
    for crawl, hosts, apps in (("2017", HOSTS_2017, APPS_2017), ("2020", HOSTS_2020, APPS_2020)):
        (data / crawl).mkdir()
        (data / crawl / "hosts.csv").write_text(hosts, encoding="utf-8")
        (data / crawl / "apps.csv").write_text(apps, encoding="utf-8")
    (data / "id_mapping.csv").write_text(ID_MAPPING, encoding="utf-8")
    return data, results
