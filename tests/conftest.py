import os
import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from volcert.app import create_app
from volcert.models import Event, Volunteer


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


@pytest.fixture
def app(tmp_path):
    os.environ["SITE_ROOT"] = str(tmp_path)
    application = create_app({"TESTING": True, "CERT_EXPORT_STAGGER_SECONDS": 0})
    with application.app_context():
        yield application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def roster():
    return [
        Volunteer(1, "Abebe", "Kebede", "abebe@example.com", 120),
        Volunteer(2, "Sara", "Tesfaye", "sara@example.com", 60),
        Volunteer(3, "Dawit", "Haile", "dawit@example.com", 60),
        Volunteer(4, "Hanna", "Girma", "hanna@example.com", 12.5),
    ]


@pytest.fixture
def events():
    return [
        Event(10, "Bole Road Cleanup", "2024-01-15", "Bole", 3),
        Event(11, "Entoto Tree Planting", "2024-03-02T08:00:00Z", "Entoto", None),
    ]
