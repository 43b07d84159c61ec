"""Shared fixtures: fake MongoDB deployments patched in place of pymongo.MongoClient."""

import os
from unittest.mock import patch

import pytest

# No log file during test runs; set before the engine logger is built on first import
os.environ["LOG_FILE"] = ""

from mongosync.sync_job import ServerSpec, SyncJob
from tests.fakes import SOURCE_URI, TARGET_URI, FakeClient


@pytest.fixture
def servers():
    """Fake source and destination deployments, served to MongoClient by URI."""

    clients = {SOURCE_URI: FakeClient(SOURCE_URI), TARGET_URI: FakeClient(TARGET_URI)}

    def client_factory(uri, **options):
        client = clients[uri]
        client.options = options
        return client

    with patch("mongosync.database_connections.MongoClient", side_effect=client_factory):
        yield clients


@pytest.fixture
def source_db(servers):
    return servers[SOURCE_URI]["appdb"]


@pytest.fixture
def target_db(servers):
    return servers[TARGET_URI]["appdb"]


@pytest.fixture
def make_job():
    def _make_job(**kwargs):
        kwargs.setdefault("source", ServerSpec(SOURCE_URI))
        kwargs.setdefault("target", ServerSpec(TARGET_URI))
        kwargs.setdefault("source_database", "appdb")
        return SyncJob(**kwargs)

    return _make_job
