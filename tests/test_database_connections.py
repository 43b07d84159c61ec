"""Tests for MongoDBConnection, with MongoClient patched by in-memory fakes."""

from unittest.mock import patch

import pytest
from pymongo.errors import ConfigurationError

from mongosync.database_connections import DEFAULT_CLIENT_OPTIONS, MongoDBConnection
from mongosync.errors import SyncConnectionError
from mongosync.sync_job import ServerSpec
from tests.fakes import SOURCE_URI


class TestMongoDBConnection:
    def test_opens_database_and_closes_client(self, servers):
        client = servers[SOURCE_URI]

        with MongoDBConnection(ServerSpec(SOURCE_URI), "appdb", role="source") as conn:
            assert conn.database is client["appdb"]
            assert conn.collection("users").name == "users"

        assert client.close_calls == 1
        assert conn.client is None

    def test_default_client_options(self, servers):
        with MongoDBConnection(ServerSpec(SOURCE_URI), "appdb"):
            pass

        assert servers[SOURCE_URI].options == DEFAULT_CLIENT_OPTIONS

    def test_server_options_override_defaults(self, servers):
        spec = ServerSpec(SOURCE_URI, {"socketTimeoutMS": 5000, "tls": True})

        with MongoDBConnection(spec, "appdb"):
            pass

        options = servers[SOURCE_URI].options
        assert options["socketTimeoutMS"] == 5000
        assert options["tls"] is True
        assert options["maxPoolSize"] == DEFAULT_CLIENT_OPTIONS["maxPoolSize"]

    def test_unreachable_server_raises_and_closes(self, servers):
        client = servers[SOURCE_URI]
        client.unreachable = True

        with pytest.raises(SyncConnectionError):
            with MongoDBConnection(ServerSpec(SOURCE_URI), "appdb"):
                pytest.fail("body must not run")

        assert client.close_calls == 1

    def test_invalid_uri_raises_connection_error(self):
        with patch("mongosync.database_connections.MongoClient",
                   side_effect=ConfigurationError("bad uri")):
            with pytest.raises(SyncConnectionError) as exc_info:
                MongoDBConnection(ServerSpec("mongodb://"), "appdb").connect()

        assert isinstance(exc_info.value.__cause__, ConfigurationError)

    def test_closes_on_error_inside_block(self, servers):
        client = servers[SOURCE_URI]

        with pytest.raises(RuntimeError):
            with MongoDBConnection(ServerSpec(SOURCE_URI), "appdb"):
                raise RuntimeError("boom")

        assert client.close_calls == 1

    def test_close_is_idempotent(self, servers):
        conn = MongoDBConnection(ServerSpec(SOURCE_URI), "appdb")
        conn.connect()
        conn.close()
        conn.close()

        assert servers[SOURCE_URI].close_calls == 1
