"""Tests for loading and decrypting the configuration file."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from appcontext.core.exceptions import (
    CipherKeyError,
    ConfigurationException,
    ConfigurationIOError,
    ConfigurationParseError,
    CredentialError,
)
from appcontext.infrastructure.config_loader import load_configuration

from conftest import KEY, make_connection


class TestLoadConfiguration:
    def test_decrypts_every_entry_in_file_order(self, write_config) -> None:
        connections = [
            make_connection("GLS", "Global Logistics", password="secret123"),
            make_connection("HBL", "Harbour Lines", password="hbl-pass"),
            make_connection("ZZZ", "Zed", password="zed"),
        ]
        path = write_config(connections)

        cfg = load_configuration(path, KEY)

        assert [c.brand_short_code for c in cfg.connections] == ["GLS", "HBL", "ZZZ"]
        assert [c.db_password for c in cfg.connections] == ["secret123", "hbl-pass", "zed"]
        for loaded, on_disk in zip(cfg.connections, connections):
            assert loaded.db_password != on_disk["DBPassword"]

    def test_scalar_fields_are_loaded(self, write_config) -> None:
        path = write_config([make_connection("GLS", "Global Logistics")], endpoint="logs.example.com:514")

        cfg = load_configuration(path, KEY)

        assert cfg.papertrail_endpoint == "logs.example.com:514"
        assert cfg.http_root_path == "/billing"
        assert cfg.http_server_port == "8080"

    def test_load_then_resolve_end_to_end(self, write_config) -> None:
        path = write_config([make_connection("GLS", "Global Logistics", password="secret123")])

        descriptor = load_configuration(path, KEY).get_database_config("gls")

        assert descriptor.db_password == "secret123"

    def test_whitespace_around_ciphertext_is_ignored(self, write_config) -> None:
        entry = make_connection("GLS", "Global Logistics")
        entry["DBPassword"] = f"  {entry['DBPassword']}\n"
        path = write_config([entry])

        assert load_configuration(path, KEY).connections[0].db_password == "secret123"

    def test_accepts_string_path(self, write_config) -> None:
        path = write_config([make_connection("GLS", "Global Logistics")])
        assert len(load_configuration(str(path), KEY).connections) == 1

    def test_missing_file_raises_io_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationIOError) as exc_info:
            load_configuration(tmp_path / "nope.json", KEY)
        assert "nope.json" in exc_info.value.message
        assert isinstance(exc_info.value, ConfigurationException)

    def test_directory_raises_io_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationIOError):
            load_configuration(tmp_path, KEY)

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "",
            "[]",
            json.dumps({"Connections": "GLS"}),
            json.dumps({"Connections": [{"Server": 5}]}),
            json.dumps({"HttpServerPort": 8080}),
        ],
    )
    def test_malformed_content_raises_parse_error(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "config.json"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigurationParseError):
            load_configuration(path, KEY)

    def test_bad_ciphertext_fails_the_whole_load(self, write_config) -> None:
        bad = make_connection("HBL", "Harbour Lines")
        bad["DBPassword"] = "not-hex"
        path = write_config([make_connection("GLS", "Global Logistics"), bad])

        with pytest.raises(CredentialError) as exc_info:
            load_configuration(path, KEY)
        assert exc_info.value.details["connection_name"] == "HBL-OTR"
        assert exc_info.value.message.startswith("Unable to decrypt DBPassword for HBL-OTR: ")
        assert "not valid hex" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, CredentialError)

    def test_invalid_key_raises_key_error(self, write_config) -> None:
        path = write_config([make_connection("GLS", "Global Logistics")])

        with pytest.raises(CipherKeyError) as exc_info:
            load_configuration(path, "short key")
        assert "GLS-OTR" in exc_info.value.message
        assert "invalid key size 9" in exc_info.value.message
        assert exc_info.value.details["valid_sizes"] == [16, 24, 32]

    def test_no_connections_needs_no_valid_key(self, write_config) -> None:
        path = write_config([])
        assert load_configuration(path, "short key").connections == []
