"""
Tests for settings, network definitions, address and amount helpers.
"""

import json

import pytest

from config import Settings, load_settings, save_settings
from errors import InvalidAddress, InvalidTransaction
from networks import (
    DEFAULT_NETWORK,
    NETWORKS,
    addresses_equal,
    format_address,
    format_amount,
    format_units,
    get_network,
    is_valid_address,
    normalize_address,
    to_base_units,
)
from utils import get_app_dir, get_logs_dir, get_settings_path, get_wallet_dir

from conftest import SAMPLE_ADDRESS


class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.network == DEFAULT_NETWORK
        assert settings.api_timeout == 30.0
        assert settings.min_passphrase_length == 8
        assert settings.effective_fee == "0.0001"
        assert settings.effective_api_url == NETWORKS[DEFAULT_NETWORK].api_url

    def test_unknown_network_falls_back(self, caplog):
        settings = Settings(network="nowhere")
        assert settings.network_config.name == DEFAULT_NETWORK
        assert "Unknown network" in caplog.text

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "nope.json") == Settings()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "settings.json"
        save_settings(Settings(network="gauss-testnet", default_fee="0.5"), path)
        loaded = load_settings(path)
        assert loaded.network == "gauss-testnet"
        assert loaded.effective_fee == "0.5"

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"network": "gauss-testnet", "theme": "dark"}))
        assert load_settings(path).network == "gauss-testnet"

    def test_corrupted_file(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("{broken")
        assert load_settings(path) == Settings()
        assert "Failed to load settings" in caplog.text

    def test_environment_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.json"
        save_settings(Settings(api_url="http://file"), path)
        monkeypatch.setenv("GAUSS_API_URL", "http://env:8080/")
        monkeypatch.setenv("GAUSS_NETWORK", "gauss-testnet")
        monkeypatch.setenv("GAUSS_LOG_LEVEL", "debug")
        settings = load_settings(path)
        assert settings.effective_api_url == "http://env:8080"
        assert settings.network == "gauss-testnet"
        assert settings.log_level == "DEBUG"

    def test_default_path_under_app_home(self, app_home):
        save_settings(Settings(log_retention_days=7))
        assert get_settings_path().parent == app_home
        assert load_settings().log_retention_days == 7


class TestPaths:

    def test_home_override(self, app_home):
        assert get_app_dir() == app_home
        assert get_wallet_dir() == app_home / "wallet"
        assert get_logs_dir().is_dir()


class TestNetworks:

    def test_lookup(self):
        assert get_network("gauss").native_symbol == "GAUSS"
        assert get_network("gauss-testnet").is_testnet
        assert get_network("missing") is None

    def test_all_use_native_decimals(self):
        assert all(n.native_decimals == 18 for n in NETWORKS.values())


class TestAddresses:

    @pytest.mark.parametrize("address,valid", [
        (SAMPLE_ADDRESS, True),
        (SAMPLE_ADDRESS.lower(), True),
        ("0x" + SAMPLE_ADDRESS[2:].upper(), True),
        (SAMPLE_ADDRESS[2:], False),
        (SAMPLE_ADDRESS + "00", False),
        ("0x" + "z" * 40, False),
        (None, False),
        (1234, False),
    ])
    def test_is_valid(self, address, valid):
        assert is_valid_address(address) is valid

    def test_normalize(self):
        assert normalize_address(SAMPLE_ADDRESS.lower()) == SAMPLE_ADDRESS

    def test_normalize_rejects(self):
        with pytest.raises(InvalidAddress) as exc_info:
            normalize_address("0x1234")
        assert exc_info.value.address == "0x1234"

    def test_equal_ignores_case(self):
        assert addresses_equal(SAMPLE_ADDRESS, SAMPLE_ADDRESS.lower())

    def test_format(self):
        assert format_address(SAMPLE_ADDRESS) == "0x2c75...5c23"
        assert format_address("0x12") == "0x12"


class TestAmounts:

    @pytest.mark.parametrize("amount,units", [
        ("0", 0),
        ("1", 10 ** 18),
        ("1.5", 15 * 10 ** 17),
        ("1.50", 15 * 10 ** 17),
        ("0.0001", 10 ** 14),
        ("0.000000000000000001", 1),
        (" 2 ", 2 * 10 ** 18),
        (3, 3 * 10 ** 18),
        ("0.1000000000000000000", 10 ** 17),
    ])
    def test_to_base_units(self, amount, units):
        assert to_base_units(amount) == units

    @pytest.mark.parametrize("amount", [
        "-1", "1e18", "0x10", "", "1,5", "0.0000000000000000001", 0.1, True, -3, None,
        "\u0661\u0662", "\uff15",
    ])
    def test_to_base_units_rejects(self, amount):
        with pytest.raises(InvalidTransaction):
            to_base_units(amount)

    def test_field_name_in_error(self):
        with pytest.raises(InvalidTransaction, match="fee"):
            to_base_units("abc", field="fee")

    @pytest.mark.parametrize("raw,places,text", [
        (0, None, "0"),
        (15 * 10 ** 17, None, "1.5"),
        (1, None, "0.000000000000000001"),
        (123456789 * 10 ** 10, 4, "1.2345"),
        (199999999 * 10 ** 10, 2, "1.99"),
    ])
    def test_format_units(self, raw, places, text):
        assert format_units(raw, places=places) == text

    def test_format_amount(self):
        assert format_amount("1.123456789", NETWORKS["gauss"]) == "1.12345678 GAUSS"
        assert format_amount("2", NETWORKS["gauss-testnet"]) == "2 tGAUSS"
