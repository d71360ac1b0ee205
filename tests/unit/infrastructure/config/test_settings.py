import pytest

from yardcli.infrastructure.config import settings
from yardcli.infrastructure.config.settings import (
    ConfigurationError, build_client_config, flatten, get_config, get_default_tax_rate,
    get_mapping, get_store_address, load_configuration, set_config_for_testing
)


def test_flatten_nested_mapping():
    assert flatten({"pricing": {"base_url": "u", "headers": {"X-A": "1"}}, "debug": True}) == {
        "pricing.base_url": "u",
        "pricing.headers.X-A": "1",
        "debug": True,
    }


def test_yaml_then_env_then_test_overrides(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("pricing:\n  base_url: https://yaml.test\n  max_retries: 5\n  timeout_ms: 1000\n")
    monkeypatch.setattr(settings, "_loaded", False)
    monkeypatch.chdir(tmp_path)

    load_configuration(config_file=config_file)
    assert get_config("pricing.base_url") == "https://yaml.test"

    monkeypatch.setenv("PRICING_MAX_RETRIES", "1")
    assert get_config("pricing.max_retries") == 1

    monkeypatch.setenv("YARDCLI_PRICING_MAX_RETRIES", "2")
    assert get_config("pricing.max_retries") == 2

    set_config_for_testing({"pricing.max_retries": 0})
    assert get_config("pricing.max_retries") == 0
    assert get_config("pricing.timeout_ms") == 1000


def test_invalid_yaml_raises_configuration_error(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("pricing: [unclosed\n")
    monkeypatch.setattr(settings, "_loaded", False)
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ConfigurationError):
        load_configuration(config_file=config_file)


def test_build_client_config_for_pricing():
    set_config_for_testing({
        "pricing.base_url": "https://fn.test/functions/v1",
        "pricing.api_key": "anon-key",
        "pricing.max_retries": 0,
        "pricing.headers": {"X-Client": "yardcli"},
    })

    config = build_client_config("pricing")

    assert config.base_url == "https://fn.test/functions/v1"
    assert config.api_key == "anon-key"
    assert config.max_retries == 0
    assert config.timeout_ms == 30000
    assert config.headers == {"X-Client": "yardcli", "apikey": "anon-key"}


def test_unconfigured_family_is_none_unless_required():
    assert build_client_config("tax") is None
    with pytest.raises(ConfigurationError, match="tax.base_url"):
        build_client_config("tax", required=True)


def test_invalid_values_raise_configuration_error():
    set_config_for_testing({"tax.base_url": "https://tax.test", "tax.timeout_ms": "soon"})
    with pytest.raises(ConfigurationError):
        build_client_config("tax")

    set_config_for_testing({"tax.timeout_ms": -5})
    with pytest.raises(ConfigurationError):
        build_client_config("tax")


def test_headers_from_dotted_keys(monkeypatch):
    monkeypatch.setattr(settings, "_config", {"tax.headers.X-Region": "us"})
    assert get_mapping("tax.headers") == {"X-Region": "us"}


def test_store_address_defaults_and_overrides(monkeypatch):
    assert get_store_address().city == "Springfield"

    monkeypatch.setenv("STORE_ZIP", "80550")
    set_config_for_testing({"store.city": "Windsor", "store.state": "CO"})
    store = get_store_address()
    assert (store.city, store.state, store.postal_code) == ("Windsor", "CO", "80550")


def test_leading_zero_values_stay_strings(monkeypatch):
    monkeypatch.setenv("STORE_ZIP", "01234")
    assert get_store_address().postal_code == "01234"


def test_default_tax_rate_must_be_a_fraction():
    assert get_default_tax_rate() == 0.08
    set_config_for_testing({"tax.default_rate": 8})
    with pytest.raises(ConfigurationError):
        get_default_tax_rate()
