import pytest

from leadcapture.core.catalog import DEFAULT_BOOKING_BASE_URL, build_app_config
from leadcapture.core.env import default_sources, resolve_env


def test_resolve_env_first_source_wins():
    sources = ({"KEY": "build"}, {"KEY": "process"}, {"KEY": "runtime"})
    assert resolve_env("KEY", "default", sources) == "build"


def test_resolve_env_falls_through():
    sources = ({}, {"KEY": None}, {"KEY": "runtime"})
    assert resolve_env("KEY", "default", sources) == "runtime"
    assert resolve_env("OTHER", "default", sources) == "default"
    assert resolve_env("OTHER", None, ()) is None


def test_default_sources_order(tmp_path, monkeypatch):
    build_file = tmp_path / "build.env"
    build_file.write_text("BOOKING_BASE_URL=https://build.example/?promo=\n")
    runtime_file = tmp_path / "runtime.env"
    runtime_file.write_text("BOOKING_BASE_URL=https://runtime.example/?promo=\nBRAND_NAME=Runtime Garage\n")
    monkeypatch.setenv("BOOKING_BASE_URL", "https://process.example/?promo=")
    monkeypatch.setenv("BRAND_PHONE", "(555) 000-1111")

    sources = default_sources(str(build_file), str(runtime_file))
    config = build_app_config(sources)

    assert config.booking_base_url == "https://build.example/?promo="
    assert config.brand.phone == "(555) 000-1111"
    assert config.brand.name == "Runtime Garage"


def test_missing_env_files_are_skipped(tmp_path):
    sources = default_sources(str(tmp_path / "absent.env"), None)
    assert sources[0] == {}
    assert sources[2] == {}


def test_booking_url_encodes_offer_code():
    config = build_app_config(({"BOOKING_BASE_URL": "https://book.example/?promo="},))
    assert config.booking_url("BYRD-DVI90") == "https://book.example/?promo=BYRD-DVI90"
    assert config.booking_url("A&B/C D") == "https://book.example/?promo=A%26B%2FC%20D"


def test_app_config_is_immutable(app_config):
    assert app_config.booking_base_url == DEFAULT_BOOKING_BASE_URL
    with pytest.raises(TypeError):
        app_config.offers["NEW"] = app_config.offers["BYRD-TRIP"]
    with pytest.raises(AttributeError):
        app_config.booking_base_url = "https://elsewhere.example/"


def test_unknown_offer_lookup(app_config):
    assert app_config.get_offer("BYRD-NOPE") is None
    assert app_config.get_offer(None) is None
    assert app_config.get_offer("BYRD-VIS15").value == "$25"
