import pytest

from sessionkit.config import SessionOptions, coerce_options, get_bool_env, get_int_env


def test_defaults():
    options = SessionOptions()

    assert options.match_ip is False
    assert options.match_ua is True
    assert options.expiration_time == 7200
    assert options.rotation_time == 300
    assert options.namespace is None
    assert options.http_header_name == "Session-Id"


@pytest.mark.parametrize("value", [False, True, 0, -1, "never"])
def test_rotation_time_disabled_values(value):
    assert SessionOptions(rotation_time=value).rotation_time is None


def test_rotation_time_none_means_default():
    assert SessionOptions(rotation_time=None).rotation_time == 300
    assert coerce_options({"rotation_time": None}).rotation_time == 300


@pytest.mark.parametrize("value, expected", [(600, 600), ("120", 120), (90.5, 90)])
def test_rotation_time_numeric_values(value, expected):
    assert SessionOptions(rotation_time=value).rotation_time == expected


@pytest.mark.parametrize("value", [0, -5, "soon", None])
def test_invalid_expiration_time_falls_back_to_default(value):
    assert SessionOptions(expiration_time=value).expiration_time == 7200


def test_coerce_options_accepts_mappings_and_ignores_unknown_keys():
    options = coerce_options({"namespace": "shop", "rotation_time": False, "cookie_colour": "blue"})

    assert options.namespace == "shop"
    assert options.rotation_time is None
    assert coerce_options(options) is options
    assert coerce_options(None) == SessionOptions()


def test_from_env(monkeypatch):
    monkeypatch.setenv("SESSION_MATCH_IP", "yes")
    monkeypatch.setenv("SESSION_MATCH_UA", "false")
    monkeypatch.setenv("SESSION_EXPIRATION_TIME", "900")
    monkeypatch.setenv("SESSION_ROTATION_TIME", "false")
    monkeypatch.setenv("SESSION_NAMESPACE", "shop")
    monkeypatch.setenv("SESSION_COOKIE_SECURE", "1")

    options = SessionOptions.from_env()

    assert options.match_ip is True
    assert options.match_ua is False
    assert options.expiration_time == 900
    assert options.rotation_time is None
    assert options.namespace == "shop"
    assert options.cookie_secure is True
    assert options.cookie_domain is None


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("SESSION_FLAG", " On ")
    monkeypatch.setenv("SESSION_NUMBER", "abc")

    assert get_bool_env("SESSION_FLAG") is True
    assert get_bool_env("SESSION_MISSING", True) is True
    assert get_int_env("SESSION_NUMBER", 5) == 5
    assert get_int_env("SESSION_MISSING") is None
