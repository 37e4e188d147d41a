import pytest

from quota_probe.config import ConfigurationError, env_bool, env_int, env_list, env_seconds, env_str, runtime
from quota_probe.config.runtime_helpers import parse_dotenv_line, read_dotenv


def test_env_str_blank_falls_back(monkeypatch):
    monkeypatch.setenv("QUOTA_PROBE_X", "   ")

    assert env_str("QUOTA_PROBE_X", or_value="fallback") == "fallback"
    assert env_str("QUOTA_PROBE_X", allow_blank=True) == ""


def test_env_str_required(monkeypatch):
    with pytest.raises(ConfigurationError, match="QUOTA_PROBE_MISSING"):
        env_str("QUOTA_PROBE_MISSING", required=True)


def test_numeric_and_boolean_coercion(monkeypatch):
    monkeypatch.setenv("QUOTA_PROBE_N", "42")
    monkeypatch.setenv("QUOTA_PROBE_FLAG", "off")
    monkeypatch.setenv("QUOTA_PROBE_BAD", "maybe")

    assert env_int("QUOTA_PROBE_N") == 42
    assert env_bool("QUOTA_PROBE_FLAG") is False
    with pytest.raises(ConfigurationError):
        env_bool("QUOTA_PROBE_BAD")
    with pytest.raises(ConfigurationError):
        env_int("QUOTA_PROBE_BAD")


def test_env_seconds_rejects_negative(monkeypatch):
    monkeypatch.setenv("QUOTA_PROBE_WAIT", "-1")

    with pytest.raises(ConfigurationError, match="non-negative"):
        env_seconds("QUOTA_PROBE_WAIT")


def test_env_list_strips_and_deduplicates(monkeypatch):
    monkeypatch.setenv("QUOTA_PROBE_ITEMS", " a, b ,,a ")

    assert env_list("QUOTA_PROBE_ITEMS") == ("a", "b")
    assert env_list("QUOTA_PROBE_ITEMS", unique=False) == ("a", "b", "a")
    assert env_list("QUOTA_PROBE_NONE", or_value=["x"]) == ("x",)


def test_dotenv_values_back_missing_variables(tmp_path, monkeypatch):
    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "# probe defaults\n"
        "export QUOTA_PROBE_SERVER_HOST='10.1.1.1'\n"
        "UNRELATED=ignored\n"
        'QUOTA_PROBE_DEBUG="true"\n',
        encoding="utf-8",
    )
    monkeypatch.setattr(runtime, "_DOTENV_CANDIDATES", (dotenv,))
    runtime.reset_default_values()

    assert env_str("QUOTA_PROBE_SERVER_HOST") == "10.1.1.1"
    assert env_bool("QUOTA_PROBE_DEBUG") is True

    monkeypatch.setenv("QUOTA_PROBE_SERVER_HOST", "127.0.0.2")
    assert env_str("QUOTA_PROBE_SERVER_HOST") == "127.0.0.2"


def test_dotenv_reader_keeps_only_probe_keys(tmp_path):
    dotenv = tmp_path / "probe.env"
    dotenv.write_text("QUOTA_PROBE_A=1\nOTHER=2\nnot a pair\n", encoding="utf-8")

    assert read_dotenv(dotenv) == {"QUOTA_PROBE_A": "1"}
    assert read_dotenv(tmp_path / "missing.env") == {}


def test_parse_dotenv_line():
    assert parse_dotenv_line("export QUOTA_PROBE_HOST = \"h\"") == ("QUOTA_PROBE_HOST", "h")
    assert parse_dotenv_line("# QUOTA_PROBE_HOST=h") is None
    assert parse_dotenv_line("PATH=/bin") is None
