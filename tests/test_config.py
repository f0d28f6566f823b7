from pathlib import Path

from overlay_harness.config import DEFAULT_ERROR_TYPES, HarnessConfig, load_config


def test_defaults():
    config = HarnessConfig()

    assert config.wait_timeout_ms == 10000
    assert config.poll_interval_ms == 200
    assert config.host_tolerance == 5.0
    assert config.host_tag == "proofly-highlighter"
    assert config.error_types == DEFAULT_ERROR_TYPES
    assert config.trace_path is None


def test_load_config_merges_file_and_env(tmp_path, monkeypatch):
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        "[harness]\n"
        "host_tolerance = 3\n"
        "poll_interval_ms = 50\n"
        'error_types = ["spelling", "grammar"]\n'
        'unknown_key = "ignored"\n',
        encoding="utf-8",
    )
    monkeypatch.setenv("HARNESS_POLL_INTERVAL_MS", "75")
    monkeypatch.setenv("HARNESS_TRACE_PATH", str(tmp_path / "trace.jsonl"))

    config = load_config(config_file)

    assert config.host_tolerance == 3.0
    assert config.poll_interval_ms == 75
    assert config.error_types == ("spelling", "grammar")
    assert config.trace_path == tmp_path / "trace.jsonl"


def test_env_error_types_are_comma_separated(monkeypatch, tmp_path):
    monkeypatch.setenv("HARNESS_ERROR_TYPES", "spelling, grammar ,")

    config = load_config(tmp_path / "missing.toml")

    assert config.error_types == ("spelling", "grammar")
    assert config.log_output_path == Path("e2e/logs.txt")
