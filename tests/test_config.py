"""Tests for configuration loading, saving and path helpers."""

import json

from parley.config import Config, load_config, save_config
from parley.config.loader import camel_to_snake, convert_keys, snake_to_camel
from parley.utils.helpers import get_policy_path


def _write(path, data) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


def test_defaults_when_file_is_missing(tmp_path) -> None:
    config = load_config(tmp_path / "missing.json")
    assert config.assistant.name == "Parley"
    assert config.assistant.show_welcome is True
    assert config.policy.persist is True


def test_camel_case_file_is_loaded(tmp_path) -> None:
    path = tmp_path / "config.json"
    _write(path, {
        "assistant": {"name": "Ada", "showWelcome": False},
        "policy": {"storePath": str(tmp_path / "rules.jsonl"), "persist": False},
        "owner": {"identity": "email:ada@example.com", "displayName": "Ada L."},
    })

    config = load_config(path)
    assert config.assistant.name == "Ada"
    assert config.assistant.show_welcome is False
    assert config.policy.store_path == str(tmp_path / "rules.jsonl")
    assert config.owner.display_name == "Ada L."


def test_environment_beats_file(tmp_path, monkeypatch) -> None:
    path = tmp_path / "config.json"
    _write(path, {"assistant": {"name": "Ada", "showWelcome": False}})
    monkeypatch.setenv("PARLEY_ASSISTANT__NAME", "Grace")

    config = load_config(path)
    assert config.assistant.name == "Grace"
    assert config.assistant.show_welcome is False


def test_broken_file_falls_back_to_defaults(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_config(path).assistant.name == "Parley"

    _write(path, {"assistant": {"showWelcome": "sometimes"}})
    assert load_config(path).assistant.show_welcome is True


def test_save_writes_camel_case(tmp_path) -> None:
    path = tmp_path / "nested" / "config.json"
    config = Config()
    config.assistant.name = "Ada"
    save_config(config, path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["assistant"] == {"name": "Ada", "showWelcome": True}
    assert "storePath" in data["policy"]
    assert load_config(path).assistant.name == "Ada"


def test_key_conversion() -> None:
    assert camel_to_snake("showWelcome") == "show_welcome"
    assert snake_to_camel("store_path") == "storePath"
    assert convert_keys({"ownerInfo": [{"displayName": "x"}]}) == {
        "owner_info": [{"display_name": "x"}]
    }


def test_policy_path_is_expanded_and_parent_created(tmp_path) -> None:
    path = get_policy_path(str(tmp_path / "a" / "b" / "rules.jsonl"))
    assert path.parent.is_dir()
    assert path.name == "rules.jsonl"
