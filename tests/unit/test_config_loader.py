from __future__ import annotations
import pytest
from pathlib import Path
from pos_import.config.loader import load_config, ConfigError


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.organization_id == "org-1"
    assert cfg.output_directory == "./out"
    assert cfg.logs_directory == "./logs"
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.database.dsn is None


def test_load_config_defaults(temp_workdir: Path):
    cfg_path = temp_workdir / "config" / "import.yml"
    cfg_path.write_text("organization_id: abc\n", encoding="utf-8")
    cfg = load_config(cfg_path)
    assert cfg.output_directory == "./out"
    assert cfg.logs_directory == "./logs"
    assert cfg.database.user is None


def test_load_config_missing_file(temp_workdir: Path):
    missing = temp_workdir / "config" / "not_exists.yml"
    with pytest.raises(ConfigError) as e:
        load_config(missing)
    assert "config file not found" in str(e.value)


def test_load_config_missing_required(write_config: Path):
    # remove required key
    text = write_config.read_text(encoding="utf-8").replace("organization_id: org-1\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_wrong_type(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("port: 5432", "port: five")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_extra_field(write_config: Path):
    # add extra field that should be rejected by additionalProperties: false
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("organization_id: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "invalid yaml" in str(e.value)


def test_load_config_not_a_mapping(write_config: Path):
    write_config.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(write_config)
