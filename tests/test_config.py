"""Tests for settings and YAML table loading."""

import pytest
import structlog

from mastery_progression import config
from mastery_progression.config import Settings, load_achievement_catalog, load_xp_table
from mastery_progression.errors import InvalidArgumentError
from mastery_progression.log_config import configure_logging, setup_logging
from mastery_progression.models.achievement import MilestoneRequirement


def test_defaults_build_tuning():
    settings = Settings(level_base_xp=100, level_growth_xp=0, max_batch_size=10)
    assert settings.level_curve().xp_for_level(3) == 200
    assert settings.selector_tuning().max_batch_size == 10


def test_env_override(monkeypatch):
    monkeypatch.setenv("LEVEL_BASE_XP", "300")
    assert Settings().level_curve().xp_for_level(2) == 300


def test_yaml_source(tmp_path, monkeypatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "settings.yaml").write_text(
        "leveling:\n  base_xp: 400\n  growth_xp: 10\nselection:\n  max_batch_size: 7\n"
    )
    monkeypatch.setattr(config, "_find_project_root", lambda: tmp_path)

    settings = Settings()
    assert settings.level_base_xp == 400
    assert settings.level_growth_xp == 10
    assert settings.max_batch_size == 7


def test_init_beats_yaml(tmp_path, monkeypatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "settings.yaml").write_text("leveling:\n  base_xp: 400\n")
    monkeypatch.setattr(config, "_find_project_root", lambda: tmp_path)
    assert Settings(level_base_xp=90).level_base_xp == 90


def test_data_dirs(tmp_path):
    settings = Settings(data_dir=tmp_path)
    assert settings.progress_dir == tmp_path / "progress"
    assert settings.mastery_dir.exists()


class TestCatalogYaml:
    def test_load(self, tmp_path):
        path = tmp_path / "achievements.yaml"
        path.write_text(
            """
achievements:
  - id: early_bird
    title: Early Bird
    category: special
    tier: bronze
    xp_reward: 100
    requirement:
      type: milestone
      target: 1
      counter_key: early_sessions
"""
        )
        catalog = load_achievement_catalog(path)
        assert len(catalog) == 1
        assert isinstance(catalog[0].requirement, MilestoneRequirement)
        assert catalog[0].requirement.counter_key == "early_sessions"

    def test_duplicate_ids(self, tmp_path):
        entry = (
            "  - id: a\n    title: A\n    category: study\n    tier: gold\n"
            "    xp_reward: 1\n    requirement: {type: study_hours, target: 1}\n"
        )
        path = tmp_path / "achievements.yaml"
        path.write_text("achievements:\n" + entry + entry)
        with pytest.raises(InvalidArgumentError):
            load_achievement_catalog(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_achievement_catalog(tmp_path / "nope.yaml")


def test_xp_table_override(tmp_path):
    path = tmp_path / "xp.yaml"
    path.write_text("xp:\n  group_multiplier: 1.5\n  weekend_bonus: 10\n")
    table = load_xp_table(path)
    assert table.group_multiplier == 1.5
    assert table.weekend_bonus == 10
    assert table.activity_xp["PRACTICE_TEST_COMPLETE"] == 200


def test_configure_logging_json():
    try:
        configure_logging(json_logs=True, level="debug")
        structlog.get_logger().info("configured", check=True)
    finally:
        structlog.reset_defaults()


def test_setup_logging_from_settings(monkeypatch):
    calls = []
    monkeypatch.setattr(
        "mastery_progression.log_config.configure_logging",
        lambda json_logs, level: calls.append((json_logs, level)),
    )
    setup_logging(Settings(log_json=True, log_level="WARNING"))
    assert calls == [(True, "WARNING")]


def test_logging_section_in_yaml(tmp_path, monkeypatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "settings.yaml").write_text("logging:\n  json: true\n  level: DEBUG\n")
    monkeypatch.setattr(config, "_find_project_root", lambda: tmp_path)
    settings = Settings()
    assert settings.log_json is True
    assert settings.log_level == "DEBUG"
