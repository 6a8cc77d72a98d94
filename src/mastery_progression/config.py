"""Engine configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, TypeAdapter
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from mastery_progression.achievements.catalog import validate_catalog
from mastery_progression.models.achievement import Achievement
from mastery_progression.progression.experience import XPTable
from mastery_progression.progression.leveling import LevelCurve
from mastery_progression.selection.selector import SelectorTuning


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from config/settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if "leveling" in data:
            flattened["level_base_xp"] = data["leveling"].get("base_xp")
            flattened["level_growth_xp"] = data["leveling"].get("growth_xp")
        if "selection" in data:
            selection = data["selection"]
            flattened["zpd_offset"] = selection.get("zpd_offset")
            flattened["max_optimal_difficulty"] = selection.get("max_optimal_difficulty")
            flattened["usage_saturation"] = selection.get("usage_saturation")
            flattened["remediation_threshold"] = selection.get("remediation_threshold")
            flattened["remediation_boost"] = selection.get("remediation_boost")
            flattened["max_batch_size"] = selection.get("max_batch_size")
        if "storage" in data:
            flattened["data_dir"] = data["storage"].get("data_dir")
        if "logging" in data:
            flattened["log_json"] = data["logging"].get("json")
            flattened["log_level"] = data["logging"].get("level")

        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Engine settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Leveling
    level_base_xp: int = Field(default=250, gt=0)
    level_growth_xp: int = Field(default=25, ge=0)

    # Selection
    zpd_offset: float = Field(default=0.2)
    max_optimal_difficulty: float = Field(default=0.9)
    usage_saturation: int = Field(default=100, gt=0)
    remediation_threshold: float = Field(default=0.6)
    remediation_boost: float = Field(default=1.2)
    max_batch_size: int = Field(default=50, gt=0)

    # Logging
    log_json: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    data_dir: Path | None = Field(default=None)

    @property
    def progress_dir(self) -> Path:
        d = (self.data_dir or self.project_root / "data") / "progress"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def mastery_dir(self) -> Path:
        d = (self.data_dir or self.project_root / "data") / "mastery"
        d.mkdir(parents=True, exist_ok=True)
        return d

    def level_curve(self) -> LevelCurve:
        return LevelCurve(base_xp=self.level_base_xp, growth_xp=self.level_growth_xp)

    def selector_tuning(self) -> SelectorTuning:
        return SelectorTuning(
            zpd_offset=self.zpd_offset,
            max_optimal_difficulty=self.max_optimal_difficulty,
            usage_saturation=self.usage_saturation,
            remediation_threshold=self.remediation_threshold,
            remediation_boost=self.remediation_boost,
            max_batch_size=self.max_batch_size,
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get engine settings singleton."""
    return Settings()


def load_achievement_catalog(path: Path) -> tuple[Achievement, ...]:
    """Load an achievement catalog from a YAML file with an ``achievements`` list."""
    if not path.exists():
        raise FileNotFoundError(f"Achievement catalog not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    entries = TypeAdapter(list[Achievement]).validate_python(data.get("achievements", []))
    return validate_catalog(entries)


def load_xp_table(path: Path) -> XPTable:
    """Load XP table overrides from YAML; missing sections keep their defaults."""
    if not path.exists():
        raise FileNotFoundError(f"XP table not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return XPTable.model_validate(data.get("xp", {}))
