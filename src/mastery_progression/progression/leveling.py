"""XP to level mapping."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mastery_progression.errors import InvalidArgumentError


class LevelInfo(BaseModel):
    """Position of a cumulative XP total on the level curve."""

    model_config = ConfigDict(frozen=True)

    total_xp: int = Field(ge=0)
    level: int = Field(ge=1)
    current_level_xp: int = Field(ge=0)
    xp_to_next_level: int = Field(gt=0)

    @model_validator(mode="after")
    def _within_level(self) -> "LevelInfo":
        if self.current_level_xp >= self.xp_to_next_level:
            raise ValueError(
                f"current_level_xp {self.current_level_xp} must be below "
                f"xp_to_next_level {self.xp_to_next_level}"
            )
        if self.current_level_xp > self.total_xp:
            raise ValueError("current_level_xp cannot exceed total_xp")
        return self

    @property
    def progress_percent(self) -> float:
        """Share of the current level already earned (0-100)."""
        return round(100 * self.current_level_xp / self.xp_to_next_level, 1)


class LevelCurve(BaseModel):
    """Quadratic level threshold curve.

    ``xp_for_level(n) = base_xp * (n - 1) + growth_xp * (n - 1) * (n - 2)``,
    so level 1 starts at 0 XP and every further level costs ``growth_xp * 2``
    more than the previous one. Defaults give 0, 250, 550, 900, 1300, ...

    Args:
        base_xp: XP needed to go from level 1 to level 2.
        growth_xp: Half the per-level increase in cost.
    """

    model_config = ConfigDict(frozen=True)

    base_xp: int = Field(default=250, gt=0)
    growth_xp: int = Field(default=25, ge=0)

    def xp_for_level(self, level: int) -> int:
        """Cumulative XP at which ``level`` begins."""
        if level < 1:
            raise InvalidArgumentError(
                f"Level must be >= 1, got {level}", details={"level": level}
            )
        n = level - 1
        return self.base_xp * n + self.growth_xp * n * (n - 1)

    def level(self, total_xp: int) -> LevelInfo:
        """Highest level whose threshold ``total_xp`` has reached."""
        if total_xp < 0:
            raise InvalidArgumentError(
                f"Total XP must be non-negative, got {total_xp}",
                details={"total_xp": total_xp},
            )

        level = 1
        floor_xp = 0
        next_xp = self.xp_for_level(2)
        while total_xp >= next_xp:
            level += 1
            floor_xp = next_xp
            next_xp = self.xp_for_level(level + 1)

        return LevelInfo(
            total_xp=total_xp,
            level=level,
            current_level_xp=total_xp - floor_xp,
            xp_to_next_level=next_xp - floor_xp,
        )


DEFAULT_CURVE = LevelCurve()


def xp_for_level(level: int) -> int:
    return DEFAULT_CURVE.xp_for_level(level)


def level_for_xp(total_xp: int) -> LevelInfo:
    return DEFAULT_CURVE.level(total_xp)
