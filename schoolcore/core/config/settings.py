# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SchoolCore configuration read from the environment.

Three groups of settings exist: DB_* for the relational store, PROGRESSION_*
for the rule limits, and the top-level environment, debug and log level.
get_settings() caches one Settings per process; tests build their own
instances or call clear_settings_cache() after patching the environment.

Example:
    >>> from schoolcore.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.progression.classroom_capacity)
    5
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: PostgreSQL host.
        port: PostgreSQL port.
        database: PostgreSQL database name.
        pool_size: Persistent connections kept by the pool.
        max_overflow: Extra connections allowed above pool_size.
        url_override: Full connection URL, used verbatim when set.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
        populate_by_name=True,
    )

    user: str = "schoolcore"
    password: SecretStr = SecretStr("schoolcore_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "schoolcore"
    pool_size: int = 10
    max_overflow: int = 20
    url_override: str | None = Field(
        default=None,
        validation_alias="DATABASE_URL",
    )

    @property
    def url(self) -> str:
        """Async URL: the override when set, else an asyncpg URL from parts."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL points at SQLite (no pool sizing)."""
        return self.url.startswith("sqlite")


class ProgressionSettings(BaseSettings):
    """Academic progression rule limits.

    Attributes:
        classroom_capacity: Maximum active students per classroom and course-year.
        max_lifetime_enrollments: Maximum enrollments a student may ever hold.
        passing_grade: Minimum grade that counts as passed.
        min_grade: Lowest valid grade.
        max_grade: Highest valid grade.
        max_course_year_span_years: Maximum length of a course-year in years.
        reenrollment_months: Calendar months in which enrollments may be changed.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROGRESSION_",
        extra="ignore",
    )

    classroom_capacity: int = Field(default=5, ge=1)
    max_lifetime_enrollments: int = Field(default=3, ge=1)
    passing_grade: int = 3
    min_grade: int = 0
    max_grade: int = 5
    max_course_year_span_years: int = Field(default=2, ge=1)
    reenrollment_months: list[int] = [7, 8]

    @field_validator("reenrollment_months")
    @classmethod
    def validate_months(cls, value: list[int]) -> list[int]:
        """Ensure every re-enrollment month is a calendar month."""
        for month in value:
            if not 1 <= month <= 12:
                raise ValueError(f"Invalid month: {month}")
        return value

    @model_validator(mode="after")
    def validate_grade_scale(self) -> Self:
        """Ensure the passing grade sits inside the grade scale."""
        if not self.min_grade <= self.passing_grade <= self.max_grade:
            raise ValueError("passing_grade must be between min_grade and max_grade")
        return self


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all subsettings and provides environment-level configuration.

    Attributes:
        environment: Current environment (development, staging, production, test).
        debug: Echo SQL and render console logs.
        log_level: Threshold for the schoolcore loggers.
        db: Database settings.
        progression: Progression rule limits.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    progression: ProgressionSettings = Field(default_factory=ProgressionSettings)

    @property
    def is_development(self) -> bool:
        """Whether console log rendering applies."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Whether production-only checks apply."""
        return self.environment == "production"

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Refuse debug mode in production."""
        if self.is_production and self.debug:
            raise ValueError("Debug mode must be disabled in production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Singleton Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Forget the cached Settings so the next get_settings() rereads the environment."""
    get_settings.cache_clear()
