"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use BLOCKMATCH_ prefix (e.g., BLOCKMATCH_NEST_LEVEL_MODE=containment).

Settings can also be loaded from a .env file in the project root.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Engine configuration via environment variables.

    Environment variables use BLOCKMATCH_ prefix.

    Examples:
        BLOCKMATCH_NEST_LEVEL_MODE=containment
        BLOCKMATCH_LOOKAHEAD_LINES=8
        BLOCKMATCH_DEFAULT_LANGUAGE=ruby
    """

    model_config = SettingsConfigDict(
        env_prefix="BLOCKMATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Matcher configuration
    nest_level_mode: Literal["stack", "containment"] = Field(
        default="stack",
        description=(
            "How nest levels are assigned: 'stack' uses the open-block count when a pair "
            "closes, 'containment' counts the matched pairs that enclose it"
        ),
    )

    # Validator heuristics
    lookahead_lines: int = Field(
        default=5,
        ge=0,
        description="Line window scanned by line-based lookbehind/lookahead heuristics",
    )

    # Diagnostics
    debug_mode: bool = Field(
        default=False,
        description="Log region, token and pair counts for every parse",
    )

    # CLI configuration
    default_language: Optional[str] = Field(
        default=None,
        description="Language used by the CLI when it cannot be inferred from the file name",
    )


# Singleton instance - import this in your code
appsettings = AppSettings()
