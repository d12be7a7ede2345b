"""
Configuration management for audiobook-dl.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - Script settings (filename template, cookie browser, audio format)
    - CSV import settings (header row, expected column count)
    - Metadata fetch timing (debounce, batch delay, timeout, attempt cap)
    - Optional directory for log files

Configuration File Location:
    1. The path given with --config
    2. The path in the AUDIOBOOK_DL_CONFIG environment variable
       (a .env file in the working directory is honoured)
    3. config.yaml in the current working directory

    An explicitly named file must exist. The default config.yaml may be
    absent, in which case every setting takes its default value.

Example config.yaml:
    script:
      filename_template: "$author - [$series - $series_num] - $title [$narrator].%(ext)s"
      cookies_from_browser: firefox
      audio_format: mp3

    csv:
      has_header: true
      expected_columns: 7

    metadata:
      debounce_seconds: 0.5
      batch_delay_seconds: 0.3
      request_timeout: 10
      max_fetch_attempts: 3

    output:
      log_directory: "~/.audiobook-dl/logs"
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from audiobook_dl.core.exceptions import ConfigError
from audiobook_dl.core.models import CookieSource


# Default configuration file name (in current working directory)
CONFIG_FILENAME = "config.yaml"

# Environment variable that points at a configuration file
CONFIG_ENV_VAR = "AUDIOBOOK_DL_CONFIG"

DEFAULT_FILENAME_TEMPLATE = "$author - [$series - $series_num] - $title [$narrator].%(ext)s"

# Audio formats yt-dlp can extract to with -x --audio-format
AUDIO_FORMATS = ("best", "aac", "alac", "flac", "m4a", "mp3", "opus", "vorbis", "wav")


@dataclass(frozen=True)
class ScriptConfig:
    """
    Script generation configuration.

    Attributes:
        filename_template: Output template with $author, $title, $narrator,
                           $series, $series_num, $year placeholders. yt-dlp's
                           own %(...)s fields pass through untouched.
        cookies_from_browser: Browser for --cookies-from-browser, or NONE.
                              Cookies help with 403 errors and non-public videos.
        audio_format: Format passed to yt-dlp --audio-format. Default "mp3".
        sanitize_values: Clean record values for use in file names
                         (path separators, '%') before substitution.
    """
    filename_template: str = DEFAULT_FILENAME_TEMPLATE
    cookies_from_browser: CookieSource = CookieSource.NONE
    audio_format: str = "mp3"
    sanitize_values: bool = False


@dataclass(frozen=True)
class CsvConfig:
    """
    CSV import configuration.

    Attributes:
        has_header: Skip the first row on import.
        expected_columns: Rows with fewer cells are dropped on import.
    """
    has_header: bool = True
    expected_columns: int = 7


@dataclass(frozen=True)
class MetadataConfig:
    """
    Metadata fetch configuration.

    Attributes:
        debounce_seconds: Quiet time after a URL edit before fetching.
        batch_delay_seconds: Pause between records in a batch fetch,
                             keeps oEmbed from rate limiting us.
        request_timeout: Seconds to wait for one oEmbed response.
        max_fetch_attempts: Failed lookups per URL before the batch fetch
                            stops retrying it.
    """
    debounce_seconds: float = 0.5
    batch_delay_seconds: float = 0.3
    request_timeout: float = 10.0
    max_fetch_attempts: int = 3


@dataclass(frozen=True)
class OutputConfig:
    """
    Output configuration.

    Attributes:
        log_directory: Directory for log files, None for console-only logging.
    """
    log_directory: Path | None = None


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable (frozen dataclass).

    Example:
        config = load_config()
        print(f"Template: {config.script.filename_template}")
        print(f"Batch delay: {config.metadata.batch_delay_seconds}s")
    """
    script: ScriptConfig = field(default_factory=ScriptConfig)
    csv: CsvConfig = field(default_factory=CsvConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, AUDIOBOOK_DL_CONFIG is consulted, then
                     config.yaml in the current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicitly named file is not found, or the file
                     has invalid YAML syntax, or contains invalid values.

    Behavior:
        1. Load .env so AUDIOBOOK_DL_CONFIG may come from it
        2. Locate config file (argument, environment, CWD/config.yaml)
        3. Missing default file -> Config() with all defaults
        4. Read and parse YAML content
        5. Validate structure and parse each section with defaults
    """
    load_dotenv(find_dotenv(usecwd=True))

    explicit = True
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            config_path = Path(env_path).expanduser()
        else:
            config_path = Path.cwd() / CONFIG_FILENAME
            explicit = False

    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        return Config()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file is a valid "all defaults" config
    if raw_config is None:
        return Config()

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return parse_config(raw_config)


def parse_config(raw_config: dict[str, Any]) -> Config:
    """
    Build a Config from an already-parsed dictionary.

    Raises:
        ConfigError: If a section is not a dictionary or a value is invalid.
    """
    return Config(
        script=_parse_script_config(_section(raw_config, "script")),
        csv=_parse_csv_config(_section(raw_config, "csv")),
        metadata=_parse_metadata_config(_section(raw_config, "metadata")),
        output=_parse_output_config(_section(raw_config, "output")),
    )


def _section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_script_config(section: dict[str, Any]) -> ScriptConfig:
    """
    Parse and validate the script section.

    Raises:
        ConfigError: If the template is empty, the browser is unknown or
                     the audio format is not one yt-dlp supports.
    """
    defaults = ScriptConfig()

    template = section.get("filename_template", defaults.filename_template)
    if not isinstance(template, str) or not template.strip():
        raise ConfigError(
            "'script.filename_template' must be a non-empty string",
            details={"field": "script.filename_template"}
        )

    raw_browser = section.get("cookies_from_browser")
    if raw_browser is None:
        browser = defaults.cookies_from_browser
    else:
        try:
            browser = CookieSource(str(raw_browser).strip().lower())
        except ValueError:
            raise ConfigError(
                f"'script.cookies_from_browser' must be one of: {', '.join(CookieSource.choices())}",
                details={"field": "script.cookies_from_browser", "value": raw_browser}
            ) from None

    audio_format = section.get("audio_format", defaults.audio_format)
    if not isinstance(audio_format, str) or audio_format.lower() not in AUDIO_FORMATS:
        raise ConfigError(
            f"'script.audio_format' must be one of: {', '.join(AUDIO_FORMATS)}",
            details={"field": "script.audio_format", "value": audio_format}
        )

    sanitize = section.get("sanitize_values", defaults.sanitize_values)
    if not isinstance(sanitize, bool):
        raise ConfigError(
            "'script.sanitize_values' must be true or false",
            details={"field": "script.sanitize_values", "value": sanitize}
        )

    return ScriptConfig(
        filename_template=template,
        cookies_from_browser=browser,
        audio_format=audio_format.lower(),
        sanitize_values=sanitize
    )


def _parse_csv_config(section: dict[str, Any]) -> CsvConfig:
    defaults = CsvConfig()

    has_header = section.get("has_header", defaults.has_header)
    if not isinstance(has_header, bool):
        raise ConfigError(
            "'csv.has_header' must be true or false",
            details={"field": "csv.has_header", "value": has_header}
        )

    expected = section.get("expected_columns", defaults.expected_columns)
    if isinstance(expected, bool) or not isinstance(expected, int) or expected < 1:
        raise ConfigError(
            "'csv.expected_columns' must be a positive integer",
            details={"field": "csv.expected_columns", "value": expected}
        )

    return CsvConfig(has_header=has_header, expected_columns=expected)


def _non_negative_number(section: dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(
            f"'metadata.{key}' must be a non-negative number",
            details={"field": f"metadata.{key}", "value": value}
        )
    return float(value)


def _parse_metadata_config(section: dict[str, Any]) -> MetadataConfig:
    """
    Parse and validate the metadata section.

    Raises:
        ConfigError: If a delay is negative, the timeout is not positive,
                     or max_fetch_attempts is not a positive integer.
    """
    defaults = MetadataConfig()

    debounce = _non_negative_number(section, "debounce_seconds", defaults.debounce_seconds)
    batch_delay = _non_negative_number(section, "batch_delay_seconds", defaults.batch_delay_seconds)
    timeout = _non_negative_number(section, "request_timeout", defaults.request_timeout)
    if timeout == 0:
        raise ConfigError(
            "'metadata.request_timeout' must be greater than zero",
            details={"field": "metadata.request_timeout", "value": 0}
        )

    attempts = section.get("max_fetch_attempts", defaults.max_fetch_attempts)
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        raise ConfigError(
            "'metadata.max_fetch_attempts' must be a positive integer",
            details={"field": "metadata.max_fetch_attempts", "value": attempts}
        )

    return MetadataConfig(
        debounce_seconds=debounce,
        batch_delay_seconds=batch_delay,
        request_timeout=timeout,
        max_fetch_attempts=attempts
    )


def _parse_output_config(section: dict[str, Any]) -> OutputConfig:
    raw_dir = section.get("log_directory")
    if raw_dir is None:
        return OutputConfig()

    if not isinstance(raw_dir, str) or not raw_dir.strip():
        raise ConfigError(
            "'output.log_directory' must be a non-empty string or null",
            details={"field": "output.log_directory"}
        )

    return OutputConfig(log_directory=Path(raw_dir.strip()).expanduser().resolve())
