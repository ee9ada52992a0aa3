"""Gemini Orchestrator configuration system.

Configuration is a JSON-shaped document with aliases, limits and ignore
globs, plus optional invoker settings. JSON and YAML are both accepted (the
file is read with PyYAML, which parses JSON as a subset).

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.gemini-direct.json
3. ./.gemini-orchestrator/config.yaml
4. ./gemini-orchestrator.yaml

A missing or unparseable auto-discovered file falls back to the built-in
defaults. The loaded OrchestratorConfig is passed explicitly to every
component; nothing reads configuration from module state.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from gemini_orchestrator.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES: tuple[str, ...] = (
    ".gemini-direct.json",
    ".gemini-orchestrator/config.yaml",
    "gemini-orchestrator.yaml",
)

DEFAULT_IGNORE: list[str] = [
    "**/node_modules/**",
    "**/.git/**",
    "**/dist/**",
    "**/build/**",
]

DEFAULT_PATTERNS: list[str] = ["src/", "package.json"]


class DefaultPatternStrategy(Enum):
    """What to do when a caller supplies no patterns."""

    USE_DEFAULTS = "use_defaults"
    REQUIRE_EXPLICIT = "require_explicit"

    @classmethod
    def parse(cls, value: str) -> "DefaultPatternStrategy":
        """Parse a strategy name, accepting camelCase and snake_case spellings."""
        normalized = value.strip().lower().replace("-", "_")
        aliases = {"usedefaults": "use_defaults", "requireexplicit": "require_explicit"}
        normalized = aliases.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            valid = [s.value for s in cls]
            raise ValueError(
                f"Invalid default pattern strategy: {value}. Valid: {valid}"
            ) from None


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass(frozen=True)
class LimitsConfig:
    """Input containment limits.

    Attributes:
        max_files: Maximum number of files read per invocation
        max_chars_per_file: Character ceiling applied to each file's content
    """

    max_files: int = 30
    max_chars_per_file: int = 8000

    def __post_init__(self) -> None:
        """Validate limits."""
        for name in ("max_files", "max_chars_per_file"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer (got {value!r})")


@dataclass
class InvokerConfig:
    """External analysis binary settings.

    Attributes:
        binary: Binary name or path (GEMINI_CLI_PATH overrides at call time)
        model: Value passed to the binary's model-selection flag
        timeout: Wall-clock timeout in seconds for direct calls
        orchestrated_timeout: Timeout in seconds for calls that shell out
            to the direct tool
    """

    binary: str = "gemini"
    model: str = "gemini-2.5-flash"
    timeout: float = 120.0
    orchestrated_timeout: float = 300.0

    def __post_init__(self) -> None:
        """Validate invoker settings."""
        if not self.binary or not self.binary.strip():
            raise ValueError("Invoker binary cannot be empty")
        if not self.model or not self.model.strip():
            raise ValueError("Model identifier cannot be empty")
        if self.timeout <= 0 or self.orchestrated_timeout <= 0:
            raise ValueError("Timeouts must be positive")


@dataclass
class OrchestratorConfig:
    """Top-level configuration.

    Attributes:
        aliases: Alias name -> ordered list of literal globs
        limits: File count and size limits
        ignore: Globs excluded from every match
        invoker: External binary settings
        default_pattern_strategy: Behavior when no patterns are supplied
        default_patterns: Patterns used under USE_DEFAULTS
    """

    aliases: dict[str, list[str]] = field(default_factory=dict)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    ignore: list[str] = field(default_factory=lambda: DEFAULT_IGNORE.copy())
    invoker: InvokerConfig = field(default_factory=InvokerConfig)
    default_pattern_strategy: DefaultPatternStrategy = DefaultPatternStrategy.REQUIRE_EXPLICIT
    default_patterns: list[str] = field(default_factory=lambda: DEFAULT_PATTERNS.copy())

    # Set by load_config
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    for name in CONFIG_FILENAMES:
        candidate = start_path / name
        if candidate.is_file():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in data (camelCase or snake_case)."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _parse_aliases(raw: Any) -> dict[str, list[str]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("'aliases' must be a mapping of name to glob list")

    aliases: dict[str, list[str]] = {}
    for name, globs in raw.items():
        if isinstance(globs, str):
            globs = [globs]
        if not isinstance(globs, list) or not all(isinstance(g, str) for g in globs):
            raise ConfigError(f"alias '{name}' must map to a list of glob strings")
        # Aliases are one level deep: values are literal globs
        aliases[str(name).lstrip("@")] = list(globs)
    return aliases


def _parse_string_list(raw: Any, key: str) -> list[str]:
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ConfigError(f"'{key}' must be a list of strings")
    return list(raw)


def load_config_from_dict(data: dict[str, Any]) -> OrchestratorConfig:
    """Load configuration from a dictionary.

    Keys may be camelCase (``maxFiles``) or snake_case (``max_files``).

    Args:
        data: Configuration dictionary

    Returns:
        OrchestratorConfig instance

    Raises:
        ConfigError: If a value has the wrong shape or fails validation
    """
    if not isinstance(data, dict):
        raise ConfigError("configuration root must be an object")

    config = OrchestratorConfig()

    try:
        config.aliases = _parse_aliases(data.get("aliases"))

        if "limits" in data:
            limits_data = data["limits"] or {}
            config.limits = LimitsConfig(
                max_files=_pick(
                    limits_data, "maxFiles", "max_files", default=config.limits.max_files
                ),
                max_chars_per_file=_pick(
                    limits_data,
                    "maxCharsPerFile",
                    "max_chars_per_file",
                    default=config.limits.max_chars_per_file,
                ),
            )

        if "ignore" in data:
            config.ignore = _parse_string_list(data["ignore"], "ignore")

        if "invoker" in data:
            invoker_data = data["invoker"] or {}
            config.invoker = InvokerConfig(
                binary=invoker_data.get("binary", config.invoker.binary),
                model=invoker_data.get("model", config.invoker.model),
                timeout=float(invoker_data.get("timeout", config.invoker.timeout)),
                orchestrated_timeout=float(
                    _pick(
                        invoker_data,
                        "orchestratedTimeout",
                        "orchestrated_timeout",
                        default=config.invoker.orchestrated_timeout,
                    )
                ),
            )

        strategy = _pick(data, "defaultPatternStrategy", "default_pattern_strategy")
        if strategy is not None:
            config.default_pattern_strategy = DefaultPatternStrategy.parse(str(strategy))

        default_patterns = _pick(data, "defaultPatterns", "default_patterns")
        if default_patterns is not None:
            config.default_patterns = _parse_string_list(default_patterns, "defaultPatterns")

    except (AttributeError, TypeError, ValueError) as e:
        raise ConfigError(str(e)) from e

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> OrchestratorConfig:
    """Load configuration from file.

    An explicit path must exist and parse. An auto-discovered file that fails
    to parse is reported as a warning and the defaults are used instead.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        OrchestratorConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
        ConfigError: If config_path specified but cannot be parsed
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return _load_file(config_path)

    found_path = find_config_file() if auto_discover else None
    if found_path is None:
        return OrchestratorConfig()

    try:
        return _load_file(found_path)
    except ConfigError as e:
        logger.warning("Config file error, using defaults: %s", e)
        return OrchestratorConfig()


def _load_file(path: Path) -> OrchestratorConfig:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(str(e), source=str(path)) from e

    try:
        config = load_config_from_dict(data)
    except ConfigError as e:
        raise ConfigError(str(e), source=str(path)) from e

    config._config_path = path
    logger.debug("Loaded config from: %s", path)
    return config


def create_default_config() -> str:
    """Create default configuration content.

    Returns:
        JSON string for a .gemini-direct.json file
    """
    defaults = OrchestratorConfig()
    document = {
        "aliases": {
            "auth": ["src/auth/**/*", "src/middleware/auth*"],
            "tests": ["tests/**/*", "test/**/*"],
        },
        "limits": {
            "maxFiles": defaults.limits.max_files,
            "maxCharsPerFile": defaults.limits.max_chars_per_file,
        },
        "ignore": defaults.ignore,
        "defaultPatternStrategy": defaults.default_pattern_strategy.value,
        "defaultPatterns": defaults.default_patterns,
        "invoker": {
            "binary": defaults.invoker.binary,
            "model": defaults.invoker.model,
            "timeout": defaults.invoker.timeout,
            "orchestratedTimeout": defaults.invoker.orchestrated_timeout,
        },
    }
    return json.dumps(document, indent=2) + "\n"
