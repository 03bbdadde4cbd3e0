"""
Configuration management for Polyglot Code.
"""

import json
import sys
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

DEFAULT_ENV_ALLOWLIST = [
    "JAVA_HOME",
    "GOROOT",
    "GOPATH",
    "GOCACHE",
    "DOTNET_ROOT",
    "CARGO_HOME",
    "RUSTUP_HOME",
]


@dataclass
class SandboxConfig:
    """Workspace and process settings shared by every language."""

    temp_root: str | None = None  # None -> system temp dir
    python_executable: str | None = None  # None -> sys.executable
    inherit_env: bool = False
    env_allowlist: list[str] = field(default_factory=lambda: list(DEFAULT_ENV_ALLOWLIST))
    default_compile_timeout_seconds: float = 10.0
    default_run_timeout_seconds: float = 5.0

    def resolve_temp_root(self) -> Path:
        """Directory under which per-request workspaces are created."""
        if self.temp_root:
            return Path(self.temp_root).expanduser()
        return Path(tempfile.gettempdir())

    def resolve_python(self) -> str:
        """Interpreter substituted for the ``{python}`` command token."""
        return self.python_executable or sys.executable


@dataclass
class LanguageOverride:
    """Per-language overrides applied on top of the built-in runner table."""

    compile_timeout_seconds: float | None = None
    run_timeout_seconds: float | None = None
    compile_command: list[str] | None = None
    run_command: list[str] | None = None


@dataclass
class ServerConfig:
    """Configuration for the MCP server."""

    name: str = "polyglot-code"
    version: str = "1.0.0"
    transport: str = "stdio"
    max_concurrent_executions: int = 4


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    debug_timings: bool = False


@dataclass
class ProjectConfig:
    """Main project configuration."""

    name: str = "polyglot-code"
    sandbox: SandboxConfig = field(default_factory=SandboxConfig)
    languages: dict[str, LanguageOverride] = field(default_factory=dict)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "ProjectConfig":
        """Load configuration from a YAML or JSON file."""
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                if config_path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectConfig":
        """Build a config from already-parsed data."""
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        try:
            sandbox_data = _section(data, "sandbox")
            if "env_allowlist" in sandbox_data:
                raw_allowlist = sandbox_data["env_allowlist"]
                if isinstance(raw_allowlist, str):
                    raw_allowlist = [raw_allowlist]
                sandbox_data["env_allowlist"] = [
                    str(item).strip() for item in raw_allowlist or [] if str(item).strip()
                ]
            sandbox = SandboxConfig(**sandbox_data)

            languages: dict[str, LanguageOverride] = {}
            for language, override in _section(data, "languages").items():
                if override is None:
                    override = {}
                if not isinstance(override, dict):
                    raise ConfigurationError(
                        f"languages.{language} must be a mapping, got {type(override).__name__}"
                    )
                override = override.copy()
                for key in ("compile_command", "run_command"):
                    command = override.get(key)
                    if command is None:
                        continue
                    if not isinstance(command, (list, tuple)):
                        raise ConfigurationError(
                            f"languages.{language}.{key} must be a list of arguments, "
                            f"got {type(command).__name__}"
                        )
                    override[key] = [str(token) for token in command]
                languages[str(language).strip().lower()] = LanguageOverride(**override)

            config = cls(
                name=str(data.get("name") or "polyglot-code"),
                sandbox=sandbox,
                languages=languages,
                server=ServerConfig(**_section(data, "server")),
                logging=LoggingConfig(**_section(data, "logging")),
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        config.validate()
        return config

    def validate(self) -> None:
        """Reject values the engine cannot work with."""
        from ..languages.registry import default_registry

        registry = default_registry()
        timeouts = {
            "sandbox.default_compile_timeout_seconds": self.sandbox.default_compile_timeout_seconds,
            "sandbox.default_run_timeout_seconds": self.sandbox.default_run_timeout_seconds,
        }
        for language, override in self.languages.items():
            if language not in registry:
                raise ConfigurationError(
                    f"languages.{language} is not a supported language. "
                    f"Supported: {', '.join(registry.languages())}"
                )
            timeouts[f"languages.{language}.compile_timeout_seconds"] = (
                override.compile_timeout_seconds
            )
            timeouts[f"languages.{language}.run_timeout_seconds"] = override.run_timeout_seconds
            if override.run_command is not None and not override.run_command:
                raise ConfigurationError(f"languages.{language}.run_command must not be empty")

        for key, value in timeouts.items():
            if value is None:
                continue
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"{key} must be a positive number, got {value!r}")

        limit = self.server.max_concurrent_executions
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ConfigurationError(
                f"server.max_concurrent_executions must be an integer of at least 1, got {limit!r}"
            )

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to file."""
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            data = asdict(self)
            with open(config_path, "w", encoding="utf-8") as f:
                if config_path.suffix.lower() == ".json":
                    json.dump(data, f, indent=2)
                else:
                    yaml.safe_dump(data, f, default_flow_style=False, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}") from e

    @classmethod
    def create_default(cls, project_name: str = "polyglot-code") -> "ProjectConfig":
        """Create default configuration."""
        return cls(name=project_name)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value.copy()


class ConfigManager:
    """Manages project configuration."""

    CONFIG_FILENAME = "polyglot_config.yaml"

    def __init__(self, project_root: Path | None = None, config_path: Path | None = None):
        self.project_root = project_root or Path.cwd()
        self.config_path = config_path or self.project_root / self.CONFIG_FILENAME
        self._explicit_path = config_path is not None
        self._config: ProjectConfig | None = None

    @property
    def config(self) -> ProjectConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self.load_config()
        return self._config

    def load_config(self) -> ProjectConfig:
        """Load configuration from file, falling back to defaults."""
        if self.config_path.exists() or self._explicit_path:
            self._config = ProjectConfig.load_from_file(self.config_path)
        else:
            self._config = ProjectConfig.create_default()
        return self._config

    def save_config(self) -> None:
        """Save current configuration to file."""
        if self._config is None:
            raise ConfigurationError("No configuration to save")
        self._config.save_to_file(self.config_path)

    def is_project_initialized(self) -> bool:
        """Check if a config file exists at the configured path."""
        return self.config_path.exists()
