"""Azure OpenAI settings: YAML file first, environment variables on top."""
from __future__ import annotations
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from yaml_prompt_invoker.common.errors import ConfigurationInvalid, ConfigurationMissing

LOGGER = logging.getLogger("yaml_prompt_invoker.config")

DEFAULT_SETTINGS_PATH = "configs/appsettings.yaml"
DEFAULT_API_VERSION = "2024-06-01"

# field -> (environment variable, key in the legacy ``AzureOpenAI`` section)
_SOURCES = {
    "endpoint": ("AZURE_OPENAI_ENDPOINT", "Endpoint"),
    "deployment_name": ("AZURE_OPENAI_DEPLOYMENT_NAME", "DeploymentName"),
    "api_key": ("AZURE_OPENAI_API_KEY", "ApiKey"),
    "api_version": ("AZURE_OPENAI_API_VERSION", "ApiVersion"),
}

REQUIRED = ("endpoint", "deployment_name", "api_key")


@dataclass(frozen=True)
class AzureOpenAISettings:
    endpoint: str = ""
    deployment_name: str = ""
    api_key: str = ""
    api_version: str = DEFAULT_API_VERSION

    def __repr__(self) -> str:
        key = "***" if self.api_key else ""
        return (
            f"AzureOpenAISettings(endpoint={self.endpoint!r}, deployment_name={self.deployment_name!r}, "
            f"api_key={key!r}, api_version={self.api_version!r})"
        )

    def missing(self) -> list[str]:
        """Names of required settings that are unset or blank."""
        return [name for name in REQUIRED if not str(getattr(self, name) or "").strip()]

    def require(self) -> "AzureOpenAISettings":
        missing = self.missing()
        if missing:
            raise ConfigurationMissing([describe(name) for name in missing])
        return self


def describe(name: str) -> str:
    """Human-readable pointer to where a setting can be provided."""
    env, _ = _SOURCES[name]
    return f"azure_openai.{name} (or {env})"


def required_settings() -> list[str]:
    return [describe(name) for name in REQUIRED]


def _file_section(path: Path) -> dict[str, Any]:
    if not path.is_file():
        LOGGER.debug("Settings file %s not found; using environment only", path)
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationInvalid(f"{path}: invalid settings file: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationInvalid(f"{path}: expected a mapping at the top level")

    section: dict[str, Any] = {}
    legacy = data.get("AzureOpenAI")
    if isinstance(legacy, dict):
        for name, (_, legacy_key) in _SOURCES.items():
            if legacy.get(legacy_key) is not None:
                section[name] = legacy[legacy_key]
    current = data.get("azure_openai")
    if isinstance(current, dict):
        section.update({k: v for k, v in current.items() if k in _SOURCES and v is not None})
    return section


def load_settings(
    path: str | Path = DEFAULT_SETTINGS_PATH,
    environ: Mapping[str, str] | None = None,
) -> AzureOpenAISettings:
    """
    Read settings from a YAML (or JSON) file and overlay environment variables.

    Args:
        path: Settings file; a missing file counts as empty.
        environ: Environment mapping, ``os.environ`` by default.
    """
    env = os.environ if environ is None else environ
    values = _file_section(Path(path))
    for name, (env_key, _) in _SOURCES.items():
        if env.get(env_key):
            values[name] = env[env_key]
    known = {f.name for f in fields(AzureOpenAISettings)}
    settings = AzureOpenAISettings(**{k: str(v) for k, v in values.items() if k in known})
    if not settings.api_version:
        settings = replace(settings, api_version=DEFAULT_API_VERSION)
    LOGGER.debug("Loaded settings %r", settings)
    return settings
