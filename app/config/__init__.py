"""Deployment configuration loaded from JSON with environment overrides."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, MutableMapping

CONFIG_PATH_ENV = "ONIONDEPLOY_CONFIG"
ENV_PREFIX = "ONIONDEPLOY_"
ENV_SEPARATOR = "__"
DEFAULT_CONFIG_NAME = "oniondeploy.json"
DEFAULT_TIMESTAMP_URL = "http://timestamp.acs.microsoft.com"
DEFAULT_UPGRADE_MANIFEST_NAME = "ONIONFRUITUPGRADE"

_TRUTHY = {"true", "yes", "1", "on"}
_RESERVED_ENV_KEYS = {"CONFIG", "LOG_FILE", "LOG_DIR"}
_DEPLOY_CONFIG_CACHE: DeployConfig | None = None


@dataclass(frozen=True)
class GitHubConfig:
    """Credentials for the release host."""

    user: str = ""
    repo: str = ""
    token: str = ""


@dataclass(frozen=True)
class VelopackConfig:
    """Packaging metadata passed to ``vpk pack``."""

    package_id: str = ""
    package_icon: str = ""
    title: str = "OnionFruit"
    authors: str = "DragonFruit Network"


@dataclass(frozen=True)
class CodeSignConfig:
    """Authenticode signing inputs for Windows installers."""

    certificate: str = ""
    password: str = ""
    timestamp_url: str = DEFAULT_TIMESTAMP_URL


@dataclass(frozen=True)
class WindowsConfig:
    main_exe: str = "DragonFruit.OnionFruit.Windows.exe"
    upgrade_manifest_name: str = DEFAULT_UPGRADE_MANIFEST_NAME


@dataclass(frozen=True)
class MacOSConfig:
    """Inputs used to assemble and distribute the macOS app bundle."""

    main_exe: str = "onionfruit"
    bundle_name: str = ""
    icons_directory: str = ""
    info_plist: str = ""
    entitlements_plist: str = ""
    code_signing_identity: str = ""
    create_install_dmg: bool = False
    notary_keychain_profile: str = ""
    launch_daemons: str = ""
    launch_agents: str = ""
    login_items: str = ""


@dataclass(frozen=True)
class DeployConfig:
    """Structured configuration for a deployment run."""

    solution_name: str = ""
    skip_build: bool = False
    debug: bool = False
    github: GitHubConfig = field(default_factory=GitHubConfig)
    velopack: VelopackConfig = field(default_factory=VelopackConfig)
    code_sign: CodeSignConfig = field(default_factory=CodeSignConfig)
    windows: WindowsConfig = field(default_factory=WindowsConfig)
    macos: MacOSConfig = field(default_factory=MacOSConfig)

    @property
    def can_use_github(self) -> bool:
        return bool(self.github.token and self.github.repo and self.github.user)

    @property
    def github_repo_url(self) -> str:
        if not self.can_use_github:
            return ""
        return f"https://github.com/{self.github.user}/{self.github.repo}"

    @property
    def app_bundle_name(self) -> str:
        name = self.macos.bundle_name or f"{self.velopack.title}.app"
        return name if name.endswith(".app") else f"{name}.app"


def get_deploy_config() -> DeployConfig:
    """Return the cached deployment configuration."""

    global _DEPLOY_CONFIG_CACHE
    if _DEPLOY_CONFIG_CACHE is None:
        _DEPLOY_CONFIG_CACHE = load_deploy_config()
    return _DEPLOY_CONFIG_CACHE


def reset_deploy_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _DEPLOY_CONFIG_CACHE
    _DEPLOY_CONFIG_CACHE = None


def load_deploy_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> DeployConfig:
    """Load configuration from ``path`` (or the default file) plus ``environ`` overrides."""

    env = os.environ if environ is None else environ
    data = _read_config_data(path, env)
    _apply_env_overrides(data, env)

    github = _section(data, "GitHub")
    velopack = _section(data, "Velopack")
    code_sign = _section(data, "CodeSign")
    windows = _section(data, "Windows")
    macos = _section(data, "MacOS")

    return DeployConfig(
        solution_name=_string(data, "SolutionName"),
        skip_build=_bool(data, "SkipBuild"),
        debug=_bool(data, "Debug"),
        github=GitHubConfig(
            user=_string(github, "User"),
            repo=_string(github, "Repo"),
            token=_string(github, "Token"),
        ),
        velopack=VelopackConfig(
            package_id=_string(velopack, "PackageId"),
            package_icon=_string(velopack, "PackageIcon"),
            title=_string(velopack, "Title", VelopackConfig.title),
            authors=_string(velopack, "Authors", VelopackConfig.authors),
        ),
        code_sign=CodeSignConfig(
            certificate=_string(code_sign, "Certificate"),
            password=_string(code_sign, "Password"),
            timestamp_url=_string(code_sign, "TimestampUrl", DEFAULT_TIMESTAMP_URL),
        ),
        windows=WindowsConfig(
            main_exe=_string(windows, "MainExe", WindowsConfig.main_exe),
            upgrade_manifest_name=_string(
                windows, "UpgradeManifestName", DEFAULT_UPGRADE_MANIFEST_NAME
            ),
        ),
        macos=MacOSConfig(
            main_exe=_string(macos, "MainExe", MacOSConfig.main_exe),
            bundle_name=_string(macos, "BundleName"),
            icons_directory=_string(macos, "IconsDirectory"),
            info_plist=_string(macos, "InfoPlist"),
            entitlements_plist=_string(macos, "EntitlementsPlist"),
            code_signing_identity=_string(macos, "CodeSigningIdentity"),
            create_install_dmg=_bool(macos, "CreateInstallDmg"),
            notary_keychain_profile=_string(macos, "NotaryKeychainProfile"),
            launch_daemons=_string(macos, "LaunchDaemons"),
            launch_agents=_string(macos, "LaunchAgents"),
            login_items=_string(macos, "LoginItems"),
        ),
    )


def _read_config_data(path: str | Path | None, env: Mapping[str, str]) -> dict[str, Any]:
    if path is None:
        override = env.get(CONFIG_PATH_ENV)
        path = Path(override) if override else Path.cwd() / DEFAULT_CONFIG_NAME
    try:
        raw = Path(path).expanduser().read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, dict):
        return parsed
    return {}


def _apply_env_overrides(data: MutableMapping[str, Any], env: Mapping[str, str]) -> None:
    for name, value in env.items():
        if not name.upper().startswith(ENV_PREFIX):
            continue
        key_path = name[len(ENV_PREFIX):]
        if not key_path or key_path.upper() in _RESERVED_ENV_KEYS:
            continue
        segments = [segment for segment in key_path.split(ENV_SEPARATOR) if segment]
        if not segments:
            continue

        target: MutableMapping[str, Any] = data
        for segment in segments[:-1]:
            key = _match_key(target, segment)
            child = target.get(key)
            if not isinstance(child, dict):
                child = {}
                target[key] = child
            target = child
        target[_match_key(target, segments[-1])] = value


def _match_key(mapping: Mapping[str, Any], candidate: str) -> str:
    lowered = candidate.lower()
    for key in mapping:
        if key.lower() == lowered:
            return key
    return candidate


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(_match_key(data, name))
    if isinstance(value, Mapping):
        return value
    return {}


def _string(section: Mapping[str, Any], key: str, default: str = "") -> str:
    value = section.get(_match_key(section, key))
    if value is None or isinstance(value, (Mapping, list)):
        return default
    text = str(value).strip()
    return text or default


def _bool(section: Mapping[str, Any], key: str) -> bool:
    value = section.get(_match_key(section, key))
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    if isinstance(value, (int, float)):
        return value != 0
    return False


__all__ = [
    "CodeSignConfig",
    "DeployConfig",
    "GitHubConfig",
    "MacOSConfig",
    "VelopackConfig",
    "WindowsConfig",
    "get_deploy_config",
    "load_deploy_config",
    "reset_deploy_config_cache",
]
