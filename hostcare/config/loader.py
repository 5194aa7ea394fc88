import json
import os
import platform
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import (
    SYSINTERNALS_URL,
    ArtifactSettings,
    ConfigError,
    SelectionConfig,
    Settings,
    UnsupportedConfigFormatError,
)

RUNNER_NAMES = ("inventory", "healthcheck", "maintenance")


def default_settings(
    environ: Mapping[str, str] | None = None, os_64bit: bool | None = None
) -> Settings:
    if environ is None:
        environ = os.environ
    if os_64bit is None:
        os_64bit = platform.machine().endswith("64")

    system_root = Path(environ.get("SystemRoot", r"C:\Windows"))
    program_data = Path(environ.get("ProgramData", r"C:\ProgramData"))

    # a 32-bit interpreter on a 64-bit OS sees the x86 ProgramFiles
    program_files = environ.get("ProgramW6432") if os_64bit else None
    program_files = program_files or environ.get("ProgramFiles", r"C:\Program Files")

    temp_dirs: list[Path] = []
    for candidate in (environ.get("TEMP"), environ.get("TMP"), system_root / "Temp"):
        if candidate and Path(candidate) not in temp_dirs:
            temp_dirs.append(Path(candidate))

    return Settings(
        temp_dirs=temp_dirs,
        system_root=system_root,
        program_data=program_data,
        sysinternals=ArtifactSettings(
            url=SYSINTERNALS_URL,
            install_dir=Path(program_files) / "Sysinternals",
        ),
    )


def load_settings(
    path: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> Settings:
    settings = default_settings(environ)
    if path is None:
        return settings

    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Config file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Config path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    return _apply(settings, raw_file)


def _detect_format(path: Path) -> str:
    fmt = path.suffix
    match fmt:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case _:
            raise UnsupportedConfigFormatError(
                f"Non supported file extension: {fmt}\n Expected format: .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    match fmt:
        case "yaml":
            try:
                raw_file = yaml.safe_load(text)
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: invalid YAML") from exc
        case "toml":
            try:
                raw_file = tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"{path}: invalid TOML") from exc
        case "json":
            try:
                raw_file = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"{path}: invalid JSON") from exc
        case _:
            raise AssertionError("Unreachable")

    # an empty YAML document means "all defaults"
    if raw_file is None and fmt == "yaml":
        return {}

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: parsed succesfully but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _apply(settings: Settings, raw: Mapping[str, Any]) -> Settings:
    keys = {"temp_dirs", "system_root", "program_data", "sysinternals", *RUNNER_NAMES}

    for field in raw.keys():
        if field not in keys:
            raise ConfigError(f"Can't process: {field}")

    if "temp_dirs" in raw:
        temp_dirs = _string_list(raw["temp_dirs"], "temp_dirs")
        if len(temp_dirs) < 1:
            raise ConfigError("temp_dirs: at least one directory is required")
        settings.temp_dirs = [Path(item) for item in temp_dirs]

    if "system_root" in raw:
        settings.system_root = Path(_string(raw["system_root"], "system_root"))

    if "program_data" in raw:
        settings.program_data = Path(_string(raw["program_data"], "program_data"))

    if "sysinternals" in raw:
        settings.sysinternals = _build_artifact(
            settings.sysinternals, raw["sysinternals"]
        )

    for runner in RUNNER_NAMES:
        if runner in raw:
            settings.selections[runner] = _build_selection(runner, raw[runner])

    return settings


def _build_artifact(defaults: ArtifactSettings, fields: Any) -> ArtifactSettings:
    if not isinstance(fields, Mapping):
        raise ConfigError("sysinternals must be a mapping")

    keys = {"url", "install_dir", "marker_name"}
    for field in fields.keys():
        if field not in keys:
            raise ConfigError(f"sysinternals: Can't process: {field}")

    artifact = ArtifactSettings(
        defaults.url, defaults.install_dir, defaults.marker_name
    )

    if "url" in fields:
        url = _string(fields["url"], "sysinternals.url")
        if not url.startswith(("http://", "https://")):
            raise ConfigError(f"sysinternals.url: expected an http(s) URL, got {url}")
        artifact.url = url

    if "install_dir" in fields:
        artifact.install_dir = Path(
            _string(fields["install_dir"], "sysinternals.install_dir")
        )

    if "marker_name" in fields:
        marker = _string(fields["marker_name"], "sysinternals.marker_name")
        if "/" in marker or "\\" in marker:
            raise ConfigError("sysinternals.marker_name must be a plain file name")
        artifact.marker_name = marker

    return artifact


def _build_selection(runner: str, fields: Any) -> SelectionConfig:
    if not isinstance(fields, Mapping):
        raise ConfigError(f"{runner} must be a mapping")

    for field in fields.keys():
        if field not in {"exclude", "include"}:
            raise ConfigError(f"{runner}: Can't process: {field}")

    if "exclude" in fields and "include" in fields:
        raise ConfigError(f"{runner}: exclude and include are mutually exclusive")

    selection = SelectionConfig()
    if "exclude" in fields:
        selection.exclude = _string_list(fields["exclude"], f"{runner}.exclude")
    if "include" in fields:
        selection.include = _string_list(fields["include"], f"{runner}.include")
        if len(selection.include) < 1:
            raise ConfigError(f"{runner}.include can't be empty")
    return selection


def _string(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{name} should be a string")

    if len(value.strip()) < 1:
        raise ConfigError(f"{name}: Please provide a string or remove this field")

    return value.strip()


def _string_list(value: Any, name: str) -> list[str]:
    if not isinstance(value, list):
        raise ConfigError(f"{name} should be a list")

    items: list[str] = []
    for item in value:
        text = _string(item, f"{name} item")
        # duplicates are ignored
        if text not in items:
            items.append(text)
    return items
