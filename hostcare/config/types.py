from dataclasses import dataclass, field
from pathlib import Path

SYSINTERNALS_URL = "https://download.sysinternals.com/files/SysinternalsSuite.zip"


@dataclass
class ArtifactSettings:
    url: str
    install_dir: Path
    marker_name: str = "Version.txt"


@dataclass
class SelectionConfig:
    exclude: list[str] | None = None
    include: list[str] | None = None


@dataclass
class Settings:
    temp_dirs: list[Path]
    system_root: Path
    program_data: Path
    sysinternals: ArtifactSettings
    selections: dict[str, SelectionConfig] = field(default_factory=dict)

    @property
    def temp_dir(self) -> Path:
        return self.temp_dirs[0]

    def selection_for(self, runner: str) -> SelectionConfig:
        return self.selections.get(runner, SelectionConfig())


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
