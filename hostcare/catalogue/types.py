from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterator


@dataclass(frozen=True)
class TaskSpec:
    name: str
    run: Callable[..., Any]
    privileged: bool = False


@dataclass(frozen=True)
class Catalogue:
    runner: str
    tasks: tuple[TaskSpec, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for spec in self.tasks:
            if spec.name in seen:
                raise ValueError(f"{self.runner}: duplicate task name '{spec.name}'")
            seen.add(spec.name)

    def __iter__(self) -> Iterator[TaskSpec]:
        return iter(self.tasks)

    def __len__(self) -> int:
        return len(self.tasks)

    def __contains__(self, name: object) -> bool:
        return any(spec.name == name for spec in self.tasks)

    def names(self) -> list[str]:
        return [spec.name for spec in self.tasks]


class SelectionError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnknownTaskError(SelectionError):
    def __init__(self, runner: str, names: list[str]):
        super().__init__(f"{runner}: unknown task(s): " + ", ".join(names))
        self.names = names
