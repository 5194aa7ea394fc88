from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import PurePath
from typing import Any, ClassVar, Iterator, Mapping, Union

from hostcare.catalogue import Catalogue


@dataclass(frozen=True)
class Skipped:
    status: ClassVar[str] = "skipped"


@dataclass(frozen=True)
class Ok:
    payload: Any = None
    status: ClassVar[str] = "ok"


@dataclass(frozen=True)
class NotApplicable:
    reason: str
    status: ClassVar[str] = "not_applicable"


@dataclass(frozen=True)
class Unavailable:
    reason: str
    status: ClassVar[str] = "unavailable"


@dataclass(frozen=True)
class Failed:
    reason: str
    detail: Any = None
    status: ClassVar[str] = "failed"


TaskResult = Union[Skipped, Ok, NotApplicable, Unavailable, Failed]


def result_to_dict(result: TaskResult) -> dict[str, Any]:
    match result:
        case Skipped():
            return {"status": result.status}
        case Ok(payload=payload):
            return {"status": result.status, "payload": to_jsonable(payload)}
        case Failed(reason=reason, detail=detail):
            out: dict[str, Any] = {"status": result.status, "reason": reason}
            if detail is not None:
                out["detail"] = to_jsonable(detail)
            return out
        case NotApplicable(reason=reason) | Unavailable(reason=reason):
            return {"status": result.status, "reason": reason}
        case _:
            raise TypeError(f"not a task result: {result!r}")


def to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
        for name in getattr(value, "derived_fields", ()):
            out[name] = to_jsonable(getattr(value, name))
        return out
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.strftime("%Y%m%d")
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class Report(Mapping[str, TaskResult]):
    """Per-task results of one run, keyed in catalogue order."""

    runner: str
    results: dict[str, TaskResult] = field(default_factory=dict)

    @classmethod
    def collect(
        cls, catalogue: Catalogue, results: Mapping[str, TaskResult]
    ) -> Report:
        names = catalogue.names()
        missing = [name for name in names if name not in results]
        extra = sorted(set(results) - set(names))
        if missing or extra:
            raise ValueError(
                f"{catalogue.runner}: report doesn't match catalogue "
                f"(missing={missing}, extra={extra})"
            )
        return cls(catalogue.runner, {name: results[name] for name in names})

    def __getitem__(self, name: str) -> TaskResult:
        return self.results[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> list[str]:
        return [name for name, r in self.results.items() if isinstance(r, Failed)]

    def to_dict(self) -> dict[str, Any]:
        return {name: result_to_dict(r) for name, r in self.results.items()}


class PrivilegeRequiredError(Exception):
    def __init__(self, runner: str, tasks: list[str]):
        super().__init__(
            f"{runner}: administrator privileges are required for: " + ", ".join(tasks)
        )
        self.runner = runner
        self.tasks = tasks
