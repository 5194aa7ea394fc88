from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar
from enum import Enum

from hostcare.host.types import HostcareError, Volume


class Operation(Enum):
    COMPONENT_STORE_ANALYSIS = "component_store_analysis"
    COMPONENT_STORE_SCAN = "component_store_scan"
    COMPONENT_STORE_CLEANUP = "component_store_cleanup"
    SYSTEM_FILE_CHECK = "system_file_check"
    FILESYSTEM_CHECK = "filesystem_check"


class Intent(Enum):
    VERIFY = "verify"
    REPAIR = "repair"


class Outcome(Enum):
    SUCCESS = "success"
    PENDING_OPERATIONS = "pending_operations"
    REQUIRES_CLEANUP = "requires_cleanup"
    CONTAINS_ERRORS = "contains_errors"
    FAILURE = "failure"


@dataclass(frozen=True)
class ToolInvocation:
    operation: Operation
    intent: Intent
    target: str | None
    output: tuple[str, ...]
    exit_code: int


@dataclass(frozen=True)
class Classification:
    outcome: Outcome
    message: str

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILURE

    @property
    def warning(self) -> bool:
        return self.outcome in (
            Outcome.PENDING_OPERATIONS,
            Outcome.REQUIRES_CLEANUP,
            Outcome.CONTAINS_ERRORS,
        )


@dataclass(frozen=True)
class ToolResult:
    invocation: ToolInvocation
    classification: Classification

    @property
    def exit_code(self) -> int:
        return self.invocation.exit_code

    @property
    def outcome(self) -> Outcome:
        return self.classification.outcome

    def raise_for_failure(self) -> ToolResult:
        if self.classification.failed:
            raise ToolNonZeroExit(self)
        return self


@dataclass(frozen=True)
class VolumeCheck:
    """One volume of a filesystem scan. ``result`` is None when the volume's
    filesystem can't be handled for the requested intent."""

    volume: Volume
    result: ToolResult | None
    derived_fields: ClassVar[tuple[str, ...]] = ("status",)

    @property
    def supported(self) -> bool:
        return self.result is not None

    @property
    def status(self) -> str:
        if self.result is None:
            return "unsupported"
        return self.result.outcome.value


class ToolNonZeroExit(HostcareError):
    def __init__(self, result: ToolResult):
        super().__init__(result.classification.message)
        self.result = result
