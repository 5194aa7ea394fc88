from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable

from hostcare.catalogue import Catalogue, TaskSpec, TaskSelection, select_tasks
from hostcare.host.types import FeatureUnavailable, HostcareError, NotApplicableError
from hostcare.tools.types import ToolNonZeroExit

from .types import (
    Failed,
    NotApplicable,
    Ok,
    PrivilegeRequiredError,
    Report,
    Skipped,
    TaskResult,
    Unavailable,
)

logger = logging.getLogger(__name__)

_RESULT_TYPES = (Skipped, Ok, NotApplicable, Unavailable, Failed)


class TaskRunner:
    """Run the enabled tasks of one catalogue, in catalogue order.

    Every task receives the same ``context`` object and nothing else; a task
    failing never stops the tasks after it. The only run-wide abort is the
    privilege precondition, checked before the first task starts.
    """

    def __init__(
        self,
        catalogue: Catalogue,
        context: Any,
        *,
        is_elevated: Callable[[], bool],
    ):
        self.catalogue = catalogue
        self.context = context
        self.is_elevated = is_elevated

    def run(
        self,
        *,
        exclude: Iterable[str] | None = None,
        include: Iterable[str] | None = None,
    ) -> Report:
        selection = select_tasks(self.catalogue, exclude=exclude, include=include)
        self._require_privilege(selection)

        results: dict[str, TaskResult] = {}
        for spec in self.catalogue:
            if not selection[spec.name]:
                logger.debug("%s: skipped", spec.name)
                results[spec.name] = Skipped()
                continue
            results[spec.name] = self._execute(spec)

        return Report.collect(self.catalogue, results)

    def _require_privilege(self, selection: TaskSelection) -> None:
        privileged = [
            spec.name
            for spec in self.catalogue
            if spec.privileged and selection[spec.name]
        ]
        if privileged and not self.is_elevated():
            raise PrivilegeRequiredError(self.catalogue.runner, privileged)

    def _execute(self, spec: TaskSpec) -> TaskResult:
        logger.info("%s: running", spec.name)
        start = time.monotonic()
        try:
            outcome = spec.run(self.context)
            result = outcome if isinstance(outcome, _RESULT_TYPES) else Ok(outcome)
        except FeatureUnavailable as exc:
            result = Unavailable(str(exc))
        except NotApplicableError as exc:
            result = NotApplicable(str(exc))
        except ToolNonZeroExit as exc:
            result = Failed(str(exc), exc.result)
        except HostcareError as exc:
            result = Failed(str(exc))
        except Exception as exc:
            logger.exception("%s: unexpected error", spec.name)
            result = Failed(f"{type(exc).__name__}: {exc}")
        duration = time.monotonic() - start

        log = logger.warning if isinstance(result, Failed) else logger.info
        log("%s: %s (%.3fs)", spec.name, _describe(result), duration)
        return result


def _describe(result: TaskResult) -> str:
    match result:
        case Failed(reason=reason) | Unavailable(reason=reason) | NotApplicable(
            reason=reason
        ):
            return f"{result.status}: {reason}"
        case _:
            return result.status
