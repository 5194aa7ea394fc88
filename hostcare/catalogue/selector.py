from __future__ import annotations

from typing import Iterable

from .types import Catalogue, SelectionError, UnknownTaskError

TaskSelection = dict[str, bool]


def select_tasks(
    catalogue: Catalogue,
    *,
    exclude: Iterable[str] | None = None,
    include: Iterable[str] | None = None,
) -> TaskSelection:
    """Resolve which catalogue tasks are enabled for one run.

    ``exclude`` enables everything not named (an empty set means run all).
    ``include`` enables only what is named and must not be empty. Passing
    both is a usage error. Unknown names are rejected in either mode.
    """
    if exclude is not None and include is not None:
        raise SelectionError(
            f"{catalogue.runner}: exclude and include are mutually exclusive"
        )

    if include is not None:
        wanted = set(include)
        if not wanted:
            raise SelectionError(f"{catalogue.runner}: include set can't be empty")
        _check_known(catalogue, wanted)
        return {name: name in wanted for name in catalogue.names()}

    skipped = set(exclude or ())
    _check_known(catalogue, skipped)
    return {name: name not in skipped for name in catalogue.names()}


def enabled_names(selection: TaskSelection) -> list[str]:
    return [name for name, enabled in selection.items() if enabled]


def _check_known(catalogue: Catalogue, names: set[str]) -> None:
    unknown = sorted(name for name in names if name not in catalogue)
    if unknown:
        raise UnknownTaskError(catalogue.runner, unknown)
