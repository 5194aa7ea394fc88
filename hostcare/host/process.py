from __future__ import annotations

import logging
import subprocess
from typing import Callable, Sequence

from .types import FeatureUnavailable, ProcessOutput

logger = logging.getLogger(__name__)

Spawner = Callable[[Sequence[str]], ProcessOutput]


def run_process(args: Sequence[str]) -> ProcessOutput:
    """Run a command to completion and return its raw stdout and exit code.

    There is no timeout: a hung tool blocks the caller.
    """
    logger.debug("spawning %s", " ".join(args))
    try:
        result = subprocess.run(list(args), capture_output=True)
    except FileNotFoundError as exc:
        raise FeatureUnavailable(f"{args[0]} not found") from exc

    return ProcessOutput(tuple(args), result.stdout, result.returncode)
