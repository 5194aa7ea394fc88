from __future__ import annotations

import locale
import logging
import sys
from contextlib import contextmanager
from typing import Iterable, Iterator

from hostcare.host.process import Spawner, run_process
from hostcare.host.types import Volume

from .types import (
    Classification,
    Intent,
    Operation,
    Outcome,
    ToolInvocation,
    ToolResult,
    VolumeCheck,
)

logger = logging.getLogger(__name__)

# CBS_E_PENDING (0x800F0806) as a signed 32-bit value.
DISM_PENDING_OPERATIONS = -2146498554

CHKDSK_REQUIRES_CLEANUP = 2
CHKDSK_CONTAINS_ERRORS = 3

SFC_OUTPUT_ENCODING = "utf-16-le"

ONLINE_VERIFY_FILESYSTEMS = frozenset({"NTFS", "FAT", "FAT16", "FAT32", "EXFAT"})
ONLINE_REPAIR_FILESYSTEMS = frozenset({"NTFS"})

_DISM = ("dism.exe", "/Online", "/Cleanup-Image")

_COMMANDS: dict[Operation, dict[Intent, tuple[str, ...]]] = {
    Operation.COMPONENT_STORE_ANALYSIS: {
        Intent.VERIFY: (*_DISM, "/AnalyzeComponentStore"),
        Intent.REPAIR: (*_DISM, "/AnalyzeComponentStore"),
    },
    Operation.COMPONENT_STORE_SCAN: {
        Intent.VERIFY: (*_DISM, "/ScanHealth"),
        Intent.REPAIR: (*_DISM, "/RestoreHealth"),
    },
    Operation.COMPONENT_STORE_CLEANUP: {
        Intent.VERIFY: (*_DISM, "/AnalyzeComponentStore"),
        Intent.REPAIR: (*_DISM, "/StartComponentCleanup"),
    },
    Operation.SYSTEM_FILE_CHECK: {
        Intent.VERIFY: ("sfc.exe", "/VERIFYONLY"),
        Intent.REPAIR: ("sfc.exe", "/SCANNOW"),
    },
    Operation.FILESYSTEM_CHECK: {
        Intent.VERIFY: ("chkdsk.exe",),
        Intent.REPAIR: ("chkdsk.exe", "/scan"),
    },
}

_COMPONENT_STORE_OPERATIONS = (
    Operation.COMPONENT_STORE_ANALYSIS,
    Operation.COMPONENT_STORE_SCAN,
    Operation.COMPONENT_STORE_CLEANUP,
)


def build_command(
    operation: Operation, intent: Intent, target: str | None = None
) -> list[str]:
    args = list(_COMMANDS[operation][intent])
    if operation is Operation.FILESYSTEM_CHECK:
        if not target:
            raise ValueError("filesystem check requires a target volume")
        # chkdsk takes the volume before its switches
        args.insert(1, target)
    elif target is not None:
        raise ValueError(f"{operation.value} does not take a target")
    return args


def signed_exit_code(code: int) -> int:
    """Windows reports exit codes as unsigned DWORDs."""
    if code > 0x7FFFFFFF:
        return code - (1 << 32)
    return code


def classify(invocation: ToolInvocation) -> Classification:
    code = invocation.exit_code
    operation = invocation.operation

    if code == 0:
        if operation is Operation.FILESYSTEM_CHECK:
            return Classification(Outcome.SUCCESS, f"{invocation.target} is clean")
        return Classification(Outcome.SUCCESS, f"{operation.value} succeeded")

    if operation in _COMPONENT_STORE_OPERATIONS and code == DISM_PENDING_OPERATIONS:
        return Classification(
            Outcome.PENDING_OPERATIONS,
            "component store has pending operations, retry after a reboot",
        )

    if operation is Operation.FILESYSTEM_CHECK:
        if code == CHKDSK_REQUIRES_CLEANUP:
            return Classification(
                Outcome.REQUIRES_CLEANUP, f"{invocation.target} requires cleanup"
            )
        if code == CHKDSK_CONTAINS_ERRORS:
            return Classification(
                Outcome.CONTAINS_ERRORS, f"{invocation.target} contains errors"
            )

    return Classification(
        Outcome.FAILURE, f"{operation.value} failed with exit code {code}"
    )


def default_console_encoding() -> str:
    # console tools write in the OEM code page, which Python only knows on Windows
    if sys.platform == "win32":
        return "oem"
    return locale.getpreferredencoding(False)


class ToolInvoker:
    def __init__(self, spawn: Spawner = run_process, *, encoding: str | None = None):
        self.spawn = spawn
        self.encoding = encoding or default_console_encoding()

    @contextmanager
    def output_encoding(self, encoding: str) -> Iterator[None]:
        previous = self.encoding
        self.encoding = encoding
        try:
            yield
        finally:
            self.encoding = previous

    def invoke(
        self,
        operation: Operation,
        intent: Intent = Intent.VERIFY,
        target: str | None = None,
    ) -> ToolResult:
        args = build_command(operation, intent, target)

        if operation is Operation.SYSTEM_FILE_CHECK:
            with self.output_encoding(SFC_OUTPUT_ENCODING):
                invocation = self._capture(args, operation, intent, target)
        else:
            invocation = self._capture(args, operation, intent, target)

        classification = classify(invocation)
        log = logger.warning if classification.failed else logger.info
        log("%s: %s", " ".join(args), classification.message)
        return ToolResult(invocation, classification)

    def check_volumes(
        self, volumes: Iterable[Volume], intent: Intent = Intent.VERIFY
    ) -> list[VolumeCheck]:
        checks: list[VolumeCheck] = []
        for volume in volumes:
            fs = volume.file_system.upper()
            if fs not in ONLINE_VERIFY_FILESYSTEMS:
                logger.debug("not scanning %s (%s)", volume.path, volume.file_system)
                continue

            if intent is Intent.REPAIR and fs not in ONLINE_REPAIR_FILESYSTEMS:
                logger.info(
                    "skipping %s: %s can't be repaired online",
                    volume.path,
                    volume.file_system,
                )
                checks.append(VolumeCheck(volume, None))
                continue

            result = self.invoke(Operation.FILESYSTEM_CHECK, intent, volume.path)
            checks.append(VolumeCheck(volume, result))

        return checks

    def _capture(
        self,
        args: list[str],
        operation: Operation,
        intent: Intent,
        target: str | None,
    ) -> ToolInvocation:
        proc = self.spawn(args)
        text = proc.stdout.decode(self.encoding, errors="replace")
        lines = tuple(line.rstrip() for line in text.splitlines() if line.strip())
        return ToolInvocation(
            operation=operation,
            intent=intent,
            target=target,
            output=lines,
            exit_code=signed_exit_code(proc.returncode),
        )
