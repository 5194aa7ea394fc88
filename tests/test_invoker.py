from __future__ import annotations

import pytest

from hostcare.host import ProcessOutput, Volume
from hostcare.tools import (
    Intent,
    Operation,
    Outcome,
    ToolInvocation,
    ToolInvoker,
    ToolNonZeroExit,
    build_command,
    classify,
)
from hostcare.tools.invoker import DISM_PENDING_OPERATIONS, signed_exit_code


def _invocation(operation: Operation, code: int, target: str | None = None):
    return ToolInvocation(operation, Intent.VERIFY, target, (), code)


@pytest.mark.parametrize("operation", list(Operation))
def test_exit_code_zero_is_success(operation: Operation):
    target = "C:" if operation is Operation.FILESYSTEM_CHECK else None
    assert classify(_invocation(operation, 0, target)).outcome is Outcome.SUCCESS


def test_dism_pending_operations_is_not_a_failure():
    c = classify(_invocation(Operation.COMPONENT_STORE_SCAN, DISM_PENDING_OPERATIONS))
    assert c.outcome is Outcome.PENDING_OPERATIONS
    assert not c.failed
    assert c.warning


def test_dism_other_code_is_failure_with_code():
    c = classify(_invocation(Operation.COMPONENT_STORE_CLEANUP, 87))
    assert c.outcome is Outcome.FAILURE
    assert "87" in c.message


def test_sfc_pending_code_is_plain_failure():
    c = classify(_invocation(Operation.SYSTEM_FILE_CHECK, DISM_PENDING_OPERATIONS))
    assert c.outcome is Outcome.FAILURE


@pytest.mark.parametrize(
    "code, outcome",
    [
        (2, Outcome.REQUIRES_CLEANUP),
        (3, Outcome.CONTAINS_ERRORS),
        (1, Outcome.FAILURE),
        (4, Outcome.FAILURE),
    ],
)
def test_chkdsk_exit_codes(code: int, outcome: Outcome):
    c = classify(_invocation(Operation.FILESYSTEM_CHECK, code, "C:"))
    assert c.outcome is outcome
    assert c.failed is (outcome is Outcome.FAILURE)
    if c.failed:
        assert str(code) in c.message


def test_unsigned_exit_codes_are_normalised():
    assert signed_exit_code(0x800F0806) == DISM_PENDING_OPERATIONS
    assert signed_exit_code(3) == 3


def test_command_forms_follow_intent():
    assert build_command(Operation.SYSTEM_FILE_CHECK, Intent.VERIFY) == [
        "sfc.exe",
        "/VERIFYONLY",
    ]
    assert build_command(Operation.SYSTEM_FILE_CHECK, Intent.REPAIR) == [
        "sfc.exe",
        "/SCANNOW",
    ]
    assert build_command(Operation.COMPONENT_STORE_SCAN, Intent.VERIFY)[-1] == "/ScanHealth"
    assert build_command(Operation.COMPONENT_STORE_SCAN, Intent.REPAIR)[-1] == "/RestoreHealth"
    assert build_command(Operation.FILESYSTEM_CHECK, Intent.VERIFY, "D:") == [
        "chkdsk.exe",
        "D:",
    ]
    assert build_command(Operation.FILESYSTEM_CHECK, Intent.REPAIR, "D:") == [
        "chkdsk.exe",
        "D:",
        "/scan",
    ]


def test_command_target_rules():
    with pytest.raises(ValueError):
        build_command(Operation.FILESYSTEM_CHECK, Intent.VERIFY)
    with pytest.raises(ValueError):
        build_command(Operation.SYSTEM_FILE_CHECK, Intent.VERIFY, "C:")


def test_invoke_captures_lines_in_order(spawner):
    spawner.responses["dism.exe"] = (b"line one\r\n\r\nline two\r\n", 0)
    invoker = ToolInvoker(spawner, encoding="utf-8")

    result = invoker.invoke(Operation.COMPONENT_STORE_ANALYSIS)

    assert result.invocation.output == ("line one", "line two")
    assert result.exit_code == 0
    assert spawner.calls == [
        ("dism.exe", "/Online", "/Cleanup-Image", "/AnalyzeComponentStore")
    ]


def test_sfc_output_is_decoded_as_utf16_and_encoding_restored(spawner):
    text = "Windows Resource Protection did not find any integrity violations.\r\n"
    spawner.responses["sfc.exe"] = (text.encode("utf-16-le"), 0)
    invoker = ToolInvoker(spawner, encoding="cp437")

    result = invoker.invoke(Operation.SYSTEM_FILE_CHECK, Intent.REPAIR)

    assert result.invocation.output == (text.strip(),)
    assert invoker.encoding == "cp437"


def test_encoding_is_restored_when_spawn_fails():
    def broken(args):
        raise OSError("spawn failed")

    invoker = ToolInvoker(broken, encoding="cp437")

    with pytest.raises(OSError):
        invoker.invoke(Operation.SYSTEM_FILE_CHECK)

    assert invoker.encoding == "cp437"


def test_raise_for_failure(spawner):
    spawner.responses["sfc.exe"] = (b"", 1)
    invoker = ToolInvoker(spawner, encoding="utf-8")

    result = invoker.invoke(Operation.SYSTEM_FILE_CHECK)

    with pytest.raises(ToolNonZeroExit) as e:
        result.raise_for_failure()
    assert e.value.result is result


def test_check_volumes_filters_by_filesystem(spawner):
    volumes = [
        Volume("C:", "NTFS"),
        Volume("D:", "FAT32"),
        Volume("E:", "ReFS"),
    ]
    invoker = ToolInvoker(spawner, encoding="utf-8")

    verify = invoker.check_volumes(volumes, Intent.VERIFY)
    assert [c.volume.path for c in verify] == ["C:", "D:"]
    assert all(c.supported for c in verify)

    spawner.calls.clear()
    repair = invoker.check_volumes(volumes, Intent.REPAIR)
    assert [(c.volume.path, c.status) for c in repair] == [
        ("C:", "success"),
        ("D:", "unsupported"),
    ]
    assert spawner.calls == [("chkdsk.exe", "C:", "/scan")]
