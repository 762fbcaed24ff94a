"""Harness error taxonomy.

Fatal errors stop the scenario and hand control to the finalizer.
CleanupError is only ever collected and logged by the teardown controller.
"""

from typing import Optional, Sequence


class HarnessError(Exception):
    """Base class for every failure the harness knows how to report."""


class ProvisioningError(HarnessError):
    """The isolated environment could not be built."""


class InstallError(HarnessError):
    """The SUT could not be (re)installed or never became healthy."""


class NodeRuntimeError(HarnessError):
    """A node/network control operation failed."""


class HostCommandError(HarnessError):
    """A host networking command (ip, ethtool) failed."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"`{' '.join(self.command)}` exited with {returncode}: {stderr.strip()}"
        )


class SUTCommandError(HarnessError):
    """A control-plane command issued to the SUT returned non-success."""

    def __init__(self, command: Sequence[str], exit_code: int, output: str = ""):
        self.command = list(command)
        self.exit_code = exit_code
        self.output = output
        super().__init__(
            f"`{' '.join(self.command)}` exited with {exit_code}: {output.strip()}"
        )


class ScenarioAssertionError(HarnessError, AssertionError):
    """A scenario expectation did not hold."""


class SnapshotMismatchError(ScenarioAssertionError):
    """Two service-table snapshots differ."""

    def __init__(self, label_a: str, label_b: str, text_a: str, text_b: str, diff: str = ""):
        self.label_a = label_a
        self.label_b = label_b
        self.text_a = text_a
        self.text_b = text_b
        message = (
            f"Snapshot '{label_a}' differs from '{label_b}'\n"
            f"--- {label_a} ---\n{text_a}\n"
            f"--- {label_b} ---\n{text_b}"
        )
        if diff:
            message += f"\n--- diff ---\n{diff}"
        super().__init__(message)


class InvariantViolationError(ScenarioAssertionError):
    """The consistent-hash table does not match the registered backends."""

    def __init__(self, message: str, dump: Optional[str] = None):
        self.dump = dump
        if dump:
            message = f"{message}\n{dump}"
        super().__init__(message)


class ProbeFailedError(ScenarioAssertionError):
    """A connectivity probe attempt failed."""

    def __init__(self, target: str, attempt: int, attempts: int):
        self.target = target
        self.attempt = attempt
        self.attempts = attempts
        super().__init__(f"Failed {attempt}/{attempts} requesting {target}")


class CleanupError(HarnessError):
    """A best-effort teardown step failed."""

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"{step}: {cause}")
