from __future__ import annotations

from typing import Optional


class InstallerError(RuntimeError):
    """Base class for every error the installer reports to the user."""


class ValidationError(InstallerError):
    """Invalid interactive input (bad disk path, out-of-range menu choice, ...)."""


class PreflightError(InstallerError):
    """The environment is not suitable for the requested mode."""


class StepError(InstallerError):
    """Raised by a step's run() to signal failure with a readable reason."""


class WarnStepError(StepError):
    """Non-fatal step failure: logged, and the sequence continues."""


class FatalStepError(StepError):
    """A fatal step failed; the sequence halted at step_id."""

    def __init__(self, step_id: str, reason: str, *, completed: Optional[list[str]] = None) -> None:
        super().__init__(f"Step {step_id} failed: {reason}")
        self.step_id = step_id
        self.reason = reason
        self.completed = list(completed or [])

    @property
    def last_completed(self) -> Optional[str]:
        return self.completed[-1] if self.completed else None


class RequiresRebootError(InstallerError):
    """Controlled pause: the running kernel no longer matches the installed modules."""

    def __init__(self, kernel: str) -> None:
        super().__init__(f"No modules for running kernel {kernel}; reboot and run again")
        self.kernel = kernel
