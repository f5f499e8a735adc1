from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .errors import FatalStepError, RequiresRebootError
from .state_store import mark_step_completed, mark_step_skipped, record_error, record_warning

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single named unit of work.

    already_satisfied() is the idempotency check: when it returns True the
    step's effect is already present and run() is not called.
    """

    step_id: str
    label: str
    fatal: bool

    def already_satisfied(self, ctx: Any) -> bool:
        ...

    def run(self, ctx: Any) -> None:
        ...


class BaseStep:
    step_id = ""
    label = ""
    fatal = True

    def already_satisfied(self, ctx: Any) -> bool:
        return False

    def run(self, ctx: Any) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.step_id}>"


class StepStatus(str, Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    step_id: str
    status: StepStatus
    reason: Optional[str] = None


@dataclass(frozen=True)
class PipelineResult:
    results: List[StepResult]

    def _ids(self, status: StepStatus) -> List[str]:
        return [r.step_id for r in self.results if r.status == status]

    @property
    def ran_steps(self) -> List[str]:
        return self._ids(StepStatus.SUCCEEDED)

    @property
    def skipped_steps(self) -> List[str]:
        return self._ids(StepStatus.SKIPPED)

    @property
    def warned_steps(self) -> List[str]:
        return self._ids(StepStatus.FAILED)


def run_pipeline(
    *,
    ctx: Any,
    steps: Sequence[Step],
    state: Optional[Dict[str, Any]] = None,
) -> PipelineResult:
    """Run steps in order.

    - Satisfied steps are skipped.
    - A failing fatal step stops the sequence with FatalStepError; nothing is
      rolled back.
    - A failing warn step is logged and the sequence continues.
    - RequiresRebootError propagates untouched; a nested FatalStepError
      propagates with the outer completed steps prepended.
    """

    if state is None:
        state = {}
    results: List[StepResult] = []
    done: List[str] = []

    for step in steps:
        state.setdefault("execution", {})["current_step"] = step.step_id
        try:
            if step.already_satisfied(ctx):
                logger.info("Skipping step %s (%s): already satisfied", step.step_id, step.label)
                mark_step_skipped(state, step.step_id)
                results.append(StepResult(step.step_id, StepStatus.SKIPPED))
                done.append(step.step_id)
                continue

            logger.info("Running step %s (%s)", step.step_id, step.label)
            step.run(ctx)
        except RequiresRebootError:
            state["execution"]["reboot_required"] = step.step_id
            raise
        except FatalStepError as e:
            # Raised by a nested pipeline; report the innermost step, with
            # the outer steps that finished before it.
            e.completed = [*done, *e.completed]
            record_error(state, e.step_id, e.reason)
            raise
        except Exception as e:
            reason = str(e) or type(e).__name__
            if step.fatal:
                logger.error("Step %s failed: %s", step.step_id, reason)
                record_error(state, step.step_id, reason)
                raise FatalStepError(step.step_id, reason, completed=done) from e
            logger.warning("Step %s failed (continuing): %s", step.step_id, reason)
            record_warning(state, step.step_id, reason)
            results.append(StepResult(step.step_id, StepStatus.FAILED, reason))
            continue

        mark_step_completed(state, step.step_id)
        results.append(StepResult(step.step_id, StepStatus.SUCCEEDED))
        done.append(step.step_id)

    state.setdefault("execution", {})["current_step"] = None
    return PipelineResult(results=results)
