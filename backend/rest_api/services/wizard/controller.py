"""
Multi-step form controller.

Holds one flat record for every field of every step and moves between
steps. State changes only through the controller's actions:

    wizard = WizardController(SCHOOL_STEPS, record={"status": "active"})
    wizard.set_field("name", "North Campus")
    wizard.set_field("code", "NC1")
    if not wizard.advance():
        show(wizard.state.errors)
    result = wizard.submit(writer)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from rest_api.services.wizard.steps import WizardStep
from shared.config.logging import wizard_logger as logger
from shared.utils.exceptions import AppException

Writer = Callable[[dict[str, Any]], str]


@dataclass
class WizardState:
    record: dict[str, Any] = field(default_factory=dict)
    current_step: int = 0
    completed_steps: set[int] = field(default_factory=set)
    touched_fields: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)
    form_error: str | None = None
    submitted: bool = False


@dataclass
class SubmitResult:
    ok: bool
    entity_id: str | None = None
    failed_step: int | None = None
    errors: dict[str, str] = field(default_factory=dict)
    form_error: str | None = None
    status_code: int | None = None


class WizardController:
    def __init__(
        self,
        steps: Sequence[WizardStep],
        record: dict[str, Any] | None = None,
        writer: Writer | None = None,
    ):
        if not steps:
            raise ValueError("A wizard needs at least one step")
        self._steps = tuple(steps)
        self._writer = writer
        self._state = WizardState(record=dict(record or {}))

    @property
    def steps(self) -> tuple[WizardStep, ...]:
        return self._steps

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def is_last_step(self) -> bool:
        return self._state.current_step == len(self._steps) - 1

    # =========================================================================
    # Actions
    # =========================================================================

    def set_field(self, name: str, value: Any) -> None:
        """Store a value, mark it touched and drop its inline error."""
        self._state.record[name] = value
        self._state.touched_fields.add(name)
        self._state.errors.pop(name, None)

    def validate_step(self, index: int) -> dict[str, str]:
        """
        Run step `index`'s validator against the whole record.

        Marks the step's fields touched and replaces the visible errors.
        """
        step = self._steps[index]
        errors = step.run(self._state.record)
        self._state.touched_fields.update(step.fields)
        self._state.errors = dict(errors)
        return errors

    def advance(self) -> bool:
        """
        Validate the current step and move forward.

        On the last step a successful advance submits with the configured
        writer. Returns False when the step (or the submit) failed.
        """
        current = self._state.current_step
        if self.validate_step(current):
            return False

        self._state.completed_steps.add(current)
        if current < len(self._steps) - 1:
            self._state.current_step = current + 1
            return True

        if self._writer is None:
            return True
        return self.submit().ok

    def retreat(self) -> None:
        if self._state.current_step > 0:
            self._state.current_step -= 1

    def jump(self, index: int) -> bool:
        """
        Go to step `index` if it is at or before the current step or was
        completed before. No validation runs.
        """
        if not 0 <= index < len(self._steps):
            return False
        if index <= self._state.current_step or index in self._state.completed_steps:
            self._state.current_step = index
            return True
        return False

    def submit(self, writer: Writer | None = None) -> SubmitResult:
        """
        Re-validate every step, then hand the record to the writer.

        The first failing step becomes the current step. Writer failures are
        kept as a single form-level message; field errors are left as they are.
        """
        self._state.form_error = None

        for index in range(len(self._steps)):
            errors = self.validate_step(index)
            if errors:
                self._state.current_step = index
                logger.info(
                    "Wizard submit blocked by validation",
                    step=self._steps[index].step_id,
                    fields=sorted(errors),
                )
                return SubmitResult(ok=False, failed_step=index, errors=dict(errors))

        writer = writer or self._writer
        if writer is None:
            raise ValueError("No writer configured for submit")

        try:
            entity_id = writer(dict(self._state.record))
        except AppException as exc:
            message = exc.detail if isinstance(exc.detail, str) else exc.detail.get("message")
            self._state.form_error = message
            return SubmitResult(ok=False, form_error=message, status_code=exc.status_code)

        self._state.completed_steps.update(range(len(self._steps)))
        self._state.submitted = True
        return SubmitResult(ok=True, entity_id=entity_id)
