"""Repair agent — regenerates defective units exactly once each."""

import logging

from agents.patch_composer import PatchComposer
from core.state import PipelineState, ValidationResult

logger = logging.getLogger(__name__)


class RepairAgent:
    """Bounded repair: one regeneration per unit in needs_regeneration, no repair of repairs."""

    name = "repairer"

    def __init__(self, generator, composer=None):
        self.generator = generator
        self.composer = composer or PatchComposer()

    def run(self, state: PipelineState, validation: ValidationResult, emit=None, should_stop=None):
        """Returns the paths a repair was attempted for."""
        attempted = []
        for path in validation.needs_regeneration:
            if should_stop and should_stop():
                logger.info("Repair stopped before %s", path)
                break

            unit = state.plan.unit_for_path(path)
            if unit is None or path not in state.artifacts:
                continue

            attempted.append(path)
            instruction = self.composer.compose(unit, validation.issues_for(path), state)
            content = self.generator.regenerate(unit, instruction)
            if content is None:
                state.warnings.append(f"Repair of {path} failed; keeping the previous version")
                continue

            state.artifacts[path] = content
            logger.info("Repaired %s", path)
            if emit:
                emit("file", {"path": path, "content": content})

        return attempted
