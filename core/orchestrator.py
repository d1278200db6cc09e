"""Main pipeline orchestrator — phase machine over detect, generate, validate, repair, score."""

import logging
import threading
import time

from agents.generator import GeneratorAgent
from agents.planner import PlannerAgent
from agents.repairer import RepairAgent
from agents.shared_assets import SharedAssetAgent
from agents.validator import ValidatorAgent
from core.quality import compute_quality_score
from core.state import (
    GenerationRequest,
    Phase,
    PipelineResult,
    PipelineState,
    Plan,
    can_transition,
    public_artifacts,
)
from core.streamer import PipelineStream, ProgressStreamer
from utils.llm import AnthropicProvider, GenerationClient

logger = logging.getLogger(__name__)

SHARED_PUBLIC_PATHS = ("style.css", "script.js")


def _ignore(name, data):
    pass


class Orchestrator:
    """Runs detect → shared assets → units (sequential) → validate → repair → score.

    One provider call at a time. The run never aborts on provider failure:
    fallbacks keep every planned unit present, and only unexpected exceptions
    end in the error phase.
    """

    def __init__(self, provider=None, client=None, max_units=None, sleep=time.sleep):
        if client is None:
            client = GenerationClient(provider or AnthropicProvider(), sleep=sleep)
        self.client = client
        self.planner = PlannerAgent(max_units=max_units)
        self.shared_assets = SharedAssetAgent(client)
        self.generator = GeneratorAgent(client)
        self.validator = ValidatorAgent()
        self.repairer = RepairAgent(self.generator)

    def detect(self, prompt) -> Plan:
        """Plan only, no provider calls."""
        return self.planner.run(prompt)

    def run(self, request: GenerationRequest, on_event=None, cancel_event=None, store=None,
            state=None) -> PipelineResult:
        """Execute one run and return its result. Never raises.

        Pass the state of a run that ended in error to retry it from detecting.
        """
        emit = on_event or _ignore
        state = state or PipelineState(request)

        def enter(phase):
            state.advance(phase)
            emit("phase", {"phase": phase.value})

        def cancelled():
            return cancel_event is not None and cancel_event.is_set()

        try:
            if state.phase == Phase.ERROR:
                logger.info("Retrying failed run")
                state.reset_for_retry()
                emit("phase", {"phase": state.phase.value})
            else:
                enter(Phase.DETECTING)
            emit("detecting", {"status": "Analyzing your request..."})

            plan = self.detect(request.prompt)
            state.plan = plan
            state.warnings.extend(plan.warnings)
            enter(Phase.PLANNED)
            emit("plan", {
                "mode": plan.mode,
                "units": [u.to_dict() for u in plan.units],
                "confidence": plan.confidence,
                "warnings": list(plan.warnings),
            })

            enter(Phase.GENERATING)
            self.shared_assets.run(state)
            for path in SHARED_PUBLIC_PATHS:
                emit("file", {"path": path, "content": state.artifacts[path]})

            for unit in plan.units:
                if cancelled():
                    break
                emit("step_start", {"unitSlug": unit.slug})
                outcome = self.generator.run(unit, state)
                state.artifacts[unit.filename] = outcome.content
                if outcome.failed:
                    state.warnings.append(
                        f"{unit.filename} could not be generated ({outcome.error}); a placeholder page was used"
                    )
                emit("file", {"path": unit.filename, "content": outcome.content})
                emit("step_done", {"unitSlug": unit.slug})

            unit_paths = [p for p in plan.unit_paths if p in state.artifacts]
            if cancelled():
                state.cancelled = True
                state.warnings.append(
                    f"Run cancelled after {len(unit_paths)} of {len(plan.units)} pages"
                )
                logger.info("Run cancelled with %d of %d units", len(unit_paths), len(plan.units))

            enter(Phase.VALIDATING)
            validation = self.validator.run(state.artifacts, plan, unit_paths)

            if validation.needs_regeneration and not state.cancelled:
                enter(Phase.REPAIRING)
                attempted = self.repairer.run(state, validation, emit, should_stop=cancelled)
                validation = self.validator.run(state.artifacts, plan, unit_paths)
                for path in attempted:
                    if path in validation.needs_regeneration:
                        messages = "; ".join(i.message for i in validation.issues_for(path))
                        state.warnings.append(f"{path} still has defects after repair: {messages}")

            for path in validation.missing_units:
                logger.error("Planned unit %s was never produced", path)
                state.errors.append(f"Planned page {path} was never produced")

            score = compute_quality_score(validation)
            emit("quality", {"score": score})

            files = public_artifacts(state.artifacts)
            project_id = None
            if store is not None:
                project_id, files = store.save(files, {
                    "project_name": request.project_name,
                    "prompt": request.prompt,
                    "mode": plan.mode,
                    "pages": unit_paths,
                    "quality_score": score,
                })

            enter(Phase.DONE)
            result = PipelineResult(
                success=not state.errors,
                artifacts=files,
                mode=plan.mode,
                unit_paths=unit_paths,
                warnings=list(state.warnings),
                errors=list(state.errors),
                quality_score=score,
                project_id=project_id,
                cancelled=state.cancelled,
            )
            emit("done", {
                "files": files,
                "qualityScore": score,
                "success": result.success,
                "warnings": result.warnings,
                "errors": result.errors,
                "projectId": project_id,
            })
            logger.info("Run finished: %d page(s), quality %d", len(unit_paths), score)
            return result

        except Exception as e:
            logger.exception("Pipeline run failed")
            message = str(e) or e.__class__.__name__
            state.errors.append(message)
            if can_transition(state.phase, Phase.ERROR):
                state.advance(Phase.ERROR)
                emit("phase", {"phase": Phase.ERROR.value})
            emit("error_event", {"message": message})
            return PipelineResult(
                success=False,
                artifacts=public_artifacts(state.artifacts),
                mode=state.plan.mode if state.plan else "simple-html",
                unit_paths=[],
                warnings=list(state.warnings),
                errors=[message],
                quality_score=0,
            )

    def stream(self, request: GenerationRequest, store=None, state=None) -> PipelineStream:
        """Start a run on a worker thread and return its live event stream."""
        streamer = ProgressStreamer()
        cancel_event = threading.Event()
        state = state or PipelineState(request)
        stream = PipelineStream(streamer, cancel_event, state)
        return stream.start(lambda: self.run(
            request, on_event=streamer.emit, cancel_event=cancel_event, store=store, state=state,
        ))
