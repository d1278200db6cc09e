"""Tests for core.state."""

import json

import pytest

from core.state import (
    DetectedUnit,
    GenerationRequest,
    Phase,
    PipelineResult,
    PipelineState,
    Plan,
    ProgressEvent,
    ValidationIssue,
    ValidationResult,
    can_transition,
    public_artifacts,
)


def _plan(*slugs):
    return Plan(units=tuple(DetectedUnit(s, s.title()) for s in slugs), mode="simple-html")


def test_unit_filename():
    assert DetectedUnit("index", "Home").filename == "index.html"
    assert DetectedUnit("about", "About").filename == "about.html"


def test_unit_wire_shape():
    assert DetectedUnit("faq", "FAQ", "Questions").to_dict() == {
        "slug": "faq", "displayName": "FAQ", "description": "Questions",
    }


def test_plan_helpers():
    plan = _plan("index", "about", "contact")
    assert plan.unit_paths == ["index.html", "about.html", "contact.html"]
    assert plan.slugs == ["index", "about", "contact"]
    assert plan.unit_for_path("about.html").slug == "about"
    assert plan.unit_for_path("missing.html") is None


def test_plan_needs_auth():
    assert _plan("index", "login", "signup").needs_auth is True
    assert _plan("index", "dashboard").needs_auth is True
    assert _plan("index", "about").needs_auth is False


def test_plan_is_immutable():
    plan = _plan("index")
    with pytest.raises(AttributeError):
        plan.mode = "component-spa"


def test_public_artifacts_strips_internal_keys():
    artifacts = {"index.html": "x", "style.css": "y", "_nav_fragment": "<nav>", "_footer_fragment": "f"}
    assert public_artifacts(artifacts) == {"index.html": "x", "style.css": "y"}


# --- Phase machine ---

def test_forward_transitions_allowed():
    assert can_transition(Phase.IDLE, Phase.DETECTING)
    assert can_transition(Phase.VALIDATING, Phase.REPAIRING)
    # Skipping ahead is fine when nothing needs repair
    assert can_transition(Phase.VALIDATING, Phase.DONE)


def test_backward_transitions_rejected():
    assert not can_transition(Phase.GENERATING, Phase.PLANNED)
    assert not can_transition(Phase.REPAIRING, Phase.DETECTING)


def test_error_reachable_from_live_phases():
    for phase in (Phase.DETECTING, Phase.PLANNED, Phase.GENERATING, Phase.VALIDATING, Phase.REPAIRING):
        assert can_transition(phase, Phase.ERROR)


def test_error_only_goes_back_to_detecting():
    assert can_transition(Phase.ERROR, Phase.DETECTING)
    assert not can_transition(Phase.ERROR, Phase.GENERATING)
    assert not can_transition(Phase.ERROR, Phase.DONE)


def test_done_is_terminal():
    assert not can_transition(Phase.DONE, Phase.ERROR)
    assert not can_transition(Phase.DONE, Phase.DETECTING)


def test_advance_raises_on_illegal_move():
    state = PipelineState(GenerationRequest("x"))
    state.advance(Phase.DETECTING)
    state.advance(Phase.GENERATING)
    with pytest.raises(ValueError):
        state.advance(Phase.PLANNED)


def test_reset_for_retry():
    state = PipelineState(GenerationRequest("x"))
    state.advance(Phase.DETECTING)
    state.artifacts["index.html"] = "partial"
    state.errors.append("boom")
    state.advance(Phase.ERROR)

    state.reset_for_retry()
    assert state.phase == Phase.DETECTING
    assert state.artifacts == {}
    assert state.errors == []


# --- Results and events ---

def test_validation_result_helpers():
    result = ValidationResult(issues={
        "a.html": [ValidationIssue("a.html", "warning", "empty", "short", metric=10)],
        "b.html": [ValidationIssue("b.html", "error", "framework-leakage", "jsx", metric=2)],
    }, needs_regeneration=["a.html", "b.html"])
    assert result.empty_units() == ["a.html"]
    assert len(result.leakage_issues()) == 1
    assert result.issues_for("c.html") == []
    assert result.passed is False
    assert ValidationResult().passed is True


def test_pipeline_result_wire_keys():
    result = PipelineResult(
        success=True, artifacts={"index.html": "x"}, mode="simple-html",
        unit_paths=["index.html"], warnings=[], errors=[], quality_score=90, project_id="abc",
    )
    data = result.to_dict()
    assert data["qualityScore"] == 90
    assert data["projectId"] == "abc"
    assert data["files"] == {"index.html": "x"}
    assert data["pages"] == ["index.html"]


def test_progress_event_sse_framing():
    event = ProgressEvent("step_start", {"unitSlug": "about"})
    sse = event.to_sse()
    assert sse.startswith("event: step_start\ndata: ")
    assert sse.endswith("\n\n")
    assert json.loads(sse.split("data: ", 1)[1]) == {"unitSlug": "about"}
