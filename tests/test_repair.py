"""Tests for agents.patch_composer and agents.repairer."""

from unittest.mock import MagicMock

from agents.generator import GeneratorAgent
from agents.patch_composer import PatchComposer
from agents.repairer import RepairAgent
from agents.validator import ValidatorAgent
from conftest import FakeProvider, fatal, fenced, make_page
from core.state import (
    FOOTER_KEY,
    NAV_KEY,
    DetectedUnit,
    GenerationRequest,
    PipelineState,
    Plan,
    ValidationIssue,
)
from utils.llm import GenerationClient

SHORT = "<!DOCTYPE html><html><body><h1>Soon</h1></body></html>"


def _state(artifacts, *slugs):
    state = PipelineState(GenerationRequest("a bakery site", "Crumb & Co"))
    state.plan = Plan(units=tuple(DetectedUnit(s, s.title()) for s in slugs))
    state.artifacts.update({NAV_KEY: "<nav>N</nav>", FOOTER_KEY: "<footer>F</footer>", "style.css": "body{}"})
    state.artifacts.update(artifacts)
    return state


def _repairer(provider):
    return RepairAgent(GeneratorAgent(GenerationClient(provider, sleep=lambda s: None)))


# ---------------------------------------------------------------------------
# PatchComposer
# ---------------------------------------------------------------------------

def test_compose_lists_defects_errors_first():
    issues = [
        ValidationIssue("index.html", "warning", "empty", "Only 4 characters of visible text"),
        ValidationIssue("index.html", "error", "framework-leakage", "Framework syntax in plain HTML"),
    ]
    state = _state({"index.html": SHORT}, "index")
    text = PatchComposer().compose(state.plan.units[0], issues, state)
    assert "1. [ERROR] Framework syntax in plain HTML" in text
    assert "2. [WARNING] Only 4 characters" in text
    assert "a bakery site" in text


def test_compose_includes_trimmed_site_files():
    state = _state({"index.html": SHORT, "about.html": "A" * 5000}, "index", "about")
    text = PatchComposer(context_chars=100).compose(state.plan.units[0], [], state)
    assert "--- about.html ---" in text
    assert "--- _nav_fragment ---" in text
    assert "A" * 100 + "\n... (truncated)" in text
    assert "A" * 101 not in text


def test_compose_includes_contract_for_special_units():
    state = _state({"contact.html": SHORT}, "contact")
    text = PatchComposer().compose(state.plan.units[0], [], state)
    assert 'id="contact-form"' in text


# ---------------------------------------------------------------------------
# RepairAgent
# ---------------------------------------------------------------------------

def test_repairs_each_defective_unit_once():
    provider = FakeProvider(default=fenced(make_page("Fixed")))
    state = _state({"index.html": make_page(), "about.html": SHORT}, "index", "about")
    validation = ValidatorAgent().run(state.artifacts, state.plan)
    events = []

    attempted = _repairer(provider).run(state, validation, emit=lambda n, d: events.append((n, d)))

    assert attempted == ["about.html"]
    assert len(provider.calls) == 1
    assert "<h1>Fixed</h1>" in state.artifacts["about.html"]
    assert events == [("file", {"path": "about.html", "content": state.artifacts["about.html"]})]


def test_valid_units_are_untouched():
    provider = FakeProvider()
    page = make_page()
    state = _state({"index.html": page}, "index")
    validation = ValidatorAgent().run(state.artifacts, state.plan)

    attempted = _repairer(provider).run(state, validation)

    assert attempted == []
    assert provider.calls == []
    assert state.artifacts["index.html"] == page


def test_failed_repair_keeps_previous_artifact():
    state = _state({"index.html": SHORT}, "index")
    validation = ValidatorAgent().run(state.artifacts, state.plan)

    _repairer(FakeProvider([fatal()])).run(state, validation)

    assert state.artifacts["index.html"] == SHORT
    assert len(state.warnings) == 1
    assert "keeping the previous version" in state.warnings[0]


def test_blank_repair_keeps_previous_artifact():
    state = _state({"index.html": SHORT}, "index")
    validation = ValidatorAgent().run(state.artifacts, state.plan)
    emitted = []

    _repairer(FakeProvider(["   "])).run(state, validation, emit=lambda n, d: emitted.append(n))

    assert state.artifacts["index.html"] == SHORT
    assert emitted == []
    assert "keeping the previous version" in state.warnings[0]


def test_repair_stops_when_asked():
    provider = FakeProvider(default=fenced(make_page()))
    state = _state({"index.html": SHORT, "about.html": SHORT}, "index", "about")
    validation = ValidatorAgent().run(state.artifacts, state.plan)

    attempted = _repairer(provider).run(state, validation, should_stop=lambda: True)

    assert attempted == []
    assert provider.calls == []


def test_repair_prompt_comes_from_composer():
    composer = MagicMock()
    composer.compose.return_value = "FIX THIS"
    generator = MagicMock()
    generator.regenerate.return_value = make_page()
    state = _state({"index.html": SHORT}, "index")
    validation = ValidatorAgent().run(state.artifacts, state.plan)

    RepairAgent(generator, composer).run(state, validation)

    unit, issues, passed_state = composer.compose.call_args.args
    assert unit.slug == "index"
    assert issues[0].code == "empty"
    generator.regenerate.assert_called_once_with(unit, "FIX THIS")
