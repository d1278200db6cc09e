"""Tests for core.quality."""

from core.quality import compute_quality_score
from core.state import ValidationIssue, ValidationResult


def _issue(code, severity="error", path="index.html"):
    return ValidationIssue(path, severity, code, code)


def test_perfect_score():
    assert compute_quality_score(ValidationResult()) == 100


def test_leakage_penalty():
    result = ValidationResult(issues={"index.html": [_issue("framework-leakage")]})
    assert compute_quality_score(result) == 80


def test_other_error_penalty():
    result = ValidationResult(issues={"index.html": [_issue("contract")]})
    assert compute_quality_score(result) == 85


def test_missing_penalty():
    assert compute_quality_score(ValidationResult(missing_units=["about.html"])) == 88


def test_empty_penalty_is_not_also_an_error():
    result = ValidationResult(issues={"index.html": [_issue("empty", severity="warning")]})
    assert compute_quality_score(result) == 90


def test_advisory_warnings_are_free():
    result = ValidationResult(issues={"index.html": [_issue("placeholder-text", severity="warning")]})
    assert compute_quality_score(result) == 100


def test_combined_penalties():
    result = ValidationResult(
        issues={
            "index.html": [_issue("framework-leakage"), _issue("incomplete-document")],
            "about.html": [_issue("empty", "warning", "about.html")],
        },
        missing_units=["contact.html"],
    )
    assert compute_quality_score(result) == 100 - 20 - 15 - 10 - 12


def test_floor_at_zero():
    issues = {f"p{n}.html": [_issue("framework-leakage", path=f"p{n}.html")] for n in range(10)}
    assert compute_quality_score(ValidationResult(issues=issues, missing_units=["x.html"])) == 0


def test_order_independent():
    a = [_issue("framework-leakage"), _issue("contract"), _issue("empty", "warning")]
    first = ValidationResult(issues={"index.html": a})
    second = ValidationResult(issues={"index.html": list(reversed(a))})
    assert compute_quality_score(first) == compute_quality_score(second) == 55
