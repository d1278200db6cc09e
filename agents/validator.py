"""Validator agent — static completeness checks on produced units. Zero LLM calls."""

import logging
import re

from config.defaults import DEFAULTS
from config.routing import base_slug, is_protected
from config.rules import (
    ADVISORY_PATTERNS,
    AUTH_GUARD_CONTRACT,
    DOCTYPE_RE,
    LEAKAGE_PATTERNS,
    UNIT_CONTRACTS,
)
from core.state import ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_HEAD_RE = re.compile(r"<head\b[^>]*>.*?</head\s*>", re.IGNORECASE | re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")


def strip_code_blocks(html):
    """Markup with <script>/<style> bodies removed."""
    return _SCRIPT_STYLE_RE.sub("", html)


def visible_text(html):
    """Text a visitor would actually read."""
    text = _HEAD_RE.sub("", strip_code_blocks(html))
    text = _COMMENT_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    return " ".join(text.split())


def _contract_for(slug):
    if base_slug(slug) in UNIT_CONTRACTS:
        pattern, message, _ = UNIT_CONTRACTS[base_slug(slug)]
        return pattern, message
    if is_protected(slug):
        return AUTH_GUARD_CONTRACT[0], AUTH_GUARD_CONTRACT[1]
    return None


class ValidatorAgent:
    """Checks each planned unit for emptiness, framework leakage and broken contracts."""

    name = "validator"

    def __init__(self, min_visible_text=None, min_content_length=None):
        self.min_visible_text = min_visible_text or DEFAULTS["min_visible_text"]
        self.min_content_length = min_content_length or DEFAULTS["min_content_length"]

    def check_unit(self, path, slug, content):
        issues = []

        text_length = len(visible_text(content))
        if text_length < self.min_visible_text or len(content.strip()) < self.min_content_length:
            issues.append(ValidationIssue(
                path, "warning", "empty",
                f"Only {text_length} characters of visible text (minimum {self.min_visible_text})",
                metric=text_length,
            ))

        markup = strip_code_blocks(content)
        hits, kinds = 0, []
        for pattern, message in LEAKAGE_PATTERNS:
            found = len(pattern.findall(markup))
            if found:
                hits += found
                kinds.append(message)
        if hits:
            issues.append(ValidationIssue(
                path, "error", "framework-leakage",
                "Framework syntax in plain HTML: " + "; ".join(kinds),
                metric=hits,
            ))

        if not DOCTYPE_RE.search(content):
            issues.append(ValidationIssue(
                path, "error", "incomplete-document", "Missing <!DOCTYPE html> declaration",
            ))

        contract = _contract_for(slug)
        if contract and not contract[0].search(content):
            issues.append(ValidationIssue(path, "error", "contract", contract[1]))

        for code, pattern, message in ADVISORY_PATTERNS:
            if pattern.search(content):
                issues.append(ValidationIssue(path, "warning", code, message))

        return issues

    def run(self, artifacts, plan, unit_paths=None) -> ValidationResult:
        """Validate the planned units (or the given subset of their paths)."""
        result = ValidationResult()
        paths = plan.unit_paths if unit_paths is None else unit_paths

        for path in paths:
            content = artifacts.get(path)
            if content is None:
                result.missing_units.append(path)
                continue

            unit = plan.unit_for_path(path)
            issues = self.check_unit(path, unit.slug if unit else path.rsplit(".", 1)[0], content)
            if issues:
                result.issues[path] = issues
            if any(i.severity == "error" or i.code == "empty" for i in issues):
                result.needs_regeneration.append(path)

        logger.info(
            "Validated %d unit(s): %d missing, %d need regeneration",
            len(paths), len(result.missing_units), len(result.needs_regeneration),
        )
        return result
