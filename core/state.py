"""Pipeline state models shared across all stages."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum

from config.routing import requires_auth

INTERNAL_PREFIX = "_"
NAV_KEY = "_nav_fragment"
FOOTER_KEY = "_footer_fragment"

MODES = ("simple-html", "component-spa", "full-application")


class Phase(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    PLANNED = "planned"
    GENERATING = "generating"
    VALIDATING = "validating"
    REPAIRING = "repairing"
    DONE = "done"
    ERROR = "error"


# Forward order; a run may skip ahead but never step back.
_PHASE_ORDER = [
    Phase.IDLE, Phase.DETECTING, Phase.PLANNED, Phase.GENERATING,
    Phase.VALIDATING, Phase.REPAIRING, Phase.DONE,
]


def can_transition(current: Phase, target: Phase) -> bool:
    """Forward moves, any live phase -> error, and error -> detecting (retry)."""
    if current == Phase.ERROR:
        return target == Phase.DETECTING
    if current == Phase.DONE:
        return False
    if target == Phase.ERROR:
        return True
    return _PHASE_ORDER.index(target) > _PHASE_ORDER.index(current)


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    project_name: str = "My Site"


@dataclass(frozen=True)
class DetectedUnit:
    slug: str               # unique, URL-safe
    display_name: str
    description: str = ""

    @property
    def filename(self) -> str:
        return "index.html" if self.slug == "index" else f"{self.slug}.html"

    def to_dict(self):
        return {
            "slug": self.slug,
            "displayName": self.display_name,
            "description": self.description,
        }


@dataclass(frozen=True)
class Plan:
    units: tuple[DetectedUnit, ...]
    mode: str = "simple-html"          # simple-html|component-spa|full-application
    confidence: str = "low"            # high|medium|low
    reason: str = ""
    tech_stack: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def unit_paths(self) -> list[str]:
        return [u.filename for u in self.units]

    @property
    def slugs(self) -> list[str]:
        return [u.slug for u in self.units]

    @property
    def needs_auth(self) -> bool:
        return any(requires_auth(u.slug) for u in self.units)

    def unit_for_path(self, path):
        for unit in self.units:
            if unit.filename == path:
                return unit
        return None

    def to_dict(self):
        return {
            "mode": self.mode,
            "units": [u.to_dict() for u in self.units],
            "confidence": self.confidence,
            "reason": self.reason,
            "techStack": list(self.tech_stack),
            "warnings": list(self.warnings),
        }


def is_internal(path: str) -> bool:
    return path.startswith(INTERNAL_PREFIX)


def public_artifacts(artifacts: dict[str, str]) -> dict[str, str]:
    """Copy of the artifact map without internal-only fragments."""
    return {path: content for path, content in artifacts.items() if not is_internal(path)}


@dataclass(frozen=True)
class ValidationIssue:
    unit_path: str
    severity: str           # "error" or "warning"
    code: str               # "empty", "framework-leakage", "contract", ...
    message: str
    metric: int | None = None


@dataclass
class ValidationResult:
    issues: dict[str, list[ValidationIssue]] = field(default_factory=dict)
    missing_units: list[str] = field(default_factory=list)
    needs_regeneration: list[str] = field(default_factory=list)

    def issues_for(self, path):
        return self.issues.get(path, [])

    def all_issues(self):
        return [issue for issues in self.issues.values() for issue in issues]

    def empty_units(self):
        return [path for path, issues in self.issues.items()
                if any(i.code == "empty" for i in issues)]

    def leakage_issues(self):
        return [i for i in self.all_issues() if i.code == "framework-leakage"]

    @property
    def passed(self) -> bool:
        return not self.missing_units and not self.needs_regeneration


@dataclass(frozen=True)
class PipelineResult:
    success: bool
    artifacts: dict[str, str]
    mode: str
    unit_paths: list[str]
    warnings: list[str]
    errors: list[str]
    quality_score: int
    project_id: str | None = None
    cancelled: bool = False

    def to_dict(self):
        return {
            "success": self.success,
            "files": dict(self.artifacts),
            "mode": self.mode,
            "pages": list(self.unit_paths),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "qualityScore": self.quality_score,
            "projectId": self.project_id,
            "cancelled": self.cancelled,
        }


@dataclass
class PipelineState:
    request: GenerationRequest
    plan: Plan | None = None
    artifacts: dict[str, str] = field(default_factory=dict)
    phase: Phase = Phase.IDLE
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False

    def advance(self, target: Phase):
        if not can_transition(self.phase, target):
            raise ValueError(f"Illegal phase transition: {self.phase.value} -> {target.value}")
        self.phase = target

    def reset_for_retry(self):
        """Clear run output so a failed run can start over from detecting."""
        self.advance(Phase.DETECTING)
        self.plan = None
        self.artifacts = {}
        self.warnings = []
        self.errors = []
        self.cancelled = False


@dataclass(frozen=True)
class ProgressEvent:
    name: str
    data: dict

    def to_sse(self) -> str:
        return f"event: {self.name}\ndata: {json.dumps(self.data)}\n\n"
