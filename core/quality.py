"""Quality score evaluation."""

from config.defaults import DEFAULTS
from core.state import ValidationResult


def compute_quality_score(validation: ValidationResult, penalties=None) -> int:
    """100 minus a fixed penalty per defect, clamped to [0, 100].

    Framework leakage costs the most, then any other error, then each missing
    unit, then each empty unit. Empty is a warning, so it is never also
    charged as an error.
    """
    penalties = penalties or DEFAULTS["penalties"]
    score = 100
    for issue in validation.all_issues():
        if issue.code == "framework-leakage":
            score -= penalties["framework-leakage"]
        elif issue.severity == "error":
            score -= penalties["error"]
    score -= penalties["missing"] * len(validation.missing_units)
    score -= penalties["empty"] * len(validation.empty_units())
    return max(0, min(100, score))
