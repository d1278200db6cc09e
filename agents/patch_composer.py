"""Patch composer — turns a unit's validation issues into a repair instruction. Zero LLM calls."""

from agents.generator import render_contract
from config.defaults import DEFAULTS
from core.state import DetectedUnit, PipelineState
from utils.template_engine import render_prompt


class PatchComposer:
    """Formats defects plus site context into a differential regeneration prompt."""

    name = "patch_composer"

    def __init__(self, context_chars=None):
        self.context_chars = context_chars or DEFAULTS["repair_context_chars"]

    def format_defects(self, issues):
        # Errors first
        ordered = sorted(issues, key=lambda i: 0 if i.severity == "error" else 1)
        lines = []
        for idx, issue in enumerate(ordered, 1):
            lines.append(f"{idx}. [{issue.severity.upper()}] {issue.message}")
        return "\n".join(lines)

    def site_files(self, state: PipelineState):
        parts = []
        for path, content in state.artifacts.items():
            snippet = content[:self.context_chars]
            if len(content) > self.context_chars:
                snippet += "\n... (truncated)"
            parts.append(f"--- {path} ---\n{snippet}")
        return "\n\n".join(parts)

    def compose(self, unit: DetectedUnit, issues, state: PipelineState):
        contract = render_contract(unit, state.request.project_name)
        return render_prompt("repair", {
            "filename": unit.filename,
            "unit_name": unit.display_name,
            "site_name": state.request.project_name,
            "prompt": state.request.prompt,
            "defects": self.format_defects(issues) or "1. [ERROR] The page is incomplete",
            "contract": render_prompt("contract", {"fragment": contract}) if contract else "",
            "site_files": self.site_files(state),
        })
