"""Generator agent — produces one unit (page) per LLM call."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from config.defaults import DEFAULTS, PROJECT_ID_PLACEHOLDER
from config.routing import base_slug, is_protected, route_for
from config.rules import AUTH_GUARD_CONTRACT, UNIT_CONTRACTS
from core.state import FOOTER_KEY, NAV_KEY, DetectedUnit, PipelineState
from utils.llm import ProviderError, extract_document
from utils.template_engine import comment_safe, load_prompt, render_prompt, render_template

logger = logging.getLogger(__name__)

_SUBMIT_HANDLERS = {
    "login": (
        "function onLoginSubmit(e) { e.preventDefault(); handleAuth('login', "
        "document.getElementById('login-email').value, "
        "document.getElementById('login-password').value); }"
    ),
    "signup": (
        "function onSignupSubmit(e) { e.preventDefault(); handleAuth('register', "
        "document.getElementById('signup-email').value, "
        "document.getElementById('signup-password').value, "
        "document.getElementById('signup-name').value); }"
    ),
}


def render_contract(unit: DetectedUnit, site_name):
    """The literal markup a special unit must contain, or "" for ordinary units."""
    variables = {"site_name": site_name, "project_id": PROJECT_ID_PLACEHOLDER}
    slug = base_slug(unit.slug)

    if slug in UNIT_CONTRACTS:
        _, _, template_name = UNIT_CONTRACTS[slug]
        fragment = render_template("contracts", template_name, variables)
        if slug in _SUBMIT_HANDLERS:
            fragment += render_template("contracts", "auth_script.html", dict(
                variables, submit_handler=_SUBMIT_HANDLERS[slug],
            ))
        return fragment

    if is_protected(unit.slug):
        # Goes in <head> so the redirect runs before the page renders
        return render_template("contracts", AUTH_GUARD_CONTRACT[2], variables)
    return ""


@dataclass(frozen=True)
class UnitOutcome:
    content: str
    failed: bool = False
    error: str | None = None


class GeneratorAgent:
    """Generates a single unit with routing, shared fragments and contracts."""

    name = "generator"

    def __init__(self, client):
        self.client = client

    def build_instruction(self, unit: DetectedUnit, state: PipelineState):
        site_name = state.request.project_name
        contract = render_contract(unit, site_name)
        return render_prompt("unit", {
            "unit_name": unit.display_name,
            "filename": unit.filename,
            "site_name": site_name,
            "prompt": state.request.prompt,
            "unit_description": unit.description or f"The {unit.display_name} page",
            "all_pages": ", ".join(state.plan.unit_paths),
            "nav": state.artifacts.get(NAV_KEY, ""),
            "footer": state.artifacts.get(FOOTER_KEY, ""),
            "contract": render_prompt("contract", {"fragment": contract}) if contract else "",
        })

    def _generate(self, unit, instruction):
        route = route_for(unit.slug)
        logger.debug("Routing %s to %s (%d tokens)", unit.filename, route.model, route.max_tokens)
        response = self.client.call(route.model, route.max_tokens, load_prompt("system"), instruction)

        content, strategy = extract_document(response)
        logger.debug("Extracted %s using %s strategy", unit.filename, strategy)
        if len(content) < DEFAULTS["low_content_warning"]:
            logger.warning("%s is only %d chars after extraction", unit.filename, len(content))
        return content

    def run(self, unit: DetectedUnit, state: PipelineState) -> UnitOutcome:
        try:
            content = self._generate(unit, self.build_instruction(unit, state))
        except ProviderError as e:
            logger.warning("Generation of %s failed, using fallback page: %s", unit.filename, e)
            return UnitOutcome(self.fallback(unit, state, e), failed=True, error=str(e))
        return UnitOutcome(content)

    def regenerate(self, unit: DetectedUnit, instruction):
        """One more call for the repair loop. Returns None on provider failure or a blank response."""
        try:
            content = self._generate(unit, instruction)
        except ProviderError as e:
            logger.warning("Regeneration of %s failed: %s", unit.filename, e)
            return None
        if not content.strip():
            logger.warning("Regeneration of %s returned nothing", unit.filename)
            return None
        return content

    def fallback(self, unit: DetectedUnit, state: PipelineState, error):
        return render_template("pages", "fallback.html", {
            "unit_name": unit.display_name,
            "site_name": state.request.project_name,
            "nav": state.artifacts.get(NAV_KEY, ""),
            "footer": state.artifacts.get(FOOTER_KEY, ""),
            "error_comment": f"<!-- generation error: {comment_safe(error)} -->",
        })
