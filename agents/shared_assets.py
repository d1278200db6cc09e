"""Shared-asset agent — stylesheet, script, nav and footer for every unit. 1 LLM call."""

import datetime
import logging

from config.routing import shared_route
from core.state import FOOTER_KEY, NAV_KEY, PipelineState
from utils.llm import ProviderError, parse_json_object
from utils.template_engine import load_prompt, load_template, render_prompt, render_template

logger = logging.getLogger(__name__)

# Response key -> artifact map key
RESPONSE_KEYS = {
    "style.css": "style.css",
    "script.js": "script.js",
    "nav_html": NAV_KEY,
    "footer_html": FOOTER_KEY,
}

AUTH_HELPERS = ("getAuthUser", "getAuthToken", "requireAuth", "logout", "updateNavForAuth")

_LINK_CLASS = "text-gray-600 hover:text-indigo-600 text-sm font-medium"
_FOOTER_LINK_CLASS = "block text-sm text-gray-400 hover:text-white"


def _links(plan, css_class):
    return "\n      ".join(
        f'<a href="{u.filename}" class="{css_class}">{u.display_name}</a>' for u in plan.units
    )


def default_shared_assets(plan, site_name):
    """Deterministic built-in assets, used per key when the model's are unusable."""
    auth_links = load_template("shared", "auth_nav.html") if plan.needs_auth else ""
    script = load_template("shared", "script.js")
    if plan.needs_auth:
        script += load_template("shared", "auth_helpers.js")
    return {
        "style.css": load_template("shared", "style.css"),
        "script.js": script,
        NAV_KEY: render_template("shared", "nav.html", {
            "site_name": site_name,
            "links": _links(plan, _LINK_CLASS),
            "auth_links": auth_links,
        }),
        FOOTER_KEY: render_template("shared", "footer.html", {
            "site_name": site_name,
            "links": _links(plan, _FOOTER_LINK_CLASS),
            "year": datetime.date.today().year,
        }),
    }


def missing_auth_helpers(script):
    return [name for name in AUTH_HELPERS if f"function {name}" not in script]


class SharedAssetAgent:
    """Generates the four cross-unit artifacts once per run."""

    name = "shared_assets"

    def __init__(self, client):
        self.client = client

    def build_instruction(self, state: PipelineState):
        plan = state.plan
        unit_list = "\n".join(
            f"- {u.display_name} ({u.filename})" + (f": {u.description}" if u.description else "")
            for u in plan.units
        )
        return render_prompt("shared_assets", {
            "site_name": state.request.project_name,
            "prompt": state.request.prompt,
            "unit_list": unit_list,
            "auth_requirements": load_prompt("shared_assets_auth") if plan.needs_auth else "",
        })

    def run(self, state: PipelineState) -> PipelineState:
        plan = state.plan
        defaults = default_shared_assets(plan, state.request.project_name)
        route = shared_route()

        parsed = {}
        try:
            response = self.client.call(
                route.model, route.max_tokens, load_prompt("system"), self.build_instruction(state),
            )
            parsed = parse_json_object(response)
            if not parsed:
                logger.warning("Shared assets response was not a JSON object; using built-in defaults")
        except ProviderError as e:
            logger.warning("Shared asset generation failed: %s", e)
            state.warnings.append(f"Shared styles and navigation used built-in defaults ({e})")

        for response_key, artifact_key in RESPONSE_KEYS.items():
            value = parsed.get(response_key)
            if isinstance(value, str) and value.strip():
                state.artifacts[artifact_key] = value.strip()
            else:
                if parsed:
                    logger.debug("Shared assets response missing %s; using default", response_key)
                state.artifacts[artifact_key] = defaults[artifact_key]

        if plan.needs_auth:
            missing = missing_auth_helpers(state.artifacts["script.js"])
            if missing:
                logger.info("Appending session helpers missing from script.js: %s", missing)
                state.artifacts["script.js"] += load_template("shared", "auth_helpers.js")

        return state
