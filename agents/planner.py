"""Planner agent — turns a prompt into an ordered unit plan. Zero LLM calls."""

import logging
import re

from config.defaults import DEFAULTS
from core.state import DetectedUnit, Plan
from manager.classifier import classify_mode, extract_tech_stack
from utils.folder_naming import slugify, unique_slug

logger = logging.getLogger(__name__)

_INDEX_ALIASES = {"home", "landing", "main", "index", "homepage", "home-page"}

# "1. Home page - hero and intro"
_NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s+([\w &'/-]+?)(?:\s*[-–—:]\s*(.*))?$", re.MULTILINE)

# "Pages: Home, About, Contact"
_PAGES_LIST_RE = re.compile(r"\bpages\s*(?:include|are)?\s*[:–—]\s*([^\n.]+)", re.IGNORECASE)

_SINGLE_UNIT_RE = re.compile(
    r"\bsingle\b[\w\s-]{0,40}?\bpage\b(?!\s+app)|\bone[- ]page\b|\blanding page\b|\bsingle[- ]page\b(?!\s+app)",
    re.IGNORECASE,
)

_MULTI_SECTION_RE = re.compile(r"\b(?:website|site|pages|multi[- ]page|sections)\b", re.IGNORECASE)

# (regex, display name, slug) for pages mentioned anywhere in the prompt
COMMON_UNITS = [
    (r"\babout (?:us|page|section)\b|\bour story\b|\bmeet the team\b", "About", "about"),
    (r"\bservices?\b|\bmenu\b|\bpricing\b", "Services", "services"),
    (r"\bportfolio\b|\bgallery\b|\bour work\b", "Projects", "projects"),
    (r"\bproducts\b|\bshop\b|\bstore\b|\bcatalogue\b", "Products", "products"),
    (r"\bblog\b|\barticles\b", "Blog", "blog"),
    (r"\bfaq\b|\bfrequently asked\b", "FAQ", "faq"),
    (r"\bcontact\b|\bbooking form\b|\breach us\b", "Contact", "contact"),
    (r"\bdashboard\b|\badmin panel\b", "Dashboard", "dashboard"),
    (r"\blog ?in\b|\bsign ?in\b", "Login", "login"),
    (r"\bsign ?up\b|\bregist(?:er|ration)\b", "Signup", "signup"),
    (r"\bonboarding\b|\bsetup wizard\b", "Onboarding", "onboarding"),
    (r"\bcart\b|\bbasket\b", "Cart", "cart"),
    (r"\bcheckout\b", "Checkout", "checkout"),
    (r"\bprofile\b|\baccount settings\b", "Profile", "profile"),
]

MODE_DEFAULT_UNITS = {
    "full-application": [
        ("Home", "index", "Landing page"),
        ("Login", "login", ""),
        ("Signup", "signup", ""),
        ("Dashboard", "dashboard", "Signed-in member area"),
    ],
}

CANONICAL_SITE_UNITS = [
    ("Home", "index", "Landing page"),
    ("About", "about", ""),
    ("Contact", "contact", ""),
]


def _title_case(text):
    return " ".join(w[:1].upper() + w[1:].lower() for w in text.split())


def _clean_name(raw):
    name = re.sub(r"\(.*?\)", "", raw)
    name = re.sub(r"\bpage\b", "", name, flags=re.IGNORECASE)
    return " ".join(name.split())


def _to_slug(name):
    slug = slugify(name, sep="-")
    return "index" if slug in _INDEX_ALIASES else slug


def _explicit_units(prompt):
    """Units the prompt lists itself, as (name, slug, description) tuples."""
    units = []
    for match in _NUMBERED_RE.finditer(prompt):
        name = _clean_name(match.group(1))
        if name and len(name) < 30:
            units.append((_title_case(name), _to_slug(name), (match.group(2) or "").strip()))
    if units:
        return units

    match = _PAGES_LIST_RE.search(prompt)
    if match:
        for item in re.split(r"[,;]|\band\b", match.group(1)):
            name = _clean_name(item)
            if 1 < len(name) < 40:
                units.append((_title_case(name), _to_slug(name), item.strip()))
    return units


def _mentioned_units(prompt):
    units = []
    for pattern, name, slug in COMMON_UNITS:
        if re.search(pattern, prompt, re.IGNORECASE):
            units.append((name, slug, ""))

    # Shared navigation links both auth screens, so they come as a pair
    slugs = [u[1] for u in units]
    if "login" in slugs and "signup" not in slugs:
        units.insert(slugs.index("login") + 1, ("Signup", "signup", ""))
    elif "signup" in slugs and "login" not in slugs:
        units.insert(slugs.index("signup"), ("Login", "login", ""))
    return units


class PlannerAgent:
    """Produces a Plan (mode + ordered units) from a request. Pure function of the prompt."""

    name = "planner"

    def __init__(self, max_units=None):
        self.max_units = max_units or DEFAULTS["max_units"]

    def run(self, prompt) -> Plan:
        prompt = (prompt or "").strip()
        if not prompt:
            return Plan(
                units=(DetectedUnit("index", "Home", "Landing page"),),
                mode="simple-html",
                confidence="low",
                reason="Empty prompt -- generating a single generic page",
                tech_stack=tuple(extract_tech_stack("", "simple-html")),
            )

        mode, confidence, reason, _ = classify_mode(prompt)
        raw_units = self._unit_list(prompt, mode)
        units = self._normalize(raw_units)

        warnings = []
        if len(units) > self.max_units:
            dropped = units[self.max_units:]
            units = units[:self.max_units]
            warnings.append(
                f"Prompt requested {len(units) + len(dropped)} pages -- generating the first "
                f"{self.max_units} to stay within time limits. Dropped: "
                + ", ".join(u.display_name for u in dropped)
            )
            logger.warning("Plan truncated, dropped units: %s", [u.slug for u in dropped])

        logger.info("Detected %s (%s confidence) with %d unit(s)", mode, confidence, len(units))
        return Plan(
            units=tuple(units),
            mode=mode,
            confidence=confidence,
            reason=reason,
            tech_stack=tuple(extract_tech_stack(prompt, mode)),
            warnings=tuple(warnings),
        )

    def _unit_list(self, prompt, mode):
        """First match wins: explicit list, single-unit, mentions, mode default, multi-section."""
        explicit = _explicit_units(prompt)
        if explicit:
            return explicit
        if _SINGLE_UNIT_RE.search(prompt):
            return [("Home", "index", "Landing page")]
        mentioned = _mentioned_units(prompt)
        if mentioned:
            return mentioned
        if mode in MODE_DEFAULT_UNITS:
            return list(MODE_DEFAULT_UNITS[mode])
        if _MULTI_SECTION_RE.search(prompt):
            return list(CANONICAL_SITE_UNITS)
        return [("Home", "index", "Landing page")]

    def _normalize(self, raw_units):
        """Index first and exactly once, slugs unique."""
        units = []
        taken = set()
        index_unit = None
        for name, slug, description in raw_units:
            slug = slug or "page"
            if slug == "index" and index_unit is None:
                index_unit = DetectedUnit("index", name if name.lower() != "index" else "Home", description)
                taken.add("index")
                continue
            slug = unique_slug(slug, taken)
            taken.add(slug)
            units.append(DetectedUnit(slug, name, description))

        if index_unit is None:
            index_unit = DetectedUnit("index", "Home", "Landing page")
        return [index_unit] + units
