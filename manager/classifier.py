"""Keyword-scoring output mode classifier."""

import re

# Keywords that are prefix patterns (match word starts, e.g. "authenticat" -> "authentication")
_PREFIX_KEYWORDS = {"authenticat", "subscri"}

# Each keyword counts once; weights are per-signal, thresholds below are on
# the number of distinct signals seen.
KEYWORDS = {
    "full-application": {
        "login", "log in", "signup", "sign up", "register", "dashboard",
        "database", "auth", "authenticat", "account", "saas", "full-stack",
        "fullstack", "full stack", "backend", "admin", "members", "subscri",
        "user profile", "api route",
    },
    "component-spa": {
        "react", "vite", "vue", "svelte", "single page app", "single-page app",
        "single page application", "react router",
    },
    "simple-html": {
        "html", "vanilla js", "vanilla javascript", "plain html", "static",
        "no framework", "shared css", "cdn", "html pages", "brochure",
        "informational", "landing page", "simple",
    },
}

_BASE_STACK = {
    "simple-html": ["HTML5", "CSS3", "Vanilla JS"],
    "component-spa": ["HTML5", "Vanilla JS", "Single-page navigation"],
    "full-application": ["HTML5", "Vanilla JS", "Session auth"],
}

# (regex, label) for supplementary technology mentions
_TECH_MENTIONS = [
    (r"\btailwind\b", "Tailwind CSS"),
    (r"\banimat|\bgsap\b", "CSS Animations"),
    (r"\bglassmorphism\b", "Glassmorphism CSS"),
    (r"\bstripe\b", "Stripe"),
    (r"\bsupabase\b", "Supabase"),
    (r"\bchart|\bgraph", "Charts"),
]


def _signals(text, keywords):
    hits = []
    for keyword in sorted(keywords):
        if keyword in _PREFIX_KEYWORDS:
            pat = r"\b" + re.escape(keyword)
        else:
            pat = r"\b" + re.escape(keyword) + r"\b"
        if re.search(pat, text):
            hits.append(keyword)
    return hits


def classify_mode(prompt):
    """Score a prompt against each output mode and return the best match.

    Returns (mode, confidence, reason, scores) where scores maps each mode to
    the number of distinct signals found.
    """
    text = (prompt or "").lower()
    hits = {mode: _signals(text, kw) for mode, kw in KEYWORDS.items()}
    scores = {mode: len(found) for mode, found in hits.items()}

    full, spa, html = scores["full-application"], scores["component-spa"], scores["simple-html"]

    if full >= 2:
        mode = "full-application"
        confidence = "high" if full >= 4 else "medium"
        reason = "Full-stack signals: " + ", ".join(hits[mode])
    elif spa >= 1 and spa >= html:
        mode = "component-spa"
        confidence = "high" if spa >= 2 else "medium"
        reason = "Single-page app signals: " + ", ".join(hits[mode])
    elif html >= 1:
        mode = "simple-html"
        confidence = "high" if html >= 2 else "medium"
        reason = "Plain HTML signals: " + ", ".join(hits[mode])
    else:
        mode = "simple-html"
        confidence = "low"
        reason = "No clear signal -- defaulting to plain HTML"

    return mode, confidence, reason, scores


def extract_tech_stack(prompt, mode):
    """Technology labels for the plan: the mode's base stack plus mentions."""
    text = (prompt or "").lower()
    stack = list(_BASE_STACK.get(mode, []))
    for pattern, label in _TECH_MENTIONS:
        if re.search(pattern, text) and label not in stack:
            stack.append(label)
    return stack
