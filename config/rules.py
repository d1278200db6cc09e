"""Completeness rules for generated markup units."""

import re

# Markup that only a component framework understands. Each entry:
# (pattern_regex, message). Scanned with <script>/<style> blocks removed so
# plain comparisons inside JavaScript don't trip the component-tag check.
LEAKAGE_PATTERNS = [
    (
        re.compile(r"""<([A-Z][a-z][A-Za-z0-9]*)(?=[\s/>])"""),
        "Component tag left in markup",
    ),
    (
        re.compile(r"""\bclassName\s*="""),
        "JSX className attribute instead of class",
    ),
    (
        re.compile(r"""\{\s*[\w.]+\.map\s*\("""),
        "JSX list expression",
    ),
    (
        re.compile(r"""\{\s*[\w.!]+\s*&&\s*<"""),
        "JSX conditional expression",
    ),
    (
        re.compile(r"""^\s*import\s+.+\s+from\s+["']react["']""", re.MULTILINE),
        "React import",
    ),
    (
        re.compile(r"""^\s*["']use client["']""", re.MULTILINE),
        "\"use client\" directive",
    ),
    (
        re.compile(r"""^>\s*$""", re.MULTILINE),
        "Stray '>' line from a broken template literal",
    ),
]

# Advisory checks. Each entry: (code, pattern_regex, message)
ADVISORY_PATTERNS = [
    (
        "placeholder-text",
        re.compile(r"""lorem ipsum""", re.IGNORECASE),
        "Placeholder lorem ipsum text found",
    ),
    (
        "framework-links",
        re.compile(r"""href=["']([^"']+\.(?:tsx|jsx)|/)["']"""),
        "Links use framework routes instead of .html files",
    ),
    (
        "broken-images",
        re.compile(r"""<img[^>]*\ssrc=["'](?:|#|placeholder)["']""", re.IGNORECASE),
        "Image with empty or invalid src",
    ),
]

DOCTYPE_RE = re.compile(r"""^\s*<!DOCTYPE""", re.IGNORECASE)

# Interactive elements special units must carry so they work against the
# host backend. slug -> (required_pattern, message, contract template)
UNIT_CONTRACTS = {
    "contact": (
        re.compile(r"""<form[^>]*\bid=["']contact-form["']""", re.IGNORECASE),
        "Contact form (id=\"contact-form\") is missing",
        "contact_form.html",
    ),
    "login": (
        re.compile(r"""<form[^>]*\bid=["']login-form["']""", re.IGNORECASE),
        "Login form (id=\"login-form\") is missing",
        "login_form.html",
    ),
    "signup": (
        re.compile(r"""<form[^>]*\bid=["']signup-form["']""", re.IGNORECASE),
        "Signup form (id=\"signup-form\") is missing",
        "signup_form.html",
    ),
}

# Protected units share one contract: the session guard in <head>
AUTH_GUARD_CONTRACT = (
    re.compile(r"""localStorage\.getItem\(\s*['"]auth_token['"]\s*\)"""),
    "Session guard redirecting to login.html is missing",
    "auth_guard.html",
)
