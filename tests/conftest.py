"""Shared fixtures: a scripted provider and ready-made pages."""

import json

import pytest

from config.defaults import DEFAULTS
from utils.llm import ProviderError


class FakeProvider:
    """Deterministic stand-in for the Claude provider.

    `script` is a list of responses consumed in order: a string is returned,
    an exception instance is raised. When it runs out, `default` is used:
    a callable (model_id, max_tokens, system, user) -> str, or a string.
    """

    def __init__(self, script=None, default=None):
        self.script = list(script or [])
        self.default = default
        self.calls = []

    def invoke(self, model_id, max_tokens, system, user):
        self.calls.append({
            "model": model_id, "max_tokens": max_tokens, "system": system, "user": user,
        })
        if self.script:
            item = self.script.pop(0)
        elif callable(self.default):
            item = self.default(model_id, max_tokens, system, user)
        else:
            item = self.default
        if isinstance(item, Exception):
            raise item
        if item is None:
            raise AssertionError("FakeProvider ran out of scripted responses")
        return item


def transient(status=529):
    return ProviderError("Overloaded", transient=True, status=status)


def fatal(status=400):
    return ProviderError("invalid_request_error: bad request", transient=False, status=status)


def make_page(title="Home", body_extra="", head_extra=""):
    """A complete page that passes every validator check."""
    paragraphs = "\n".join(
        f'    <section class="reveal"><h2>{title} section {n}</h2>'
        f"<p>Fresh sourdough, laminated croissants and seasonal tarts are baked every "
        f"morning from flour milled a few miles away, and our team is happy to talk "
        f"you through every loaf on the shelf.</p></section>"
        for n in range(1, 5)
    )
    return (
        "<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n  <meta charset=\"UTF-8\">\n"
        f"  <title>{title}</title>\n"
        '  <script src="https://cdn.tailwindcss.com"></script>\n'
        '  <link rel="stylesheet" href="style.css">\n'
        f"{head_extra}</head>\n<body>\n"
        '  <nav><a href="index.html">Home</a></nav>\n'
        f"  <main>\n    <h1>{title}</h1>\n{paragraphs}\n{body_extra}  </main>\n"
        "  <footer>Crumb &amp; Co</footer>\n"
        '  <script src="script.js"></script>\n</body>\n</html>'
    )


def fenced(html):
    return f"Here is the page you asked for:\n\n```html\n{html}\n```\n\nLet me know if you need changes."


SHARED_JSON = json.dumps({
    "style.css": ".reveal { opacity: 0; }",
    "script.js": "document.addEventListener('DOMContentLoaded', function() {});",
    "nav_html": '<nav id="site-nav"><a href="index.html">Home</a></nav>',
    "footer_html": "<footer id=\"site-footer\">Crumb &amp; Co</footer>",
})


def smart_default(model_id, max_tokens, system, user):
    """Answer shared-asset requests with JSON and unit requests with a valid page."""
    if "Return ONLY a JSON object" in user:
        return SHARED_JSON
    return fenced(make_page(body_extra=_contract_from(user)))


def _contract_from(user):
    """Echo the mandatory fragment back, like a compliant model would."""
    marker = "do not change ids, names, actions or scripts):\n"
    if marker not in user:
        return ""
    return user.split(marker, 1)[1].split("\n\nCURRENT SITE FILES", 1)[0]


@pytest.fixture
def valid_page():
    return make_page()


@pytest.fixture
def sleeps():
    """Pass sleeps.append as the sleep function to record backoff delays."""
    return []


@pytest.fixture
def fake_provider():
    return FakeProvider(default=smart_default)


@pytest.fixture(autouse=True)
def _isolated_output(tmp_path, monkeypatch):
    monkeypatch.setenv("PAGESMITH_OUTPUT_DIR", str(tmp_path / "sites"))
    monkeypatch.setitem(DEFAULTS, "backoff_seconds", 0)
