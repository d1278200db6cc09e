"""Prompt and markup templates rendered with string.Template."""

import functools
import os
from string import Template

_ROOT = os.path.dirname(os.path.dirname(__file__))
TEMPLATES_DIR = os.path.join(_ROOT, "templates")
PROMPTS_DIR = os.path.join(_ROOT, "agents", "prompts")


def _read_inside(base_dir, *parts):
    path = os.path.join(base_dir, *parts)
    resolved = os.path.realpath(path)
    if not resolved.startswith(os.path.realpath(base_dir) + os.sep):
        raise ValueError(f"Template path escapes {base_dir}: {'/'.join(parts)}")
    with open(resolved, "r", encoding="utf-8") as f:
        return f.read()


@functools.lru_cache(maxsize=None)
def load_template(category, template_name):
    """Return the raw text of templates/<category>/<template_name>."""
    return _read_inside(TEMPLATES_DIR, category, template_name)


@functools.lru_cache(maxsize=None)
def load_prompt(name):
    """Return the raw text of agents/prompts/<name>.txt."""
    return _read_inside(PROMPTS_DIR, f"{name}.txt")


def render_template(category, template_name, variables):
    """Render a markup template.

    safe_substitute leaves unknown $placeholders as-is, which matters for the
    JavaScript and CSS defaults.
    """
    return Template(load_template(category, template_name)).safe_substitute(variables)


def render_prompt(name, variables):
    return Template(load_prompt(name)).safe_substitute(variables)


def comment_safe(text):
    """Make text safe to embed inside an HTML comment."""
    return str(text).replace("--", "- -").replace(">", "&gt;")
