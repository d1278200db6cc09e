"""Folder naming utilities: slug generation, output dirs, dedup."""

import os
import re
import unicodedata

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DEFAULT_OUTPUT_DIR = os.path.join(BASE_DIR, "generated_sites")


def slugify(text, sep="_"):
    """Convert text to a filesystem- and URL-safe slug."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", sep, text)
    return text.strip(sep)


def unique_slug(slug, taken):
    """Return slug, or slug-2, slug-3, ... if already in `taken`."""
    if slug not in taken:
        return slug
    counter = 2
    while f"{slug}-{counter}" in taken:
        counter += 1
    return f"{slug}-{counter}"


def get_output_root():
    return os.environ.get("PAGESMITH_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR


MAX_DEDUP = 1000


def check_containment(path, root):
    """Verify the resolved path stays within root."""
    resolved = os.path.realpath(path)
    if not resolved.startswith(os.path.realpath(root) + os.sep):
        raise ValueError(f"Generated output path escapes base directory: {path}")
    return resolved


def get_output_dir(project_name, project_id, root=None):
    """Return a deduplicated directory path for one saved project."""
    root = root or get_output_root()
    name = slugify(project_name) or "site"
    base = os.path.join(root, f"{name}_{project_id}")
    check_containment(base, root)

    if not os.path.exists(base):
        return base

    # Dedup with _2, _3, etc.
    for counter in range(2, MAX_DEDUP + 2):
        candidate = f"{base}_{counter}"
        if not os.path.exists(candidate):
            return candidate

    raise RuntimeError(f"Too many duplicate projects (>{MAX_DEDUP}) for: {name}")
