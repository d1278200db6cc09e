"""Unit classification tables and model routing."""

from collections import namedtuple

from config.defaults import DEFAULTS

Route = namedtuple("Route", ["model", "max_tokens"])

# Forms, static informational and legal pages gain nothing from the larger model.
SIMPLE_UNIT_SLUGS = {
    "login", "signup", "register", "contact", "about", "auth",
    "error", "404", "terms", "privacy", "faq", "team", "blog",
}

# Units that redirect to login when no session exists
PROTECTED_SLUGS = {"dashboard", "member", "account", "profile", "settings", "admin"}

# Any of these in a plan means the shared script needs session helpers
AUTH_SLUGS = {"login", "signup", "dashboard", "member", "account", "profile", "settings"}


def base_slug(slug):
    """Strip a dedup suffix: "contact-2" -> "contact"."""
    head, sep, tail = slug.rpartition("-")
    if sep and tail.isdigit():
        return head
    return slug


def is_simple(slug):
    return base_slug(slug.lower()) in SIMPLE_UNIT_SLUGS


def is_protected(slug):
    return base_slug(slug.lower()) in PROTECTED_SLUGS


def requires_auth(slug):
    return base_slug(slug.lower()) in AUTH_SLUGS


def route_for(slug):
    """Return the (model, max_tokens) route for a unit slug."""
    if is_simple(slug):
        return Route(DEFAULTS["fast_model"], DEFAULTS["fast_max_tokens"])
    return Route(DEFAULTS["strong_model"], DEFAULTS["strong_max_tokens"])


def shared_route():
    """Route for the single shared-asset call."""
    return Route(DEFAULTS["strong_model"], DEFAULTS["shared_max_tokens"])
