"""Claude API client with retry policy, plus deliverable extraction."""

import json
import logging
import os
import re
import time

import anthropic

from config.defaults import DEFAULTS

logger = logging.getLogger(__name__)

# Overloaded, rate-limited, temporarily unavailable
TRANSIENT_STATUSES = {429, 503, 529}
TRANSIENT_ERROR_TYPES = {"overloaded_error", "rate_limit_error"}

TRUNCATION_MARKER = "\n<!-- TRUNCATED: Response hit token limit -->"


class ProviderError(Exception):
    """A failed provider call, classified as transient (retryable) or fatal."""

    def __init__(self, message, transient=False, status=None):
        super().__init__(message)
        self.transient = transient
        self.status = status


def get_client():
    """Return an Anthropic client. Raises if no API key is set."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError(
            "ANTHROPIC_API_KEY environment variable is not set. "
            "Get a key at https://console.anthropic.com/ and run:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'"
        )
    return anthropic.Anthropic(api_key=api_key)


def _error_type(exc):
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("type")
        return body.get("type")
    return None


def classify_error(exc):
    """Map an anthropic.APIError to a ProviderError."""
    status = getattr(exc, "status_code", None)
    transient = (
        isinstance(exc, anthropic.APIConnectionError)
        or status in TRANSIENT_STATUSES
        or _error_type(exc) in TRANSIENT_ERROR_TYPES
    )
    return ProviderError(str(exc) or exc.__class__.__name__, transient=transient, status=status)


class AnthropicProvider:
    """The external generation provider: one request in, text out."""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_client()
        return self._client

    def invoke(self, model_id, max_tokens, system, user):
        try:
            # Use streaming to avoid SDK timeout for large max_tokens
            text = ""
            with self.client.messages.stream(
                model=model_id,
                max_tokens=max_tokens,
                system=system,
                messages=[{"role": "user", "content": user}],
            ) as stream:
                for chunk in stream.text_stream:
                    text += chunk
                stop_reason = stream.get_final_message().stop_reason
        except anthropic.APIError as e:
            raise classify_error(e) from e

        if stop_reason == "max_tokens":
            text += TRUNCATION_MARKER
        return text


class GenerationClient:
    """Retrying wrapper around a provider.

    Transient failures are retried up to max_retries extra times with
    backoff_seconds * attempt between tries; fatal failures propagate at once.
    """

    def __init__(self, provider, max_retries=None, backoff_seconds=None, sleep=time.sleep):
        self.provider = provider
        self.max_retries = DEFAULTS["max_retries"] if max_retries is None else max_retries
        self.backoff_seconds = DEFAULTS["backoff_seconds"] if backoff_seconds is None else backoff_seconds
        self._sleep = sleep

    def call(self, model_id, max_tokens, system, user):
        for attempt in range(self.max_retries + 1):
            try:
                return self.provider.invoke(model_id, max_tokens, system, user)
            except ProviderError as e:
                if not e.transient or attempt == self.max_retries:
                    raise
                delay = self.backoff_seconds * (attempt + 1)
                logger.warning(
                    "Transient provider failure on %s (attempt %d/%d), retrying in %ss: %s",
                    model_id, attempt + 1, self.max_retries + 1, delay, e,
                )
                self._sleep(delay)


# --- Deliverable extraction ---

_FENCED_RE = re.compile(r"```([\w-]*)[ \t]*\r?\n(.*?)```", re.DOTALL)
_DOC_START_RE = re.compile(r"<!DOCTYPE|<html[\s>]", re.IGNORECASE)


def _from_fence(text):
    """First ```html or bare fenced block; blocks tagged with another language are skipped."""
    for match in _FENCED_RE.finditer(text):
        if match.group(1).lower() in ("", "html") and match.group(2).strip():
            return match.group(2)
    return None


def _from_document_start(text):
    match = _DOC_START_RE.search(text)
    if match:
        return text[match.start():]
    return None


# Priority order; the first strategy that finds something wins.
EXTRACTION_STRATEGIES = [
    ("fenced", _from_fence),
    ("document-start", _from_document_start),
]


def extract_document(response):
    """Pull the markup document out of a model response.

    Returns (content, strategy). When no strategy matches, the whole
    response is the deliverable ("raw") so nothing is silently dropped.
    """
    for name, strategy in EXTRACTION_STRATEGIES:
        found = strategy(response)
        if found is not None:
            return found.strip(), name
    return response.strip(), "raw"


def parse_json_object(text):
    """Parse the first {...} object in text. Returns {} on any failure."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```\w*\n?", "", cleaned)
        cleaned = re.sub(r"\n?```$", "", cleaned)
    match = re.search(r"\{.*\}", cleaned, re.DOTALL)
    if not match:
        return {}
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}
