"""
Heuristic field extraction for forwarded order emails.

The emails are forwarded web-form submissions in Swedish, usually HTML, with
labelled sections such as:

    Företag: Acme AB  Start: 2025-03-01  Ort: Göteborg
    Resurs: Jane Doe <jane@example.com>
    Url: https://www.example.co.uk/about

Each field has its own extractor. Extractors are pure functions over the raw
text that return None when their label or value is missing, so one field never
blocks another. extract_fields() composes them over the message body and falls
back to the snippet per field.
"""

import html
import logging
import re
from typing import Callable, Optional

from bridge.models.notification import ExtractedFields, MessageRecord

logger = logging.getLogger(__name__)

# Markup removal. Tag names must be followed by whitespace, "/" or ">", so
# plain-text addresses like <jane@example.com> survive.
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(
    r"<!--.*?-->|<![^>]*>|</?[A-Za-z][A-Za-z0-9:-]*(?:\s[^<>]*)?/?>",
    re.DOTALL,
)
_WHITESPACE_RE = re.compile(r"\s+")

# Section labels, matched in normalized text (entities already decoded)
_COMPANY_LABEL_RE = re.compile(r"företag(?:snamn)?", re.IGNORECASE)
_RESOURCE_LABEL_RE = re.compile(r"resurs", re.IGNORECASE)
_URL_LABEL_RE = re.compile(r"\burl\b", re.IGNORECASE)

# Labels that end the organization section. Whole words only, so names like
# "Startup Labs AB" are kept.
_ORG_STOP_RE = re.compile(r"\b(?:start|startdatum|ort)\b(?P<colon>\s*:)?", re.IGNORECASE)

# Letters incl. Latin-1 extended (åäö, é, ü ...), digits, spaces and -.,()&
_ORG_RUN_RE = re.compile(r"[A-Za-zÀ-ÖØ-öø-ÿ0-9 \-.,()&]+")
_LEADING_SEPARATOR_RE = re.compile(r"^[\s:]+")

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}")

# Optional scheme, optional www., host with at least one dot and an alphabetic
# TLD, optional port/path. Host labels may hold any Unicode letter (åre.se).
# Hosts that belong to an email address are skipped.
_URL_RE = re.compile(
    r"(?<![\w.@-])"
    r"(?:https?://)?"
    r"(?:www\.)?"
    r"((?:[^\W_](?:(?:[^\W_]|-)*[^\W_])?\.)+[^\W\d_]{2,})"
    r"\b(?!@|[\w-]|\.[\w-])"
    r"(?:[:/?#]\S*)?",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Text normalization
# ---------------------------------------------------------------------------

def _normalize_once(text: str) -> str:
    cleaned = _SCRIPT_STYLE_RE.sub(" ", text)
    cleaned = html.unescape(_TAG_RE.sub(" ", cleaned))
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def normalize_text(text: Optional[str]) -> str:
    """
    Flatten HTML/plain text into a single line of visible text.

    Steps: drop <script>/<style> blocks, replace tags with spaces, decode
    entities (&nbsp;, &#160; and &#xA0; become non-breaking spaces), collapse
    every whitespace run to one space, trim. Repeated until nothing changes,
    so escaped markup (&lt;b&gt;) is removed too and the result is stable
    under a second call.

    Examples:
        "<p>Företag:&nbsp;Acme</p>"  -> "Företag: Acme"
        "Acme &lt;b&gt;AB&lt;/b&gt;"  -> "Acme AB"
        "  a \\n\\t b "               -> "a b"
        None                          -> ""
    """
    if not text:
        return ""

    # Every pass that changes the text shortens it or only rewrites
    # whitespace, so this terminates.
    previous, current = None, text
    while current != previous:
        previous, current = current, _normalize_once(current)
    return current


def _text_after(label_re: re.Pattern, text: Optional[str]) -> Optional[str]:
    """
    Normalized text following the first match of label_re, or None.

    Labels are searched in the normalized text, so a label inside markup
    (e.g. a CSS url(...)) is never taken for the visible one, and extracting
    from already-normalized text gives the same result.
    """
    visible = normalize_text(text)
    match = label_re.search(visible)
    if not match:
        return None
    return visible[match.end():].strip()


# ---------------------------------------------------------------------------
# Individual extractors
# ---------------------------------------------------------------------------

def extract_organization_name(text: Optional[str]) -> Optional[str]:
    """
    Organization name following the "Företag" label.

    Takes the leading run of name characters after the label and cuts it
    before a following "Start", "Startdatum" or "Ort" label. A stop word
    in first position only counts as a label when a ":" follows it.

    Examples:
        "Företag: Acme AB Start: 2025-01-01"  -> "Acme AB"
        "Företag: Startup Labs AB Ort: Malmö" -> "Startup Labs AB"
        "FÖRETAG: Åkesson & Co (Väst)"        -> "Åkesson & Co (Väst)"
        "Företag: Start: 2025-01-01"          -> None
        "Företag:"                            -> None
        "no label here"                       -> None
    """
    after = _text_after(_COMPANY_LABEL_RE, text)
    if after is None:
        return None

    after = _LEADING_SEPARATOR_RE.sub("", after)
    run = _ORG_RUN_RE.match(after)
    if not run:
        return None

    value = run.group(0)
    for stop in _ORG_STOP_RE.finditer(after):
        if stop.start() >= run.end():
            break
        if stop.start() > 0 or stop.group("colon"):
            value = after[:stop.start()]
            break

    value = value.strip(" ,")
    if not re.search(r"\w", value):
        return None
    return value


def extract_salesperson_email(text: Optional[str]) -> Optional[str]:
    """
    First email address after the "Resurs" label.

    Examples:
        "Resurs: contact me at jane@example.com for details"  -> "jane@example.com"
        "Resurs: Jane Doe"                                    -> None
    """
    after = _text_after(_RESOURCE_LABEL_RE, text)
    if after is None:
        return None

    match = _EMAIL_RE.search(after)
    return match.group(0) if match else None


def normalize_domain(host: str) -> str:
    """Lowercase, strip surrounding whitespace and a leading "www."."""
    host = host.strip().lower()
    if host.startswith("www."):
        host = host[len("www."):]
    return host


def extract_domain(text: Optional[str]) -> Optional[str]:
    """
    Bare domain of the first URL after the "Url" label.

    Scheme, "www." and path are dropped.

    Examples:
        "Url: https://www.example.co.uk/path"  -> "example.co.uk"
        "Url: Example.COM"                     -> "example.com"
        "Url: jane@example.com"                -> None
    """
    after = _text_after(_URL_LABEL_RE, text)
    if after is None:
        return None

    match = _URL_RE.search(after)
    if not match:
        return None

    domain = normalize_domain(match.group(1))
    return domain or None


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

def _first_found(
    extractor: Callable[[Optional[str]], Optional[str]],
    sources: list[str],
) -> Optional[str]:
    for source in sources:
        value = extractor(source)
        if value is not None:
            return value
    return None


def extract_fields(record: MessageRecord) -> ExtractedFields:
    """
    Run every extractor over the body, falling back to the snippet.

    The fallback is per field: a body that yields only a domain can still
    get its organization name from the snippet.
    """
    sources = [record.body, record.snippet]

    fields = ExtractedFields(
        organization_name=_first_found(extract_organization_name, sources),
        domain=_first_found(extract_domain, sources),
        salesperson_email=_first_found(extract_salesperson_email, sources),
    )
    logger.debug("Extracted fields for message %s: %s", record.id, fields)
    return fields
