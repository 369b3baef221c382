"""Best-effort User-Agent classification for audit metadata.

Substring matching against a short list of known tokens; first match wins.
This is not a parser and must not be used for access decisions.
"""

from __future__ import annotations

_BROWSERS = ("Chrome", "Firefox", "Safari", "Edge", "Opera")
_OPERATING_SYSTEMS = ("Windows", "Mac", "Linux", "Android", "iOS")
UNKNOWN = "Unknown"


def extract_browser(user_agent: str | None) -> str:
    ua = user_agent or ""
    return next((b for b in _BROWSERS if b in ua), UNKNOWN)


def extract_os(user_agent: str | None) -> str:
    ua = user_agent or ""
    return next((o for o in _OPERATING_SYSTEMS if o in ua), UNKNOWN)


def extract_device(user_agent: str | None) -> str:
    ua = user_agent or ""
    if "Mobile" in ua:
        return "Mobile"
    if "Tablet" in ua:
        return "Tablet"
    return "Desktop"


def classify_user_agent(user_agent: str | None) -> dict[str, str]:
    """Return {"browser", "os", "device"} for audit metadata."""
    return {
        "browser": extract_browser(user_agent),
        "os": extract_os(user_agent),
        "device": extract_device(user_agent),
    }
