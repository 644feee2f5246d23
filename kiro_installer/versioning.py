import re

OLDER = "older"
EQUAL = "equal"
NEWER = "newer"

_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")
_VERSION_PREFIX_RE = re.compile(r"^\d+\.\d+\.\d+")
_VERSION_SEARCH_RE = re.compile(r"\d+\.\d+\.\d+")
_LEADING_DIGITS_RE = re.compile(r"^\d+")


def is_valid_version(text):
    if not isinstance(text, str):
        return False
    return _VERSION_RE.match(text) is not None


def strict_version(text):
    """Return ``text`` if it is exactly a version triple, else ``""``."""
    return text if is_valid_version(text) else ""


def search_version(text):
    """Return the first version triple found anywhere in ``text``."""
    if not isinstance(text, str):
        return ""
    matched = _VERSION_SEARCH_RE.search(text)
    return matched.group(0) if matched else ""


def version_prefix(text):
    """Return the leading version triple of ``text``.

    ``"2.0.0-beta"`` gives ``"2.0.0"``; ``"v2.0.0"`` gives ``""``.
    """
    if not isinstance(text, str):
        return ""
    matched = _VERSION_PREFIX_RE.match(text)
    return matched.group(0) if matched else ""


def _numeric_parts(version):
    parts = []
    for component in version.split("."):
        matched = _LEADING_DIGITS_RE.match(component)
        parts.append(int(matched.group(0)) if matched else 0)
    return parts


def compare_versions(installed, remote):
    """Order an installed version against a remote one.

    Returns ``OLDER`` when an update is needed. An unknown installed version
    is always ``OLDER``; an unknown remote version is reported as ``EQUAL``
    so it never triggers a reinstall.
    """
    if not installed:
        return OLDER
    if not remote:
        return EQUAL
    if installed == remote:
        return EQUAL

    left = _numeric_parts(installed)
    right = _numeric_parts(remote)
    width = max(len(left), len(right))
    left += [0] * (width - len(left))
    right += [0] * (width - len(right))
    if left < right:
        return OLDER
    if left > right:
        return NEWER
    return EQUAL


def is_update_needed(installed, remote):
    return compare_versions(installed, remote) == OLDER
