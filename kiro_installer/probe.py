import json
import subprocess
from pathlib import Path

from .constants import (
    EXECUTABLE_RELATIVE_PATHS,
    PROBE_TIMEOUT,
    VERSION_FILE_RELATIVE_PATHS,
)
from .versioning import search_version, strict_version, version_prefix


def _run_version_flag(executable, flag, timeout=PROBE_TIMEOUT):
    if not executable.is_file():
        return ""
    try:
        completed = subprocess.run(
            [str(executable), flag],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError):
        return ""
    return completed.stdout or ""


def _first_line(text):
    lines = text.splitlines()
    if not lines:
        return ""
    return lines[0].replace(" ", "").replace("\r", "")


def _version_from_json(path):
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError):
        return ""
    if not isinstance(data, dict):
        return ""
    value = data.get("version")
    return value if isinstance(value, str) else ""


def _version_from_text(path):
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""
    return _first_line(content)


def version_from_executables(install_dir):
    executables = [install_dir / relative for relative in EXECUTABLE_RELATIVE_PATHS]

    for executable in executables:
        version = strict_version(_first_line(_run_version_flag(executable, "-v")))
        if version:
            return version

    # --version output may carry a commit hash and arch on later lines.
    for executable in executables:
        version = search_version(_run_version_flag(executable, "--version"))
        if version:
            return version
    return ""


def version_from_files(install_dir):
    for relative in VERSION_FILE_RELATIVE_PATHS:
        path = install_dir / relative
        if not path.is_file():
            continue
        if path.suffix == ".json":
            candidate = _version_from_json(path)
        else:
            candidate = _version_from_text(path)
        version = version_prefix(candidate)
        if version:
            return version
    return ""


def probe_installed_version(install_dir):
    """Return the version installed in ``install_dir`` or ``""`` if unknown.

    Executables are asked first (``-v`` must print exactly a version triple,
    ``--version`` may print it anywhere); package descriptors and plain
    version files are the fallback and only need to start with a triple.
    """
    install_dir = Path(install_dir)
    if not install_dir.is_dir():
        return ""
    return version_from_executables(install_dir) or version_from_files(install_dir)
