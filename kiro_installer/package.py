import gzip
import shutil
import tarfile
import urllib.error
import urllib.request
import zlib
from pathlib import Path

from .constants import (
    ARCHIVE_NAME,
    DOWNLOAD_TIMEOUT,
    EXECUTABLE_RELATIVE_PATHS,
    PAYLOAD_DIR_NAME,
    USER_AGENT,
)
from .errors import PackageDownloadFailed, PackageExtractFailed, PackageLayoutInvalid

EXTRACT_DIR_NAME = "extracted"
_LISTING_LIMIT = 20
_GZIP_MAGIC = b"\x1f\x8b"
_CHUNK_SIZE = 1024 * 1024


def download_archive(url, destination, timeout=DOWNLOAD_TIMEOUT):
    if not url:
        raise PackageDownloadFailed("Release metadata does not list a .tar.gz package.")
    destination = Path(destination)
    print(f"Downloading from: {url}")
    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            expected = response.headers.get("Content-Length")
            with open(destination, "wb") as handle:
                shutil.copyfileobj(response, handle)
    except urllib.error.HTTPError as exc:
        raise PackageDownloadFailed(f"Failed to download Kiro package: HTTP {exc.code}") from exc
    except urllib.error.URLError as exc:
        raise PackageDownloadFailed(f"Failed to download Kiro package: {exc.reason}") from exc
    except OSError as exc:
        raise PackageDownloadFailed(f"Failed to download Kiro package: {exc}") from exc

    size = destination.stat().st_size
    if size == 0:
        raise PackageDownloadFailed("Downloaded Kiro package is empty.")
    if expected is not None and expected.isdigit() and int(expected) != size:
        raise PackageDownloadFailed(
            f"Incomplete download: received {size} of {expected} bytes."
        )
    return destination


def has_extraction_filters():
    return hasattr(tarfile, "tar_filter")


def verify_compressed_stream(archive_path):
    """Decompress a gzip archive to its end so the CRC and length trailer are checked.

    tarfile stops reading at the end-of-archive marker and never reaches the
    trailer, so damaged deflate data would otherwise go unnoticed.
    """
    with open(archive_path, "rb") as handle:
        if handle.read(len(_GZIP_MAGIC)) != _GZIP_MAGIC:
            return
    with gzip.open(archive_path, "rb") as stream:
        while stream.read(_CHUNK_SIZE):
            pass


def extract_archive(archive_path, extract_root):
    print("Extracting Kiro package...")
    if not has_extraction_filters():
        raise PackageExtractFailed(
            "This Python lacks tarfile extraction filters. "
            "Use Python 3.12, 3.11.4+ or 3.10.12+."
        )
    extract_root = Path(extract_root)
    extract_root.mkdir(parents=True, exist_ok=True)
    try:
        verify_compressed_stream(archive_path)
        with tarfile.open(archive_path, "r:*") as archive:
            archive.extractall(extract_root, filter="tar")
    except (tarfile.TarError, EOFError, OSError, zlib.error) as exc:
        raise PackageExtractFailed(f"Failed to extract Kiro package: {exc}") from exc
    return extract_root


def has_main_executable(directory):
    return any((directory / relative).is_file() for relative in EXECUTABLE_RELATIVE_PATHS)


def _top_level_dir(extract_root):
    directories = sorted(path for path in extract_root.iterdir() if path.is_dir())
    if not directories:
        return None
    if len(directories) > 1:
        names = ", ".join(path.name for path in directories)
        print(f"Warning: archive has several top-level directories ({names}); using {directories[0].name}.")
    return directories[0]


def _hoist_payload(extract_root, top_dir):
    nested = top_dir / PAYLOAD_DIR_NAME
    hoisted = extract_root / PAYLOAD_DIR_NAME
    if top_dir == hoisted:
        # Free the canonical name before moving the nested payload into it.
        top_dir = top_dir.rename(extract_root / f".{PAYLOAD_DIR_NAME}-wrapper")
        nested = top_dir / PAYLOAD_DIR_NAME
    nested.rename(hoisted)
    try:
        top_dir.rmdir()
    except OSError:
        print(f"Warning: leaving non-empty wrapper directory {top_dir.name} in place.")
    return hoisted


def normalize_layout(extract_root):
    """Return the payload directory of an extracted archive.

    Archives may wrap the payload in a version-stamped directory
    (``<stamp>/Kiro/bin/kiro``); that extra level is hoisted away.
    """
    extract_root = Path(extract_root)
    if has_main_executable(extract_root):
        return extract_root
    top_dir = _top_level_dir(extract_root)
    if top_dir is not None:
        if (top_dir / PAYLOAD_DIR_NAME).is_dir():
            print("Found Kiro directory in extracted package.")
            return _hoist_payload(extract_root, top_dir)
        if has_main_executable(top_dir):
            return top_dir
    print("Warning: Did not find expected directory structure. Continuing anyway.")
    return extract_root


def _listing(directory):
    entries = []
    for path in sorted(directory.rglob("*")):
        relative = path.relative_to(directory)
        if len(relative.parts) > 2:
            continue
        entries.append(relative.as_posix() + ("/" if path.is_dir() else ""))
        if len(entries) >= _LISTING_LIMIT:
            break
    return entries


def validate_payload(payload_dir):
    payload_dir = Path(payload_dir)
    if has_main_executable(payload_dir):
        return payload_dir
    found = _listing(payload_dir) if payload_dir.is_dir() else []
    details = "\n".join(f"  {entry}" for entry in found) or "  (empty)"
    raise PackageLayoutInvalid(
        "Invalid Kiro package extracted. Missing required executable files "
        f"({' or '.join(EXECUTABLE_RELATIVE_PATHS)}).\n"
        f"Contents found instead in {payload_dir}:\n{details}"
    )


def acquire_package(url, work_dir):
    """Download, extract and validate a release; return the payload directory."""
    print("Downloading Kiro package...")
    work_dir = Path(work_dir)
    archive_path = download_archive(url, work_dir / ARCHIVE_NAME)
    extract_root = extract_archive(archive_path, work_dir / EXTRACT_DIR_NAME)
    return validate_payload(normalize_layout(extract_root))
