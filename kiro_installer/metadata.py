import json
import urllib.error
import urllib.request
from dataclasses import dataclass

from .constants import METADATA_TIMEOUT, METADATA_URL, PACKAGE_SUFFIX, USER_AGENT
from .errors import MetadataFetchFailed, MetadataMalformed
from .versioning import is_valid_version


@dataclass(frozen=True)
class ReleaseMetadata:
    current_version: str
    package_url: str


def _package_url(payload):
    releases = payload.get("releases")
    if not isinstance(releases, list):
        return ""
    for release in releases:
        if not isinstance(release, dict):
            continue
        update_to = release.get("updateTo")
        if not isinstance(update_to, dict):
            continue
        url = update_to.get("url")
        if isinstance(url, str) and url.strip().endswith(PACKAGE_SUFFIX):
            return url.strip()
    return ""


def parse_metadata(payload):
    if not isinstance(payload, dict):
        raise MetadataMalformed("Release metadata is not a JSON object.")

    raw_version = payload.get("currentRelease")
    if not isinstance(raw_version, str) or not raw_version.strip():
        raise MetadataMalformed(
            "Could not determine current version from metadata "
            "(missing or invalid 'currentRelease')."
        )

    current_version = raw_version.strip()
    if not is_valid_version(current_version):
        print(
            f"Warning: remote version '{current_version}' is not a "
            "major.minor.patch version; treating it as unknown."
        )
        current_version = ""

    return ReleaseMetadata(
        current_version=current_version,
        package_url=_package_url(payload),
    )


def fetch_metadata(url=METADATA_URL, timeout=METADATA_TIMEOUT):
    print("Fetching latest Kiro metadata...")
    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            raw = response.read()
    except urllib.error.HTTPError as exc:
        raise MetadataFetchFailed(
            f"Failed to download metadata from {url}: HTTP {exc.code}"
        ) from exc
    except urllib.error.URLError as exc:
        raise MetadataFetchFailed(
            f"Failed to download metadata from {url}: {exc.reason}"
        ) from exc
    except OSError as exc:
        raise MetadataFetchFailed(
            f"Failed to download metadata from {url}: {exc}"
        ) from exc

    if not raw.strip():
        raise MetadataFetchFailed("Downloaded metadata file is empty.")

    try:
        payload = json.loads(raw.decode("utf-8", errors="replace"))
    except ValueError as exc:
        raise MetadataMalformed(f"Invalid release metadata: {exc}") from exc

    metadata = parse_metadata(payload)
    if metadata.current_version:
        print(f"Latest version available: {metadata.current_version}")
    return metadata
