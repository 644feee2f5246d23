from dataclasses import dataclass
from typing import Optional

from .errors import InstallerError
from .metadata import ReleaseMetadata, fetch_metadata
from .probe import probe_installed_version
from .versioning import NEWER, OLDER, compare_versions

PROCEED = "proceed"
SKIP = "skip"
ERROR = "error"


@dataclass(frozen=True)
class UpdateDecision:
    action: str
    installed_version: str = ""
    remote_version: str = ""
    metadata: Optional[ReleaseMetadata] = None
    reason: str = ""

    @property
    def proceed(self):
        return self.action == PROCEED


def evaluate_update(installed_version, remote_version, force=False):
    """Pure decision step: return ``(action, reason)``."""
    if force:
        return PROCEED, "Force update requested, skipping version check."
    if not installed_version:
        return PROCEED, "No existing Kiro installation found. Proceeding with fresh installation."

    ordering = compare_versions(installed_version, remote_version)
    if ordering == OLDER:
        return PROCEED, f"Update available: {installed_version} -> {remote_version}"
    if ordering == NEWER:
        return SKIP, (
            f"Installed version {installed_version} is newer than the latest "
            f"release {remote_version}; nothing to do."
        )
    return SKIP, f"Kiro is already up to date (version {installed_version})."


def decide(
    install_dir,
    force=False,
    metadata_url=None,
    fetcher=fetch_metadata,
    prober=probe_installed_version,
):
    try:
        if metadata_url is None:
            metadata = fetcher()
        else:
            metadata = fetcher(metadata_url)
    except InstallerError as exc:
        return UpdateDecision(action=ERROR, reason=str(exc))

    # Forced runs never look at the installed version.
    installed_version = "" if force else prober(install_dir)
    if installed_version:
        print(f"Currently installed version: {installed_version}")

    action, reason = evaluate_update(
        installed_version, metadata.current_version, force=force
    )
    return UpdateDecision(
        action=action,
        installed_version=installed_version,
        remote_version=metadata.current_version,
        metadata=metadata,
        reason=reason,
    )
