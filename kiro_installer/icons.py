from pathlib import Path

from .constants import (
    ALTERNATE_ICON_RELATIVE_PATH,
    FALLBACK_ICON_NAME,
    ICON_RELATIVE_PATH,
    SYSTEM_FALLBACK_ICONS,
)

# The bundled icon sits next to the installer script in a source checkout.
SOURCE_ROOT = Path(__file__).resolve().parent.parent


def _packaged_icon(install_dir):
    for relative in (ICON_RELATIVE_PATH, ALTERNATE_ICON_RELATIVE_PATH):
        candidate = install_dir / relative
        if candidate.is_file():
            return candidate
    return None


def _fallback_icon_sources(source_root=None):
    root = Path(source_root) if source_root is not None else SOURCE_ROOT
    return [root / FALLBACK_ICON_NAME, *SYSTEM_FALLBACK_ICONS]


def resolve_icon(install_dir, file_ops, destination=None, source_root=None):
    """Return the icon path to reference from desktop entries.

    Uses the icon shipped in the package when present; otherwise copies a
    fallback icon into ``destination`` (by default the packaged icon location).
    """
    install_dir = Path(install_dir)
    packaged = _packaged_icon(install_dir)
    if packaged is not None:
        return packaged

    if destination is None:
        destination = install_dir / ICON_RELATIVE_PATH
    destination = Path(destination)
    print("Installing Kiro icon...")
    for source in _fallback_icon_sources(source_root):
        if not source.is_file():
            continue
        try:
            file_ops.make_dirs(destination.parent)
            file_ops.copy_file(source, destination)
        except OSError as exc:
            print(f"Warning: failed to copy icon {source}: {exc}")
            continue
        print(f"Using icon: {source}")
        return destination

    print("Warning: Could not find suitable icon.")
    return destination
