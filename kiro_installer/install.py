import shutil
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import EXECUTABLE_RELATIVE_PATHS, SANDBOX_MODE, SANDBOX_RELATIVE_PATH
from .desktop import DesktopIntegrator
from .errors import ElevationDeclined, InstallStepFailed
from .icons import resolve_icon
from .privilege import FileOperations, confirm_elevation, requires_elevation
from .settings import backup_candidate_dirs


@dataclass(frozen=True)
class InstallResult:
    fresh_install: bool
    install_dir: Path
    executable: Path
    backup_dir: Optional[Path] = None

    @property
    def kind(self):
        return "fresh install" if self.fresh_install else "update"


def _unique_backup_dir(root, timestamp):
    stamp = time.strftime("%Y%m%d-%H%M%S", time.localtime(timestamp))
    candidate = root / f"kiro_config_backup_{stamp}"
    suffix = 1
    while candidate.exists():
        candidate = root / f"kiro_config_backup_{stamp}-{suffix}"
        suffix += 1
    return candidate


def backup_user_data(source_dirs, backup_root=None, timestamp=None):
    """Copy existing user-data dirs into a fresh backup dir.

    Returns the backup dir, or ``None`` when there was nothing to copy or the
    backup could not be made. Failures are reported, never raised.
    """
    existing = [Path(path) for path in source_dirs if Path(path).is_dir()]
    if not existing:
        return None

    root = Path(backup_root) if backup_root is not None else Path(tempfile.gettempdir())
    backup_dir = _unique_backup_dir(root, time.time() if timestamp is None else timestamp)
    print(f"Backing up user configurations to {backup_dir}...")
    try:
        backup_dir.mkdir(parents=True)
    except OSError as exc:
        print(f"Warning: could not create backup directory {backup_dir}: {exc}")
        return None

    for source in existing:
        print(f"Backing up {source}...")
        try:
            shutil.copytree(source, backup_dir / source.name, symlinks=True)
        except (OSError, shutil.Error) as exc:
            print(f"Warning: failed to back up {source}: {exc}")
    return backup_dir


def _set_permissions(install_dir, file_ops):
    print("Setting permissions...")
    executables = [
        install_dir / relative
        for relative in EXECUTABLE_RELATIVE_PATHS
        if (install_dir / relative).is_file()
    ]
    if not executables:
        raise InstallStepFailed(f"No Kiro executable found in {install_dir} after copying.")
    try:
        for executable in executables:
            file_ops.add_executable_bit(executable)
    except OSError as exc:
        raise InstallStepFailed(f"Failed to set executable permissions: {exc}") from exc

    sandbox = install_dir / SANDBOX_RELATIVE_PATH
    if not sandbox.is_file():
        print(f"Warning: sandbox helper {sandbox} not found; skipping setuid permissions.")
    else:
        try:
            file_ops.set_mode(sandbox, SANDBOX_MODE)
        except OSError as exc:
            raise InstallStepFailed(f"Failed to set permissions on {sandbox}: {exc}") from exc
    return executables[0]


def install_package(
    payload_dir,
    target,
    home=None,
    backup_root=None,
    interactive=None,
    integrator=None,
    file_ops=None,
    icon_source_root=None,
):
    """Make ``payload_dir`` the active installation at ``target``."""
    payload_dir = Path(payload_dir)
    install_dir = target.install_dir
    fresh_install = not install_dir.exists()

    backup_dir = None
    if not fresh_install:
        print("Detected existing Kiro installation. Updating...")
        backup_dir = backup_user_data(backup_candidate_dirs(home), backup_root=backup_root)

    elevated = requires_elevation(target)
    if elevated and not confirm_elevation(target, interactive=interactive):
        raise ElevationDeclined("Installation cancelled.")

    if file_ops is None:
        file_ops = FileOperations(elevated=elevated)

    print(f"Copying files to {install_dir}...")
    try:
        file_ops.make_dirs(install_dir)
        file_ops.copy_contents(payload_dir, install_dir)
    except OSError as exc:
        raise InstallStepFailed(f"Failed to copy files to {install_dir}: {exc}") from exc

    executable = _set_permissions(install_dir, file_ops)

    print(f"Creating symbolic link in {target.symlink_dir}...")
    try:
        file_ops.make_dirs(target.symlink_dir)
        file_ops.replace_symlink(executable, target.symlink_path)
    except OSError as exc:
        raise InstallStepFailed(f"Failed to create symbolic link {target.symlink_path}: {exc}") from exc

    if integrator is None:
        integrator = DesktopIntegrator(target.desktop_dir)
    icon_path = resolve_icon(
        install_dir,
        file_ops,
        destination=target.icon_path,
        source_root=icon_source_root,
    )
    if not integrator.register_app(install_dir, icon_path, elevated=elevated):
        print("Warning: desktop integration failed; Kiro is still available from the command line.")

    return InstallResult(
        fresh_install=fresh_install,
        install_dir=install_dir,
        executable=executable,
        backup_dir=backup_dir,
    )
