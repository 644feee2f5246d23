import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .desktop import DesktopIntegrator
from .errors import InstallStepFailed
from .privilege import FileOperations, requires_elevation
from .settings import alternate_target, user_data_dirs


@dataclass(frozen=True)
class UninstallResult:
    removed: bool
    alternate_install_dir: Optional[Path] = None
    removed_user_data: list = field(default_factory=list)


def _remove_user_dir(path):
    try:
        if path.is_symlink():
            path.unlink()
        else:
            shutil.rmtree(path)
        print(f"Removed {path}.")
        return True
    except FileNotFoundError:
        return False
    except OSError as exc:
        print(f"Failed to remove {path}: {exc}")
        return False


def _remove_symlink(link_path, file_ops):
    print("Removing symbolic link...")
    if link_path.is_symlink():
        try:
            file_ops.remove_file(link_path)
        except OSError as exc:
            print(f"Warning: failed to remove symbolic link {link_path}: {exc}")
            return False
        return True
    if link_path.exists():
        print(f"Warning: {link_path} is not a symbolic link; leaving it in place.")
    return False


def remove_user_data(home=None):
    print("Removing user configuration data...")
    removed = []
    for path in user_data_dirs(home):
        if path.is_dir() or path.is_symlink():
            if _remove_user_dir(path):
                removed.append(path)
    return removed


def uninstall(target, clean=False, home=None, integrator=None, file_ops=None, other_target=None):
    """Remove the installation at ``target``.

    User data under the home directory is only touched when ``clean`` is set.
    """
    print("Uninstalling Kiro...")
    if clean:
        print("Clean removal requested. User configuration will also be removed.")

    if not target.install_dir.is_dir():
        print(f"Kiro is not installed at {target.install_dir}.")
        other = other_target if other_target is not None else alternate_target(target, home=home)
        if other.install_dir.is_dir():
            flag_hint = "without the --user flag" if not target.requires_elevated_privilege else "with the --user flag"
            print(f"Kiro might be installed at {other.install_dir}. Rerun {flag_hint} to uninstall it.")
            return UninstallResult(removed=False, alternate_install_dir=other.install_dir)
        print("Kiro installation not found.")
        return UninstallResult(removed=False)

    elevated = requires_elevation(target)
    if file_ops is None:
        file_ops = FileOperations(elevated=elevated)

    print("Removing installation directory...")
    try:
        file_ops.remove_tree(target.install_dir)
    except OSError as exc:
        raise InstallStepFailed(f"Failed to remove {target.install_dir}: {exc}") from exc

    _remove_symlink(target.symlink_path, file_ops)

    if integrator is None:
        integrator = DesktopIntegrator(target.desktop_dir)
    if not integrator.unregister_app(target.desktop_dir, elevated=elevated):
        print("Warning: some desktop entries could not be removed.")

    removed_user_data = []
    if clean:
        removed_user_data = remove_user_data(home)
        print("All user configuration data has been removed.")
    else:
        print("Note: User configuration data has been preserved.")
        print("To remove user data, rerun with the --clean flag.")

    print("Kiro has been successfully uninstalled!")
    return UninstallResult(removed=True, removed_user_data=removed_user_data)
