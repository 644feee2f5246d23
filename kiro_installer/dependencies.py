import os
import shutil
import subprocess
from pathlib import Path

from .errors import DependencyMissing
from .privilege import sudo_prefix
from .settings import invoking_home

OPTIONAL_COMMANDS = ("update-desktop-database", "xdg-mime")
COMMAND_PACKAGES = {
    "update-desktop-database": "desktop-file-utils",
    "xdg-mime": "xdg-utils",
}
PACKAGE_MANAGERS = (
    ("apt-get", ["install", "-y"]),
    ("dnf", ["install", "-y"]),
    ("yum", ["install", "-y"]),
    ("pacman", ["-Sy", "--needed", "--noconfirm"]),
    ("zypper", ["install", "-y"]),
)


def required_commands(config):
    if not config.user_scope and os.geteuid() != 0:
        return {"sudo"}
    return set()


def missing_commands(names, which=shutil.which):
    return sorted(name for name in names if which(name) is None)


def detect_package_manager(which=shutil.which):
    for command, args in PACKAGE_MANAGERS:
        if which(command) is not None:
            return command, args
    return None, None


def _install_packages(manager, args, packages, run=subprocess.run):
    cmd = sudo_prefix() + [manager] + list(args) + list(packages)
    try:
        run(cmd, check=True)
        return True
    except (OSError, subprocess.CalledProcessError):
        return False


def check_applications_dir(home=None):
    home = Path(home) if home is not None else invoking_home()
    candidates = (home / ".local" / "share" / "applications", Path("/usr/share/applications"))
    if not any(path.is_dir() for path in candidates):
        print("Warning: Could not find applications directory. Desktop integration might not work.")
        return False
    return True


def ensure(names, which=shutil.which, run=subprocess.run):
    """Make sure every command in ``names`` is on PATH, installing if possible.

    Raises ``DependencyMissing`` naming whatever is still missing.
    """
    print("Checking dependencies...")
    missing = missing_commands(names, which=which)
    if missing:
        print(f"The following dependencies are missing: {' '.join(missing)}")
        manager, args = detect_package_manager(which=which)
        if manager is None:
            raise DependencyMissing(
                "Could not detect package manager. Please install the following "
                f"dependencies manually: {' '.join(missing)}"
            )
        print(f"Detected {manager} package manager. Attempting to install dependencies...")
        packages = [COMMAND_PACKAGES.get(name, name) for name in missing]
        if not _install_packages(manager, args, packages, run=run):
            print(f"Failed to install packages with {manager}.")
        still_missing = missing_commands(missing, which=which)
        if still_missing:
            raise DependencyMissing(
                f"Failed to install {' '.join(still_missing)}. Please install it manually."
            )

    for name in missing_commands(OPTIONAL_COMMANDS, which=which):
        print(f"Note: {name} not found; desktop integration will be partial.")
    print("All dependencies are satisfied.")
    return True
