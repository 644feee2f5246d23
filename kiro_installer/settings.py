import os
import pwd
import sys
from dataclasses import dataclass
from pathlib import Path

from .constants import (
    BACKUP_DATA_DIRS,
    CLEAN_DATA_DIRS,
    EXECUTABLE_NAME,
    ICON_RELATIVE_PATH,
    METADATA_URL,
    SYSTEM_DESKTOP_DIR,
    SYSTEM_INSTALL_DIR,
    SYSTEM_SYMLINK_DIR,
)

ACTION_INSTALL = "install"
ACTION_UNINSTALL = "uninstall"
VALID_ACTIONS = {ACTION_INSTALL, ACTION_UNINSTALL}


@dataclass(frozen=True)
class InstallTarget:
    install_dir: Path
    symlink_dir: Path
    desktop_dir: Path
    icon_path: Path
    requires_elevated_privilege: bool

    @property
    def scope(self):
        return "system" if self.requires_elevated_privilege else "user"

    @property
    def symlink_path(self):
        return self.symlink_dir / EXECUTABLE_NAME


@dataclass(frozen=True)
class RunConfig:
    action: str = ACTION_INSTALL
    user_scope: bool = False
    force: bool = False
    clean: bool = False
    metadata_url: str = METADATA_URL
    interactive: bool = False


def invoking_home():
    sudo_user = os.environ.get("SUDO_USER")
    if sudo_user and os.geteuid() == 0:
        try:
            return Path(pwd.getpwnam(sudo_user).pw_dir)
        except KeyError:
            print("Unable to resolve SUDO_USER home directory.")
    return Path.home()


def system_target():
    return InstallTarget(
        install_dir=SYSTEM_INSTALL_DIR,
        symlink_dir=SYSTEM_SYMLINK_DIR,
        desktop_dir=SYSTEM_DESKTOP_DIR,
        icon_path=SYSTEM_INSTALL_DIR / ICON_RELATIVE_PATH,
        requires_elevated_privilege=True,
    )


def user_target(home=None):
    home = Path(home) if home is not None else invoking_home()
    install_dir = home / ".local" / "share" / "kiro"
    return InstallTarget(
        install_dir=install_dir,
        symlink_dir=home / ".local" / "bin",
        desktop_dir=home / ".local" / "share" / "applications",
        icon_path=install_dir / ICON_RELATIVE_PATH,
        requires_elevated_privilege=False,
    )


def resolve_target(user_scope, home=None):
    if user_scope:
        return user_target(home)
    return system_target()


def alternate_target(target, home=None):
    return resolve_target(target.requires_elevated_privilege, home=home)


def backup_candidate_dirs(home=None):
    home = Path(home) if home is not None else invoking_home()
    return [home / relative for relative in BACKUP_DATA_DIRS]


def user_data_dirs(home=None):
    home = Path(home) if home is not None else invoking_home()
    return [home / relative for relative in CLEAN_DATA_DIRS]


def backup_root():
    from_env = os.environ.get("KIRO_BACKUP_DIR", "").strip()
    if from_env:
        return Path(from_env)
    return None


def metadata_url():
    from_env = os.environ.get("KIRO_METADATA_URL", "").strip()
    return from_env or METADATA_URL


def build_run_config(action=ACTION_INSTALL, user_scope=False, force=False, clean=False):
    if action not in VALID_ACTIONS:
        raise ValueError(f"Unknown action: {action}")
    return RunConfig(
        action=action,
        user_scope=bool(user_scope),
        force=bool(force),
        clean=bool(clean),
        metadata_url=metadata_url(),
        interactive=sys.stdin.isatty(),
    )
