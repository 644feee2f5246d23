import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path


def sudo_prefix():
    return [] if os.geteuid() == 0 else ["sudo"]


def desktop_user_prefix():
    """Run as the user who invoked sudo, so per-user settings land in their home."""
    sudo_user = os.environ.get("SUDO_USER", "").strip()
    if os.geteuid() != 0 or not sudo_user or sudo_user == "root":
        return []
    return ["sudo", "-H", "-u", sudo_user]


def _nearest_existing_parent(path):
    candidate = Path(path).parent
    while not candidate.exists() and candidate != candidate.parent:
        candidate = candidate.parent
    return candidate


def requires_elevation(target):
    """System-wide targets need sudo unless the install dir's parent is writable."""
    if not target.requires_elevated_privilege:
        return False
    parent = target.install_dir.parent
    if not parent.exists():
        parent = _nearest_existing_parent(target.install_dir)
    return not os.access(parent, os.W_OK)


def confirm_elevation(target, interactive=None):
    print(f"Installation to {target.install_dir} requires administrator privileges.")
    if interactive is None:
        interactive = sys.stdin.isatty()
    if not interactive:
        print("Running in non-interactive mode. Proceeding with sudo installation.")
        print("You will be prompted for your password by sudo.")
        return True
    print("Use the --user flag to install for the current user only instead.")
    reply = input("Continue with sudo installation? [y/N] ").strip()
    return reply.lower().startswith("y")


def _copy_entry(source, destination):
    if source.is_symlink():
        if destination.is_symlink() or destination.is_file():
            destination.unlink()
        os.symlink(os.readlink(source), destination)
    elif source.is_dir():
        if destination.is_symlink() or destination.is_file():
            destination.unlink()
        destination.mkdir(exist_ok=True)
        for child in source.iterdir():
            _copy_entry(child, destination / child.name)
        shutil.copystat(source, destination)
    else:
        if destination.is_symlink():
            destination.unlink()
        shutil.copy2(source, destination)


class FileOperations:
    """Filesystem mutations, routed through ``sudo`` when elevated.

    Every method raises ``OSError`` on failure.
    """

    def __init__(self, elevated=False, run=subprocess.run):
        self.elevated = bool(elevated)
        self._run = run

    def _sudo(self, *args):
        cmd = sudo_prefix() + [str(arg) for arg in args]
        try:
            self._run(cmd, check=True)
        except subprocess.CalledProcessError as exc:
            raise OSError(
                f"'{' '.join(cmd)}' failed with exit code {exc.returncode}"
            ) from exc

    def make_dirs(self, path):
        if self.elevated:
            self._sudo("mkdir", "-p", path)
        else:
            Path(path).mkdir(parents=True, exist_ok=True)

    def copy_contents(self, source_dir, destination_dir):
        """Copy the contents of ``source_dir`` over ``destination_dir``."""
        source_dir = Path(source_dir)
        destination_dir = Path(destination_dir)
        if self.elevated:
            self._sudo("cp", "-a", f"{source_dir}/.", destination_dir)
            return
        destination_dir.mkdir(parents=True, exist_ok=True)
        for child in source_dir.iterdir():
            _copy_entry(child, destination_dir / child.name)

    def add_executable_bit(self, path):
        if self.elevated:
            self._sudo("chmod", "+x", path)
        else:
            path = Path(path)
            path.chmod(path.stat().st_mode | 0o111)

    def set_mode(self, path, mode):
        if self.elevated:
            self._sudo("chmod", format(mode, "o"), path)
        else:
            Path(path).chmod(mode)

    def replace_symlink(self, link_target, link_path):
        link_path = Path(link_path)
        if link_path.is_dir() and not link_path.is_symlink():
            raise IsADirectoryError(f"{link_path} is a directory, not a symbolic link")
        if self.elevated:
            self._sudo("ln", "-sfn", link_target, link_path)
            return
        temp_link = link_path.with_name(f".{link_path.name}.{os.getpid()}.tmp")
        if temp_link.is_symlink() or temp_link.exists():
            temp_link.unlink()
        os.symlink(link_target, temp_link)
        try:
            os.replace(temp_link, link_path)
        except OSError:
            temp_link.unlink()
            raise

    def write_text(self, path, content, mode=0o644):
        path = Path(path)
        if not self.elevated:
            path.write_text(content, encoding="utf-8")
            path.chmod(mode)
            return
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix="kiro-",
                suffix=path.suffix,
                delete=False,
            ) as handle:
                handle.write(content)
                temp_path = Path(handle.name)
            self._sudo("install", "-m", format(mode, "o"), temp_path, path)
        finally:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()

    def copy_file(self, source, destination):
        if self.elevated:
            self._sudo("cp", source, destination)
        else:
            shutil.copyfile(source, destination)

    def remove_tree(self, path):
        if self.elevated:
            self._sudo("rm", "-rf", path)
        else:
            shutil.rmtree(path)

    def remove_file(self, path):
        if self.elevated:
            self._sudo("rm", "-f", path)
        else:
            Path(path).unlink()
