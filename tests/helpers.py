import io
import tarfile
from pathlib import Path

from kiro_installer.settings import InstallTarget


def kiro_script(version):
    return (
        "#!/bin/sh\n"
        f'case "$1" in -v|--version) echo "{version}" ;; esac\n'
    )


def build_payload(root, version="1.2.0", sandbox=True, icon=True):
    """Lay out an unpacked Kiro release under ``root``."""
    root = Path(root)
    files = {
        "bin/kiro": kiro_script(version),
        "kiro": kiro_script(version),
        "resources/app/package.json": f'{{"version": "{version}"}}',
    }
    if sandbox:
        files["chrome-sandbox"] = "sandbox"
    if icon:
        files["resources/app/resources/linux/kiro.png"] = "png"
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    (root / "bin" / "kiro").chmod(0o755)
    (root / "kiro").chmod(0o755)
    return root


def build_archive(archive_path, members):
    """Write a .tar.gz whose members are ``{relative_path: text}``."""
    with tarfile.open(archive_path, "w:gz") as archive:
        for name, content in members.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755 if name.endswith("kiro") else 0o644
            archive.addfile(info, io.BytesIO(data))
    return Path(archive_path)


def release_members(prefix, version="1.2.0"):
    return {
        f"{prefix}bin/kiro": kiro_script(version),
        f"{prefix}kiro": kiro_script(version),
        f"{prefix}chrome-sandbox": "sandbox",
        f"{prefix}resources/app/resources/linux/kiro.png": "png",
    }


def make_target(root, elevated=False):
    root = Path(root)
    install_dir = root / "install" / "kiro"
    return InstallTarget(
        install_dir=install_dir,
        symlink_dir=root / "bin",
        desktop_dir=root / "applications",
        icon_path=install_dir / "resources/app/resources/linux/kiro.png",
        requires_elevated_privilege=elevated,
    )


class RecordingIntegrator:
    def __init__(self, result=True):
        self.result = result
        self.registered = []
        self.unregistered = []

    def register_app(self, install_dir, icon_path, elevated=False):
        self.registered.append((Path(install_dir), Path(icon_path), elevated))
        return self.result

    def unregister_app(self, desktop_dir, elevated=False):
        self.unregistered.append((Path(desktop_dir), elevated))
        return self.result
