import shutil
import subprocess
from pathlib import Path

from .constants import (
    APP_COMMENT,
    APP_NAME,
    DESKTOP_ENTRY_NAME,
    EXECUTABLE_NAME,
    EXECUTABLE_RELATIVE_PATHS,
    URL_HANDLER_ENTRY_NAME,
    URL_SCHEME,
)
from .privilege import FileOperations, desktop_user_prefix, sudo_prefix

NEW_WINDOW_NAMES = (
    ("cs", "Nové prázdné okno"),
    ("de", "Neues leeres Fenster"),
    ("es", "Nueva ventana vacía"),
    ("fr", "Nouvelle fenêtre vide"),
    ("it", "Nuova finestra vuota"),
    ("ja", "新しい空のウィンドウ"),
    ("ko", "새 빈 창"),
    ("ru", "Новое пустое окно"),
    ("zh_CN", "新建空窗口"),
    ("zh_TW", "開新空白視窗"),
)


def _escape_desktop_value(value):
    return value.replace("\\", "\\\\").replace(" ", "\\ ")


def desktop_entry_content(install_dir, icon_path):
    exec_value = _escape_desktop_value(str(Path(install_dir) / EXECUTABLE_RELATIVE_PATHS[0]))
    icon_value = str(icon_path)
    localized = "".join(
        f"Name[{locale}]={name}\n" for locale, name in NEW_WINDOW_NAMES
    )
    return (
        "[Desktop Entry]\n"
        f"Name={APP_NAME}\n"
        f"Comment={APP_COMMENT}\n"
        "GenericName=Text Editor\n"
        f"Exec={exec_value} %F\n"
        f"Icon={icon_value}\n"
        "Type=Application\n"
        "StartupNotify=false\n"
        f"StartupWMClass={EXECUTABLE_NAME}\n"
        "Categories=TextEditor;Development;IDE;\n"
        "MimeType=text/plain;inode/directory;\n"
        "Actions=new-empty-window;\n"
        "Keywords=vscode;\n"
        "Terminal=false\n"
        "\n"
        "[Desktop Action new-empty-window]\n"
        "Name=New Empty Window\n"
        f"{localized}"
        f"Exec={exec_value} --new-window %F\n"
        f"Icon={icon_value}\n"
    )


def url_handler_entry_content(install_dir, icon_path):
    exec_value = _escape_desktop_value(str(Path(install_dir) / EXECUTABLE_RELATIVE_PATHS[0]))
    return (
        "[Desktop Entry]\n"
        f"Name={APP_NAME} - URL Handler\n"
        f"Comment={APP_NAME} Authentication Handler\n"
        f"Exec={exec_value} --open-url %U\n"
        f"Icon={icon_path}\n"
        "Type=Application\n"
        "NoDisplay=true\n"
        "StartupNotify=true\n"
        f"MimeType=x-scheme-handler/{URL_SCHEME};\n"
    )


class DesktopIntegrator:
    """Application menu entry and URL scheme handler for one desktop dir."""

    def __init__(self, desktop_dir, run=subprocess.run, which=shutil.which):
        self.desktop_dir = Path(desktop_dir)
        self._run = run
        self._which = which

    def _tool(self, args, prefix=()):
        cmd = list(prefix) + list(args)
        try:
            self._run(cmd, check=True)
        except FileNotFoundError:
            print(f"Warning: {args[0]} not found.")
            return False
        except subprocess.CalledProcessError as exc:
            print(f"Warning: {args[0]} failed with exit code {exc.returncode}.")
            return False
        return True

    def refresh_database(self, desktop_dir=None, elevated=False):
        if self._which("update-desktop-database") is None:
            return False
        directory = Path(desktop_dir) if desktop_dir is not None else self.desktop_dir
        return self._tool(
            ["update-desktop-database", str(directory)],
            sudo_prefix() if elevated else [],
        )

    def register_url_handler(self):
        if self._which("xdg-mime") is None:
            return False
        return self._tool(
            ["xdg-mime", "default", URL_HANDLER_ENTRY_NAME, f"x-scheme-handler/{URL_SCHEME}"],
            desktop_user_prefix(),
        )

    def register_app(self, install_dir, icon_path, elevated=False):
        print("Creating desktop entry...")
        file_ops = FileOperations(elevated=elevated)
        entries = (
            (DESKTOP_ENTRY_NAME, desktop_entry_content(install_dir, icon_path)),
            (URL_HANDLER_ENTRY_NAME, url_handler_entry_content(install_dir, icon_path)),
        )
        try:
            file_ops.make_dirs(self.desktop_dir)
            for name, content in entries:
                file_ops.write_text(self.desktop_dir / name, content, mode=0o644)
        except OSError as exc:
            print(f"Failed to write desktop entries in {self.desktop_dir}: {exc}")
            return False

        self.refresh_database(elevated=elevated)
        self.register_url_handler()
        return True

    def unregister_app(self, desktop_dir=None, elevated=False):
        print("Removing desktop entry...")
        directory = Path(desktop_dir) if desktop_dir is not None else self.desktop_dir
        file_ops = FileOperations(elevated=elevated)
        ok = True
        for name in (DESKTOP_ENTRY_NAME, URL_HANDLER_ENTRY_NAME):
            path = directory / name
            if not path.is_file():
                continue
            try:
                file_ops.remove_file(path)
            except OSError as exc:
                print(f"Failed to remove {path}: {exc}")
                ok = False
        self.refresh_database(directory, elevated=elevated)
        return ok
