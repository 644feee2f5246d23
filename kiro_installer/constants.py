from pathlib import Path

APP_NAME = "Kiro"
APP_COMMENT = "Kiro - AI-powered development environment"
EXECUTABLE_NAME = "kiro"
PAYLOAD_DIR_NAME = "Kiro"
URL_SCHEME = "kiro"

METADATA_URL = (
    "https://prod.download.desktop.kiro.dev/stable/metadata-linux-x64-stable.json"
)
PACKAGE_SUFFIX = ".tar.gz"
ARCHIVE_NAME = "kiro.tar.gz"
USER_AGENT = "kiro-installer"
METADATA_TIMEOUT = 15.0
DOWNLOAD_TIMEOUT = 60.0
PROBE_TIMEOUT = 10.0

SYSTEM_INSTALL_DIR = Path("/opt/kiro")
SYSTEM_SYMLINK_DIR = Path("/usr/local/bin")
SYSTEM_DESKTOP_DIR = Path("/usr/share/applications")

# Relative to the install dir; the first entry is the one the launcher links to.
EXECUTABLE_RELATIVE_PATHS = ("bin/kiro", "kiro")
SANDBOX_RELATIVE_PATH = "chrome-sandbox"
SANDBOX_MODE = 0o4755
ICON_RELATIVE_PATH = "resources/app/resources/linux/kiro.png"
ALTERNATE_ICON_RELATIVE_PATH = "resources/app/resources/app.png"

VERSION_FILE_RELATIVE_PATHS = (
    "resources/app/package.json",
    "resources/package.json",
    "package.json",
    "version",
    "VERSION",
)

DESKTOP_ENTRY_NAME = "kiro.desktop"
URL_HANDLER_ENTRY_NAME = "kiro-url-handler.desktop"

# Relative to the invoking user's home.
BACKUP_DATA_DIRS = (".config/kiro", ".kiro")
CLEAN_DATA_DIRS = (
    ".config/kiro",
    ".kiro",
    ".local/state/kiro",
    ".local/share/kiro-extensions",
    ".cache/kiro",
    ".vscode-kiro",
)

FALLBACK_ICON_NAME = "Kiro_1024x1024x32.png"
SYSTEM_FALLBACK_ICONS = (
    Path("/usr/share/icons/hicolor/128x128/apps/code.png"),
    Path("/usr/share/icons/hicolor/128x128/apps/visual-studio-code.png"),
    Path("/usr/share/icons/hicolor/128x128/apps/com.visualstudio.code.png"),
    Path("/usr/share/icons/hicolor/scalable/apps/text-editor.svg"),
    Path("/usr/share/icons/hicolor/128x128/apps/accessories-text-editor.png"),
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NOT_INSTALLED = 3
