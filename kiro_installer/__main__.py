import argparse

from .settings import ACTION_INSTALL, ACTION_UNINSTALL, build_run_config
from .workflow import run_install, run_uninstall

EPILOG = """\
examples:
  %(prog)s                            install/update Kiro system-wide
  %(prog)s --user                     install/update Kiro for the current user only
  %(prog)s --force                    force reinstall of the latest version
  %(prog)s --user --force             force reinstall for the current user
  %(prog)s --uninstall                remove the system-wide installation
  %(prog)s --uninstall --user --clean remove the user installation and its data
"""


def build_parser(prog=None):
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Kiro installer: install, update or uninstall Kiro on Linux.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.set_defaults(action=ACTION_INSTALL)
    parser.add_argument(
        "--install",
        dest="action",
        action="store_const",
        const=ACTION_INSTALL,
        help="Install or update Kiro (default).",
    )
    parser.add_argument(
        "--update",
        dest="action",
        action="store_const",
        const=ACTION_INSTALL,
        help="Same as --install; installs or updates automatically.",
    )
    parser.add_argument(
        "--uninstall",
        dest="action",
        action="store_const",
        const=ACTION_UNINSTALL,
        help="Uninstall Kiro.",
    )
    parser.add_argument(
        "--user",
        action="store_true",
        help="Perform the operation for the current user only (no admin privileges required).",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Force reinstall even if the same version is already installed.",
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Remove user data and configurations during uninstall.",
    )
    return parser


def main(argv=None, prog=None):
    args = build_parser(prog=prog).parse_args(argv)
    config = build_run_config(
        action=args.action,
        user_scope=args.user,
        force=args.force,
        clean=args.clean,
    )

    print("======================================")
    print("        Kiro Installer Script         ")
    print("======================================")
    print("")

    if config.action == ACTION_UNINSTALL:
        return run_uninstall(config)
    return run_install(config)


if __name__ == "__main__":
    raise SystemExit(main())
