import tempfile
import time

from . import dependencies
from .constants import EXIT_FAILURE, EXIT_NOT_INSTALLED, EXIT_OK
from .decision import ERROR, SKIP, decide
from .errors import InstallerError, exception_detail
from .install import install_package
from .metadata import fetch_metadata
from .package import acquire_package
from .settings import backup_root, resolve_target
from .uninstaller import uninstall


def _work_dir():
    return tempfile.TemporaryDirectory(prefix=f"kiro_install_{int(time.time())}_")


def run_install(
    config,
    home=None,
    fetcher=fetch_metadata,
    acquirer=acquire_package,
    ensure=dependencies.ensure,
    integrator=None,
):
    print("Installing/Updating Kiro...")
    target = resolve_target(config.user_scope, home=home)
    try:
        ensure(dependencies.required_commands(config))
        dependencies.check_applications_dir(home)

        result = decide(
            target.install_dir,
            force=config.force,
            metadata_url=config.metadata_url,
            fetcher=fetcher,
        )
        if result.action == ERROR:
            print(f"Error: Could not fetch Kiro metadata. {result.reason}")
            return EXIT_FAILURE
        print(result.reason)
        if result.action == SKIP:
            print("Use --force flag to reinstall anyway.")
            return EXIT_OK

        with _work_dir() as work_dir:
            payload_dir = acquirer(result.metadata.package_url, work_dir)
            installed = install_package(
                payload_dir,
                target,
                home=home,
                backup_root=backup_root(),
                interactive=config.interactive,
                integrator=integrator,
            )
            print("Cleaning up temporary files...")
    except InstallerError as exc:
        print(f"Error: {exc}")
        return EXIT_FAILURE
    except OSError as exc:
        print(f"Error: {exception_detail(exc)}")
        return EXIT_FAILURE

    print(f"Kiro has been successfully installed! ({installed.kind})")
    if installed.backup_dir is not None:
        print(f"A backup of your configurations was created at {installed.backup_dir}")
    return EXIT_OK


def run_uninstall(config, home=None, integrator=None):
    target = resolve_target(config.user_scope, home=home)
    try:
        result = uninstall(target, clean=config.clean, home=home, integrator=integrator)
    except InstallerError as exc:
        print(f"Error: {exc}")
        return EXIT_FAILURE
    return EXIT_OK if result.removed else EXIT_NOT_INSTALLED
