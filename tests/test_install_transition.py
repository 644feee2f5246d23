import io
import os
import stat
import tempfile
import unittest
from contextlib import redirect_stdout
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

from helpers import RecordingIntegrator, build_payload, make_target

from kiro_installer import install, privilege
from kiro_installer.errors import ElevationDeclined, InstallStepFailed


class InstallTransitionTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.home = self.root / "home"
        self.home.mkdir()
        self.backup_root = self.root / "backups"
        self.payload = build_payload(self.root / "payload")
        self.target = make_target(self.root / "target")
        self.integrator = RecordingIntegrator()

    def tearDown(self):
        self._tmp.cleanup()

    def _install(self, **kwargs):
        kwargs.setdefault("home", self.home)
        kwargs.setdefault("backup_root", self.backup_root)
        kwargs.setdefault("integrator", self.integrator)
        kwargs.setdefault("interactive", False)
        with redirect_stdout(io.StringIO()) as output:
            result = install.install_package(self.payload, self.target, **kwargs)
        return result, output.getvalue()

    def test_fresh_install_copies_payload_and_links_executable(self):
        result, _output = self._install()

        install_dir = self.target.install_dir
        self.assertTrue(result.fresh_install)
        self.assertEqual(result.kind, "fresh install")
        self.assertIsNone(result.backup_dir)
        self.assertTrue((install_dir / "bin" / "kiro").is_file())
        self.assertTrue((install_dir / "resources" / "app" / "package.json").is_file())
        self.assertTrue(self.target.symlink_path.is_symlink())
        self.assertEqual(
            Path(os.readlink(self.target.symlink_path)),
            install_dir / "bin" / "kiro",
        )
        self.assertFalse(self.backup_root.exists())

    def test_permissions_are_set_on_executables_and_sandbox(self):
        self._install()

        install_dir = self.target.install_dir
        for relative in ("bin/kiro", "kiro"):
            mode = (install_dir / relative).stat().st_mode
            self.assertTrue(mode & stat.S_IXUSR, relative)
        sandbox_mode = stat.S_IMODE((install_dir / "chrome-sandbox").stat().st_mode)
        self.assertEqual(sandbox_mode, 0o4755)

    def test_desktop_integration_receives_install_dir_and_icon(self):
        self._install()

        self.assertEqual(
            self.integrator.registered,
            [
                (
                    self.target.install_dir,
                    self.target.install_dir / "resources/app/resources/linux/kiro.png",
                    False,
                )
            ],
        )

    def test_fallback_icon_is_placed_at_target_icon_path(self):
        self.payload = build_payload(self.root / "bare-payload", icon=False)
        self.target = replace(self.target, icon_path=self.root / "icons" / "kiro.png")
        source_root = self.root / "checkout"
        source_root.mkdir()
        (source_root / "Kiro_1024x1024x32.png").write_bytes(b"bundled")

        self._install(icon_source_root=source_root)

        self.assertEqual(self.integrator.registered[0][1], self.target.icon_path)
        self.assertEqual(self.target.icon_path.read_bytes(), b"bundled")

    def test_update_backs_up_existing_user_data(self):
        self.target.install_dir.mkdir(parents=True)
        (self.target.install_dir / "stale.txt").write_text("old", encoding="utf-8")
        config_dir = self.home / ".config" / "kiro"
        config_dir.mkdir(parents=True)
        (config_dir / "settings.json").write_text("{}", encoding="utf-8")

        result, output = self._install()

        self.assertFalse(result.fresh_install)
        self.assertEqual(result.kind, "update")
        self.assertIsNotNone(result.backup_dir)
        self.assertEqual(result.backup_dir.parent, self.backup_root)
        self.assertTrue((result.backup_dir / "kiro" / "settings.json").is_file())
        self.assertTrue((config_dir / "settings.json").is_file())
        self.assertIn("Detected existing Kiro installation", output)

    def test_update_without_user_data_creates_no_backup(self):
        self.target.install_dir.mkdir(parents=True)

        result, _output = self._install()

        self.assertFalse(result.fresh_install)
        self.assertIsNone(result.backup_dir)
        self.assertFalse(self.backup_root.exists())

    def test_backup_failure_does_not_abort_install(self):
        self.target.install_dir.mkdir(parents=True)
        (self.home / ".kiro").mkdir()

        with patch("kiro_installer.install.shutil.copytree", side_effect=OSError("disk full")):
            result, output = self._install()

        self.assertTrue((self.target.install_dir / "bin" / "kiro").is_file())
        self.assertIn("Warning: failed to back up", output)
        self.assertIsNotNone(result.backup_dir)

    def test_backup_dir_names_are_unique(self):
        (self.home / ".kiro").mkdir()
        with redirect_stdout(io.StringIO()):
            first = install.backup_user_data([self.home / ".kiro"], self.backup_root, timestamp=0)
            second = install.backup_user_data([self.home / ".kiro"], self.backup_root, timestamp=0)

        self.assertNotEqual(first, second)
        self.assertTrue(first.is_dir())
        self.assertTrue(second.is_dir())

    def test_stale_symlink_is_replaced(self):
        self.target.symlink_dir.mkdir(parents=True)
        os.symlink(self.root / "nowhere", self.target.symlink_path)

        self._install()

        self.assertEqual(
            Path(os.readlink(self.target.symlink_path)),
            self.target.install_dir / "bin" / "kiro",
        )

    def test_directory_at_symlink_path_aborts(self):
        self.target.symlink_path.mkdir(parents=True)

        with self.assertRaises(InstallStepFailed):
            self._install()

        self.assertEqual(self.integrator.registered, [])

    def test_missing_sandbox_is_only_a_warning(self):
        (self.payload / "chrome-sandbox").unlink()

        _result, output = self._install()

        self.assertIn("sandbox helper", output)
        self.assertTrue(self.target.symlink_path.is_symlink())

    def test_copy_failure_aborts_before_symlink(self):
        with patch.object(privilege.FileOperations, "copy_contents", side_effect=OSError("read-only")):
            with self.assertRaises(InstallStepFailed):
                self._install()

        self.assertFalse(self.target.symlink_path.exists())

    def test_declined_elevation_aborts_without_copying(self):
        with patch("kiro_installer.install.requires_elevation", return_value=True):
            with patch("builtins.input", return_value="n"):
                with self.assertRaises(ElevationDeclined):
                    self._install(interactive=True)

        self.assertFalse(self.target.install_dir.exists())
        self.assertEqual(self.integrator.registered, [])


class ElevationTests(unittest.TestCase):
    def test_user_scope_never_requires_elevation(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            target = make_target(temp_dir, elevated=False)
            with patch("kiro_installer.privilege.os.access", return_value=False):
                self.assertFalse(privilege.requires_elevation(target))

    def test_system_scope_requires_elevation_when_parent_not_writable(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            target = make_target(temp_dir, elevated=True)
            with patch("kiro_installer.privilege.os.access", return_value=False):
                self.assertTrue(privilege.requires_elevation(target))
            with patch("kiro_installer.privilege.os.access", return_value=True):
                self.assertFalse(privilege.requires_elevation(target))

    def test_confirmation_is_skipped_when_non_interactive(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            target = make_target(temp_dir, elevated=True)
            with patch("builtins.input") as mocked_input:
                with redirect_stdout(io.StringIO()):
                    confirmed = privilege.confirm_elevation(target, interactive=False)

        self.assertTrue(confirmed)
        mocked_input.assert_not_called()

    def test_confirmation_accepts_yes(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            target = make_target(temp_dir, elevated=True)
            with patch("builtins.input", return_value="y"):
                with redirect_stdout(io.StringIO()):
                    confirmed = privilege.confirm_elevation(target, interactive=True)

        self.assertTrue(confirmed)

    def test_elevated_operations_use_sudo(self):
        calls = []
        file_ops = privilege.FileOperations(elevated=True, run=lambda cmd, check: calls.append(cmd))
        with patch("kiro_installer.privilege.os.geteuid", return_value=1000):
            file_ops.make_dirs(Path("/opt/kiro"))
            file_ops.set_mode(Path("/opt/kiro/chrome-sandbox"), 0o4755)

        self.assertEqual(
            calls,
            [
                ["sudo", "mkdir", "-p", "/opt/kiro"],
                ["sudo", "chmod", "4755", "/opt/kiro/chrome-sandbox"],
            ],
        )


if __name__ == "__main__":
    unittest.main()
