"""Tests for lazyctl.core.dispatcher module."""

from pathlib import Path
from unittest.mock import patch

from conftest import FakeGit

from lazyctl.config.schemas import LazyVimConfig
from lazyctl.core import dispatcher
from lazyctl.core.driver import Driver, RetryPolicy
from lazyctl.core.unit import Outcome
from lazyctl.utils.platform import EditorPaths

NO_DELAY = RetryPolicy(max_attempts=3, backoff=0.0)


def installed_dirs(paths: EditorPaths) -> set[Path]:
    """All clone directories under the starter and plugin roots."""
    found: set[Path] = set()
    for root in (paths.starter_root, paths.plugin_root):
        if root.exists():
            found.update(p for p in root.iterdir() if p.is_dir() and p != paths.plugin_root)
    return found


class TestBuildUnits:
    """Tests for build_units function."""

    def test_starter_first_then_plugins(
        self, sample_config: LazyVimConfig, editor_paths: EditorPaths
    ):
        """Starter comes first, plugins follow in config order."""
        units = dispatcher.build_units(sample_config, editor_paths)

        assert [u.source_url for u in units] == [
            "https://x/a/s.git",
            "https://x/a/p1.git",
            "https://x/a/p2",
        ]
        assert units[0].kind == "starter"
        assert units[0].destination_root == editor_paths.starter_root
        assert all(u.kind == "plugin" for u in units[1:])
        assert all(u.destination_root == editor_paths.plugin_root for u in units[1:])

    def test_no_plugins(self, editor_paths: EditorPaths):
        """A config without plugins builds only the starter unit."""
        units = dispatcher.build_units(LazyVimConfig(starter="https://x/a/s"), editor_paths)

        assert len(units) == 1


class TestInstall:
    """Tests for install and update functions."""

    def test_installs_all_repositories(
        self, sample_config: LazyVimConfig, editor_paths: EditorPaths, fake_git: FakeGit
    ):
        """Three units run and create s, p1 and p2."""
        driver = Driver(git=fake_git, retry=NO_DELAY)

        summary = dispatcher.install(sample_config, editor_paths, driver)

        assert summary.total == 3
        assert summary.all_successful
        assert all(r.outcome is Outcome.SUCCEEDED for r in summary.results)
        assert (editor_paths.starter_root / "s").is_dir()
        assert (editor_paths.plugin_root / "p1").is_dir()
        assert (editor_paths.plugin_root / "p2").is_dir()

    def test_install_twice_is_idempotent(
        self, sample_config: LazyVimConfig, editor_paths: EditorPaths, fake_git: FakeGit
    ):
        """A second install leaves the same directory set."""
        driver = Driver(git=fake_git, retry=NO_DELAY)

        dispatcher.install(sample_config, editor_paths, driver)
        first = installed_dirs(editor_paths)
        dispatcher.install(sample_config, editor_paths, driver)
        second = installed_dirs(editor_paths)

        assert first == second
        assert len(fake_git.calls) == 6

    def test_update_reclones_everything(
        self, sample_config: LazyVimConfig, editor_paths: EditorPaths, fake_git: FakeGit
    ):
        """Update performs a full fresh clone of every repository."""
        driver = Driver(git=fake_git, retry=NO_DELAY)
        dispatcher.install(sample_config, editor_paths, driver)
        marker = editor_paths.plugin_root / "p1" / "local-change.txt"
        marker.write_text("edited")

        summary = dispatcher.update(sample_config, editor_paths, driver)

        assert summary.all_successful
        assert not marker.exists()
        assert len(fake_git.calls) == 6

    def test_forwards_results(
        self, sample_config: LazyVimConfig, editor_paths: EditorPaths, fake_git: FakeGit
    ):
        """on_result receives each unit's result."""
        seen = []

        dispatcher.install(
            sample_config,
            editor_paths,
            Driver(git=fake_git, retry=NO_DELAY),
            on_result=seen.append,
        )

        assert sorted(r.name for r in seen) == ["p1", "p2", "s"]


class TestDelete:
    """Tests for delete function."""

    def test_removes_all_directories(self, editor_paths: EditorPaths):
        """Every existing editor directory is removed."""
        for path in editor_paths.removable_dirs:
            path.mkdir(parents=True)
            (path / "file.txt").write_text("data")

        results = dispatcher.delete(editor_paths)

        assert [r.path for r in results] == editor_paths.removable_dirs
        assert all(r.removed and r.success for r in results)
        assert not any(p.exists() for p in editor_paths.removable_dirs)

    def test_second_delete_is_not_an_error(self, editor_paths: EditorPaths):
        """Deleting when nothing exists reports directories as not removed."""
        for path in editor_paths.removable_dirs:
            path.mkdir(parents=True)
        dispatcher.delete(editor_paths)

        results = dispatcher.delete(editor_paths)

        assert len(results) == 4
        assert all(r.success and not r.removed for r in results)

    def test_continues_after_error(self, editor_paths: EditorPaths):
        """A failing removal does not stop the remaining directories."""
        for path in editor_paths.removable_dirs:
            path.mkdir(parents=True)

        real_remove = dispatcher.remove_directory

        def flaky_remove(path: Path) -> bool:
            if path == editor_paths.config_dir:
                raise PermissionError("denied")
            return real_remove(path)

        with patch("lazyctl.core.dispatcher.remove_directory", side_effect=flaky_remove):
            results = dispatcher.delete(editor_paths)

        assert results[0].error == "denied"
        assert not results[0].success
        assert all(r.removed for r in results[1:])
        assert editor_paths.config_dir.exists()
        assert not editor_paths.data_dir.exists()

    def test_windows_layout_has_two_directories(self, temp_dir: Path):
        """Paths without cache and state only remove config and data."""
        paths = EditorPaths(config_dir=temp_dir / "nvim", data_dir=temp_dir / "nvim-data")
        paths.config_dir.mkdir()

        results = dispatcher.delete(paths)

        assert [r.removed for r in results] == [True, False]
