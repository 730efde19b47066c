"""Shared fixtures for lazyctl tests."""

import shutil
import subprocess
import tempfile
import threading
from collections.abc import Generator
from pathlib import Path

import pytest

from lazyctl.config.schemas import LazyVimConfig
from lazyctl.core.git import GitClient, GitError
from lazyctl.utils.platform import EditorPaths


class FakeGit(GitClient):
    """GitClient that fakes clones on the local filesystem.

    Args:
        always_fail: URLs whose clone always exits non-zero
        fail_times: URL -> number of failed attempts before succeeding
        missing: Simulate git not being installed
    """

    def __init__(
        self,
        always_fail: set[str] | None = None,
        fail_times: dict[str, int] | None = None,
        missing: bool = False,
    ):
        super().__init__()
        self.always_fail = always_fail or set()
        self.fail_times = dict(fail_times or {})
        self.missing = missing
        self.calls: list[tuple[str, Path]] = []
        self._lock = threading.Lock()

    def call_count(self, url: str) -> int:
        with self._lock:
            return sum(1 for called, _ in self.calls if called == url)

    def clone_shallow(self, url: str, dest: Path) -> subprocess.CompletedProcess[str]:
        args = ["git", "clone", url, str(dest), "--depth", "1"]
        with self._lock:
            self.calls.append((url, dest))
            remaining = self.fail_times.get(url, 0)
            if remaining:
                self.fail_times[url] = remaining - 1

        if self.missing:
            raise GitError("git is not installed or not in PATH", url=url)
        if url in self.always_fail or remaining:
            return subprocess.CompletedProcess(
                args, 128, "", f"fatal: unable to access '{url}': Could not resolve host"
            )

        dest.mkdir(parents=True)
        (dest / "README.md").write_text(url)
        return subprocess.CompletedProcess(args, 0, "", "")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="lazyctl_test_"))
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture
def editor_paths(temp_dir: Path) -> EditorPaths:
    """Editor directories rooted in a temporary home."""
    home = temp_dir / "home"
    return EditorPaths(
        config_dir=home / ".config" / "nvim",
        data_dir=home / ".local" / "share" / "nvim",
        cache_dir=home / ".cache" / "nvim",
        state_dir=home / ".local" / "state" / "nvim",
    )


@pytest.fixture
def fake_git() -> FakeGit:
    """Git client whose clones always succeed."""
    return FakeGit()


@pytest.fixture
def sample_config() -> LazyVimConfig:
    """Starter plus two plugins, one without a .git suffix."""
    return LazyVimConfig(
        starter="https://x/a/s.git",
        plugins=["https://x/a/p1.git", "https://x/a/p2"],
    )


@pytest.fixture
def config_file(temp_dir: Path) -> Path:
    """lazyvim.toml matching sample_config."""
    path = temp_dir / "project" / "lazyvim.toml"
    path.parent.mkdir()
    path.write_text(
        'starter = "https://x/a/s.git"\n'
        'plugins = ["https://x/a/p1.git", "https://x/a/p2"]\n'
    )
    return path
