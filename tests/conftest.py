"""Shared fixtures: an in-memory device and scripted mount tools."""

import posixpath
from pathlib import Path

import pytest

from droidlink.config import MountConfig, TransportConfig, WorldsConfig
from droidlink.mount.sshfs import MountCommandResult


class FakeBridge:
    """In-memory stand-in for ADBClient.

    ``files`` maps remote file paths to bytes; directories are implied by
    file paths and can be added explicitly through ``dirs``.
    """

    def __init__(self, files=None, dirs=()):
        self.files = dict(files or {})
        self.dirs = set()
        for path in dirs:
            self.add_dir(path)
        for path in self.files:
            self.add_dir(posixpath.dirname(path))

        self.fail_pull = set()
        self.fail_delete = set()
        self.unreadable = set()
        self.pulls = []
        self.deleted = []
        self.pruned = []
        self.serial = "FAKE123"

    def add_dir(self, path):
        path = path.rstrip("/") or "/"
        while path not in ("", "/"):
            self.dirs.add(path)
            path = posixpath.dirname(path)

    def path_exists(self, path):
        path = path.rstrip("/") or "/"
        return path in self.files or path in self.dirs

    def is_directory(self, path):
        return (path.rstrip("/") or "/") in self.dirs

    def _children(self, path):
        prefix = path.rstrip("/") + "/"
        names = []
        for entry in sorted(self.dirs | set(self.files)):
            if entry.startswith(prefix):
                name = entry[len(prefix):].split("/", 1)[0]
                if name not in names:
                    names.append(name)
        return names

    def list_entries(self, path, directories_only=False):
        names = self._children(path)
        if directories_only:
            root = path.rstrip("/")
            names = [n for n in names if f"{root}/{n}" in self.dirs]
        return names

    def count_entries(self, path):
        return len(self._children(path))

    def read_small_file(self, path):
        if path in self.unreadable or path not in self.files:
            return None
        return self.files[path].decode()

    def find_files(self, path):
        prefix = path.rstrip("/") + "/"
        return sorted(p for p in self.files if p.startswith(prefix))

    def pull(self, remote_path, local_path: Path):
        self.pulls.append((remote_path, local_path))
        remote = remote_path.rstrip("/") or "/"
        if remote in self.fail_pull:
            return False

        if remote in self.files:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            local_path.write_bytes(self.files[remote])
            return True

        if remote in self.dirs:
            local_path.mkdir(parents=True, exist_ok=True)
            for path in self.find_files(remote):
                target = local_path / path[len(remote) + 1:]
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(self.files[path])
            for path in self.dirs:
                if path.startswith(remote + "/"):
                    (local_path / path[len(remote) + 1:]).mkdir(parents=True, exist_ok=True)
            return True

        return False

    def push(self, local_path, remote_path):
        self.files[remote_path] = Path(local_path).read_bytes()
        self.add_dir(posixpath.dirname(remote_path))
        return True

    def delete_file(self, path):
        if path in self.fail_delete:
            return False
        self.files.pop(path, None)
        self.deleted.append(path)
        return True

    def remove_empty_dirs(self, path):
        self.pruned.append(path)
        prefix = path.rstrip("/") + "/"
        for d in sorted(self.dirs, key=len, reverse=True):
            if d.startswith(prefix) and not self._children(d):
                self.dirs.discard(d)
        return True


class FakeMounter:
    """SSHFSMounter with a scripted result per remote root.

    When ``mount_table`` is given, a successful mount marks it mounted and an
    unmount clears it, so later ``is_mounted`` checks see the change.
    """

    def __init__(self, results=None, unmount_ok=True, force_ok=True, mount_table=None):
        self.results = dict(results or {})
        self.unmount_ok = unmount_ok
        self.force_ok = force_ok
        self.mount_table = mount_table
        self.mounted = []
        self.unmounted = []
        self.forced = []

    def _set_mounted(self, value):
        if self.mount_table is not None:
            self.mount_table.mounted = value

    def mount(self, transport, remote_root, mount_point, sudo=False):
        self.mounted.append((remote_root, mount_point, sudo))
        result = self.results.get(remote_root, MountCommandResult(1, "connection refused"))
        if result.ok:
            self._set_mounted(True)
        return result

    def unmount(self, mount_point):
        self.unmounted.append(mount_point)
        if self.unmount_ok:
            self._set_mounted(False)
        return self.unmount_ok

    def force_unmount(self, mount_point):
        self.forced.append(mount_point)
        if self.force_ok:
            self._set_mounted(False)
        return self.force_ok

    def manual_unmount_hint(self, mount_point):
        return f"Try manually: fusermount -u '{mount_point}'"


class FakeProbe:
    """MountProbe with fixed answers."""

    def __init__(self, mounted=False, signal="mountpoint"):
        self.mounted = mounted
        self.signal = signal
        self.verified = []

    def is_mounted(self, mount_point):
        return self.mounted

    def verify(self, mount_point):
        self.verified.append(mount_point)
        return self.signal


@pytest.fixture
def transport():
    return TransportConfig(host="192.168.1.20", user="u0_a123", port=8022)


@pytest.fixture
def mount_config(tmp_path, transport):
    return MountConfig(
        mount_point=tmp_path / "AndroidDevice",
        transport=transport,
        settle_delay=0,
    )


@pytest.fixture
def worlds_config(tmp_path):
    return WorldsConfig(
        data_candidates=["/sdcard/games/com.mojang", "/storage/emulated/0/games/com.mojang"],
        backup_root=tmp_path / "backups",
    )


@pytest.fixture
def world_device():
    """Device with two worlds, one without a levelname.txt."""
    root = "/sdcard/games/com.mojang/minecraftWorlds"
    return FakeBridge(
        files={
            f"{root}/abc123/levelname.txt": b"My World\r\nignored\n",
            f"{root}/abc123/level.dat": b"LEVEL",
            f"{root}/abc123/db/000001.ldb": b"DB",
            f"{root}/xyz789/level.dat": b"LEVEL2",
            "/sdcard/games/com.mojang/resource_packs/pack.json": b"{}",
        },
    )
