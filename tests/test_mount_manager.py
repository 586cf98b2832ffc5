"""Tests for the sshfs mount lifecycle."""

import pytest

from droidlink.exceptions import (
    AllCandidatesFailedError,
    AlreadyMountedError,
    MountError,
    UnmountError,
)
from droidlink.mount import CleanupStatus, MountManager, MountState, VerificationState
from droidlink.mount.sshfs import MountCommandResult

from conftest import FakeMounter, FakeProbe

OK = MountCommandResult(0)


def _manager(config, mounter, probe, sleeps=None):
    return MountManager(
        config,
        mounter=mounter,
        probe=probe,
        sleep=(sleeps.append if sleeps is not None else lambda s: None),
    )


class TestMount:
    """Test establishing a mount."""

    def test_first_candidate_mounts(self, mount_config):
        """The first root that mounts and verifies is used."""
        mounter = FakeMounter({"/storage/emulated/0": OK})
        manager = _manager(mount_config, mounter, FakeProbe())

        session = manager.mount()

        assert session.remote_root == "/storage/emulated/0"
        assert session.verification == VerificationState.VERIFIED
        assert session.verified_by == "mountpoint"
        assert manager.state == MountState.MOUNTED
        assert manager.session is session
        assert mount_config.mount_point.is_dir()
        assert len(mounter.mounted) == 1

    def test_falls_through_to_later_candidate(self, mount_config):
        """Failed candidates are rolled back before the next one is tried."""
        mounter = FakeMounter({"/sdcard": OK})
        manager = _manager(mount_config, mounter, FakeProbe())

        session = manager.mount()

        assert session.remote_root == "/sdcard"
        assert [m[0] for m in mounter.mounted] == ["/storage/emulated/0", "/sdcard"]
        assert len(mounter.unmounted) == 1
        assert manager.history == [
            MountState.IDLE,
            MountState.PROBING,
            MountState.MOUNTING,
            MountState.ROLLING_BACK,
            MountState.PROBING,
            MountState.MOUNTING,
            MountState.VERIFYING,
            MountState.MOUNTED,
        ]

    def test_settle_delay_before_verification(self, mount_config):
        """Verification waits for the configured settle delay."""
        mount_config.settle_delay = 0.3
        sleeps = []
        manager = _manager(mount_config, FakeMounter({"/storage/emulated/0": OK}), FakeProbe(), sleeps)

        manager.mount()

        assert sleeps == [0.3]

    def test_verification_mismatch_rolls_back(self, mount_config):
        """A zero exit without any mount signal counts as a failure."""
        mounter = FakeMounter({root: OK for root in mount_config.remote_candidates})
        manager = _manager(mount_config, mounter, FakeProbe(signal=None))

        with pytest.raises(AllCandidatesFailedError) as exc_info:
            manager.mount()

        assert len(mounter.unmounted) == len(mount_config.remote_candidates)
        assert "not visible" in exc_info.value.attempts[0].reason

    def test_all_failed(self, mount_config):
        """Every candidate fails: attempts and both hint groups are reported."""
        mounter = FakeMounter({"/sdcard": MountCommandResult(1, "fuse: Operation not permitted")})
        manager = _manager(mount_config, mounter, FakeProbe())

        with pytest.raises(AllCandidatesFailedError) as exc_info:
            manager.mount()

        error = exc_info.value
        assert manager.state == MountState.ALL_FAILED
        assert [a.remote_root for a in error.attempts] == mount_config.remote_candidates
        assert any("Full Disk Access" in h for h in error.hints)
        assert any("SSH server not running" in h for h in error.hints)
        assert "Operation not permitted" in error.hints[0]
        assert error.hints[-1] == "Test SSH connection: ssh -p 8022 u0_a123@192.168.1.20"
        assert not mount_config.mount_point.exists()

    def test_already_mounted(self, mount_config):
        """An active mount is rejected before anything runs."""
        mounter = FakeMounter()
        manager = _manager(mount_config, mounter, FakeProbe(mounted=True))

        with pytest.raises(AlreadyMountedError):
            manager.mount()

        assert mounter.mounted == []

    def test_second_mount_on_same_point_is_rejected(self, mount_config):
        """A mount that just succeeded blocks another mount onto the same point."""
        table = FakeProbe()
        mounter = FakeMounter({"/storage/emulated/0": OK}, mount_table=table)
        manager = _manager(mount_config, mounter, table)

        manager.mount()
        assert table.mounted

        with pytest.raises(AlreadyMountedError):
            manager.mount()

        assert len(mounter.mounted) == 1
        assert manager.state == MountState.MOUNTED

    def test_mount_again_after_unmount(self, mount_config):
        table = FakeProbe()
        mounter = FakeMounter({"/storage/emulated/0": OK}, mount_table=table)
        manager = _manager(mount_config, mounter, table)

        manager.mount()
        assert manager.unmount()
        assert not table.mounted

        session = manager.mount()

        assert session.remote_root == "/storage/emulated/0"
        assert len(mounter.mounted) == 2

    def test_missing_host(self, mount_config):
        """A transport without host is a usage error."""
        mount_config.transport.host = None
        with pytest.raises(MountError):
            _manager(mount_config, FakeMounter(), FakeProbe()).mount()

    def test_missing_user(self, mount_config):
        """A transport without user is a usage error."""
        mount_config.transport.user = None
        with pytest.raises(MountError):
            _manager(mount_config, FakeMounter(), FakeProbe()).mount()

    def test_mount_point_is_a_file(self, mount_config):
        """A file in place of the mount point is refused."""
        mount_config.mount_point.write_text("x")
        with pytest.raises(MountError):
            _manager(mount_config, FakeMounter(), FakeProbe()).mount()

    def test_reserved_mount_point_not_created(self, mount_config, tmp_path):
        """System-managed locations are never created by the manager."""
        mount_config.reserved_prefixes = [str(tmp_path) + "/"]
        manager = _manager(mount_config, FakeMounter({"/storage/emulated/0": OK}), FakeProbe())

        manager.mount()

        assert not mount_config.mount_point.exists()

    def test_retry_after_all_failed(self, mount_config):
        """A new mount call starts over after a total failure."""
        mounter = FakeMounter()
        manager = _manager(mount_config, mounter, FakeProbe())
        with pytest.raises(AllCandidatesFailedError):
            manager.mount()

        mounter.results["/sdcard"] = OK
        manager.mount()

        assert manager.state == MountState.MOUNTED


class TestUnmount:
    """Test teardown."""

    def test_not_mounted_is_noop(self, mount_config):
        """Unmounting something that is not mounted succeeds without running anything."""
        mounter = FakeMounter()
        manager = _manager(mount_config, mounter, FakeProbe(mounted=False))

        assert manager.unmount() is False
        assert mounter.unmounted == []

    def test_unmount_removes_empty_directory(self, mount_config):
        """A successful unmount removes the empty mount point."""
        mount_config.mount_point.mkdir()
        mounter = FakeMounter()
        manager = _manager(mount_config, mounter, FakeProbe(mounted=True))

        assert manager.unmount() is True
        assert not mount_config.mount_point.exists()
        assert manager.state == MountState.IDLE
        assert mounter.forced == []

    def test_forced_fallback(self, mount_config):
        """The forced variant runs when the regular unmount fails."""
        mounter = FakeMounter(unmount_ok=False)
        manager = _manager(mount_config, mounter, FakeProbe(mounted=True))

        assert manager.unmount() is True
        assert len(mounter.forced) == 1

    def test_both_fail(self, mount_config):
        """If both unmount variants fail the error carries manual instructions."""
        mounter = FakeMounter(unmount_ok=False, force_ok=False)
        manager = _manager(mount_config, mounter, FakeProbe(mounted=True))

        with pytest.raises(UnmountError) as exc_info:
            manager.unmount()

        assert "fusermount -u" in exc_info.value.hint
        assert manager.state == MountState.MOUNTED

    def test_reserved_directory_kept(self, mount_config, tmp_path):
        """System-managed mount points are left for the OS to remove."""
        mount_config.reserved_prefixes = [str(tmp_path) + "/"]
        mount_config.mount_point.mkdir()
        manager = _manager(mount_config, FakeMounter(), FakeProbe(mounted=True))

        manager.unmount()

        assert mount_config.mount_point.exists()


class TestCleanup:
    """Test cleanup of leftover mount points."""

    def test_absent(self, mount_config):
        result = _manager(mount_config, FakeMounter(), FakeProbe()).cleanup(mount_config.mount_point)
        assert result.status == CleanupStatus.ABSENT

    def test_empty_directory_removed(self, mount_config):
        mount_config.mount_point.mkdir()
        result = _manager(mount_config, FakeMounter(), FakeProbe()).cleanup(mount_config.mount_point)

        assert result.status == CleanupStatus.REMOVED
        assert not mount_config.mount_point.exists()

    def test_not_empty(self, mount_config):
        """A non-empty directory is reported with a sample of its contents."""
        mount_config.mount_point.mkdir()
        (mount_config.mount_point / "leftover.txt").write_text("x")

        result = _manager(mount_config, FakeMounter(), FakeProbe()).cleanup(mount_config.mount_point)

        assert result.status == CleanupStatus.NOT_EMPTY
        assert result.contents == ["leftover.txt"]

    def test_stale_mount_unmounted(self, mount_config):
        mount_config.mount_point.mkdir()
        mounter = FakeMounter()
        result = _manager(mount_config, mounter, FakeProbe(mounted=True)).cleanup(mount_config.mount_point)

        assert result.unmounted is True
        assert result.status == CleanupStatus.REMOVED
