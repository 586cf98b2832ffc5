"""Tests for candidate path resolution."""

from unittest.mock import MagicMock

import pytest

from droidlink.exceptions import UnreachableError
from droidlink.resolver import PathResolver, PathStatus

from conftest import FakeBridge


class TestResolve:
    """Test first-match resolution."""

    def test_first_reachable_wins(self):
        """The first existing directory in list order is returned."""
        bridge = FakeBridge(dirs=["/storage/emulated/0", "/sdcard"])
        resolver = PathResolver(bridge)

        assert resolver.resolve(["/missing", "/sdcard", "/storage/emulated/0"]) == "/sdcard"

    def test_file_is_not_reachable(self):
        """A candidate that exists as a file is skipped."""
        bridge = FakeBridge(files={"/sdcard/notes.txt": b"x"}, dirs=["/storage/self/primary"])
        resolver = PathResolver(bridge)

        assert resolver.resolve(["/sdcard/notes.txt", "/storage/self/primary"]) == "/storage/self/primary"

    def test_no_candidate_raises_with_tried_list(self):
        """UnreachableError lists every candidate that was tried."""
        resolver = PathResolver(FakeBridge())

        with pytest.raises(UnreachableError) as exc_info:
            resolver.resolve(["/a", "/b"], hint="custom hint")

        assert exc_info.value.candidates == ["/a", "/b"]
        assert "/a" in str(exc_info.value)
        assert exc_info.value.hint == "custom hint"

    def test_empty_candidates(self):
        """An empty candidate list is unreachable."""
        with pytest.raises(UnreachableError):
            PathResolver(FakeBridge()).resolve([])

    def test_short_circuits(self):
        """Candidates after the first match are never probed."""
        bridge = MagicMock()
        bridge.path_exists.return_value = True
        bridge.is_directory.return_value = True

        PathResolver(bridge).resolve(["/first", "/second"])

        bridge.path_exists.assert_called_once_with("/first")


class TestProbe:
    """Test the non-short-circuiting probe."""

    def test_probe_statuses(self):
        """Every candidate gets a status."""
        bridge = FakeBridge(
            files={"/sdcard/DCIM/a.jpg": b"1", "/sdcard/DCIM/b.jpg": b"2", "/mnt/file": b"x"},
            dirs=["/storage/empty"],
        )
        probes = PathResolver(bridge).probe(["/sdcard/DCIM", "/storage/empty", "/mnt/file", "/nope"])

        assert [p.status for p in probes] == [
            PathStatus.ACCESSIBLE,
            PathStatus.EMPTY,
            PathStatus.FILE,
            PathStatus.MISSING,
        ]
        assert probes[0].sample == ["a.jpg", "b.jpg"]
        assert probes[3].exists is False

    def test_sample_size(self):
        """Samples are truncated."""
        bridge = FakeBridge(files={f"/sdcard/f{i}": b"" for i in range(5)})
        probe = PathResolver(bridge).probe(["/sdcard"], sample_size=2)[0]

        assert len(probe.sample) == 2
