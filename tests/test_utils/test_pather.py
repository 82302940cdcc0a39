"""Unit tests for segment-aware path helpers."""

from workspace_release.utils.pather import is_sub_path, starts_with, to_segments


class TestToSegments:
    """Tests for path normalisation."""

    def test_normalises_separators(self) -> None:
        """Backslashes, ./ and trailing slashes are normalised away."""
        assert to_segments("./packages\\a/") == ["packages", "a"]

    def test_empty(self) -> None:
        """An empty path has no segments."""
        assert to_segments("") == []


class TestStartsWith:
    """Tests for starts_with and is_sub_path."""

    def test_file_inside_directory(self) -> None:
        """A file below the directory matches."""
        assert starts_with("packages/a/src/x.ts", "packages/a")

    def test_sibling_with_common_prefix(self) -> None:
        """packages/ab does not belong to packages/a."""
        assert not starts_with("packages/ab/index.ts", "packages/a")

    def test_directory_itself(self) -> None:
        """A directory is inside itself."""
        assert is_sub_path("packages/a", "packages/a")

    def test_empty_parent(self) -> None:
        """An empty parent matches nothing."""
        assert not is_sub_path("", "packages/a")

    def test_mixed_notation(self) -> None:
        """Different spellings of the same directory match."""
        assert starts_with("packages/a/index.ts", "./packages/a/")
