import os

import pytest

from rulematrix.loader import (
    DirEntry,
    FileProvider,
    HybridLoader,
    ResourceSource,
    SkipDir,
    TraversableProvider,
)


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / "one.txt").write_bytes(b"one")
    (tmp_path / "a" / "b" / "two.txt").write_bytes(b"two")
    (tmp_path / "a" / "b" / "three.txt").write_bytes(b"three")
    (tmp_path / "top.txt").write_bytes(b"top")
    return tmp_path


def _collect(provider, root=".", skip=None):
    seen = []

    def fn(path, entry, err):
        seen.append(path if err is None else (path, type(err)))
        if path == skip:
            raise SkipDir

    provider.walk_dir(root, fn)
    return seen


def test_file_provider_reads_file(tree):
    resource = FileProvider(tree).read_file("a/one.txt")
    assert resource.content == b"one"
    assert resource.source is ResourceSource.EXTERNAL


@pytest.mark.parametrize("given, expected", [(0, 50), (200, 50), (-2, 50), (-1, -1), (10, 10), (100, 100)])
def test_file_provider_priority(tree, given, expected):
    assert FileProvider(tree, given).priority == expected


def test_file_provider_name(tree):
    assert FileProvider(tree).name == f"FileProvider({os.path.abspath(str(tree))})"


def test_read_dir_sorted(tree):
    assert FileProvider(tree).read_dir(".") == [DirEntry("a", True), DirEntry("top.txt", False)]


@pytest.mark.parametrize("name", ["../x", "/abs", "a//b", "", "a/./b"])
def test_invalid_paths_rejected(tree, name):
    with pytest.raises(OSError):
        FileProvider(tree).read_file(name)


def test_missing_and_directory_errors(tree):
    provider = FileProvider(tree)
    with pytest.raises(FileNotFoundError):
        provider.read_file("nope.txt")
    with pytest.raises(IsADirectoryError):
        provider.read_file("a")
    with pytest.raises(NotADirectoryError):
        provider.read_dir("top.txt")
    assert provider.is_dir("a") is True
    assert provider.is_dir("top.txt") is False


def test_open_returns_binary_file(tree):
    with FileProvider(tree).open("top.txt") as handle:
        assert handle.read() == b"top"


def test_walk_dir_lexical_order(tree):
    assert _collect(FileProvider(tree)) == [
        ".", "a", "a/b", "a/b/three.txt", "a/b/two.txt", "a/one.txt", "top.txt",
    ]


def test_walk_dir_skip_directory(tree):
    assert _collect(FileProvider(tree), skip="a") == [".", "a", "top.txt"]


def test_walk_dir_skip_on_file_skips_siblings(tree):
    assert _collect(FileProvider(tree), skip="a/b/three.txt") == [
        ".", "a", "a/b", "a/b/three.txt", "a/one.txt", "top.txt",
    ]


def test_walk_dir_missing_root_reports_error(tree):
    assert _collect(FileProvider(tree), root="missing") == [("missing", FileNotFoundError)]


def test_traversable_provider(tree):
    provider = TraversableProvider(tree)
    resource = provider.read_file("a/b/two.txt")
    assert resource.content == b"two"
    assert resource.source is ResourceSource.EMBED
    assert provider.priority == 0
    assert _collect(provider, root="a") == ["a", "a/b", "a/b/three.txt", "a/b/two.txt", "a/one.txt"]


@pytest.fixture
def layered(tmp_path):
    high = tmp_path / "high"
    low = tmp_path / "low"
    for base in (high, low):
        (base / "dir").mkdir(parents=True)
    (high / "shared.txt").write_bytes(b"from high")
    (low / "shared.txt").write_bytes(b"from low")
    (high / "only_high.txt").write_bytes(b"h")
    (low / "only_low.txt").write_bytes(b"l")
    (low / "dir" / "deep.txt").write_bytes(b"d")
    return FileProvider(high, 90), FileProvider(low, 10)


def test_hybrid_prefers_higher_priority(layered):
    high, low = layered
    loader = HybridLoader(low, high)
    assert loader.providers == (high, low)
    assert loader.read_file("shared.txt").content == b"from high"
    assert loader.read_file("only_low.txt").content == b"l"


def test_hybrid_read_dir_merges(layered):
    high, low = layered
    names = [entry.name for entry in HybridLoader(low, high).read_dir(".")]
    assert sorted(names) == ["dir", "only_high.txt", "only_low.txt", "shared.txt"]
    assert len(names) == len(set(names))
    assert names.index("shared.txt") < names.index("only_low.txt")


def test_hybrid_missing_resources(layered):
    loader = HybridLoader(*layered)
    with pytest.raises(FileNotFoundError):
        loader.read_file("absent.txt")
    with pytest.raises(FileNotFoundError):
        loader.read_dir("absent")


def test_hybrid_walk_dir(layered):
    seen = _collect(HybridLoader(*layered))
    assert seen[0] == "."
    assert sorted(seen) == sorted([".", "dir", "dir/deep.txt", "only_high.txt", "only_low.txt", "shared.txt"])
    assert _collect(HybridLoader(*layered), skip="dir").count("dir/deep.txt") == 0


def test_hybrid_walk_dir_rejects_file_root(layered):
    with pytest.raises(NotADirectoryError):
        HybridLoader(*layered).walk_dir("shared.txt", lambda path, entry, err: None)


def test_hybrid_add_provider_reorders(layered):
    high, low = layered
    loader = HybridLoader(low)
    assert loader.read_file("shared.txt").content == b"from low"
    loader.add_provider(high)
    assert loader.read_file("shared.txt").content == b"from high"


def test_hybrid_logs_search_order(layered):
    messages = []

    class Recorder:
        def infof(self, ctx, fmt, *args):
            messages.append((fmt, args))

    high, low = layered
    HybridLoader(low, high, logger=Recorder()).read_file("shared.txt")
    assert messages[0] == ("HybridLoader provider search order: %v", ([high.name, low.name],))
    assert messages[1][1] == ("shared.txt", "external")