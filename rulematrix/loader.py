"""Resource providers for rule chain DSL files and a prioritised combination of them."""

from __future__ import annotations

import enum
import errno
import os
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Callable, Optional

WalkFn = Callable[[str, Optional["DirEntry"], Optional[BaseException]], None]


class ResourceSource(str, enum.Enum):
    """Where a resource came from."""

    EMBED = "embed"
    EXTERNAL = "external"


@dataclass(frozen=True)
class Resource:
    content: bytes
    source: ResourceSource


@dataclass(frozen=True)
class DirEntry:
    name: str
    is_dir: bool


class SkipDir(Exception):
    """Raised by a walk callback to skip a directory, or the rest of one."""


def _to_slash(name: str) -> str:
    return name.replace(os.sep, "/") if os.sep != "/" else name


def _parts(name: str) -> list[str]:
    if name == ".":
        return []
    parts = name.split("/")
    if any(part in ("", ".", "..") for part in parts):
        raise OSError(errno.EINVAL, "invalid path", name)
    return parts


def _join(parent: str, child: str) -> str:
    return child if parent == "." else f"{parent}/{child}"


def _base(name: str) -> str:
    return "." if name == "." else posixpath.basename(name)


def _walk_entry(provider: Any, path: str, entry: DirEntry, fn: WalkFn) -> None:
    try:
        fn(path, entry, None)
    except SkipDir:
        if entry.is_dir:
            return
        raise
    if not entry.is_dir:
        return
    try:
        children = provider.read_dir(path)
    except OSError as err:
        try:
            fn(path, entry, err)
        except SkipDir:
            pass
        return
    for child in children:
        try:
            _walk_entry(provider, _join(path, child.name), child, fn)
        except SkipDir:
            break


def _walk_tree(provider: Any, root: str, fn: WalkFn) -> None:
    try:
        entry = DirEntry(_base(root), provider.is_dir(root))
    except OSError as err:
        try:
            fn(root, None, err)
        except SkipDir:
            pass
        return
    try:
        _walk_entry(provider, root, entry, fn)
    except SkipDir:
        pass


class TraversableProvider:
    """Serves resources from a traversable tree such as a package's data files."""

    name = "TraversableProvider"
    priority = 0

    def __init__(self, root: Any, *, source: ResourceSource = ResourceSource.EMBED) -> None:
        self._root = root
        self._source = source

    def _resolve(self, name: str) -> Any:
        node = self._root
        for part in _parts(name):
            node = node.joinpath(part)
        return node

    def _file(self, name: str) -> Any:
        node = self._resolve(name)
        if node.is_file():
            return node
        if node.is_dir():
            raise IsADirectoryError(errno.EISDIR, "is a directory", name)
        raise FileNotFoundError(errno.ENOENT, "file does not exist", name)

    def open(self, name: str) -> BinaryIO:
        return self._file(name).open("rb")

    def read_file(self, name: str) -> Resource:
        return Resource(content=self._file(name).read_bytes(), source=self._source)

    def read_dir(self, name: str) -> list[DirEntry]:
        node = self._resolve(name)
        if not node.is_dir():
            if node.is_file():
                raise NotADirectoryError(errno.ENOTDIR, "not a directory", name)
            raise FileNotFoundError(errno.ENOENT, "file does not exist", name)
        entries = [DirEntry(child.name, child.is_dir()) for child in node.iterdir()]
        return sorted(entries, key=lambda entry: entry.name)

    def is_dir(self, name: str) -> bool:
        node = self._resolve(name)
        if node.is_dir():
            return True
        if node.is_file():
            return False
        raise FileNotFoundError(errno.ENOENT, "file does not exist", name)

    def walk_dir(self, root: str, fn: WalkFn) -> None:
        _walk_tree(self, root, fn)


class FileProvider:
    """Serves resources from a directory on the local filesystem."""

    def __init__(self, base_dir: str | os.PathLike[str], priority: int = 0) -> None:
        if priority == 0 or priority < -1 or priority > 100:
            priority = 50
        self.base_dir = os.fspath(base_dir)
        self.priority = priority
        self._tree = TraversableProvider(Path(self.base_dir), source=ResourceSource.EXTERNAL)

    @property
    def name(self) -> str:
        return f"FileProvider({os.path.abspath(self.base_dir)})"

    def open(self, name: str) -> BinaryIO:
        return self._tree.open(name)

    def read_file(self, name: str) -> Resource:
        return self._tree.read_file(name)

    def read_dir(self, name: str) -> list[DirEntry]:
        return self._tree.read_dir(name)

    def is_dir(self, name: str) -> bool:
        return self._tree.is_dir(name)

    def walk_dir(self, root: str, fn: WalkFn) -> None:
        _walk_tree(self, root, fn)


class HybridLoader:
    """Combines providers, consulting them from highest priority to lowest."""

    name = "HybridLoader"
    priority = -1

    def __init__(self, *providers: Any, logger: Any = None) -> None:
        self._providers = list(providers)
        self._logger = logger
        self._reorder()

    @property
    def providers(self) -> tuple[Any, ...]:
        return tuple(self._providers)

    def _reorder(self) -> None:
        self._providers.sort(key=lambda provider: provider.priority, reverse=True)
        if self._logger is not None:
            self._logger.infof(None, "HybridLoader provider search order: %v",
                               [provider.name for provider in self._providers])

    def _first(self, name: str, op: Callable[[Any, str], Any]) -> tuple[Any, Any]:
        last: OSError | None = None
        for provider in self._providers:
            try:
                return provider, op(provider, name)
            except OSError as err:
                last = err
        raise last or FileNotFoundError(errno.ENOENT, "file does not exist", name)

    def open(self, name: str) -> BinaryIO:
        return self._first(_to_slash(name), lambda p, n: p.open(n))[1]

    def read_file(self, name: str) -> Resource:
        name = _to_slash(name)
        _, resource = self._first(name, lambda p, n: p.read_file(n))
        if self._logger is not None:
            self._logger.infof(None, "Resource '%s' loaded from source: %s", name, resource.source.value)
        return resource

    def read_dir(self, name: str) -> list[DirEntry]:
        """Merge directory listings; earlier providers win name clashes."""
        name = _to_slash(name)
        merged: dict[str, DirEntry] = {}
        found = False
        for provider in self._providers:
            try:
                entries = provider.read_dir(name)
            except OSError:
                continue
            found = True
            for entry in entries:
                merged.setdefault(entry.name, entry)
        if not found:
            raise FileNotFoundError(errno.ENOENT, "file does not exist", name)
        return list(merged.values())

    def is_dir(self, name: str) -> bool:
        return self._first(_to_slash(name), lambda p, n: p.is_dir(n))[1]

    def add_provider(self, provider: Any) -> None:
        self._providers.append(provider)
        self._reorder()

    def walk_dir(self, root: str, fn: WalkFn) -> None:
        """Walk the merged tree below root, calling fn for root too."""
        root = _to_slash(root)
        if not self.is_dir(root):
            raise NotADirectoryError(errno.ENOTDIR, "WalkDir root is not a directory", root)
        try:
            fn(root, DirEntry(_base(root), True), None)
        except SkipDir:
            return
        self._walk(root, fn)

    def _walk(self, current: str, fn: WalkFn) -> None:
        try:
            entries = self.read_dir(current)
        except OSError as err:
            fn(current, None, err)
            return
        for entry in entries:
            full = _join(current, entry.name)
            try:
                fn(full, entry, None)
            except SkipDir:
                if entry.is_dir:
                    continue
                raise
            if entry.is_dir:
                self._walk(full, fn)