"""
In-memory library index with a staleness-checked cache.

The index owns the catalog of songs under one root directory and rebuilds
it on demand when the cached copy is stale. A cached catalog is served as
long as it is non-empty, younger than the TTL, and the root directory's
mtime has not moved past the one recorded at the last scan.

Only the root's own mtime is compared. Editing a file nested in a
subdirectory does not touch it, so such changes show up once the TTL runs
out.

Usage:
    index = LibraryIndex.from_config(config.music)
    songs = index.get_catalog()        # rebuilds if stale
    song = index.get_entry(song_id)    # never rebuilds
"""

import os
import stat
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Iterator, Optional

from loguru import logger

from zero_music.core.config import (
    DEFAULT_CACHE_TTL_MINUTES,
    FALLBACK_SUPPORTED_FORMATS,
    MusicConfig,
    normalize_extension,
)

from .errors import DirectoryUnavailableError, ScanCancelledError, ScanFailedError
from .locks import ReadWriteLock
from .metadata import extract_song
from .models import Song
from .scanner import walk_audio_files

Walker = Callable[
    [str, frozenset, Optional[threading.Event]], Iterable[tuple[str, int]]
]
Extractor = Callable[[str, int], Song]


@dataclass(frozen=True)
class _Snapshot:
    """One published catalog; replaced as a whole, never modified."""

    songs: tuple[Song, ...] = ()
    by_id: dict[str, Song] = field(default_factory=dict)
    scanned_at: Optional[float] = None
    dir_mtime_ns: Optional[int] = None


class LibraryIndex:
    """Concurrently readable song catalog with at most one rebuild at a time.

    Lookups take a shared lock. A caller that finds the cache stale takes
    the exclusive lock, checks freshness again (another caller may have
    just rebuilt it) and only then walks the directory. Readers never see a
    half-built catalog because a rebuild publishes a new snapshot in one
    assignment.
    """

    def __init__(
        self,
        directory: str,
        supported_formats: Optional[Iterable[str]] = None,
        cache_ttl_minutes: int = DEFAULT_CACHE_TTL_MINUTES,
        *,
        walker: Walker = walk_audio_files,
        extractor: Extractor = extract_song,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(supported_formats, str):
            supported_formats = [supported_formats]
        formats = [normalize_extension(f) for f in supported_formats or []]
        formats = [f for f in formats if f] or FALLBACK_SUPPORTED_FORMATS
        if cache_ttl_minutes <= 0:
            cache_ttl_minutes = DEFAULT_CACHE_TTL_MINUTES

        self._directory = os.path.abspath(directory)
        self._supported_formats = frozenset(formats)
        self._cache_ttl = cache_ttl_minutes * 60.0
        self._walker = walker
        self._extractor = extractor
        self._clock = clock

        self._lock = ReadWriteLock()
        self._state = _Snapshot()

    @classmethod
    def from_config(cls, config: MusicConfig, **kwargs) -> "LibraryIndex":
        """Build an index from the [music] configuration section."""
        config = config.normalized()
        return cls(
            config.directory,
            config.supported_formats,
            config.cache_ttl_minutes,
            **kwargs,
        )

    @property
    def directory(self) -> str:
        return self._directory

    @property
    def supported_formats(self) -> frozenset:
        return self._supported_formats

    @property
    def cache_ttl(self) -> float:
        """Cache lifetime in seconds."""
        return self._cache_ttl

    @property
    def last_scan_time(self) -> Optional[float]:
        with self._lock.read_locked():
            return self._state.scanned_at

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def get_catalog(self, cancel: Optional[threading.Event] = None) -> list[Song]:
        """Return a copy of the catalog, rebuilding it first if stale.

        A fresh cache is served even if the directory is currently
        unreachable.

        Raises:
            DirectoryUnavailableError: Rebuild needed but the root is unreachable
            ScanFailedError: The directory walk failed
            ScanCancelledError: The cancel event was set during the rebuild
        """
        unavailable: Optional[DirectoryUnavailableError] = None
        try:
            dir_mtime_ns = self._stat_directory()
        except DirectoryUnavailableError as e:
            dir_mtime_ns = None
            unavailable = e

        with self._lock.read_locked():
            if self._is_fresh(dir_mtime_ns):
                return self._copy_songs()

        if unavailable is not None:
            raise unavailable

        with self._lock.write_locked():
            # Another caller may have rebuilt while we waited
            if self._is_fresh(dir_mtime_ns):
                return self._copy_songs()
            self._rebuild(dir_mtime_ns, cancel)
            return self._copy_songs()

    def refresh(self, cancel: Optional[threading.Event] = None) -> None:
        """Force a rebuild. On failure the previous catalog stays in place."""
        dir_mtime_ns = self._stat_directory()
        with self._lock.write_locked():
            self._rebuild(dir_mtime_ns, cancel)

    def get_entry(self, song_id: str) -> Optional[Song]:
        """Look up a song by id in the current catalog without rebuilding."""
        with self._lock.read_locked():
            song = self._state.by_id.get(song_id)
        return replace(song) if song is not None else None

    def count(self) -> int:
        """Number of songs in the current catalog, without rebuilding."""
        with self._lock.read_locked():
            return len(self._state.songs)

    def is_fresh(self) -> bool:
        """Check whether get_catalog would be served from the cache."""
        try:
            dir_mtime_ns = self._stat_directory()
        except DirectoryUnavailableError:
            dir_mtime_ns = None
        with self._lock.read_locked():
            return self._is_fresh(dir_mtime_ns)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _stat_directory(self) -> int:
        try:
            st = os.stat(self._directory)
        except FileNotFoundError as e:
            raise DirectoryUnavailableError(
                self._directory, f"Music directory does not exist: {self._directory}"
            ) from e
        except OSError as e:
            raise DirectoryUnavailableError(
                self._directory, f"Music directory is not accessible: {e}"
            ) from e
        if not stat.S_ISDIR(st.st_mode):
            raise DirectoryUnavailableError(
                self._directory, f"Music path is not a directory: {self._directory}"
            )
        return st.st_mtime_ns

    def _is_fresh(self, dir_mtime_ns: Optional[int]) -> bool:
        """Freshness predicate. Caller must hold the lock (either mode)."""
        state = self._state
        if not state.songs or state.scanned_at is None:
            return False
        if self._clock() - state.scanned_at >= self._cache_ttl:
            return False
        # An unreadable root cannot prove staleness; keep serving the cache
        if dir_mtime_ns is not None and state.dir_mtime_ns is not None:
            if dir_mtime_ns > state.dir_mtime_ns:
                return False
        return True

    def _copy_songs(self) -> list[Song]:
        return [replace(song) for song in self._state.songs]

    def _collect(self, cancel: Optional[threading.Event]) -> Iterator[Song]:
        for path, size in self._walker(self._directory, self._supported_formats, cancel):
            # One unreadable file must not fail the whole scan
            try:
                song = self._extractor(path, size)
            except Exception as e:
                logger.warning(f"Skipping {path}: failed to read metadata: {e}")
                continue
            yield song

    def _rebuild(
        self, dir_mtime_ns: int, cancel: Optional[threading.Event]
    ) -> None:
        """Walk the directory and publish a new snapshot. Requires the write lock."""
        started = time.perf_counter()
        logger.debug(f"Scanning music directory {self._directory}")

        songs: list[Song] = []
        by_id: dict[str, Song] = {}
        try:
            for song in self._collect(cancel):
                songs.append(song)
                by_id[song.id] = song
        except ScanFailedError as e:
            if e.path == self._directory:
                logger.error(f"Music directory unreadable: {e}")
                raise DirectoryUnavailableError(self._directory, str(e)) from e
            logger.error(f"Library scan failed, keeping previous catalog: {e}")
            raise
        except ScanCancelledError:
            logger.info(
                f"Library scan of {self._directory} cancelled after {len(songs)} files"
            )
            raise

        self._state = _Snapshot(
            songs=tuple(songs),
            by_id=by_id,
            scanned_at=self._clock(),
            dir_mtime_ns=dir_mtime_ns,
        )

        elapsed = time.perf_counter() - started
        logger.info(
            f"Indexed {len(songs)} songs from {self._directory} in {elapsed:.2f}s"
        )

    def __repr__(self) -> str:
        return (
            f"LibraryIndex(directory={self._directory!r}, songs={self.count()}, "
            f"ttl={self._cache_ttl:.0f}s)"
        )
