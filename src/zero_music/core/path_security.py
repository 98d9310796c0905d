"""
Path security validation utilities for Zero Music.

Provides pure functions to validate file paths are within the library
directory, preventing directory traversal attacks and symlink escapes.
"""

from pathlib import Path
from typing import Optional, Union


def is_path_within_library(file_path: Path, library_dir: Union[str, Path]) -> bool:
    """Pure function - validates path is within the library directory.

    Uses Path.resolve() to handle symlinks and relative paths, then checks if
    the resolved path is a child of the resolved library root.

    Args:
        file_path: The file path to validate
        library_dir: Library root directory

    Returns:
        True if path is within library boundaries, False otherwise
    """
    try:
        resolved_path = file_path.resolve()
        lib_path = Path(library_dir).resolve()
        resolved_path.relative_to(lib_path)
        return True
    except ValueError:
        # relative_to raises ValueError if path is not a subpath
        return False
    except (OSError, RuntimeError):
        # Path.resolve() can raise OSError for invalid paths or RuntimeError for recursion
        return False


def validate_song_path(
    file_path: Path, library_dir: Union[str, Path]
) -> Optional[Path]:
    """Pure function - returns validated path or None.

    Combines an is-file check with library boundary validation to ensure
    the path exists and is within the library directory.
    """
    if not file_path.is_file():
        return None

    if not is_path_within_library(file_path, library_dir):
        return None

    return file_path
