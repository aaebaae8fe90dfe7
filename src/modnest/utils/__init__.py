"""
modnest.utils – Small shared path utilities.
"""
from .paths import canonical, is_within_dir, list_subdirs, posix_relpath, relative_link_target

__all__ = ["canonical", "is_within_dir", "list_subdirs", "posix_relpath", "relative_link_target"]
