"""
certcache_core.storage.paths
----------------------------
Resolution of the on-disk location of the certificate store.

The store code only consumes these predicates; where the store lives is the
resolver's decision.
"""

from __future__ import annotations
import os

DEFAULT_DB_NAME = "client.db"


class PathResolver:
    # Interface
    def resolve_directory(self) -> str: ...
    def resolve_file_name(self) -> str: ...
    def is_missing_or_empty(self, path: str) -> bool: ...
    def is_file_missing(self, path: str, name: str) -> bool: ...

    def resolve_file_path(self) -> str:
        return os.path.join(self.resolve_directory(), self.resolve_file_name())


class LocalPathResolver(PathResolver):
    def __init__(self, db_dir: str = "db", db_name: str = DEFAULT_DB_NAME):
        self.db_dir = os.fspath(db_dir)
        self.db_name = db_name

    def resolve_directory(self) -> str:
        return self.db_dir

    def resolve_file_name(self) -> str:
        return self.db_name

    def is_missing_or_empty(self, path: str) -> bool:
        if not os.path.exists(path):
            return True
        if not os.path.isdir(path):
            raise NotADirectoryError(f"store path [{path}] is not a directory")
        with os.scandir(path) as it:
            return next(it, None) is None

    def is_file_missing(self, path: str, name: str) -> bool:
        target = os.path.join(path, name)
        if os.path.isdir(target):
            raise IsADirectoryError(f"store file [{target}] is a directory")
        return not os.path.exists(target)
