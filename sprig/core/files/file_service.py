"""Inspection of files and directories at a given ref."""

from __future__ import annotations

import logging
from pathlib import Path

from sprig.core.fanout import fan_out
from sprig.core.history import HistoryService
from sprig.core.parsing import parse_count, parse_tree_listing
from sprig.core.refs import check_ref
from sprig.domain.entities import ObjectType, TreeEntry, TreeObject
from sprig.domain.exceptions import GitCommandError, NotFoundError
from sprig.ports.process import ProcessRunner
from sprig.shared.binary import looks_binary

logger = logging.getLogger(__name__)


class FileService:
    """Object lookups, blob contents and directory listings."""

    def __init__(
        self,
        runner: ProcessRunner,
        history: HistoryService,
        max_workers: int = 8,
    ) -> None:
        self._runner = runner
        self._history = history
        self._max_workers = max_workers

    def _tree_object(self, repo: Path, path: str, ref: str) -> TreeObject:
        """Look up the tree entry for path at ref.

        Raises:
            NotFoundError: If nothing exists at path.
        """
        clean = path.strip("/")
        if not clean:
            tree_hash = self._runner.run(["rev-parse", f"{check_ref(ref)}^{{tree}}"], cwd=Path(repo))
            return TreeObject(mode="040000", type=ObjectType.TREE, object_hash=tree_hash.strip(), path="")
        output = self._runner.run(["ls-tree", "-z", check_ref(ref), "--", clean], cwd=Path(repo))
        objects = parse_tree_listing(output)
        if not objects:
            raise NotFoundError(f"'{path}' does not exist at '{ref}' in {repo}")
        return objects[0]

    def object_hash(self, repo: Path, path: str, ref: str) -> str:
        """Hash of the blob or tree at path.

        Raises:
            NotFoundError: If nothing exists at path.
        """
        return self._tree_object(repo, path, ref).object_hash

    def object_type(self, repo: Path, path: str, ref: str) -> ObjectType:
        """Type of the object at path.

        Raises:
            NotFoundError: If nothing exists at path.
        """
        return self._tree_object(repo, path, ref).type

    def file_exists(self, repo: Path, path: str, ref: str) -> bool:
        """Return True if a blob or tree exists at path for ref."""
        try:
            self._tree_object(repo, path, ref)
        except (NotFoundError, GitCommandError) as e:
            logger.warning("Cannot find '%s' at '%s' in %s: %s", path, ref, repo, e.message)
            return False
        return True

    def object_size(self, repo: Path, object_hash: str) -> int:
        """Size in bytes of an object."""
        return parse_count(self._runner.run(["cat-file", "-s", check_ref(object_hash)], cwd=Path(repo)))

    def read_object(self, repo: Path, object_hash: str) -> bytes:
        """Raw content of an object."""
        return self._runner.run_bytes(["cat-file", "-p", check_ref(object_hash)], cwd=Path(repo))

    def is_binary_object(self, repo: Path, object_hash: str) -> bool:
        """Return True if the blob content looks binary."""
        return looks_binary(self.read_object(repo, object_hash))

    def list_directory(self, repo: Path, ref: str, path: str = "") -> list[TreeEntry]:
        """List a directory at ref with the last commit touching each entry.

        Args:
            repo: Repository path.
            ref: Branch, tag or commit.
            path: Directory relative to the repository root ("" for the root).

        Returns:
            Entries in ls-tree order.

        Raises:
            NotFoundError: If the directory does not exist or is empty at ref.
        """
        clean = path.strip("/")
        args = ["ls-tree", "-z", check_ref(ref)]
        if clean:
            # trailing slash lists the directory's children rather than the directory itself
            args += ["--", f"{clean}/"]
        objects = parse_tree_listing(self._runner.run(args, cwd=Path(repo)))
        if not objects:
            raise NotFoundError(f"Directory '{path or '.'}' not found at '{ref}' in {repo}")
        commits = fan_out(
            lambda obj: self._history.get_file_last_commit(repo, ref, obj.path),
            objects,
            max_workers=self._max_workers,
        )
        return [
            TreeEntry(type=obj.type, path=obj.path, commit=commit)
            for obj, commit in zip(objects, commits)
        ]
