"""Local working copy operations, driven through the git command line."""

from __future__ import annotations

import logging
import subprocess
from enum import Enum
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from cascade_merge.errors import GitError

logger = logging.getLogger(__name__)

REMOTE = "origin"


class MergeResult(str, Enum):
    MERGED = "merged"
    CONFLICT = "conflict"


def authenticated_url(url: str, username: str, password: str) -> str:
    """Embed HTTP credentials into an https clone URL."""
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not username:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    userinfo = quote(username, safe="")
    if password:
        userinfo += ":" + quote(password, safe="")
    return urlunsplit((parts.scheme, f"{userinfo}@{host}", parts.path, parts.query, parts.fragment))


class GitRepository:
    """A working copy kept at a fixed path and reused between events."""

    def __init__(
        self,
        path: Path | str,
        url: str,
        username: str = "",
        password: str = "",
        author_name: str = "Cascade Merge",
        author_email: str = "cascade-merge@localhost",
    ):
        self.path = Path(path)
        self.url = url
        self.author_name = author_name
        self.author_email = author_email
        self._remote_url = authenticated_url(url, username, password)
        self._secrets = [s for s in (password, quote(password, safe="")) if s]

    def _run(
        self,
        *args: str,
        cwd: Path | None = None,
        check: bool = True,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[str]:
        command = ["git", *args]
        try:
            result = subprocess.run(
                command,
                cwd=cwd or self.path,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise GitError(self._redact_all(list(args)), str(e)) from e
        if check and result.returncode != 0:
            raise GitError(self._redact_all(list(args)), self._redact(result.stderr), result.returncode)
        return result

    def _redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text

    def _redact_all(self, args: list[str]) -> list[str]:
        return [self._redact(a) for a in args]

    def sync(self, timeout: float | None = None) -> None:
        """Clone the repository, or fetch into the existing working copy."""
        if not (self.path / ".git").is_dir():
            logger.info(f"Cloning {self.url} into {self.path}")
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._run("clone", self._remote_url, str(self.path), cwd=self.path.parent, timeout=timeout)
        else:
            self._run("remote", "set-url", REMOTE, self._remote_url, timeout=timeout)
            self._run("fetch", "--prune", REMOTE, timeout=timeout)
        self._run("config", "user.name", self.author_name)
        self._run("config", "user.email", self.author_email)

    def list_branches(self) -> set[str]:
        """Names of the branches on the remote, as of the last sync."""
        result = self._run("for-each-ref", "--format=%(refname)", f"refs/remotes/{REMOTE}")
        prefix = f"refs/remotes/{REMOTE}/"
        branches = set()
        for line in result.stdout.splitlines():
            name = line.strip()
            if name.startswith(prefix) and name != prefix + "HEAD":
                branches.add(name[len(prefix) :])
        return branches

    def merge_branch(self, current: str, target: str, timeout: float | None = None) -> MergeResult:
        """Merge ``current`` into ``target`` and push ``target``.

        A conflicting merge is aborted and reported as CONFLICT; every other
        failure raises GitError.
        """
        self._run("checkout", "--force", "-B", target, f"{REMOTE}/{target}", timeout=timeout)
        merge = self._run(
            "merge",
            "--no-ff",
            "-m",
            f"Automatic cascade merge from {current} into {target}",
            f"{REMOTE}/{current}",
            check=False,
            timeout=timeout,
        )
        if merge.returncode != 0:
            if self._unmerged_paths():
                logger.info(f"Merge conflict from {current} into {target}")
                self._run("merge", "--abort", check=False)
                return MergeResult.CONFLICT
            raise GitError(["merge", f"{REMOTE}/{current}"], self._redact(merge.stderr), merge.returncode)

        self._run("push", REMOTE, f"{target}:{target}", timeout=timeout)
        logger.info(f"Merged {current} into {target}")
        return MergeResult.MERGED

    def _unmerged_paths(self) -> list[str]:
        result = self._run("diff", "--name-only", "--diff-filter=U", check=False)
        return [line for line in result.stdout.splitlines() if line.strip()]
