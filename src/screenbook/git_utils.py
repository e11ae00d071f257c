from __future__ import annotations

import subprocess
from pathlib import Path

from screenbook.errors import ScreenbookError


class GitError(ScreenbookError):
    pass


def _run_git(repo: Path, args: list[str]) -> str:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=repo,
            check=False,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise GitError(f"cannot run git: {exc}") from exc
    if proc.returncode != 0:
        raise GitError(proc.stderr.strip() or proc.stdout.strip())
    return proc.stdout.strip()


def changed_files(repo: Path, base: str, head: str) -> list[str]:
    # three dots: changes on head since it forked from base, as a PR shows them
    out = _run_git(repo, ["diff", "--name-only", f"{base}...{head}"])
    return [line for line in out.splitlines() if line.strip()]
