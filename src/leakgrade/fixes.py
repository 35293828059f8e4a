"""Quick fixes for env files: drop commented secrets, ignore .env in git."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

GITIGNORE_BLOCK = "# Environment variables\n.env\n.env.*\n!.env.example\n"


def is_env_file(path: Path | str) -> bool:
    """True for ``.env`` and ``.env.<anything>`` file names."""
    name = Path(path).name
    return name == ".env" or name.startswith(".env.")


def find_env_files(project_dir: Path) -> list[Path]:
    """Env files sitting directly in project_dir, sorted by name."""
    return sorted(
        (p for p in project_dir.iterdir() if p.is_file() and is_env_file(p)),
        key=lambda p: p.name,
    )


def remove_line(text: str, line: int) -> str:
    """Delete a 1-indexed line, including its line break.

    Only "\\n" ends a line, the same way the scanners number them.
    """
    parts = text.split("\n")
    lines = [p + "\n" for p in parts[:-1]] + ([parts[-1]] if parts[-1] else [])
    if not 1 <= line <= len(lines):
        raise ValueError(f"line {line} out of range (1-{len(lines)})")
    del lines[line - 1]
    return "".join(lines)


def ensure_gitignore(project_dir: Path) -> bool:
    """Make sure .env files are git-ignored. Returns True if .gitignore changed."""
    gitignore = project_dir / ".gitignore"
    if not gitignore.exists():
        gitignore.write_text(GITIGNORE_BLOCK, encoding="utf-8")
        logger.info("Created %s with .env entries", gitignore)
        return True

    text = gitignore.read_text(encoding="utf-8")
    if ".env" in text:
        return False
    head = text.rstrip() + "\n\n" if text.strip() else ""
    gitignore.write_text(head + GITIGNORE_BLOCK, encoding="utf-8")
    logger.info("Added .env entries to %s", gitignore)
    return True
