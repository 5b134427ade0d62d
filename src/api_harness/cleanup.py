"""
Remove generated test artifacts.

Usage:
    api-harness-cleanup {reports,logs,build,cache,all} [--dry-run]

``reports`` and ``logs`` empty their directory but keep it (with a
``.gitkeep``); ``build`` and ``cache`` delete their targets outright.
"""

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

from api_harness.common.common import ConfigurationError
from api_harness.config import HarnessConfig
from api_harness.log import configure_logging, get_logger

logger = get_logger("Cleanup")


@dataclass(frozen=True)
class Target:
    directories: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    keep_structure: bool = True


TARGETS: dict[str, Target] = {
    "reports": Target(
        directories=("reports",),
        patterns=("cucumber-report.*", "health-check.json", "health-status.txt"),
    ),
    "logs": Target(directories=("logs",), patterns=("*.log",)),
    "build": Target(
        directories=("build", "dist", "*.egg-info"), keep_structure=False
    ),
    "cache": Target(
        directories=(".pytest_cache", "**/__pycache__"), keep_structure=False
    ),
}


@dataclass
class CleanupStats:
    directories_processed: int = 0
    files_deleted: int = 0
    bytes_freed: int = 0
    errors: list[str] = field(default_factory=list)


def format_bytes(size: int) -> str:
    if size == 0:
        return "0 B"
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.2f}".rstrip("0").rstrip(".") + f" {unit}"
        value /= 1024
    return f"{value:.2f}".rstrip("0").rstrip(".") + " GB"


class Cleaner:
    """Deletes files below ``root``, or only reports them when ``dry_run``."""

    def __init__(self, root: Path, dry_run: bool = False) -> None:
        self.root = root
        self.dry_run = dry_run
        self.stats = CleanupStats()

    def _relative(self, path: Path) -> Path:
        return path.relative_to(self.root) if path.is_relative_to(self.root) else path

    def delete_file(self, path: Path) -> None:
        try:
            size = path.stat().st_size
            if not self.dry_run:
                path.unlink()
        except OSError as err:
            message = f"Failed to delete file {path}: {err}"
            self.stats.errors.append(message)
            logger.error(f"  ❌ {message}")
            return
        self.stats.files_deleted += 1
        self.stats.bytes_freed += size
        logger.info(f"  🗑️ Deleted file: {self._relative(path)} ({format_bytes(size)})")

    def delete_tree(self, path: Path, keep_root: bool = False) -> None:
        for child in sorted(path.iterdir()):
            if child.is_dir() and not child.is_symlink():
                self.delete_tree(child)
            elif not (keep_root and child.name == ".gitkeep"):
                self.delete_file(child)
        if keep_root:
            return
        try:
            if not self.dry_run:
                path.rmdir()
        except OSError as err:
            message = f"Failed to delete directory {path}: {err}"
            self.stats.errors.append(message)
            logger.error(f"  ❌ {message}")
            return
        logger.info(f"  📂 Deleted directory: {self._relative(path)}")

    def clean_directory(self, path: Path, keep_structure: bool) -> None:
        if not path.is_dir():
            logger.info(f"⏭️ Directory doesn't exist: {self._relative(path)}")
            return
        logger.info(f"📁 Processing directory: {self._relative(path)}")
        self.stats.directories_processed += 1
        self.delete_tree(path, keep_root=keep_structure)

        if keep_structure:
            gitkeep = path / ".gitkeep"
            if not gitkeep.exists():
                if not self.dry_run:
                    gitkeep.touch()
                logger.info("  ✅ Created .gitkeep")

    def clean(self, target: Target) -> CleanupStats:
        for directory in target.directories:
            for path in sorted(self.root.glob(directory)):
                self.clean_directory(path, target.keep_structure)
        for pattern in target.patterns:
            logger.info(f"🔍 Looking for files matching: {pattern}")
            for path in sorted(self.root.glob(pattern)):
                if path.is_file():
                    self.delete_file(path)
        return self.stats


def run_cleanup(names: list[str], root: Path, dry_run: bool = False) -> CleanupStats:
    """
    Clean every named target below ``root``.

    :param names: Keys of :data:`TARGETS`.
    :raises KeyError: If a name is not a known target.
    """
    cleaner = Cleaner(root, dry_run)
    logger.info(f"🧹 Starting cleanup ({'DRY RUN' if dry_run else 'EXECUTE'})")
    for name in names:
        logger.info(f"🧹 Cleaning {name}...")
        cleaner.clean(TARGETS[name])
    return cleaner.stats


def display_summary(stats: CleanupStats, dry_run: bool) -> None:
    if dry_run:
        logger.warning("ℹ️ DRY RUN MODE - No files were actually deleted")
    logger.info(f"📁 Directories processed: {stats.directories_processed}")
    logger.info(f"🗑️ Files deleted: {stats.files_deleted}")
    logger.info(f"💾 Space freed: {format_bytes(stats.bytes_freed)}")
    if stats.errors:
        logger.error(f"❌ {len(stats.errors)} error(s) during cleanup")
    else:
        logger.info("✅ Cleanup completed successfully!")


def parse_args(args: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove generated test artifacts.")
    parser.add_argument(
        "target",
        choices=[*TARGETS, "all"],
        help="What to clean",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List what would be deleted without deleting anything",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Project directory to clean (default: current directory)",
    )
    return parser.parse_args(args)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        configure_logging(HarnessConfig.from_env())
    except ConfigurationError as err:
        logger.error(f"❌ {err}")
        return 2

    names = list(TARGETS) if args.target == "all" else [args.target]
    stats = run_cleanup(names, Path(args.root).resolve(), args.dry_run)
    display_summary(stats, args.dry_run)
    return 1 if stats.errors else 0


if __name__ == "__main__":
    sys.exit(main())
