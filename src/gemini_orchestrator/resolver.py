"""Pattern resolution: aliases, globbing, ignore filtering and stable dedup.

Tokens are processed in order. A leading ``@`` marks a file inclusion and is
stripped. If the remaining name is a configured alias, it is replaced by the
alias's glob list (one level deep, values are never re-expanded); otherwise
the token is a literal glob. Matches are concatenated in token order and
deduplicated keeping the first occurrence, so the output order decides which
files fall off the end when the file limit is applied.
"""

import glob
import logging
import os
from collections.abc import Iterable, Iterator, Mapping, Sequence
from pathlib import Path

import pathspec

from gemini_orchestrator.models import Diagnostic, DiagnosticKind, ResolvedPatterns

logger = logging.getLogger(__name__)

INCLUDE_PREFIX = "@"


def normalize_path(path: str) -> str:
    """Normalize a matched path so equivalent spellings deduplicate."""
    return Path(os.path.normpath(path)).as_posix()


class PatternResolver:
    """Resolves pattern tokens into an ordered, deduplicated file list.

    Usage:
        resolver = PatternResolver(aliases=config.aliases, ignore=config.ignore)
        resolved = resolver.resolve(["@auth", "src/**/*.py"])
    """

    def __init__(
        self,
        aliases: Mapping[str, Sequence[str]] | None = None,
        ignore: Sequence[str] | None = None,
        base_dir: Path | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            aliases: Alias name -> ordered glob list
            ignore: Gitignore-style globs excluded from every match
            base_dir: Directory globs are evaluated against (defaults to cwd)
        """
        self.aliases: dict[str, list[str]] = {
            name: list(globs) for name, globs in (aliases or {}).items()
        }
        self.ignore = list(ignore or [])
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self._ignore_spec = pathspec.GitIgnoreSpec.from_lines(self.ignore)

    def expand_token(self, token: str) -> tuple[list[str], str | None]:
        """Expand one token into its literal globs.

        Args:
            token: Raw pattern token (``@name``, ``@glob`` or ``glob``)

        Returns:
            Tuple of (globs, alias name if the token was an alias)
        """
        name = token.strip()
        if name.startswith(INCLUDE_PREFIX):
            name = name[len(INCLUDE_PREFIX):]

        if name in self.aliases:
            return list(self.aliases[name]), name

        return [name], None

    def resolve(self, tokens: Iterable[str]) -> ResolvedPatterns:
        """Resolve tokens into deduplicated paths.

        Args:
            tokens: Pattern tokens in caller order

        Returns:
            ResolvedPatterns with paths in token order, then glob-match order
        """
        result = ResolvedPatterns()
        seen: set[str] = set()

        for token in tokens:
            if not token or not token.strip():
                continue

            globs, alias = self.expand_token(token)
            if alias is not None:
                message = f"Using alias '{alias}': {', '.join(globs)}"
                logger.info(message)
                result.diagnostics.append(
                    Diagnostic(DiagnosticKind.ALIAS_EXPANDED, message, pattern=token)
                )

            for pattern in globs:
                matches = self.match(pattern)
                if not matches:
                    message = f"No files found for pattern: {pattern}"
                    logger.warning(message)
                    result.diagnostics.append(
                        Diagnostic(DiagnosticKind.NO_MATCH, message, pattern=pattern)
                    )
                    continue

                logger.info("Found %d files for %s", len(matches), pattern)
                for path in matches:
                    if path not in seen:
                        seen.add(path)
                        result.paths.append(path)

        return result

    def match(self, pattern: str) -> list[str]:
        """Expand a single literal glob against the filesystem.

        Directories matched by the glob expand to every file beneath them.
        Ignored paths are dropped.

        Args:
            pattern: Literal glob (``**`` is recursive)

        Returns:
            Sorted list of matching file paths (relative to base_dir unless
            the pattern was absolute)
        """
        if not pattern:
            return []

        try:
            raw_matches = glob.glob(pattern, root_dir=self.base_dir, recursive=True)
        except (OSError, ValueError) as e:
            logger.warning("Error processing %s: %s", pattern, e)
            return []

        files: list[str] = []
        for raw in sorted(normalize_path(m) for m in raw_matches):
            if self.is_ignored(raw):
                continue
            full = self._absolute(raw)
            if full.is_dir():
                files.extend(self._walk_directory(raw))
            elif full.is_file():
                files.append(raw)

        # A directory glob and a file glob may overlap within one pattern
        return list(dict.fromkeys(files))

    def is_ignored(self, path: str, is_dir: bool = False) -> bool:
        """Check a path against the ignore list.

        Args:
            path: Path relative to base_dir (absolute paths are tested as-is
                without their leading slash)
            is_dir: Whether the path is a directory

        Returns:
            True if any ignore glob matches
        """
        if not self.ignore:
            return False

        candidate = self._relative(path)
        if is_dir and not candidate.endswith("/"):
            candidate += "/"
        return self._ignore_spec.match_file(candidate)

    def _walk_directory(self, directory: str) -> Iterator[str]:
        """Yield files under a directory in sorted order, pruning ignored dirs."""
        root = self._absolute(directory)
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            rel_dir = normalize_path(os.path.join(directory, current.relative_to(root)))

            dirnames[:] = sorted(
                d
                for d in dirnames
                if not self.is_ignored(f"{rel_dir}/{d}", is_dir=True)
            )

            for filename in sorted(filenames):
                rel_file = f"{rel_dir}/{filename}" if rel_dir != "." else filename
                if not self.is_ignored(rel_file):
                    yield rel_file

    def _absolute(self, path: str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.base_dir / p

    def _relative(self, path: str) -> str:
        p = Path(path)
        if not p.is_absolute():
            return p.as_posix()
        try:
            return p.relative_to(self.base_dir.resolve()).as_posix()
        except ValueError:
            return p.as_posix().lstrip("/")
