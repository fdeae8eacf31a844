from __future__ import annotations

import asyncio
import json
import os
import re
from collections import Counter
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .commands import CommandError, CommandNotFound, CommandRunner, SubprocessRunner
from .errors import InvalidProjectStructure
from .selector import FileSelector, StaticFileSelector
from .utils import normalize_newlines, warn


DEPENDENCY_DIRS = {"node_modules"}

BUILD_OUTPUT_DIRS = {"dist", "build"}

SOURCE_EXTENSIONS = {"js", "jsx", "ts", "tsx", "vue", "svelte", "py", "rb", "go", "rs"}

SIGNIFICANT_FILE_CANDIDATES: List[str] = [
    "package.json",
    "tsconfig.json",
    ".eslintrc.js",
    "vite.config.ts",
    "next.config.js",
    "README.md",
]

# Checked in order; the first lock file present decides.
LOCK_FILES: List[Tuple[str, str]] = [
    ("bun.lock", "bun"),
    ("bun.lockb", "bun"),
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
]
DEFAULT_PACKAGE_MANAGER = "npm"

BASELINE_IGNORE_PATTERNS = ["node_modules", ".git"]
FALLBACK_IGNORE_PATTERNS = ["node_modules", "dist", "build", ".git", "coverage", ".cache", ".temp", "tmp"]

TREE_DEPTH = 3
RECENT_COMMIT_COUNT = 10
MAJOR_CHANGE_THRESHOLD = 10
MAJOR_CHANGE_LIMIT = 5
MAIN_LANGUAGE_COUNT = 3

UNREADABLE_FILE_PLACEHOLDER = "[Unable to read file]"

# Shortstat summary line. git localizes its wording, so only the shape is matched.
_STAT_LINE_RE = re.compile(r"^\s+\d")
_NUMBER_RE = re.compile(r"\d+")


@dataclass(frozen=True)
class DocFile:
    path: str
    content: str


@dataclass(frozen=True)
class Documentation:
    readme: DocFile
    additional_docs: List[DocFile] = field(default_factory=list)


@dataclass(frozen=True)
class Dependencies:
    package_manager: str
    packages: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GitHistory:
    recent_commits: List[str] = field(default_factory=list)
    major_changes: List[str] = field(default_factory=list)
    contributors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ImportantFile:
    path: str
    content: str


@dataclass(frozen=True)
class Codebase:
    main_languages: List[str]
    file_structure: str
    significant_files: List[str]
    important_files: List[ImportantFile] = field(default_factory=list)


@dataclass(frozen=True)
class ProjectContext:
    documentation: Documentation
    dependencies: Dependencies
    git: GitHistory
    codebase: Codebase

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-ready view with the camelCase keys the slide prompts use.
        """
        return {
            "documentation": {
                "readme": asdict(self.documentation.readme),
                "additionalDocs": [asdict(d) for d in self.documentation.additional_docs],
            },
            "dependencies": {
                "packageManager": self.dependencies.package_manager,
                "packages": dict(self.dependencies.packages),
            },
            "git": {
                "recentCommits": list(self.git.recent_commits),
                "majorChanges": list(self.git.major_changes),
                "contributors": list(self.git.contributors),
            },
            "codebase": {
                "mainLanguages": list(self.codebase.main_languages),
                "fileStructure": self.codebase.file_structure,
                "significantFiles": list(self.codebase.significant_files),
                "importantFiles": [asdict(f) for f in self.codebase.important_files],
            },
        }


class ProjectAnalyzer:
    """
    Gather documentation, dependency, git-history and file-tree facts about
    a project and bundle them into a ProjectContext.

    The four scans run concurrently and are read-only. Any of them failing
    fails the whole analysis with InvalidProjectStructure. The optional
    important-files step runs afterwards and never fails the analysis.
    """

    def __init__(
        self,
        project_root: Path,
        *,
        runner: Optional[CommandRunner] = None,
        selector: Optional[FileSelector] = None,
    ) -> None:
        self.project_root = Path(project_root)
        self.runner: CommandRunner = runner or SubprocessRunner()
        self.selector: FileSelector = selector or StaticFileSelector()

    async def analyze(self) -> ProjectContext:
        documentation, dependencies, git, codebase = await asyncio.gather(
            self.analyze_documentation(),
            self.analyze_dependencies(),
            self.analyze_git(),
            self.analyze_codebase(),
        )
        context = ProjectContext(
            documentation=documentation,
            dependencies=dependencies,
            git=git,
            codebase=codebase,
        )
        important_files = await self.find_important_files(context)
        return replace(context, codebase=replace(codebase, important_files=important_files))

    async def analyze_documentation(self) -> Documentation:
        try:
            return await asyncio.to_thread(self._read_documentation)
        except OSError as e:
            raise InvalidProjectStructure(f"Failed to analyze documentation: {_describe(e)}", e) from e

    def _read_documentation(self) -> Documentation:
        readme = DocFile(path="README.md", content=self._read_doc("README.md"))
        additional_docs = [
            DocFile(path=rel, content=self._read_doc(rel))
            for rel in _walk_files(self.project_root, DEPENDENCY_DIRS)
            if rel != "README.md" and rel.endswith(".md")
        ]
        return Documentation(readme=readme, additional_docs=additional_docs)

    def _read_doc(self, rel_path: str) -> str:
        return (self.project_root / rel_path).read_text(encoding="utf-8", errors="replace")

    async def analyze_dependencies(self) -> Dependencies:
        try:
            raw = (self.project_root / "package.json").read_text(encoding="utf-8")
            manifest = json.loads(raw)
            if not isinstance(manifest, dict):
                raise ValueError("package.json must contain a JSON object")
        except (OSError, ValueError) as e:
            raise InvalidProjectStructure(f"Failed to analyze dependencies: {_describe(e)}", e) from e

        packages: Dict[str, str] = {}
        for key in ("dependencies", "devDependencies", "peerDependencies"):
            section = manifest.get(key) or {}
            if isinstance(section, dict):
                packages.update({str(name): str(version) for name, version in section.items()})

        return Dependencies(package_manager=self._detect_package_manager(), packages=packages)

    def _detect_package_manager(self) -> str:
        for lock_file, manager in LOCK_FILES:
            if (self.project_root / lock_file).exists():
                return manager
        return DEFAULT_PACKAGE_MANAGER

    async def analyze_git(self) -> GitHistory:
        try:
            try:
                await self._git("rev-parse", "--git-dir")
            except CommandError as e:
                raise InvalidProjectStructure("No git repository found in project root.", e) from e

            recent_output = await self._git("log", "--pretty=format:%h %s", "-n", str(RECENT_COMMIT_COUNT))
            stat_output = await self._git(
                "log", "--pretty=format:%h %s", "--shortstat", "-n", str(RECENT_COMMIT_COUNT)
            )
            authors_output = await self._git("log", "--format=%aN")
        except (CommandError, InvalidProjectStructure) as e:
            raise InvalidProjectStructure(f"Failed to analyze git history: {_describe(e)}", e) from e

        return GitHistory(
            recent_commits=[line.strip() for line in normalize_newlines(recent_output).split("\n") if line.strip()],
            major_changes=parse_major_changes(stat_output),
            contributors=rank_contributors(normalize_newlines(authors_output).split("\n")),
        )

    async def _git(self, *args: str) -> str:
        return await self.runner.run(["git", *args], cwd=self.project_root)

    async def analyze_codebase(self) -> Codebase:
        try:
            source_files = await asyncio.to_thread(self._find_source_files)
            significant_files = [f for f in SIGNIFICANT_FILE_CANDIDATES if (self.project_root / f).exists()]
            ignore_patterns = load_ignore_patterns(self.project_root)
            file_structure = await self._render_file_structure(ignore_patterns)
        except (OSError, CommandError) as e:
            raise InvalidProjectStructure(f"Failed to analyze codebase: {_describe(e)}", e) from e

        return Codebase(
            main_languages=top_extensions(source_files, MAIN_LANGUAGE_COUNT),
            file_structure=file_structure,
            significant_files=significant_files,
        )

    def _find_source_files(self) -> List[str]:
        return [
            rel
            for rel in _walk_files(self.project_root, DEPENDENCY_DIRS | BUILD_OUTPUT_DIRS)
            if _extension(rel) in SOURCE_EXTENSIONS
        ]

    async def _render_file_structure(self, ignore_patterns: Sequence[str]) -> str:
        try:
            return await self.runner.run(
                ["tree", "-L", str(TREE_DEPTH), "-I", tree_ignore_argument(ignore_patterns), "--dirsfirst"],
                cwd=self.project_root,
            )
        except CommandNotFound:
            return await asyncio.to_thread(render_tree, self.project_root, TREE_DEPTH, ignore_patterns)

    async def find_important_files(self, context: ProjectContext) -> List[ImportantFile]:
        """
        Ask the selector for the files worth reading and load them.

        Best effort: any failure is reported as a warning and yields [].
        """
        try:
            paths = await asyncio.to_thread(self.selector.select, context)
            return [ImportantFile(path=p, content=self._read_project_file(p)) for p in paths]
        except Exception as e:
            warn(f"Could not determine important files: {e}")
            return []

    def _read_project_file(self, rel_path: str) -> str:
        root = self.project_root.resolve()
        path = (root / rel_path).resolve()
        if root != path and root not in path.parents:
            return UNREADABLE_FILE_PLACEHOLDER
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return UNREADABLE_FILE_PLACEHOLDER


def parse_major_changes(
    shortstat_output: str,
    threshold: int = MAJOR_CHANGE_THRESHOLD,
    limit: int = MAJOR_CHANGE_LIMIT,
) -> List[str]:
    """
    Pick commits with a big diff out of `git log --shortstat` output.

    Every number on a commit's stat line is summed (files changed included);
    commits without a stat line never qualify. Log order is kept.
    """
    commits: List[List[Optional[str]]] = []
    for line in normalize_newlines(shortstat_output).split("\n"):
        if not line.strip():
            continue
        if _STAT_LINE_RE.match(line):
            if commits and commits[-1][1] is None:
                commits[-1][1] = line
            continue
        commits.append([line.strip(), None])

    major: List[str] = []
    for header, stat in commits:
        if stat is None:
            continue
        if sum(int(n) for n in _NUMBER_RE.findall(stat)) >= threshold:
            major.append(header)
    return major[:limit]


def rank_contributors(author_lines: Iterable[str]) -> List[str]:
    """
    Unique author names, most commits first; ties broken alphabetically.
    """
    counts = Counter(name.strip() for name in author_lines if name.strip())
    return [name for name, _ in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))]


def top_extensions(paths: Sequence[str], count: int) -> List[str]:
    counts: Dict[str, int] = {}
    for p in paths:
        ext = _extension(p)
        counts[ext] = counts.get(ext, 0) + 1
    # sorted() is stable, so ties keep enumeration order
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return [ext for ext, _ in ranked[:count]]


def load_ignore_patterns(project_root: Path) -> List[str]:
    """
    Turn .gitignore into plain name patterns for the tree listing.

    Falls back to a fixed set when there is no .gitignore or nothing usable
    in it.
    """
    gitignore = project_root / ".gitignore"
    try:
        lines = gitignore.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return list(FALLBACK_IGNORE_PATTERNS)

    patterns: List[str] = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        pattern = re.sub(r"[/*]+", "", line)
        if pattern:
            patterns.append(pattern)

    if not patterns:
        return list(FALLBACK_IGNORE_PATTERNS)
    return list(dict.fromkeys(patterns + BASELINE_IGNORE_PATTERNS))


def tree_ignore_argument(patterns: Sequence[str]) -> str:
    """
    Build the `tree -I` value. Dot-prefixed patterns such as `.log` came from
    suffix rules, so they are matched as suffixes too.
    """
    expanded = list(patterns) + [f"*{p}" for p in patterns if p.startswith(".")]
    return "|".join(dict.fromkeys(expanded))


def is_ignored(name: str, patterns: Sequence[str]) -> bool:
    for p in patterns:
        if name == p or (p.startswith(".") and name.endswith(p)):
            return True
    return False


def render_tree(root: Path, max_depth: int, ignore_patterns: Sequence[str]) -> str:
    """
    Render a `tree --dirsfirst -L <max_depth>` style listing.

    Used when the `tree` executable is not installed. Hidden entries are
    left out, as `tree` does without -a.
    """
    lines: List[str] = ["."]
    totals = {"dirs": 0, "files": 0}

    def walk(directory: Path, prefix: str, depth: int) -> None:
        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError:
            return
        entries = [c for c in children if not c.name.startswith(".") and not is_ignored(c.name, ignore_patterns)]
        entries.sort(key=lambda p: not p.is_dir())
        for idx, entry in enumerate(entries):
            last = idx == len(entries) - 1
            lines.append(f"{prefix}{'└── ' if last else '├── '}{entry.name}")
            if entry.is_dir():
                totals["dirs"] += 1
                if depth < max_depth:
                    walk(entry, prefix + ("    " if last else "│   "), depth + 1)
            else:
                totals["files"] += 1

    walk(root, "", 1)
    dirs, files = totals["dirs"], totals["files"]
    lines.append("")
    lines.append(
        f"{dirs} {'directory' if dirs == 1 else 'directories'}, {files} {'file' if files == 1 else 'files'}"
    )
    return "\n".join(lines) + "\n"


def _walk_files(root: Path, skip_dirs: Iterable[str]) -> List[str]:
    """
    Relative POSIX paths of every non-hidden file under root, in sorted walk
    order, pruning hidden directories and `skip_dirs`.
    """
    skip = set(skip_dirs)
    found: List[str] = []

    def fail(error: OSError) -> None:
        raise error

    for dirpath, dirnames, filenames in os.walk(root, onerror=fail):
        dirnames[:] = sorted(d for d in dirnames if d not in skip and not d.startswith("."))
        rel_dir = Path(dirpath).relative_to(root)
        for fn in sorted(filenames):
            if fn.startswith("."):
                continue
            found.append((rel_dir / fn).as_posix())
    return found


def _extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    return name.rsplit(".", 1)[-1] if "." in name else ""


def _describe(error: BaseException) -> str:
    if isinstance(error, OSError) and error.strerror:
        target = f": {error.filename}" if error.filename else ""
        return f"{error.strerror}{target}"
    return str(error)

