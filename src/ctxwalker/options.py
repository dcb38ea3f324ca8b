from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

# --- Configuration Constants ---
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_EXCLUDE_PATTERNS = (
    "*.tmp",
    "*.log",
    "*.swp",
    ".*",
    "node_modules/",
    "target/",
    "dist/",
    "build/",
    ".env",
    ".git/",
    ".vscode/",
    ".idea/",
    "__pycache__/",
    "*.pyc",
    ".venv/",
    "*.class",
)


# --- Base Lists for Presets ---
# Shared between several enum members; each member still gets a distinct tuple
# so Enum does not collapse them into aliases.
_PYTHON_BASE = ("*.py", "*.pyw", "*.pyi", "requirements*.txt", "Pipfile", "pyproject.toml", "setup.py", "setup.cfg")
_JAVASCRIPT_BASE = ("*.js", "*.jsx", "*.ts", "*.tsx", "*.mjs", "*.cjs", "package.json", "tsconfig.json")
_JAVA_BASE = ("*.java", "pom.xml", "*.properties")
_C_CPP_BASE = ("*.c", "*.cpp", "*.h", "*.hpp", "*.cxx", "*.hxx", "Makefile", "CMakeLists.txt")
_RUST_BASE = ("*.rs", "Cargo.toml")

_IDE_VSCODE = (".vscode/",)
_IDE_JETBRAINS = (".idea/",)
_IDE_VIM = ("*.swp", "*.swo")
_IDE_XCODE = ("*.xcodeproj/", "*.xcworkspace/", "xcuserdata/")


# --- Enums ---
class LanguagePreset(Enum):
    """Include patterns for common languages and their key project files."""

    PYTHON = _PYTHON_BASE
    JAVASCRIPT = _JAVASCRIPT_BASE
    WEB_FRONTEND = ("*.html", "*.htm", "*.css", "*.scss", "*.sass", "*.less")
    VUE = _JAVASCRIPT_BASE + ("*.vue",)
    SVELTE = _JAVASCRIPT_BASE + ("*.svelte",)
    JAVA = _JAVA_BASE
    KOTLIN = ("*.kt", "*.kts", "*.gradle")
    C_CPP = _C_CPP_BASE
    C_SHARP = ("*.cs", "*.csproj", "*.sln")
    GO = ("*.go", "go.mod", "go.sum")
    RUST = _RUST_BASE
    RUBY = ("*.rb", "Gemfile", "Rakefile", "*.gemspec")
    PHP = ("*.php", "composer.json")
    SWIFT = ("*.swift", "Package.swift")
    SCALA = ("*.scala", "*.sbt")
    SHELL = ("*.sh", "*.bash", "*.zsh")
    POWERSHELL = ("*.ps1", "*.psm1")
    SQL = ("*.sql",)
    DOCKER = ("Dockerfile", ".dockerignore", "docker-compose.yml")
    TERRAFORM = ("*.tf", "*.tfvars")
    MARKUP = ("*.md", "*.markdown", "*.rst", "*.adoc", "*.txt")
    CONFIGURATION = ("*.json", "*.xml", "*.yml", "*.yaml", "*.ini", "*.toml", "*.conf", "*.cfg")


class IgnorePreset(Enum):
    """Exclude patterns for common directories, files, and artifacts."""

    VERSION_CONTROL = (".git/", ".svn/", ".hg/", ".bzr/")
    OS_FILES = (".DS_Store", "Thumbs.db", "desktop.ini", "ehthumbs.db")
    BUILD_ARTIFACTS = ("dist/", "build/", "target/", "out/", "bin/", "obj/")
    LOGS = ("*.log", "logs/", "npm-debug.log*", "yarn-error.log*")
    TEMP_FILES = ("tmp/", "temp/", "*.tmp", "*~", "*.bak")
    SECRET_FILES = (".env", ".env.*", "*.pem", "*.key", "*.p12", "*.pfx", "credentials.json")
    COMPRESSED_ARCHIVES = ("*.zip", "*.tar", "*.gz", "*.rar", "*.7z", "*.tgz")
    IDE_METADATA_VSCODE = _IDE_VSCODE
    IDE_METADATA_JETBRAINS = _IDE_JETBRAINS
    IDE_METADATA_VIM = _IDE_VIM
    IDE_METADATA_XCODE = _IDE_XCODE
    IDE_METADATA = _IDE_VSCODE + _IDE_JETBRAINS + _IDE_VIM + _IDE_XCODE
    NODE_JS = ("node_modules/", "package-lock.json", "yarn.lock", "pnpm-lock.yaml", ".npm/")
    PYTHON = (
        "__pycache__/",
        "venv/",
        ".venv/",
        ".pytest_cache/",
        ".tox/",
        ".mypy_cache/",
        "htmlcov/",
        "*.pyc",
        ".coverage",
    )
    RUST = ("target/", "Cargo.lock")
    GO = ("vendor/", "go.sum")
    JAVA_GRADLE = (".gradle/", "build/")
    TERRAFORM = (".terraform/", "*.tfstate", "*.tfstate.backup")
    JUPYTER_NOTEBOOKS = (".ipynb_checkpoints/",)


def _merge_patterns(*groups: Iterable[str]) -> Tuple[str, ...]:
    """Concatenates pattern groups, dropping blanks and repeats but keeping order."""
    seen, merged = set(), []
    for group in groups:
        if isinstance(group, str):
            group = (group,)
        for pattern in group:
            pattern = pattern.strip()
            if pattern and pattern not in seen:
                seen.add(pattern)
                merged.append(pattern)
    return tuple(merged)


@dataclass(frozen=True)
class TraversalOptions:
    """
    Immutable settings for a single walk.

    ``max_depth`` and ``max_file_size`` use 0 to mean "unlimited". ``max_workers``
    sizes the per-file worker pool; ``None`` uses the thread pool default of
    CPU count + 4.
    """

    max_depth: int = 0
    max_file_size: int = 0
    include_patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    follow_symlinks: bool = False
    show_hidden: bool = False
    exclude_binary: bool = False
    max_workers: Optional[int] = None

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_file_size < 0:
            raise ValueError(f"max_file_size must be >= 0, got {self.max_file_size}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        # Lists passed by callers are frozen so the options stay hashable and read-only.
        # A bare string is one pattern, not a sequence of one-character patterns.
        for name in ("include_patterns", "exclude_patterns"):
            value = getattr(self, name)
            object.__setattr__(self, name, (value,) if isinstance(value, str) else tuple(value))

    @classmethod
    def normalize_inputs(
        cls,
        include_patterns: Optional[List[str]] = None,
        exclude_patterns: Optional[List[str]] = None,
        language_presets: Optional[List[LanguagePreset]] = None,
        ignore_presets: Optional[List[IgnorePreset]] = None,
        use_default_excludes: bool = False,
        **kwargs,
    ) -> "TraversalOptions":
        """
        Consolidates explicit patterns and presets into a single options object.

        Args:
            include_patterns (list, optional): Glob patterns a file must match.
            exclude_patterns (list, optional): Glob patterns that reject a file.
            language_presets (list, optional): LanguagePreset members added to the
                include patterns.
            ignore_presets (list, optional): IgnorePreset members added to the
                exclude patterns.
            use_default_excludes (bool): If True, DEFAULT_EXCLUDE_PATTERNS are
                appended to the exclude patterns.
            **kwargs: Any other TraversalOptions field.

        Returns:
            TraversalOptions: The combined, de-duplicated options.
        """
        includes = _merge_patterns(
            include_patterns or [], *(p.value for p in language_presets or [])
        )
        excludes = _merge_patterns(
            exclude_patterns or [],
            *(p.value for p in ignore_presets or []),
            DEFAULT_EXCLUDE_PATTERNS if use_default_excludes else (),
        )
        return cls(include_patterns=includes, exclude_patterns=excludes, **kwargs)
