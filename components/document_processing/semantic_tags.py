"""Path-based semantic classification of project files."""

import posixpath

from shared.models import FileType, SemanticTags

DOCS_EXTENSIONS = {".md", ".mdx"}
CONFIG_EXTENSIONS = {".json", ".yml", ".yaml"}
CODE_EXTENSIONS = {
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".py",
    ".go",
    ".java",
    ".rb",
    ".rs",
    ".php",
    ".cs",
    ".swift",
    ".kt",
    ".kts",
    ".scala",
}
COMPOSE_FILES = {"docker-compose.yml", "docker-compose.yaml"}


def _is_ci_config(path: str, basename: str) -> bool:
    return (
        path.startswith(".github/workflows/")
        or "/.github/workflows/" in path
        or basename.startswith(".gitlab-ci")
        or basename in COMPOSE_FILES
    )


def classify_path(relative_path: str) -> SemanticTags:
    """Derive the semantic tags of a file from its relative path.

    The rules look at the path only, never at the content, in this order:
    docs, config, test, code, other.
    """
    path = relative_path.replace("\\", "/").lower()
    basename = posixpath.basename(path)
    extension = posixpath.splitext(basename)[1]

    is_readme = basename.startswith("readme")
    is_package_json = basename == "package.json"
    is_env_example = basename == ".env.example"
    is_ci_config = _is_ci_config(path, basename)

    file_type: FileType
    if extension in DOCS_EXTENSIONS or is_readme:
        file_type = "docs"
    elif extension in CONFIG_EXTENSIONS or "config" in path:
        file_type = "config"
    elif "test" in path or ".spec." in path:
        file_type = "test"
    elif extension in CODE_EXTENSIONS:
        file_type = "code"
    else:
        file_type = "other"

    return SemanticTags(
        file_type=file_type,
        is_config=(
            file_type == "config" or is_package_json or is_env_example or is_ci_config
        ),
        is_package_json=is_package_json,
        is_readme=is_readme,
        is_env_example=is_env_example,
        is_ci_config=is_ci_config,
    )
