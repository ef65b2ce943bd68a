"""Retrieval queries tailored to the kind of document being generated."""

from typing import Dict, List, Literal, TypedDict

from shared.config import Config

Feature = Literal["readme", "api-docs", "diagram", "summary"]


class FeatureProfile(TypedDict):
    priority_files: List[str]
    priority_patterns: List[str]
    description: str


FEATURE_PROFILES: Dict[str, FeatureProfile] = {
    "api-docs": {
        "priority_files": [
            "API routes",
            "endpoints",
            "controllers",
            "handlers",
            "route definitions",
            "request/response types",
            "API schemas",
            "middleware",
            "authentication",
            "authorization",
        ],
        "priority_patterns": [
            "routes",
            "api",
            "controllers",
            "handlers",
            "endpoints",
            "middleware",
        ],
        "description": (
            "API documentation focusing on endpoints, routes, "
            "request/response schemas, and API contracts"
        ),
    },
    "readme": {
        "priority_files": [
            "main entry points",
            "configuration files",
            "package.json",
            "setup instructions",
            "installation guides",
            "project structure",
            "getting started",
            "main features",
            "architecture overview",
        ],
        "priority_patterns": [
            "README",
            "package.json",
            "config",
            "setup",
            "main",
            "index",
            "entry",
        ],
        "description": (
            "README documentation covering project overview, setup, "
            "installation, and main features"
        ),
    },
    "diagram": {
        "priority_files": [
            "architecture files",
            "component structure",
            "data flow",
            "system design",
            "module relationships",
            "dependency graphs",
            "service definitions",
            "database schemas",
        ],
        "priority_patterns": [
            "architecture",
            "components",
            "services",
            "modules",
            "schema",
            "models",
            "types",
        ],
        "description": (
            "Architecture diagrams showing system structure, component "
            "relationships, and data flow"
        ),
    },
    "summary": {
        "priority_files": [
            "all project files",
            "source code",
            "documentation",
            "configuration",
            "tests",
            "scripts",
        ],
        "priority_patterns": ["*"],
        "description": (
            "Comprehensive repository summary covering all aspects of the project"
        ),
    },
}

FEATURES = tuple(FEATURE_PROFILES)


def build_rag_query(feature: str, style: str = "") -> str:
    """Compose the natural-language retrieval query for ``feature``."""
    try:
        profile = FEATURE_PROFILES[feature]
    except KeyError:
        raise ValueError(
            f"Unknown feature: {feature}. Supported features: {', '.join(FEATURES)}"
        ) from None

    parts = [
        f"Retrieve files relevant for {profile['description']}.",
        f"Prioritize files related to: {', '.join(profile['priority_files'])}.",
        "Look for files matching these patterns: "
        f"{', '.join(profile['priority_patterns'])}.",
    ]
    if style.strip():
        parts.append(
            f'The documentation style should be: "{style}". Consider this when '
            "selecting files that match the desired tone and depth."
        )
    parts.append(
        "Exclude: test files, build artifacts, node_modules, .git, temporary "
        "files, and generated code unless directly relevant to the "
        f"{feature} generation."
    )
    parts.append(
        "Return a comprehensive set of files that together provide enough "
        f"context to generate accurate {feature}. Include both high-level "
        "overview files and detailed implementation files when relevant."
    )
    return " ".join(parts)


def top_k_for_feature(feature: str, config: Config) -> int:
    """README generation looks at more documents than the other features."""
    if feature == "readme":
        return config.retrieval.top_k_readme
    return config.retrieval.top_k_default
