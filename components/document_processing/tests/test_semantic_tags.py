"""Tests for path-based semantic tagging."""

import pytest
from components.document_processing import classify_path


@pytest.mark.parametrize(
    "path, expected",
    [
        ("README.md", {"file_type": "docs", "is_readme": True}),
        ("docs/readme.txt", {"file_type": "docs", "is_readme": True}),
        ("package.json", {"file_type": "config", "is_package_json": True, "is_config": True}),
        (".env.example", {"file_type": "other", "is_env_example": True, "is_config": True}),
        ("src/index.ts", {"file_type": "code", "is_config": False}),
        (
            ".github/workflows/ci.yml",
            {"file_type": "config", "is_ci_config": True, "is_config": True},
        ),
        (".gitlab-ci.yml", {"is_ci_config": True, "is_config": True}),
        ("deploy/docker-compose.yaml", {"is_ci_config": True, "is_config": True}),
        ("src/foo.test.ts", {"file_type": "test"}),
        ("src/foo.spec.ts", {"file_type": "test"}),
        ("src/config/loader.ts", {"file_type": "config", "is_config": True}),
        ("tests/helpers.py", {"file_type": "test"}),
        ("Makefile", {"file_type": "other", "is_config": False}),
        ("SRC\\App.TSX", {"file_type": "code"}),
    ],
)
def test_classify_path(path, expected):
    tags = classify_path(path).model_dump()

    for key, value in expected.items():
        assert tags[key] == value, f"{path}: {key}"


def test_docs_take_precedence_over_test_paths():
    assert classify_path("test/README.md").file_type == "docs"


def test_plain_files_have_no_flags():
    tags = classify_path("src/index.ts")

    assert not any(
        [
            tags.is_config,
            tags.is_package_json,
            tags.is_readme,
            tags.is_env_example,
            tags.is_ci_config,
        ]
    )
