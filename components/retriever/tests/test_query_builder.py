"""Tests for feature-aware retrieval queries."""

import pytest
from components.retriever import FEATURES, build_rag_query, top_k_for_feature
from shared.config import Config, RetrievalConfig


def test_readme_query_names_priorities():
    query = build_rag_query("readme")

    assert query.startswith(
        "Retrieve files relevant for README documentation covering project overview"
    )
    assert "package.json" in query
    assert "Look for files matching these patterns: README, package.json" in query
    assert query.endswith("detailed implementation files when relevant.")
    assert "documentation style" not in query


def test_style_is_included_when_given():
    query = build_rag_query("api-docs", style="concise and technical")

    assert 'The documentation style should be: "concise and technical".' in query
    assert "relevant to the api-docs generation" in query


def test_blank_style_is_ignored():
    assert build_rag_query("diagram", "   ") == build_rag_query("diagram")


@pytest.mark.parametrize("feature", FEATURES)
def test_every_feature_builds_a_query(feature):
    assert f"generate accurate {feature}" in build_rag_query(feature)


def test_unknown_feature_raises():
    with pytest.raises(ValueError, match="Unknown feature"):
        build_rag_query("changelog")


def test_top_k_for_feature():
    config = Config()

    assert top_k_for_feature("readme", config) == 35
    assert top_k_for_feature("summary", config) == 25

    custom = Config(retrieval=RetrievalConfig(top_k_default=5, top_k_readme=9))
    assert top_k_for_feature("readme", custom) == 9
    assert top_k_for_feature("diagram", custom) == 5
