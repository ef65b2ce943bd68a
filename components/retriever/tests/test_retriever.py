"""Tests for the namespace vector retriever."""

from typing import List
from unittest.mock import Mock

import pytest
from components.retriever import NamespaceVectorRetriever, create_retriever
from components.vector_store import NamespacedIndex, ResolvedNamespace
from llama_index.core.embeddings import MockEmbedding
from llama_index.core.retrievers import BaseRetriever
from llama_index.core.schema import NodeWithScore, QueryBundle, TextNode
from shared.config import Config, RetrievalConfig
from shared.models import RetrieverOptions, SyncContext, VectorMatch


class StaticIndex(NamespacedIndex):
    def __init__(self, matches: List[VectorMatch], namespace: str = "dxgen-u1-p1"):
        super().__init__(namespace)
        self.matches = matches
        self.queries: List[tuple] = []

    def upsert(self, records):
        raise AssertionError("retrieval must not write")

    def query(self, vector, top_k, filter=None):
        self.queries.append((vector, top_k, filter))
        return self.matches[:top_k]

    def delete_all(self):
        raise AssertionError("retrieval must not delete")


class StaticRetriever(BaseRetriever):
    def __init__(self, nodes: List[NodeWithScore]):
        self.nodes = nodes
        self.calls: List[str] = []
        super().__init__()

    def _retrieve(self, query_bundle: QueryBundle) -> List[NodeWithScore]:
        self.calls.append(query_bundle.query_str)
        return self.nodes


def _match(vector_id: str, score, text: str = "content", **metadata) -> VectorMatch:
    return VectorMatch(id=vector_id, score=score, metadata={"text": text, **metadata})


def _retriever(matches, **kwargs) -> NamespaceVectorRetriever:
    return NamespaceVectorRetriever(
        embed_model=MockEmbedding(embed_dim=3),
        index=StaticIndex(matches),
        top_k=kwargs.pop("top_k", 10),
        **kwargs,
    )


def test_score_threshold_keeps_unscored_matches():
    retriever = _retriever(
        [_match("a", 0.9), _match("b", 0.5), _match("c", None)], score_threshold=0.6
    )

    nodes = retriever.retrieve("query")

    assert [n.node.node_id for n in nodes] == ["a", "c"]


def test_match_maps_to_node_with_score_and_vector_id():
    retriever = _retriever([_match("a", 0.8, "hello", relativePath="src/a.ts")])

    [node] = retriever.retrieve("query")

    assert node.score == 0.8
    assert node.node.get_content() == "hello"
    assert node.node.metadata == {
        "relativePath": "src/a.ts",
        "score": 0.8,
        "vectorId": "a",
    }


def test_empty_text_is_dropped():
    retriever = _retriever([_match("a", 0.9, ""), _match("b", 0.8)])

    assert [n.node.node_id for n in retriever.retrieve("query")] == ["b"]


def test_excluded_path_prefixes_are_dropped():
    retriever = _retriever(
        [
            _match("a", 0.9, relativePath="docs/generated/x.md"),
            _match("b", 0.8, relativePath="src/index.ts"),
            _match("c", 0.7),
        ],
        exclude_relative_path_prefixes=["docs/generated/"],
    )

    assert [n.node.node_id for n in retriever.retrieve("query")] == ["b", "c"]


def test_fallback_used_when_nothing_survives():
    fallback_node = NodeWithScore(node=TextNode(id_="f", text="fallback"), score=1.0)
    fallback = StaticRetriever([fallback_node])
    retriever = _retriever([_match("a", 0.1)], score_threshold=0.5, fallback=fallback)

    nodes = retriever.retrieve("where is the entry point?")

    assert [n.node.node_id for n in nodes] == ["f"]
    assert fallback.calls == ["where is the entry point?"]


def test_fallback_not_consulted_when_results_exist():
    fallback = StaticRetriever([])
    retriever = _retriever([_match("a", 0.9)], fallback=fallback)

    assert len(retriever.retrieve("query")) == 1
    assert fallback.calls == []


def test_no_fallback_returns_empty():
    assert _retriever([]).retrieve("query") == []


def test_filter_and_top_k_forwarded_to_index():
    index = StaticIndex([_match("a", 0.9), _match("b", 0.8)])
    retriever = NamespaceVectorRetriever(
        embed_model=MockEmbedding(embed_dim=3),
        index=index,
        top_k=1,
        filters={"isReadme": {"$eq": True}},
    )

    nodes = retriever.retrieve("query")

    assert len(nodes) == 1
    vector, top_k, filter = index.queries[0]
    assert len(vector) == 3
    assert top_k == 1
    assert filter == {"isReadme": {"$eq": True}}


def test_index_errors_propagate():
    index = Mock(spec=NamespacedIndex)
    index.namespace = "dxgen-u1-p1"
    index.query.side_effect = RuntimeError("index unavailable")
    retriever = NamespaceVectorRetriever(
        embed_model=MockEmbedding(embed_dim=3), index=index, top_k=5
    )

    with pytest.raises(RuntimeError, match="index unavailable"):
        retriever.retrieve("query")


def test_top_k_must_be_positive():
    with pytest.raises(ValueError):
        _retriever([], top_k=0)


@pytest.mark.asyncio
async def test_async_retrieve_applies_same_filters():
    fallback = StaticRetriever([])
    retriever = _retriever(
        [_match("a", 0.9), _match("b", 0.2)], score_threshold=0.5, fallback=fallback
    )

    nodes = await retriever.aretrieve("query")

    assert [n.node.node_id for n in nodes] == ["a"]


@pytest.mark.asyncio
async def test_async_fallback_delegation():
    fallback_node = NodeWithScore(node=TextNode(id_="f", text="fallback"), score=None)
    fallback = StaticRetriever([fallback_node])
    retriever = _retriever([], fallback=fallback)

    nodes = await retriever.aretrieve("query")

    assert [n.node.node_id for n in nodes] == ["f"]


class TestCreateRetriever:
    def _store(self, index: StaticIndex) -> Mock:
        store = Mock()
        store.resolve_namespace.return_value = ResolvedNamespace(
            client=Mock(), namespace=index.namespace, index=index
        )
        return store

    def test_defaults_come_from_configuration(self):
        index = StaticIndex([_match(str(i), 0.9 - i / 100) for i in range(40)])
        config = Config(
            retrieval=RetrievalConfig(
                top_k_default=7,
                score_threshold=0.85,
                exclude_relative_path_prefixes=["vendor/"],
            )
        )

        retriever = create_retriever(
            MockEmbedding(embed_dim=3),
            self._store(index),
            SyncContext(user_id="u1", project_id="p1"),
            config=config,
        )
        nodes = retriever.retrieve("query")

        assert index.queries[0][1] == 7
        assert all(n.score >= 0.85 for n in nodes)

    def test_options_override_configuration(self):
        index = StaticIndex([_match("a", 0.9, relativePath="vendor/a.js")])
        store = self._store(index)
        context = SyncContext(user_id="u1", project_id="p1")

        retriever = create_retriever(
            MockEmbedding(embed_dim=3),
            store,
            context,
            RetrieverOptions(top_k=3, exclude_relative_path_prefixes=[]),
            Config(
                retrieval=RetrievalConfig(exclude_relative_path_prefixes=["vendor/"])
            ),
        )

        assert [n.node.node_id for n in retriever.retrieve("query")] == ["a"]
        assert index.queries[0][1] == 3
        store.resolve_namespace.assert_called_once_with(context)

    def test_default_top_k_is_25(self):
        index = StaticIndex([])
        retriever = create_retriever(
            MockEmbedding(embed_dim=3),
            self._store(index),
            SyncContext(user_id="u1", project_id="p1"),
        )

        retriever.retrieve("query")

        assert index.queries[0][1] == 25
