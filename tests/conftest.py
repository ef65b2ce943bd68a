"""Test fixtures and configuration."""

import logging
import sys
from pathlib import Path

import pytest
from components.vector_store import create_vector_store
from components.vector_store.chroma_store import ChromaVectorStore
from llama_index.core.embeddings import MockEmbedding
from shared.config import Config, IndexingConfig, VectorStoreConfig


# --- This function enables logging visibility during tests ---
def pytest_configure(config):
    """Configure logging to be visible for all tests."""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stdout,
    )


# -----------------------------------------------------------


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Create a small project with a manifest, a README and one source file."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)

    (root / "package.json").write_text(
        """{
  "name": "demo-service",
  "version": "1.0.0",
  "main": "dist/index.js",
  "scripts": {
    "build": "tsc",
    "start": "node dist/index.js",
    "test": "vitest run"
  },
  "dependencies": {
    "express": "^4.19.0"
  }
}
"""
    )
    (root / "README.md").write_text(
        """# Demo Service

A small HTTP service used to exercise the indexing pipeline.

## Getting Started

Install dependencies with `npm install`, then run `npm start`.
The server listens on port 3000 by default.

## Configuration

Set `PORT` to change the listening port.
"""
    )
    (root / "src" / "index.ts").write_text(
        """import express from "express";

const app = express();
const port = Number(process.env.PORT ?? 3000);

app.get("/health", (_req, res) => {
  res.json({ status: "ok" });
});

app.get("/users/:id", (req, res) => {
  res.json({ id: req.params.id });
});

app.listen(port, () => {
  console.log(`listening on ${port}`);
});
"""
    )
    (root / "node_modules" / "express").mkdir(parents=True)
    (root / "node_modules" / "express" / "index.js").write_text("module.exports = {};\n")
    return root


@pytest.fixture
def mock_embed_model() -> MockEmbedding:
    return MockEmbedding(embed_dim=8)


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Configuration pointing at a throwaway ChromaDB directory."""
    return Config(
        vector_store=VectorStoreConfig(
            provider="chroma", persist_directory=str(tmp_path / "chroma")
        ),
        indexing=IndexingConfig(chunk_size=500, chunk_overlap=50),
    )


@pytest.fixture
def chroma_store(test_config: Config) -> ChromaVectorStore:
    store = create_vector_store(test_config.vector_store)
    assert isinstance(store, ChromaVectorStore)
    return store
