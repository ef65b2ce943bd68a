"""
Centralized application initializer.

This module parses the command-line arguments shared by every entry point,
loads the configuration, and builds the embedding model and vector store once
so they can be injected into the pipeline.
"""

import argparse
import logging
from typing import Tuple

from components.embedding_system import create_embedding_model
from components.vector_store import VectorStore, create_vector_store
from llama_index.core.embeddings import BaseEmbedding

from shared.config import Config, load_config

logger = logging.getLogger(__name__)


def create_arg_parser() -> argparse.ArgumentParser:
    """
    Creates and returns the command-line argument parser with the arguments
    that select and override configuration.

    Returns:
        An ArgumentParser instance with all common arguments defined.
    """
    parser = argparse.ArgumentParser(description="dxgen RAG pipeline.")
    parser.add_argument(
        "-c",
        "--config",
        help="Path to the config folder holding app.toml.",
    )
    parser.add_argument(
        "-a",
        "--app-config",
        help="Path to the app.toml file to use.",
    )
    parser.add_argument(
        "--vector-store",
        choices=["pinecone", "chroma"],
        help="Override the vector store provider.",
    )
    parser.add_argument(
        "--index",
        help="Override the name of the vector index.",
    )
    parser.add_argument(
        "--namespace",
        help="Use this namespace instead of the one derived from user and project.",
    )
    parser.add_argument(
        "--database-dir",
        help="Storage directory for the chroma vector store.",
    )
    return parser


def load_config_from_args(args: argparse.Namespace) -> Config:
    """Load configuration files and apply command-line overrides."""
    config = load_config(app_config_path=args.app_config, config_dir=args.config)

    if args.vector_store:
        logger.info(f"Overriding vector store provider with: {args.vector_store}")
        config.vector_store.provider = args.vector_store
    if args.index:
        logger.info(f"Overriding vector index with: {args.index}")
        config.vector_store.index = args.index
    if args.namespace:
        logger.info(f"Overriding namespace with: {args.namespace}")
        config.vector_store.namespace = args.namespace
    if args.database_dir:
        logger.info(f"Overriding database directory with: {args.database_dir}")
        config.vector_store.persist_directory = args.database_dir
    return config


def initialize_from_args(
    args: argparse.Namespace,
) -> Tuple[Config, BaseEmbedding, VectorStore]:
    """
    Loads configuration and initializes the pipeline dependencies based on
    command-line arguments.

    Missing credentials surface here as ConfigurationError, before any file
    is scanned or any vector written.

    Args:
        args: Parsed command-line arguments from an ArgumentParser.

    Returns:
        A tuple of the loaded Config, the embedding model and the vector store.
    """
    logger.info("Initializing pipeline dependencies...")
    config = load_config_from_args(args)

    logger.info(
        f"Initializing embedding model: "
        f"{config.embedding_model.provider}/{config.embedding_model.model_name}"
    )
    embed_model = create_embedding_model(config.embedding_model)

    logger.info(f"Initializing {config.vector_store.provider} vector store...")
    vector_store = create_vector_store(config.vector_store)

    logger.info("Pipeline dependencies initialized successfully.")
    return config, embed_model, vector_store
