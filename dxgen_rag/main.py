# dxgen_rag/main.py

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from components.pipeline import RagPipeline
from components.retriever import FEATURES, build_rag_query, top_k_for_feature
from pydantic import ValidationError
from shared.config import ConfigurationError
from shared.initializer import create_arg_parser, initialize_from_args
from shared.models import (
    RagPipelineOptions,
    RetrieverOptions,
    SyncContext,
    SyncToggle,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = create_arg_parser()
    parser.description = (
        "Sync a project into the vector index and retrieve the chunks "
        "relevant to a query."
    )
    parser.add_argument(
        "--root", default=os.getcwd(), help="Project root to scan (default: cwd)."
    )
    parser.add_argument("--user", required=True, help="User id of the tenant.")
    parser.add_argument(
        "--project",
        help="Project id of the tenant (default: the resolved root path).",
    )
    query_group = parser.add_mutually_exclusive_group(required=True)
    query_group.add_argument("--query", help="Free-text retrieval query.")
    query_group.add_argument(
        "--feature",
        choices=FEATURES,
        help="Build the retrieval query for this kind of document.",
    )
    parser.add_argument(
        "--style", default="", help="Documentation style used with --feature."
    )
    parser.add_argument(
        "--sync",
        action="store_true",
        help="Scan, chunk and upsert the project before retrieving.",
    )
    parser.add_argument(
        "--full-reindex",
        action="store_true",
        help="Wipe the tenant namespace before syncing (implies --sync).",
    )
    parser.add_argument("--top-k", type=int, help="Number of documents to retrieve.")
    parser.add_argument("--branch", help="Branch name stored with each vector.")
    parser.add_argument("--commit-sha", help="Commit SHA stored with each vector.")
    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Runs one pipeline invocation and prints the result as JSON on stdout.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config, embed_model, vector_store = initialize_from_args(args)
    except (ConfigurationError, FileNotFoundError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.feature:
        query = build_rag_query(args.feature, args.style)
        top_k = args.top_k or top_k_for_feature(args.feature, config)
    else:
        query = args.query
        top_k = args.top_k

    root_dir = os.path.abspath(args.root)
    options = RagPipelineOptions(
        root_dir=root_dir,
        query=query,
        context=SyncContext(
            user_id=args.user,
            project_id=args.project or root_dir,
            branch=args.branch,
            commit_sha=args.commit_sha,
        ),
        sync=SyncToggle(
            enabled=args.sync or args.full_reindex, full_reindex=args.full_reindex
        ),
        retriever_options=RetrieverOptions(top_k=top_k),
    )

    result = await RagPipeline(embed_model, vector_store, config).run(options)
    print(json.dumps(result.model_dump(), indent=2))
    return 0


def run() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(level=getattr(logging, log_level.upper()), stream=sys.stderr)
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
