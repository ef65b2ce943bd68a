"""Tenant namespace derivation."""

import re

from shared.config import VectorStoreConfig
from shared.models import SyncContext

NAMESPACE_PREFIX = "dxgen"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def slugify(value: str) -> str:
    """Replace every character outside ``[a-z0-9-_]`` with ``-`` and lowercase."""
    return _UNSAFE_CHARS.sub("-", value).lower()


def build_namespace(config: VectorStoreConfig, context: SyncContext) -> str:
    """Return the namespace that scopes every read and write for a tenant.

    An explicit ``config.namespace`` wins; otherwise the namespace is
    ``dxgen-<slug(user_id-project_id)>``.
    """
    if config.namespace:
        return config.namespace
    return f"{NAMESPACE_PREFIX}-{slugify(f'{context.user_id}-{context.project_id}')}"
