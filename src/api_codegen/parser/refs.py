"""Local ``$ref`` resolution for OpenAPI / Swagger documents.

Only in-document JSON pointers (``#/components/...``) are supported: the
normalizers do no I/O, so an external reference is reported as a parse
failure along with any pointer that does not resolve.
"""

import logging
from typing import Any

from .base import ParseError

logger = logging.getLogger(__name__)


def resolve_refs(doc: dict) -> dict:
    """Return a copy of ``doc`` with every local ``$ref`` replaced by its target.

    A reference that closes a cycle is left in place as ``{"$ref": ...}`` so
    that resolution terminates.
    """
    return _resolve(doc, doc, ())


def _resolve(node: Any, root: dict, stack: tuple[str, ...]) -> Any:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            if ref in stack:
                logger.debug("Circular $ref %s left unresolved", ref)
                return dict(node)
            target = lookup_pointer(root, ref)
            resolved = _resolve(target, root, stack + (ref,))
            siblings = {k: v for k, v in node.items() if k != "$ref"}
            if siblings and isinstance(resolved, dict):
                # OpenAPI 3.1 allows summary/description next to $ref
                return {**resolved, **_resolve(siblings, root, stack)}
            return resolved
        return {key: _resolve(value, root, stack) for key, value in node.items()}
    if isinstance(node, list):
        return [_resolve(item, root, stack) for item in node]
    return node


def lookup_pointer(root: dict, ref: str) -> Any:
    """Follow a ``#/a/b`` JSON pointer inside ``root``."""
    if not ref.startswith("#"):
        raise ParseError(f"External $ref '{ref}' is not supported; inline the referenced document")
    pointer = ref[1:]
    if pointer in ("", "/"):
        return root
    if not pointer.startswith("/"):
        raise ParseError(f"Unresolvable $ref '{ref}': pointer must start with '#/'")

    node: Any = root
    for raw_token in pointer[1:].split("/"):
        token = raw_token.replace("~1", "/").replace("~0", "~")
        if isinstance(node, dict) and token in node:
            node = node[token]
        elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
            node = node[int(token)]
        else:
            raise ParseError(f"Unresolvable $ref '{ref}': '{token}' not found")
    return node
