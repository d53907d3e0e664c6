"""Identifier helpers shared by the normalizers and the target renderers."""

import logging
import re

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[A-Za-z0-9]+")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def split_words(text: str) -> list[str]:
    """Split free text or an identifier into alphanumeric words.

    camelCase and PascalCase boundaries count as word breaks, so
    ``listPets``, ``list-pets`` and ``List pets`` all give ``["list", "pets"]``
    (case preserved).
    """
    words = []
    for chunk in _WORD_RE.findall(text):
        words.extend(w for w in _CAMEL_BOUNDARY_RE.split(chunk) if w)
    return words


def to_camel(text: str) -> str:
    words = split_words(text)
    if not words:
        return ""
    head, *tail = words
    head = head.lower() if head.isupper() else head[0].lower() + head[1:]
    return head + "".join(w[0].upper() + w[1:] for w in tail)


def to_pascal(text: str) -> str:
    camel = to_camel(text)
    return camel[:1].upper() + camel[1:]


def to_snake(text: str) -> str:
    return "_".join(w.lower() for w in split_words(text))


def sanitize_identifier(raw: str) -> str:
    """Turn a declared operationId into a bare identifier valid in every target.

    Non-alphanumeric characters are stripped and the pieces joined in
    camelCase. Returns an empty string when nothing usable is left.
    """
    ident = to_camel(raw)
    if ident and ident[0].isdigit():
        ident = "op" + ident[0].upper() + ident[1:]
    return ident


def derive_operation_id(method: str, text: str) -> str:
    """Build ``<verb><Words>`` from a verb and a path or request name.

    >>> derive_operation_id("GET", "/pets/{id}")
    'getPetsId'
    """
    rest = to_pascal(text)
    return method.lower() + rest


def slugify(title: str, default: str = "api") -> str:
    slug = "-".join(w.lower() for w in _WORD_RE.findall(title))
    return slug or default


def is_identifier(name: str) -> bool:
    return bool(IDENTIFIER_RE.match(name))


def dedupe_operation_ids(endpoints: list) -> list:
    """Give colliding operation ids a numeric suffix, first occurrence keeps the bare id.

    Endpoints are frozen models, so renamed ones are copies. Order is kept.
    """
    taken = {ep.operation_id for ep in endpoints}
    seen: set[str] = set()
    result = []
    for ep in endpoints:
        op_id = ep.operation_id
        if op_id in seen:
            suffix = 2
            while f"{op_id}{suffix}" in taken:
                suffix += 1
            new_id = f"{op_id}{suffix}"
            logger.debug("Renaming duplicate operationId %s -> %s (%s %s)", op_id, new_id, ep.method, ep.path)
            taken.add(new_id)
            ep = ep.model_copy(update={"operation_id": new_id})
            op_id = new_id
        seen.add(op_id)
        result.append(ep)
    return result
