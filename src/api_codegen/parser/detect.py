"""Auto-detect API documentation format."""

import json
from enum import Enum

import yaml


class InputFormat(str, Enum):
    OPENAPI = "openapi"
    POSTMAN = "postman"
    HTML = "html"

    @classmethod
    def _missing_(cls, value):
        aliases = {
            "structured-openapi": cls.OPENAPI,
            "swagger": cls.OPENAPI,
            "structured-postman": cls.POSTMAN,
            "heuristic-html": cls.HTML,
        }
        if not isinstance(value, str):
            return None
        value = value.lower()
        return aliases.get(value) or next((m for m in cls if m.value == value), None)


def _classify(data) -> InputFormat | None:
    if not isinstance(data, dict):
        return None
    if "openapi" in data or "swagger" in data:
        return InputFormat.OPENAPI
    info = data.get("info")
    if isinstance(info, dict):
        if "_postman_id" in info or "postman" in str(info.get("schema", "")).lower():
            return InputFormat.POSTMAN
    return None


def detect_format(text: str) -> InputFormat:
    """Detect the format of API documentation text.

    Returns OPENAPI or POSTMAN for recognised structured documents and HTML
    for everything else.
    """
    # Try JSON first (Postman collections are always JSON)
    try:
        fmt = _classify(json.loads(text))
        if fmt:
            return fmt
    except ValueError:
        pass

    # Then YAML, for OpenAPI documents written in YAML
    try:
        fmt = _classify(yaml.safe_load(text))
        if fmt:
            return fmt
    except yaml.YAMLError:
        pass

    return InputFormat.HTML
