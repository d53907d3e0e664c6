"""Postman Collection v2.x normalizer.

Walks the collection's item tree (folders nest) and turns every leaf request
into an endpoint. Requests are not deduplicated: the same method and path in
two folders yields two endpoints.
"""

import json
import logging
import re
from urllib.parse import urlsplit

from pydantic import ValidationError

from api_codegen.naming import dedupe_operation_ids, derive_operation_id

from .base import (
    DEFAULT_MEDIA_TYPE,
    HTTP_METHODS,
    ApiDescription,
    ApiEndpoint,
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    Body,
    NoAuth,
    Normalizer,
    OAuth2Auth,
    Param,
    ParseError,
    Response,
    SchemaSketch,
    as_object,
    body_allowed,
    with_path_params,
)

logger = logging.getLogger(__name__)

BASE_URL_VARIABLES = ("baseUrl", "BASE_URL", "url")
SKIPPED_HEADERS = ("authorization", "content-type")

RAW_LANGUAGE_MEDIA_TYPES = {
    "json": "application/json",
    "xml": "application/xml",
    "text": "text/plain",
    "html": "text/html",
    "javascript": "application/javascript",
}

_TEMPLATE_VAR_RE = re.compile(r"^\{\{\s*([^}]+?)\s*\}\}$")


class PostmanNormalizer(Normalizer):
    format = "postman"

    def normalize(self, raw_text: str) -> ApiDescription:
        if not raw_text or not raw_text.strip():
            raise ParseError("Empty Postman collection")
        try:
            collection = json.loads(raw_text)
        except ValueError as e:
            raise ParseError(f"Postman collection is not valid JSON: {e}") from e
        if not isinstance(collection, dict):
            raise ParseError("Postman collection root must be an object")

        info = as_object(collection.get("info"), "info")
        endpoints: list[ApiEndpoint] = []
        items = collection.get("item") or []
        if not isinstance(items, list):
            raise ParseError("Postman collection 'item' must be an array")
        _parse_items(items, endpoints, [])

        return ApiDescription(
            base_url=_base_url(collection),
            auth_method=_auth_method(collection.get("auth")),
            title=info.get("name") or "Postman Collection",
            version=str(info.get("version") or "1.0.0"),
            description=_text(info.get("description")),
            endpoints=tuple(dedupe_operation_ids(endpoints)),
        )


def parse_postman(text: str) -> ApiDescription:
    """Parse a Postman collection into the canonical model."""
    return PostmanNormalizer().normalize(text)


def _parse_items(items: list, endpoints: list[ApiEndpoint], folders: list[str]) -> None:
    """Recursively parse items (supports folders)."""
    for item in items:
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("request"), (dict, str)):
            try:
                endpoint = _parse_request(item, folders)
            except (ValidationError, ParseError) as e:
                raise ParseError(f"Invalid request '{item.get('name', '')}': {e}") from e
            if endpoint is not None:
                endpoints.append(endpoint)
        elif isinstance(item.get("item"), list):
            _parse_items(item["item"], endpoints, folders + [item.get("name") or "unnamed"])


def _parse_request(item: dict, folders: list[str]) -> ApiEndpoint | None:
    req = item["request"]
    if isinstance(req, str):
        req = {"url": req}
    method = str(req.get("method") or "GET").upper()
    if method not in HTTP_METHODS:
        logger.debug("Skipping request %r with unsupported method %s", item.get("name"), method)
        return None
    url = req.get("url") or {}
    if isinstance(url, str):
        url = {"raw": url}
    url = as_object(url, "request url")

    path = _path(url)
    params = _parse_path_variables(url.get("variable") or [], path)
    params += _parse_query_params(url.get("query") or [])
    params += _parse_headers(req.get("header") or [])
    params = with_path_params(path, params)

    name = item.get("name") or ""
    auth = _request_auth(req.get("auth"))
    return ApiEndpoint(
        method=method,
        path=path,
        operation_id=derive_operation_id(method, name or path),
        summary=name,
        description=_text(item.get("description") or req.get("description")),
        parameters=tuple(params),
        request_body=_parse_body(req.get("body")) if body_allowed(method) else None,
        responses=_parse_responses(item.get("response") or []),
        security=(auth,) if auth else (),
        tags=("/".join(folders),) if folders else (),
    )


def _path(url: dict) -> str:
    segments = url.get("path")
    if isinstance(segments, str):
        segments = segments.split("/")
    if segments is None:
        raw = (url.get("raw") or "").split("?", 1)[0]
        raw = re.sub(r"^\{\{[^}]*\}\}", "", raw)
        if "://" in raw:
            raw = urlsplit(raw).path
        segments = raw.split("/")

    parts = []
    for segment in segments:
        if isinstance(segment, dict):
            segment = segment.get("value") or ""
        segment = str(segment).strip()
        if not segment:
            continue
        var = _TEMPLATE_VAR_RE.match(segment)
        if segment.startswith(":") and len(segment) > 1:
            segment = "{" + segment[1:] + "}"
        elif var:
            segment = "{" + var.group(1) + "}"
        parts.append(segment)
    return "/" + "/".join(parts)


def _parse_path_variables(variables: list, path: str) -> list[Param]:
    result = []
    for v in variables:
        if not isinstance(v, dict) or not v.get("key"):
            continue
        if "{" + v["key"] + "}" not in path:
            continue
        result.append(
            Param(
                name=v["key"],
                location="path",
                required=True,
                description=_text(v.get("description")),
                example=v.get("value"),
            )
        )
    return result


def _parse_query_params(query: list) -> list[Param]:
    return [
        Param(
            name=q["key"],
            location="query",
            required=q.get("disabled") is not True,
            description=_text(q.get("description")),
            example=q.get("value"),
        )
        for q in query
        if isinstance(q, dict) and q.get("key")
    ]


def _parse_headers(headers: list) -> list[Param]:
    return [
        Param(
            name=h["key"],
            location="header",
            required=False,
            description=_text(h.get("description")),
            example=h.get("value"),
        )
        for h in headers
        if isinstance(h, dict) and h.get("key") and h["key"].lower() not in SKIPPED_HEADERS
    ]


def _parse_body(body: dict | None) -> Body | None:
    body = as_object(body, "request body")
    if not body:
        return None
    mode = body.get("mode")
    if mode == "raw":
        options = as_object(as_object(body.get("options"), "body options").get("raw"), "raw body options")
        language = str(options.get("language") or "json").lower()
        raw = body.get("raw") or ""
        try:
            example = json.loads(raw)
        except ValueError:
            example = raw
        return Body(
            required=True,
            media_type=RAW_LANGUAGE_MEDIA_TYPES.get(language, DEFAULT_MEDIA_TYPE),
            schema_sketch=SchemaSketch(type="object", example=example),
        )
    if mode in ("urlencoded", "formdata"):
        fields = [f for f in body.get(mode) or [] if isinstance(f, dict) and f.get("key")]
        return Body(
            required=True,
            media_type="application/x-www-form-urlencoded" if mode == "urlencoded" else "multipart/form-data",
            schema_sketch=SchemaSketch(
                type="object",
                properties={f["key"]: {"type": "file" if f.get("type") == "file" else "string"} for f in fields},
                example={f["key"]: f.get("value") for f in fields},
            ),
        )
    return None


def _parse_responses(responses: list) -> dict[str, Response]:
    result = {}
    for index, resp in enumerate(responses):
        if not isinstance(resp, dict):
            continue
        content_type = next(
            (h.get("value") for h in resp.get("header") or [] if isinstance(h, dict) and str(h.get("key", "")).lower() == "content-type"),
            None,
        )
        result[str(resp.get("code") or "200")] = Response(
            description=resp.get("name") or f"Response {index + 1}",
            media_type=content_type or DEFAULT_MEDIA_TYPE,
            schema_sketch=SchemaSketch(type="object", example=resp.get("body")),
        )
    return result


def _base_url(collection: dict) -> str:
    for var in collection.get("variable") or []:
        if isinstance(var, dict) and var.get("key") in BASE_URL_VARIABLES and var.get("value"):
            return str(var["value"])
    return ""


def _auth_entries(auth: dict, kind: str) -> dict:
    entries = auth.get(kind) or []
    if isinstance(entries, dict):
        return entries
    return {e.get("key"): e.get("value") for e in entries if isinstance(e, dict)}


def _auth_method(auth: dict | None):
    if not isinstance(auth, dict):
        return NoAuth()
    kind = auth.get("type")
    if kind == "bearer":
        return BearerAuth(description="Bearer token authentication")
    if kind == "apikey":
        entries = _auth_entries(auth, "apikey")
        location = entries.get("in") if entries.get("in") in ("header", "query") else "header"
        return ApiKeyAuth(name=entries.get("key"), location=location, description="API Key authentication")
    if kind == "basic":
        return BasicAuth(description="Basic authentication")
    if kind == "oauth2":
        return OAuth2Auth(description="OAuth 2.0 authentication")
    return NoAuth()


def _request_auth(auth: dict | None) -> dict | None:
    if not isinstance(auth, dict) or auth.get("type") in (None, "noauth"):
        return None
    entry = {"type": auth["type"]}
    if auth["type"] == "apikey":
        entries = _auth_entries(auth, "apikey")
        entry["name"] = entries.get("key") or "X-API-Key"
    return entry


def _text(value) -> str:
    """Postman descriptions are either plain strings or ``{"content": ...}`` objects."""
    if isinstance(value, dict):
        return str(value.get("content") or "")
    return str(value or "")
