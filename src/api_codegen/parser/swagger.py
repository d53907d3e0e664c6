"""OpenAPI / Swagger document normalizer.

Parses OpenAPI 3.x and Swagger 2.0 documents (JSON or YAML) into the
canonical model by direct field mapping.
"""

import json
import logging
import re

import yaml
from pydantic import ValidationError

from api_codegen.naming import dedupe_operation_ids, derive_operation_id, sanitize_identifier

from .base import (
    DEFAULT_MEDIA_TYPE,
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
from .refs import resolve_refs

logger = logging.getLogger(__name__)

OPENAPI_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")
PARAM_LOCATIONS = ("path", "query", "header")


def load_document(text: str) -> dict:
    """Decode JSON, falling back to YAML. The result must be a mapping."""
    try:
        data = json.loads(text)
    except ValueError:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError(f"Document is neither valid JSON nor YAML: {e}") from e
    if not isinstance(data, dict):
        raise ParseError("Document root must be an object")
    return data


class OpenApiNormalizer(Normalizer):
    format = "openapi"

    def normalize(self, raw_text: str) -> ApiDescription:
        doc = load_document(raw_text)
        if "openapi" not in doc and "swagger" not in doc:
            raise ParseError("Not an OpenAPI document: missing 'openapi' or 'swagger' version field")
        doc = resolve_refs(doc)

        info = as_object(doc.get("info"), "info")
        return ApiDescription(
            base_url=_base_url(doc),
            auth_method=_auth_method(doc),
            title=info.get("title") or "API",
            version=str(info.get("version") or "1.0.0"),
            description=info.get("description") or "",
            endpoints=tuple(dedupe_operation_ids(_endpoints(doc))),
        )


def parse_openapi(text: str) -> ApiDescription:
    """Parse an OpenAPI/Swagger document into the canonical model."""
    return OpenApiNormalizer().normalize(text)


def _endpoints(doc: dict) -> list[ApiEndpoint]:
    endpoints = []
    paths = doc.get("paths") or {}
    if not isinstance(paths, dict):
        raise ParseError("'paths' must be an object")

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            raise ParseError(f"Path item '{path}' must be an object")
        shared_params = path_item.get("parameters") or []

        for method, operation in path_item.items():
            if method.lower() not in OPENAPI_METHODS:
                continue
            if not isinstance(operation, dict):
                raise ParseError(f"Operation '{method.upper()} {path}' must be an object")
            try:
                endpoints.append(_endpoint(doc, path, method.upper(), operation, shared_params))
            except (ValidationError, ParseError) as e:
                raise ParseError(f"Invalid operation '{method.upper()} {path}': {e}") from e

    return endpoints


def _endpoint(doc: dict, path: str, method: str, operation: dict, shared_params: list) -> ApiEndpoint:
    raw_params = _merge_parameters(shared_params, operation.get("parameters") or [])
    params = _parse_parameters(raw_params, path, method)
    params = with_path_params(path, params)

    request_body = None
    if body_allowed(method):
        if "requestBody" in operation:
            request_body = _parse_request_body(operation["requestBody"])
        else:
            request_body = _parse_swagger2_body(raw_params, operation.get("consumes") or doc.get("consumes") or [])

    operation_id = sanitize_identifier(operation.get("operationId") or "")
    if not operation_id:
        operation_id = derive_operation_id(method, path)

    produces = operation.get("produces") or doc.get("produces") or []
    return ApiEndpoint(
        method=method,
        path=path,
        operation_id=operation_id,
        summary=operation.get("summary") or "",
        description=operation.get("description") or "",
        parameters=tuple(params),
        request_body=request_body,
        responses=_parse_responses(operation.get("responses") or {}, produces),
        security=tuple(operation.get("security", doc.get("security")) or ()),
        tags=tuple(operation.get("tags") or ()),
    )


def _merge_parameters(shared: list, own: list) -> list[dict]:
    """Path-level parameters overlaid by operation-level ones, keyed on (name, in)."""
    merged: dict[tuple, dict] = {}
    for p in list(shared) + list(own):
        if not isinstance(p, dict) or "name" not in p:
            continue
        merged[(p["name"], p.get("in", "query"))] = p
    return list(merged.values())


def _parse_parameters(params: list[dict], path: str, method: str) -> list[Param]:
    result = []
    for p in params:
        location = p.get("in", "query")
        if location not in PARAM_LOCATIONS:
            if location not in ("body", "formData"):
                logger.debug("Skipping %s parameter %r on %s %s", location, p["name"], method, path)
            continue
        schema = as_object(p.get("schema"), f"parameter {p.get('name')!r} schema")
        example = p.get("example", schema.get("example"))
        enum = schema.get("enum", p.get("enum"))
        if not isinstance(enum, list):
            enum = None
        result.append(
            Param(
                name=p["name"],
                location=location,
                required=bool(p.get("required", location == "path")),
                type=_type_name(schema.get("type") or p.get("type")),
                description=p.get("description") or "",
                example=example,
                format=schema.get("format") or p.get("format"),
                enum=tuple(enum) if enum else None,
            )
        )
    return result


def _type_name(declared) -> str:
    """OpenAPI 3.1 allows a list of types, e.g. ``["string", "null"]``."""
    if isinstance(declared, list):
        declared = next((t for t in declared if t != "null"), None)
    return declared or "string"


def _sketch(schema: dict | None, example=None) -> SchemaSketch:
    schema = as_object(schema, "schema")
    return SchemaSketch(
        type=_type_name(schema["type"]) if schema.get("type") else None,
        properties=schema.get("properties") or {},
        required=tuple(schema.get("required") or ()),
        example=example if example is not None else schema.get("example"),
    )


def _parse_request_body(body: dict | None) -> Body | None:
    body = as_object(body, "requestBody")
    if not body:
        return None
    content = as_object(body.get("content"), "requestBody content")
    media_type = next(iter(content), DEFAULT_MEDIA_TYPE)
    media = as_object(content.get(media_type), f"requestBody media type {media_type}")
    return Body(
        required=bool(body.get("required", False)),
        media_type=media_type,
        schema_sketch=_sketch(media.get("schema"), media.get("example")),
    )


def _parse_swagger2_body(params: list[dict], consumes: list[str]) -> Body | None:
    """Swagger 2 declares payloads as ``in: body`` or ``in: formData`` parameters."""
    for p in params:
        if p.get("in") == "body":
            return Body(
                required=bool(p.get("required", False)),
                media_type=consumes[0] if consumes else DEFAULT_MEDIA_TYPE,
                schema_sketch=_sketch(p.get("schema")),
            )

    form_fields = [p for p in params if p.get("in") == "formData"]
    if not form_fields:
        return None
    has_file = any(p.get("type") == "file" for p in form_fields)
    return Body(
        required=any(p.get("required", False) for p in form_fields),
        media_type="multipart/form-data" if has_file else "application/x-www-form-urlencoded",
        schema_sketch=SchemaSketch(
            type="object",
            properties={p["name"]: {"type": p.get("type", "string")} for p in form_fields},
            required=tuple(p["name"] for p in form_fields if p.get("required")),
        ),
    )


def _parse_responses(responses: dict, produces: list[str]) -> dict[str, Response]:
    result = {}
    for status_code, resp in as_object(responses, "responses").items():
        resp = as_object(resp, f"response {status_code}")
        if "content" in resp:
            content = as_object(resp.get("content"), f"response {status_code} content")
            media_type = next(iter(content), DEFAULT_MEDIA_TYPE)
            media = as_object(content.get(media_type), f"response {status_code} media type {media_type}")
            schema, example = media.get("schema"), media.get("example")
        else:
            media_type = produces[0] if produces else DEFAULT_MEDIA_TYPE
            schema, example = resp.get("schema"), None
        result[str(status_code)] = Response(
            description=resp.get("description") or "",
            media_type=media_type,
            schema_sketch=_sketch(schema, example) if schema else None,
        )
    return result


def _base_url(doc: dict) -> str:
    servers = doc.get("servers") or []
    if servers and isinstance(servers[0], dict) and servers[0].get("url"):
        server = servers[0]
        variables = as_object(server.get("variables"), "server variables")
        return re.sub(
            r"\{(\w+)\}",
            lambda m: str((variables.get(m.group(1)) or {}).get("default", m.group(0))),
            server["url"],
        )

    host = doc.get("host")
    if host:
        schemes = doc.get("schemes") or ["https"]
        return f"{schemes[0]}://{host}{doc.get('basePath', '')}".rstrip("/")
    return ""


def _auth_method(doc: dict):
    components = as_object(doc.get("components"), "components")
    schemes = components.get("securitySchemes") or doc.get("securityDefinitions")
    schemes = as_object(schemes, "securitySchemes")
    schemes = [s for s in schemes.values() if isinstance(s, dict)]

    def first(predicate):
        return next((s for s in schemes if predicate(s)), None)

    scheme = first(lambda s: s.get("type") == "http" and str(s.get("scheme", "")).lower() == "bearer")
    if scheme:
        return BearerAuth(description=scheme.get("description"))

    scheme = first(lambda s: s.get("type") == "basic" or (s.get("type") == "http" and str(s.get("scheme", "")).lower() == "basic"))
    if scheme:
        return BasicAuth(description=scheme.get("description"))

    scheme = first(lambda s: s.get("type") == "apiKey")
    if scheme:
        location = scheme.get("in") if scheme.get("in") in ("header", "query") else "header"
        return ApiKeyAuth(name=scheme.get("name"), location=location, description=scheme.get("description"))

    scheme = first(lambda s: s.get("type") == "oauth2")
    if scheme:
        return OAuth2Auth(description=scheme.get("description"))

    return NoAuth()
