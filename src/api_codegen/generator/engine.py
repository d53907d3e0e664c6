"""Generation engine: canonical model in, artifact map out.

``build_client_spec`` derives what a client contains from the canonical
model. The target's emitter then renders that through its templates, with
its renderer spelling names and values.
"""

import logging
from dataclasses import dataclass, field, replace

from api_codegen.naming import derive_operation_id, slugify
from api_codegen.parser.base import ApiDescription, ApiEndpoint, Param

from .defaults import CLIENT_DEFAULTS
from .renderer import Renderer
from .targets import TARGETS

logger = logging.getLogger(__name__)


class UnknownTargetError(ValueError):
    """Raised when asked to generate for a target no emitter exists for."""


@dataclass(frozen=True)
class ParamSpec:
    name: str
    ident: str
    location: str
    required: bool = False
    type: str = "string"
    description: str = ""
    example: str = ""


@dataclass(frozen=True)
class MethodSpec:
    name: str
    verb: str
    path: str
    summary: str
    path_params: tuple[ParamSpec, ...] = ()
    query_params: tuple[ParamSpec, ...] = ()
    body: ParamSpec | None = None
    body_encoding: str | None = None
    media_type: str | None = None
    responses: tuple[tuple[str, str], ...] = ()
    example_args: tuple[str, ...] = ()

    @property
    def params(self) -> tuple[ParamSpec, ...]:
        """Declared parameters: path, then query, then the body if any."""
        return self.path_params + self.query_params + ((self.body,) if self.body else ())


@dataclass(frozen=True)
class ClientSpec:
    title: str
    slug: str
    version: str
    description: str
    base_url: str
    auth_type: str
    auth_header_name: str
    methods: tuple[MethodSpec, ...] = field(default_factory=tuple)


def body_encoding(media_type: str) -> str:
    media_type = media_type.split(";", 1)[0].strip().lower()
    if media_type.endswith("/json") or media_type.endswith("+json"):
        return "json"
    if media_type == "application/x-www-form-urlencoded":
        return "form"
    return "raw"


def _example_value(param: Param) -> str:
    if param.example is not None and not isinstance(param.example, (dict, list)) and str(param.example) != "":
        return str(param.example)
    if param.enum:
        return str(param.enum[0])
    return "1"


def _build_method(endpoint: ApiEndpoint, name: str, renderer: Renderer) -> MethodSpec:
    taken: set[str] = set()

    def param_spec(name: str, location: str, **kwargs) -> ParamSpec:
        ident = base = renderer.param_name(name)
        suffix = 2
        while ident in taken:
            ident = f"{base}{suffix}"
            suffix += 1
        taken.add(ident)
        return ParamSpec(name=name, ident=ident, location=location, **kwargs)

    def from_param(p: Param) -> ParamSpec:
        return param_spec(
            p.name,
            p.location,
            required=p.location == "path" or p.required,
            type=p.type,
            description=p.description,
            example=_example_value(p),
        )

    path_params = tuple(from_param(p) for p in endpoint.params_in("path"))
    query_params = tuple(from_param(p) for p in endpoint.params_in("query"))
    body = encoding = media_type = None
    if endpoint.has_body:
        media_type = endpoint.request_body.media_type
        encoding = body_encoding(media_type)
        body = param_spec("body", "body", required=endpoint.request_body.required, type="object")

    method = MethodSpec(
        name=name,
        verb=endpoint.method,
        path=endpoint.path,
        summary=endpoint.summary or endpoint.description or f"{endpoint.method} {endpoint.path}",
        path_params=path_params,
        query_params=query_params,
        body=body,
        body_encoding=encoding,
        media_type=media_type,
        responses=tuple((status, resp.description) for status, resp in endpoint.responses.items()),
    )
    return replace(method, example_args=tuple(renderer.example_args(method)))


def build_client_spec(api: ApiDescription, renderer: Renderer) -> ClientSpec:
    """Derive the target-neutral client description for one target's naming rules."""
    methods = []
    taken: set[str] = set()
    for endpoint in api.endpoints:
        base = renderer.method_name(endpoint.operation_id) or renderer.method_name(
            derive_operation_id(endpoint.method, endpoint.path)
        )
        name, suffix = base, 2
        while renderer.method_key(name) in taken:
            name = f"{base}{suffix}"
            suffix += 1
        if name != base:
            logger.debug("Method name %s already used in %s client, using %s", base, renderer.target, name)
        taken.add(renderer.method_key(name))
        methods.append(_build_method(endpoint, name, renderer))

    auth = api.auth_method
    return ClientSpec(
        title=api.title or "API",
        slug=slugify(api.title),
        version=api.version,
        description=api.description,
        base_url=api.base_url,
        auth_type=auth.type,
        auth_header_name=auth.name if auth.type == "apiKey" else CLIENT_DEFAULTS.api_key_header,
        methods=tuple(methods),
    )


def generate(api: ApiDescription, target: str) -> dict[str, str]:
    """Render the complete client project for ``target``.

    Returns ``{relative path: file text}`` in a fixed per-target order. Pure:
    the same model and target always give the same map.
    """
    try:
        emitter = TARGETS[target]()
    except KeyError:
        raise UnknownTargetError(f"Unknown target {target!r}; supported: {', '.join(TARGETS)}") from None
    spec = build_client_spec(api, emitter.renderer)
    files = emitter.emit(spec)
    logger.info("Generated %d %s artifacts for %s", len(files), target, spec.title)
    return files
