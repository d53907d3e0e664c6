"""Canonical data model for parsed API documentation.

Every normalizer (OpenAPI/Swagger, Postman, HTML) converts its input into
these models, and every target emitter reads them. Instances are frozen once
built. Field names are snake_case in Python and camelCase on the wire.
"""

import re
from abc import ABC, abstractmethod
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from api_codegen.naming import is_identifier

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
BODYLESS_METHODS = ("GET", "DELETE")
DEFAULT_MEDIA_TYPE = "application/json"
DEFAULT_API_KEY_HEADER = "X-API-Key"

PLACEHOLDER_RE = re.compile(r"\{([^{}/]+)\}")


class ParseError(ValueError):
    """Raised when a structured document cannot be turned into the canonical model."""


class CanonicalModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class SchemaSketch(CanonicalModel):
    """Shallow view of a JSON schema: enough to document a payload, not to type it."""

    type: str | None = None
    properties: dict[str, Any] = {}
    required: tuple[str, ...] = ()
    example: Any = None


class Param(CanonicalModel):
    """A single path, query or header parameter."""

    name: str
    location: Literal["path", "query", "header"] = Field(alias="in")
    required: bool = False
    type: str = "string"
    description: str = ""
    example: Any = None
    format: str | None = None
    enum: tuple[Any, ...] | None = None


class Body(CanonicalModel):
    required: bool = False
    media_type: str = DEFAULT_MEDIA_TYPE
    schema_sketch: SchemaSketch = Field(default_factory=SchemaSketch, alias="schema")


class Response(CanonicalModel):
    description: str = ""
    media_type: str = DEFAULT_MEDIA_TYPE
    schema_sketch: SchemaSketch | None = Field(default=None, alias="schema")


# -- auth variants ------------------------------------------------------------


class _Auth(CanonicalModel):
    description: str | None = None


class NoAuth(_Auth):
    type: Literal["none"] = "none"


class BearerAuth(_Auth):
    type: Literal["bearer"] = "bearer"
    name: str = "Authorization"


class ApiKeyAuth(_Auth):
    type: Literal["apiKey"] = "apiKey"
    name: str = DEFAULT_API_KEY_HEADER
    location: Literal["header", "query"] = Field(default="header", alias="in")

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, v: Any) -> str:
        return v or DEFAULT_API_KEY_HEADER


class BasicAuth(_Auth):
    type: Literal["basic"] = "basic"
    name: str = "Authorization"


class OAuth2Auth(_Auth):
    type: Literal["oauth2"] = "oauth2"
    name: str = "Authorization"


AuthMethod = Annotated[
    Union[NoAuth, BearerAuth, ApiKeyAuth, BasicAuth, OAuth2Auth],
    Field(discriminator="type"),
]


# -- endpoints ----------------------------------------------------------------


class ApiEndpoint(CanonicalModel):
    """One HTTP operation with its parameters, payload and response metadata."""

    method: str
    path: str
    operation_id: str
    summary: str = ""
    description: str = ""
    parameters: tuple[Param, ...] = ()
    request_body: Body | None = None
    responses: dict[str, Response] = {}
    security: tuple[dict[str, Any], ...] = ()
    tags: tuple[str, ...] = ()

    @field_validator("method", mode="before")
    @classmethod
    def upper_method(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_invariants(self) -> "ApiEndpoint":
        if self.method not in HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method {self.method!r}")
        if not self.path.startswith("/"):
            raise ValueError(f"path must start with '/': {self.path!r}")
        if not is_identifier(self.operation_id):
            raise ValueError(f"operationId is not a valid identifier: {self.operation_id!r}")
        declared = {p.name for p in self.parameters if p.location == "path"}
        missing = [name for name in path_placeholders(self.path) if name not in declared]
        if missing:
            raise ValueError(f"path {self.path!r} has undeclared placeholders: {', '.join(missing)}")
        return self

    def params_in(self, location: str) -> list[Param]:
        return [p for p in self.parameters if p.location == location]

    @property
    def has_body(self) -> bool:
        return self.request_body is not None and self.method not in BODYLESS_METHODS


class ApiDescription(CanonicalModel):
    """Root of the canonical model, produced once per parse call."""

    base_url: str = ""
    auth_method: AuthMethod = Field(default_factory=NoAuth)
    title: str = "API"
    version: str = "1.0.0"
    description: str = ""
    endpoints: tuple[ApiEndpoint, ...] = ()


# -- helpers shared by normalizers --------------------------------------------


def path_placeholders(path: str) -> list[str]:
    """Names of ``{name}`` placeholders in a path template, in order, without repeats."""
    names: list[str] = []
    for name in PLACEHOLDER_RE.findall(path):
        if name not in names:
            names.append(name)
    return names


def with_path_params(path: str, params: list[Param]) -> list[Param]:
    """Append a required string path parameter for every placeholder the source left undeclared."""
    declared = {p.name for p in params if p.location == "path"}
    result = list(params)
    for name in path_placeholders(path):
        if name not in declared:
            result.append(Param(name=name, location="path", required=True))
            declared.add(name)
    return result


def body_allowed(method: str) -> bool:
    return method.upper() not in BODYLESS_METHODS


def as_object(value, field: str) -> dict:
    """Return a document field as a mapping. A missing field reads as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ParseError(f"'{field}' must be an object")
    return value


class Normalizer(ABC):
    """Converts one documentation dialect into the canonical model."""

    format: str

    @abstractmethod
    def normalize(self, raw_text: str) -> ApiDescription:
        """Parse raw text. Structured normalizers raise ParseError on bad input."""
