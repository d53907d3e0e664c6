"""HTML API documentation normalizer.

Best-effort extraction from free-form markup: base URL, auth scheme and
endpoints are inferred from text patterns and element context. The result
is lossy by nature and should never be preferred over a structured source.
Malformed or empty input yields an empty model, never an exception.
"""

import logging
import re
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, NavigableString, Tag
from pydantic import ValidationError

from api_codegen.naming import dedupe_operation_ids, derive_operation_id

from .base import (
    DEFAULT_API_KEY_HEADER,
    HTTP_METHODS,
    ApiDescription,
    ApiEndpoint,
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    NoAuth,
    Normalizer,
    OAuth2Auth,
    Param,
    with_path_params,
)

logger = logging.getLogger(__name__)

BASE_URL_PHRASES = ("base url", "api base", "endpoint base", "server url", "host url")
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
CLASS_HINTS = ("endpoint", "api", "route")

_METHODS = "|".join(HTTP_METHODS)
_PATH_TOKEN = r"(/\S*|https?://\S+)"
ENDPOINT_PATTERNS = (
    re.compile(rf"\b({_METHODS})\s+{_PATH_TOKEN}", re.IGNORECASE),
    re.compile(rf"{_PATH_TOKEN}\s+({_METHODS})\b", re.IGNORECASE),
    re.compile(rf"\b({_METHODS})\s*:\s*{_PATH_TOKEN}", re.IGNORECASE),
)
URL_RE = re.compile(r"https?://[^\s<>\"'`]+", re.IGNORECASE)
METHOD_PREFIX_RE = re.compile(rf"^({_METHODS})\b", re.IGNORECASE)

# Checked in order; the first keyword group found in the text picks the verb.
METHOD_KEYWORDS = (
    ("GET", ("get", "retrieve", "fetch")),
    ("POST", ("post", "create", "add")),
    ("PUT", ("put", "update", "modify")),
    ("DELETE", ("delete", "remove")),
    ("PATCH", ("patch",)),
)

PATH_PARAM_RE = re.compile(r"\{(\w+)\}")
QUERY_PARAM_RE = re.compile(r"[?&](\w+)=")
KEY_VALUE_RE = re.compile(r"(\w+):\s*([^\s,]+)")
NOT_PARAM_KEYS = {m.lower() for m in HTTP_METHODS} | {"http", "https"}


class HtmlNormalizer(Normalizer):
    format = "html"

    def normalize(self, raw_text: str) -> ApiDescription:
        soup = BeautifulSoup(raw_text or "", "html.parser")
        return ApiDescription(
            base_url=extract_base_url(soup),
            auth_method=extract_auth_method(soup),
            title=_title(soup) or "HTML API Documentation",
            version="1.0.0",
            description=_description(soup),
            endpoints=tuple(dedupe_operation_ids(extract_endpoints(soup))),
        )


def parse_html(text: str) -> ApiDescription:
    """Parse HTML documentation into a best-effort canonical model."""
    return HtmlNormalizer().normalize(text)


# -- base url / auth ----------------------------------------------------------


def extract_base_url(soup: BeautifulSoup) -> str:
    for phrase in BASE_URL_PHRASES:
        pattern = re.compile(re.escape(phrase) + r".*?(https?://[^\s<>\"'`]+)", re.IGNORECASE | re.DOTALL)
        for node in soup.find_all(string=True):
            if phrase not in node.lower():
                continue
            candidates = [str(node)]
            if node.parent is not None:
                candidates.append(node.parent.get_text(" "))
            for text in candidates:
                match = pattern.search(text)
                if match:
                    return match.group(1).rstrip(".,;:)")

    for block in soup.find_all(["code", "pre"]):
        match = URL_RE.search(block.get_text())
        if match:
            parts = urlsplit(match.group(0))
            if parts.netloc:
                return f"{parts.scheme}://{parts.netloc}"
    return ""


def extract_auth_method(soup: BeautifulSoup):
    text = soup.get_text(" ").lower()
    if "bearer" in text:
        return BearerAuth(description="Bearer token authentication")
    if "api key" in text or "apikey" in text:
        return ApiKeyAuth(name=DEFAULT_API_KEY_HEADER, location="header", description="API Key authentication")
    if "basic auth" in text or "basic authentication" in text:
        return BasicAuth(description="Basic authentication")
    if "oauth" in text:
        return OAuth2Auth(description="OAuth 2.0 authentication")
    return NoAuth()


# -- endpoints ----------------------------------------------------------------


def _candidates(soup: BeautifulSoup) -> list[Tag]:
    groups = [
        soup.find_all(HEADING_TAGS),
        soup.find_all("code"),
        soup.find_all("pre"),
        soup.find_all(class_=lambda c: bool(c) and any(h in c.lower() for h in CLASS_HINTS)),
    ]
    return [el for group in groups for el in group]


def extract_endpoints(soup: BeautifulSoup) -> list[ApiEndpoint]:
    endpoints = []
    seen: set[tuple[str, str]] = set()
    for element in _candidates(soup):
        text = element.get_text(" ", strip=True)
        if not text:
            continue
        endpoint = parse_endpoint_text(text, element)
        if endpoint is None:
            continue
        key = (endpoint.method, endpoint.path)
        if key in seen:
            logger.debug("Discarding duplicate endpoint %s %s", *key)
            continue
        seen.add(key)
        endpoints.append(endpoint)
    return endpoints


def parse_endpoint_text(text: str, element: Tag | None = None) -> ApiEndpoint | None:
    """Try the explicit ``METHOD path`` shapes, then a bare URL with an inferred verb."""
    method = path = None
    for i, pattern in enumerate(ENDPOINT_PATTERNS):
        match = pattern.search(text)
        if match:
            if i == 1:
                path_token, method = match.group(1), match.group(2)
            else:
                method, path_token = match.group(1), match.group(2)
            method, path = method.upper(), clean_path(path_token)
            break

    if method is None:
        url_match = URL_RE.search(text)
        if not url_match:
            return None
        method, path = infer_method(text), clean_path(url_match.group(0))

    description = extract_description(element) if element is not None else ""
    params = with_path_params(path, extract_parameters(text))
    try:
        return ApiEndpoint(
            method=method,
            path=path,
            operation_id=derive_operation_id(method, path),
            summary=description or f"{method} {path}",
            description=description,
            parameters=tuple(params),
        )
    except ValidationError as e:
        logger.debug("Skipping candidate %r: %s", text[:80], e)
        return None


def clean_path(token: str) -> str:
    if re.match(r"https?://", token, re.IGNORECASE):
        token = urlsplit(token).path
    token = token.split("?", 1)[0].split("#", 1)[0]
    token = re.sub(r"[^\w/\-{}.]", "", token).rstrip(".")
    if not token.startswith("/"):
        token = "/" + token
    return token


def infer_method(text: str) -> str:
    context = text.lower()
    for method, words in METHOD_KEYWORDS:
        if any(re.search(rf"\b{w}\b", context) for w in words):
            return method
    return "GET"


def extract_parameters(text: str) -> list[Param]:
    params: list[Param] = []
    names: set[str] = set()

    def add(name: str, location: str) -> None:
        if name in names:
            return
        names.add(name)
        params.append(Param(name=name, location=location, required=False, example=""))

    for name in PATH_PARAM_RE.findall(text):
        add(name, "path")
    for name in QUERY_PARAM_RE.findall(text):
        add(name, "query")
    for name, _value in KEY_VALUE_RE.findall(text):
        if name.lower() not in NOT_PARAM_KEYS:
            add(name, "query")
    return params


def _usable_line(line: str) -> bool:
    return 10 <= len(line) <= 200 and not METHOD_PREFIX_RE.match(line)


def extract_description(element: Tag) -> str:
    """First sibling, then parent line, that reads like prose rather than an endpoint.

    Siblings after the element are tried before the ones preceding it.
    """
    parent = element.parent
    if parent is None:
        return ""
    for sibling in [*element.next_siblings, *element.previous_siblings]:
        if isinstance(sibling, Tag):
            text = sibling.get_text(" ", strip=True)
        elif isinstance(sibling, NavigableString):
            text = str(sibling).strip()
        else:
            continue
        if _usable_line(text):
            return text

    for line in parent.get_text("\n").splitlines():
        line = line.strip()
        if _usable_line(line):
            return line
    return ""


# -- metadata -----------------------------------------------------------------


def _title(soup: BeautifulSoup) -> str:
    if soup.title and soup.title.get_text(strip=True):
        return soup.title.get_text(strip=True)
    h1 = soup.find("h1")
    return h1.get_text(strip=True) if h1 else ""


def _description(soup: BeautifulSoup) -> str:
    meta = soup.find("meta", attrs={"name": "description"})
    if meta and meta.get("content"):
        return meta["content"].strip()
    first_p = soup.find("p")
    if first_p:
        text = first_p.get_text(" ", strip=True)
        if len(text) > 20:
            return text
    return ""
