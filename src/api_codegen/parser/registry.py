"""Parse entry point: selects a normalizer by explicit format tag."""

from .base import ApiDescription, Normalizer, ParseError
from .detect import InputFormat
from .html import HtmlNormalizer
from .postman import PostmanNormalizer
from .swagger import OpenApiNormalizer

NORMALIZERS: dict[InputFormat, type[Normalizer]] = {
    InputFormat.OPENAPI: OpenApiNormalizer,
    InputFormat.POSTMAN: PostmanNormalizer,
    InputFormat.HTML: HtmlNormalizer,
}


def get_normalizer(fmt: InputFormat | str) -> Normalizer:
    try:
        fmt = InputFormat(fmt)
    except ValueError:
        supported = ", ".join(f.value for f in InputFormat)
        raise ParseError(f"Unknown input format {fmt!r}; supported: {supported}") from None
    return NORMALIZERS[fmt]()


def parse(fmt: InputFormat | str, raw_text: str) -> ApiDescription:
    """Convert raw documentation text into the canonical model.

    Structured formats raise ParseError on malformed input; the HTML
    normalizer always returns a model, possibly with no endpoints.
    """
    return get_normalizer(fmt).normalize(raw_text)
