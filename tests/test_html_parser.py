from pathlib import Path

from api_codegen.parser.base import ApiKeyAuth, BearerAuth, NoAuth
from api_codegen.parser.html import clean_path, infer_method, parse_endpoint_text, parse_html

FIXTURES = Path(__file__).parent / "fixtures"


def _page() -> str:
    return (FIXTURES / "sample-api.html").read_text(encoding="utf-8")


def _find(api, method, path):
    return [e for e in api.endpoints if e.method == method and e.path == path][0]


class TestHtmlParser:
    def test_metadata(self):
        api = parse_html(_page())
        assert api.title == "Weather API Reference"
        assert api.description == "Current conditions and forecasts for any city"
        assert api.base_url == "https://api.weather.example.com/v2"

    def test_bearer_keyword(self):
        api = parse_html(_page())
        assert isinstance(api.auth_method, BearerAuth)

    def test_endpoints_are_deduplicated_first_wins(self):
        api = parse_html(_page())
        assert [(e.method, e.path) for e in api.endpoints] == [
            ("GET", "/cities/{cityId}/forecast"),
            ("POST", "/alerts"),
            ("DELETE", "/stations"),
            ("GET", "/v2/current"),
        ]

    def test_heading_endpoint(self):
        api = parse_html(_page())
        ep = _find(api, "GET", "/cities/{cityId}/forecast")
        assert ep.operation_id == "getCitiesCityIdForecast"
        assert ep.description == "Returns the five day forecast for a city."
        assert ep.summary == ep.description
        city_id = ep.parameters[0]
        assert (city_id.name, city_id.location, city_id.required) == ("cityId", "path", False)

    def test_path_then_method_shape(self):
        api = parse_html(_page())
        ep = _find(api, "DELETE", "/stations")
        assert ep.description == "Remove a weather station you registered earlier."

    def test_bare_url_infers_method_and_params(self):
        api = parse_html(_page())
        ep = _find(api, "GET", "/v2/current")
        assert [(p.name, p.location) for p in ep.parameters] == [("city", "query"), ("conditions", "query")]
        assert all(p.required is False for p in ep.parameters)

    def test_empty_input_gives_empty_model(self):
        api = parse_html("")
        assert api.endpoints == ()
        assert isinstance(api.auth_method, NoAuth)
        assert api.base_url == ""

    def test_garbage_input_never_raises(self):
        api = parse_html("<<<div>>> </p> %%% {{ not really markup")
        assert api.endpoints == ()
        assert isinstance(api.auth_method, NoAuth)

    def test_api_key_keyword(self):
        api = parse_html("<p>Send your API key in every request.</p><h2>GET /ping</h2>")
        assert isinstance(api.auth_method, ApiKeyAuth)
        assert api.auth_method.name == "X-API-Key"
        assert [e.path for e in api.endpoints] == ["/ping"]

    def test_base_url_from_code_block(self):
        api = parse_html("<pre>curl https://svc.example.org/v1/items</pre>")
        assert api.base_url == "https://svc.example.org"


class TestEndpointText:
    def test_method_colon_path(self):
        ep = parse_endpoint_text("PUT: /users/{id}")
        assert (ep.method, ep.path) == ("PUT", "/users/{id}")
        assert ep.summary == "PUT /users/{id}"
        assert ep.parameters[0].name == "id"

    def test_no_match(self):
        assert parse_endpoint_text("Just some prose about the service") is None

    def test_infer_method(self):
        assert infer_method("Remove the user at https://x.example.com/u") == "DELETE"
        assert infer_method("Create and update a record") == "POST"
        assert infer_method("Nothing to see") == "GET"

    def test_clean_path(self):
        assert clean_path("https://x.example.com/a/b?c=1") == "/a/b"
        assert clean_path("/items/{id}.") == "/items/{id}"
        assert clean_path("items") == "/items"
