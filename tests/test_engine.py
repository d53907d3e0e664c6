import re
from pathlib import Path

import pytest

from api_codegen.generator.engine import UnknownTargetError, body_encoding, build_client_spec, generate
from api_codegen.generator.renderer import RENDERERS, NodeRenderer, PhpRenderer, PythonRenderer
from api_codegen.generator.targets import TARGETS
from api_codegen.parser.base import ApiDescription, ApiEndpoint, ApiKeyAuth, Body, Param
from api_codegen.parser.registry import parse

FIXTURES = Path(__file__).parent / "fixtures"

PETS_DOC = (
    '{"openapi":"3.0.0","info":{"title":"Pets","version":"1.0"},"paths":{"/pets/{id}":{"get":{"operationId":"getPet",'
    '"parameters":[{"name":"id","in":"path","required":true,"schema":{"type":"string"}}]}}}}'
)

CLIENT_FILES = {
    "node": "src/ApiClient.js",
    "python": "src/api_client/client.py",
    "go": "client.go",
    "java": "src/main/java/com/example/ApiClient.java",
    "php": "src/ApiClient.php",
}

SIGNATURES = {
    "node": re.compile(r"^  async (\w+)\(([^)]*)\) \{$", re.MULTILINE),
    "python": re.compile(r"^    def (\w+)\(self((?:, [^)]*)?)\):$", re.MULTILINE),
    "go": re.compile(r"^func \(c \*Client\) (\w+)\(([^)]*)\) \(\*ApiResponse, error\) \{$", re.MULTILINE),
    "java": re.compile(r"^    public ApiResponse (\w+)\(([^)]*)\) throws IOException \{$", re.MULTILINE),
    "php": re.compile(r"^    public function (\w+)\(([^)]*)\): ApiResponse$", re.MULTILINE),
}


def _petstore():
    return parse("openapi", (FIXTURES / "petstore.yaml").read_text(encoding="utf-8"))


def _signatures(target: str, source: str) -> dict[str, int]:
    result = {}
    for name, args in SIGNATURES[target].findall(source):
        result[name] = len([a for a in args.split(",") if a.strip()])
    return result


def _api(*endpoints, **kwargs) -> ApiDescription:
    return ApiDescription(title="Test", endpoints=endpoints, **kwargs)


class TestGenerateAllTargets:
    @pytest.mark.parametrize("target", list(TARGETS))
    def test_method_arity_matches_declared_params(self, target):
        api = _petstore()
        files = generate(api, target)
        spec = build_client_spec(api, RENDERERS[target]())
        expected = {m.name: len(m.params) for m in spec.methods}
        found = _signatures(target, files[CLIENT_FILES[target]])
        assert {name: found.get(name) for name in expected} == expected

    @pytest.mark.parametrize("target", list(TARGETS))
    def test_is_deterministic(self, target):
        api = _petstore()
        assert generate(api, target) == generate(api, target)

    @pytest.mark.parametrize("target", list(TARGETS))
    def test_artifact_order_is_fixed(self, target):
        files = generate(_petstore(), target)
        assert list(files) == list(TARGETS[target].files)
        assert list(files)[-1] == ".env.example"

    @pytest.mark.parametrize("target", list(TARGETS))
    def test_empty_model_still_renders(self, target):
        files = generate(ApiDescription(), target)
        assert files[CLIENT_FILES[target]]

    def test_unknown_target(self):
        with pytest.raises(UnknownTargetError, match="ruby"):
            generate(_petstore(), "ruby")


class TestEndToEndPets:
    @pytest.fixture
    def api(self):
        return parse("openapi", PETS_DOC)

    def test_node(self, api):
        source = generate(api, "node")["src/ApiClient.js"]
        assert "  async getPet(id) {" in source
        assert 'requestPath = requestPath.split("{id}").join(String(id));' in source

    def test_python(self, api):
        source = generate(api, "python")["src/api_client/client.py"]
        assert "    def get_pet(self, id):" in source
        assert 'request_path = request_path.replace("{id}", str(id))' in source

    def test_go(self, api):
        source = generate(api, "go")["client.go"]
        assert "func (c *Client) GetPet(id string) (*ApiResponse, error) {" in source
        assert 'requestPath = replacePathParam(requestPath, "id", id)' in source

    def test_java(self, api):
        source = generate(api, "java")["src/main/java/com/example/ApiClient.java"]
        assert "public ApiResponse getPet(String id) throws IOException {" in source
        assert 'requestPath.replace("{id}", String.valueOf(id))' in source

    def test_php(self, api):
        source = generate(api, "php")["src/ApiClient.php"]
        assert "public function getPet(string $id): ApiResponse" in source
        assert "str_replace('{id}', $id, $requestPath)" in source


class TestClientSpec:
    def test_collisions_after_casing_get_suffixes(self):
        api = _api(
            ApiEndpoint(method="GET", path="/a", operation_id="getPet"),
            ApiEndpoint(method="GET", path="/b", operation_id="get_pet"),
        )
        assert [m.name for m in build_client_spec(api, PythonRenderer()).methods] == ["get_pet", "get_pet2"]
        assert [m.name for m in build_client_spec(api, NodeRenderer()).methods] == ["getPet", "getPet2"]

    def test_php_method_names_collide_case_insensitively(self):
        api = _api(
            ApiEndpoint(method="GET", path="/a", operation_id="getPets"),
            ApiEndpoint(method="GET", path="/b", operation_id="getPETS"),
        )
        assert [m.name for m in build_client_spec(api, NodeRenderer()).methods] == ["getPets", "getPETS"]
        assert [m.name for m in build_client_spec(api, PhpRenderer()).methods] == ["getPets", "getPETS2"]

    def test_php_methods_cannot_redeclare_client_members(self):
        api = _api(ApiEndpoint(method="GET", path="/ping", operation_id="testconnection"))
        assert [m.name for m in build_client_spec(api, PhpRenderer()).methods] == ["testconnection_"]
        source = generate(api, "php")["src/ApiClient.php"]
        declared = re.findall(r"public function (\w+)\(", source)
        assert len({name.lower() for name in declared}) == len(declared)

    def test_reserved_words_are_escaped(self):
        api = _api(
            ApiEndpoint(
                method="GET",
                path="/things",
                operation_id="delete",
                parameters=(Param(name="class", location="query"),),
            ),
            ApiEndpoint(method="GET", path="/ping", operation_id="testConnection"),
        )
        node = build_client_spec(api, NodeRenderer())
        assert [m.name for m in node.methods] == ["delete_", "testConnection_"]
        assert node.methods[0].query_params[0].ident == "class_"
        assert node.methods[0].query_params[0].name == "class"

        python = build_client_spec(api, PythonRenderer())
        assert [m.name for m in python.methods] == ["delete", "test_connection_"]
        assert python.methods[0].query_params[0].ident == "class_"

    def test_param_identifiers_are_unique_per_method(self):
        api = _api(
            ApiEndpoint(
                method="POST",
                path="/items/{id}",
                operation_id="updateItem",
                parameters=(
                    Param(name="id", location="path", required=True),
                    Param(name="id", location="query"),
                    Param(name="body", location="query"),
                    Param(name="2fa", location="query"),
                ),
                request_body=Body(),
            )
        )
        method = build_client_spec(api, NodeRenderer()).methods[0]
        assert [p.ident for p in method.params] == ["id", "id2", "body", "p2fa", "body2"]
        assert [p.location for p in method.params] == ["path", "query", "query", "query", "body"]

    def test_header_params_are_not_method_arguments(self):
        api = _petstore()
        method = [m for m in build_client_spec(api, NodeRenderer()).methods if m.name == "showPetById"][0]
        assert [p.name for p in method.params] == ["petId"]

    def test_example_args(self):
        api = _api(
            ApiEndpoint(
                method="POST",
                path="/orders/{orderId}/{kind}",
                operation_id="addLine",
                parameters=(
                    Param(name="orderId", location="path", required=True, example=42),
                    Param(name="kind", location="path", required=True, enum=("book", "pen")),
                    Param(name="dryRun", location="query"),
                ),
                request_body=Body(),
            )
        )
        node = build_client_spec(api, NodeRenderer()).methods[0]
        assert node.example_args == ('"42"', '"book"')
        java = build_client_spec(api, RENDERERS["java"]()).methods[0]
        assert java.example_args == ('"42"', '"book"', "null", "null")
        go = build_client_spec(api, RENDERERS["go"]()).methods[0]
        assert go.example_args == ('"42"', '"book"', '""', "nil")
        php = build_client_spec(api, PhpRenderer()).methods[0]
        assert php.example_args == ("'42'", "'book'")

    def test_missing_example_defaults_to_one(self):
        api = parse("openapi", PETS_DOC)
        assert build_client_spec(api, PythonRenderer()).methods[0].example_args == ('"1"',)

    def test_auth_header_name(self):
        api = _api(auth_method=ApiKeyAuth(name="X-Shop-Key"))
        assert build_client_spec(api, NodeRenderer()).auth_header_name == "X-Shop-Key"
        assert build_client_spec(_api(), NodeRenderer()).auth_header_name == "X-API-Key"

    def test_get_body_never_reaches_the_client(self):
        api = _api(ApiEndpoint(method="GET", path="/search", operation_id="search", request_body=Body()))
        method = build_client_spec(api, NodeRenderer()).methods[0]
        assert method.body is None
        assert method.params == ()


class TestBodyEncoding:
    def test_encodings(self):
        assert body_encoding("application/json") == "json"
        assert body_encoding("application/merge-patch+json; charset=utf-8") == "json"
        assert body_encoding("application/x-www-form-urlencoded") == "form"
        assert body_encoding("multipart/form-data") == "raw"
        assert body_encoding("text/plain") == "raw"
