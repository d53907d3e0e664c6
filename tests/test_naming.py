from api_codegen.naming import (
    dedupe_operation_ids,
    derive_operation_id,
    is_identifier,
    sanitize_identifier,
    slugify,
    split_words,
    to_camel,
    to_pascal,
    to_snake,
)
from api_codegen.parser.base import ApiEndpoint


class TestCasing:
    def test_split_words(self):
        assert split_words("listPets") == ["list", "Pets"]
        assert split_words("list-pets") == ["list", "pets"]
        assert split_words("HTTPServer") == ["HTTP", "Server"]

    def test_to_camel(self):
        assert to_camel("show-pet-by-id") == "showPetById"
        assert to_camel("List orders") == "listOrders"
        assert to_camel("HTTPServer") == "httpServer"

    def test_to_pascal(self):
        assert to_pascal("getPet") == "GetPet"

    def test_to_snake(self):
        assert to_snake("getPet") == "get_pet"
        assert to_snake("listPetsByOwner") == "list_pets_by_owner"


class TestOperationIds:
    def test_derive_from_path(self):
        assert derive_operation_id("GET", "/pets/{id}") == "getPetsId"

    def test_derive_from_name(self):
        assert derive_operation_id("POST", "Create order") == "postCreateOrder"

    def test_derive_from_root(self):
        assert derive_operation_id("GET", "/") == "get"

    def test_sanitize(self):
        assert sanitize_identifier("pets.list") == "petsList"
        assert sanitize_identifier("2fa-verify") == "op2faVerify"
        assert sanitize_identifier("!!!") == ""

    def test_is_identifier(self):
        assert is_identifier("getPet")
        assert not is_identifier("get-pet")

    def test_dedupe_suffixes_collisions(self):
        eps = [
            ApiEndpoint(method="GET", path="/a", operation_id="listItems"),
            ApiEndpoint(method="GET", path="/b", operation_id="listItems"),
            ApiEndpoint(method="GET", path="/c", operation_id="listItems2"),
            ApiEndpoint(method="GET", path="/d", operation_id="listItems"),
        ]
        result = dedupe_operation_ids(eps)
        assert [e.operation_id for e in result] == ["listItems", "listItems3", "listItems2", "listItems4"]
        assert [e.path for e in result] == ["/a", "/b", "/c", "/d"]


class TestSlugify:
    def test_slugify(self):
        assert slugify("Pet Store API v2") == "pet-store-api-v2"

    def test_slugify_empty(self):
        assert slugify("!!!") == "api"
