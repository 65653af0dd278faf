from urllib.parse import quote

from fastapi.testclient import TestClient

from string_analyzer.config import Settings
from string_analyzer.errors import InternalError
from string_analyzer.main import create_app
from string_analyzer.storage import MemoryStore
from string_analyzer.utils import compute_sha256


def create(client, value):
    return client.post("/strings", json={"value": value})


class TestCreateString:
    def test_created(self, client):
        response = create(client, "Race Car")
        assert response.status_code == 201

        body = response.json()
        assert body["id"] == compute_sha256("Race Car")
        assert body["value"] == "Race Car"
        assert body["properties"] == {
            "length": 8,
            "is_palindrome": True,
            "unique_characters": 7,
            "word_count": 2,
            "sha256_hash": compute_sha256("Race Car"),
            "character_frequency_map": {"R": 1, "a": 2, "c": 1, "e": 1, " ": 1, "C": 1, "r": 1},
        }
        assert "created_at" in body

    def test_duplicate_is_conflict(self, client):
        assert create(client, "hello").status_code == 201

        response = create(client, "hello")
        assert response.status_code == 409
        assert response.json()["error"] == "Conflict"
        assert client.get("/strings").json()["count"] == 1

    def test_missing_value(self, client):
        response = client.post("/strings", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "Bad Request"

    def test_missing_body(self, client):
        assert client.post("/strings").status_code == 400

    def test_invalid_json(self, client):
        response = client.post(
            "/strings", content="{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400

    def test_value_must_be_a_string(self, client):
        for value in (123, ["a"], None, True):
            response = create(client, value)
            assert response.status_code == 422
            assert response.json()["error"] == "Unprocessable Entity"

    def test_lone_surrogate_is_unprocessable(self, client):
        response = client.post(
            "/strings", content=b'{"value": "\\ud800"}', headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 422
        assert response.json() == {
            "error": "Unprocessable Entity",
            "message": '"value" must be valid Unicode text',
        }
        assert client.get("/strings").json()["count"] == 0

    def test_non_string_body_uses_error_format(self, client):
        assert create(client, 5).json() == {
            "error": "Unprocessable Entity",
            "message": '"value" must be a string',
        }

    def test_empty_string_is_accepted(self, client):
        response = create(client, "")
        assert response.status_code == 201
        assert response.json()["properties"]["word_count"] == 0


class TestGetString:
    def test_found(self, client):
        create(client, "hello world")
        response = client.get("/strings/hello world")
        assert response.status_code == 200
        assert response.json()["value"] == "hello world"

    def test_value_with_slash(self, client):
        assert create(client, "a/b").status_code == 201

        response = client.get("/strings/" + quote("a/b", safe=""))
        assert response.status_code == 200
        assert response.json()["value"] == "a/b"

    def test_not_found(self, client):
        response = client.get("/strings/missing")
        assert response.status_code == 404
        assert response.json() == {
            "error": "Not Found",
            "message": "String does not exist in the system",
        }


class TestListStrings:
    def test_no_filters(self, client):
        for value in ("abc", "abcde"):
            create(client, value)

        body = client.get("/strings").json()
        assert body["count"] == 2
        assert body["filters_applied"] is None

    def test_min_length(self, client):
        for value in ("abc", "abcde", "abcdefg"):
            create(client, value)

        body = client.get("/strings", params={"min_length": "5"}).json()
        assert sorted(item["value"] for item in body["data"]) == ["abcde", "abcdefg"]
        assert body["count"] == 2
        assert body["filters_applied"] == {"min_length": 5}

    def test_combined_filters(self, client):
        for value in ("racecar", "level up", "hello", "Anna"):
            create(client, value)

        body = client.get(
            "/strings",
            params={"is_palindrome": "true", "word_count": "1", "contains_character": "A"},
        ).json()
        assert sorted(item["value"] for item in body["data"]) == ["Anna", "racecar"]
        assert body["filters_applied"] == {
            "is_palindrome": True,
            "word_count": 1,
            "contains_character": "A",
        }

    def test_malformed_params(self, client):
        for params in (
            {"is_palindrome": "maybe"},
            {"min_length": "five"},
            {"max_length": "1.5"},
            {"word_count": "x"},
            {"contains_character": "ab"},
        ):
            response = client.get("/strings", params=params)
            assert response.status_code == 400, params
            assert response.json()["error"] == "Bad Request"


class TestNaturalLanguageFilter:
    def test_single_word_palindromes(self, client):
        for value in ("racecar", "level up", "hello", "noon"):
            create(client, value)

        query = "all single word palindromic strings"
        response = client.get("/strings/filter-by-natural-language", params={"query": query})
        assert response.status_code == 200

        body = response.json()
        assert sorted(item["value"] for item in body["data"]) == ["noon", "racecar"]
        assert body["count"] == 2
        assert body["interpreted_query"] == {
            "original": query,
            "parsed_filters": {"word_count": 1, "is_palindrome": True},
        }

    def test_longer_than_with_letter(self, client):
        for value in ("cat", "banana", "cherry", "Avocado"):
            create(client, value)

        query = "strings longer than 4 that contain the letter a"
        body = client.get("/strings/filter-by-natural-language", params={"query": query}).json()
        assert sorted(item["value"] for item in body["data"]) == ["Avocado", "banana"]
        assert body["interpreted_query"]["parsed_filters"] == {
            "min_length": 5,
            "contains_character": "a",
        }

    def test_unparseable(self, client):
        response = client.get("/strings/filter-by-natural-language", params={"query": "banana"})
        assert response.status_code == 400
        assert response.json()["message"] == "Unable to parse natural language query"

    def test_oversized_number_is_unparseable(self, client):
        query = "strings longer than " + "9" * 5000
        response = client.get("/strings/filter-by-natural-language", params={"query": query})
        assert response.status_code == 400

    def test_missing_query(self, client):
        assert client.get("/strings/filter-by-natural-language").status_code == 400
        assert client.get("/strings/filter-by-natural-language", params={"query": "  "}).status_code == 400


class TestDeleteString:
    def test_delete_then_get(self, client):
        create(client, "hello")

        response = client.delete("/strings/hello")
        assert response.status_code == 204
        assert response.content == b""
        assert client.get("/strings/hello").status_code == 404

    def test_delete_value_with_slash(self, client):
        create(client, "a/b")

        assert client.delete("/strings/" + quote("a/b", safe="")).status_code == 204
        assert client.get("/strings/" + quote("a/b", safe="")).status_code == 404

    def test_delete_missing(self, client):
        assert client.delete("/strings/hello").status_code == 404

    def test_value_can_be_recreated_after_delete(self, client):
        create(client, "hello")
        client.delete("/strings/hello")
        assert create(client, "hello").status_code == 201


def test_health(client, store):
    create(client, "hello")
    assert client.get("/health").json() == {
        "status": "healthy",
        "storage": store.name,
        "total_strings": 1,
    }


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "POST /strings" in response.json()["endpoints"]


def test_unknown_route(client):
    response = client.get("/nothing-here")
    assert response.status_code == 404
    assert response.json()["error"] == "Not Found"


def test_store_selected_on_startup():
    app = create_app(settings=Settings(storage_backend="memory"))
    with TestClient(app) as client:
        assert client.get("/health").json()["storage"] == "memory"


class BrokenStore(MemoryStore):
    def find(self, predicate=None):
        raise RuntimeError("disk on fire at /var/lib/strings")

    def count(self):
        raise InternalError("Storage backend unavailable")


def test_unexpected_errors_hide_details():
    app = create_app(store=BrokenStore(), settings=Settings(storage_backend="memory"))
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/strings")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}


def test_storage_errors_are_internal_errors():
    app = create_app(store=BrokenStore(), settings=Settings(storage_backend="memory"))
    with TestClient(app) as client:
        response = client.get("/health")
        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal Server Error",
            "message": "Storage backend unavailable",
        }


class CountFailingStore(MemoryStore):
    def count(self):
        raise InternalError("Storage backend unavailable")


def test_create_does_not_depend_on_count():
    app = create_app(store=CountFailingStore(), settings=Settings(storage_backend="memory"))
    with TestClient(app) as client:
        assert create(client, "hello").status_code == 201
        assert client.get("/strings/hello").status_code == 200
