"""
Тесты сборки запросов
"""

import io
import json
from datetime import date

import pytest

from netlify_api import ClientConfig, MissingParameterError
from netlify_api.internal.http.request import merge_headers, merge_params
from netlify_api.internal.types.models import MultipartBody


class TestMergeParams:
    """Объединение глобальных параметров и параметров вызова"""

    def test_call_params_override_global(self):
        merged = merge_params({"site_id": "global", "page": 1}, {"site_id": "call"})
        assert merged == {"site_id": "call", "page": 1}

    def test_empty_inputs(self):
        assert merge_params(None, None) == {}
        assert merge_params({"a": 1}, None) == {"a": 1}

    def test_inputs_not_mutated(self):
        global_params = {"a": 1}
        merge_params(global_params, {"a": 2})
        assert global_params == {"a": 1}


class TestMergeHeaders:
    def test_last_layer_wins_case_insensitive(self):
        headers = merge_headers({"Accept": "application/json"}, {"accept": "text/plain"})
        assert headers == {"accept": "text/plain"}

    def test_none_layers_skipped(self):
        assert merge_headers(None, {"A": "1"}, None) == {"A": "1"}


class TestBuildRequest:
    """Тесты RequestBuilder через клиент"""

    def test_path_parameter_substituted(self, client):
        request = client.build_request("getSite", {"site_id": "abc"})

        assert request.method == "GET"
        assert request.url == "https://api.netlify.com/api/v1/sites/abc"
        assert request.body is None

    def test_path_parameter_url_encoded(self, client):
        request = client.build_request(
            "uploadDeployFile",
            {"deploy_id": "d1", "path": "assets/main file.js", "file_body": b"x"},
        )
        assert "/deploys/d1/files/assets%2Fmain%20file.js" in request.url

    @pytest.mark.parametrize("operation_id", ["getSite", "deleteSite", "showTicket"])
    def test_missing_path_parameter(self, client, operation_id):
        with pytest.raises(MissingParameterError) as exc_info:
            client.build_request(operation_id, {})

        assert exc_info.value.operation_id == operation_id
        assert exc_info.value.location == "path"

    def test_path_parameter_not_in_query(self, client):
        request = client.build_request("getSite", {"site_id": "abc"})
        assert "?" not in request.url
        assert "site_id" not in request.url

    def test_query_in_declaration_order(self, client):
        request = client.build_request(
            "listSites", {"per_page": 10, "name": "my site", "page": 2}
        )
        assert request.url.endswith("/sites?name=my+site&page=2&per_page=10")

    def test_query_serialization(self, client):
        request = client.build_request("listSites", {"filter": True, "name": date(2024, 1, 2)})
        assert request.url.endswith("?name=2024-01-02&filter=true")

    def test_undeclared_parameters_ignored(self, client):
        request = client.build_request("getSite", {"site_id": "abc", "unknown": 1})
        assert "unknown" not in request.url

    def test_global_params_applied(self, make_client):
        client, _ = make_client(config=ClientConfig(global_params={"site_id": "global"}))

        assert client.build_request("getSite").url.endswith("/sites/global")
        assert client.build_request("getSite", {"site_id": "call"}).url.endswith(
            "/sites/call"
        )

    def test_json_body(self, client):
        request = client.build_request("createSite", {"site": {"name": "blog"}})

        assert json.loads(request.body) == {"name": "blog"}
        assert request.headers["Content-Type"] == "application/json"
        assert "name=" not in request.url

    def test_json_body_default_key(self, client):
        request = client.build_request("createSite", {"body": {"name": "blog"}})
        assert json.loads(request.body) == {"name": "blog"}

    def test_missing_required_body(self, client):
        with pytest.raises(MissingParameterError) as exc_info:
            client.build_request("createSite", {})
        assert exc_info.value.location == "body"

    def test_binary_body_multipart(self, client):
        request = client.build_request(
            "uploadDeployFile",
            {"deploy_id": "d1", "path": "index.html", "file_body": b"<html>", "size": 6},
        )

        assert isinstance(request.body, MultipartBody)
        assert request.body.fields == [("file_body", b"<html>")]
        assert "Content-Type" not in request.headers
        assert request.url.endswith("?size=6")

    def test_file_body_read_once(self, client):
        """Поток читается при сборке, имя файла сохраняется"""
        stream = io.BytesIO(b"hello world")
        stream.name = "hello.txt"

        request = client.build_request(
            "uploadDeployFile", {"deploy_id": "d1", "path": "hello.txt", "file_body": stream}
        )

        assert request.body.fields == [("file_body", b"hello world")]
        assert request.body.filenames == {"file_body": "hello.txt"}

    def test_callable_body_kept_for_each_attempt(self, client):
        def body_factory():
            return b"data"

        request = client.build_request(
            "uploadDeployFile",
            {"deploy_id": "d1", "path": "a.bin", "file_body": body_factory},
        )

        assert request.body.fields == [("file_body", body_factory)]

    def test_none_query_value_skipped(self, client):
        request = client.build_request("listSites", {"name": None, "page": 1})
        assert request.url.endswith("/sites?page=1")

    def test_none_header_value_skipped(self, client):
        request = client.build_request("createSite", {"site": {}, "X-Request-Id": None})
        assert "X-Request-Id" not in request.headers

    def test_header_parameter(self, client):
        request = client.build_request(
            "createSite", {"site": {}, "X-Request-Id": "req-1"}
        )
        assert request.headers["X-Request-Id"] == "req-1"
        assert "X-Request-Id" not in request.url


class TestHeaders:
    """Заголовки по умолчанию, токен и переопределения"""

    def test_default_headers(self, client):
        headers = client.build_request("getSite", {"site_id": "1"}).headers

        assert headers["User-Agent"] == "netlify/js-client"
        assert headers["Accept"] == "application/json"
        assert "Authorization" not in headers

    def test_custom_user_agent(self, make_client):
        client, _ = make_client(config=ClientConfig(user_agent="my-tool/1.0"))
        headers = client.build_request("getSite", {"site_id": "1"}).headers
        assert headers["User-Agent"] == "my-tool/1.0"

    def test_authorization_from_token(self, make_client):
        client, _ = make_client(access_token="secret")
        headers = client.build_request("getSite", {"site_id": "1"}).headers
        assert headers["Authorization"] == "Bearer secret"

    def test_override_wins(self, make_client):
        client, _ = make_client(access_token="secret")
        headers = client.build_request(
            "getSite",
            {"site_id": "1"},
            headers={"authorization": "Bearer other", "Accept": "text/plain"},
        ).headers

        assert headers["authorization"] == "Bearer other"
        assert "Authorization" not in headers
        assert headers["Accept"] == "text/plain"

    def test_proxy_attached_only_when_configured(self, make_client):
        client, _ = make_client()
        assert client.build_request("getSite", {"site_id": "1"}).proxy is None

        client, _ = make_client(config=ClientConfig(proxy="http://proxy:3128"))
        assert client.build_request("getSite", {"site_id": "1"}).proxy == "http://proxy:3128"
