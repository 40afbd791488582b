import json
import os
import unittest
import urllib.parse

import httpx

# Ensure local imports work when running this file directly.
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
if THIS_DIR not in os.sys.path:
    os.sys.path.insert(0, THIS_DIR)

from pocket_api.auth import PocketAuth, RequestToken
from pocket_api.client import PocketClient, PocketItem
from pocket_api.errors import NetworkError, PendingError, RejectedError


def _form(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in urllib.parse.parse_qs(request.content.decode("utf-8")).items()}


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestPocketAuth(unittest.TestCase):
    def test_obtain_request_token_posts_consumer_key_and_redirect(self):
        seen = []

        def handler(request):
            seen.append((request.url.path, _form(request), request.headers.get("X-Accept")))
            return httpx.Response(200, text="code=req-1")

        auth = PocketAuth(http_client=_client(handler))
        token = auth.obtain_request_token("abc123", "http://127.0.0.1:5555/")

        self.assertEqual(token, RequestToken(code="req-1", redirect_uri="http://127.0.0.1:5555/"))
        path, form, accept = seen[0]
        self.assertEqual(path, "/v3/oauth/request")
        self.assertEqual(form, {"consumer_key": "abc123", "redirect_uri": "http://127.0.0.1:5555/"})
        self.assertEqual(accept, "application/x-www-form-urlencoded")

    def test_authorize_url_embeds_token_and_redirect(self):
        auth = PocketAuth()
        url = auth.get_authorize_url(RequestToken("req-1", "http://127.0.0.1:5555/"))

        parsed = urllib.parse.urlparse(url)
        self.assertEqual(parsed.netloc, "getpocket.com")
        self.assertEqual(parsed.path, "/auth/authorize")
        qs = urllib.parse.parse_qs(parsed.query)
        self.assertEqual(qs["request_token"], ["req-1"])
        self.assertEqual(qs["redirect_uri"], ["http://127.0.0.1:5555/"])

    def test_obtain_access_token_parses_form_response(self):
        def handler(request):
            self.assertEqual(request.url.path, "/v3/oauth/authorize")
            self.assertEqual(_form(request), {"consumer_key": "abc123", "code": "req-1"})
            return httpx.Response(200, text="access_token=tok-xyz&username=alice")

        auth = PocketAuth(http_client=_client(handler))
        authorization = auth.obtain_access_token("abc123", RequestToken("req-1", "http://x/"))

        self.assertEqual(authorization.access_token, "tok-xyz")
        self.assertEqual(authorization.username, "alice")

    def test_json_response_is_accepted(self):
        def handler(request):
            return httpx.Response(200, json={"access_token": "tok", "username": "bob"})

        auth = PocketAuth(http_client=_client(handler))
        authorization = auth.obtain_access_token("k", RequestToken("c", "http://x/"))
        self.assertEqual(authorization.username, "bob")

    def test_http_error_becomes_rejected_error(self):
        def handler(request):
            return httpx.Response(403, headers={"X-Error-Code": "152", "X-Error": "Invalid consumer key."})

        auth = PocketAuth(http_client=_client(handler))
        with self.assertRaises(RejectedError) as cm:
            auth.obtain_request_token("bad", "http://x/")

        self.assertEqual(cm.exception.status_code, 403)
        self.assertEqual(cm.exception.error_code, "152")
        self.assertIn("Invalid consumer key.", str(cm.exception))

    def test_unapproved_code_is_pending(self):
        def handler(request):
            return httpx.Response(403, headers={"X-Error-Code": "185", "X-Error": "User rejected code."})

        auth = PocketAuth(http_client=_client(handler))
        with self.assertRaises(PendingError):
            auth.obtain_access_token("k", RequestToken("c", "http://x/"))

    def test_missing_access_token_is_pending(self):
        auth = PocketAuth(http_client=_client(lambda request: httpx.Response(200, text="")))
        with self.assertRaises(PendingError):
            auth.obtain_access_token("k", RequestToken("c", "http://x/"))

    def test_transport_failure_becomes_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        auth = PocketAuth(http_client=_client(handler))
        with self.assertRaises(NetworkError):
            auth.obtain_request_token("k", "http://x/")


class TestPocketClient(unittest.TestCase):
    def test_retrieve_sends_credentials_and_filters(self):
        bodies = []

        def handler(request):
            bodies.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"status": 1, "list": {}})

        client = PocketClient("abc123", "tok-xyz", http_client=_client(handler))
        client.retrieve(count=5, domain="example.com", search=None)

        path, body = bodies[0]
        self.assertEqual(path, "/v3/get")
        self.assertEqual(body["consumer_key"], "abc123")
        self.assertEqual(body["access_token"], "tok-xyz")
        self.assertEqual(body["count"], 5)
        self.assertEqual(body["domain"], "example.com")
        self.assertNotIn("search", body)

    def test_get_items_sorts_by_sort_id(self):
        listing = {
            "2": {"item_id": "2", "resolved_title": "Second", "resolved_url": "https://b", "sort_id": 1},
            "1": {"item_id": "1", "given_title": "First", "given_url": "https://a", "sort_id": 0},
        }
        client = PocketClient("k", "t", http_client=_client(lambda r: httpx.Response(200, json={"list": listing})))

        items = client.get_items(count=10)
        self.assertEqual([i.item_id for i in items], [1, 2])
        self.assertEqual(items[0].title, "First")
        self.assertEqual(items[0].url, "https://a")

    def test_get_items_handles_empty_list_array(self):
        client = PocketClient("k", "t", http_client=_client(lambda r: httpx.Response(200, json={"list": []})))
        self.assertEqual(client.get_items(), [])

    def test_archive_sends_action(self):
        bodies = []

        def handler(request):
            bodies.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"status": 1, "action_results": [True]})

        client = PocketClient("k", "t", http_client=_client(handler))
        res = client.archive(42)

        self.assertEqual(res["action_results"], [True])
        self.assertEqual(bodies[0][0], "/v3/send")
        self.assertEqual(bodies[0][1]["actions"], [{"action": "archive", "item_id": 42}])

    def test_api_error_is_rejected(self):
        client = PocketClient("k", "t", http_client=_client(lambda r: httpx.Response(401, headers={"X-Error": "Unauthorized"})))
        with self.assertRaises(RejectedError) as cm:
            client.add("https://example.com")
        self.assertEqual(cm.exception.status_code, 401)


class TestPocketItem(unittest.TestCase):
    def test_from_api_prefers_resolved_fields_and_collects_tags(self):
        item = PocketItem.from_api(
            {
                "item_id": "229279689",
                "given_title": "given",
                "resolved_title": "resolved",
                "given_url": "http://given",
                "resolved_url": "http://resolved",
                "sort_id": 3,
                "tags": {"python": {}, "cli": {}},
            }
        )
        self.assertEqual(item.item_id, 229279689)
        self.assertEqual(item.title, "resolved")
        self.assertEqual(item.url, "http://resolved")
        self.assertEqual(item.tags, ["cli", "python"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
