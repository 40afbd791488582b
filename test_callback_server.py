import os
import threading
import unittest
import urllib.parse

import httpx

# Ensure local imports work when running this file directly.
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
if THIS_DIR not in os.sys.path:
    os.sys.path.insert(0, THIS_DIR)

from pocket_api.callback_server import CallbackListener, is_ignored_path


def _get(url: str, *, timeout: float) -> httpx.Response:
    # Loopback only; ignore any proxy settings from the environment.
    with httpx.Client(timeout=timeout, trust_env=False) as client:
        return client.get(url)


class TestIgnoredPaths(unittest.TestCase):
    def test_browser_noise_is_ignored(self):
        self.assertTrue(is_ignored_path("/favicon.ico"))
        self.assertTrue(is_ignored_path("/favicon.ico?v=2"))
        self.assertTrue(is_ignored_path("/apple-touch-icon-precomposed.png"))

    def test_callback_paths_are_not_ignored(self):
        self.assertFalse(is_ignored_path("/"))
        self.assertFalse(is_ignored_path("/?status=ok"))
        self.assertFalse(is_ignored_path("/callback"))


class TestCallbackListener(unittest.TestCase):
    def test_binds_ephemeral_loopback_port(self):
        with CallbackListener() as listener:
            parsed = urllib.parse.urlparse(listener.redirect_uri)
            self.assertEqual(parsed.hostname, "127.0.0.1")
            self.assertGreater(parsed.port, 0)
            self.assertFalse(listener.signalled)

    def test_redirect_uri_requires_start(self):
        with self.assertRaises(RuntimeError):
            CallbackListener().redirect_uri

    def test_favicon_probe_does_not_signal(self):
        with CallbackListener() as listener:
            resp = _get(listener.redirect_uri + "favicon.ico", timeout=5)
            self.assertEqual(resp.status_code, 404)
            self.assertFalse(listener.wait(timeout=0.2))
            self.assertEqual(listener.hits, 0)

    def test_callback_hit_signals_and_renders_confirmation(self):
        with CallbackListener() as listener:
            resp = _get(listener.redirect_uri, timeout=5)
            self.assertEqual(resp.status_code, 200)
            self.assertIn("Authorized.", resp.text)
            self.assertTrue(listener.wait(timeout=5))
            self.assertEqual(listener.hits, 1)

    def test_wait_unblocks_when_hit_arrives_later(self):
        with CallbackListener() as listener:
            url = listener.redirect_uri
            timer = threading.Timer(0.1, lambda: _get(url, timeout=5))
            timer.start()
            try:
                self.assertTrue(listener.wait(timeout=5))
            finally:
                timer.join()

    def test_concurrent_hits_signal_once(self):
        fired = []

        with CallbackListener() as listener:
            url = listener.redirect_uri
            original = listener._record_hit

            def record_hit():
                first = original()
                if first:
                    fired.append(True)
                return first

            listener._record_hit = record_hit

            statuses = []
            threads = [threading.Thread(target=lambda: statuses.append(_get(url, timeout=5).status_code)) for _ in range(5)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            self.assertTrue(listener.wait(timeout=5))
            self.assertEqual(statuses, [200] * 5)
            self.assertEqual(listener.hits, 5)
            self.assertEqual(len(fired), 1)

    def test_close_releases_port(self):
        listener = CallbackListener().start()
        url = listener.redirect_uri
        listener.close()
        listener.close()

        with self.assertRaises(httpx.HTTPError):
            _get(url, timeout=1)


if __name__ == "__main__":
    unittest.main(verbosity=2)
