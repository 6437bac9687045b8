import threading
import time
import unittest
from unittest import mock

from clubsite import dependencies


def _slow(result):
    def build(*args, **kwargs):
        time.sleep(0.05)
        return result

    return build


class SingletonTests(unittest.TestCase):
    def setUp(self):
        dependencies.reset()
        self.addCleanup(dependencies.reset)

    def _call_concurrently(self, func, workers=8):
        barrier = threading.Barrier(workers)
        results = []

        def run():
            barrier.wait()
            results.append(func())

        threads = [threading.Thread(target=run) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return results

    def test_upload_storage_is_built_once_under_concurrent_first_calls(self):
        storage = object()
        with mock.patch.object(
            dependencies, "_build_upload_storage", side_effect=_slow(storage)
        ) as build:
            results = self._call_concurrently(dependencies.get_upload_storage)
        self.assertEqual(build.call_count, 1)
        self.assertTrue(all(result is storage for result in results))

    def test_pdf_proxy_is_built_once_under_concurrent_first_calls(self):
        proxy = object()
        with mock.patch.object(
            dependencies, "PdfProxy", side_effect=_slow(proxy)
        ) as build:
            results = self._call_concurrently(dependencies.get_pdf_proxy)
        self.assertEqual(build.call_count, 1)
        self.assertTrue(all(result is proxy for result in results))


if __name__ == "__main__":
    unittest.main()
