import unittest

from clubsite.config import Settings


class SettingsTests(unittest.TestCase):
    def test_mongo_connection_string_sources(self):
        self.assertEqual(
            Settings(mongodb_uri="mongodb://a", database_url="mongodb://b").mongo_connection_string,
            "mongodb://a",
        )
        self.assertEqual(
            Settings(mongodb_uri=None, database_url="mongodb+srv://b").mongo_connection_string,
            "mongodb+srv://b",
        )
        self.assertIsNone(
            Settings(mongodb_uri=None, database_url="postgres://c").mongo_connection_string
        )

    def test_csv_settings(self):
        settings = Settings(
            local_store_entities="projects, Highlights,,",
            pdf_proxy_allowlist="www.w3.org,Example.org",
            cors_origins="https://b.example, https://a.example",
        )
        self.assertEqual(settings.local_entities, {"projects", "highlights"})
        self.assertEqual(settings.pdf_allowed_hosts, {"www.w3.org", "example.org"})
        self.assertEqual(settings.cors_origin_list, ["https://a.example", "https://b.example"])


if __name__ == "__main__":
    unittest.main()
