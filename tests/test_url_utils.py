"""
Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import unittest

from tests._env import ensure_test_env

ensure_test_env()

from services.common.url_utils import is_conjur_cloud, is_http_url, normalize_appliance_url


class UrlUtilsTests(unittest.TestCase):
    def test_accepts_http_and_https_urls(self):
        self.assertTrue(is_http_url("http://conjur.example.com/path"))
        self.assertTrue(is_http_url("https://conjur.example.com"))
        self.assertTrue(is_http_url("https://localhost:8443"))

    def test_rejects_invalid_or_non_http_urls(self):
        self.assertFalse(is_http_url(""))
        self.assertFalse(is_http_url(None))
        self.assertFalse(is_http_url("ftp://conjur.example.com"))
        self.assertFalse(is_http_url("https:///missing-host"))
        self.assertFalse(is_http_url("conjur.example.com"))
        self.assertFalse(is_http_url("https://conjur.example.com:99999"))

    def test_normalize_strips_trailing_slash(self):
        self.assertEqual(normalize_appliance_url("https://conjur.example.com/"), "https://conjur.example.com")
        self.assertEqual(normalize_appliance_url(" https://conjur.example.com "), "https://conjur.example.com")

    def test_normalize_appends_api_for_conjur_cloud(self):
        self.assertTrue(is_conjur_cloud("https://acme.secretsmgr.cyberark.cloud"))
        self.assertEqual(
            normalize_appliance_url("https://acme.secretsmgr.cyberark.cloud/"),
            "https://acme.secretsmgr.cyberark.cloud/api",
        )
        self.assertEqual(
            normalize_appliance_url("https://acme.secretsmgr.cyberark.cloud/api"),
            "https://acme.secretsmgr.cyberark.cloud/api",
        )

    def test_normalize_leaves_self_hosted_paths_alone(self):
        self.assertFalse(is_conjur_cloud("https://conjur.example.com"))
        self.assertEqual(normalize_appliance_url("https://conjur.example.com/conjur"), "https://conjur.example.com/conjur")

    def test_normalize_rejects_malformed_urls(self):
        with self.assertRaises(ValueError):
            normalize_appliance_url("not a url")
        with self.assertRaises(ValueError):
            normalize_appliance_url(None)


if __name__ == "__main__":
    unittest.main()
