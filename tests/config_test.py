"""
Configuration loading
"""

import os
import tempfile
import unittest
from unittest.mock import patch

from domain_survivor.config import ScanConfig, load_config_from_env, load_proxy_settings


class TestLoadConfig(unittest.TestCase):
    def test_defaults(self):
        cfg = load_config_from_env({})
        self.assertEqual(cfg.workers, 100)
        self.assertEqual(cfg.timeout, 5.0)
        self.assertEqual(cfg.target_status, 200)
        self.assertEqual(cfg.baseline_threshold, 0.9)
        self.assertEqual(cfg.batch_size, 1000)
        self.assertFalse(cfg.check_alive or cfg.use_baseline or cfg.drop_redirects)
        self.assertFalse(cfg.new_connection or cfg.log_fetch_ip)
        self.assertTrue(cfg.verify_ssl)

    def test_env_overrides(self):
        cfg = load_config_from_env({
            "DOMSURV_WORKERS": "7",
            "DOMSURV_TIMEOUT": "2.5",
            "DOMSURV_STATUS_CODE": "404",
            "DOMSURV_CHECK_ALIVE": "true",
            "DOMSURV_BASELINE": "1",
            "DOMSURV_BASELINE_THRESHOLD": "0.75",
            "DOMSURV_DROP_REDIRECTS": "yes",
            "DOMSURV_VERIFY_SSL": "off",
            "DOMSURV_INPUT": "in.txt",
        })
        self.assertEqual((cfg.workers, cfg.timeout, cfg.target_status), (7, 2.5, 404))
        self.assertTrue(cfg.check_alive and cfg.use_baseline and cfg.drop_redirects)
        self.assertEqual(cfg.baseline_threshold, 0.75)
        self.assertFalse(cfg.verify_ssl)
        self.assertEqual(cfg.input_path, "in.txt")
        self.assertIsNone(cfg.output_path)

    def test_rejects_bad_values(self):
        bad = [
            {"DOMSURV_WORKERS": "0"},
            {"DOMSURV_WORKERS": "many"},
            {"DOMSURV_TIMEOUT": "0"},
            {"DOMSURV_BASELINE_THRESHOLD": "1.5"},
            {"DOMSURV_BATCH_SIZE": "0"},
        ]
        for env in bad:
            with self.subTest(env=env), self.assertRaises(ValueError):
                load_config_from_env(env)

    def test_wants_body(self):
        self.assertTrue(ScanConfig(use_baseline=True, target_status=404).wants_body(404))
        self.assertFalse(ScanConfig(use_baseline=True, target_status=404).wants_body(200))
        self.assertFalse(ScanConfig(use_baseline=True, check_alive=True).wants_body(200))
        self.assertFalse(ScanConfig().wants_body(200))


class TestProxySettings(unittest.TestCase):
    def test_from_mapping(self):
        settings = load_proxy_settings(env={
            "PROXY_ADDRESSES": "p1:8080, p2:8080 ,,",
            "PROXY_USERNAME": "u",
            "PROXY_PASSWORD": "p",
        })
        self.assertEqual(settings.addresses, ("p1:8080", "p2:8080"))
        self.assertEqual((settings.username, settings.password), ("u", "p"))

    def test_absent_means_direct(self):
        settings = load_proxy_settings(env={})
        self.assertEqual(settings.addresses, ())
        self.assertIsNone(settings.username)

    def test_reads_env_file(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, ".env")
            with open(path, "w", encoding="utf-8") as f:
                f.write("PROXY_ADDRESSES=proxy1.example.com:8080,proxy2.example.com:8080\nPROXY_USERNAME=alice\nPROXY_PASSWORD=s3cret\n")
            with patch.dict(os.environ, {}, clear=True):
                settings = load_proxy_settings(path)
        self.assertEqual(settings.addresses, ("proxy1.example.com:8080", "proxy2.example.com:8080"))
        self.assertEqual(settings.username, "alice")

    def test_missing_env_file_is_fine(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_proxy_settings("/nonexistent/.env")
        self.assertEqual(settings.addresses, ())


if __name__ == "__main__":
    unittest.main()
