import tempfile
import unittest
from pathlib import Path

from room_reservation import HttpRecordStore, Settings, YamlRecordStore, build_store, load_settings


class TestLoadSettings(unittest.TestCase):
    def test_defaults_without_file_or_environment(self) -> None:
        settings = load_settings(environ={})

        self.assertEqual(settings, Settings())
        self.assertEqual(settings.store_backend, "yaml")
        self.assertEqual(settings.holiday_country, "JP")

    def test_file_values_with_environment_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "settings.yaml"
            config_path.write_text(
                "store_backend: http\nstore_url: http://records.local:3001\ndata_dir: store\nrequest_timeout: 3\n",
                encoding="utf-8",
            )

            settings = load_settings(
                config_path,
                environ={"ROOM_RESERVATION_TIMEOUT": "7.5", "ROOM_RESERVATION_HOLIDAYS": ""},
            )

            self.assertEqual(settings.store_backend, "http")
            self.assertEqual(settings.store_url, "http://records.local:3001")
            self.assertEqual(settings.data_dir, config_path.resolve().parent / "store")
            self.assertEqual(settings.request_timeout, 7.5)
            self.assertIsNone(settings.holiday_country)

    def test_config_path_from_environment(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "settings.yaml"
            config_path.write_text("log_level: debug\n", encoding="utf-8")

            settings = load_settings(environ={"ROOM_RESERVATION_CONFIG": str(config_path)})

            self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_values_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_settings(environ={"ROOM_RESERVATION_BACKEND": "sql"})
        with self.assertRaises(ValueError):
            load_settings(environ={"ROOM_RESERVATION_TIMEOUT": "soon"})
        with self.assertRaises(ValueError):
            load_settings(environ={"ROOM_RESERVATION_TIMEOUT": "0"})


class TestBuildStore(unittest.TestCase):
    def test_builds_configured_backend(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            yaml_store = build_store(Settings(data_dir=Path(temp_dir) / "data"))
            self.assertIsInstance(yaml_store, YamlRecordStore)

        http_store = build_store(Settings(store_backend="http", store_url="http://records.local/"))
        self.assertIsInstance(http_store, HttpRecordStore)
        self.assertEqual(http_store.base_url, "http://records.local")
        http_store.close()


if __name__ == "__main__":
    unittest.main()
