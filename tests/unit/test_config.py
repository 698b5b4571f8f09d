"""Settings - defaults and server property mapping"""

from datetime import timedelta

from result_store.config import DEFAULT_BASE_DIRECTORY, Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.path == DEFAULT_BASE_DIRECTORY
        assert settings.wipe_enabled is True
        assert settings.wipe_period == timedelta(hours=1)
        assert settings.wipe_threshold == timedelta(days=7)
        assert settings.save_results_to_db is False
        assert settings.jndi_name is None

    def test_from_properties_maps_server_keys(self, tmp_path):
        settings = Settings.from_properties(
            {
                "path": str(tmp_path),
                "wipe.enabled": "false",
                "wipe.period": "PT30M",
                "wipe.threshold": "P3D",
                "saveResultsToDB": "true",
                "jndiName": "gdp",
                "unrelated.key": "ignored",
            },
            _env_file=None,
        )

        assert settings.path == tmp_path
        assert settings.wipe_enabled is False
        assert settings.wipe_period == timedelta(minutes=30)
        assert settings.wipe_threshold == timedelta(days=3)
        assert settings.save_results_to_db is True
        assert settings.jndi_name == "gdp"

    def test_environment_variables_use_prefix(self, monkeypatch):
        monkeypatch.setenv("RESULT_STORE_SAVE_RESULTS_TO_DB", "true")
        monkeypatch.setenv("RESULT_STORE_WIPE_PERIOD", "PT2M")

        settings = Settings(_env_file=None)

        assert settings.save_results_to_db is True
        assert settings.wipe_period == timedelta(minutes=2)

    def test_base_result_url(self):
        settings = Settings(
            _env_file=None, server_hostname="wps.example.org", server_port=8081, webapp_path="/gdp/"
        )

        assert settings.base_result_url == "http://wps.example.org:8081/gdp/RetrieveResultServlet?id="
