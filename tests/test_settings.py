import json

from todo_api.generate_openapi import generate_openapi, main
from todo_api.settings import get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "APP_ENV",
            "PERSISTENCE_BACKEND",
            "SQLITE_DB_PATH",
            "CORS_ALLOW_ORIGINS",
            "LOG_LEVEL",
            "DEFAULT_PAGE_SIZE",
            "MAX_PAGE_SIZE",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = get_settings()
        assert settings.environment == "development"
        assert settings.is_production is False
        assert settings.persistence_backend == "memory"
        assert settings.cors_allow_origins == ["*"]
        assert settings.log_level == "INFO"
        assert settings.default_page_size == 20
        assert settings.max_page_size == 100

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "Production")
        monkeypatch.setenv("PERSISTENCE_BACKEND", "sqlite")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://localhost:5173, http://127.0.0.1:5173")
        monkeypatch.setenv("DEFAULT_PAGE_SIZE", "50")
        monkeypatch.setenv("MAX_PAGE_SIZE", "10")
        settings = get_settings()
        assert settings.is_production is True
        assert settings.persistence_backend == "sqlite"
        assert settings.cors_allow_origins == ["http://localhost:5173", "http://127.0.0.1:5173"]
        assert settings.default_page_size == 50
        # the cap never sits below the default page size
        assert settings.max_page_size == 50

    def test_bad_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "mongo")
        monkeypatch.setenv("DEFAULT_PAGE_SIZE", "many")
        monkeypatch.setenv("MAX_PAGE_SIZE", "0")
        settings = get_settings()
        assert settings.persistence_backend == "memory"
        assert settings.default_page_size == 20
        assert settings.max_page_size == 100


class TestGenerateOpenapi:
    def test_writes_schema_with_tags(self, tmp_path):
        out = generate_openapi(str(tmp_path / "interfaces" / "openapi.json"))
        with open(out, encoding="utf-8") as f:
            schema = json.load(f)
        assert {t["name"] for t in schema["tags"]} >= {"health", "todos"}
        assert "/api/todos" in schema["paths"]
        assert "/api/todos/stats" in schema["paths"]

    def test_main_accepts_output_path(self, tmp_path, capsys):
        target = tmp_path / "schema.json"
        main([str(target)])
        assert target.exists()
        assert str(target) in capsys.readouterr().out
