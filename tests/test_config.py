import pytest

from querydeck.config import (
    DEFAULT_BASE_URL,
    ConsoleSettings,
    DatabaseType,
    EndpointConfig,
    KeyStyle,
    QueryDeckConfig,
    create_default_config,
)


CONFIG_YAML = """
endpoint:
  base_url: https://dashboard.example.com/api/
  token: file-token
  timeout: 5
  key_style: camel
console:
  page_size: 25
  export_dir: ./out
  delimiter: ";"
verbose: true
"""


def test_defaults(monkeypatch):
    monkeypatch.delenv("QUERYDECK_TOKEN", raising=False)
    config = QueryDeckConfig()
    assert config.endpoint.base_url == DEFAULT_BASE_URL
    assert config.endpoint.token is None
    assert config.console.page_size == 10
    assert config.console.auto_select_first_table
    assert not config.uses_local_database


def test_from_yaml(tmp_path):
    path = tmp_path / "querydeck.yaml"
    path.write_text(CONFIG_YAML)

    config = QueryDeckConfig.from_yaml(str(path))

    assert config.endpoint.base_url == "https://dashboard.example.com/api"
    assert config.endpoint.token == "file-token"
    assert config.endpoint.timeout == 5
    assert config.endpoint.key_style == KeyStyle.CAMEL
    assert config.console.page_size == 25
    assert config.console.delimiter == ";"
    assert config.verbose


def test_from_yaml_with_local_database(tmp_path):
    path = tmp_path / "local.yaml"
    path.write_text("database:\n  type: sqlite\n  path: ./data/tickets.db\n")

    config = QueryDeckConfig.from_yaml(str(path))

    assert config.uses_local_database
    assert config.database.db_type == DatabaseType.SQLITE
    assert config.database.get_connection_string() == "sqlite:///./data/tickets.db"


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert QueryDeckConfig.from_yaml(str(path)).console.page_size == 10


def test_token_from_environment(monkeypatch):
    monkeypatch.setenv("QUERYDECK_TOKEN", "env-token")
    assert EndpointConfig().token == "env-token"
    assert EndpointConfig(token="explicit").token == "explicit"


def test_key_style_accepts_strings():
    assert EndpointConfig(key_style="camel").key_style == KeyStyle.CAMEL


@pytest.mark.parametrize("kwargs", [{"page_size": 0}, {"page_size": -3}, {"delimiter": ""}])
def test_console_settings_validation(kwargs):
    with pytest.raises(ValueError):
        ConsoleSettings(**kwargs)


def test_to_dict_never_contains_token():
    config = create_default_config(token="secret")
    data = config.to_dict()
    assert "token" not in data["endpoint"]
    assert "secret" not in str(data)
    assert data["database"] is None


def test_create_default_config_with_db_path():
    config = create_default_config(db_path="/tmp/tickets.db", page_size=5, verbose=True)
    assert config.uses_local_database
    assert config.database.db_path == "/tmp/tickets.db"
    assert config.console.page_size == 5
    assert config.verbose
