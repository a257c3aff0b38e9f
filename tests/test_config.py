# tests/test_config.py
import pytest

from rcon_core import ConfigError
from rcon_core.config import (
    DEFAULT_PORT,
    RconConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
    read_env_values,
    read_toml_profile,
)
from rcon_core.protocol.constants import MAX_PACKET_SIZE

ENV_KEYS = (
    "RCON_HOST",
    "RCON_PORT",
    "RCON_PASSWORD",
    "RCON_TIMEOUT",
    "RCON_MAX_PACKET_SIZE",
    "RCON_STRICT",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """清空 RCON_ 环境变量，并切换到一个没有 .env 的临时目录"""
    # 先 setenv 再 delenv，保证 load_dotenv 写入的变量在测试结束后被还原
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


# --- Factory 测试 (核心逻辑) ---


def test_create_minimal_dict():
    config = create_config_from_dict({"host": "mc.example.com"})

    assert config.host == "mc.example.com"
    assert config.port == DEFAULT_PORT
    assert config.password == ""
    assert config.max_packet_size == MAX_PACKET_SIZE
    assert config.strict is False


def test_create_converts_string_values():
    """来自环境变量的值都是字符串，需要做类型转换"""
    config = create_config_from_dict(
        {
            "host": " 10.0.0.2 ",
            "port": "27015",
            "password": "pw",
            "timeout": "2.5",
            "max_packet_size": "8192",
            "strict": "true",
        }
    )

    assert config.host == "10.0.0.2"
    assert config.port == 27015
    assert config.timeout == 2.5
    assert config.max_packet_size == 8192
    assert config.strict is True


def test_create_missing_host():
    with pytest.raises(ConfigError, match="配置缺失"):
        create_config_from_dict({"port": 25575})


@pytest.mark.parametrize("port", ["abc", 0, 70000])
def test_create_invalid_port(port):
    with pytest.raises(ConfigError):
        create_config_from_dict({"host": "h", "port": port})


@pytest.mark.parametrize("timeout", ["soon", 0, -1])
def test_create_invalid_timeout(timeout):
    with pytest.raises(ConfigError):
        create_config_from_dict({"host": "h", "timeout": timeout})


def test_create_rejects_tiny_packet_size():
    with pytest.raises(ConfigError, match="取值越界"):
        create_config_from_dict({"host": "h", "max_packet_size": 13})


def test_repr_hides_password():
    config = RconConfig(host="h", password="super-secret")
    assert "super-secret" not in repr(config)
    assert "******" in repr(config)


def test_config_is_frozen():
    config = RconConfig(host="h")
    with pytest.raises(Exception):
        config.port = 1


# --- TOML 测试 ---


def test_load_toml_profile(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        """
[profile.default]
host = "127.0.0.1"

[profile.survival]
host = "10.0.0.5"
port = 25580
password = "pw"
strict = true
""",
        encoding="utf-8",
    )

    config = load_config_from_toml(path, "survival")
    assert config.host == "10.0.0.5"
    assert config.port == 25580
    assert config.strict is True

    assert load_config_from_toml(path).host == "127.0.0.1"


def test_load_toml_missing_profile(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[profile.default]\nhost = "h"\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="未找到预设"):
        load_config_from_toml(path, "creative")


def test_load_toml_rcon_section(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[rcon]\nhost = "h"\npassword = "p"\n', encoding="utf-8")

    config = load_config_from_toml(path)
    assert config.host == "h"
    assert config.password == "p"


def test_load_toml_root(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('host = "root-host"\ntimeout = 3\n', encoding="utf-8")

    config = load_config_from_toml(path)
    assert config.host == "root-host"
    assert config.timeout == 3.0


def test_load_toml_file_not_found(tmp_path):
    with pytest.raises(ConfigError, match="配置文件未找到"):
        load_config_from_toml(tmp_path / "nope.toml")


def test_load_toml_invalid_syntax(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("host = \n", encoding="utf-8")

    with pytest.raises(ConfigError, match="读取 TOML 失败"):
        load_config_from_toml(path)


def test_read_toml_profile_returns_unvalidated_fields(tmp_path):
    """原始读取不做校验，缺少 host 的配置块也能被取出并由调用方补齐"""
    path = tmp_path / "config.toml"
    path.write_text('[profile.default]\npassword = "pw"\nport = 25580\n', encoding="utf-8")

    raw = read_toml_profile(path)
    assert raw == {"password": "pw", "port": 25580}

    with pytest.raises(ConfigError, match="host"):
        load_config_from_toml(path)

    raw["host"] = "h"
    assert create_config_from_dict(raw).port == 25580


# --- 环境变量测试 ---


def test_load_env(clean_env):
    clean_env.setenv("RCON_HOST", "env-host")
    clean_env.setenv("RCON_PORT", "25599")
    clean_env.setenv("RCON_PASSWORD", "env-pw")
    clean_env.setenv("RCON_STRICT", "1")

    config = load_config_from_env()
    assert config.host == "env-host"
    assert config.port == 25599
    assert config.password == "env-pw"
    assert config.strict is True


def test_load_env_empty(clean_env):
    with pytest.raises(ConfigError, match="RCON_"):
        load_config_from_env()


def test_load_env_from_dotenv_file(clean_env, tmp_path):
    env_file = tmp_path / "custom.env"
    env_file.write_text("RCON_HOST=dotenv-host\nRCON_PASSWORD=dotenv-pw\n", encoding="utf-8")

    config = load_config_from_env(env_file)
    assert config.host == "dotenv-host"
    assert config.password == "dotenv-pw"


def test_dotenv_does_not_override_existing(clean_env, tmp_path):
    (tmp_path / ".env").write_text("RCON_HOST=from-file\n", encoding="utf-8")
    clean_env.setenv("RCON_HOST", "from-env")

    assert load_config_from_env().host == "from-env"


def test_read_env_values_empty_and_partial(clean_env):
    assert read_env_values() == {}

    clean_env.setenv("RCON_PASSWORD", "env-pw")
    assert read_env_values() == {"password": "env-pw"}
