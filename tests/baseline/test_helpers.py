"""Tests for tlens.helpers: layered configuration."""

from tlens.helpers import DEFAULT_BACKEND_URL, DEFAULT_TESTNET_RPC, Settings, loadConfig


class TestSettings:
    def test_defaults(self):
        s = Settings.fromConfig({})

        assert s.backendUrl == DEFAULT_BACKEND_URL
        assert s.testnetRpc == DEFAULT_TESTNET_RPC
        assert s.walletRpc == ""
        assert s.oracleAddress == ""

    def test_configured_values_win(self):
        s = Settings.fromConfig(
            {
                "BACKEND_URL": " http://localhost:8000/ ",
                "ORACLE_ADDRESS": "0xabc",
                "TLENS_WALLET_RPC": "http://127.0.0.1:8545",
                "TLENS_CACHE_DIR": "/tmp/tl",
            }
        )

        assert s.backendUrl == "http://localhost:8000"
        assert s.oracleAddress == "0xabc"
        assert s.walletRpc == "http://127.0.0.1:8545"
        assert s.cacheDir == "/tmp/tl"

    def test_empty_values_fall_back(self):
        # dotenv reports "KEY=" as "" and a bare "KEY" as None
        s = Settings.fromConfig({"BACKEND_URL": "", "BSC_TESTNET_RPC": None})

        assert s.backendUrl == DEFAULT_BACKEND_URL
        assert s.testnetRpc == DEFAULT_TESTNET_RPC


def test_load_config_layers(tmp_path, monkeypatch):
    envfile = tmp_path / ".env.tlens"
    envfile.write_text("BACKEND_URL=http://from-file\nORACLE_ADDRESS=0xfile\n")

    monkeypatch.setenv("ORACLE_ADDRESS", "0xenv")
    monkeypatch.delenv("BACKEND_URL", raising=False)

    config = loadConfig(str(envfile))
    assert config["BACKEND_URL"] == "http://from-file"
    assert config["ORACLE_ADDRESS"] == "0xenv"
    assert config["TLENS_LOGDIR"] == "runlogs"
