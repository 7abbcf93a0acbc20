"""Tests for environment-resolved scan settings."""

import pytest

from riskscan.chains import CHAINS, DEFAULT_RPC_URL
from riskscan.config import ScanSettings, ScoringConfig, parse_fee_tiers


class TestFromEnv:
    def test_defaults(self) -> None:
        s = ScanSettings.from_env({})
        assert s.rpc_url == DEFAULT_RPC_URL
        assert s.weth == CHAINS["eth"]["weth"]
        assert s.fee_tiers == (500, 3000, 10000)
        assert s.ethplorer_api_key is None
        assert s.impact_mode == "quote"
        assert s.scoring == ScoringConfig()

    def test_env_values(self) -> None:
        s = ScanSettings.from_env({
            "ETH_RPC_URL": "http://node:8545",
            "ETHPLORER_API_KEY": " freekey ",
            "UNISWAP_V3_FEE_TIERS": "100, 500",
            "DEEP_LIQ_GATE": "1.5",
            "IMPACT_UNKNOWN_PENALTY": "55",
            "CONC_LOW": "5",
            "CONC_HIGH": "60",
            "IMPACT_MODE": "Heuristic",
        })
        assert s.rpc_url == "http://node:8545"
        assert s.ethplorer_api_key == "freekey"
        assert s.fee_tiers == (100, 500)
        assert s.scoring == ScoringConfig(deep_liq_gate=1.5, impact_unknown_penalty=55, conc_low=5, conc_high=60)
        assert s.impact_mode == "heuristic"

    def test_legacy_rpc_names(self) -> None:
        assert ScanSettings.from_env({"WEB3_PROVIDER_ETH": "http://a"}).rpc_url == "http://a"

    def test_bad_number(self) -> None:
        with pytest.raises(ValueError, match="CONC_LOW"):
            ScanSettings.from_env({"CONC_LOW": "ten"})

    def test_bad_impact_mode(self) -> None:
        with pytest.raises(ValueError, match="IMPACT_MODE"):
            ScanSettings.from_env({"IMPACT_MODE": "magic"})


class TestOverrides:
    def test_caller_wins(self) -> None:
        base = ScanSettings.from_env({"ETH_RPC_URL": "http://env"})
        s = base.with_overrides(rpc_url="http://caller", fee_tiers=[3000])
        assert s.rpc_url == "http://caller"
        assert s.fee_tiers == (3000,)
        assert base.rpc_url == "http://env"

    def test_no_overrides_is_identity(self) -> None:
        base = ScanSettings()
        assert base.with_overrides() is base


class TestParseFeeTiers:
    def test_dedupes_and_keeps_order(self) -> None:
        assert parse_fee_tiers("3000,500,3000") == (3000, 500)

    @pytest.mark.parametrize("raw", ["", "abc", "500,-1", " , "])
    def test_invalid(self, raw) -> None:
        with pytest.raises(ValueError):
            parse_fee_tiers(raw)


class TestOverrideValidation:
    def test_duplicate_caller_tiers_collapsed(self) -> None:
        s = ScanSettings().with_overrides(fee_tiers=[3000, 500, 3000])
        assert s.fee_tiers == (3000, 500)

    @pytest.mark.parametrize("tiers", [[3000, -1], [0], ["abc"]])
    def test_bad_caller_tiers_rejected(self, tiers) -> None:
        with pytest.raises(ValueError):
            ScanSettings().with_overrides(fee_tiers=tiers)


class TestPositiveNumbers:
    @pytest.mark.parametrize("raw", ["0", "-3000"])
    def test_numeraire_price_must_be_positive(self, raw) -> None:
        with pytest.raises(ValueError, match="NUMERAIRE_USD_PRICE"):
            ScanSettings.from_env({"NUMERAIRE_USD_PRICE": raw})

    def test_http_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="HTTP_TIMEOUT"):
            ScanSettings.from_env({"HTTP_TIMEOUT": "0"})
