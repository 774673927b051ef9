"""CLI: JSON output per command and exit codes, with the data service patched out."""
from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest

from token_analytics import __version__
from token_analytics.cli import main, to_jsonable
from token_analytics.core.errors import ConfigurationError, ProviderExhausted
from token_analytics.providers.base import PriceData, ProviderId, ProviderResult, TokenSummary
from token_analytics.providers.cache import CacheStats
from token_analytics.synthetic import SyntheticDataGenerator


def _service(**methods):
    service = MagicMock()
    service.__enter__.return_value = service
    service.__exit__.return_value = False
    for name, value in methods.items():
        setattr(service, name, value)
    return service


class TestToJsonable:
    def test_provider_result(self):
        result = ProviderResult(data=PriceData(price=2.0), source=ProviderId.MOCK, cached=True)
        assert to_jsonable(result) == {
            "source": "mock",
            "cached": True,
            "synthetic": True,
            "data": {"price": 2.0, "change_24h": None, "volume_24h": None, "market_cap": None},
        }

    def test_nested_containers(self):
        assert to_jsonable({ProviderId.CODEX: (1, [ProviderId.MOCK])}) == {"codex": [1, ["mock"]]}


class TestMain:
    @patch("token_analytics.cli.create_token_data_service")
    def test_price(self, mock_factory, capsys):
        result = ProviderResult(data=PriceData(price=1.25, change_24h=3.0), source=ProviderId.COINGECKO)
        service = _service(get_token_price=MagicMock(return_value=result))
        mock_factory.return_value = service

        assert main(["price", "meta"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["source"] == "coingecko"
        assert out["synthetic"] is False
        assert out["data"]["price"] == 1.25
        service.get_token_price.assert_called_once_with("meta")
        mock_factory.assert_called_once_with(start_janitor=False)

    @patch("token_analytics.cli.create_token_data_service")
    def test_holders_arguments(self, mock_factory, capsys):
        page = SyntheticDataGenerator().holders("meta", 3)
        service = _service(get_token_holders=MagicMock(return_value=ProviderResult(page, ProviderId.MOCK)))
        mock_factory.return_value = service

        assert main(["holders", "meta", "--limit", "3", "--cursor", "10"]) == 0
        service.get_token_holders.assert_called_once_with("meta", 3, "10")
        out = json.loads(capsys.readouterr().out)
        assert len(out["data"]["holders"]) == 3

    @patch("token_analytics.cli.create_token_data_service")
    def test_metrics_includes_score(self, mock_factory, capsys):
        metrics = SyntheticDataGenerator().metrics("meta")
        service = _service(get_token_metrics=MagicMock(return_value=ProviderResult(metrics, ProviderId.MOCK)))
        mock_factory.return_value = service

        assert main(["metrics", "meta"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["data"]["token_id"] == "meta"
        assert out["score"]["grade"] in {"A", "B", "C", "D", "F"}
        assert 0 <= out["score"]["overall"] <= 100

    @patch("token_analytics.cli.create_token_data_service")
    def test_batch_and_stats(self, mock_factory, capsys):
        prices = {"meta": ProviderResult(PriceData(price=1.0), ProviderId.DEFILLAMA)}
        stats = {"codex": CacheStats(hits=1, misses=1, size=1, max_size=10)}
        service = _service(
            get_batch_prices=MagicMock(return_value=prices),
            cache_stats=MagicMock(return_value=stats),
        )
        mock_factory.return_value = service

        assert main(["batch", "meta", "jup"]) == 0
        assert json.loads(capsys.readouterr().out)["meta"]["source"] == "defillama"
        service.get_batch_prices.assert_called_once_with(["meta", "jup"])

        assert main(["stats"]) == 0
        assert json.loads(capsys.readouterr().out)["codex"]["hit_rate"] == pytest.approx(0.5)

    @patch("token_analytics.cli.create_token_data_service")
    def test_exhausted_exit_code(self, mock_factory, capsys):
        error = ProviderExhausted("get_token_price", "meta", ["coingecko: TransportError: down"])
        mock_factory.return_value = _service(get_token_price=MagicMock(side_effect=error))

        assert main(["price", "meta"]) == 1
        assert capsys.readouterr().err.startswith("MOCKS_DISABLED")

    @patch("token_analytics.cli.create_token_data_service")
    def test_configuration_error_exit_code(self, mock_factory, capsys):
        mock_factory.side_effect = ConfigurationError("no usable provider for 'holders'")
        assert main(["holders", "meta"]) == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])
        assert __version__ in capsys.readouterr().out

    @patch("token_analytics.cli.create_token_data_service")
    def test_summaries(self, mock_factory, capsys):
        summary = TokenSummary(
            token_id="meta", name="MetaDAO", symbol="META", price=2.0, change_24h=1.0, market_cap=10.0,
            holders=2500, gini=0.7, nakamoto=3, buy_pressure=55.0, source=ProviderId.COINGECKO,
        )
        mock_factory.return_value = _service(get_all_token_summaries=MagicMock(return_value=[summary]))

        assert main(["summaries"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out == [to_jsonable(summary)]
        assert out[0]["source"] == "coingecko"
