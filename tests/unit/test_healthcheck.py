"""Tests for the pre-run health checks."""

import logging

import redis
from unittest.mock import MagicMock, patch

from doorkeep.errors import FetchError
from doorkeep.healthcheck import check_serpapi, check_slack, check_store, run_health_checks
from doorkeep.store import DynamoDBResultStore, MemoryResultStore, RedisResultStore


class TestCheckSerpapi:

    def test_missing_key(self):
        client = MagicMock(api_key="")
        result = check_serpapi(client)
        assert not result.healthy
        client.account.assert_not_called()

    def test_quota_left(self):
        client = MagicMock(api_key="k")
        client.account.return_value = {"total_searches_left": 12, "plan_name": "Developer"}
        result = check_serpapi(client)
        assert result.healthy
        assert result.details == {"plan": "Developer", "searches_left": 12}

    def test_quota_exhausted(self):
        client = MagicMock(api_key="k")
        client.account.return_value = {"total_searches_left": 0}
        assert not check_serpapi(client).healthy

    def test_connection_failure(self):
        client = MagicMock(api_key="k")
        client.account.side_effect = FetchError("<account>", "connection refused")
        result = check_serpapi(client)
        assert not result.healthy
        assert "connection refused" in result.message


class TestCheckStore:

    def test_memory_store(self):
        result = check_store(MemoryResultStore())
        assert result.healthy
        assert result.message == "memory reachable"

    def test_dynamodb_describes_table(self):
        client = MagicMock()
        client.describe_table.return_value = {"Table": {"TableStatus": "ACTIVE", "ItemCount": 3}}
        client.get_item.return_value = {}
        result = check_store(DynamoDBResultStore(table_name="doorkeep", client=client))
        assert result.healthy
        client.describe_table.assert_called_once_with(TableName="doorkeep")

    def test_redis_ping_failure(self):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("refused")
        result = check_store(RedisResultStore(client=client))
        assert not result.healthy
        assert result.message.startswith("redis:")

    def test_probe_never_inserts(self):
        store = MemoryResultStore()
        check_store(store)
        assert len(store) == 0


class TestCheckSlack:

    def test_dry_run_needs_no_webhook(self):
        assert check_slack("", dry_run=True).healthy

    def test_missing_webhook(self):
        assert not check_slack("").healthy

    def test_plain_http_rejected(self):
        assert not check_slack("http://hooks.slack.com/services/x").healthy

    def test_configured(self):
        assert check_slack("https://hooks.slack.com/services/T/B/X").healthy


class TestRunHealthChecks:

    @patch("doorkeep.healthcheck.check_serpapi")
    def test_all_healthy(self, mock_serpapi, test_config, capsys):
        from doorkeep.healthcheck import HealthCheckResult
        mock_serpapi.return_value = HealthCheckResult(service="SerpAPI", healthy=True, message="Connected")

        healthy, results = run_health_checks(test_config(), MemoryResultStore())

        assert healthy
        assert [r.service for r in results] == ["SerpAPI", "Store", "Slack"]
        assert "[OK  ] Store" in capsys.readouterr().out

    @patch("doorkeep.healthcheck.check_serpapi")
    def test_one_failure_fails_all(self, mock_serpapi, test_config):
        from doorkeep.healthcheck import HealthCheckResult
        mock_serpapi.return_value = HealthCheckResult(service="SerpAPI", healthy=False, message="down")

        healthy, _ = run_health_checks(test_config(), MemoryResultStore(), verbose=False)

        assert not healthy

    @patch("doorkeep.healthcheck.check_serpapi")
    def test_failure_is_logged_with_reason(self, mock_serpapi, test_config, caplog):
        from doorkeep.healthcheck import HealthCheckResult
        mock_serpapi.return_value = HealthCheckResult(service="SerpAPI", healthy=False, message="quota exhausted")

        with caplog.at_level(logging.ERROR, logger="doorkeep"):
            healthy, _ = run_health_checks(test_config(), MemoryResultStore(), verbose=False)

        assert not healthy
        assert 'Health check failed: SerpAPI | Context: {"reason": "quota exhausted"}' in caplog.text


class TestCliHealthcheck:

    @patch("doorkeep.healthcheck.check_serpapi")
    def test_unhealthy_exits_one(self, mock_serpapi, test_config, capsys):
        import main as cli
        from doorkeep.healthcheck import HealthCheckResult
        mock_serpapi.return_value = HealthCheckResult(service="SerpAPI", healthy=False, message="down")

        with patch("main.reload_config", return_value=test_config()):
            exit_code = cli.main(["--healthcheck"])

        assert exit_code == 1
        assert "[FAIL] SerpAPI: down" in capsys.readouterr().out
