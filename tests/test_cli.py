"""Tests for CLI functionality."""

import json
from unittest.mock import patch

import pytest

from order_audit import __version__
from order_audit.cli import EXIT_ERROR, EXIT_OK, EXIT_PROBLEMS, main


class TestCLI:
    """Test cases for CLI commands."""

    def test_cli_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0
        assert "Order Audit" in capsys.readouterr().out

    def test_cli_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert f"Order Audit {__version__}" in capsys.readouterr().out

    def test_cli_no_command(self, capsys):
        assert main([]) == EXIT_ERROR
        assert "audit" in capsys.readouterr().out

    def test_audit_text_report(self, orders_file, capsys):
        result = main(["audit", "--file", str(orders_file), "--top-k", "2", "--gmv"])
        assert result == EXIT_OK
        out = capsys.readouterr().out
        assert "Invalid orders : 2" in out
        assert "Orders: 5, Lines: 8, Invalid: 2" in out
        assert "bob[at]example.com" in out
        assert "negative price" in out
        assert "1. PEN-RED: 5" in out
        assert "2. USB-32GB: 2" in out

    def test_audit_json_report(self, orders_file, capsys):
        result = main(["audit", "--file", str(orders_file), "--format", "json", "--gmv"])
        assert result == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["totalOrders"] == 5
        assert data["gmvByOrder"]["A-1001"] == pytest.approx(70.0)
        assert "topSkus" not in data

    def test_order_sets_flag(self, orders_file, capsys):
        result = main(["audit", "--file", str(orders_file), "--order-sets", "--format", "json"])
        assert result == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["correctlyRefunded"] == ["A-1004"]
        assert data["uncapturedPaid"] == []
        assert data["missingOrInvalidEmail"] == ["A-1002", "A-1003"]

    def test_order_sets_in_text_report(self, orders_file, capsys):
        main(["audit", "--file", str(orders_file), "--order-sets"])
        assert "Correctly refunded orders: A-1004" in capsys.readouterr().out

    def test_order_id_requires_mongo_source(self, orders_file):
        args = ["audit", "--file", str(orders_file), "--order-id", "A-1001"]
        assert main(args) == EXIT_ERROR

    @patch("order_audit.cli.OrderAuditService")
    def test_order_id_is_passed_to_collection_audit(self, mock_service_cls, orders):
        from order_audit.validation.report import build_report

        mock_service = mock_service_cls.return_value
        mock_service.audit_collection.return_value = build_report(orders[:1])

        result = main(["audit", "--source", "mongo", "--order-id", "A-1001"])

        assert result == EXIT_OK
        mock_service.audit_collection.assert_called_once_with(order_id="A-1001")

    def test_fail_on_problems(self, orders_file):
        args = ["audit", "--file", str(orders_file), "--fail-on-problems", "--format", "json"]
        assert main(args) == EXIT_PROBLEMS

    def test_tolerance_flag(self, orders_file, capsys):
        main(["audit", "--file", str(orders_file), "--tolerance", "0.05", "--format", "json"])
        assert json.loads(capsys.readouterr().out)["tolerance"] == 0.05

    def test_missing_file_argument(self):
        assert main(["audit"]) == EXIT_ERROR

    def test_unreadable_file(self, tmp_path):
        assert main(["audit", "--file", str(tmp_path / "missing.json")]) == EXIT_ERROR

    def test_invalid_env(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["audit", "--source", "mongo", "--env", "invalid"])
        assert exc_info.value.code != 0
        assert "invalid choice" in capsys.readouterr().err

    @patch("order_audit.cli.OrderAuditService")
    def test_mongo_source_uses_environment_keys(self, mock_service_cls, orders, mock_env):
        from order_audit.validation.report import build_report

        mock_service_cls.return_value.audit_collection.return_value = build_report(orders)

        result = main(["audit", "--source", "mongo", "--env", "prod"])

        assert result == EXIT_OK
        kwargs = mock_service_cls.call_args.kwargs
        assert kwargs["db_name"] == "test_production_db"
        assert kwargs["connection_url_env_key"] == "DB_CONNECTION_URL_PROD"

    def test_env_file_settings(self, orders_file, tmp_path, mock_env):
        env_file = tmp_path / ".env"
        env_file.write_text("", encoding="utf-8")
        args = ["--env-file", str(env_file), "audit", "--file", str(orders_file), "--format", "json"]
        # FAIL_ON_PROBLEMS=yes from the environment
        assert main(args) == EXIT_PROBLEMS
