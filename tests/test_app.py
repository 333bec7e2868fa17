"""Tests for the command entry point."""

from unittest.mock import patch

import pytest

from tradedesk.app import main


@pytest.fixture
def run_cli():
    with patch("tradedesk.app.configure_logging") as mock_configure, patch(
        "tradedesk.cli.run_cli"
    ) as mock_run_cli:
        yield mock_run_cli
    mock_configure.assert_called_once()


@pytest.mark.parametrize(
    "exit_code,expected",
    [
        (None, 0),
        (0, 0),
        (2, 2),
        ("configuration is broken", 1),
    ],
)
def test_system_exit_maps_to_return_code(run_cli, exit_code, expected):
    run_cli.side_effect = SystemExit(exit_code)

    assert main(["balances", "-e", "binance"]) == expected


def test_normal_return(run_cli):
    assert main(["exchanges"]) == 0
    run_cli.assert_called_once_with(["exchanges"])
