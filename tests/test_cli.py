"""
Tests for the medconnect-report command.
"""

import asyncio
from datetime import date

import httpx
import pytest

from medconnect.cli import build_parser, main, run_export
from medconnect.config import DEFAULT_SETTINGS
from medconnect.report_engine.query import ReportKind, ReportQuery


@pytest.fixture
def cli_settings(tmp_path):
    return dict(
        DEFAULT_SETTINGS,
        api_url="http://backend.test/api",
        session_file=str(tmp_path / "session.json"),
        output_dir=str(tmp_path / "out"),
    )


class TestParser:
    """Tests for argument parsing."""

    def test_filters(self):
        args = build_parser().parse_args([
            "appointments-analytics", "--start-date", "2024-01-01", "--end-date", "2024-01-31", "--search", "cardio",
        ])
        assert args.kind == "appointments-analytics"
        assert args.start_date == date(2024, 1, 1)
        assert args.end_date == date(2024, 1, 31)
        assert args.search == "cardio"

    def test_unknown_kind(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["finance"])

    def test_bad_date(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["user-overview", "--start-date", "31/01/2024"])

    def test_search_too_long(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["user-overview", "--search", "x" * 201])

    def test_search_at_limit(self):
        args = build_parser().parse_args(["user-overview", "--search", "x" * 200])
        assert len(args.search) == 200


class TestRunExport:
    """Tests for run_export()."""

    def test_writes_pdf(self, cli_settings, tmp_path, community_json):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json=community_json))
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)

        result = asyncio.run(run_export(query, cli_settings, transport=transport))

        assert result.success
        assert result.path.parent == tmp_path / "out"
        assert result.path.name.startswith("COMMUNITY_MANAGEMENT_SYSTEM_")
        assert result.path.read_bytes().startswith(b"%PDF")

    def test_fetch_failure(self, cli_settings, tmp_path):
        transport = httpx.MockTransport(lambda r: httpx.Response(401, json={"message": "Token expired"}))
        query = ReportQuery(kind=ReportKind.USER_OVERVIEW)

        result = asyncio.run(run_export(query, cli_settings, transport=transport))

        assert not result.success
        assert result.message == "Token expired"
        assert not (tmp_path / "out").exists()

    def test_stored_token_is_sent(self, cli_settings, tmp_path):
        (tmp_path / "session.json").write_text('{"token": "stored-token", "role": "admin", "user": {}}')
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        asyncio.run(run_export(ReportQuery(kind=ReportKind.USER_OVERVIEW), cli_settings,
                               transport=httpx.MockTransport(handler)))

        assert seen[0].headers["Authorization"] == "Bearer stored-token"


class TestMain:
    """Tests for main()."""

    def test_bad_kind_exits(self):
        with pytest.raises(SystemExit):
            main(["finance"])

    def test_unreachable_backend_returns_1(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setenv("MEDCONNECT_API_URL", "http://127.0.0.1:9/api")
        monkeypatch.setenv("MEDCONNECT_REQUEST_TIMEOUT", "1")
        monkeypatch.setenv("MEDCONNECT_SESSION_FILE", str(tmp_path / "session.json"))

        assert main(["user-overview", "--output-dir", str(tmp_path)]) == 1
        assert "Error: Failed to fetch report data" in capsys.readouterr().err
