"""Tests for the operator CLI (knowledge_hub.cli.ingest)."""

from __future__ import annotations

from pathlib import Path

import pytest

from knowledge_hub.cli.ingest import (
    _build_parser,
    _handle_import_text,
    _handle_issue_token,
    _handle_search,
    _handle_stats,
    _handle_upload,
    main,
)
from knowledge_hub.config.settings import Settings
from knowledge_hub.providers.identity.signed_token_provider import SignedTokenIdentityProvider


def _write(tmp_path: Path, name: str, text: str) -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestParser:
    def test_import_text_arguments(self) -> None:
        args = _build_parser().parse_args(
            ["import-text", "--file", "sop.txt", "--start", "5000", "--format", "heading"]
        )
        assert args.command == "import-text"
        assert args.start == 5000
        assert args.format == "heading"
        assert args.prefix is None

    def test_upload_defaults_to_split(self) -> None:
        args = _build_parser().parse_args(["upload", "--file", "a.pdf"])
        assert args.mode == "split"

    def test_invalid_choice_exits(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["upload", "--file", "a.pdf", "--mode", "pages"])

    def test_no_command_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "import-text" in capsys.readouterr().out


class TestHandlers:
    async def test_import_then_search_and_stats(
        self, tmp_path: Path, test_settings: Settings, sop_text: str, capsys
    ) -> None:
        parser = _build_parser()
        path = _write(tmp_path, "sop.txt", sop_text)

        code = await _handle_import_text(
            parser.parse_args(["import-text", "--file", path, "--tags", "sop,desk"]),
            test_settings,
        )
        out = capsys.readouterr().out
        assert code == 0
        assert "Articles created: 3" in out
        assert "KB-001001" in out and "KB-001003" in out

        await _handle_search(parser.parse_args(["search", "--query", "vpn"]), test_settings)
        out = capsys.readouterr().out
        assert "KB-001003" in out
        assert "Provision a VPN token" in out

        await _handle_stats(test_settings)
        out = capsys.readouterr().out
        assert "Knowledge Base Statistics" in out
        assert "Total articles:   3" in out

    async def test_search_without_hits(self, test_settings: Settings, capsys) -> None:
        args = _build_parser().parse_args(["search", "--query", "nothing"])
        assert await _handle_search(args, test_settings) == 0
        assert "No results." in capsys.readouterr().out

    async def test_upload_single(self, tmp_path: Path, test_settings: Settings, capsys) -> None:
        path = _write(tmp_path, "guide.md", "One whole guide.")
        args = _build_parser().parse_args(["upload", "--file", path, "--mode", "single"])

        assert await _handle_upload(args, test_settings) == 0
        assert "Articles created: 1" in capsys.readouterr().out

    def test_issue_token_requires_secret(self, test_settings: Settings, capsys) -> None:
        args = _build_parser().parse_args(["issue-token", "--id", "alice", "--role", "admin"])

        assert _handle_issue_token(args, test_settings) == 1
        assert "AUTH_SECRET" in capsys.readouterr().err

    def test_issue_token(self, db_path: Path, capsys) -> None:
        app_settings = Settings(db_path=str(db_path), auth_secret="cli-secret")
        args = _build_parser().parse_args(["issue-token", "--id", "alice", "--role", "admin"])

        assert _handle_issue_token(args, app_settings) == 0
        token = capsys.readouterr().out.strip()
        identity = SignedTokenIdentityProvider("cli-secret").authenticate(token)
        assert (identity.id, identity.role) == ("alice", "admin")


class TestMain:
    def test_domain_error_exits_with_one(
        self, tmp_path: Path, db_path: Path, monkeypatch, capsys
    ) -> None:
        monkeypatch.setenv("DB_PATH", str(db_path))
        path = _write(tmp_path, "notes.txt", "no boundaries in here")

        with pytest.raises(SystemExit) as exc_info:
            main(["import-text", "--file", path])

        assert exc_info.value.code == 1
        assert "Error: No sections found" in capsys.readouterr().err

    def test_missing_file_exits_with_one(self, db_path: Path, monkeypatch, capsys) -> None:
        monkeypatch.setenv("DB_PATH", str(db_path))

        with pytest.raises(SystemExit) as exc_info:
            main(["upload", "--file", str(db_path.parent / "absent.pdf")])

        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_stats_succeeds(self, db_path: Path, monkeypatch, capsys) -> None:
        monkeypatch.setenv("DB_PATH", str(db_path))

        with pytest.raises(SystemExit) as exc_info:
            main(["stats"])

        assert exc_info.value.code == 0
        assert "Total articles:   0" in capsys.readouterr().out
