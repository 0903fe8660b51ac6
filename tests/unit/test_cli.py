import json

from pdfdedup import __version__
from pdfdedup.application.services import KeepPolicy, SciHubOnlyPolicy
from pdfdedup.domain.attachment import AttachmentRecord
from pdfdedup.presentation.cli import main as cli_main


def _att(att_id, title, size, mtime=0.0):
    return AttachmentRecord(id=att_id, title=title, file_size=size, last_modified=mtime)


def _populate(store):
    store.add_parent(
        "PARENT01",
        [
            _att("ATT00001", "Published Version (Sci-Hub)", 100, mtime=1.0),
            _att("ATT00002", "Published Version", 200, mtime=2.0),
        ],
        title="Paper One",
    )
    store.add_parent(
        "PARENT02",
        [_att("ATT00003", "Preprint", 5, mtime=1.0), _att("ATT00004", "Preprint", 5, mtime=2.0)],
        title="Paper Two",
    )
    return store


def test_cli_dedupe_parser_flags():
    parser = cli_main.create_parser()
    args = parser.parse_args(
        [
            "dedupe",
            "-i",
            "PARENT01",
            "--item",
            "PARENT02",
            "--keep",
            "earliest",
            "--scihub-only",
            "single",
            "--library-type",
            "group",
            "--dry-run",
            "--json",
        ]
    )

    assert args.command == "dedupe"
    assert args.items == ["PARENT01", "PARENT02"]
    assert args.keep == "earliest"
    assert args.scihub_only == "single"
    assert args.library_type == "group"
    assert args.dry_run is True
    assert args.json is True


def test_build_settings_overrides_environment(monkeypatch):
    monkeypatch.setenv("PDFDEDUP_LIBRARY_ID", "111")
    monkeypatch.setenv("PDFDEDUP_KEEP_POLICY", "latest")
    parsed = cli_main.create_parser().parse_args(
        ["plan", "--library-id", "222", "--keep", "earliest", "--infer-tier"]
    )

    settings = cli_main.build_settings(parsed)

    assert settings.library_id == "222"
    assert settings.keep_policy is KeepPolicy.EARLIEST_MODIFIED
    assert settings.sci_hub_only_policy is SciHubOnlyPolicy.GROUPED
    assert settings.infer_tier_from_hint is True
    assert settings.dry_run is True


def test_build_store_requires_library_id(monkeypatch, capsys):
    monkeypatch.delenv("PDFDEDUP_LIBRARY_ID", raising=False)

    exit_code = cli_main.run_cli(["dedupe", "-i", "PARENT01"])

    assert exit_code == 1
    assert "library id is required" in capsys.readouterr().err


def test_cli_version(capsys):
    assert cli_main.run_cli(["--version"]) == 0
    assert capsys.readouterr().out.strip() == f"pdfdedup v{__version__}"


def test_cli_without_command_prints_help(capsys):
    assert cli_main.run_cli([]) == 0
    assert "dedupe" in capsys.readouterr().out


def test_cli_without_items_returns_usage_error(monkeypatch, fake_store, capsys):
    monkeypatch.setattr(cli_main, "build_store", lambda settings: fake_store)

    exit_code = cli_main.run_cli(["dedupe"])

    assert exit_code == 2
    assert "--item" in capsys.readouterr().err


def test_cli_dedupe_trashes_and_reports(monkeypatch, fake_store, capsys):
    _populate(fake_store)
    monkeypatch.setattr(cli_main, "build_store", lambda settings: fake_store)

    exit_code = cli_main.run_cli(["dedupe", "--all"])
    captured = capsys.readouterr()

    assert exit_code == 0
    assert sorted(fake_store.trashed) == ["ATT00001", "ATT00003"]
    assert "Successfully removed 2 attachments. Errors: 0" in captured.out


def test_cli_plan_prints_keep_and_remove(monkeypatch, fake_store, capsys):
    _populate(fake_store)
    monkeypatch.setattr(cli_main, "build_store", lambda settings: fake_store)

    exit_code = cli_main.run_cli(["plan", "-i", "PARENT01"])
    out = capsys.readouterr().out

    assert exit_code == 0
    assert fake_store.trash_attempts == []
    assert "keep    ATT00002" in out
    assert "remove  ATT00001  Published Version (Sci-Hub)" in out
    assert "Planned removal of 1 attachments (dry run)." in out


def test_cli_json_output(monkeypatch, fake_store, capsys):
    _populate(fake_store)
    monkeypatch.setattr(cli_main, "build_store", lambda settings: fake_store)

    exit_code = cli_main.run_cli(["dedupe", "-i", "PARENT02", "--dry-run", "--json"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["dry_run"] is True
    assert payload["total_planned"] == 1
    assert payload["plans"][0]["remove"][0]["id"] == "ATT00003"
    assert fake_store.trashed == []
