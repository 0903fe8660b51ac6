import pytest

from pdfdedup.application.services import KeepPolicy, SciHubOnlyPolicy
from pdfdedup.config import DedupSettings

_ENV_VARS = [
    "ZOTERO_API_KEY",
    "PDFDEDUP_LIBRARY_TYPE",
    "PDFDEDUP_LIBRARY_ID",
    "PDFDEDUP_STORAGE_DIR",
    "PDFDEDUP_KEEP_POLICY",
    "PDFDEDUP_SCIHUB_ONLY_POLICY",
    "PDFDEDUP_INFER_TIER",
    "PDFDEDUP_RULES_PATH",
    "PDFDEDUP_DRY_RUN",
    "PDFDEDUP_TIMEOUT_S",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = DedupSettings.from_env()

    assert settings.library_type == "user"
    assert settings.library_id == ""
    assert settings.keep_policy is KeepPolicy.LATEST_MODIFIED
    assert settings.sci_hub_only_policy is SciHubOnlyPolicy.GROUPED
    assert settings.infer_tier_from_hint is False
    assert settings.rules_path is None
    assert settings.dry_run is False
    assert settings.timeout_s == 30.0


def test_from_env_reads_every_variable(clean_env, tmp_path):
    clean_env.setenv("ZOTERO_API_KEY", "secret")
    clean_env.setenv("PDFDEDUP_LIBRARY_TYPE", " Group ")
    clean_env.setenv("PDFDEDUP_LIBRARY_ID", "4711")
    clean_env.setenv("PDFDEDUP_STORAGE_DIR", str(tmp_path))
    clean_env.setenv("PDFDEDUP_KEEP_POLICY", "earliest")
    clean_env.setenv("PDFDEDUP_SCIHUB_ONLY_POLICY", "single")
    clean_env.setenv("PDFDEDUP_INFER_TIER", "yes")
    clean_env.setenv("PDFDEDUP_RULES_PATH", "rules.yaml")
    clean_env.setenv("PDFDEDUP_DRY_RUN", "1")
    clean_env.setenv("PDFDEDUP_TIMEOUT_S", "5.5")

    settings = DedupSettings.from_env()

    assert settings.api_key == "secret"
    assert settings.library_type == "group"
    assert settings.library_id == "4711"
    assert settings.storage_path == tmp_path
    assert settings.keep_policy is KeepPolicy.EARLIEST_MODIFIED
    assert settings.sci_hub_only_policy is SciHubOnlyPolicy.SINGLE
    assert settings.infer_tier_from_hint is True
    assert settings.rules_path == "rules.yaml"
    assert settings.dry_run is True
    assert settings.timeout_s == 5.5


def test_storage_path_expands_user():
    settings = DedupSettings()
    assert "~" not in str(settings.storage_path)


@pytest.mark.parametrize(
    "kwargs",
    [{"keep_policy": "newest"}, {"sci_hub_only_policy": "all"}],
)
def test_invalid_policy_rejected(kwargs):
    with pytest.raises(ValueError):
        DedupSettings(**kwargs)


def test_invalid_policy_from_env(clean_env):
    clean_env.setenv("PDFDEDUP_KEEP_POLICY", "biggest")
    with pytest.raises(ValueError, match="keep_policy"):
        DedupSettings.from_env()
