import json

import pytest

from payledger.tax_tables import PolicyRepository, load_policy


def test_available_versions_lists_bundled_policy():
    versions = PolicyRepository().available_versions()

    assert "mm_2024" in versions
    assert versions == sorted(versions)


def test_default_policy_constants():
    policy = load_policy()

    assert policy.canonical_currency == "MMK"
    assert policy.reference_currency == "USD"
    assert policy.contribution_rate == 0.02
    assert policy.brackets[-1].width is None
    assert [b.rate for b in policy.brackets] == [0.0, 0.05, 0.10, 0.15, 0.20, 0.25]
    assert policy.currency("MMK").rate == 3500


def test_unknown_currency_in_policy_raises():
    with pytest.raises(KeyError):
        load_policy().currency("XYZ")


def test_load_missing_policy_version_raises(tmp_path):
    repo = PolicyRepository(tmp_path)

    with pytest.raises(FileNotFoundError):
        repo.load("missing")


def test_policy_without_unbounded_top_bracket_is_rejected(tmp_path):
    data = json.loads((PolicyRepository().base_path / "mm_2024.json").read_text(encoding="utf-8"))
    data["version"] = "capped"
    data["brackets"][-1]["width"] = 1_000_000
    (tmp_path / "capped.json").write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(ValueError):
        PolicyRepository(tmp_path).load("capped")
