"""Tests for the command-line entry point."""

from unittest.mock import patch

import pytest


@pytest.fixture
def isolated_env(tmp_path, monkeypatch, isolated_logging):
    monkeypatch.setenv("PIPELINE_DB_PATH", str(tmp_path / "ideas.db"))
    monkeypatch.setenv("PIPELINE_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("PIPELINE_REPORT_DIR", str(tmp_path / "reports"))
    return tmp_path


def test_missing_api_key_exits_2(isolated_env, monkeypatch):
    import main

    monkeypatch.setenv("MODEL_API_KEY", "")

    assert main.main(["idea", "Meal kits from local farms"]) == 2


def test_idea_run_writes_report(isolated_env, monkeypatch, fake_client, idea_sentiment_text):
    import frontmatter
    import main

    monkeypatch.setenv("MODEL_API_KEY", "test-key")
    client = fake_client([idea_sentiment_text])

    with patch("main.ModelClient", return_value=client):
        exit_code = main.main(["idea", "Meal kits from local farms", "--name", "FarmBox"])

    assert exit_code == 0
    reports = list((isolated_env / "reports").glob("idea-*.md"))
    assert len(reports) == 1
    post = frontmatter.load(reports[0])
    assert post["subject"] == "FarmBox"
    assert post["model_calls"] == 11
    assert len(client.prompts) == 11


def test_aborted_run_exits_1(isolated_env, monkeypatch, fake_client):
    import main
    from ideas_finder.errors import ModelCallError

    monkeypatch.setenv("MODEL_API_KEY", "test-key")
    client = fake_client([ModelCallError(401, "bad key")])

    with patch("main.ModelClient", return_value=client):
        assert main.main(["idea", "Meal kits from local farms"]) == 1

    assert not (isolated_env / "reports").exists()


def test_show_rewrites_saved_report(isolated_env, monkeypatch, fake_client, idea_sentiment_text):
    import frontmatter
    import main

    monkeypatch.setenv("MODEL_API_KEY", "test-key")
    with patch("main.ModelClient", return_value=fake_client([idea_sentiment_text])):
        assert main.main(["idea", "Meal kits from local farms", "--name", "FarmBox"]) == 0

    (report,) = (isolated_env / "reports").glob("idea-*.md")
    slug = frontmatter.load(report)["share_slug"]
    report.unlink()

    # Re-export needs no model access
    monkeypatch.setenv("MODEL_API_KEY", "")
    with patch("main.ModelClient") as model_client:
        assert main.main(["show", slug]) == 0
    model_client.assert_not_called()

    post = frontmatter.load(isolated_env / "reports" / f"idea-{slug}.md")
    assert post["subject"] == "FarmBox"
    assert post["model_calls"] == 11


def test_show_unknown_slug_exits_1(isolated_env):
    import main

    assert main.main(["show", "missing-slug"]) == 1
    assert not (isolated_env / "reports").exists()
