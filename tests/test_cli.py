"""Tests for the helm-ingest command line."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from helm_manifest_ingest import __version__
from helm_manifest_ingest.cli import main


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def transcript_file(tmp_path: Path, transcript: str) -> Path:
    path = tmp_path / "dry-run.txt"
    path.write_text(transcript)
    return path


class TestParseCommand:
    def test_prints_manifest(self, runner: CliRunner, transcript_file: Path) -> None:
        result = runner.invoke(main, ["parse", str(transcript_file)])
        assert result.exit_code == 0
        assert "kind: Deployment" in result.stdout

    def test_json(self, runner: CliRunner, transcript_file: Path) -> None:
        result = runner.invoke(main, ["parse", str(transcript_file), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["release_name"] == "demo-release"
        assert data["namespace"] == "staging"
        assert "resources" not in data

    def test_stdin(self, runner: CliRunner, pod_and_service_json: str) -> None:
        result = runner.invoke(main, ["parse", "-"], input=pod_and_service_json)
        assert result.exit_code == 0
        assert "kind: Service" in result.stdout

    def test_empty_input_fails(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        result = runner.invoke(main, ["parse", str(path)])
        assert result.exit_code == 1
        assert "Input is empty" in result.output

    def test_verbose_shows_snippet(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "bad.txt"
        path.write_text("NAME: demo\nNAMESPACE: staging\n")
        result = runner.invoke(main, ["parse", str(path), "--verbose"])
        assert result.exit_code == 1
        assert "No MANIFEST section" in result.output
        assert "NAME: demo" in result.output

    def test_missing_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["parse", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2


class TestMetadataCommand:
    def test_json(self, runner: CliRunner, transcript_file: Path) -> None:
        result = runner.invoke(main, ["metadata", str(transcript_file), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["region"] == "us-west-2"
        assert data["account_id"] == "123456789012"
        assert data["sources"]["cluster"] == "values"
        assert "resources" not in data

    def test_overrides(self, runner: CliRunner, transcript_file: Path) -> None:
        result = runner.invoke(
            main,
            ["metadata", str(transcript_file), "--region", "eu-west-1", "--json"],
        )
        data = json.loads(result.stdout)
        assert data["region"] == "eu-west-1"
        assert data["sources"]["region"] == "override"

    def test_env_override(
        self, runner: CliRunner, transcript_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HELM_INGEST_CLUSTER", "from-env")
        result = runner.invoke(main, ["metadata", str(transcript_file), "--json"])
        assert json.loads(result.stdout)["cluster"] == "from-env"

    def test_table(self, runner: CliRunner, transcript_file: Path) -> None:
        result = runner.invoke(main, ["metadata", str(transcript_file)])
        assert result.exit_code == 0
        assert "Deployment Metadata" in result.stdout
        assert "nginx:1.25" in result.stdout


class TestSummaryCommand:
    def test_report(self, runner: CliRunner, transcript_file: Path) -> None:
        result = runner.invoke(main, ["summary", str(transcript_file)])
        assert result.exit_code == 0
        assert "HELM RELEASE SUMMARY" in result.stdout
        assert "demo-release" in result.stdout

    def test_writes_outputs(self, runner: CliRunner, transcript_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        result = runner.invoke(main, ["summary", str(transcript_file), "-o", str(out)])
        assert result.exit_code == 0
        assert (out / "analysis-input.json").exists()
        assert (out / "ingest-summary.md").exists()
        assert (out / "manifest.yaml").exists()

    def test_filter_removes_everything(self, runner: CliRunner, transcript_file: Path) -> None:
        result = runner.invoke(main, ["summary", str(transcript_file), "--kind-filter", "Job"])
        assert result.exit_code == 0
        assert "No Kubernetes resources left" in result.stdout


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
