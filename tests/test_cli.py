import pytest
import yaml
from click.testing import CliRunner

from folio.cli import cli
from folio.core.contracts.models import Documents
from folio.utils.errors import FetchError


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    path = tmp_path / "folio.yaml"
    path.write_text(yaml.safe_dump({
        "content": {"origin": "http://site.test"},
        "settings": {"path": str(tmp_path / "settings.yaml")},
    }))
    return path


def test_settings_command_saves_values(config_file, tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["-c", str(config_file), "settings", "--owner", "me", "--repo", "site"])

    assert result.exit_code == 0, result.output
    with open(tmp_path / "settings.yaml", encoding="utf-8") as f:
        assert yaml.safe_load(f) == {"repo_owner": "me", "repo_name": "site"}
    assert "repo_owner" in result.output


def test_render_command_writes_page(config_file, tmp_path, mocker):
    mocker.patch(
        "folio.cli.DocumentStore.load_all",
        return_value=Documents(
            profile={"name": "Ada", "headline": "Engineer"},
            services={"services": []},
            portfolio={"projects": []},
        ),
    )
    output = tmp_path / "index.html"

    result = CliRunner().invoke(cli, ["-c", str(config_file), "render", "-o", str(output)])

    assert result.exit_code == 0, result.output
    html = output.read_text(encoding="utf-8")
    assert "<h1>Ada</h1>" in html
    assert "<h2>Engineer</h2>" in html


def test_render_command_reports_fetch_errors(config_file, tmp_path, mocker):
    mocker.patch(
        "folio.cli.DocumentStore.load_all",
        side_effect=FetchError("portfolio", "Not Found", status=404),
    )

    result = CliRunner().invoke(cli, ["-c", str(config_file), "render", "-o", str(tmp_path / "out.html")])

    assert result.exit_code == 1
    assert "portfolio.json" in result.output
