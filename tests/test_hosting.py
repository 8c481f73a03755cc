import base64
import json

import httpx
import pytest

from folio.config.models import HostingConfig, SessionCredentials
from folio.core.hosting.github import GitHubClient, decode_content, encode_content
from folio.core.hosting.router import get_hosting
from folio.utils.errors import HostingError

CONTENTS_URL = "https://api.github.com/repos/me/site/contents/profile.json"


@pytest.fixture
def client():
    return GitHubClient(HostingConfig(), token="gh-token", owner="me", repo="site")


def github_content(document):
    # GitHub breaks the base64 text into 60-character lines.
    encoded = base64.b64encode(json.dumps(document).encode("utf-8")).decode("ascii")
    return "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60)) + "\n"


def response(status, body=None, method="GET"):
    return httpx.Response(status, json=body, request=httpx.Request(method, CONTENTS_URL))


def test_get_hosting_uses_credentials():
    creds = SessionCredentials(hosting_token="t", repo_owner="me", repo_name="site")
    hosting = get_hosting(HostingConfig(), creds)
    assert isinstance(hosting, GitHubClient)
    assert (hosting.owner, hosting.repo, hosting.branch) == ("me", "site", "main")


@pytest.mark.asyncio
async def test_read_file_decodes_content_and_token(client, mocker):
    document = {"name": "José Ñúñez", "headline": "B"}
    mock_get = mocker.patch(
        "httpx.AsyncClient.get",
        return_value=response(200, {"content": github_content(document), "sha": "shaOld"}),
    )

    revision = await client.read_file("profile.json")

    assert revision.content == document
    assert revision.revision_token == "shaOld"
    assert mock_get.call_args[0][0] == CONTENTS_URL
    assert mock_get.call_args[1]["headers"]["Authorization"] == "Bearer gh-token"
    assert mock_get.call_args[1]["params"] == {"ref": "main"}


@pytest.mark.asyncio
async def test_read_file_requires_repository(mocker):
    mock_get = mocker.patch("httpx.AsyncClient.get")
    client = GitHubClient(HostingConfig(), token="gh-token", owner="me", repo=None)

    with pytest.raises(HostingError, match="Repository settings missing"):
        await client.read_file("profile.json")
    mock_get.assert_not_called()


@pytest.mark.asyncio
async def test_read_file_not_found(client, mocker):
    mocker.patch("httpx.AsyncClient.get", return_value=response(404, {"message": "Not Found"}))

    with pytest.raises(HostingError, match="Failed to fetch profile.json from GitHub API \\(404\\): Not Found"):
        await client.read_file("profile.json")


@pytest.mark.asyncio
async def test_read_file_network_error(client, mocker):
    mocker.patch("httpx.AsyncClient.get", side_effect=httpx.ConnectError("offline"))

    with pytest.raises(HostingError, match="offline"):
        await client.read_file("profile.json")


@pytest.mark.asyncio
async def test_write_file_sends_conditional_update(client, mocker):
    mock_put = mocker.patch(
        "httpx.AsyncClient.put",
        return_value=response(200, {"content": {"sha": "shaNew"}}, method="PUT"),
    )
    merged = {"name": "José", "headline": "X"}

    token = await client.write_file("profile.json", merged, "Update headline", "shaOld")

    assert token == "shaNew"
    assert mock_put.call_args[0][0] == CONTENTS_URL
    payload = mock_put.call_args[1]["json"]
    assert payload["message"] == "Update headline"
    assert payload["sha"] == "shaOld"
    assert payload["branch"] == "main"
    decoded = base64.b64decode(payload["content"]).decode("utf-8")
    assert decoded == json.dumps(merged, indent=2, ensure_ascii=False)


@pytest.mark.asyncio
async def test_write_file_surfaces_api_message(client, mocker):
    mocker.patch(
        "httpx.AsyncClient.put",
        return_value=response(409, {"message": "profile.json does not match shaOld"}, method="PUT"),
    )

    with pytest.raises(HostingError) as excinfo:
        await client.write_file("profile.json", {"a": 1}, "msg", "shaOld")
    assert str(excinfo.value) == "profile.json does not match shaOld"


@pytest.mark.asyncio
async def test_write_file_without_message_body(client, mocker):
    mocker.patch("httpx.AsyncClient.put", return_value=response(500, method="PUT"))

    with pytest.raises(HostingError, match="Failed to update profile.json"):
        await client.write_file("profile.json", {"a": 1}, "msg", "shaOld")


def test_encoding_survives_non_ascii_text():
    document = {"bio": "Zürich → 東京"}
    assert decode_content(encode_content(document)) == document


def test_decode_content_rejects_garbage():
    with pytest.raises(HostingError):
        decode_content("%%% not base64 %%%")
    with pytest.raises(HostingError, match="not a JSON object"):
        decode_content(base64.b64encode(b"[1, 2]").decode("ascii"))


@pytest.mark.asyncio
async def test_read_file_rejects_non_string_content(client, mocker):
    mocker.patch("httpx.AsyncClient.get", return_value=response(200, {"content": None, "sha": "abc"}))

    with pytest.raises(HostingError, match="could not be decoded"):
        await client.read_file("profile.json")
