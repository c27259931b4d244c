from __future__ import annotations

import pytest

from client import DEFAULT_SESSION, BotCredentials, read_credentials


def test_read_credentials_from_mapping() -> None:
    credentials = read_credentials({"API_ID": "12345", "API_HASH": "abc", "BOT_TOKEN": "1:xyz"})

    assert credentials == BotCredentials(api_id=12345, api_hash="abc", bot_token="1:xyz")
    assert credentials.session_name == DEFAULT_SESSION


def test_read_credentials_keeps_custom_session() -> None:
    environ = {"API_ID": "1", "API_HASH": "abc", "BOT_TOKEN": "1:xyz", "SESSION_NAME": "garage"}

    assert read_credentials(environ).session_name == "garage"


@pytest.mark.parametrize(
    ("environ", "message"),
    [
        ({"API_ID": "1", "API_HASH": "abc"}, "BOT_TOKEN"),
        ({"BOT_TOKEN": "1:xyz"}, "API_ID, API_HASH"),
        ({"API_ID": "one", "API_HASH": "abc", "BOT_TOKEN": "1:xyz"}, "integer"),
    ],
)
def test_read_credentials_fails_fast(environ: dict, message: str) -> None:
    with pytest.raises(RuntimeError, match=message):
        read_credentials(environ)
