from unittest.mock import MagicMock

import pytest
import requests

from loopgen.client import PredictionClient

from tests.helpers import API_BASE


def _make_response(json_data=None, status_code=200, content=b"", headers=None, json_error=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    resp.headers = headers or {}
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = json_data
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    resp.iter_content.return_value = [content[:2], content[2:]]
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    return resp


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return PredictionClient(
        api_token="test-token",
        base_url=API_BASE,
        model_version="test-version",
        session=session,
    )
