"""
Tests for the shared request executor.
"""

import json
import logging
from unittest.mock import patch, MagicMock

import pytest
import requests

from libtogglpu import TogglApi, TogglRequest, TOGGL_URL


def _response(status_code=200, text=''):
    r = MagicMock()
    r.status_code = status_code
    r.ok = status_code < 400
    r.text = text
    if status_code >= 400:
        r.raise_for_status.side_effect = requests.HTTPError('%d Error' % status_code)
    return r


@pytest.fixture
def api():
    return TogglApi(TOGGL_URL, ('token', 'api_token'), timeout=10)


def test_base_url(api):
    assert api.base_url == 'https://api.track.toggl.com/api/v9'


@patch('libtogglpu.requests.request')
def test_post_sends_json_body(mock_request, api):
    mock_request.return_value = _response(text='{"id": 1, "pid": 10, "uid": 20}')

    body = {'project_user': {'pid': 10, 'uid': 20}}
    result = api.api_request('workspaces/5/project_users', TogglRequest('POST', body))

    assert result == {'id': 1, 'pid': 10, 'uid': 20}
    args, kwargs = mock_request.call_args
    assert args == ('POST', 'https://api.track.toggl.com/api/v9/workspaces/5/project_users')
    assert json.loads(kwargs['data']) == body
    assert kwargs['auth'] == ('token', 'api_token')
    assert kwargs['headers'] == {'content-type': 'application/json'}
    assert kwargs['timeout'] == 10


@patch('libtogglpu.requests.request')
def test_delete_without_body(mock_request, api):
    mock_request.return_value = _response(text='')

    assert api.delete_project_user(99, 5) is None
    args, kwargs = mock_request.call_args
    assert args == ('DELETE', 'https://api.track.toggl.com/api/v9/workspaces/5/project_users/99')
    assert kwargs['data'] is None


@patch('libtogglpu.requests.request')
def test_batch_path_keeps_commas(mock_request, api):
    mock_request.return_value = _response(text='')

    api.delete_project_users([1, 2], 5)
    args, _ = mock_request.call_args
    assert args[1].endswith('/workspaces/5/project_users/1,2')


@patch('libtogglpu.requests.request')
def test_http_errors_pass_through(mock_request, api):
    mock_request.return_value = _response(status_code=403, text='Forbidden')

    with pytest.raises(requests.HTTPError):
        api.update_project_user(1, 5, {'manager': True})


@patch('libtogglpu.requests.request')
def test_transport_errors_pass_through(mock_request, api):
    mock_request.side_effect = requests.ConnectionError('down')

    with pytest.raises(requests.ConnectionError):
        api.add_project_user(1, 2, 5)


@patch('libtogglpu.requests.request')
def test_error_reason_is_logged(mock_request, api, caplog):
    mock_request.return_value = _response(status_code=400, text='bad project id')
    caplog.set_level(logging.DEBUG, logger='libtogglpu')

    with pytest.raises(requests.HTTPError):
        api.delete_project_user(1, 5)

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert [r.getMessage() for r in errors] == ['Error reason: bad project id']


@pytest.mark.parametrize('verbose, level', [(True, logging.INFO), (False, logging.DEBUG)])
@patch('libtogglpu.requests.request')
def test_request_logging_level_follows_verbose(mock_request, caplog, verbose, level):
    mock_request.return_value = _response(text='{"id": 1}')
    caplog.set_level(logging.DEBUG, logger='libtogglpu')
    api = TogglApi(TOGGL_URL, ('token', 'api_token'), verbose=verbose)

    api.update_project_user(1, 5, {'rate': 2})

    messages = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert (level, 'PUT https://api.track.toggl.com/api/v9/workspaces/5/project_users/1') in messages
    assert (level, '{"id": 1}') in messages
