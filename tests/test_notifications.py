"""Tests for the notify command."""

import pytest
from aiohttp import web
from multidict import MultiDict

from conftest import API_KEY
from tautulli.client import ClientOptions, TautulliClient
from tautulli.context import RequestContext
from tautulli.errors import CommandError, ContextError
from tautulli.notifications import APIResponse, NotifyParameters


class TestAPIResponse:
    """Test cases for the Tautulli response envelope."""

    def test_envelope(self):
        result = APIResponse.from_api_response(
            {'response': {'result': 'success', 'message': None, 'data': {'id': 4}}}
        )

        assert result == APIResponse(result='success', message=None, data={'id': 4})
        assert result.ok

    def test_error_envelope(self):
        result = APIResponse.from_api_response({'response': {'result': 'error', 'message': 'Invalid notifier_id'}})

        assert not result.ok
        assert result.message == 'Invalid notifier_id'

    def test_bare_payload(self):
        result = APIResponse.from_api_response([{'number': 1}])

        assert result.result is None
        assert result.data == [{'number': 1}]
        assert result.ok


class TestNotify:
    """Test cases for TautulliClient.notify."""

    @pytest.mark.asyncio
    async def test_notify_sends_expected_parameters(self, tautulli_server):
        client = TautulliClient(
            tautulli_server.base_url, API_KEY, options=ClientOptions(debug=True, callback='pong')
        )

        async def handler(request):
            return web.Response(text='[{"number":1}]', content_type='application/json')

        tautulli_server.handler = handler
        params = NotifyParameters(notifier_id=1, subject='test', body='test')

        response = await client.notify(RequestContext(), params)

        assert response.status == 200
        assert response.data.data == [{'number': 1}]
        [request] = tautulli_server.requests
        assert request.method == 'GET'
        assert request.query == MultiDict([
            ('apikey', 'test'),
            ('cmd', 'notify'),
            ('out_type', 'json'),
            ('callback', 'pong'),
            ('debug', '1'),
            ('notifier_id', '1'),
            ('subject', 'test'),
            ('body', 'test'),
        ])

    @pytest.mark.asyncio
    async def test_optional_parameters(self, client, tautulli_server):
        params = NotifyParameters(
            notifier_id=2,
            subject='New episode',
            body='S01E01 is available',
            headers='{"Authorization": "Bearer x"}',
            script_args='--show "The Rookie"',
        )

        await client.notify(RequestContext(), params)

        [request] = tautulli_server.requests
        assert request.query['headers'] == '{"Authorization": "Bearer x"}'
        assert request.query['script_args'] == '--show "The Rookie"'
        assert request.query['subject'] == 'New episode'

    @pytest.mark.asyncio
    async def test_empty_optional_parameters_are_omitted(self, client, tautulli_server):
        await client.notify(RequestContext(), NotifyParameters(notifier_id=1, subject='s', body='b'))

        [request] = tautulli_server.requests
        assert 'headers' not in request.query
        assert 'script_args' not in request.query

    @pytest.mark.asyncio
    async def test_success_envelope(self, client):
        response = await client.notify(RequestContext(), NotifyParameters(notifier_id=1, subject='s', body='b'))

        assert response.data.result == 'success'

    @pytest.mark.asyncio
    async def test_error_envelope_raises(self, client, tautulli_server):
        async def handler(request):
            return web.json_response({'response': {'result': 'error', 'message': 'Invalid notifier_id', 'data': {}}})

        tautulli_server.handler = handler

        with pytest.raises(CommandError) as exc_info:
            await client.notify(RequestContext(), NotifyParameters(notifier_id=99, subject='s', body='b'))

        assert exc_info.value.command == 'notify'
        assert exc_info.value.message == 'Invalid notifier_id'

    @pytest.mark.asyncio
    async def test_requires_context(self, client, tautulli_server):
        with pytest.raises(ContextError):
            await client.notify(None, NotifyParameters(notifier_id=1))

        assert tautulli_server.requests == []
