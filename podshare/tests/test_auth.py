import pytest
from datetime import timedelta
from podshare.auth import create_access_token, SESSION_COOKIE_NAME


@pytest.mark.asyncio
async def test_healthz(client):
    res = await client.get('/healthz')
    assert res.status_code == 200
    assert res.json() == {'status': 'ok'}


@pytest.mark.asyncio
@pytest.mark.parametrize('method,path', [
    ('get', '/api/messages'),
    ('get', '/api/messages/unread'),
    ('post', '/api/messages'),
    ('post', '/api/uploads/initiate'),
    ('get', '/api/uploads/some-id'),
    ('get', '/api/notifications'),
    ('delete', '/api/notifications'),
])
async def test_protected_endpoints_require_session(client, method, path):
    res = await client.request(method.upper(), path)
    assert res.status_code == 401
    assert res.json() == {'detail': 'Unauthorized'}


@pytest.mark.asyncio
async def test_invalid_and_expired_tokens(client, users):
    res = await client.get('/api/messages/unread', headers={'Authorization': 'Bearer not-a-jwt'})
    assert res.status_code == 401

    expired = create_access_token({'id': users[0]['id']}, expires_delta=timedelta(minutes=-5))
    res = await client.get('/api/messages/unread', headers={'Authorization': f'Bearer {expired}'})
    assert res.status_code == 401

    no_id = create_access_token({'name': 'ghost'})
    res = await client.get('/api/messages/unread', headers={'Authorization': f'Bearer {no_id}'})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_session_cookie_and_sub_claim(client, users):
    alice = users[0]
    token = create_access_token({'sub': str(alice['id'])})
    res = await client.get('/api/messages/unread', headers={'Cookie': f'{SESSION_COOKIE_NAME}={token}'})
    assert res.status_code == 200
    assert res.json() == {'count': 0}
