import pytest


async def notifications_of(ac, user, **params):
    res = await ac.get('/api/notifications', params=params, headers=user['headers'])
    assert res.status_code == 200, res.text
    return res.json()


@pytest.mark.asyncio
async def test_message_notifies_other_participants(client, users):
    alice, bob, _ = users
    await client.post('/api/messages', json={'recipientId': bob['id'], 'content': 'hey'}, headers=alice['headers'])

    body = await notifications_of(client, bob)
    assert body['meta']['totalCount'] == 1
    assert body['meta']['unreadCount'] == 1
    notification = body['notifications'][0]
    assert notification['type'] == 'message'
    assert notification['content'] == 'New message from Alice'
    assert notification['isRead'] is False
    assert notification['sender']['id'] == alice['id']

    assert (await notifications_of(client, alice))['meta']['totalCount'] == 0


@pytest.mark.asyncio
async def test_pagination_meta(client, users):
    alice, bob, _ = users
    for i in range(3):
        await client.post('/api/messages', json={'recipientId': bob['id'], 'content': f'm{i}'}, headers=alice['headers'])

    body = await notifications_of(client, bob, limit=2, page=2)
    assert len(body['notifications']) == 1
    assert body['meta'] == {'totalCount': 3, 'unreadCount': 3, 'page': 2, 'limit': 2, 'pageCount': 2}

    res = await client.get('/api/notifications', params={'limit': 0}, headers=bob['headers'])
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_mark_read_by_ids_is_scoped_to_owner(client, users):
    alice, bob, carol = users
    await client.post('/api/messages', json={'recipientId': bob['id'], 'content': 'to bob'}, headers=alice['headers'])
    await client.post('/api/messages', json={'recipientId': carol['id'], 'content': 'to carol'}, headers=alice['headers'])
    bob_ids = [n['id'] for n in (await notifications_of(client, bob))['notifications']]
    carol_ids = [n['id'] for n in (await notifications_of(client, carol))['notifications']]

    res = await client.patch('/api/notifications', json={'ids': bob_ids + carol_ids}, headers=bob['headers'])
    assert res.status_code == 200
    assert res.json()['success'] is True

    assert (await notifications_of(client, bob))['meta']['unreadCount'] == 0
    assert (await notifications_of(client, carol))['meta']['unreadCount'] == 1


@pytest.mark.asyncio
async def test_mark_all_read(client, users):
    alice, bob, _ = users
    for i in range(2):
        await client.post('/api/messages', json={'recipientId': bob['id'], 'content': f'm{i}'}, headers=alice['headers'])

    res = await client.patch('/api/notifications', json={'all': True}, headers=bob['headers'])
    assert res.status_code == 200
    assert res.json()['message'] == 'All notifications marked as read'
    assert (await notifications_of(client, bob))['meta']['unreadCount'] == 0


@pytest.mark.asyncio
async def test_mark_read_requires_target(client, users):
    res = await client.patch('/api/notifications', json={}, headers=users[0]['headers'])
    assert res.status_code == 400
    res = await client.patch('/api/notifications', json={'ids': []}, headers=users[0]['headers'])
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_delete_by_ids_is_scoped_to_owner(client, users):
    alice, bob, carol = users
    for i in range(2):
        await client.post('/api/messages', json={'recipientId': bob['id'], 'content': f'm{i}'}, headers=alice['headers'])
    await client.post('/api/messages', json={'recipientId': carol['id'], 'content': 'to carol'}, headers=alice['headers'])
    bob_ids = [n['id'] for n in (await notifications_of(client, bob))['notifications']]
    carol_ids = [n['id'] for n in (await notifications_of(client, carol))['notifications']]

    ids = ','.join(str(i) for i in [bob_ids[0]] + carol_ids)
    res = await client.delete('/api/notifications', params={'ids': ids}, headers=bob['headers'])
    assert res.status_code == 200, res.text
    assert res.json() == {'success': True, 'message': 'Notifications deleted'}

    remaining = await notifications_of(client, bob)
    assert [n['id'] for n in remaining['notifications']] == bob_ids[1:]
    assert (await notifications_of(client, carol))['meta']['totalCount'] == 1


@pytest.mark.asyncio
async def test_delete_all(client, users):
    alice, bob, carol = users
    for i in range(3):
        await client.post('/api/messages', json={'recipientId': bob['id'], 'content': f'm{i}'}, headers=alice['headers'])
    await client.post('/api/messages', json={'recipientId': carol['id'], 'content': 'to carol'}, headers=alice['headers'])

    res = await client.delete('/api/notifications', params={'all': 'true'}, headers=bob['headers'])
    assert res.status_code == 200
    assert res.json()['message'] == 'All notifications deleted'
    assert (await notifications_of(client, bob))['meta']['totalCount'] == 0
    assert (await notifications_of(client, carol))['meta']['totalCount'] == 1


@pytest.mark.asyncio
async def test_delete_requires_target(client, users):
    alice, bob, _ = users
    await client.post('/api/messages', json={'recipientId': bob['id'], 'content': 'hey'}, headers=alice['headers'])

    for params in [{}, {'ids': ''}, {'all': 'false'}, {'ids': 'x,1'}]:
        res = await client.delete('/api/notifications', params=params, headers=bob['headers'])
        assert res.status_code == 400, params
    assert (await notifications_of(client, bob))['meta']['totalCount'] == 1
