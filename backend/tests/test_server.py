def test_health_check_reports_pool(client):
    resp = client.get('/api/health-check')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['status'] == 'ok'
    assert body['database'] is True
    assert set(body['pool']) >= {'pool_size', 'checked_out', 'utilization_percent'}


def test_unknown_route_is_json_404(client):
    resp = client.get('/api/nowhere')
    assert resp.status_code == 404
    assert resp.get_json()['path'] == '/api/nowhere'
