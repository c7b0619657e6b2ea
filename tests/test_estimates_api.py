import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from estimator import create_app, db
from estimator.models import Estimate


def setup_app():
    app = create_app('testing')
    with app.app_context():
        db.drop_all()
        db.create_all()
    return app


def estimate_payload(**overrides):
    data = {
        'client_name': 'Dana Reyes',
        'client_email': 'dana@example.com',
        'project_address': '12 Elm St',
        'city': 'Los Angeles',
        'state': 'CA',
        'work_type': 'residential_panel_upgrade',
        'scope_of_work': 'Upgrade 100A panel to 200A',
        'pricing': {
            'labor_hours': 8,
            'hourly_rate': 75,
            'markup_percentage': 20,
            'materials': [{'description': 'Breaker', 'quantity': 2, 'unit_cost': 15}],
        },
    }
    data.update(overrides)
    return data


def test_create_prices_on_the_server():
    app = setup_app()
    client = app.test_client()
    resp = client.post('/api/estimates/', json=estimate_payload())
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['success'] is True
    pricing = body['data']['pricing']
    assert pricing['labor']['total'] == 600
    assert pricing['materials']['subtotal'] == 30
    assert pricing['subtotal'] == 630
    assert pricing['markup_amount'] == pytest.approx(126)
    assert pricing['total'] == pytest.approx(756)
    assert body['data']['status'] == 'draft'


def test_create_uses_settings_defaults():
    app = setup_app()
    client = app.test_client()
    client.put('/api/settings/', json={'default_hourly_rate': 100, 'default_markup_percentage': 10})
    payload = estimate_payload(pricing={'labor_hours': 2})
    resp = client.post('/api/estimates/', json=payload)
    pricing = resp.get_json()['data']['pricing']
    assert pricing['labor']['hourly_rate'] == 100
    assert pricing['total'] == pytest.approx(220)


def test_create_validation_errors():
    app = setup_app()
    client = app.test_client()
    resp = client.post('/api/estimates/', json=estimate_payload(work_type='plumbing'))
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Validation failed'

    bad = estimate_payload()
    bad['pricing']['materials'][0]['quantity'] = -1
    assert client.post('/api/estimates/', json=bad).status_code == 400

    assert client.post('/api/estimates/', json=estimate_payload(client_email='nope')).status_code == 400


def test_patch_recomputes_pricing():
    app = setup_app()
    client = app.test_client()
    est_id = client.post('/api/estimates/', json=estimate_payload()).get_json()['data']['id']

    resp = client.patch(f'/api/estimates/{est_id}', json={'pricing': {'markup_percentage': 0}, 'status': 'sent'})
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['status'] == 'sent'
    assert data['pricing']['total'] == 630
    # untouched inputs survive
    assert data['pricing']['labor']['hours'] == 8
    assert data['pricing']['materials']['items'][0]['description'] == 'Breaker'

    resp = client.patch(f'/api/estimates/{est_id}', json={
        'pricing': {'materials': [{'description': 'Panel', 'quantity': 1, 'unit_cost': 400}]},
    })
    data = resp.get_json()['data']
    assert data['pricing']['materials']['subtotal'] == 400
    assert data['pricing']['total'] == 1000


def test_estimates_are_scoped_to_user():
    app = setup_app()
    client = app.test_client()
    est_id = client.post('/api/estimates/', json=estimate_payload(),
                         headers={'X-User-Id': 'alice'}).get_json()['data']['id']

    assert client.get(f'/api/estimates/{est_id}', headers={'X-User-Id': 'bob'}).status_code == 404
    assert client.delete(f'/api/estimates/{est_id}', headers={'X-User-Id': 'bob'}).status_code == 404
    assert client.get('/api/estimates/', headers={'X-User-Id': 'bob'}).get_json()['data'] == []
    assert len(client.get('/api/estimates/', headers={'X-User-Id': 'alice'}).get_json()['data']) == 1


def test_delete_estimate():
    app = setup_app()
    client = app.test_client()
    est_id = client.post('/api/estimates/', json=estimate_payload()).get_json()['data']['id']
    resp = client.delete(f'/api/estimates/{est_id}')
    assert resp.status_code == 200
    with app.app_context():
        assert db.session.get(Estimate, est_id) is None
    assert client.get(f'/api/estimates/{est_id}').status_code == 404


def test_sync_skips_duplicates():
    app = setup_app()
    client = app.test_client()
    client.post('/api/estimates/', json=estimate_payload())
    resp = client.post('/api/estimates/sync', json={'estimates': [
        estimate_payload(),
        estimate_payload(client_name='Sam Cole', project_address='9 Oak Ave'),
    ]})
    body = resp.get_json()
    assert resp.status_code == 200
    assert body['imported'] == 1
    assert body['skipped'] == 1
    assert body['errors'] == []
    with app.app_context():
        assert Estimate.query.count() == 2


def test_collection_routes_work_without_trailing_slash():
    app = setup_app()
    client = app.test_client()
    resp = client.post('/api/estimates', json=estimate_payload())
    assert resp.status_code == 201
    resp = client.get('/api/estimates')
    assert resp.status_code == 200
    assert len(resp.get_json()['data']) == 1


def test_email_must_be_a_real_address():
    app = setup_app()
    client = app.test_client()
    for bad in ('a@b', 'x@@y.com', 'nope'):
        resp = client.post('/api/estimates/', json=estimate_payload(client_email=bad))
        assert resp.status_code == 400, bad
    # a blank form field means no email
    resp = client.post('/api/estimates/', json=estimate_payload(client_email=''))
    assert resp.status_code == 201
    assert resp.get_json()['data']['client_email'] is None


def test_patch_null_for_required_field_is_rejected():
    app = setup_app()
    client = app.test_client()
    est_id = client.post('/api/estimates/', json=estimate_payload()).get_json()['data']['id']

    resp = client.patch(f'/api/estimates/{est_id}', json={'client_name': None})
    assert resp.status_code == 400
    assert 'client_name may not be null' in resp.get_json()['details'][0]['msg']

    # optional columns can still be cleared
    resp = client.patch(f'/api/estimates/{est_id}', json={'client_email': None, 'notes': None})
    assert resp.status_code == 200
    assert client.get(f'/api/estimates/{est_id}').get_json()['data']['client_name'] == 'Dana Reyes'
