import json
import logging
import re

from fastapi.testclient import TestClient

from tuitionhub.main import app
from tuitionhub.utils.tuition_codes import TuitionCodeAllocator

client = TestClient(app)

PAYLOAD = {
    'guardian_name': 'Karim Uddin',
    'guardian_number': '01811000000',
    'student_class': 'Class 10',
    'version': 'Bangla Medium',
    'subjects': ['Chemistry'],
    'salary': '6000',
    'location': 'Mirpur',
}


def test_create_tuition_generates_code():
    r = client.post('/tuitions', json=PAYLOAD)
    assert r.status_code == 201
    body = r.json()
    assert body['success'] is True
    assert body['generated_code'] == 'ST110'
    assert body['tuition']['code'] == 'ST110'
    assert body['tuition']['status'] == 'open'


def test_create_tuition_with_taken_manual_code():
    assert client.post('/tuitions', json={**PAYLOAD, 'code': '777'}).status_code == 201
    r = client.post('/tuitions', json={**PAYLOAD, 'code': 'ST777'})
    assert r.status_code == 400
    assert 'ST777' in r.json()['detail']


def test_create_tuition_validates_payload():
    r = client.post('/tuitions', json={**PAYLOAD, 'version': 'Klingon Medium'})
    assert r.status_code == 422
    r = client.post('/tuitions', json={k: v for k, v in PAYLOAD.items() if k != 'student_class'})
    assert r.status_code == 422


def test_check_code():
    client.post('/tuitions', json={**PAYLOAD, 'code': '150'})
    r = client.get('/tuitions/codes/check', params={'code': '150'})
    assert r.json() == {'code': 'ST150', 'available': False}
    r = client.get('/tuitions/codes/check', params={'code': 'ST151'})
    assert r.json() == {'code': 'ST151', 'available': True}
    assert client.get('/tuitions/codes/check', params={'code': ' '}).status_code == 400


def test_unused_codes_endpoint():
    client.post('/tuitions', json={**PAYLOAD, 'code': 'ST150'})
    r = client.get('/tuitions/unused-codes')
    assert r.status_code == 200
    data = r.json()['data']
    assert data['next_available'] == 'ST151'
    assert data['total_used'] == 1
    assert data['total_unused'] == 850
    assert len(data['unused_codes']) == 50


def test_public_tuition_hides_guardian_details():
    client.post('/tuitions', json=PAYLOAD)
    r = client.get('/tuitions/public/st110')
    assert r.status_code == 200
    body = r.json()
    assert body['code'] == 'ST110'
    assert body['subjects'] == ['Chemistry']
    assert 'guardian_number' not in body
    assert 'guardian_name' not in body


def test_public_tuition_not_found():
    assert client.get('/tuitions/public/ST999').status_code == 404


def test_request_id_header_exists():
    r = client.get('/health')
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}
    assert re.fullmatch(r'[0-9a-f]{32}', r.headers['X-Request-ID'])
    r = client.get('/health', headers={'X-Request-ID': 'abc'})
    assert r.headers['X-Request-ID'] == 'abc'


def test_create_tuition_conflict_after_retries(monkeypatch):
    assert client.post('/tuitions', json={**PAYLOAD, 'code': 'ST110'}).status_code == 201
    monkeypatch.setattr(TuitionCodeAllocator, 'allocate', lambda self: 'ST110')
    r = client.post('/tuitions', json=PAYLOAD)
    assert r.status_code == 409
    assert 'race condition' in r.json()['detail']


def test_manual_code_losing_race_is_conflict_without_retry(monkeypatch):
    assert client.post('/tuitions', json={**PAYLOAD, 'code': 'ST200'}).status_code == 201
    allocations = []

    def allocate(self):
        allocations.append(True)
        return 'ST201'

    # the availability check passed before another request stored ST200
    monkeypatch.setattr(TuitionCodeAllocator, 'is_code_available', lambda self, code: True)
    monkeypatch.setattr(TuitionCodeAllocator, 'allocate', allocate)
    r = client.post('/tuitions', json={**PAYLOAD, 'code': '200'})
    assert r.status_code == 409
    assert 'Tuition code already exists' in r.json()['detail']
    assert allocations == []


def test_tuition_requests_are_logged(caplog):
    caplog.set_level(logging.INFO, logger='tuitionhub.api')
    client.get('/tuitions/public/ST404', headers={'X-Request-ID': 'req-404'})
    lines = [rec.getMessage() for rec in caplog.records if rec.name == 'tuitionhub.api']
    assert lines and lines[-1].startswith('request_done ')
    fields = json.loads(lines[-1].split(' ', 1)[1])
    assert fields['request_id'] == 'req-404'
    assert fields['path'] == '/tuitions/public/ST404'
    assert fields['status_code'] == 404
