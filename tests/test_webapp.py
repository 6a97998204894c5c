"""
Tests for the upload web service.
"""

import io

import pytest

from webapp.app import app
from tests.builders import (
    OEVENT_FORMAT,
    STANDARD_COMPETITOR,
    make_html,
    make_oe_csv,
    make_oe_row,
    single_course,
)


@pytest.fixture
def client():
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


class TestFormats:
    def test_lists_formats(self, client):
        response = client.get('/api/formats')
        assert response.status_code == 200
        assert response.get_json() == {'formats': ['oe_csv', 'html'], 'default_order': ['oe_csv', 'html']}


class TestParse:
    """Tests for POST /api/parse."""

    def test_raw_body(self, client):
        response = client.post('/api/parse', data=make_oe_csv([make_oe_row()]).encode('utf-8'))

        assert response.status_code == 200
        event = response.get_json()
        assert event['classes'][0]['name'] == 'Class 1'
        assert event['classes'][0]['course'] == 'Course 1'
        assert event['courses'][0]['controls'] == ['208', '227', '212']
        assert event['warnings'] == []

    def test_file_upload(self, client):
        html = make_html(OEVENT_FORMAT, single_course([STANDARD_COMPETITOR]))
        response = client.post(
            '/api/parse',
            data={'file': (io.BytesIO(html.encode('utf-8')), 'results.html')},
            content_type='multipart/form-data'
        )

        assert response.status_code == 200
        result = response.get_json()['classes'][0]['results'][0]
        assert result['name'] == 'Test runner'
        assert result['cum_times'] == [0, 107, 242, 493, 565]

    def test_named_format(self, client):
        response = client.post('/api/parse?format=oe_csv', data=make_oe_csv([make_oe_row()]).encode('utf-8'))
        assert response.status_code == 200

    def test_wrong_named_format(self, client):
        response = client.post('/api/parse?format=html', data=make_oe_csv([make_oe_row()]).encode('utf-8'))
        assert response.status_code == 415

    def test_no_data(self, client):
        response = client.post('/api/parse', data=b'')
        assert response.status_code == 400

    def test_unknown_format(self, client):
        response = client.post('/api/parse?format=iof_xml', data=b'anything')
        assert response.status_code == 400
        assert 'iof_xml' in response.get_json()['error']

    def test_unrecognised_data(self, client):
        response = client.post('/api/parse', data=b'This is not a results file')
        assert response.status_code == 415
        assert response.get_json()['kind'] == 'wrong_file_format'

    def test_invalid_data(self, client):
        """Data that is recognized but cannot be read."""
        row = make_oe_row()
        text = make_oe_csv([row]) + ';'.join(row[:20]) + '\n'
        response = client.post('/api/parse', data=text.encode('utf-8'))

        assert response.status_code == 422
        assert response.get_json()['kind'] == 'invalid_data'

    def test_encoding(self, client):
        data = make_oe_csv([make_oe_row(club='Åbo OK')]).encode('latin-1')
        response = client.post('/api/parse?encoding=latin-1', data=data)

        assert response.status_code == 200
        assert response.get_json()['classes'][0]['results'][0]['club'] == 'Åbo OK'

    def test_undecodable(self, client):
        data = make_oe_csv([make_oe_row(club='Åbo OK')]).encode('latin-1')
        response = client.post('/api/parse', data=data)
        assert response.status_code == 400

    def test_unknown_encoding(self, client):
        response = client.post('/api/parse?encoding=not-an-encoding', data=b'anything')
        assert response.status_code == 400


class TestErrors:
    def test_not_found(self, client):
        response = client.get('/api/nothing')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Not found'}
