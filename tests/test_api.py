"""
Tests for the Flask HTTP routes.
"""

import io
import pathlib

import pytest
from PIL import Image

from conftest import make_gradient
from dupematch.app import create_app
from dupematch.features import GradientHistogramExtractor
from dupematch.index import ImageIndex
from dupematch.orchestrator import MatchingOrchestrator


def encode(image, fmt='PNG'):
    buf = io.BytesIO()
    image.save(buf, fmt)
    return buf.getvalue()


def upload(image, filename='upload.png', fmt='PNG'):
    return (io.BytesIO(encode(image, fmt)), filename)


@pytest.fixture
def orchestrator():
    return MatchingOrchestrator(ImageIndex(extractor=GradientHistogramExtractor()))


@pytest.fixture
def images_dir(temp_dir):
    path = temp_dir / "images"
    path.mkdir()
    return path


@pytest.fixture
def app(isolated_config, orchestrator, images_dir):
    app = create_app(orchestrator, str(images_dir))
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def add(client, image, filename='upload.png', **form):
    return client.post(
        '/admin/add',
        data={'image': upload(image, filename), **form},
        content_type='multipart/form-data',
    )


class TestAddImage:
    """Test POST /admin/add."""

    def test_add(self, client, orchestrator, images_dir, red_image):
        response = add(client, red_image, 'red.png')
        assert response.status_code == 200
        body = response.get_json()
        assert body['message'] == 'Image added successfully'
        assert body['filename'].endswith('_red.png')
        assert body['hash'] in orchestrator.index
        assert (images_dir / body['filename']).exists()

    def test_custom_name(self, client, red_image):
        response = add(client, red_image, 'IMG_0001.png', name='logo')
        assert response.get_json()['filename'].endswith('_logo.png')

    def test_duplicate_conflict(self, client, red_image):
        add(client, red_image, 'red.png')
        response = add(client, red_image, 'again.png')
        assert response.status_code == 409
        assert 'red.png' in response.get_json()['error']

    def test_unsupported_extension(self, client, orchestrator):
        response = client.post(
            '/admin/add',
            data={'image': (io.BytesIO(b'hello'), 'notes.txt')},
            content_type='multipart/form-data',
        )
        assert response.status_code == 400
        assert len(orchestrator.index) == 0

    def test_undecodable(self, client):
        response = client.post(
            '/admin/add',
            data={'image': (io.BytesIO(b'not really a png'), 'fake.png')},
            content_type='multipart/form-data',
        )
        assert response.status_code == 400

    def test_missing_file(self, client):
        response = client.post('/admin/add', data={}, content_type='multipart/form-data')
        assert response.status_code == 400

    def test_too_large(self, app, client, gradient_image):
        app.config['MAX_UPLOAD_BYTES'] = 100
        response = add(client, gradient_image, 'big.png')
        assert response.status_code == 413

    def test_save_failure_rolls_back(self, client, orchestrator, red_image, monkeypatch):
        def fail(self, data):
            raise OSError("disk full")

        monkeypatch.setattr(pathlib.Path, 'write_bytes', fail)
        response = add(client, red_image, 'red.png')
        assert response.status_code == 500
        assert len(orchestrator.index) == 0


class TestRecognize:
    """Test POST /recognize."""

    def post(self, client, image, **form):
        return client.post(
            '/recognize',
            data={'image': upload(image), **form},
            content_type='multipart/form-data',
        )

    def test_match(self, client, red_image):
        add(client, red_image, 'red.png')
        body = self.post(client, red_image).get_json()
        assert body['result'] == 'OK'
        assert body['similarity'] == 100.0
        assert body['matched_image'].endswith('_red.png')
        assert body['method'] == 'hash'
        assert body['processing_time_ms'] >= 0

    def test_no_match(self, client, red_image, blue_image):
        add(client, red_image, 'red.png')
        body = self.post(client, blue_image).get_json()
        assert body['result'] == 'NOT OK'
        assert body['similarity'] < 85

    def test_threshold_field(self, client, red_image, blue_image):
        add(client, red_image, 'red.png')
        assert self.post(client, blue_image, threshold='10').get_json()['result'] == 'OK'

    def test_nan_threshold_uses_default(self, client, red_image, blue_image):
        add(client, red_image, 'red.png')
        response = self.post(client, blue_image, threshold='nan')
        assert response.status_code == 200
        assert response.get_json()['result'] == 'NOT OK'

    def test_unparseable_threshold_uses_default(self, client, red_image):
        add(client, red_image, 'red.png')
        response = self.post(client, red_image, threshold='high')
        assert response.status_code == 200
        assert response.get_json()['result'] == 'OK'

    def test_descriptor_method(self, client, gradient_image):
        add(client, gradient_image, 'gradient.png')
        body = self.post(client, make_gradient()).get_json()
        assert body['result'] == 'OK'
        assert body['method'] == 'descriptor'

    def test_empty_index(self, client, red_image):
        body = self.post(client, red_image).get_json()
        assert body['result'] == 'NOT OK'
        assert body['similarity'] == 0.0
        assert body['matched_image'] == ''

    def test_missing_image(self, client):
        response = client.post('/recognize', data={}, content_type='multipart/form-data')
        assert response.status_code == 400

    def test_invalid_image(self, client):
        response = client.post(
            '/recognize',
            data={'image': (io.BytesIO(b'garbage'), 'x.png')},
            content_type='multipart/form-data',
        )
        assert response.status_code == 400


class TestCompare:
    """Test POST /compare."""

    def test_same_image(self, client, gradient_image):
        response = client.post(
            '/compare',
            data={'image1': upload(gradient_image, 'a.png'), 'image2': upload(gradient_image, 'b.png')},
            content_type='multipart/form-data',
        )
        body = response.get_json()
        assert body['similarity'] == pytest.approx(100.0)
        assert body['match'] is True

    def test_different_images(self, client, red_image, blue_image):
        response = client.post(
            '/compare',
            data={'image1': upload(red_image, 'a.png'), 'image2': upload(blue_image, 'b.png')},
            content_type='multipart/form-data',
        )
        assert response.get_json()['match'] is False

    def test_missing_second_image(self, client, red_image):
        response = client.post(
            '/compare',
            data={'image1': upload(red_image, 'a.png')},
            content_type='multipart/form-data',
        )
        assert response.status_code == 400


class TestAdmin:
    """Test toggle and listing routes."""

    def test_toggle(self, client, orchestrator):
        body = client.post('/admin/toggle-ml', data={'enable': 'false'}).get_json()
        assert body['status'] == 'disabled'
        assert orchestrator.index.get_mode() is False

        body = client.post('/admin/toggle-ml', data={'enable': 'TRUE'}).get_json()
        assert body['status'] == 'enabled'
        assert orchestrator.index.get_mode() is True

    def test_toggle_status_only(self, client, orchestrator):
        orchestrator.index.toggle_mode(False)
        body = client.post('/admin/toggle-ml', data={}).get_json()
        assert body['status'] == 'disabled'
        assert orchestrator.index.get_mode() is False

    def test_list_images(self, client, red_image, blue_image):
        add(client, red_image, 'red.png')
        add(client, blue_image, 'blue.png')
        body = client.get('/admin/images').get_json()
        assert body['count'] == 2
        names = [image['filename'] for image in body['images']]
        assert names[0].endswith('_red.png')
        assert names[1].endswith('_blue.png')
        assert all('descriptor' not in image for image in body['images'])
        assert all(image['thumbnail'] for image in body['images'])
