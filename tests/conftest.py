import io
from os.path import abspath, dirname, join
from urllib.parse import urlencode
from wsgiref.util import setup_testing_defaults

import pytest

from wiki import create_app

TEMPLATES_DIRECTORY = join(dirname(dirname(abspath(__file__))), 'templates')


class Result:
    def __init__(self, status, headers, content):
        self.status = status
        self.status_code = int(status.split(' ', 1)[0])
        self.headers = dict(headers)
        self.content = content


def call(app, path, method='GET', form=None, query='', data=None,
         content_type='application/x-www-form-urlencoded'):
    """Run a single request through the wsgi app."""
    environ = {
        'PATH_INFO': path,
        'REQUEST_METHOD': method,
        'QUERY_STRING': query,
    }

    if form is not None:
        data = urlencode(form).encode()

    if data is not None:
        environ['CONTENT_TYPE'] = content_type
        environ['CONTENT_LENGTH'] = str(len(data))
        environ['wsgi.input'] = io.BytesIO(data)

    setup_testing_defaults(environ)
    captured = {}

    def start_response(status, headers):
        captured['status'] = status
        captured['headers'] = headers

    content = b''.join(app(environ, start_response))
    return Result(captured['status'], captured['headers'], content)


def multipart(fields, boundary=b'wikiformboundary'):
    """Encode a dict of bytes fields as a multipart/form-data body."""
    lines = []
    for name, value in fields.items():
        lines += [
            b'--' + boundary,
            b'Content-Disposition: form-data; name="' + name.encode() + b'"',
            b'',
            value,
        ]
    lines += [b'--' + boundary + b'--', b'']

    content_type = 'multipart/form-data; boundary=' + boundary.decode()
    return b'\r\n'.join(lines), content_type


class Config:
    def __init__(self, base):
        self.BASE_ROOT = str(base)
        self.PAGES_DIRECTORY = str(base / 'content')
        self.TEMPLATES_DIRECTORY = TEMPLATES_DIRECTORY
        self.HOST = ''
        self.PORT = 8080


@pytest.fixture
def config(tmp_path):
    return Config(tmp_path)


@pytest.fixture
def app(config):
    return create_app(config)


@pytest.fixture
def content_dir(config):
    return config.PAGES_DIRECTORY
