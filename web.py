import logging
from http import HTTPStatus
from urllib.parse import parse_qs

from python_multipart.multipart import MultipartParser, parse_options_header

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded'
MULTIPART_CONTENT_TYPE = 'multipart/form-data'


class FormError(ValueError):
    """The request body claims to be a form but can not be parsed."""


def parse_urlencoded(value: str):
    """Parse a query string keeping every value as the raw bytes sent."""
    parsed = parse_qs(value, keep_blank_values=True, encoding='latin-1')
    return {key: [v.encode('latin-1') for v in values] for key, values in parsed.items()}


def parse_multipart(body: bytes, content_type: str):
    """Parse a multipart/form-data body, values are kept as bytes."""
    _, options = parse_options_header(content_type)
    boundary = options.get(b'boundary')
    if not boundary:
        raise FormError('Multipart form data missing boundary parameter')

    fields = {}
    part = {}
    finished = []

    def on_part_begin():
        part.clear()
        part.update(name=None, data=bytearray(), header=bytearray(), value=bytearray())

    def on_header_field(data, start, end):
        part['header'].extend(data[start:end])

    def on_header_value(data, start, end):
        part['value'].extend(data[start:end])

    def on_header_end():
        if part['header'].lower() == b'content-disposition':
            _, params = parse_options_header(bytes(part['value']))
            name = params.get(b'name')
            if name is not None:
                part['name'] = name.decode('latin-1')
        part['header'] = bytearray()
        part['value'] = bytearray()

    def on_part_data(data, start, end):
        part['data'].extend(data[start:end])

    def on_part_end():
        if part['name'] is not None:
            fields.setdefault(part['name'], []).append(bytes(part['data']))

    def on_end():
        finished.append(True)

    callbacks = {
        'on_part_begin': on_part_begin,
        'on_header_field': on_header_field,
        'on_header_value': on_header_value,
        'on_header_end': on_header_end,
        'on_part_data': on_part_data,
        'on_part_end': on_part_end,
        'on_end': on_end,
    }

    try:
        parser = MultipartParser(boundary, callbacks)
        parser.write(body)
        parser.finalize()
    except ValueError as e:
        raise FormError(f'Malformed multipart form data: {e}') from e

    if not finished:
        raise FormError('Multipart form data ended before the closing boundary')

    return fields


class Data:
    def __init__(self, environ, content_type=''):
        self.environ = environ
        self.data = parse_urlencoded(environ.get('QUERY_STRING', ''))

        if content_type not in (FORM_CONTENT_TYPE, MULTIPART_CONTENT_TYPE):
            return

        try:
            content_length = int(environ.get('CONTENT_LENGTH') or 0)
        except ValueError:
            content_length = 0

        stream = environ['wsgi.input'].read(content_length)

        if content_type == FORM_CONTENT_TYPE:
            fields = parse_urlencoded(stream.decode('latin-1'))
        else:
            fields = parse_multipart(stream, environ.get('CONTENT_TYPE', ''))

        # Body values take precedence over the query string, the same as a
        # form post read through a browser.
        for key, values in fields.items():
            self.data[key] = values + self.data.get(key, [])

    def __getitem__(self, item):
        """Get an item request.POST['item']"""
        return self.data[item][0]

    def get(self, key, default=None):
        try:
            return self[key]
        except KeyError:
            return default


class Request:
    def __init__(self, environ, app=None):
        self.environ = environ
        self.path_info = environ.get('PATH_INFO') or '/'
        self.method = environ.get('REQUEST_METHOD', 'GET').upper()
        self.content_type = environ.get('CONTENT_TYPE', '').split(';')[0].strip().lower()

        self._POST = None
        self.app = app

    @property
    def POST(self):
        """Form fields from the query string and body, raises FormError."""
        if self._POST is None:
            self._POST = Data(self.environ, self.content_type)
        return self._POST


class Response:
    def __init__(self, content=None, status: int = 200, headers: dict = None, content_type: str = None):
        if content is None:
            content = b''
        elif isinstance(content, str):
            content = content.encode('utf-8')

        self.content = content
        self.status_code = status
        self._headers = dict(headers or {})

        if content_type:
            self._headers['Content-Type'] = content_type
        self._headers['Content-Length'] = len(self.content)

    @property
    def status(self):
        return '%d %s' % (self.status_code, HTTPStatus(self.status_code).phrase)

    @property
    def headers(self):
        return [(str(k), str(v)) for k, v in self._headers.items()]

    def __iter__(self):
        return iter([self.content])


class Application:
    config = None
    templates = None
    store = None

    def __init__(self, config=None):
        self._handlers = []
        self.not_found_handler = not_found
        if config is not None:
            self.config = config

    def add_handler(self, prefix: str, handler):
        """Register a handler for every path starting with the given prefix."""
        self._handlers.append((prefix, handler))

    def resolve(self, path: str):
        for prefix, handler in self._handlers:
            if path.startswith(prefix):
                return handler
        return self.not_found_handler

    def __call__(self, environ, start_response):
        request = Request(environ, app=self)
        handler = self.resolve(request.path_info)
        response = handler(request)

        logger.debug('%s %s %d', request.method, request.path_info, response.status_code)
        start_response(response.status, response.headers)
        return response


# Utils

def redirect(location: str):
    """Shortcut to return a temporary redirect response."""
    return Response(status=302, headers={'Location': location})


def html_response(content: bytes, status=200):
    """Shortcut to return an already rendered html response."""
    return Response(content, status=status, content_type='text/html; charset=utf-8')


def text_response(content: str, status=200):
    """Shortcut to return a text/plain response."""
    return Response(content + '\n', status=status, content_type='text/plain; charset=utf-8')


def not_found(request):
    return text_response('404 page not found', status=404)
