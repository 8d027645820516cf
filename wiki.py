import logging
import os
from os.path import abspath, dirname, join
from wsgiref.simple_server import make_server

import wikihandlers
from utils import TemplateError, load_templates
from web import Application
from wikipage import PageStore

TEMPLATES_ROOT = join(dirname(abspath(__file__)), 'templates')


class Config:
    """Settings read from the environment when the config is created."""

    def __init__(self):
        self.BASE_ROOT = os.getcwd()
        self.PAGES_DIRECTORY = os.getenv('WIKI_PAGES_DIRECTORY', join(self.BASE_ROOT, 'content'))
        self.TEMPLATES_DIRECTORY = os.getenv('WIKI_TEMPLATES_DIRECTORY', TEMPLATES_ROOT)
        self.HOST = os.getenv('WIKI_HOST', '')
        self.PORT = int(os.getenv('WIKI_PORT', '8080'))


def create_app(config=None):
    """Build the wsgi application, templates are loaded once here."""
    config = config or Config()

    app = Application(config)
    app.templates = load_templates(config.TEMPLATES_DIRECTORY)
    app.store = PageStore(config.PAGES_DIRECTORY)

    app.add_handler(wikihandlers.VIEW_PATH, wikihandlers.view_handler)
    app.add_handler(wikihandlers.EDIT_PATH, wikihandlers.edit_handler)
    app.add_handler(wikihandlers.SAVE_PATH, wikihandlers.save_handler)

    return app


def main():
    logging.basicConfig(level=logging.INFO)

    try:
        config = Config()
    except ValueError as e:
        raise SystemExit(f'Invalid WIKI_PORT: {e}')

    try:
        app = create_app(config)
    except TemplateError as e:
        raise SystemExit(f'Unable to load templates: {e}')

    try:
        httpd = make_server(config.HOST, config.PORT, app)
    except OSError as e:
        raise SystemExit(f'Unable to listen on port {config.PORT}: {e}')

    with httpd:
        print(f"Serving on port {config.PORT}...")

        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            pass


if __name__ == '__main__':
    main()
