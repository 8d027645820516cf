import io
import logging
import re
from functools import wraps

from utils import RenderError, render_template
from web import FormError, html_response, not_found, redirect, text_response
from wikipage import Page, PageNotFound

logger = logging.getLogger(__name__)

VIEW_PATH = '/view/'
EDIT_PATH = '/edit/'
SAVE_PATH = '/save/'

valid_path = re.compile(r'/(edit|save|view)/([a-zA-Z0-9]+)')


class InvalidTitle(ValueError):
    """The request path does not carry a valid page title."""


def extract_title(path: str) -> str:
    """Return the page title from a path like ``/view/Home``."""
    match = valid_path.fullmatch(path)

    if not match:
        raise InvalidTitle(path)

    return match.group(2)


def title_required(func):
    """Only call the handler with requests whose path has a valid title."""

    @wraps(func)
    def inner(request):
        try:
            title = extract_title(request.path_info)
        except InvalidTitle:
            return not_found(request)

        return func(request, title)

    return inner


def render(request, template_name: str, page: Page):
    output = io.BytesIO()

    try:
        render_template(output, request.app.templates, template_name, page)
    except RenderError as e:
        logger.error('Rendering %s for %s failed: %s', template_name, page.title, e)
        return text_response(str(e), status=500)

    return html_response(output.getvalue())


@title_required
def view_handler(request, title):
    """View handler loads and render the given wiki Page."""
    try:
        page = request.app.store.load(title)
    except PageNotFound:
        return redirect(EDIT_PATH + title)
    except OSError as e:
        logger.error('Reading %s failed: %s', title, e)
        return redirect(EDIT_PATH + title)

    return render(request, 'view', page)


@title_required
def edit_handler(request, title):
    """Edit a wiki Page, if the page doesn't exists it starts a blank one."""
    try:
        page = request.app.store.load(title)
    except PageNotFound:
        page = Page(title)
    except OSError as e:
        logger.error('Reading %s failed: %s', title, e)
        page = Page(title)

    return render(request, 'edit', page)


@title_required
def save_handler(request, title):
    try:
        body = request.POST.get('body', b'')
    except FormError as e:
        return text_response(str(e), status=400)

    page = Page(title, body)

    try:
        request.app.store.save(page)
    except OSError as e:
        logger.error('Saving %s failed: %s', title, e)
        return text_response(str(e), status=500)

    return redirect(VIEW_PATH + page.title)
