import html
import string
from os.path import normcase, join, abspath
from types import MappingProxyType


class TemplateError(Exception):
    """A template could not be read or parsed at startup."""


class RenderError(Exception):
    """A template failed while being filled with a page."""


def location(base, *paths):
    """
    Joins one or more path components to the base path component.
    Returns a normalized, absolute version of the final path.
    Check the resulting path is located inside the base path, raise ValueError if not.
    """
    base = abspath(base)
    paths = [normcase(p) for p in paths]
    path = abspath(join(base, *paths))

    # Check if the resulting path is part of the base part
    if path != base and not path.startswith(join(base, '')):
        raise ValueError('Resulting path is not inside the base path.')

    return path


def load_templates(directory: str, names=('view', 'edit')):
    """
    Read and compile every named template once.

    Returns a read-only mapping of name to ``string.Template``, raises
    TemplateError if any of them is missing or has an invalid placeholder.
    """
    templates = {}

    for name in names:
        template_path = location(directory, f'{name}.html')

        try:
            with open(template_path, 'r', encoding='utf-8') as fileobj:
                tpl = string.Template(fileobj.read())
        except OSError as e:
            raise TemplateError(f'Unable to read template {name!r}: {e}') from e

        if not tpl.is_valid():
            raise TemplateError(f'Template {name!r} has invalid placeholders.')

        templates[name] = tpl

    return MappingProxyType(templates)


def render_template(output, templates, name: str, page):
    """Render the named template with the page fields and write it to output."""
    try:
        tpl = templates[name]
    except KeyError:
        raise RenderError(f'No template named {name!r}') from None

    context = {
        'title': html.escape(page.title),
        'body': html.escape(page.body.decode('utf-8', errors='replace')),
    }

    try:
        content = tpl.substitute(context)
    except (KeyError, ValueError) as e:
        raise RenderError(f'Template {name!r} failed: {e}') from e

    output.write(content.encode('utf-8'))
