import logging
import os
import tempfile

from utils import location

logger = logging.getLogger(__name__)


class PageNotFound(LookupError):
    """There is no stored entry for the requested title."""


class Page:
    def __init__(self, title: str, body: bytes = b''):
        self.title = title
        self.body = body


class PageStore:
    """
    Pages persisted as raw bytes in ``<directory>/<title>.txt``.

    Titles must be validated before they reach the store, it does not check
    them again.
    """

    def __init__(self, directory: str):
        self.directory = directory

    def path(self, title: str):
        return location(self.directory, f'{title}.txt')

    def load(self, title: str) -> Page:
        page_location = self.path(title)

        try:
            with open(page_location, 'rb') as fileobj:
                body = fileobj.read()
        except FileNotFoundError:
            raise PageNotFound(title) from None

        return Page(title, body)

    def save(self, page: Page):
        page_location = self.path(page.title)
        os.makedirs(self.directory, exist_ok=True)

        # Write next to the target so os.replace stays on the same filesystem
        fd, tmp_location = tempfile.mkstemp(dir=self.directory, prefix='.tmp.')
        try:
            with os.fdopen(fd, 'wb') as fileobj:
                fileobj.write(page.body)
                fileobj.flush()
                os.fsync(fileobj.fileno())
            os.chmod(tmp_location, 0o600)
            os.replace(tmp_location, page_location)
        except BaseException:
            try:
                os.unlink(tmp_location)
            except OSError:
                pass
            raise

        logger.debug('Saved %s (%d bytes)', page.title, len(page.body))
