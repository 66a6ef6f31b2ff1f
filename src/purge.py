"""Delete every object in a bucket so the bucket itself can be deleted."""

import logging
import threading
from typing import Iterator, Optional

from errors import PurgeFailure, StorageError
from storage import ObjectPage, ObjectStore

logger = logging.getLogger(__name__)

# Upper bound on listing pages per purge; a backend that never stops
# reporting truncation fails the purge instead of looping forever.
DEFAULT_MAX_PAGES = 100_000


def iter_pages(store: ObjectStore, max_pages: int = DEFAULT_MAX_PAGES) -> Iterator[ObjectPage]:
    """Lazily list pages, following continuation until not truncated.

    The next page is only requested once the consumer asks for it, so a
    consumer that stops (e.g. after a failed delete) stops the listing too.

    Raises:
        StorageError: If a listing call fails
        PurgeFailure: If more than ``max_pages`` pages are reported
    """
    continuation = None
    for _ in range(max_pages):
        page = store.list_objects(continuation)
        yield page
        if not page.truncated:
            return
        continuation = page.continuation
    raise PurgeFailure(f"bucket listing still truncated after {max_pages} pages")


class ObjectPurger:
    """Paginated delete-all-objects routine against one bucket.

    Any listing or delete failure aborts immediately. Objects already
    deleted stay deleted; rerunning the purge enumerates what remains.
    """

    def __init__(
        self,
        store: ObjectStore,
        max_pages: int = DEFAULT_MAX_PAGES,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.store = store
        self.max_pages = max_pages
        self.cancel_event = cancel_event

    def purge(self) -> int:
        """Delete all objects. Returns the number of keys deleted.

        Raises:
            PurgeFailure: On listing/delete failure, cancellation or page bound
        """
        deleted = 0
        pages = 0
        try:
            for page in iter_pages(self.store, self.max_pages):
                pages += 1
                if self.cancel_event is not None and self.cancel_event.is_set():
                    raise PurgeFailure(f"purge cancelled after {deleted} objects", deleted=deleted)
                if page.keys:
                    self.store.delete_objects(list(page.keys))
                    deleted += len(page.keys)
                logger.debug(f"Purge page {pages}: deleted {len(page.keys)} objects")
        except StorageError as e:
            raise PurgeFailure(f"purge aborted on page {pages} after {deleted} objects: {e}", deleted=deleted) from e

        logger.info(f"Purged {deleted} objects in {pages} page(s)")
        return deleted
