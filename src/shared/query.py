"""Repository query helpers shared by the bounded contexts."""

PAGE_SIZE = 500


def fetch_all(repo, **filters) -> list:
    """Return every record matching ``filters``, walking result pages."""
    items = []
    while True:
        query = repo._dao.query
        if filters:
            query = query.filter(**filters)
        page = query.offset(len(items)).limit(PAGE_SIZE).all()
        items.extend(page.items)
        if len(page.items) < PAGE_SIZE:
            return items


def fetch_first(repo, **filters):
    """Return the first record matching ``filters``, or None."""
    return repo._dao.query.filter(**filters).all().first
