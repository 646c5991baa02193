from flask import current_app


def clamp(page, limit):
    """page >= 1 and 1 <= limit <= MAX_PAGE_SIZE, DEFAULT_PAGE_SIZE when unset."""
    max_limit = current_app.config.get('MAX_PAGE_SIZE', 100)
    page = max(page or 1, 1)
    limit = min(max(limit or current_app.config.get('DEFAULT_PAGE_SIZE', 20), 1), max_limit)
    return page, limit


def _pagination(page, limit, total):
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': (total + limit - 1) // limit,
    }


def paginate_query(query, page, limit):
    """Returns (items, pagination) for an ordered SQLAlchemy query."""
    page, limit = clamp(page, limit)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, _pagination(page, limit, total)


def paginate_list(items, page, limit):
    page, limit = clamp(page, limit)
    return items[(page - 1) * limit: page * limit], _pagination(page, limit, len(items))
