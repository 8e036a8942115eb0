"""
Example walking an ordered table page by page with keyset cursors.

Sort strings come from the request as "<alias> <asc|desc>" and are resolved
against a public alias -> column mapping. The token printed for each page is
what a client would send back to get the next one.
"""

import logging

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, insert, select

from seekpager import CursorPager, OrderBy, PageResult, next_page_cursor, parse_sort

logging.basicConfig(level=logging.DEBUG)

metadata = MetaData()
articles = Table(
    "articles",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("title", String(100)),
    Column("views", Integer),
)

engine = create_engine("sqlite://")
metadata.create_all(engine)

# Create test data: view counts repeat so the primary sort key ties
with engine.begin() as conn:
    conn.execute(
        insert(articles),
        [
            {"id": i, "title": f"Article {i}", "views": (i * 7) % 4 * 100}
            for i in range(1, 12)
        ],
    )

SORT_ALIASES = {"popularity": "views", "id": "id"}
GETTERS = {
    "views": lambda row: row.views,
    "id": lambda row: row.id,
}

orderings = parse_sort(["popularity desc"], SORT_ALIASES)
# The primary key as last column makes the ordering total
orderings.upsert(OrderBy.asc("id"))

token = ""
page_number = 1
with engine.connect() as conn:
    while True:
        pager = CursorPager.decode_keyset(4, token, *orderings).with_lookahead()
        rows = conn.execute(pager.paginate(select(articles))).all()
        items, cursor = next_page_cursor(pager, rows, GETTERS)
        page = PageResult(items=items, next_page_token=cursor, applied_limit=pager.limit)

        print(f"Page {page_number}: {[row.title for row in page.items]}")
        if not page.has_more:
            break
        token = page.next_token
        print(f"  next token: {token}")
        page_number += 1
