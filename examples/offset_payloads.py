"""
Example serving offset-paginated responses from raw request payloads.

Shows how limits are normalized (0 -> default, above the maximum -> maximum)
and how a bad token surfaces as a CursorDecodeError the API can map to a 400.
"""

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, insert, select

from seekpager import CursorDecodeError, OrderBy, RawPagerPayload, next_page_offset_cursor

metadata = MetaData()
products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(50)),
)

engine = create_engine("sqlite://")
metadata.create_all(engine)
with engine.begin() as conn:
    conn.execute(insert(products), [{"id": i, "name": f"product-{i}"} for i in range(1, 26)])


def list_products(body: dict) -> dict:
    """Handles a list request shaped like {"limit": 10, "startToken": "..."}."""
    try:
        pager = RawPagerPayload.model_validate(body).decode_offset(OrderBy.asc("id"))
    except CursorDecodeError as e:
        return {"error": e.message}

    pager.with_lookahead()
    with engine.connect() as conn:
        rows = conn.execute(pager.paginate(select(products))).all()

    items, cursor = next_page_offset_cursor(pager, rows)
    return {
        "items": [row.name for row in items],
        "limit": pager.limit,
        "nextToken": cursor.serialize() if cursor else "",
    }


print("Default limit:", list_products({}))

first = list_products({"limit": 8})
print("First page:", first)
print("Second page:", list_products({"limit": 8, "startToken": first["nextToken"]}))

print("Clamped limit:", list_products({"limit": 500})["limit"])
print("Bad token:", list_products({"limit": 8, "startToken": "not-a-number!"}))
