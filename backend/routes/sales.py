"""
Sales ledger routes. Recording a sale decrements stock and pushes a live
"sale" event to every connected dashboard.
"""
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request

from auth import require_auth
from db import parse_object_id, products, sales, serialize_doc

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _parse_items(raw):
    """
    Validate the `items` payload.
    Returns (items, error) where items is a list of (ObjectId, product_id, quantity).
    """
    if not isinstance(raw, list) or not raw:
        return None, "items must be a non-empty list"
    items = []
    for item in raw:
        if not isinstance(item, dict):
            return None, "each item needs a product and a quantity"
        product_id = str(item.get("product", ""))
        quantity = item.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return None, f"Invalid quantity for product {product_id}"
        items.append((parse_object_id(product_id), product_id, quantity))
    return items, None


def _release_stock(owner: str, taken: list):
    for oid, quantity in taken:
        products().update_one({"_id": oid, "owner": owner}, {"$inc": {"quantity": quantity}})


@sales_bp.route("", methods=["POST"])
@require_auth
def create_sale():
    """
    Record a sale.

    Request body (JSON):
        - items (required): [{"product": <product id>, "quantity": <int>}, ...]
        - customerName, customerPhone (optional)

    Stock is checked for every line before anything is decremented.
    """
    owner = g.user["userId"]
    data = request.get_json(silent=True) or {}
    items, error = _parse_items(data.get("items"))
    if error:
        return jsonify({"message": error}), 400

    lines = []
    total_amount = 0
    for oid, product_id, quantity in items:
        product = products().find_one({"_id": oid, "owner": owner}) if oid else None
        if not product:
            return jsonify({"message": f"Product {product_id} not found"}), 404
        if product.get("quantity", 0) < quantity:
            return jsonify({"message": f"Insufficient stock for {product['name']}"}), 400
        price = product.get("price", 0)
        total_amount += price * quantity
        lines.append({"product": oid, "name": product["name"], "quantity": quantity, "price": price})

    # Conditional decrement so a concurrent sale cannot drive stock negative.
    taken = []
    for line in lines:
        result = products().update_one(
            {"_id": line["product"], "owner": owner, "quantity": {"$gte": line["quantity"]}},
            {"$inc": {"quantity": -line["quantity"]}},
        )
        if result.modified_count == 0:
            _release_stock(owner, taken)
            return jsonify({"message": f"Insufficient stock for {line['name']}"}), 400
        taken.append((line["product"], line["quantity"]))

    sale = {
        "owner": owner,
        "items": lines,
        "totalAmount": total_amount,
        "customerName": data.get("customerName", ""),
        "customerPhone": data.get("customerPhone", ""),
        "date": datetime.utcnow(),
    }
    sales().insert_one(sale)
    body = serialize_doc(sale)
    print(f"[Sales] Recorded sale {body['id']} for {owner}: {total_amount}")

    # The stream is public: dashboards refetch their own stats on this signal.
    current_app.extensions["sse_broadcaster"].broadcast({"type": "sale"})
    return jsonify(body), 201


@sales_bp.route("", methods=["GET"])
@require_auth
def list_sales():
    """All sales for the caller, newest first."""
    docs = sales().find({"owner": g.user["userId"]}).sort("date", -1)
    return jsonify([serialize_doc(d) for d in docs])


def _total(owner: str, start: datetime = None, end: datetime = None) -> float:
    query = {"owner": owner}
    window = {}
    if start is not None:
        window["$gte"] = start
    if end is not None:
        window["$lt"] = end
    if window:
        query["date"] = window
    return sum(doc.get("totalAmount", 0) for doc in sales().find(query, {"totalAmount": 1}))


@sales_bp.route("/stats", methods=["GET"])
@require_auth
def stats():
    """Dashboard totals plus a 7-day series for the chart (oldest day first)."""
    owner = g.user["userId"]
    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + timedelta(days=1)
    month_start = today.replace(day=1)
    year_start = today.replace(month=1, day=1)

    sales_data = []
    for days_ago in range(6, -1, -1):
        day = today - timedelta(days=days_ago)
        sales_data.append({
            "date": day.isoformat(),
            "amount": _total(owner, day, day + timedelta(days=1)),
        })

    return jsonify({
        "daily": _total(owner, today, tomorrow),
        "monthly": _total(owner, month_start, tomorrow),
        "yearly": _total(owner, year_start, tomorrow),
        "totalSales": _total(owner),
        "salesData": sales_data,
    })


@sales_bp.route("/today", methods=["GET"])
@require_auth
def today_sales():
    owner = g.user["userId"]
    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    docs = list(sales().find({
        "owner": owner,
        "date": {"$gte": today, "$lt": today + timedelta(days=1)},
    }).sort("date", -1))
    return jsonify({
        "sales": [serialize_doc(d) for d in docs],
        "total": sum(d.get("totalAmount", 0) for d in docs),
    })


@sales_bp.route("/unique-customers", methods=["GET"])
@require_auth
def unique_customers():
    """Number of distinct customer phone numbers the caller has sold to. Blank phones are not customers."""
    phones = sales().distinct("customerPhone", {"owner": g.user["userId"]})
    return jsonify(len([p for p in phones if p]))
