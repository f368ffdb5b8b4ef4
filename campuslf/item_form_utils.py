from campuslf.match_utils import DATE_FIELDS, parse_iso_date


MAX_FIELD_LENGTHS = {
    "item_name": 200,
    "description": 4000,
    "category": 100,
    "location": 200,
}


def _payload(request_obj):
    data = request_obj.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request_obj.form


def _text(data, key):
    raw = data.get(key)
    if raw is None:
        return ""
    return str(raw).strip()


def read_item_fields(request_obj, kind: str):
    """Pull report fields from a JSON body or a form post.

    Empty strings are stored as NULL. The date may also be sent under the
    generic ``date`` key.
    """
    data = _payload(request_obj)
    date_col = DATE_FIELDS[kind]
    fields = {
        "item_name": _text(data, "item_name") or _text(data, "name"),
        "description": _text(data, "description"),
        "category": _text(data, "category"),
        "location": _text(data, "location"),
        date_col: _text(data, date_col) or _text(data, "date"),
    }
    return {k: (v or None) for k, v in fields.items()}


def validate_item_fields(fields: dict, kind: str):
    errors = {}
    if not fields.get("item_name"):
        errors["item_name"] = "Item name is required."

    for key, limit in MAX_FIELD_LENGTHS.items():
        if fields.get(key) and len(fields[key]) > limit:
            errors[key] = f"Must be at most {limit} characters."

    date_col = DATE_FIELDS[kind]
    if fields.get(date_col):
        if len(fields[date_col]) != 10 or parse_iso_date(fields[date_col]) is None:
            errors[date_col] = "Date must be in YYYY-MM-DD format."

    return len(errors) == 0, errors


def read_status(request_obj):
    return _text(_payload(request_obj), "status")
