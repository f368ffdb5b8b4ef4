from campuslf.db_utils import STATUSES, table_for


def get_multi_values(args, key: str, allowed: set[str] | None = None, max_items: int = 50):
    vals = []
    seen = set()
    for raw in args.getlist(key):
        v = (raw or "").strip()
        if not v:
            continue
        if allowed is not None and v not in allowed:
            continue
        if v in seen:
            continue
        seen.add(v)
        vals.append(v)
        if len(vals) >= max_items:
            break
    return vals


def build_filters(args, kind: str):
    table = table_for(kind)
    q = (args.get("q") or "").strip()
    category = (args.get("category") or "").strip()
    location = (args.get("location") or "").strip()
    statuses_selected = get_multi_values(args, "status", set(STATUSES))

    sql = f"SELECT * FROM {table} WHERE 1=1"
    params = []

    if category:
        sql += " AND category=?"
        params.append(category)

    if location:
        sql += " AND location LIKE ?"
        params.append(f"%{location}%")

    if statuses_selected:
        sql += " AND status IN (" + ",".join(["?"] * len(statuses_selected)) + ")"
        params += statuses_selected

    if q:
        like = f"%{q}%"
        sql += " AND (item_name LIKE ? OR description LIKE ?)"
        params += [like, like]

    sql += " ORDER BY created_at DESC, id DESC"
    return sql, params
