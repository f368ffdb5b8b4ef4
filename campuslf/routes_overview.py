from flask import jsonify


def register_overview_routes(app, deps: dict):
    get_db = deps["get_db"]
    count_items_by_status = deps["count_items_by_status"]
    KINDS = deps["KINDS"]

    @app.get("/api/stats")
    def stats():
        conn = get_db()
        try:
            by_kind = {kind: count_items_by_status(conn, kind) for kind in KINDS}
        finally:
            conn.close()
        result = {}
        for kind, counts in by_kind.items():
            result[kind] = sum(counts.values())
            result[f"{kind}_by_status"] = counts
        return jsonify(result)

    @app.get("/healthz")
    def healthz():
        return jsonify({"status": "ok"})
