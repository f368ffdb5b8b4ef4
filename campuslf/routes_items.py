import sqlite3

from flask import abort, jsonify, request


def register_item_routes(app, deps: dict):
    get_db = deps["get_db"]
    build_filters = deps["build_filters"]
    read_item_fields = deps["read_item_fields"]
    validate_item_fields = deps["validate_item_fields"]
    read_status = deps["read_status"]
    insert_item = deps["insert_item"]
    get_item = deps["get_item"]
    fetch_open_items = deps["fetch_open_items"]
    update_item_status = deps["update_item_status"]
    find_matches = deps["find_matches"]
    other_kind = deps["other_kind"]
    MatchItem = deps["MatchItem"]
    STATUSES = deps["STATUSES"]

    def load_item_or_404(conn, kind, item_id):
        row = get_item(conn, kind, item_id)
        if row is None:
            abort(404)
        return row

    def matches_for(kind, new_item):
        # Store errors yield no matches; the report itself still succeeds.
        conn = None
        try:
            conn = get_db()
            candidates = fetch_open_items(conn, other_kind(kind))
        except sqlite3.Error:
            app.logger.exception("candidate fetch failed kind=%s", other_kind(kind))
            return []
        finally:
            if conn is not None:
                conn.close()
        results = find_matches(new_item, kind, candidates)
        app.logger.info(
            "Matched %s report against %s open %s items: %s above threshold.",
            kind,
            len(candidates),
            other_kind(kind),
            len(results),
        )
        return [r.as_dict() for r in results]

    @app.post("/api/<any(lost, found):kind>")
    def create_item(kind):
        fields = read_item_fields(request, kind)
        ok, errors = validate_item_fields(fields, kind)
        if not ok:
            return jsonify({"error": "Invalid item.", "errors": errors}), 400

        conn = get_db()
        try:
            item_id = insert_item(conn, kind, fields)
            conn.commit()
            row = get_item(conn, kind, item_id)
        finally:
            conn.close()

        app.logger.info("%s item %s reported: %s", kind.capitalize(), item_id, fields["item_name"])
        matches = matches_for(kind, MatchItem.from_row(row, kind))
        return jsonify({"id": item_id, "item": dict(row), "matches": matches}), 201

    @app.get("/api/<any(lost, found):kind>")
    def list_items(kind):
        sql, params = build_filters(request.args, kind)
        conn = get_db()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return jsonify([dict(r) for r in rows])

    @app.get("/api/<any(lost, found):kind>/<int:item_id>")
    def item_detail(kind, item_id: int):
        conn = get_db()
        try:
            row = load_item_or_404(conn, kind, item_id)
        finally:
            conn.close()
        return jsonify(dict(row))

    @app.get("/api/<any(lost, found):kind>/<int:item_id>/matches")
    def item_matches(kind, item_id: int):
        conn = get_db()
        try:
            row = load_item_or_404(conn, kind, item_id)
        finally:
            conn.close()
        return jsonify({"id": item_id, "matches": matches_for(kind, MatchItem.from_row(row, kind))})

    @app.post("/api/<any(lost, found):kind>/<int:item_id>/status")
    def set_item_status(kind, item_id: int):
        status = read_status(request)
        if status not in STATUSES:
            return jsonify({"error": "Invalid status.", "errors": {"status": f"Must be one of: {', '.join(STATUSES)}."}}), 400

        conn = get_db()
        try:
            load_item_or_404(conn, kind, item_id)
            update_item_status(conn, kind, item_id, status)
            conn.commit()
            row = get_item(conn, kind, item_id)
        finally:
            conn.close()

        app.logger.info("%s item %s status set to %s.", kind.capitalize(), item_id, status)
        return jsonify(dict(row))
