from __future__ import annotations
import os
from petgroom import create_app
from petgroom.extensions import db

def main() -> None:
    flask_app = create_app()

    if os.environ.get("CREATE_TABLES", "0") in {"1", "true", "True"}:
        with flask_app.app_context():
            db.create_all()

    # walk-in routes mounted on this instance
    for rule in sorted(flask_app.url_map.iter_rules(), key=lambda r: r.rule):
        if "walk-in" in rule.rule:
            flask_app.logger.info("%s %s", ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"})), rule.rule)

    debug_enabled = os.environ.get("FLASK_DEBUG", "0") in {"1", "true", "True"}
    flask_app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)), debug=debug_enabled)

if __name__ == "__main__":
    main()
