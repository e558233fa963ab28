from __future__ import annotations
import argparse
from flask import Flask, request, jsonify, Response
from supplier_search import config as CFG
from supplier_search.engine import Engine
from supplier_search.loader import word_from_record
from supplier_search.models import ConfigurationError, MalformedInputError

app = Flask(__name__)
_engine: Engine | None = None


def _require_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call initialize(...) first.")
    return _engine


@app.errorhandler(MalformedInputError)
@app.errorhandler(ConfigurationError)
def _bad_request(exc):
    return jsonify({"error": str(exc)}), 400


@app.errorhandler(FileNotFoundError)
def _missing_artifact(exc):
    return jsonify({"error": f"missing file: {exc.filename}"}), 409


# ---------- API ----------
@app.get("/health")
def health():
    eng = _require_engine()
    return jsonify({"ok": True, "catalog": eng.catalog_path, "indexed": eng.has_index()})


@app.post("/api/search")
def api_search():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise MalformedInputError("request body must be a JSON object")
    records = body.get("words")
    if not isinstance(records, list):
        raise MalformedInputError("'words' must be a list of invoice records")
    words = [word_from_record(r) for r in records]
    mode = body.get("mode", CFG.DEFAULT_MODE)
    workers = body.get("workers", CFG.WORKERS)
    result = _require_engine().find_supplier_in_words(words, mode=mode, workers=workers)
    return jsonify(result.to_dict())


@app.post("/api/index")
def api_index():
    art = _require_engine().build_index()
    return jsonify({
        "indexed_path": art.indexed_path,
        "offsets_path": art.offsets_path,
        "groups": art.groups,
        "entries": art.entries,
    })


# ---------- UI ----------
@app.get("/")
def home():
    html = r"""
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8" />
<title>Supplier search</title>
<style>
body{margin:24px;font:15px/1.45 system-ui,sans-serif;background:#0b0f14;color:#cfd8e3}
textarea{width:100%;height:220px;background:#0b1117;color:#cfd8e3;border:1px solid #1c2530;border-radius:8px}
button,select{padding:8px 12px;margin-top:8px}
pre{background:#0f141b;padding:12px;border-radius:8px}
</style>
</head>
<body>
  <h1>Supplier search</h1>
  <p>Paste invoice words as JSON: <code>[{"word":"Demo","page_id":1,"line_id":4,"pos_id":0}, ...]</code></p>
  <textarea id="words">[]</textarea>
  <div>
    <select id="mode"><option value="search">search</option><option value="searchv2">searchv2</option></select>
    <button id="go">Search</button>
  </div>
  <pre id="out">Ready.</pre>
<script>
document.querySelector("#go").addEventListener("click", async ()=>{
  const out = document.querySelector("#out");
  try{
    const words = JSON.parse(document.querySelector("#words").value || "[]");
    const mode = document.querySelector("#mode").value;
    const resp = await fetch("/api/search", {method:"POST", headers:{"Content-Type":"application/json"},
                                             body: JSON.stringify({words, mode})});
    out.textContent = JSON.stringify(await resp.json(), null, 2);
  }catch(e){ out.textContent = `Error: ${e.message ?? e}`; }
});
</script>
</body>
</html>
"""
    return Response(html, mimetype="text/html")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Run the Flask API on top of Engine")
    ap.add_argument("--supplier", required=True, help="catalog file (id,name lines)")
    ap.add_argument("--build-index", action="store_true", help="(re)build the catalog index before serving")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    global _engine
    _engine = Engine(args.supplier, verbose=args.verbose)
    if args.build_index:
        _engine.build_index()

    try:
        app.run(host=args.host, port=args.port, debug=args.verbose)
    finally:
        _engine.shutdown()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
