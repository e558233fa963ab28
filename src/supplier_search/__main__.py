from __future__ import annotations
import argparse, json, logging, sys

from . import config as CFG
from .engine import Engine
from .models import SupplierSearchError

log = logging.getLogger("supplier_search")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Find which catalog supplier appears on an invoice")
    p.add_argument("--invoice", default="invoice.txt", help="words of an invoice")
    p.add_argument("--supplier", default="suppliernames.txt", help="a list of supplier names")
    p.add_argument("--cmd", choices=[CFG.MODE_SEARCH, CFG.CMD_INDEX, CFG.MODE_SEARCH_V2],
                   default=CFG.MODE_SEARCH, help="run command search,index,searchv2")
    p.add_argument("--worker", type=int, default=CFG.WORKERS, help="number of workers")
    p.add_argument("--json", action="store_true", help="Emit the result as JSON")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    eng = Engine(args.supplier, verbose=args.verbose)
    try:
        if args.cmd == CFG.CMD_INDEX:
            art = eng.build_index()
            print(f"indexed {art.entries} suppliers in {art.groups} groups -> {art.indexed_path}, {art.offsets_path}")
            return 0

        result = eng.find_supplier(args.invoice, mode=args.cmd, workers=args.worker)
        if args.json:
            print(json.dumps(result.to_dict(), ensure_ascii=False))
        elif result.found:
            print(f"supplier name found: {result.supplier.id},{result.supplier.name}")
        else:
            print("supplier name not found")
        return 0
    except (SupplierSearchError, OSError) as exc:
        log.error("%s failed: %s", args.cmd, exc)
        return 1
    finally:
        eng.shutdown()


if __name__ == "__main__":
    sys.exit(main())
