"""
SGQ–RNC — End-to-end import pipeline.

Parses RNC workbooks, merges them into the stored record set and prints
smoke-test summaries of every dashboard view.

Usage:
    python main.py planilhas/*.xlsx
    python main.py planilhas/*.xlsx --save      # write to cache (and cloud)
    python main.py --clear                      # drop all stored records
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from sgq_rnc.config import APP_TITLE, COMPANY_NAME
from sgq_rnc.dashboard import (
    get_deviation_overview,
    get_efficacy_overview,
    get_internal_overview,
    get_monthly_overview,
    get_records_table,
    get_strategic_overview,
    get_supplier_overview,
)
from sgq_rnc.loaders import parse_files
from sgq_rnc.storage import build_store
from sgq_rnc.transforms import clean_batch, merge_records

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=f"{APP_TITLE} import pipeline")
    parser.add_argument("files", nargs="*", help="RNC workbooks (.xlsx/.xlsm)")
    parser.add_argument("--save", action="store_true",
                        help="merge into the local cache and push to Firestore when configured")
    parser.add_argument("--clear", action="store_true",
                        help="delete every stored record before importing")
    parser.add_argument("--cache", help="local cache file (overrides SGQ_CACHE_PATH)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run the import pipeline and print smoke-test outputs."""
    args = parse_args(argv)

    print("=" * 70)
    print(f"  {COMPANY_NAME} — {APP_TITLE} Quality Dashboard")
    print("  Import Pipeline Smoke Test")
    print("=" * 70)
    print()

    store = build_store(cache_path=args.cache)
    store.load_cached()
    if store.pull():
        print(f"Cloud records merged: {len(store.records)} stored")
    if args.clear:
        store.clear()
        print("Stored records cleared.")

    # ------------------------------------------------------------------
    # 1. Parse workbooks
    # ------------------------------------------------------------------
    print("[ 1 ] PARSING WORKBOOKS")
    print("-" * 40)

    parsed, errors = parse_files(args.files)
    print(f"\nFiles: {len(args.files)}  |  records parsed: {len(parsed)}  |  errors: {len(errors)}")
    for name, message in errors.items():
        print(f"  [ERROR] {name}: {message}")

    cleaned = clean_batch(parsed)
    print(f"Valid, deduplicated records: {len(cleaned)}")

    # ------------------------------------------------------------------
    # 2. Merge with stored records
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] MERGING WITH STORED RECORDS")
    print("-" * 40)

    if args.save and cleaned:
        summary = store.ingest(cleaned)
        print(f"\nAdded {summary['added']}, updated {summary['updated']}, total {summary['total']}")
        if store.cloud_enabled:
            print(f"Cloud sync: {'ok' if summary['synced'] else 'FAILED, kept in local cache'}")
        records = store.records
    else:
        records = merge_records(store.records, cleaned)
        print(f"\nStored: {len(store.records)}  |  after merge (dry run): {len(records)}")

    # ------------------------------------------------------------------
    # 3. Dashboard outputs
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] DASHBOARD OUTPUTS")
    print("-" * 40)

    overview = get_strategic_overview(records)
    print("\nVisão Geral:")
    for key, value in overview["kpis"].items():
        print(f"  {key:15s} | {value:.1f}" if isinstance(value, float) else f"  {key:15s} | {value}")
    print(f"  types           | {overview['types']}")
    print(f"  top sectors     | {overview['top_sectors']}")

    internal = get_internal_overview(records)
    print(f"\nProcessos Internos: {internal['count']} RNCs, sectors {internal['sectors'][:5]}")

    supplier = get_supplier_overview(records)
    print(f"\nFornecedores: {supplier['count']} RNCs")
    for item in supplier["suppliers"]:
        print(f"  {item['name']:30s} | {item['value']}")

    efficacy = get_efficacy_overview(records)
    print(
        f"\nEficácia: {efficacy['effective']}/{efficacy['closed']} closed on time "
        f"({efficacy['effectiveness_rate']:.1f}%)"
    )

    print("\nPainel Mensal:")
    print(get_monthly_overview(records).to_string(index=False))

    deviation = get_deviation_overview(records)
    print(f"\nDesvios por Processo: {deviation['kpis']}")
    print(f"  Ishikawa: {deviation['ishikawa']}")

    table = get_records_table(records)
    print(f"\nRegistros: {len(table)} rows")
    if not table.empty:
        print(table[["number", "sector", "type", "status", "open_date"]].head(10).to_string(index=False))

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)

    store.stop_realtime()
    return 1 if errors and not parsed else 0


if __name__ == "__main__":
    sys.exit(main())
