"""
Ledger import: load one legacy CSV ledger into the configured storage

Kinds:
- progress     進行台帳 (customers, projects, invoices)
- development  開発台帳 (tasks)
- product      プロダクト管理 (internal and demo projects)

Usage:
    python scripts/import_ledger.py <progress|development|product> /path/to/ledger.csv
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from backoffice.config import get_settings
from backoffice.services.csv_import import CsvImportError, ImportKind, import_ledger
from backoffice.state import BoardState
from backoffice.store import build_stores


async def main():
    """Import entry point"""
    kinds = [k.value for k in ImportKind]
    if len(sys.argv) < 3 or sys.argv[1] not in kinds:
        print("Error: Missing ledger kind or CSV path")
        print("\nUsage:")
        print(f"  python scripts/import_ledger.py <{'|'.join(kinds)}> /path/to/ledger.csv")
        sys.exit(1)

    kind = ImportKind(sys.argv[1])
    csv_path = Path(sys.argv[2])
    if not csv_path.exists():
        print(f"Error: CSV not found at {csv_path}")
        sys.exit(1)

    settings = get_settings()
    stores = await build_stores(settings)
    board = BoardState(stores, settings)
    await board.load_all()
    if board.load_errors:
        print(f"Error: could not load {', '.join(board.load_errors)}; nothing imported")
        sys.exit(1)

    try:
        result = await import_ledger(board, kind, csv_path.read_text(encoding="utf-8-sig"))
    except CsvImportError as e:
        print(f"Import stopped: {e}")
        result = e.result
    finally:
        if stores.engine is not None:
            await stores.engine.dispose()

    print("=" * 60)
    print(f"IMPORT {kind.value.upper()}: {csv_path.name}")
    print("=" * 60)
    print(f"  Customers: {result.customers}")
    print(f"  Projects:  {result.projects}")
    print(f"  Tasks:     {result.tasks}")
    print(f"  Invoices:  {result.invoices}")
    print(f"  Skipped:   {result.skipped}")


if __name__ == "__main__":
    asyncio.run(main())
