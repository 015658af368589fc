#!/usr/bin/env python3
"""Dataset generation script for performance testing.

Generates a synthetic products upload in the import layout:
- Row 1: instruction banner
- Row 2: template headers
- Row 3: column descriptions
- Row 4+: data rows

Values are typed the way back-office staff type them: Argentine number
format ("1.234,56"), mixed tax-rate spellings ("21%", "0.21", "10,5") and
category names with and without accents, so the run exercises the coercers
and the accent-insensitive category cache as well as raw throughput.
"""
from __future__ import annotations

import argparse
import io
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from pos_import.config.templates import get_template

CATEGORIES = ["Almacén", "Almacen", "ALMACÉN", "Bebidas", "bebídas", "Limpieza", "Ferretería", "Ferreteria"]
SUBCATEGORIES = [None, None, "Gaseosas", "Infusiones", "Herramientas"]
TAX_RATES = ["21%", "21", "0.21", "10,5", "27", "0"]
ACTIVE = ["SI", "NO", "si", "Activo"]
VISIBILITY = ["ambos", "ventas", "compras", None]
PRODUCT_TYPES = ["producto", "servicio", "combo", None]


def format_ar(value: float) -> str:
    """1234.5 -> '1.234,50'."""
    return f"{value:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def generate_product_rows(rows: int, seed: int = 42) -> list[list[Any]]:
    """Data rows in products template column order."""
    rng = np.random.default_rng(seed)
    costs = rng.uniform(10, 50_000, rows)
    margins = rng.integers(5, 80, rows)

    out: list[list[Any]] = []
    for i in range(rows):
        cost = float(costs[i])
        price = cost * (1 + margins[i] / 100) * 1.21
        out.append([
            f"SKU{i:06d}",
            f"Producto {i}",
            f"Descripción del producto {i}" if i % 3 == 0 else None,
            CATEGORIES[rng.integers(len(CATEGORIES))],
            SUBCATEGORIES[rng.integers(len(SUBCATEGORIES))],
            f"779{rng.integers(10**9, 10**10)}" if i % 2 == 0 else None,
            format_ar(cost),
            format_ar(price),
            int(margins[i]),
            TAX_RATES[rng.integers(len(TAX_RATES))],
            None,
            ACTIVE[rng.integers(len(ACTIVE))],
            VISIBILITY[rng.integers(len(VISIBILITY))],
            PRODUCT_TYPES[rng.integers(len(PRODUCT_TYPES))],
            None,
        ])
    return out


def build_products_workbook(rows: int, seed: int = 42) -> bytes:
    """Workbook bytes ready for parse_import_file / run_import."""
    template = get_template("products")
    grid: list[list[Any]] = [
        [template.instruction],
        [c.header for c in template.columns],
        [c.description for c in template.columns],
        *generate_product_rows(rows, seed),
    ]
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        pd.DataFrame(grid).to_excel(writer, sheet_name=template.sheet_name, header=False, index=False)
    return out.getvalue()


def main() -> int:
    """Main CLI interface for dataset generation."""
    parser = argparse.ArgumentParser(
        description="Generate a synthetic products upload for performance testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate default 5k rows
  %(prog)s productos.xlsx

  # Generate with custom size and seed
  %(prog)s grande.xlsx --rows 50000 --seed 123
        """
    )
    parser.add_argument("output", type=Path, help="Output Excel file path")
    parser.add_argument("--rows", type=int, default=5_000, help="Number of data rows (default: 5,000)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducible data (default: 42)")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be generated without creating files")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1

    if args.dry_run:
        print(f"Would create: {args.output} ({args.rows:,} product rows, seed={args.seed})")
        return 0

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(build_products_workbook(args.rows, args.seed))
    print(f"Created Excel file: {args.output}")
    print(f"  Rows: {args.rows} (+ 3 layout rows)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
