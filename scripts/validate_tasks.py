#!/usr/bin/env python
"""
Validate a recurring task table and report tasks that would be excluded.

Usage:
    python scripts/validate_tasks.py data/tasks.csv
    python scripts/validate_tasks.py data/tasks.parquet --warnings
"""
import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.data.loader import _load_file, tasks_from_frame
from src.data.schema import validate_schema
from src.data.validation import validate_tasks


def validate_file(filepath: Path) -> dict:
    """Schema and record validation for one task table."""
    result = {
        "exists": False,
        "rows": 0,
        "columns": 0,
        "schema_valid": False,
        "missing_required": [],
        "missing_optional": [],
        "report": None,
        "errors": []
    }

    try:
        df = _load_file(filepath)
    except Exception as e:
        result["errors"].append(f"Failed to load: {e}")
        return result

    if df is None:
        result["errors"].append(f"File not found: {filepath}")
        return result

    result["exists"] = True
    result["rows"] = len(df)
    result["columns"] = len(df.columns)

    schema_result = validate_schema(df, strict=False)
    result["schema_valid"] = schema_result["is_valid"]
    result["missing_required"] = schema_result["missing_required"]
    result["missing_optional"] = schema_result["missing_optional"]

    if not result["schema_valid"]:
        return result

    _, report = validate_tasks(tasks_from_frame(df))
    result["report"] = report
    return result


def main():
    parser = argparse.ArgumentParser(description="Validate a recurring task table")
    parser.add_argument(
        "path",
        type=str,
        help="Task table (.csv or .parquet)"
    )
    parser.add_argument(
        "--warnings",
        "-w",
        action="store_true",
        help="Also list warnings for valid tasks"
    )

    args = parser.parse_args()
    filepath = Path(args.path)

    print("=" * 60)
    print("Recurring Task Validation")
    print("=" * 60)
    print(f"Source: {filepath}")
    print()

    result = validate_file(filepath)

    if result["errors"]:
        for err in result["errors"]:
            print(f"  ✗ Error: {err}")
        sys.exit(1)

    print(f"  Rows: {result['rows']:,}")
    print(f"  Columns: {result['columns']}")

    if not result["schema_valid"]:
        print(f"  ✗ Schema invalid")
        print(f"    Missing required: {result['missing_required']}")
        sys.exit(1)

    print(f"  ✓ Schema valid")
    if result["missing_optional"]:
        print(f"  ⚠ Missing optional: {result['missing_optional']}")
    print()

    report = result["report"]
    print(f"Valid tasks: {report.valid_count:,}")
    print(f"Invalid tasks: {report.invalid_count:,}")
    print("-" * 40)
    for item in report.invalid_tasks:
        print(f"  ✗ Task {item.task_id}")
        for err in item.errors:
            print(f"      {err}")

    if args.warnings and report.warnings:
        print()
        print(f"Warnings ({len(report.warnings)}):")
        for warning in report.warnings:
            print(f"  ⚠ {warning}")

    print()
    print("=" * 60)
    if report.invalid_count == 0:
        print("✓ All tasks valid")
        sys.exit(0)
    else:
        print("✗ Some tasks will be excluded - see errors above")
        sys.exit(1)


if __name__ == "__main__":
    main()
