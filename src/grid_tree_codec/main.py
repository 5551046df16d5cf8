"""
Grid/tree codec command line tool.

This module handles:
1. Reading a YAML/JSON tree and writing its grid as JSON
2. Reading a grid JSON file and writing its tree as YAML/JSON
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from grid_tree_codec.core.conversion_engine import ConversionEngine, ConversionError
from grid_tree_codec.core.errors import CodecError
from grid_tree_codec.core.grid import InMemoryGrid
from grid_tree_codec.models.conversion_result import ConversionResult
from grid_tree_codec.models.scheme_models import ParseOptions


def load_tree(input_file: str) -> Any:
    """
    Load a tree from a YAML or JSON file.

    Args:
        input_file: Path to a .yaml, .yml or .json file

    Returns:
        The parsed tree
    """
    path = Path(input_file)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {input_file}")

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def write_tree(tree: Any, output_file: str) -> None:
    path = Path(output_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".json":
        path.write_text(json.dumps(tree, indent=2, default=str), encoding="utf-8")
    else:
        path.write_text(
            yaml.safe_dump(tree, sort_keys=False, allow_unicode=True), encoding="utf-8"
        )


def load_grid(grid_file: str) -> InMemoryGrid:
    path = Path(grid_file)
    if not path.exists():
        raise FileNotFoundError(f"Grid file not found: {grid_file}")
    with open(path, "r", encoding="utf-8") as f:
        return InMemoryGrid.from_dict(json.load(f))


def write_grid(grid: InMemoryGrid, output_file: str) -> None:
    path = Path(output_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(grid.to_dict(), f, indent=2, default=str)


def print_summary(result: ConversionResult, output_file: str) -> None:
    print(f"\n📊 Conversion summary ({result.direction.value}):")
    print(f"  Status: {result.status.value}")
    if result.strategy is not None:
        print(f"  Strategy: {result.strategy.value}")
    print(f"  Rows: {result.stats.rows}, columns: {result.stats.columns}")
    if result.stats.estimated_columns:
        print(f"  Estimated columns before planning: {result.stats.estimated_columns}")
    print(f"  Merged regions: {result.stats.merged_regions}")
    print(f"  Data rows: {result.stats.data_rows}")
    print(f"  Output: {output_file}")
    if result.requires_continuation_rows:
        print("  ℹ️  Read this grid back with --continuation-rows")
    for warning in result.warnings:
        print(f"  ⚠️  {warning}")
    for conflict in result.conflicts:
        print(f"  ⚠️  Merge conflict at '{conflict.path}': {conflict.resolution}")


def tree_to_grid_file(engine: ConversionEngine, input_file: str, output_file: str) -> ConversionResult:
    tree = load_tree(input_file)
    result = engine.tree_to_grid(tree)
    write_grid(result.grid, output_file)
    return result


def grid_to_tree_file(
    engine: ConversionEngine,
    grid_file: str,
    output_file: str,
    options: ParseOptions,
) -> ConversionResult:
    grid = load_grid(grid_file)
    result = engine.grid_to_tree(grid, options)
    write_tree(result.tree, output_file)
    return result


def main():
    """Main entry point for the grid-tree-codec CLI command."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Convert between marker-annotated grids and document trees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Lay a YAML tree out as a grid
  grid-tree-codec to-grid orders.yaml -o orders.grid.json

  # Read a grid back into a tree
  grid-tree-codec to-tree orders.grid.json -o orders.yaml --continuation-rows

  # Collapse rows sharing an order id, appending their lines
  grid-tree-codec to-tree orders.grid.json -o orders.yaml --merge-key-paths "id|lines"
        """,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--config",
        type=str,
        metavar="FILE",
        help="YAML file with layout thresholds and grid limits",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    to_grid = subparsers.add_parser("to-grid", help="Convert a YAML/JSON tree to grid JSON")
    to_grid.add_argument("input", help="Tree file (.yaml, .yml or .json)")
    to_grid.add_argument("-o", "--output", required=True, help="Grid JSON file to write")

    to_tree = subparsers.add_parser("to-tree", help="Convert grid JSON to a YAML/JSON tree")
    to_tree.add_argument("input", help="Grid JSON file")
    to_tree.add_argument(
        "-o", "--output", required=True, help="Tree file to write (.yaml or .json)"
    )
    to_tree.add_argument(
        "--include-empty",
        action="store_true",
        help="Keep empty cells as empty strings and keep empty containers",
    )
    to_tree.add_argument(
        "--continuation-rows",
        action="store_true",
        help="Rows with blank element fields continue the previous element",
    )
    to_tree.add_argument(
        "--infer-types",
        action="store_true",
        help="Convert numeric and boolean looking strings",
    )
    to_tree.add_argument(
        "--merge-key-paths",
        metavar="CONFIG",
        help="Merge items sharing an id, given as idPath|mergePaths|keyPaths|arrayFieldPaths",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    engine = ConversionEngine(config_path=args.config)

    try:
        if args.command == "to-grid":
            result = tree_to_grid_file(engine, args.input, args.output)
        else:
            options = ParseOptions(
                include_empty_fields=args.include_empty,
                continuation_rows=args.continuation_rows,
                infer_types=args.infer_types,
                merge_key_paths=args.merge_key_paths,
            )
            result = grid_to_tree_file(engine, args.input, args.output, options)
    except (FileNotFoundError, ValueError, yaml.YAMLError, CodecError, ConversionError) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    print_summary(result, args.output)


if __name__ == "__main__":
    main()
