#!/usr/bin/env python3

"""
Benchmark comparison: csvgrid vs stdlib csv vs pandas vs polars

# Install dependencies
pip install --upgrade --no-cache-dir -e .[bench]

# Run benchmark with 100 thousand rows × 10 columns
python scripts/benchmark_python.py --rows 100000 --cols 10

# Include a save of the loaded grid
python scripts/benchmark_python.py --rows 100000 --save

# Use an existing CSV file
python scripts/benchmark_python.py --file /path/to/data.csv
"""

import argparse
import logging
import os
import tempfile
import time

logger = logging.getLogger(__name__)


def generate_csv(filepath: str, rows: int, cols: int) -> int:
    """Generate a test CSV file and return its size in bytes."""
    print(f"Generating CSV: {rows:,} rows × {cols} columns...")
    start = time.perf_counter()

    with open(filepath, 'w', newline='') as f:
        # Header
        header = ','.join([f'col{i}' for i in range(cols)])
        f.write(header + '\n')

        # Data rows, every third column quoted with an embedded delimiter
        for row_num in range(rows):
            row = ','.join([
                f'"value {row_num}, {i}"' if i % 3 == 0 else f'value_{row_num}_{i}'
                for i in range(cols)
            ])
            f.write(row + '\n')

            if row_num > 0 and row_num % 1_000_000 == 0:
                print(f"  Generated {row_num:,} rows...")

    elapsed = time.perf_counter() - start
    size = os.path.getsize(filepath)
    print(f"  Done in {elapsed:.2f}s, file size: {size / (1024**2):.1f} MB")
    return size


def benchmark_csvgrid(filepath: str, save: bool = False) -> tuple:
    """Benchmark csvgrid load (and optionally save)."""
    try:
        import csvgrid
    except ImportError:
        return None, "csvgrid not installed"

    print("Benchmarking csvgrid...")

    start = time.perf_counter()
    row_count = csvgrid.count_rows(filepath)
    count_time = time.perf_counter() - start

    start = time.perf_counter()
    grid = csvgrid.load_file(filepath)
    parse_time = time.perf_counter() - start

    save_time = None
    if save:
        with tempfile.NamedTemporaryFile(suffix='.csv', delete=False) as out_file:
            out_path = out_file.name
        try:
            start = time.perf_counter()
            csvgrid.save(out_path, grid)
            save_time = time.perf_counter() - start
        finally:
            if os.path.exists(out_path):
                os.unlink(out_path)

    return {
        'count_time': count_time,
        'count_rows': row_count,
        'parse_time': parse_time,
        'save_time': save_time,
        'parse_rows': grid.get_height(),
        'parse_cols': grid.get_width(0),
    }, None


def benchmark_pandas(filepath: str) -> tuple:
    """Benchmark pandas CSV reader."""
    try:
        import pandas as pd
    except ImportError:
        return None, "pandas not installed"

    print("Benchmarking pandas...")

    start = time.perf_counter()
    df = pd.read_csv(filepath, header=None, dtype=str, keep_default_na=False)
    parse_time = time.perf_counter() - start

    return {
        'count_time': None,  # pandas doesn't have a fast count
        'count_rows': len(df),
        'parse_time': parse_time,
        'save_time': None,
        'parse_rows': len(df),
        'parse_cols': len(df.columns),
    }, None


def benchmark_polars(filepath: str) -> tuple:
    """Benchmark polars CSV reader."""
    try:
        import polars as pl
    except ImportError:
        return None, "polars not installed"

    print("Benchmarking polars...")

    start = time.perf_counter()
    df = pl.read_csv(filepath, has_header=False, infer_schema_length=0)
    parse_time = time.perf_counter() - start

    return {
        'count_time': None,  # polars doesn't have a fast count
        'count_rows': len(df),
        'parse_time': parse_time,
        'save_time': None,
        'parse_rows': len(df),
        'parse_cols': len(df.columns),
    }, None


def benchmark_stdlib(filepath: str) -> tuple:
    """Benchmark Python stdlib csv reader."""
    import csv

    print("Benchmarking stdlib csv...")

    start = time.perf_counter()
    with open(filepath, 'r', newline='') as f:
        reader = csv.reader(f)
        rows = list(reader)
    parse_time = time.perf_counter() - start

    return {
        'count_time': None,
        'count_rows': len(rows),
        'parse_time': parse_time,
        'save_time': None,
        'parse_rows': len(rows),
        'parse_cols': len(rows[0]) if rows else 0,
    }, None


def format_throughput(file_size: int, parse_time: float) -> str:
    """Calculate and format throughput in MB/s."""
    if parse_time > 0:
        mb_per_sec = (file_size / (1024**2)) / parse_time
        return f"{mb_per_sec:.1f} MB/s"
    return "N/A"


def main():
    parser = argparse.ArgumentParser(description='Benchmark CSV loaders')
    parser.add_argument('--rows', type=int, default=100_000, help='Number of rows')
    parser.add_argument('--cols', type=int, default=10, help='Number of columns')
    parser.add_argument('--file', type=str, help='Use existing CSV file instead of generating')
    parser.add_argument('--save', action='store_true', help='Also time csvgrid save')
    parser.add_argument('--verbose', action='store_true', help='Show csvgrid debug logging')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    # Generate or use existing file
    if args.file:
        filepath = args.file
        file_size = os.path.getsize(filepath)
        print(f"Using existing file: {filepath} ({file_size / (1024**2):.1f} MB)")
    else:
        filepath = tempfile.mktemp(suffix='.csv')
        file_size = generate_csv(filepath, args.rows, args.cols)

    print(f"\n{'='*60}")
    print(f"BENCHMARK: {args.rows:,} rows × {args.cols} columns")
    print(f"File size: {file_size / (1024**2):.1f} MB")
    print(f"{'='*60}\n")

    results = {}

    results['csvgrid'], err = benchmark_csvgrid(filepath, save=args.save)
    if err:
        print(f"  Skipped: {err}")

    results['polars'], err = benchmark_polars(filepath)
    if err:
        print(f"  Skipped: {err}")

    results['pandas'], err = benchmark_pandas(filepath)
    if err:
        print(f"  Skipped: {err}")

    results['stdlib'], err = benchmark_stdlib(filepath)
    if err:
        print(f"  Skipped: {err}")

    # Print results
    print(f"\n{'='*60}")
    print("RESULTS")
    print(f"{'='*60}")
    print(f"{'Library':<12} {'Parse Time':>12} {'Throughput':>14} {'Rows':>12}")
    print(f"{'-'*60}")

    for name, result in sorted(results.items(), key=lambda x: x[1]['parse_time'] if x[1] else float('inf')):
        if result:
            throughput = format_throughput(file_size, result['parse_time'])
            print(f"{name:<12} {result['parse_time']:>10.3f}s {throughput:>14} {result['parse_rows']:>12,}")

    grid_result = results.get('csvgrid')
    if grid_result:
        print(f"\ncsvgrid count_rows: {grid_result['count_time']:.3f}s")
        if grid_result['save_time'] is not None:
            print(f"csvgrid save: {grid_result['save_time']:.3f}s")

    # Cleanup
    if not args.file:
        os.unlink(filepath)
        logger.debug("Removed %s", filepath)
        print(f"\nCleaned up temporary file")


if __name__ == '__main__':
    main()
