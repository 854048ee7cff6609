"""Command line interface printing a missing data report of a file.

This module provides a command line interface that loads a CSV file
through a :mod:`nullscope.session` and reports where data is missing,
how many rows would survive dropping incomplete rows and, optionally,
how missing entries distribute across the values of a column.

The results are printed to the console in a tabular format
using the :mod:`nullscope.utils.tabulate` module.
"""

import argparse
import logging

from nullscope import session
from nullscope.compute import NullCountAggregation, col, is_null
from nullscope.config import Settings
from nullscope.errors import NullscopeError
from nullscope.utils import schema, tabulate

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Report missing data in a CSV file."
    )
    parser.add_argument("file", type=str, help="The CSV file to inspect.")
    parser.add_argument(
        "--no-header",
        action="store_true",
        help="The first line of the file is data, columns are named f0, f1, ...",
    )
    parser.add_argument(
        "--no-infer-schema",
        action="store_true",
        help="Read every column as text.",
    )
    parser.add_argument(
        "--null-value",
        action="append",
        help="Token read as a missing entry. Can be provided multiple times.",
    )
    parser.add_argument(
        "--group-by",
        metavar="COLUMN",
        help="Count the missing entries of each column for each value of COLUMN.",
    )
    parser.add_argument(
        "--crosstab",
        nargs=2,
        metavar=("ROWS", "COLUMNS"),
        help="Print the frequency table of two columns.",
    )
    parser.add_argument(
        "--describe", action="store_true", help="Print summary statistics."
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log the execution of the plans."
    )
    return parser


def report(args: argparse.Namespace, settings: Settings) -> None:
    """Print the report for the parsed command line arguments."""
    s = session.start(settings)
    df = s.read_csv(
        args.file,
        header=not args.no_header,
        infer_schema=not args.no_infer_schema,
        null_value=args.null_value,
    ).cache()

    print(schema.format_schema(df.schema))
    total = df.count()
    print(f"\nRows: {total}\n")
    print(tabulate.tabulate(df.missing_summary().to_arrow(), max_rows=len(df.columns)))

    complete = df.dropna(how="any").count()
    empty = total - df.dropna(how="all").count()
    share = (complete / total * 100) if total else 0.0
    print(f"\nComplete rows: {complete} ({share:.2f}%)")
    print(f"Rows with no value at all: {empty}")

    if args.group_by:
        aggregations = {
            name: NullCountAggregation(name)
            for name in df.columns
            if name != args.group_by
        }
        by_group = df.group_by(args.group_by).agg(**aggregations).sort(args.group_by)
        print(f"\nMissing entries by {args.group_by}:")
        print(tabulate.tabulate(by_group.to_arrow(), max_rows=settings.max_rows))

        missing_keys = df.filter(is_null(col(args.group_by))).count()
        if missing_keys:
            print(f"Rows where {args.group_by} itself is missing: {missing_keys}")

    if args.crosstab:
        rows, columns = args.crosstab
        print(f"\nFrequencies of {rows} by {columns}:")
        print(tabulate.tabulate(df.crosstab(rows, columns).to_arrow(), max_rows=settings.max_rows))

    if args.describe:
        print("\nSummary statistics:")
        print(tabulate.tabulate(df.describe().to_arrow(), max_rows=settings.max_rows))

    session.stop()


def main(argv: list[str] | None = None) -> int:
    """Parse the command line arguments and print the report."""
    args = build_parser().parse_args(argv)
    try:
        settings = Settings()
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else settings.log_level_number,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        report(args, settings)
    except (NullscopeError, OSError, ValueError) as e:
        logger.debug("Report failed", exc_info=True)
        print(f"Unable to report on {args.file}, {e}")
        session.stop()
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
