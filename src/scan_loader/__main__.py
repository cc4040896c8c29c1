"""Imaging dataset import CLI.

Usage:
    python -m scan_loader FILE [FILE ...] [options]
"""

from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scan_loader",
        description="Load imaging files and archives, report what loaded and pick a primary dataset",
    )
    parser.add_argument(
        "files",
        nargs="+",
        metavar="FILE",
        help="Image, DICOM or archive (zip/tar) files to load",
    )
    parser.add_argument(
        "--seg-ext",
        default="seg",
        help="Extension token marking segmentation files (default: seg, '' to disable)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=8,
        help="Maximum archive nesting depth",
    )
    parser.add_argument(
        "--output",
        metavar="PATH",
        default=None,
        help="Write output to file (default: stdout)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print pipeline progress to stderr",
    )
    parser.add_argument(
        "--format",
        choices=["json", "summary"],
        default="json",
        help="Output format: json (machine-readable) or summary (human-readable)",
    )
    return parser


def _source_label(source) -> str:
    from scan_loader.schemas.data_source import get_data_source_name

    name = get_data_source_name(source)
    if name:
        return name
    if source.dicom_src is not None:
        return f"<dicom:{len(source.dicom_src.sources)} files>"
    return f"<source {source.id}>"


def summary_to_dict(summary, stores) -> dict:
    """Flatten a LoadSummary into JSON-friendly data."""
    loaded = [
        {
            "input": _source_label(result.data_source),
            "dicom_series": result.data_source.dicom_src is not None,
            "datasets": [
                {
                    "data_id": r.data_id,
                    "data_type": r.data_type,
                    "name": _source_label(r.data_source),
                    "archive_path": r.data_source.archive_src.path
                    if r.data_source.archive_src
                    else None,
                }
                for r in result.data
            ],
        }
        for result in summary.succeeded
    ]
    failed = [
        {
            "input": _source_label(result.data_source),
            "dicom_series": result.data_source.dicom_src is not None,
            "errors": [
                {
                    "message": error.message,
                    "error_type": type(error.cause).__name__,
                    "stack_trace": [_source_label(s) for s in error.input_data_stack_trace],
                }
                for error in result.errors
            ],
        }
        for result in summary.errored
    ]
    primary = None
    if summary.primary is not None:
        primary = {
            "data_id": summary.primary.data_id,
            "data_type": summary.primary.data_type,
            "name": _source_label(summary.primary.data_source),
        }
    return {
        "succeeded": loaded,
        "errored": failed,
        "primary": primary,
        "error": str(stores.load_data.error) if stores.load_data.error else None,
    }


def format_summary(data: dict) -> str:
    # The batch's DICOM series result is not one of the caller's inputs
    loaded = [e for e in data["succeeded"] if not e["dicom_series"]]
    failed = [e for e in data["errored"] if not e["dicom_series"]]
    lines = [f"Loaded {len(loaded)} inputs, {len(failed)} failed"]
    lines.append("=" * len(lines[0]))
    if any(e["dicom_series"] for e in data["succeeded"]):
        lines.append("DICOM series: loaded")
    elif any(e["dicom_series"] for e in data["errored"]):
        lines.append("DICOM series: failed")
    for entry in data["succeeded"]:
        lines.append(f"{entry['input']}: {len(entry['datasets'])} datasets")
        for ds in entry["datasets"]:
            where = f" [{ds['archive_path']}]" if ds["archive_path"] else ""
            lines.append(f"  - {ds['name']}{where} ({ds['data_type']})")
    if data["primary"]:
        lines.append("")
        lines.append(f"Primary: {data['primary']['name']} ({data['primary']['data_type']})")
    if data["error"]:
        lines.append("")
        lines.append(data["error"])
    return "\n".join(lines)


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level, format="%(levelname)s: %(message)s", stream=sys.stderr
    )

    from scan_loader.actions.load_files import load_files
    from scan_loader.schemas.config import LoaderConfig
    from scan_loader.store.registry import create_stores

    for name in args.files:
        if not Path(name).is_file():
            print(f"Error: input file not found: {name}", file=sys.stderr)
            return 2

    config = LoaderConfig(segment_group_extension=args.seg_ext, max_depth=args.max_depth)
    stores = create_stores(config)
    try:
        summary = asyncio.run(load_files(stores, args.files))
    finally:
        stores.close()

    data = summary_to_dict(summary, stores)
    if args.format == "summary":
        output_text = format_summary(data)
    else:
        output_text = json.dumps(data, indent=2, default=str)

    if args.output:
        Path(args.output).write_text(output_text)
    else:
        print(output_text)

    if summary.errored or stores.load_data.error:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
