"""
pathcore command line.

    python main.py points FILE              uniform trajectory of every path
    python main.py export FILE [--format NAME] [-o OUT]
    python main.py info FILE                formats, config and path summary
"""
import argparse
import logging
import sys

from pathcore.config import export_flat, load_config, logging_flat
from pathcore.document import Document
from pathcore.errors import PathCoreError
from pathcore.formats import get_all_formats, get_format
from pathcore.logging_config import setup_logging
from pathcore.path_export import generate_path_file_name, write_export
from pathcore.storage import load_document

logger = logging.getLogger("pathcore.cli")


def cmd_points(args, cfg) -> int:
    document = load_document(args.file, Document(cfg=cfg))
    for path in document.paths:
        print(f"# {path.name} ({path.uid})")
        for p in document.get_path_points(path):
            print(f"{p.x:.3f}, {p.y:.3f}, {p.speed:.3f}, {p.heading:.3f}")
    return 0


def cmd_export(args, cfg) -> int:
    document = load_document(args.file, Document(cfg=cfg))
    if args.format and args.format != document.format.get_name():
        document.change_format(get_format(args.format))
    content = document.export_file()
    if args.output == "-":
        sys.stdout.write(content + "\n")
        return 0
    if args.output:
        write_export(content, args.output)
    else:
        name = generate_path_file_name(document.paths[0].name if document.paths else "path")
        write_export(content, name, export_flat(cfg).get("path_dir"))
    return 0


def cmd_info(args, cfg) -> int:
    document = load_document(args.file, Document(cfg=cfg))
    gc = document.gc
    print(f"Format: {document.format.get_name()}")
    print(f"Unit: {gc.uol.name.lower()}  density: {gc.point_density}  "
          f"robot: {gc.robot_width} x {gc.robot_height}")
    for path in document.paths:
        points = document.get_path_points(path)
        print(f"- {path.name}: {path.segment_count} segments, {len(points)} points, "
              f"speed {path.pc.speed_limit.from_:g}..{path.pc.speed_limit.to:g}")
    print("Available formats:")
    for fmt in get_all_formats():
        print(f"  {fmt.get_name()}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pathcore", description="Robot path files: sample and export")
    parser.add_argument("--config", help="config.json path")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("points", help="print the uniform trajectory (x, y, speed, heading)")
    p.add_argument("file")
    p.set_defaults(func=cmd_points)

    p = sub.add_parser("export", help="re-export a path file")
    p.add_argument("file")
    p.add_argument("--format", help="target format name")
    p.add_argument("-o", "--output", help="output file, '-' for stdout")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("info", help="summarise a path file")
    p.add_argument("file")
    p.set_defaults(func=cmd_info)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)
    log_cfg = logging_flat(cfg)
    setup_logging("DEBUG" if args.verbose else log_cfg.get("level", "INFO"),
                  log_cfg.get("file") or None, stream=sys.stderr)
    try:
        return args.func(args, cfg)
    except (PathCoreError, OSError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
