"""MeshGraph command-line interface."""

from __future__ import annotations

import argparse
import logging

from .io import load_json, save_json
from .logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MeshGraph CLI")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-file", dest="log_file")
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Check mesh invariants")
    validate.add_argument("--in", dest="input_path", required=True)

    render = sub.add_parser("render", help="Render a mesh to PNG")
    render.add_argument("--in", dest="input_path", required=True)
    render.add_argument("--out", dest="output_path", required=True)
    render.add_argument("--dpi", type=int, default=150)

    build_rect = sub.add_parser("build-rect", help="Build a triangulated rectangle (flat)")
    build_rect.add_argument("--nx", type=int, required=True)
    build_rect.add_argument("--ny", type=int, required=True)
    build_rect.add_argument("--width", type=float, default=1.0)
    build_rect.add_argument("--height", type=float, default=1.0)
    build_rect.add_argument("--out", dest="output_path", required=True)

    build_ico = sub.add_parser("build-ico", help="Build an icosahedron (sphere)")
    build_ico.add_argument("--radius", type=float, default=6371000.0)
    build_ico.add_argument("--out", dest="output_path", required=True)

    refine = sub.add_parser("refine", help="Refine a mesh with Rivara productions")
    refine.add_argument("--in", dest="input_path", required=True)
    refine.add_argument("--out", dest="output_path", required=True)
    target = refine.add_mutually_exclusive_group(required=True)
    target.add_argument("--all", action="store_true", help="Mark every triangle once")
    target.add_argument("--max-edge", type=float, help="Refine until no side is longer")
    refine.add_argument("--use-uv", action="store_true")
    refine.add_argument("--max-iterations", type=int, default=1000)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    if args.command == "validate":
        g = load_json(args.input_path)
        errors = g.validate()
        if errors:
            for error in errors:
                print(error)
            raise SystemExit(1)
        print(f"OK: {g!r}")

    elif args.command == "render":
        from .render import render_png
        g = load_json(args.input_path)
        render_png(g, args.output_path, dpi=args.dpi)
        print(f"Saved {args.output_path}")

    elif args.command == "build-rect":
        from .builders import build_rectangle_mesh
        g = build_rectangle_mesh(args.nx, args.ny, args.width, args.height)
        save_json(g, args.output_path)
        print(f"Saved {args.output_path}: {g!r}")

    elif args.command == "build-ico":
        from .builders import build_icosahedron
        g = build_icosahedron(args.radius)
        save_json(g, args.output_path)
        print(f"Saved {args.output_path}: {g!r}")

    elif args.command == "refine":
        _cmd_refine(args)


def _cmd_refine(args) -> None:
    from .refiner import RefinementConfig, mark_for_refinement, refine, refine_to_size

    g = load_json(args.input_path)
    config = RefinementConfig(use_uv=args.use_uv, max_iterations=args.max_iterations)
    try:
        if args.all:
            mark_for_refinement(g, lambda graph, i: True)
            report = refine(g, config)
        else:
            report = refine_to_size(g, args.max_edge, config)
    except (RuntimeError, ValueError) as exc:
        print(exc)
        raise SystemExit(1)

    save_json(g, args.output_path)
    for name, count in sorted(report.applied.items()):
        print(f"  {name}: {count}")
    print(f"Saved {args.output_path}: {g!r}")


if __name__ == "__main__":
    main()
