from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence

from image_display.foundation.config_io import load_config
from image_display.foundation.logging_utils import setup_logger
from image_display.framework.derivatives import create_derivative
from image_display.framework.settings import parse_mapping, parse_str


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="image_display", add_help=True)
    parser.add_argument("--config", default=None, help="Path to a site config YAML file")
    parser.add_argument("--log-level", default=None, help="Console log level (default from site.log_level)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list-styles", help="List responsive image styles usable by the formatter")
    sub.add_parser("summary", help="Print the formatter settings summary")

    render = sub.add_parser("render", help="Render image field items as JSON descriptors")
    render.add_argument("--entity", default="node:1", help="Owning entity as TYPE:ID or TYPE:new")
    render.add_argument("--files", default="", help="Comma-separated file ids, in field order")
    render.add_argument("--alt", default="", help="Alt text for every item")

    access = sub.add_parser("check-access", help="Check access to a named route")
    access.add_argument("route")
    access.add_argument("--permission", action="append", default=[], help="Permission held by the account")
    access.add_argument("--anonymous", action="store_true", help="Check as the anonymous account")

    derive = sub.add_parser("derive", help="Write an image style derivative")
    derive.add_argument("style")
    derive.add_argument("source")
    derive.add_argument("dest")

    return parser


def _parse_file_ids(raw: str) -> list[int]:
    ids: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError as exc:
            raise ValueError(f"Invalid file id: {part!r}") from exc
    return ids


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    cfg, source = load_config(config_path=args.config)
    site_cfg = parse_mapping(cfg.get("site"), "site")
    logger = setup_logger(
        "image_display",
        level=args.log_level or parse_str(site_cfg.get("log_level"), "site.log_level", default="WARNING") or "WARNING",
        log_file=parse_str(site_cfg.get("log_file"), "site.log_file") or None,
    )
    logger.info("Config loaded (%s)", source.describe())

    from image_display.app.site import SiteServices, build_account, parse_entity_ref

    site = SiteServices.from_config(cfg, logger=logger)

    if args.command == "list-styles":
        options = site.create_formatter().settings_form()["responsive_image_style"].options
        for machine_name, label in options.items():
            print(f"{machine_name}\t{label}")
        return 0

    if args.command == "summary":
        for line in site.create_formatter().settings_summary():
            print(line)
        return 0

    if args.command == "render":
        entity = parse_entity_ref(args.entity)
        items = site.build_field_items(entity, _parse_file_ids(args.files), alt=args.alt)
        elements = site.create_formatter().view_elements(items)
        logger.info("Rendered %d of %d items", len(elements), len(items))
        print(json.dumps([element.to_dict() for element in elements], indent=2))
        return 0

    if args.command == "check-access":
        if args.anonymous:
            account = build_account(args.permission, uid=0, name="anonymous")
        else:
            account = build_account(args.permission)
        result = site.router.check_access(args.route, account)
        print(result.state)
        if result.reason:
            logger.info("%s: %s", args.route, result.reason)
        return 0 if result.is_allowed() else 1

    if args.command == "derive":
        style = site.image_styles.load(args.style)
        if style is None:
            raise ValueError(f"Unknown image style: {args.style}")
        out = create_derivative(style, args.source, args.dest)
        logger.info("Derivative for %s written to %s", style.id, out)
        print(out)
        return 0

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
