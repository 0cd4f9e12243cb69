import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from jsonschema import ValidationError

from collaborators import StaticLicenseCatalog, StaticUserDirectory
from config import DEFAULTS, AppConfig
from docx_generator import DocxGenerator
from errors import GenerationError
from inputs import load_request
from models import OutputVariant
from obligations import GroupingPolicy
from templates import store_from_config, write_default_templates

# ---------- util func ----------

def build_config(args) -> AppConfig:
    """Copy of DEFAULTS with the command line overrides applied."""
    obligations = DEFAULTS.obligations
    if args.threshold is not None:
        obligations = replace(obligations, common_license_threshold=args.threshold)
    if args.keep_all_obligations:
        obligations = replace(obligations, grouping_policy=GroupingPolicy.KEEP_ALL.value)
    templates = DEFAULTS.templates
    if args.templates:
        templates = replace(templates, template_dir=args.templates)
    return replace(DEFAULTS, obligations=obligations, templates=templates)


def read_json(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# ---------- commands ----------

def cmd_generate(args) -> int:
    cfg = build_config(args)
    try:
        request = load_request(read_json(args.input))
    except (OSError, json.JSONDecodeError) as e:
        print(f"[ERROR] cannot read {args.input}: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print(f"[ERROR] invalid request {args.input}: {e.message}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"[ERROR] invalid request {args.input}: {e}", file=sys.stderr)
        return 2

    generator = DocxGenerator(
        templates=store_from_config(cfg.templates),
        user_directory=StaticUserDirectory(request.users),
        license_catalog=StaticLicenseCatalog(request.licenses),
        cfg=cfg,
    )
    try:
        data = generator.generate(
            OutputVariant(args.variant),
            request.license_results,
            request.project,
            obligation_results=request.obligation_results,
            user=request.user,
            external_ids=request.external_ids,
            obligation_status=request.obligation_status,
        )
    except GenerationError as e:
        print(f"[ERROR] {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    print(f"[INFO] wrote {args.variant} document to {out} ({len(data)} bytes)")
    return 0


def cmd_templates(args) -> int:
    for path in write_default_templates(args.directory, DEFAULTS.templates):
        print(f"[INFO] wrote template {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fill license report templates from a JSON request.")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="generate a docx document")
    gen.add_argument("input", help="request JSON file")
    gen.add_argument("output", help="target .docx file")
    gen.add_argument("--variant", choices=[v.value for v in OutputVariant], default=OutputVariant.REPORT.value)
    gen.add_argument("--templates", help="directory holding the template files (default: built-in templates)")
    gen.add_argument("--threshold", type=int, help="minimum citations for a license to get its own obligation table")
    gen.add_argument("--keep-all-obligations", action="store_true",
                     help="keep every obligation per license instead of the last one")
    gen.set_defaults(func=cmd_generate)

    tpl = sub.add_parser("templates", help="write the default templates to a directory")
    tpl.add_argument("directory")
    tpl.set_defaults(func=cmd_templates)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
