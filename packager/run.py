from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from .config import request_from_file
from .errors import PackagerError, PackagingError
from .models import BEST_EFFORT, FAIL_FAST, PackagingRequest
from .pipeline import Packager
from .targets import SupportedTargets
from .utils import dump_json


def _configure_logging(verbose: int, quiet: int) -> logging.Logger:
    level = logging.INFO
    if quiet >= 2:
        level = logging.ERROR
    elif quiet >= 1:
        level = logging.WARNING
    elif verbose >= 1:
        level = logging.DEBUG

    logger = logging.getLogger("packager")
    logger.setLevel(level)
    logger.propagate = False
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def _request_from_args(args: argparse.Namespace) -> PackagingRequest:
    overrides: Dict[str, Any] = {
        "dir": args.sourcedir,
        "name": args.appname,
        "version": args.version,
        "arch": args.arch,
        "platform": args.platform,
        "out": args.out,
        "ignore": args.ignore or None,
        "app_bundle_id": args.app_bundle_id,
        "app_version": args.app_version,
        "mode": args.mode,
        "jobs": args.jobs,
    }
    if args.all:
        overrides["all"] = True
    if args.overwrite:
        overrides["overwrite"] = True
    if args.no_tmpdir:
        overrides["tmpdir"] = False
    elif args.tmpdir:
        overrides["tmpdir"] = args.tmpdir
    download: Dict[str, Any] = {}
    if args.cache:
        download["cache"] = args.cache
    if args.mirror:
        download["mirror"] = args.mirror
    if download:
        overrides["download"] = download

    if args.config:
        return request_from_file(args.config, **overrides)
    return PackagingRequest.from_dict({key: value for key, value in overrides.items() if value is not None})


def cmd_targets(args: argparse.Namespace) -> int:
    targets = SupportedTargets.default()
    print(f"arch\t{', '.join(targets.archs)}")
    print(f"platform\t{', '.join(targets.platforms)}")
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    try:
        request = _request_from_args(args)
        report = Packager().package(request)
    except PackagingError as exc:
        for app_path in exc.app_paths:
            print(f"Wrote new app to {app_path}")
        print(str(exc), file=sys.stderr)
        return 1
    except PackagerError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    for app_path in report.app_paths:
        print(f"Wrote new app to {app_path}")
    if args.summary:
        dump_json(args.summary, report.to_dict())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="app-packager",
        description="Package an Electron app for one or more platforms and architectures",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Show debug output.")
    parser.add_argument("-q", "--quiet", action="count", default=0, help="Only show warnings (-qq: errors).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    targets_parser = subparsers.add_parser("targets", help="List supported architectures and platforms")
    targets_parser.set_defaults(func=cmd_targets)

    build = subparsers.add_parser("build", help="Package an app")
    build.add_argument("sourcedir", help="Directory containing the app's package.json.")
    build.add_argument("appname", nargs="?", default=None, help="Application name (default: from package.json).")
    build.add_argument("--config", help="JSON or YAML file with packaging options.")
    build.add_argument("--platform", help="all, or a comma separated list of darwin, linux, mas, win32.")
    build.add_argument("--arch", help="all, or a comma separated list of ia32, x64.")
    build.add_argument("--all", action="store_true", help="Package every supported platform and arch.")
    build.add_argument("--version", help="Electron version (default: installed electron dependency).")
    build.add_argument("--app-version", dest="app_version", help="Version string written into the bundle.")
    build.add_argument("--app-bundle-id", dest="app_bundle_id", help="Bundle identifier for mac builds.")
    build.add_argument("--out", help="Output directory (default: current directory).")
    build.add_argument("--overwrite", action="store_true", help="Replace existing output directories.")
    build.add_argument("--ignore", action="append", help="Regular expression of paths to leave out (repeatable).")
    build.add_argument("--tmpdir", help="Base directory for the staging area.")
    build.add_argument("--no-tmpdir", dest="no_tmpdir", action="store_true", help="Build directly in the output directory.")
    build.add_argument("--cache", help="Directory for downloaded Electron archives.")
    build.add_argument("--mirror", help="Base URL to download Electron releases from.")
    build.add_argument("--mode", choices=(FAIL_FAST, BEST_EFFORT), default=None, help="Failure handling across combinations.")
    build.add_argument("--jobs", type=int, default=None, help="Number of combinations to build in parallel.")
    build.add_argument("--summary", help="Write a JSON report of the run to this path.")
    build.set_defaults(func=cmd_build)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
