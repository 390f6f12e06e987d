import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import load_config
from .core.coordinator import COMMANDS, Coordinator
from .errors import ConfigError, SnapshotError

SENSITIVE_KEYS = {"api_key", "password", "token"}


def mask_sensitive(ns: argparse.Namespace) -> dict:
    """Return a dict copy of args with sensitive values masked."""
    data = vars(ns).copy()
    for k in list(data.keys()):
        if k in SENSITIVE_KEYS and data[k]:
            data[k] = "****"
    return data


def configure_logging(debug: bool, log_file: Optional[Path]) -> None:
    level = logging.DEBUG if debug else logging.INFO
    handlers: List[logging.Handler] = []
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if debug else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="grafana-migrator",
        description="Export dashboards, folders and datasources from one Grafana "
                    "instance and import them into another")
    p.add_argument("command", choices=COMMANDS,
                   help="export: source -> local snapshots; import: local snapshots -> destination")
    p.add_argument("-c", "--config", type=Path, default=None,
                   help="YAML file with 'src' and 'dst' sections (host, api_key). "
                        "Defaults to ./grafana.yaml when present.")
    p.add_argument("--snapshot-dir", type=Path, default=None,
                   help="Directory holding dashboards/, folders/ and datasources/ "
                        "(default: current directory)")
    p.add_argument("--timeout", type=float, default=None,
                   help="Per-request timeout in seconds (default: 5)")
    p.add_argument("--no-progress", action="store_true",
                   help="Disable progress bars even on a terminal.")
    p.add_argument("--debug", action="store_true",
                   help="Enable verbose debug logging (incl. HTTP wire logs).")
    p.add_argument("--log-file", type=Path, default=None,
                   help="Write logs to this file instead of stderr.")
    return p


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug, args.log_file)

    log = logging.getLogger("cli")
    log.debug("Parsed args (masked): %s", mask_sensitive(args))

    try:
        config = load_config(args.config, snapshot_dir=args.snapshot_dir, timeout=args.timeout)
        if args.command == "export":
            config.require_source()
        else:
            config.require_destination()
        log.debug("Loaded config: %r", config)

        coord = Coordinator(config, progress=not args.no_progress and sys.stderr.isatty())
        log.debug("Coordinator initialized")
        reports = coord.run(args.command)
        failed = sum(r.failed for r in reports)
        if failed:
            log.warning("Done with %d failed entities; re-run '%s' to retry them.", failed, args.command)
        else:
            log.info("Done.")
    except ConfigError as e:
        log.error("Configuration error: %s", e)
        sys.exit(1)
    except SnapshotError as e:
        log.error("Snapshot directory error: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        log.warning("Interrupted by user.")
        sys.exit(130)
    except Exception:
        log.exception("Unhandled error during execution")
        sys.exit(1)


if __name__ == "__main__":

    main()
