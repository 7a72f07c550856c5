from __future__ import annotations
import argparse, json, logging, sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import BalanceConfigError, DEFAULT_ENV_PREFIX
from .service import BattleService
from .ship_catalog import ShipCatalogError, UnknownShipError, load_ship_catalog

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="fleet-battle",
        description="Deterministic fleet battle resolution"
    )
    p.add_argument("--log-level", default="WARNING",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    sub = p.add_subparsers(dest="cmd")

    # resolve
    rs = sub.add_parser("resolve", help="Resolve one battle and emit the result as JSON")
    rs.add_argument("--attacker", action="append", default=[], metavar="SHIP=QTY",
                    help="Attacking ships, repeatable")
    rs.add_argument("--defender", action="append", default=[], metavar="SHIP=QTY",
                    help="Defending ships, repeatable")
    rs.add_argument("--attacker-modifier", action="append", default=[], metavar="NAME=VALUE")
    rs.add_argument("--defender-modifier", action="append", default=[], metavar="NAME=VALUE")
    rs.add_argument("--ships", type=str, default=None, help="Ship catalog (.yaml or .json)")
    rs.add_argument("--config", type=str, action="append", default=[],
                    help="Balance config files (merged in order)")
    rs.add_argument("--env-prefix", type=str, default=DEFAULT_ENV_PREFIX, help="Env prefix for overrides")
    rs.add_argument("--out", type=str, default=None, help="Write the JSON result to this path")

    # catalog
    ct = sub.add_parser("catalog", help="Print the ship catalog as JSON")
    ct.add_argument("--ships", type=str, default=None, help="Ship catalog (.yaml or .json)")

    args = p.parse_args(argv)
    if getattr(args, "cmd", None) is None:
        p.print_help()
        sys.exit(2)
    args.parser = p
    return args


def _pairs(values: List[str], label: str, parser: argparse.ArgumentParser) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        if not sep or not key.strip():
            parser.error(f"{label} expects KEY=VALUE, got '{raw}'")
        out[key.strip()] = value.strip()
    return out


def _emit(payload: Dict[str, Any], out: Optional[str]) -> None:
    text = json.dumps(payload, indent=2, sort_keys=True)
    if out:
        Path(out).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


def _resolve(args: argparse.Namespace) -> int:
    parser = args.parser
    attacker = _pairs(args.attacker, "--attacker", parser)
    defender = _pairs(args.defender, "--defender", parser)
    attacker_mods = _pairs(args.attacker_modifier, "--attacker-modifier", parser)
    defender_mods = _pairs(args.defender_modifier, "--defender-modifier", parser)
    try:
        service = BattleService.from_files(
            ships_path=args.ships,
            config_paths=args.config or None,
            env_prefix=args.env_prefix,
        )
        result = service.resolve(attacker, defender, attacker_mods, defender_mods)
    except (BalanceConfigError, ShipCatalogError, UnknownShipError) as exc:
        parser.error(str(exc))
    _emit(result.to_dict(), args.out)
    return 0


def _catalog(args: argparse.Namespace) -> int:
    try:
        catalog = load_ship_catalog(args.ships)
    except ShipCatalogError as exc:
        args.parser.error(str(exc))
    _emit(catalog.to_dict(), None)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT, stream=sys.stderr)
    if args.cmd == "resolve":
        return _resolve(args)
    return _catalog(args)


if __name__ == "__main__":
    sys.exit(main())
