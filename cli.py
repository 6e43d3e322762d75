import argparse
import json
import sys

from core.config import load_settings
from core.engine import process_queue_item
from core.parser import format_ms_as_eta, parse_bytesize, parse_duration_to_ms, parse_interval_to_ms
from integrations.queue import normalize_record
from storage.strikes import StrikeLedger

PARSERS = {
    'duration': parse_duration_to_ms,
    'size': parse_bytesize,
    'interval': parse_interval_to_ms,
    'eta': format_ms_as_eta,
}


def cmd_run(args):
    import striker

    sys.exit(striker.main())


def cmd_once(args):
    import striker

    sys.exit(striker.main(max_runs=1))


def cmd_simulate(args):
    settings = load_settings()
    platform = args.platform or settings.platform
    with open(args.item_json, 'r') as f:
        record = json.load(f)
    item = normalize_record(record, platform)
    if item is None:
        print(json.dumps({"error": "record has no integer id"}, indent=2))
        sys.exit(1)
    ledger = StrikeLedger({item.id: args.strikes})
    outcome, decision = process_queue_item(item, ledger, settings.thresholds())
    print(
        json.dumps(
            {
                "item": {"id": item.id, "name": item.name, "size": item.size, "eta_ms": item.eta},
                "outcome": outcome.as_dict(),
                "remove": decision.remove,
            },
            indent=2,
        )
    )


def cmd_thresholds(args):
    settings = load_settings()
    t = settings.thresholds()
    print(
        json.dumps(
            {
                "platform": settings.platform,
                "size_threshold": settings.size_threshold,
                "size_bytes": t.size_bytes,
                "time_threshold": settings.time_threshold,
                "time_ms": t.time_ms,
                "strike_threshold": t.strikes,
                "aggressive_strikes": t.aggressive,
                "check_interval_ms": settings.check_interval_ms,
            },
            indent=2,
        )
    )


def cmd_parse(args):
    print(PARSERS[args.kind](args.value))


def main():
    ap = argparse.ArgumentParser(description="Queue Striker CLI")
    sub = ap.add_subparsers(dest='cmd')

    p_run = sub.add_parser('run', help='Start the monitor loop')
    p_run.set_defaults(func=cmd_run)

    p_once = sub.add_parser('once', help='Run a single check and exit')
    p_once.set_defaults(func=cmd_once)

    p_sim = sub.add_parser('simulate', help='Simulate a decision for a raw queue record JSON')
    p_sim.add_argument('item_json', help='Path to queue record JSON file')
    p_sim.add_argument('--platform', default=None, help='radarr or sonarr (defaults to PLATFORM)')
    p_sim.add_argument('--strikes', type=int, default=0, help='Strikes already recorded for the item')
    p_sim.set_defaults(func=cmd_simulate)

    p_thr = sub.add_parser('thresholds', help='Show the resolved thresholds')
    p_thr.set_defaults(func=cmd_thresholds)

    p_parse = sub.add_parser('parse', help='Convert a duration, size, interval or ETA value')
    p_parse.add_argument('kind', choices=sorted(PARSERS))
    p_parse.add_argument('value')
    p_parse.set_defaults(func=cmd_parse)

    args = ap.parse_args()
    if not hasattr(args, 'func'):
        ap.print_help()
        sys.exit(1)
    args.func(args)


if __name__ == '__main__':
    main()
