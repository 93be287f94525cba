#!/usr/bin/env python3
"""
Evaluate a policy status transition from the command line.

Usage:
    python3 scripts/evaluate_transition.py --request request.json
    cat request.json | python3 scripts/evaluate_transition.py --request -
    python3 scripts/evaluate_transition.py --status Active \\
        --event PaymentFailureEvent --event PaymentFailureEvent
    python3 scripts/evaluate_transition.py --status Pending --event ActivationEvent --json

Request file format:
    {"current_status": "Active",
     "events": [{"type": "PaymentFailureEvent", "timestamp": "...", "amount": "100.00"}]}

Exit codes:
    0  evaluated
    2  request rejected (bad status, unknown event type, malformed JSON)
"""

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from policy_config import get_active_config  # noqa: E402
from policy_kernel.db.engine import (  # noqa: E402
    create_tables,
    init_engine_from_url,
    session_scope,
)
from policy_kernel.db.immutability import register_immutability_listeners  # noqa: E402
from policy_kernel.domain.clock import SystemClock  # noqa: E402
from policy_kernel.domain.events import EVENT_TYPES  # noqa: E402
from policy_kernel.logging_config import configure_logging  # noqa: E402
from policy_services.transition_service import (  # noqa: E402
    PolicyTransitionService,
    ServiceResponse,
)

W = 72

EXIT_OK = 0
EXIT_REQUEST_ERROR = 2

# Field values the event flags stamp onto each event, as the demo UI does
_SAMPLE_FIELDS = {
    "PaymentFailureEvent": {"amount": "100.00"},
    "FraudFlagEvent": {"flag": True},
    "ActivationEvent": {},
}


# =============================================================================
# Formatting helpers
# =============================================================================


def banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)


def field(name: str, value, indent: int = 4) -> None:
    print(f"{' ' * indent}{name}: {value}")


def print_response(response: ServiceResponse) -> None:
    body = response.body
    if not response.ok:
        banner("REQUEST REJECTED")
        field("code", body["error"]["code"])
        field("message", body["error"]["message"])
        return

    banner("TRANSITION RESULT")
    field("previous_status", body["previous_status"])
    field("new_status", body["new_status"])
    field("transition_applied", body["transition_applied"])
    field("reason_codes", ", ".join(body["reason_codes"]))
    if "trace_record_id" in body:
        field("trace_record_id", body["trace_record_id"])

    trace = body["decision_trace"]
    print()
    print("--- DECISION TRACE ---")
    field("rule_version", trace["rule_version"])
    field("inputs_hash", trace["inputs_hash"])
    field("timestamp", trace["timestamp"])
    for entry in trace["evaluated_rules"]:
        mark = "MATCH" if entry["matched"] else "-----"
        print(f"      [{mark}] {entry['rule']}")


# =============================================================================
# Request building
# =============================================================================


def build_request(args: argparse.Namespace) -> object:
    """Wire request from --request, or from --status/--event flags."""
    if args.request is not None:
        if args.request == "-":
            return json.load(sys.stdin)
        with open(args.request) as f:
            return json.load(f)

    clock = SystemClock()
    events = []
    for event_type in args.event or []:
        events.append({
            "type": event_type,
            "timestamp": clock.now_utc().isoformat(),
            **_SAMPLE_FIELDS.get(event_type, {}),
        })
    request = {"current_status": args.status, "events": events}
    if args.policy_ref:
        request["policy_ref"] = args.policy_ref
    return request


# =============================================================================
# Main
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Evaluate a policy lifecycle transition.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python3 scripts/evaluate_transition.py --request req.json\n"
            "  python3 scripts/evaluate_transition.py --status Pending --event ActivationEvent\n"
        ),
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--request", type=str,
        help="JSON request file ('-' for stdin)",
    )
    source.add_argument(
        "--status", type=str,
        help="Current policy status (Pending, Active, Suspended, Cancelled)",
    )
    parser.add_argument(
        "--event", action="append", choices=sorted(EVENT_TYPES),
        help="Append a sample event of this type (repeatable)",
    )
    parser.add_argument(
        "--policy-ref", type=str,
        help="Caller reference stored with a recorded trace",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Print the response JSON instead of formatted text",
    )
    parser.add_argument(
        "--record", action="store_true",
        help="Record the decision trace in the configured database",
    )
    parser.add_argument(
        "--config", type=str,
        help="Settings YAML overriding the packaged defaults",
    )

    args = parser.parse_args(argv)

    if args.json:
        # Keep stdout machine-readable
        logging.disable(logging.CRITICAL)
    try:
        return run(args)
    finally:
        logging.disable(logging.NOTSET)


def run(args: argparse.Namespace) -> int:
    settings = get_active_config(args.config)
    if not args.json:
        configure_logging(level=settings.log_level)

    try:
        request = build_request(args)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"  ERROR: Cannot read request: {exc}", file=sys.stderr)
        return EXIT_REQUEST_ERROR

    if args.record:
        init_engine_from_url(settings.database_url, echo=settings.echo_sql)
        create_tables()
        register_immutability_listeners()
        with session_scope() as session:
            response = PolicyTransitionService(settings, session=session).handle(request)
    else:
        response = PolicyTransitionService(settings).handle(request)

    if args.json:
        print(json.dumps(response.body, indent=2))
    else:
        print_response(response)

    return EXIT_OK if response.ok else EXIT_REQUEST_ERROR


if __name__ == "__main__":
    sys.exit(main())
