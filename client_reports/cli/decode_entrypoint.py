from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from client_reports.core.domain.discard_reasons import is_known_reason
from client_reports.core.domain.errors import MalformedPayload
from client_reports.core.domain.role_policy import restrict_to_role
from client_reports.core.domain.types import OUTCOME_LIST_FIELDS, ClientReport
from client_reports.core.envelope.envelope import CLIENT_REPORT_ITEM_TYPE, Envelope
from client_reports.core.serialization.report_codec import deserialize

EXIT_MALFORMED: int = 2

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_reports(path: Path) -> list[ClientReport]:
    """
    Read a file holding either a bare client report payload (one JSON
    object) or an envelope, and decode every client report in it.
    """
    if not path.exists():
        raise FileNotFoundError(path)
    data = path.read_bytes()

    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError):
        obj = None

    if isinstance(obj, dict):
        return [deserialize(obj)]

    envelope = Envelope.parse(data)
    return [
        deserialize(item.payload)
        for item in envelope.items_of_type(CLIENT_REPORT_ITEM_TYPE)
    ]


def summarize_reports(reports: list[ClientReport]) -> dict[str, Any]:
    totals = {field_name: 0 for field_name in OUTCOME_LIST_FIELDS.values()}
    unknown_reasons: set[str] = set()

    for report in reports:
        for kind, field_name in OUTCOME_LIST_FIELDS.items():
            for outcome in report.outcomes(kind):
                totals[field_name] += outcome.quantity
                if not is_known_reason(outcome.reason):
                    unknown_reasons.add(outcome.reason)

    return {
        "reports": len(reports),
        "totals": totals,
        "unknown_reasons": sorted(unknown_reasons),
    }


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="client-reports",
        description="Inspect client report payloads and envelopes",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    decode = subparsers.add_parser(
        "decode",
        help="Validate client reports and print a JSON summary.",
    )
    decode.add_argument(
        "path",
        type=Path,
        help="Path to a client report JSON payload or an envelope file.",
    )
    decode.add_argument(
        "--role",
        choices=["leaf", "relay"],
        default="relay",
        help="Role whose policy applies (leaf drops relay-only lists).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.WARNING)

    try:
        reports = _load_reports(args.path)
    except MalformedPayload as exc:
        print(f"malformed client report: {exc}", file=sys.stderr)
        return EXIT_MALFORMED

    reports = [restrict_to_role(report, args.role) for report in reports]
    print(json.dumps(summarize_reports(reports), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
