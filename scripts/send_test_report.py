#!/usr/bin/env python3
"""
Dev helper: send a test ACRA crash report to a running collector.

Builds a report the way an Android app using ACRA would, optionally with
custom data or a deliberately broken body, and POST-s it to the report
endpoint.

Usage
-----
# Basic: valid report to localhost:8080/report
python scripts/send_test_report.py

# Attach custom data (repeatable)
python scripts/send_test_report.py --custom user_id=u-77 --custom screen=checkout

# Send a truncated body to check that malformed reports are still logged
python scripts/send_test_report.py --malformed

# Use a real stack trace from a file
python scripts/send_test_report.py --stack-trace-file trace.txt

# Target a different collector
python scripts/send_test_report.py --url http://crashes.example.com:8080
"""

import argparse
import json
import sys
import textwrap
import uuid
from pathlib import Path

import httpx


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

_SAMPLE_STACK_TRACE = textwrap.dedent("""\
    java.lang.NullPointerException: Attempt to invoke virtual method 'int java.lang.String.length()' on a null object reference
    \tat com.example.app.MainActivity.onCreate(MainActivity.java:42)
    \tat android.app.Activity.performCreate(Activity.java:8051)
    \tat android.app.ActivityThread.performLaunchActivity(ActivityThread.java:3608)
    """)


def _parse_custom(pairs: list[str]) -> dict:
    """Turn ["k=v", ...] into a dict; values that parse as JSON keep their type."""
    custom: dict = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"--custom expects KEY=VALUE, got {pair!r}")
        try:
            custom[key] = json.loads(value)
        except json.JSONDecodeError:
            custom[key] = value
    return custom


def build_report(
    package: str,
    version_name: str,
    version_code: int,
    android_version: str,
    custom_data: dict,
    stack_trace: str,
) -> dict:
    """Build an ACRA-style report with a fresh REPORT_ID."""
    return {
        "REPORT_ID": str(uuid.uuid4()),
        "APP_VERSION_CODE": version_code,
        "APP_VERSION_NAME": version_name,
        "PACKAGE_NAME": package,
        "ANDROID_VERSION": android_version,
        "CUSTOM_DATA": custom_data,
        "STACK_TRACE": stack_trace,
        # A few of the extra fields ACRA sends; the collector ignores them
        "BRAND": "google",
        "PHONE_MODEL": "Pixel 7",
    }


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    parser = argparse.ArgumentParser(
        prog="send_test_report.py",
        description="Send a test ACRA crash report to the crash collector.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_report.py
              python scripts/send_test_report.py --custom flavor=play
              python scripts/send_test_report.py --malformed
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8080",
        help="Collector base URL (default: http://localhost:8080)",
    )
    parser.add_argument(
        "--path",
        default="/report",
        help="Report endpoint path (default: /report)",
    )
    parser.add_argument("--package", default="com.example.app")
    parser.add_argument("--version-name", default="1.0.0")
    parser.add_argument("--version-code", type=int, default=1)
    parser.add_argument("--android-version", default="14")
    parser.add_argument(
        "--custom",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Add a CUSTOM_DATA entry (repeatable)",
    )
    parser.add_argument(
        "--stack-trace-file",
        default=None,
        metavar="PATH",
        help="Read STACK_TRACE from a file instead of the built-in sample",
    )
    parser.add_argument(
        "--malformed",
        action="store_true",
        help="Send a truncated JSON body (expect HTTP 500, entry still logged)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the body without sending it.",
    )

    args = parser.parse_args()

    try:
        custom_data = _parse_custom(args.custom)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.stack_trace_file:
        trace_path = Path(args.stack_trace_file)
        if not trace_path.exists():
            print(f"ERROR: File not found: {trace_path}", file=sys.stderr)
            return 1
        stack_trace = trace_path.read_text()
    else:
        stack_trace = _SAMPLE_STACK_TRACE

    report = build_report(
        package=args.package,
        version_name=args.version_name,
        version_code=args.version_code,
        android_version=args.android_version,
        custom_data=custom_data,
        stack_trace=stack_trace,
    )
    body = json.dumps(report)
    if args.malformed:
        body = body[: len(body) // 2]

    endpoint = f"{args.url.rstrip('/')}{args.path}"

    print(f"Endpoint  : {endpoint}")
    print(f"Report ID : {report['REPORT_ID']}")
    print(f"Package   : {args.package} ({args.version_name})")
    print(f"Malformed : {args.malformed}")

    if args.dry_run:
        print("\n[DRY RUN] Body:")
        print(body)
        return 0

    try:
        response = httpx.post(
            endpoint,
            content=body,
            headers={"Content-Type": "application/json"},
            timeout=30,
        )
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the collector running? Start it with:\n"
            "  crash-collector",
            file=sys.stderr,
        )
        return 1

    symbol = "OK" if response.status_code == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {response.status_code}")
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
