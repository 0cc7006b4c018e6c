from __future__ import annotations

import argparse
import io
import sys
import unittest
from datetime import datetime
from pathlib import Path

DEFAULT_LOG_DIR = Path("tests") / "testlogs"


def _timestamp(now: datetime | None = None) -> str:
    ts = now or datetime.now()
    return ts.strftime("%Y%m%d_%H%M%S")


def _failure_log_path(log_dir: Path, now: datetime | None = None) -> Path:
    return log_dir / f"canvas_test_failures_{_timestamp(now)}.txt"


def _failed_test_ids(result: unittest.result.TestResult) -> list[str]:
    return [str(test) for test, _trace in [*result.failures, *result.errors]]


def _build_failure_report(result: unittest.result.TestResult, test_output: str) -> str:
    lines: list[str] = []
    lines.append(f"Timestamp: {datetime.now().isoformat(timespec='seconds')}")
    lines.append(
        "Summary: "
        f"ran={result.testsRun}, failures={len(result.failures)}, errors={len(result.errors)}, "
        f"skipped={len(result.skipped)}"
    )
    failed = _failed_test_ids(result)
    if failed:
        lines.append("Failed tests:")
        lines.extend(f"  - {test_id}" for test_id in failed)
    lines.append("Fix hint: inspect the stack traces below, fix the failing canvas behavior, then rerun.")
    lines.append("")
    lines.append(test_output.rstrip())
    lines.append("")
    return "\n".join(lines)


def _write_failure_report(log_dir: Path, content: str, now: datetime | None = None) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    path = _failure_log_path(log_dir, now)
    path.write_text(content, encoding="utf-8")
    return path


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the schema canvas test suite and log failures.")
    parser.add_argument("--start-dir", default="tests")
    parser.add_argument("--pattern", default="test_*.py")
    parser.add_argument("--log-dir", type=Path, default=DEFAULT_LOG_DIR)
    parser.add_argument("--verbosity", type=int, default=2)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    suite = unittest.TestLoader().discover(start_dir=args.start_dir, pattern=args.pattern)

    output = io.StringIO()
    result = unittest.TextTestRunner(stream=output, verbosity=args.verbosity).run(suite)

    test_output = output.getvalue()
    sys.stdout.write(test_output)

    if result.wasSuccessful():
        print(f"All tests passed ({len(result.skipped)} skipped). No failure log written.")
        return 0

    log_path = _write_failure_report(args.log_dir, _build_failure_report(result, test_output))
    print(f"Test failures detected. Log written to: {log_path}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
