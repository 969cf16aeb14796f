from __future__ import annotations

import re
from datetime import datetime, timezone

from campaign_tracker.models.processing_result import ProcessingResult
from campaign_tracker.services.summary import render_summary_line

"""SUMMARY line format contract.

Downstream scripts grep this line; the key order and number formats are fixed.
"""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+files=([0-9]+)/(\1)\s+success=([0-9]+)\s+failed=([0-9]+)\s+"
    r"rows=([0-9]+)\s+skipped_rows=([0-9]+)\s+gross=([0-9]+\.[0-9]{2})\s+"
    r"elapsed_sec=([0-9]+\.?[0-9]*)\s+throughput_rps=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = (
        "SUMMARY files=1/1 success=1 failed=0 rows=4 skipped_rows=0 gross=488.00 "
        "elapsed_sec=0.84 throughput_rps=4761.9"
    )
    assert SUMMARY_PATTERN.match(line), "SUMMARY line should match contract regex"


def test_rendered_line_matches_contract():
    t = datetime(2025, 3, 1, tzinfo=timezone.utc)
    for elapsed, rps in [(0.84, 4761.9), (0.0, 0.0), (12.0, 3.5), (0.0004, 12500.0)]:
        result = ProcessingResult(3, 1, 42, 5, 1234.567, t, t, elapsed, rps)
        line = render_summary_line(result)
        m = SUMMARY_PATTERN.match(line)
        assert m, line
        assert m.group(1) == "4"
        assert m.group(7) == "1234.57"
