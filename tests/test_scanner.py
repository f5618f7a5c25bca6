"""
Unit tests for dabcd.scanner (call-site scanning).

Covers paren matching, the explicit-binding check, ignored keys,
ordering, and the accepted limits of textual matching.
"""
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dabcd.data_structures import MethodMetadata
from dabcd.scanner import find_closing_paren, missing_params, scan_calls


def _allowed(**keys):
    """_allowed(f=["x"]) -> {"f": MethodMetadata(["x"], "1.0")}"""
    return {key: MethodMetadata(list(params), "1.0") for key, params in keys.items()}


# ---------------------------------------------------------------------------
# Paren matching
# ---------------------------------------------------------------------------

class TestClosingParen:

    def test_flat(self):
        assert find_closing_paren("f(1, 2)", 1) == 6

    def test_nested_pairs_first_open_with_last_close(self):
        assert find_closing_paren("f(g(x), y)", 1) == 9

    def test_deeply_nested(self):
        text = "f(a(b(c(d))))"
        assert find_closing_paren(text, 1) == len(text) - 1

    def test_unbalanced_returns_minus_one(self):
        assert find_closing_paren("f(g(x)", 1) == -1
        assert find_closing_paren("f(", 1) == -1

    def test_stops_at_match(self):
        assert find_closing_paren("f(x) + (y)", 1) == 3


# ---------------------------------------------------------------------------
# Binding check
# ---------------------------------------------------------------------------

class TestMissingParams:

    def test_bound_param(self):
        assert missing_params("x=1", ["x"]) == ()

    def test_bound_with_space(self):
        assert missing_params("x = 1", ["x"]) == ()

    def test_positional_is_not_binding(self):
        assert missing_params("1", ["x"]) == ("x",)

    def test_reports_only_missing_in_metadata_order(self):
        assert missing_params("b=2", ["a", "b", "c"]) == ("a", "c")


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------

class TestScan:

    def test_explicit_param_is_not_flagged(self):
        assert scan_calls("f(x=1)", _allowed(f=["x"])) == []

    def test_omitted_param_is_flagged_once(self):
        findings = scan_calls("f(1)", _allowed(f=["x"]))
        assert len(findings) == 1
        assert findings[0].key == "f"
        assert findings[0].missing_params == ("x",)

    def test_span_covers_identifier_only(self):
        findings = scan_calls("y = np.f(1)", _allowed(f=["x"]))
        assert (findings[0].start, findings[0].end) == (7, 8)

    def test_owner_prefix_is_discarded(self):
        findings = scan_calls("pd.concat([a, b])", _allowed(concat=["sort"]))
        assert [f.key for f in findings] == ["concat"]

    def test_whitespace_before_paren(self):
        findings = scan_calls("f (1)", _allowed(f=["x"]))
        assert len(findings) == 1
        assert findings[0].start == 0

    def test_all_params_must_be_bound(self):
        allowed = _allowed(f=["x", "y"])
        assert scan_calls("f(x=1, y=2)", allowed) == []
        findings = scan_calls("f(x=1)", allowed)
        assert findings[0].missing_params == ("y",)

    def test_nested_call_uses_full_argument_span(self):
        # pairing with the first `)` would cut the args to "g(1"
        assert scan_calls("f(g(1), y=2)", _allowed(f=["y"])) == []

    def test_inner_call_scanned_separately(self):
        findings = scan_calls("f(f(1), x=2)", _allowed(f=["x"]))
        assert len(findings) == 1
        assert findings[0].start == 2

    def test_unknown_call_is_ignored(self):
        assert scan_calls("h(1)", _allowed(f=["x"])) == []

    def test_unbalanced_call_yields_nothing(self):
        assert scan_calls("f(1, g(2)", _allowed(f=["x"])) == []

    def test_unbalanced_call_does_not_hide_later_calls(self):
        # the first f( never closes; the second is still reported
        text = "f(1\ng(2)"
        findings = scan_calls(text, _allowed(f=["x"], g=["y"]))
        assert [f.key for f in findings] == ["g"]

    def test_ignored_keys_are_skipped(self):
        allowed = _allowed(f=["x"], g=["y"])
        findings = scan_calls("f(1)\ng(1)", allowed, ignored={"f"})
        assert [f.key for f in findings] == ["g"]

    def test_findings_in_source_order(self):
        text = "g(1)\nf(1)\ng(2)"
        findings = scan_calls(text, _allowed(f=["x"], g=["y"]))
        assert [f.key for f in findings] == ["g", "f", "g"]
        assert [f.start for f in findings] == sorted(f.start for f in findings)

    def test_deterministic(self):
        text = "a = f(1)\nb = f(g(2), x=3)\nc = g()"
        allowed = _allowed(f=["x"], g=["y"])
        assert scan_calls(text, allowed) == scan_calls(text, allowed)

    def test_finding_carries_metadata(self):
        allowed = _allowed(f=["x"])
        findings = scan_calls("f(1)", allowed)
        assert findings[0].metadata is allowed["f"]

    def test_line_col(self):
        text = "import numpy\n\nz = f(1)"
        finding = scan_calls(text, _allowed(f=["x"]))[0]
        assert finding.line_col(text) == (3, 5)

    # --- textual matching limits ---

    def test_binding_inside_string_literal_counts(self):
        assert scan_calls("f('x=')", _allowed(f=["x"])) == []

    def test_binding_matched_inside_other_param_name(self):
        assert scan_calls("f(max=1)", _allowed(f=["x"])) == []


def run_all_tests():
    print("Running scanner tests...\n")

    suites = [
        ("ClosingParen",  TestClosingParen),
        ("MissingParams", TestMissingParams),
        ("Scan",          TestScan),
    ]

    passed = 0
    failed = 0

    for suite_name, cls in suites:
        instance = cls()
        methods = [m for m in dir(instance) if m.startswith("test_")]
        for method_name in sorted(methods):
            label = f"{suite_name}.{method_name}"
            try:
                getattr(instance, method_name)()
                print(f"  ✓ {label}")
                passed += 1
            except Exception as e:
                print(f"  ✗ {label}")
                print(f"      {e}")
                failed += 1

    print(f"\n{'✅' if failed == 0 else '❌'} {passed} passed, {failed} failed")
    return failed == 0


if __name__ == "__main__":
    sys.exit(0 if run_all_tests() else 1)
