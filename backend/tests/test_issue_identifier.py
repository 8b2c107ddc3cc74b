"""
Issue Identifier Tests

Verifies:
1. First-match account rules (remarks > late status > verification)
2. Additive duplicate, utilization and obsolescence checks
3. Raw-text fallback and the catch-all dispute
4. Stable severity ordering and field defaults
"""
import pytest

from dispute_engine.models.ssot import (
    ALL_BUREAUS, UNKNOWN_ACCOUNT, Account, Confidence, CreditReportData,
    DisputeReason, PersonalInfo, RecommendedDispute, Severity,
)
from dispute_engine.services.audit import (
    IssueIdentifier, identify_issues, normalize_account_key, select_dispute_issues,
)
from dispute_engine.services.parsing import ReportNormalizer


def _report(*accounts, raw_text="", previous_addresses=None):
    return CreditReportData(
        accounts=list(accounts),
        raw_text=raw_text,
        personal_info=PersonalInfo(previous_addresses=previous_addresses or []),
    )


def _reasons(disputes):
    return [d.reason for d in disputes]


# =============================================================================
# ACCOUNT RULES
# =============================================================================

class TestAccountRules:

    def test_late_payment_scenario(self, today):
        report = _report(Account(account_name="Chase Card", payment_status="Late 30 days"))
        disputes = identify_issues(report, today=today)

        assert len(disputes) == 1
        assert disputes[0].reason == DisputeReason.LATE_PAYMENT
        assert disputes[0].severity == Severity.HIGH
        assert disputes[0].bureau == ALL_BUREAUS
        assert disputes[0].account_name == "Chase Card"

    @pytest.mark.parametrize("status", ["DELINQUENT 60", "In Collection", "30 days LATE"])
    def test_late_status_keywords_are_case_insensitive(self, status, today):
        disputes = identify_issues(_report(Account(account_name="Discover", payment_status=status)), today=today)
        assert _reasons(disputes) == [DisputeReason.LATE_PAYMENT]

    def test_remarks_take_priority_over_late_status(self, today):
        account = Account(account_name="Capital One", payment_status="Late 90 days", remarks=["Charged off"])
        disputes = identify_issues(_report(account), today=today)

        assert _reasons(disputes) == [DisputeReason.NEGATIVE_REMARK]
        assert disputes[0].severity == Severity.HIGH
        assert "Charged off" in disputes[0].description

    def test_every_account_with_remarks_gets_negative_remark(self, today):
        accounts = [
            Account(account_name="Capital One", remarks=["Paid charge off"]),
            Account(account_name="Discover", remarks=["Consumer disputes"], payment_status="Current"),
            Account(account_name="Wells Fargo", payment_status="Current"),
        ]
        disputes = identify_issues(_report(*accounts), today=today)

        remark_names = {d.account_name for d in disputes
                        if d.reason == DisputeReason.NEGATIVE_REMARK and d.severity == Severity.HIGH}
        assert remark_names == {"Capital One", "Discover"}

    def test_blank_remarks_do_not_count(self, today):
        disputes = identify_issues(_report(Account(account_name="Discover", remarks=["  "])), today=today)
        assert _reasons(disputes) == [DisputeReason.ACCOUNT_VERIFICATION]

    def test_clean_account_gets_verification(self, today):
        disputes = identify_issues(_report(Account(account_name="Wells Fargo", payment_status="Current")), today=today)
        assert _reasons(disputes) == [DisputeReason.ACCOUNT_VERIFICATION]
        assert disputes[0].severity == Severity.MEDIUM

    def test_legal_basis_is_attached(self, today):
        disputes = identify_issues(_report(Account(account_name="Chase Card", payment_status="Late")), today=today)
        sections = [ref.section for ref in disputes[0].legal_basis]
        assert "611(a)" in sections
        assert all(ref.law == "FCRA" for ref in disputes[0].legal_basis)
        assert disputes[0].sample_dispute_language is None


# =============================================================================
# ADDITIVE CHECKS
# =============================================================================

class TestAdditiveChecks:

    def test_duplicate_scenario(self, today):
        report = _report(
            Account(account_name="Bank of America", account_number="1111"),
            Account(account_name="Bank of America", account_number="2222"),
        )
        disputes = identify_issues(report, today=today)

        duplicates = [d for d in disputes if d.reason == DisputeReason.DUPLICATE_ACCOUNT]
        assert len(duplicates) == 1
        assert duplicates[0].account_name == "Bank of America"
        assert duplicates[0].severity == Severity.HIGH
        assert "2 times" in duplicates[0].description
        assert _reasons(disputes).count(DisputeReason.ACCOUNT_VERIFICATION) == 2

    def test_duplicate_grouping_ignores_case_and_whitespace(self, today):
        report = _report(
            Account(account_name="BANK OF AMERICA"),
            Account(account_name="Bank of  America"),
            Account(account_name="BankofAmerica"),
            Account(account_name="Chase Card"),
        )
        disputes = identify_issues(report, today=today)

        duplicates = [d for d in disputes if d.reason == DisputeReason.DUPLICATE_ACCOUNT]
        assert len(duplicates) == 1
        assert duplicates[0].account_name == "BANK OF AMERICA"
        assert "3 times" in duplicates[0].description

    def test_normalize_account_key(self):
        assert normalize_account_key(" Bank of\tAmerica ") == "bankofamerica"

    def test_high_utilization(self, today):
        account = Account(account_name="Chase Card", balance=900.0, credit_limit=1000.0, payment_status="Current")
        disputes = identify_issues(_report(account), today=today)
        assert DisputeReason.HIGH_UTILIZATION in _reasons(disputes)

    def test_utilization_at_threshold_is_not_flagged(self, today):
        account = Account(account_name="Chase Card", balance=700.0, credit_limit=1000.0)
        disputes = identify_issues(_report(account), today=today)
        assert DisputeReason.HIGH_UTILIZATION not in _reasons(disputes)

    def test_obsolete_negative_item(self, today):
        account = Account(account_name="Capital One", remarks=["Charged off"], date_opened="01/10/2012")
        disputes = identify_issues(_report(account), today=today)

        assert _reasons(disputes) == [DisputeReason.NEGATIVE_REMARK, DisputeReason.OBSOLETE_ITEM]
        assert all(d.severity == Severity.HIGH for d in disputes)

    def test_recent_or_positive_accounts_are_not_obsolete(self, today):
        recent = Account(account_name="Capital One", remarks=["Charged off"], date_opened="01/10/2022")
        positive = Account(account_name="Discover", payment_status="Current", date_opened="01/10/2005")
        unparseable = Account(account_name="Chase Card", payment_status="Late", date_opened="sometime")
        disputes = identify_issues(_report(recent, positive, unparseable), today=today)
        assert DisputeReason.OBSOLETE_ITEM not in _reasons(disputes)

    def test_previous_addresses_raise_personal_information_issue(self, today):
        report = _report(Account(account_name="Discover"), previous_addresses=["1 Old Rd, Austin, TX 78701"])
        disputes = identify_issues(report, today=today)

        assert disputes[-1].reason == DisputeReason.PERSONAL_INFORMATION
        assert disputes[-1].severity == Severity.LOW


# =============================================================================
# FALLBACKS AND DEFAULTS
# =============================================================================

class TestFallbacks:

    def test_raw_text_scenario(self, today):
        report = _report(raw_text="Statement summary\nCAPITAL ONE\nAccount: 5178-0599 Balance: $250.00")
        disputes = identify_issues(report, today=today)

        assert len(disputes) == 1
        assert disputes[0].account_name == "CAPITAL ONE"
        assert disputes[0].confidence == Confidence.DEGRADED
        assert disputes[0].account_number == "5178-0599"
        assert "$250.00" in disputes[0].description
        assert report.analysis_results.degraded

    def test_raw_text_does_not_double_count_contained_names(self, today):
        report = _report(raw_text="Accounts: CITIBANK, then AMERICAN EXPRESS")
        names = [d.account_name for d in identify_issues(report, today=today)]
        assert names == ["CITIBANK", "AMERICAN EXPRESS"]

    def test_catch_all_scenario(self, today):
        disputes = identify_issues(_report(raw_text=""), today=today)

        assert len(disputes) == 1
        assert disputes[0].reason == DisputeReason.GENERAL_DISPUTE
        assert "I dispute all negative items" in disputes[0].description
        assert "request full verification" in disputes[0].description
        assert disputes[0].bureau == ALL_BUREAUS

    def test_raw_text_without_creditors_uses_catch_all(self, today):
        disputes = identify_issues(_report(raw_text="nothing useful here"), today=today)
        assert _reasons(disputes) == [DisputeReason.GENERAL_DISPUTE]

    def test_unreadable_names_become_unknown_account(self, today):
        report = _report(
            Account(account_name="endobj 12 0 obj", remarks=["Charged off"]),
            raw_text="CAPITAL ONE endobj 12 0 obj",
        )
        disputes = identify_issues(report, today=today)

        assert _reasons(disputes) == [DisputeReason.NEGATIVE_REMARK]
        assert disputes[0].account_name == UNKNOWN_ACCOUNT
        assert disputes[0].confidence == Confidence.NORMAL

    @pytest.mark.parametrize("name", ["AT&T", "GE"])
    def test_short_and_symbol_names_keep_their_remarks(self, name, today):
        report = _report(Account(account_name=name, remarks=["Collection account"]))
        disputes = identify_issues(report, today=today)

        assert _reasons(disputes) == [DisputeReason.NEGATIVE_REMARK]
        assert disputes[0].account_name == name

    def test_recoverable_names_are_cleaned(self, today):
        report = _report(Account(account_name="endstreamCHASE", payment_status="Late"))
        disputes = identify_issues(report, today=today)
        assert disputes[0].account_name == "CHASE"

    def test_missing_account_name_defaults(self, today):
        disputes = identify_issues(_report(Account(account_name=None, payment_status="Late")), today=today)
        assert disputes[0].account_name == UNKNOWN_ACCOUNT

    def test_unknown_accounts_are_not_duplicates(self, today):
        disputes = identify_issues(_report(Account(), Account()), today=today)
        assert DisputeReason.DUPLICATE_ACCOUNT not in _reasons(disputes)

    def test_account_bureau_is_kept(self, today):
        disputes = identify_issues(_report(Account(account_name="Discover", bureau="Equifax")), today=today)
        assert disputes[0].bureau == "Equifax"


# =============================================================================
# ORDERING AND SUMMARY
# =============================================================================

class TestOrderingAndSummary:

    @pytest.fixture
    def disputes_and_report(self, sample_report_text, today):
        report = ReportNormalizer().normalize_text(sample_report_text)
        return IssueIdentifier(today=today).identify(report), report

    def test_severity_is_monotonic(self, disputes_and_report):
        disputes, _ = disputes_and_report
        ranks = [d.severity_rank for d in disputes]
        assert ranks == sorted(ranks)

    def test_ties_keep_discovery_order(self, disputes_and_report):
        disputes, _ = disputes_and_report
        high = [(d.account_name, d.reason) for d in disputes if d.severity == Severity.HIGH]
        assert high == [
            ("CHASE CARD", DisputeReason.LATE_PAYMENT),
            ("CAPITAL ONE", DisputeReason.NEGATIVE_REMARK),
            ("CAPITAL ONE", DisputeReason.OBSOLETE_ITEM),
            ("BANK OF AMERICA", DisputeReason.DUPLICATE_ACCOUNT),
        ]

    def test_full_report_issue_set(self, disputes_and_report):
        disputes, _ = disputes_and_report
        assert len(disputes) == 8
        assert disputes[-1].reason == DisputeReason.PERSONAL_INFORMATION
        assert all(d.bureau == "Experian" for d in disputes[:-1])

    def test_analysis_results_are_populated(self, disputes_and_report):
        disputes, report = disputes_and_report
        results = report.analysis_results

        assert results.total_accounts == 4
        assert results.negative_items == 2
        assert results.account_type_summary == {"Credit Card": 2, "Auto Loan": 2}
        assert results.total_balance == pytest.approx(28250.0)
        assert results.total_credit_limit == pytest.approx(6000.0)
        assert results.issue_count == len(disputes)
        assert results.high_severity_count == 4
        assert not results.degraded

    def test_report_accounts_are_not_modified(self, sample_report_text, today):
        report = ReportNormalizer().normalize_text(sample_report_text)
        before = [(a.account_name, a.payment_status, list(a.remarks)) for a in report.accounts]
        IssueIdentifier(today=today).identify(report)
        assert [(a.account_name, a.payment_status, list(a.remarks)) for a in report.accounts] == before


# =============================================================================
# SELECTION
# =============================================================================

def _dispute(name, severity):
    return RecommendedDispute(
        account_name=name,
        reason=DisputeReason.ACCOUNT_VERIFICATION,
        description="",
        severity=severity,
    )


class TestSelectDisputeIssues:

    def test_caps_high_severity_at_five(self):
        disputes = [_dispute(f"H{i}", Severity.HIGH) for i in range(7)]
        assert [d.account_name for d in select_dispute_issues(disputes)] == ["H0", "H1", "H2", "H3", "H4"]

    def test_tops_up_with_medium(self):
        disputes = [_dispute("H0", Severity.HIGH), _dispute("M0", Severity.MEDIUM),
                    _dispute("M1", Severity.MEDIUM), _dispute("M2", Severity.MEDIUM)]
        assert [d.account_name for d in select_dispute_issues(disputes)] == ["H0", "M0", "M1"]

    def test_falls_back_to_first_three(self):
        disputes = [_dispute(f"L{i}", Severity.LOW) for i in range(4)]
        assert [d.account_name for d in select_dispute_issues(disputes)] == ["L0", "L1", "L2"]
