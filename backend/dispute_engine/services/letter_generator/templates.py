"""
Dispute Engine - Letter Templates

Static text blocks for dispute letters. The FCRA request language is fixed
legal boilerplate and is reproduced verbatim in every full letter.
"""

# =============================================================================
# PLACEHOLDERS
# =============================================================================

NAME_PLACEHOLDER = "[YOUR NAME]"
ADDRESS_PLACEHOLDER = "[YOUR ADDRESS]"
CITY_PLACEHOLDER = "[CITY]"
STATE_PLACEHOLDER = "[STATE]"
ZIP_PLACEHOLDER = "[ZIP]"
ACCOUNT_NAME_PLACEHOLDER = "[ACCOUNT NAME]"
ACCOUNT_NUMBER_PLACEHOLDER = "[ACCOUNT NUMBER]"
REASON_PLACEHOLDER = "[REASON FOR DISPUTE]"

USER_PLACEHOLDERS = (
    NAME_PLACEHOLDER,
    ADDRESS_PLACEHOLDER,
    CITY_PLACEHOLDER,
    STATE_PLACEHOLDER,
    ZIP_PLACEHOLDER,
)


# =============================================================================
# FULL LETTER
# =============================================================================

SUBJECT_LINE = "Re: Dispute of Inaccurate Information in My Credit Report"

SALUTATION = "To Whom It May Concern:"

DISPUTED_ITEMS_HEADER = "DISPUTED ITEM(S):"

LEGAL_BASIS_HEADER = "LEGAL BASIS:"

FCRA_REQUEST_BLOCK = """Under the Fair Credit Reporting Act (FCRA), Section 611(a), you are required to:
1. Conduct a reasonable investigation into the information I am disputing
2. Forward all relevant information that I provide to the furnisher of this information
3. Review and consider all relevant information I have submitted
4. Provide me with the results of your investigation and copies of any documentation used to verify the disputed information
5. Delete the disputed information if it cannot be verified

Under FCRA Section 623, the furnisher of this information must report only complete and accurate information, investigate this dispute once notified, and correct or delete anything it cannot verify.

Please complete your investigation within 30 days of receiving this letter (or 45 days if I submit additional information during the investigation period), as required by the FCRA."""

CLOSING = "Sincerely,"

ENCLOSURES_BLOCK = """Enclosures:
- Copy of government-issued photo ID
- Copy of Social Security card
- Proof of current address (utility bill or bank statement)"""


# =============================================================================
# SIMPLIFIED LETTER
# =============================================================================

SIMPLIFIED_SUBJECT_LINE = "Re: Dispute of Credit Report Information"

SIMPLIFIED_REQUEST = (
    "I request that you investigate this matter and correct or delete the disputed item as "
    "required by the Fair Credit Reporting Act (FCRA). Please complete your investigation "
    "within 30 days."
)


# =============================================================================
# TERMINAL MESSAGE
# =============================================================================

GENERATION_FAILED_MESSAGE = (
    "I wasn't able to generate this letter automatically. Please use the manual letter "
    "generator to enter the dispute details and create your letter."
)
