"""OFX statement parser.

Reads the tag/value text banks export as OFX (both the 1.x SGML dialect, where
leaf tags are usually left unclosed, and the 2.x XML dialect) and turns it into
a ParsedStatement. Only the fields reconciliation needs are extracted.
"""

import html
import logging
import re
from datetime import date
from decimal import Decimal
from typing import Optional

from bankrec.domain.entities import ParsedStatement, ParsedTransaction, Polarity
from bankrec.domain.errors import FormatError, invalid_statement_format
from bankrec.utils.amount_parser import parse_amount
from bankrec.utils.date_parser import parse_statement_date

logger = logging.getLogger(__name__)

HEADER_MARKERS = ("OFXHEADER", "<OFX>")
TRANSACTION_MARKERS = ("<STMTRS>", "<STMTTRN>")

# Ordered by preference
DESCRIPTION_FIELDS = ("MEMO", "NAME", "PAYEEID", "CHECKNUM")
DEFAULT_DESCRIPTION = "Bank transaction"
MAX_DESCRIPTION_LENGTH = 200

UNKNOWN_ACCOUNT = "N/A"
UNKNOWN_INSTITUTION = "Unknown bank"

# A block ends at its closing tag, or at the next block / end of the list when
# the exporter leaves it unclosed.
_TRANSACTION_BLOCK = re.compile(
    r"<STMTTRN>(.*?)(?:</STMTTRN>|(?=<STMTTRN>)|(?=</BANKTRANLIST>)|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_WHITESPACE = re.compile(r"\s+")

# Bank ids (FEBRABAN codes) of institutions whose exports have been seen
KNOWN_BANK_IDS = {
    "237": "Bradesco",
    "001": "Banco do Brasil",
    "341": "Itau",
    "104": "Caixa",
    "033": "Santander",
    "260": "Nubank",
}


def normalize_description(text: str) -> str:
    """Collapse whitespace and cap length, keeping the original case."""
    return _WHITESPACE.sub(" ", text).strip()[:MAX_DESCRIPTION_LENGTH]


class StatementParser:
    """Parser for bank-exported OFX statements."""

    def is_valid_format(self, raw_text: str) -> bool:
        """Cheap pre-check for an OFX document.

        True when the text carries an OFX header marker and at least one
        statement or transaction marker. This is not a full validation.
        """
        if not raw_text:
            return False
        upper = raw_text.upper()
        has_header = any(marker in upper for marker in HEADER_MARKERS)
        has_transactions = any(marker in upper for marker in TRANSACTION_MARKERS)
        return has_header and has_transactions

    def parse(self, raw_text: str, source: str = "statement") -> ParsedStatement:
        """Parse an OFX document.

        Args:
            raw_text: Full document text
            source: Name used in error messages (usually the file name)

        Returns:
            ParsedStatement with header data and all readable transactions

        Raises:
            FormatError: If the document lacks the OFX markers
        """
        if not self.is_valid_format(raw_text):
            raise FormatError(invalid_statement_format(source))

        content = raw_text.replace("\r\n", "\n").replace("\r", "\n").strip()

        account_id = self._extract_value(content, "ACCTID") or UNKNOWN_ACCOUNT
        balance = self._extract_balance(content)
        statement_date = self._extract_statement_date(content)
        institution = self.detect_institution(content)

        transactions = self._extract_transactions(content)
        logger.info(
            "Parsed %s: account %s, %d transactions", source, account_id, len(transactions)
        )

        return ParsedStatement(
            institution_name=institution,
            account_id=account_id,
            statement_date=statement_date,
            balance=balance,
            transactions=transactions,
        )

    def detect_institution(self, content: str) -> str:
        """Name the bank that produced the document."""
        org = self._extract_value(content, "ORG")
        if org:
            return org

        bank_id = self._extract_value(content, "BANKID")
        if bank_id:
            known = KNOWN_BANK_IDS.get(bank_id.lstrip("0").zfill(3))
            if known:
                return known

        if "BRADESCO" in content.upper():
            return "Bradesco"
        return UNKNOWN_INSTITUTION

    def _extract_value(self, content: str, tag: str) -> Optional[str]:
        match = re.search(rf"<{tag}>([^<]+)", content, re.IGNORECASE)
        if match is None:
            return None
        value = html.unescape(match.group(1)).strip()
        return value or None

    def _extract_balance(self, content: str) -> Decimal:
        raw = self._extract_value(content, "BALAMT")
        if raw is None:
            return Decimal("0")
        try:
            return parse_amount(raw)
        except ValueError:
            logger.warning("Unreadable balance %r, using 0", raw)
            return Decimal("0")

    def _extract_statement_date(self, content: str) -> date:
        for tag in ("DTEND", "DTSERVER"):
            raw = self._extract_value(content, tag)
            if raw is None:
                continue
            try:
                return parse_statement_date(raw)
            except ValueError:
                logger.warning("Unreadable %s value %r", tag, raw)
        return date.today()

    def _extract_transactions(self, content: str) -> list[ParsedTransaction]:
        transactions = []
        for index, match in enumerate(_TRANSACTION_BLOCK.finditer(content), start=1):
            transaction = self._parse_block(match.group(1), index)
            if transaction is not None:
                transactions.append(transaction)
        return transactions

    def _parse_block(self, block: str, index: int) -> Optional[ParsedTransaction]:
        date_posted = self._extract_value(block, "DTPOSTED")
        raw_amount = self._extract_value(block, "TRNAMT")
        if not date_posted or not raw_amount:
            logger.warning("Skipping transaction %d: missing DTPOSTED or TRNAMT", index)
            return None

        try:
            posted = parse_statement_date(date_posted)
            amount = parse_amount(raw_amount)
        except ValueError as e:
            logger.warning("Skipping transaction %d: %s", index, e)
            return None

        description = DEFAULT_DESCRIPTION
        for tag in DESCRIPTION_FIELDS:
            value = self._extract_value(block, tag)
            if value:
                description = value
                break

        return ParsedTransaction(
            date=posted,
            amount=abs(amount),
            description=normalize_description(description),
            polarity=Polarity.CREDIT if amount >= 0 else Polarity.DEBIT,
            reference_id=self._extract_value(block, "FITID"),
        )
