"""Tests for the OFX statement parser."""

import pytest
from datetime import date
from decimal import Decimal

from bankrec.domain.entities import Polarity
from bankrec.domain.errors import FormatError
from bankrec.domain.statement_parser import (
    DEFAULT_DESCRIPTION,
    MAX_DESCRIPTION_LENGTH,
    UNKNOWN_INSTITUTION,
    normalize_description,
)


def sgml_statement(transactions, header_extra=""):
    """Build a minimal SGML statement around raw transaction blocks."""
    return (
        "OFXHEADER:100\nDATA:OFXSGML\n\n<OFX>\n<BANKMSGSRSV1><STMTTRNRS><STMTRS>\n"
        f"{header_extra}"
        "<BANKACCTFROM>\n<ACCTID>123\n</BANKACCTFROM>\n"
        f"<BANKTRANLIST>\n{transactions}\n</BANKTRANLIST>\n"
        "</STMTRS></STMTTRNRS></BANKMSGSRSV1>\n</OFX>\n"
    )


class TestIsValidFormat:
    """Tests for the OFX pre-check."""

    def test_sgml_statement(self, parser, fixtures_dir):
        content = (fixtures_dir / "sample_statement.ofx").read_text()
        assert parser.is_valid_format(content)

    def test_xml_statement(self, parser, fixtures_dir):
        content = (fixtures_dir / "sample_statement_xml.ofx").read_text()
        assert parser.is_valid_format(content)

    def test_plain_text(self, parser, fixtures_dir):
        content = (fixtures_dir / "not_a_statement.txt").read_text()
        assert not parser.is_valid_format(content)

    def test_empty(self, parser):
        assert not parser.is_valid_format("")

    def test_header_without_transactions(self, parser):
        assert not parser.is_valid_format("OFXHEADER:100\n<OFX></OFX>")

    def test_case_insensitive(self, parser):
        assert parser.is_valid_format("<ofx><stmttrn></stmttrn></ofx>")


class TestParseSampleStatement:
    """Parse the SGML sample exported by a Bradesco account."""

    @pytest.fixture
    def statement(self, parser, fixtures_dir):
        content = (fixtures_dir / "sample_statement.ofx").read_text()
        return parser.parse(content, source="sample_statement.ofx")

    def test_header(self, statement):
        assert statement.account_id == "56789-0"
        assert statement.institution_name == "Bradesco"
        assert statement.statement_date == date(2024, 1, 31)
        assert statement.balance == Decimal("3592.10")

    def test_incomplete_block_skipped(self, statement):
        """Test that the block without DTPOSTED is not returned."""
        assert len(statement.transactions) == 4

    def test_debit(self, statement):
        txn = statement.transactions[0]
        assert txn.date == date(2024, 1, 15)
        assert txn.amount == Decimal("45.00")
        assert txn.polarity is Polarity.DEBIT
        assert txn.description == "PIX ENVIADO JOAO"
        assert txn.reference_id == "202401150001"

    def test_credit_description_whitespace_collapsed(self, statement):
        txn = statement.transactions[1]
        assert txn.polarity is Polarity.CREDIT
        assert txn.amount == Decimal("3500.00")
        assert txn.description == "SALARIO EMPRESA XYZ"

    def test_name_used_when_memo_missing(self, statement):
        assert statement.transactions[2].description == "TARIFA BANCARIA CESTA"

    def test_amounts_never_negative(self, statement):
        assert all(txn.amount >= 0 for txn in statement.transactions)


class TestParseXmlStatement:
    """Parse the OFX 2.x XML sample."""

    @pytest.fixture
    def statement(self, parser, fixtures_dir):
        content = (fixtures_dir / "sample_statement_xml.ofx").read_text()
        return parser.parse(content)

    def test_header(self, statement):
        assert statement.institution_name == "Banco Exemplo"
        assert statement.account_id == "0001-2"
        # No DTEND, falls back to DTSERVER
        assert statement.statement_date == date(2024, 3, 1)
        assert statement.balance == Decimal("1000.00")

    def test_comma_amount_and_entities(self, statement):
        txn = statement.transactions[0]
        assert txn.amount == Decimal("20.50")
        assert txn.polarity is Polarity.DEBIT
        assert txn.description == "PADARIA & CAFE"

    def test_default_description(self, statement):
        txn = statement.transactions[1]
        assert txn.description == DEFAULT_DESCRIPTION
        assert txn.polarity is Polarity.CREDIT
        assert txn.amount == Decimal("10.00")


def test_parse_invalid_document(parser, fixtures_dir):
    """Test that a document without OFX markers raises FormatError."""
    content = (fixtures_dir / "not_a_statement.txt").read_text()
    with pytest.raises(FormatError, match="not_a_statement.txt"):
        parser.parse(content, source="not_a_statement.txt")


def test_statement_date_defaults_to_today(parser):
    """Test that a statement without DTEND or DTSERVER is dated today."""
    content = sgml_statement("<STMTTRN>\n<DTPOSTED>20240110\n<TRNAMT>-1.00\n</STMTTRN>")
    statement = parser.parse(content)
    assert statement.statement_date == date.today()
    assert statement.balance == Decimal("0")
    assert statement.institution_name == UNKNOWN_INSTITUTION


def test_unclosed_blocks(parser):
    """Test SGML exports that never close their STMTTRN blocks."""
    content = sgml_statement(
        "<STMTTRN>\n<DTPOSTED>20240110\n<TRNAMT>-1.00\n<MEMO>FIRST\n"
        "<STMTTRN>\n<DTPOSTED>20240111\n<TRNAMT>2.00\n<MEMO>SECOND\n"
    )
    statement = parser.parse(content)
    assert [t.description for t in statement.transactions] == ["FIRST", "SECOND"]
    assert statement.transactions[1].date == date(2024, 1, 11)


def test_unreadable_amount_skipped(parser):
    """Test that a block with an unparseable amount is skipped."""
    content = sgml_statement(
        "<STMTTRN>\n<DTPOSTED>20240110\n<TRNAMT>abc\n<MEMO>BAD\n</STMTTRN>\n"
        "<STMTTRN>\n<DTPOSTED>20240111\n<TRNAMT>5.00\n<MEMO>GOOD\n</STMTTRN>"
    )
    statement = parser.parse(content)
    assert [t.description for t in statement.transactions] == ["GOOD"]


def test_description_preference_order(parser):
    """Test MEMO is preferred over NAME, and CHECKNUM is the last resort."""
    content = sgml_statement(
        "<STMTTRN>\n<DTPOSTED>20240110\n<TRNAMT>-1.00\n<NAME>NAME\n<MEMO>MEMO\n</STMTTRN>\n"
        "<STMTTRN>\n<DTPOSTED>20240110\n<TRNAMT>-1.00\n<CHECKNUM>000123\n</STMTTRN>"
    )
    statement = parser.parse(content)
    assert [t.description for t in statement.transactions] == ["MEMO", "000123"]


def test_institution_from_bank_id(parser):
    """Test institution lookup by bank id with leading zeros."""
    content = sgml_statement(
        "<STMTTRN>\n<DTPOSTED>20240110\n<TRNAMT>1.00\n</STMTTRN>",
        header_extra="<BANKID>0341\n",
    )
    assert parser.parse(content).institution_name == "Itau"


def test_institution_from_text(parser):
    """Test the Bradesco name is detected anywhere in the document."""
    content = sgml_statement(
        "<STMTTRN>\n<DTPOSTED>20240110\n<TRNAMT>1.00\n<MEMO>TED BRADESCO\n</STMTTRN>"
    )
    assert parser.parse(content).institution_name == "Bradesco"


def test_normalize_description():
    """Test whitespace collapsing and length cap."""
    assert normalize_description("  PIX \t ENVIADO\nJOAO ") == "PIX ENVIADO JOAO"
    assert len(normalize_description("X" * 500)) == MAX_DESCRIPTION_LENGTH
