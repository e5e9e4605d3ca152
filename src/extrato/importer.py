from decimal import Decimal
from pathlib import Path

from extrato.base import BankParser
from extrato.logging_config import get_logger
from extrato.models import (
    AUTO, EXPENSE, INCOME, UNKNOWN_BANK, BankParserInfo, ImportSummary,
    NormalizedTransaction, ParsedTransaction, ProcessedImport,
)
from extrato.registry import ParserRegistry, registry as default_registry

logger = get_logger(__name__)

UNDETECTED_MESSAGE = (
    "Não foi possível detectar o formato do arquivo automaticamente. "
    "Selecione o banco manualmente."
)

# tried in order when the configured encoding cannot decode a file
FALLBACK_ENCODINGS = ("utf-8-sig", "cp1252")


class UnsupportedBankError(ValueError):
    """Raised when a caller names a bank code that has no parser."""


def read_statement(file_path: Path, encoding: str = "utf-8-sig") -> str:
    """Decode an exported statement; Brazilian banks often ship cp1252."""
    raw = Path(file_path).read_bytes()
    for candidate in (encoding, *FALLBACK_ENCODINGS):
        try:
            return raw.decode(candidate)
        except UnicodeDecodeError:
            continue
        except LookupError:
            logger.warning(f"Unknown encoding {candidate!r}, trying the fallbacks", encoding=candidate)
            continue
    return raw.decode("cp1252", errors="ignore")


def detect_parser(filename: str, content: str, reg: ParserRegistry | None = None) -> BankParser | None:
    """Return the first parser, in detection priority, that accepts the file."""
    reg = reg or default_registry
    for parser in reg.detection_order():
        if parser.supports(filename, content):
            logger.info(f"Parser detected: {parser.bank_code}", filename=filename)
            return parser
    return None


def calculate_summary(transactions: list[ParsedTransaction]) -> ImportSummary:
    summary = ImportSummary(total=len(transactions))
    for t in transactions:
        if t.type == INCOME:
            summary.income += 1
            summary.total_income += abs(t.amount)
        else:
            summary.expense += 1
            summary.total_expense += abs(t.amount)
    return summary


def signed_amount(transaction: ParsedTransaction) -> Decimal:
    """The one place sign convention is decided: expenses are negative."""
    if transaction.type == EXPENSE:
        return -abs(transaction.amount)
    return abs(transaction.amount)


def normalize_for_import(transactions: list[ParsedTransaction]) -> list[NormalizedTransaction]:
    return [
        NormalizedTransaction(
            date=t.date,
            description=t.description,
            amount=signed_amount(t),
            fitid=t.fitid,
            additional_info=dict(t.additional_info),
        )
        for t in transactions
    ]


def list_supported_banks(reg: ParserRegistry | None = None) -> list[BankParserInfo]:
    return (reg or default_registry).list_public()


def process_file(
    filename: str,
    content: str,
    bank_code: str = AUTO,
    reg: ParserRegistry | None = None,
) -> ProcessedImport:
    """Pick a parser (explicitly or by detection), parse and summarize."""
    reg = reg or default_registry
    code = (bank_code or AUTO).strip().upper()

    if code == AUTO:
        parser = detect_parser(filename, content, reg)
        if parser is None:
            logger.warning(f"Could not detect statement format: {filename}", filename=filename)
            return ProcessedImport(
                success=False,
                bank_code=UNKNOWN_BANK,
                bank_detected=UNKNOWN_BANK,
                transactions=[],
                summary=ImportSummary(),
                errors=[UNDETECTED_MESSAGE],
            )
    else:
        parser = reg.get_by_code(code)
        if parser is None:
            raise UnsupportedBankError(f"Banco não suportado: {bank_code}")

    info = parser.get_info()
    logger.info(f"Processing {filename} with {info.bank_code}", filename=filename)
    result = parser.parse(content)

    return ProcessedImport(
        success=result.success,
        bank_code=info.bank_code,
        bank_detected=info.bank_name,
        transactions=result.transactions,
        summary=calculate_summary(result.transactions),
        errors=result.errors,
        warnings=result.warnings,
    )
