from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

INCOME = "income"
EXPENSE = "expense"

AUTO = "AUTO"
UNKNOWN_BANK = "unknown"
NO_DESCRIPTION = "Sem descrição"


@dataclass
class ParsedTransaction:
    """One record extracted from a statement, before ledger insert."""
    date: str  # ISO 8601
    description: str
    amount: Decimal  # absolute value, sign lives in type
    type: str  # income or expense
    fitid: str | None = None
    additional_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "description": self.description,
            "amount": str(self.amount),
            "type": self.type,
            "fitid": self.fitid,
            "additionalInfo": self.additional_info,
        }


@dataclass
class ImportResult:
    success: bool = False
    transactions: list[ParsedTransaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BankParserInfo:
    """Static identity of a statement dialect."""
    bank_code: str
    bank_name: str
    supported_formats: tuple[str, ...]  # csv and/or ofx
    description: str


@dataclass
class ImportSummary:
    total: int = 0
    income: int = 0
    expense: int = 0
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "income": self.income,
            "expense": self.expense,
            "totalIncome": str(self.total_income),
            "totalExpense": str(self.total_expense),
        }


@dataclass
class ProcessedImport:
    """Result of one file run through detection, parsing and aggregation."""
    success: bool
    bank_code: str
    bank_detected: str
    transactions: list[ParsedTransaction]
    summary: ImportSummary
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "bankCode": self.bank_code,
            "bankDetected": self.bank_detected,
            "transactions": [t.to_dict() for t in self.transactions],
            "summary": self.summary.to_dict(),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass
class NormalizedTransaction:
    """Ledger-ready row: negative = expense, positive = income."""
    date: str  # ISO 8601
    description: str
    amount: Decimal
    fitid: str | None = None
    additional_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "description": self.description,
            "amount": str(self.amount),
            "fitid": self.fitid,
            "additionalInfo": self.additional_info,
        }
