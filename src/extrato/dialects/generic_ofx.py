from extrato.dialects.ofx import OfxStatementParser, looks_like_ofx
from extrato.models import BankParserInfo


class GenericOfxParser(OfxStatementParser):
    """Fallback for OFX files from any bank without a dedicated dialect."""
    info = BankParserInfo(
        bank_code="GENERIC_OFX",
        bank_name="Genérico",
        supported_formats=("ofx",),
        description="Parser genérico para arquivos OFX de qualquer banco",
    )
    income_codes = frozenset({"CREDIT", "DEP", "INT"})
    expense_codes = frozenset({"DEBIT", "POS", "XFER", "CHECK"})
    file_kind = "ofx_generico"

    def detect(self, filename: str, content: str) -> bool:
        return looks_like_ofx(filename, content)
