from extrato.dialects.ofx import OfxStatementParser, looks_like_ofx
from extrato.models import BankParserInfo

# Inter's COMPE code is 077, older files still name it Banco Intermedium
ISSUER_MARKERS = ("banco inter", "intermedium", "<bankid>077", "<bankid>0077")


class InterParser(OfxStatementParser):
    """Banco Inter checking/card statement, OFX 1.x."""
    info = BankParserInfo(
        bank_code="INTER_OFX",
        bank_name="Banco Inter",
        supported_formats=("ofx",),
        description="Extrato conta corrente/cartão Banco Inter (OFX)",
    )
    bank_tag = "INTER"

    def detect(self, filename: str, content: str) -> bool:
        if not looks_like_ofx(filename, content):
            return False
        lowered = content.lower()
        has_statement = "stmttrn" in lowered or "stmtrs" in lowered
        return has_statement and any(marker in lowered for marker in ISSUER_MARKERS)
