import re

from extrato.dialects.ofx import OfxStatementParser, looks_like_ofx
from extrato.models import NO_DESCRIPTION, BankParserInfo

_TICKER = re.compile(r"([A-Z]{4}\d{2})")

# first match wins, checked against NAME and MEMO together
CATEGORY_HINTS = (
    (("rende fácil", "rende facil"), "BB_RENDE_FACIL"),
    (("proventos", "rendimento"), "PROVENTOS"),
    (("pix",), "PIX"),
    (("ted", "doc"), "TRANSFERENCIA"),
    (("débito automático", "debito automatico"), "DEBITO_AUTOMATICO"),
    (("tarifa", "taxa"), "TARIFA"),
)


class BancoDoBrasilParser(OfxStatementParser):
    """Banco do Brasil checking statement, OFX 1.x.

    Dates carry a ``[-3:BRT]`` suffix, "Saldo Anterior" / "Saldo do dia" rows
    sit between real transactions, and FII/stock dividends name the ticker
    in MEMO.
    """
    info = BankParserInfo(
        bank_code="BB_OFX",
        bank_name="Banco do Brasil",
        supported_formats=("ofx",),
        description="Extrato conta corrente Banco do Brasil (OFX)",
    )
    bank_tag = "BB"

    def detect(self, filename: str, content: str) -> bool:
        if not looks_like_ofx(filename, content):
            return False
        lowered = content.lower()
        return "banco do brasil" in lowered or ("<org>" in lowered and "brasil" in lowered)

    def build_description(self, name, memo):
        parts = []
        if name:
            parts.append(name.strip())
        if memo:
            memo = memo.strip()
            if not name or memo.lower() not in name.lower():
                parts.append(memo)
        return " - ".join(parts) if parts else NO_DESCRIPTION

    def additional_info(self, fields):
        info = super().additional_info(fields)
        if not info["tipoTransacao"]:
            del info["tipoTransacao"]

        memo = fields["MEMO"]
        if memo:
            ticker = _TICKER.search(memo)
            if ticker:
                info["ticker"] = ticker.group(1)
                info["tipoTransacao"] = "PROVENTO"

        combined = f"{fields['NAME'] or ''} {memo or ''}".lower()
        for markers, category in CATEGORY_HINTS:
            if any(marker in combined for marker in markers):
                info["categoria"] = category
                break
        return info
