import re

from extrato.base import DelimitedStatementParser, RecordError, has_extension
from extrato.models import EXPENSE, INCOME, NO_DESCRIPTION, BankParserInfo, ParsedTransaction
from extrato.parsing import is_balance_artifact, parse_brl_amount, parse_brl_date

# rows that only mark a reversed or refused PIX, the money never moved
REVERSAL_MARKERS = ("pix estornado", "pix recusado")

# preamble lines naming the issuer
ISSUER_MARKERS = ("extrato de conta corrente c6", "c6 bank")

# (markers, kind, also matched against the description column); first match wins
TRANSACTION_KINDS = (
    (("pix enviado",), "PIX_ENVIADO", True),
    (("pix recebido",), "PIX_RECEBIDO", True),
    (("debito de cartao", "débito de cartão"), "DEBITO_CARTAO", False),
    (("recebimento salario", "recebimento salário"), "SALARIO", False),
    (("resgate de cdb",), "RESGATE_CDB", False),
    (("emissao de cdb", "emissão de cdb"), "APLICACAO_CDB", False),
    (("pgto fat cartao", "fatura"), "PAGAMENTO_FATURA", False),
)

_PIX_COUNTERPART = re.compile(r"pix (?:enviado|recebido)(?: c6)? (?:para|de) (.+)", re.IGNORECASE)


def _money(raw: str):
    if not raw or not raw.strip():
        return None
    value = parse_brl_amount(raw)
    if value.is_nan():
        raise RecordError(f"Valor inválido: {raw}")
    return abs(value)


class C6CheckingParser(DelimitedStatementParser):
    """C6 Bank checking account statement (extrato de conta corrente) CSV.

    A preamble of account details precedes the header
    ``Data Lançamento,Data Contábil,Título,Descrição,Entrada(R$),Saída(R$),Saldo do Dia(R$)``.
    Money in and money out live in separate columns.
    """
    info = BankParserInfo(
        bank_code="C6_CONTA_CSV",
        bank_name="C6 Bank - Conta Corrente",
        supported_formats=("csv",),
        description="Extrato de conta corrente C6 Bank (CSV)",
    )
    delimiter = ","
    header_keywords = ("data lançamento",)
    header_missing_message = (
        "Cabeçalho não encontrado. Certifique-se de que é um extrato de conta corrente do C6."
    )

    def detect(self, filename: str, content: str) -> bool:
        if not has_extension(filename, ".csv"):
            return False
        # issuer markers only count above the header
        preamble = []
        for line in content.lstrip("\ufeff").lower().splitlines():
            if self.is_header(line):
                named_c6 = any(marker in text for marker in ISSUER_MARKERS for text in preamble)
                return named_c6 or ("entrada(r$)" in line and "saída(r$)" in line)
            preamble.append(line)
        return False

    def parse_record(self, cols: list[str], index: int) -> ParsedTransaction | None:
        if len(cols) < 7:
            raise RecordError(f"Formato inválido - esperado 7 colunas, encontrado {len(cols)}")

        posted_raw, booked_raw, title, detail, money_in, money_out = cols[:6]

        title_lower, detail_lower = title.lower(), detail.lower()
        if any(m in title_lower or m in detail_lower for m in REVERSAL_MARKERS):
            return None
        if is_balance_artifact(title, detail):
            return None

        posted = parse_brl_date(posted_raw)
        if posted is None:
            raise RecordError(f"Data inválida: {posted_raw}")

        received = _money(money_in)
        spent = _money(money_out)
        if received:
            kind, amount = INCOME, received
        elif spent:
            kind, amount = EXPENSE, spent
        else:
            return None

        return ParsedTransaction(
            date=posted,
            description=self.build_description(title, detail),
            amount=amount,
            type=kind,
            additional_info={
                "dataLancamento": posted_raw,
                "dataContabil": booked_raw,
                "titulo": title,
                "descricao": detail,
                "entrada": money_in,
                "saida": money_out,
                **self.classify(title, detail),
            },
        )

    def build_description(self, title: str, detail: str) -> str:
        title = title.replace('"', "").strip()
        detail = detail.replace('"', "").strip()
        if title and detail and title.lower() in detail.lower():
            text = detail
        elif title and detail and title != detail:
            text = f"{title} - {detail}"
        else:
            text = detail or title
        text = re.sub(r"BRA$", "", " ".join(text.split()), flags=re.IGNORECASE).strip()
        return text or NO_DESCRIPTION

    def classify(self, title: str, detail: str) -> dict[str, str]:
        tags = {}
        title_lower, detail_lower = title.lower(), detail.lower()
        for markers, kind, in_detail in TRANSACTION_KINDS:
            haystacks = (title_lower, detail_lower) if in_detail else (title_lower,)
            if any(m in text for m in markers for text in haystacks):
                tags["transactionType"] = kind
                break

        counterpart = _PIX_COUNTERPART.search(detail)
        if counterpart:
            tags["pixContraparte"] = counterpart.group(1).strip()
        return tags
