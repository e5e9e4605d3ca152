import re

from extrato.base import DelimitedStatementParser, RecordError, has_extension
from extrato.models import EXPENSE, INCOME, NO_DESCRIPTION, BankParserInfo, ParsedTransaction
from extrato.parsing import (
    is_balance_artifact, parse_brl_amount, parse_brl_date, parse_installment, project_installment,
)

_DUPLICATED_NAME = re.compile(r"^(.+?)\s*\*\s*\1$", re.IGNORECASE)


def clean_card_description(raw: str | None) -> str:
    """Tidy merchant names: "UBER   *UBER" -> "UBER", "PAG*Jose" -> "PAG Jose"."""
    if not raw:
        return NO_DESCRIPTION
    desc = raw.strip()
    duplicated = _DUPLICATED_NAME.match(desc)
    if duplicated:
        desc = duplicated.group(1).strip()
    else:
        desc = desc.replace("*", " ")
    desc = " ".join(desc.split())
    return desc or NO_DESCRIPTION


class C6CardParser(DelimitedStatementParser):
    """C6 Bank credit card bill (fatura) exported as CSV.

    Columns, ``;`` separated: Data de Compra; Nome no Cartão; Final do Cartão;
    Categoria; Descrição; Parcela; Valor (em US$); Cotação (em R$);
    Valor (em R$). Negative values are refunds. Parcela is "Única" or "X/Y".
    """
    info = BankParserInfo(
        bank_code="C6_CSV",
        bank_name="C6 Bank",
        supported_formats=("csv",),
        description="Fatura de cartão de crédito C6 Bank (CSV)",
    )
    delimiter = ";"
    header_keywords = ("data de compra",)
    header_missing_message = "Cabeçalho não encontrado. Certifique-se de que é uma fatura de cartão do C6."

    def detect(self, filename: str, content: str) -> bool:
        if not has_extension(filename, ".csv"):
            return False
        first_line = content.lstrip("\ufeff").split("\n", 1)[0].lower()
        return (
            "data de compra" in first_line
            and "final do cartão" in first_line
            and "valor (em r$)" in first_line
        )

    def parse_record(self, cols: list[str], index: int) -> ParsedTransaction | None:
        if len(cols) < 9:
            raise RecordError(f"Formato inválido - esperado 9 colunas, encontrado {len(cols)}")

        (purchase_raw, holder, card_last_digits, bank_category, raw_description,
         installment_marker, value_usd, usd_rate, value_brl) = cols[:9]

        if is_balance_artifact(raw_description):
            return None

        purchase_date = parse_brl_date(purchase_raw)
        if purchase_date is None:
            raise RecordError(f"Data inválida: {purchase_raw}")

        amount = parse_brl_amount(value_brl)
        if amount.is_nan():
            raise RecordError(f"Valor inválido: {value_brl}")
        if amount == 0:
            return None

        description = clean_card_description(raw_description)
        # refunds come negative, bill payments show up as PAGAMENTO
        if amount < 0 or "PAGAMENTO" in description.upper():
            kind = INCOME
        else:
            kind = EXPENSE

        installment = parse_installment(installment_marker)
        info = {
            "banco": "C6",
            "tipoArquivo": "fatura_cartao",
            "cartaoFinal": card_last_digits,
            "titularCartao": holder,
            "parcela": {"atual": installment[0], "total": installment[1]} if installment else None,
            "parcelaOriginal": installment_marker,
            "categoriaOriginal": bank_category,
            "valorOriginal": value_brl,
            "dataCompraOriginal": purchase_date,
        }
        usd = parse_brl_amount(value_usd)
        if not usd.is_nan() and usd != 0:
            info["valorUsd"] = value_usd
            info["cotacaoDolar"] = usd_rate

        return ParsedTransaction(
            date=project_installment(purchase_date, installment_marker),
            description=description,
            amount=abs(amount),
            type=kind,
            additional_info=info,
        )
