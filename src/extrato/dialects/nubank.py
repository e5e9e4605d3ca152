from extrato.base import DelimitedStatementParser, DocumentError, RecordError, has_extension
from extrato.models import EXPENSE, INCOME, NO_DESCRIPTION, BankParserInfo, ParsedTransaction
from extrato.parsing import is_balance_artifact, parse_brl_amount, parse_brl_date, parse_iso_date

REQUIRED_COLUMNS = ("date", "title", "amount")


class NubankParser(DelimitedStatementParser):
    """Nubank card bill or statement CSV: ``date,category,title,amount``.

    Dates are ISO, negative amounts are expenses. Columns are looked up by
    header name since Nubank has reordered them between exports.
    """
    info = BankParserInfo(
        bank_code="NUBANK_CSV",
        bank_name="Nubank",
        supported_formats=("csv",),
        description="Fatura de cartão ou extrato Nubank (CSV)",
    )
    delimiter = ","
    header_keywords = REQUIRED_COLUMNS

    def detect(self, filename: str, content: str) -> bool:
        if not has_extension(filename, ".csv"):
            return False
        first_line = content.lstrip("\ufeff").split("\n", 1)[0].lower()
        return all(column in first_line for column in REQUIRED_COLUMNS)

    def data_records(self, header, numbered):
        columns = [name.strip().lower() for name in header]
        missing = [name for name in REQUIRED_COLUMNS if name not in columns]
        if missing:
            raise DocumentError("Colunas obrigatórias não encontradas (date, title, amount)")
        records = []
        for n, fields in super().data_records(header, numbered):
            records.append((n, dict(zip(columns, fields))))
        return records

    def parse_record(self, row: dict[str, str], index: int) -> ParsedTransaction | None:
        date_raw = row.get("date") or ""
        amount_raw = row.get("amount") or ""
        title = (row.get("title") or "").strip()

        if not date_raw or not amount_raw:
            raise RecordError("Data ou valor ausente")
        if is_balance_artifact(title):
            return None

        posted = parse_iso_date(date_raw) or parse_brl_date(date_raw)
        if posted is None:
            raise RecordError(f"Data inválida: {date_raw}")

        amount = parse_brl_amount(amount_raw)
        if amount.is_nan():
            raise RecordError(f"Valor inválido: {amount_raw}")
        if amount == 0:
            return None

        return ParsedTransaction(
            date=posted,
            description=title or NO_DESCRIPTION,
            amount=abs(amount),
            type=EXPENSE if amount < 0 else INCOME,
            additional_info={
                "banco": "NUBANK",
                "tipoArquivo": "extrato_csv",
                "categoriaOriginal": row.get("category"),
            },
        )
