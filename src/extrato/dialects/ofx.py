"""
OFX statement machinery shared by the issuer-specific dialects.

Documents are read with ofxparse. Records it accepts come back as
``Transaction`` objects; records it discards (no FITID, a bad date or
amount) are re-read from their tag so they still yield a transaction or a
``Transação N`` warning under the rules below.
"""
import io
import itertools

from ofxparse import OfxParser

from extrato.base import BankParser, DocumentError, RecordError, has_extension
from extrato.models import EXPENSE, INCOME, NO_DESCRIPTION, ParsedTransaction
from extrato.parsing import (
    is_balance_artifact, is_plausible_year, ofx_posting_year, parse_ofx_amount,
    parse_ofx_date, prepare_ofx,
)

RECORD_FIELDS = ("TRNTYPE", "DTPOSTED", "TRNAMT", "FITID", "NAME", "MEMO", "CHECKNUM")


def looks_like_ofx(filename: str, content: str) -> bool:
    if not has_extension(filename, ".ofx"):
        return False
    lowered = content.lower()
    return "ofx" in lowered or "stmttrn" in lowered


def transaction_fields(txn) -> dict:
    """Record fields of a transaction ofxparse accepted."""
    posted = txn.date
    return {
        "TRNTYPE": (txn.type or "").upper() or None,
        # ofxparse turns an all-zero date into None
        "DTPOSTED": f"{posted.year:04d}{posted.month:02d}{posted.day:02d}" if posted else "00000000",
        "TRNAMT": txn.amount,
        "FITID": txn.id or None,
        "NAME": txn.payee or None,
        "MEMO": txn.memo or None,
        "CHECKNUM": txn.checknum or None,
    }


def tag_fields(tag) -> dict:
    """Record fields read straight from a STMTTRN tag ofxparse discarded."""
    fields = {}
    for name in RECORD_FIELDS:
        found = tag.find(name.lower())
        text = found.get_text().strip() if found is not None else ""
        fields[name] = text or None
    return fields


class OfxStatementParser(BankParser):
    record_label = "Transação"
    empty_message = "Nenhuma transação encontrada no arquivo OFX"
    income_codes = frozenset({"CREDIT", "DEP"})
    expense_codes = frozenset({"DEBIT", "POS", "XFER"})
    bank_tag: str | None = None
    file_kind = "extrato_ofx"

    def split_records(self, content: str):
        if "<stmttrn>" not in content.lower():
            return []
        try:
            ofx = OfxParser.parse(io.BytesIO(prepare_ofx(content)), fail_fast=False)
        except Exception as e:
            raise DocumentError(f"Arquivo OFX inválido: {e}") from e

        accepted, discarded = [], {}
        for account in ofx.accounts:
            statement = getattr(account, "statement", None)
            if statement is None:
                continue
            accepted.extend(transaction_fields(txn) for txn in statement.transactions)
            for entry in statement.discarded_entries:
                tag = entry["content"]
                # position among all STMTTRN tags of the document, 1-based
                index = len(tag.find_all_previous("stmttrn")) + 1
                discarded[index] = tag_fields(tag)
                self.log.debug(f"ofxparse discarded record {index}: {entry['error']}", index=index)

        free = (index for index in itertools.count(1) if index not in discarded)
        records = [(next(free), fields) for fields in accepted]
        records.extend(discarded.items())
        return sorted(records, key=lambda record: record[0])

    def parse_record(self, fields: dict, index: int) -> ParsedTransaction | None:
        name, memo = fields["NAME"], fields["MEMO"]

        if is_balance_artifact(name):
            return None
        if not fields["DTPOSTED"]:
            raise RecordError("Data não encontrada")
        if fields["TRNAMT"] is None:
            raise RecordError("Valor não encontrado")

        year = ofx_posting_year(fields["DTPOSTED"])
        if year is not None and not is_plausible_year(year):
            # balance snapshots carry dates like 00021130
            self.log.debug(f"Skipping record {index} dated {fields['DTPOSTED']}", index=index)
            return None
        posted = parse_ofx_date(fields["DTPOSTED"])
        if posted is None:
            raise RecordError(f"Data inválida: {fields['DTPOSTED']}")

        amount = parse_ofx_amount(fields["TRNAMT"])
        if amount.is_nan():
            raise RecordError(f"Valor inválido: {fields['TRNAMT']}")
        if amount == 0:
            return None

        return ParsedTransaction(
            date=posted,
            description=self.build_description(name, memo),
            amount=abs(amount),
            type=self.resolve_type(fields["TRNTYPE"], amount),
            fitid=fields["FITID"] or None,
            additional_info=self.additional_info(fields),
        )

    def resolve_type(self, trntype: str | None, amount) -> str:
        code = (trntype or "").upper()
        if code in self.income_codes:
            return INCOME
        if code in self.expense_codes:
            return EXPENSE
        return INCOME if amount > 0 else EXPENSE

    def build_description(self, name: str | None, memo: str | None) -> str:
        parts = [part for part in (name, memo) if part]
        return " - ".join(parts).strip() if parts else NO_DESCRIPTION

    def additional_info(self, fields: dict[str, str | None]) -> dict:
        info = {}
        if self.bank_tag:
            info["banco"] = self.bank_tag
        info["tipoArquivo"] = self.file_kind
        info["tipoTransacao"] = fields["TRNTYPE"]
        if fields["CHECKNUM"]:
            info["numeroDocumento"] = fields["CHECKNUM"]
        if fields["MEMO"]:
            info["memo"] = fields["MEMO"]
        return info
