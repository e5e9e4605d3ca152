"""
Capability contract shared by every statement dialect.

A dialect answers three questions: who am I (``get_info``), does this file
look like mine (``supports``) and what transactions does it hold
(``parse``). ``parse`` never raises: document problems end up in
``ImportResult.errors`` and a bad record only costs its own warning.
"""
from abc import ABC, abstractmethod
from typing import Any, Iterable

from extrato.logging_config import StatementLoggerAdapter, get_logger
from extrato.models import BankParserInfo, ImportResult, ParsedTransaction
from extrato.parsing import split_fields

EMPTY_CSV = "Arquivo CSV vazio ou sem transações"
NO_TRANSACTIONS = "Nenhuma transação válida encontrada"


class RecordError(ValueError):
    """A single row or record cannot become a transaction."""


class DocumentError(Exception):
    """The document as a whole cannot be read."""


class BankParser(ABC):
    info: BankParserInfo
    record_label = "Linha"
    empty_message = NO_TRANSACTIONS

    def __init__(self, logger=None):
        if logger is None:
            logger = get_logger(type(self).__module__)
        elif not isinstance(logger, StatementLoggerAdapter):
            logger = StatementLoggerAdapter(logger, {})
        self.log = logger

    def get_info(self) -> BankParserInfo:
        return self.info

    @property
    def bank_code(self) -> str:
        return self.info.bank_code

    def supports(self, filename: str, content: str) -> bool:
        """Cheap, side-effect free check run during auto-detection."""
        try:
            return bool(self.detect(filename or "", content or ""))
        except Exception:
            return False

    @abstractmethod
    def detect(self, filename: str, content: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def split_records(self, content: str) -> Iterable[tuple[int, Any]]:
        """Return ``(index, record)`` pairs, index being 1-based."""
        raise NotImplementedError

    @abstractmethod
    def parse_record(self, record: Any, index: int) -> ParsedTransaction | None:
        """Build one transaction, None for rows that are not transactions.

        Raise RecordError for malformed rows.
        """
        raise NotImplementedError

    def parse(self, content: str) -> ImportResult:
        result = ImportResult()
        code = self.info.bank_code

        try:
            records = list(self.split_records(content or ""))
        except DocumentError as e:
            result.errors.append(str(e))
            self.log.error(f"{code}: {e}", parser=code)
            return result
        except Exception as e:
            result.errors.append(f"Erro ao processar arquivo: {e}")
            self.log.exception(f"{code} parse error: {e}", parser=code)
            return result

        for index, record in records:
            try:
                transaction = self.parse_record(record, index)
            except RecordError as e:
                self._warn(result, index, str(e))
                continue
            except Exception as e:
                self._warn(result, index, f"erro inesperado: {e}")
                continue
            if transaction is not None:
                result.transactions.append(transaction)

        if result.transactions:
            result.success = True
            self.log.info(f"{code}: {len(result.transactions)} transações parseadas", parser=code)
        else:
            result.errors.append(self.empty_message)
            self.log.error(f"{code}: {self.empty_message}", parser=code)
        return result

    def _warn(self, result: ImportResult, index: int, message: str) -> None:
        warning = f"{self.record_label} {index}: {message}"
        result.warnings.append(warning)
        self.log.warning(warning, parser=self.info.bank_code, index=index)


class DelimitedStatementParser(BankParser):
    """Line-oriented CSV export with a header row somewhere near the top."""
    delimiter = ","
    header_keywords: tuple[str, ...] = ()
    header_missing_message = "Cabeçalho não encontrado"

    def is_header(self, line: str) -> bool:
        lowered = line.lower()
        return all(keyword in lowered for keyword in self.header_keywords)

    def split_records(self, content: str) -> list[tuple[int, Any]]:
        lines = content.lstrip("\ufeff").splitlines()
        numbered = [(n, line) for n, line in enumerate(lines, start=1) if line.strip()]
        if len(numbered) < 2:
            raise DocumentError(EMPTY_CSV)

        for pos, (_, line) in enumerate(numbered):
            if self.is_header(line):
                header = split_fields(line, self.delimiter)
                return self.data_records(header, numbered[pos + 1:])
        raise DocumentError(self.header_missing_message)

    def data_records(self, header: list[str], numbered: list[tuple[int, str]]) -> list[tuple[int, Any]]:
        return [(n, split_fields(line, self.delimiter)) for n, line in numbered]


def has_extension(filename: str, extension: str) -> bool:
    return filename.lower().endswith(extension)
