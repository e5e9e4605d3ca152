from types import MappingProxyType
from typing import Iterable

from extrato.base import BankParser
from extrato.dialects.bb import BancoDoBrasilParser
from extrato.dialects.c6_card import C6CardParser
from extrato.dialects.c6_checking import C6CheckingParser
from extrato.dialects.generic_ofx import GenericOfxParser
from extrato.dialects.inter import InterParser
from extrato.dialects.nubank import NubankParser
from extrato.logging_config import get_logger
from extrato.models import BankParserInfo

logger = get_logger(__name__)

# Auto-detection order. Dialects share surface markers, so order decides:
# C6 checking before the C6 card bill (both C6 CSV exports), and Banco do
# Brasil before Inter (both plain OFX, told apart by issuer name).
DETECTION_PRIORITY = (
    "C6_CONTA_CSV",
    "C6_CSV",
    "NUBANK_CSV",
    "BB_OFX",
    "INTER_OFX",
)
# tried last, hidden from bank listings
FALLBACK_CODE = "GENERIC_OFX"

DIALECTS = (
    C6CardParser,
    C6CheckingParser,
    InterParser,
    BancoDoBrasilParser,
    NubankParser,
    GenericOfxParser,
)


class ParserRegistry:
    """Read-only lookup of bank code -> parser, fixed at construction."""

    def __init__(self, parsers: Iterable[BankParser]):
        by_code: dict[str, BankParser] = {}
        for parser in parsers:
            code = parser.get_info().bank_code
            if code in by_code:
                raise ValueError(f"Duplicate bank code: {code}")
            by_code[code] = parser
            logger.debug(f"Parser registered: {code} ({parser.get_info().bank_name})")
        self._parsers = MappingProxyType(by_code)

    def __contains__(self, code: str) -> bool:
        return code in self._parsers

    def __len__(self) -> int:
        return len(self._parsers)

    def get_by_code(self, code: str) -> BankParser | None:
        return self._parsers.get(code)

    def codes(self) -> list[str]:
        return [code for code in self._parsers if code != FALLBACK_CODE]

    def list_all(self) -> list[BankParserInfo]:
        return [parser.get_info() for parser in self._parsers.values()]

    def list_public(self) -> list[BankParserInfo]:
        return [info for info in self.list_all() if info.bank_code != FALLBACK_CODE]

    def detection_order(self) -> list[BankParser]:
        ordered = [self._parsers[code] for code in DETECTION_PRIORITY if code in self._parsers]
        if FALLBACK_CODE in self._parsers:
            ordered.append(self._parsers[FALLBACK_CODE])
        return ordered


def build_registry(logger=None) -> ParserRegistry:
    return ParserRegistry(dialect(logger=logger) for dialect in DIALECTS)


registry = build_registry()
