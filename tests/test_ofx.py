from decimal import Decimal

from extrato.dialects.bb import BancoDoBrasilParser
from extrato.dialects.generic_ofx import GenericOfxParser
from extrato.dialects.inter import InterParser
from extrato.models import EXPENSE, INCOME


def _ofx(*records: str) -> str:
    body = "".join(f"<STMTTRN>{record}</STMTTRN>\n" for record in records)
    return (
        "OFXHEADER:100\n\n<OFX><BANKMSGSRSV1><STMTTRNRS><STMTRS><BANKTRANLIST>\n"
        f"{body}</BANKTRANLIST></STMTRS></STMTTRNRS></BANKMSGSRSV1></OFX>\n"
    )


def test_parse_bb_sample(read_fixture):
    result = BancoDoBrasilParser().parse(read_fixture("bb_sample.ofx"))
    assert result.success
    # "Saldo Anterior", "Saldo do dia" and the 0002 snapshot leave no trace
    assert result.warnings == []
    assert [t.fitid for t in result.transactions] == ["20240105001", "20240115001", "20240120001"]
    assert [t.date for t in result.transactions] == ["2024-01-05", "2024-01-15", "2024-01-20"]


def test_bb_pix_debit(read_fixture):
    pix = BancoDoBrasilParser().parse(read_fixture("bb_sample.ofx")).transactions[0]
    assert pix.description == "Pix - Enviado - 05/01 10:30 MARIA SOUZA"
    assert pix.amount == Decimal("150.00")
    assert pix.type == EXPENSE
    assert pix.additional_info == {
        "banco": "BB",
        "tipoArquivo": "extrato_ofx",
        "tipoTransacao": "DEBIT",
        "numeroDocumento": "123456",
        "memo": "05/01 10:30 MARIA SOUZA",
        "categoria": "PIX",
    }


def test_bb_dividend_names_the_ticker(read_fixture):
    dividend = BancoDoBrasilParser().parse(read_fixture("bb_sample.ofx")).transactions[1]
    assert dividend.type == INCOME
    assert dividend.amount == Decimal("45.67")
    assert dividend.additional_info["ticker"] == "MXRF11"
    assert dividend.additional_info["tipoTransacao"] == "PROVENTO"
    assert dividend.additional_info["categoria"] == "PROVENTOS"


def test_bb_fee_category(read_fixture):
    fee = BancoDoBrasilParser().parse(read_fixture("bb_sample.ofx")).transactions[2]
    assert fee.description == "Tarifa Pacote Serviços"
    assert fee.additional_info["categoria"] == "TARIFA"
    assert "memo" not in fee.additional_info


def test_bb_memo_repeating_the_name_is_dropped():
    content = _ofx(
        "<TRNTYPE>CREDIT<DTPOSTED>20240110<TRNAMT>3.21<FITID>1"
        "<NAME>Rende Fácil<MEMO>RENDE FÁCIL"
    )
    result = BancoDoBrasilParser().parse(content)
    assert result.transactions[0].description == "Rende Fácil"
    assert result.transactions[0].additional_info["categoria"] == "BB_RENDE_FACIL"


def test_parse_inter_sample(read_fixture):
    result = InterParser().parse(read_fixture("inter_sample.ofx"))
    assert result.success
    assert len(result.transactions) == 3
    assert result.warnings == ["Transação 4: Data inválida: 20241341"]

    credit, boleto, purchase = result.transactions
    assert credit.description == "Pix recebido - Cliente ABC"
    assert credit.type == INCOME
    assert credit.amount == Decimal("2500.00")
    assert credit.fitid == "INTER-0001"
    assert credit.additional_info["banco"] == "INTER"
    assert boleto.type == EXPENSE
    assert boleto.additional_info["numeroDocumento"] == "000123"
    assert purchase.description == "Compra no debito - PADARIA & CAFE"
    assert purchase.type == EXPENSE
    assert purchase.amount == Decimal("19.90")


def test_parse_generic_sample_without_closing_tags(read_fixture):
    result = GenericOfxParser().parse(read_fixture("generic_sample.ofx"))
    assert result.success
    assert result.warnings == []

    interest, cheque, bill = result.transactions
    assert interest.type == INCOME
    assert interest.amount == Decimal("12.34")
    assert cheque.type == EXPENSE
    assert cheque.amount == Decimal("500.00")
    assert bill.description == "PAGTO CONTA LUZ - ENEL"
    assert bill.type == EXPENSE
    assert bill.additional_info == {
        "tipoArquivo": "ofx_generico",
        "tipoTransacao": "PAYMENT",
        "memo": "ENEL",
    }


def test_type_code_wins_over_sign():
    content = _ofx(
        "<TRNTYPE>CREDIT<DTPOSTED>20240110<TRNAMT>-5.00<FITID>a<NAME>Ajuste",
        "<TRNTYPE>DEBIT<DTPOSTED>20240110<TRNAMT>5.00<FITID>b<NAME>Ajuste",
        "<TRNTYPE>OTHER<DTPOSTED>20240110<TRNAMT>5.00<FITID>c<NAME>Ajuste",
    )
    result = InterParser().parse(content)
    assert [t.type for t in result.transactions] == [INCOME, EXPENSE, INCOME]
    assert all(t.amount == Decimal("5.00") for t in result.transactions)


def test_interest_and_cheque_codes_only_known_to_generic():
    content = _ofx(
        "<TRNTYPE>INT<DTPOSTED>20240110<TRNAMT>-1.00<FITID>a<NAME>Juros",
        "<TRNTYPE>CHECK<DTPOSTED>20240110<TRNAMT>1.00<FITID>b<NAME>Cheque",
    )
    assert [t.type for t in GenericOfxParser().parse(content).transactions] == [INCOME, EXPENSE]
    assert [t.type for t in InterParser().parse(content).transactions] == [EXPENSE, INCOME]


def test_broken_records_become_warnings():
    content = _ofx(
        "<TRNTYPE>DEBIT<TRNAMT>-1.00<NAME>Sem data",
        "<TRNTYPE>DEBIT<DTPOSTED>20240110<NAME>Sem valor",
        "<TRNTYPE>DEBIT<DTPOSTED>20240110<TRNAMT>abc<NAME>Valor ruim",
        "<TRNTYPE>DEBIT<DTPOSTED>20240110<TRNAMT>0.00<NAME>Zerado",
        "<TRNTYPE>DEBIT<DTPOSTED>20240110<TRNAMT>-9.99<NAME>Ok",
    )
    result = GenericOfxParser().parse(content)
    assert len(result.transactions) == 1
    assert result.transactions[0].fitid is None
    assert result.warnings == [
        "Transação 1: Data não encontrada",
        "Transação 2: Valor não encontrado",
        "Transação 3: Valor inválido: abc",
    ]


def test_ofx_without_records_is_an_error():
    result = GenericOfxParser().parse("OFXHEADER:100\n<OFX><BANKTRANLIST></BANKTRANLIST></OFX>")
    assert not result.success
    assert result.errors == ["Nenhuma transação encontrada no arquivo OFX"]


def test_untitled_record_gets_placeholder():
    content = _ofx("<TRNTYPE>DEBIT<DTPOSTED>20240110<TRNAMT>-1.00")
    assert GenericOfxParser().parse(content).transactions[0].description == "Sem descrição"


def test_detect(read_fixture):
    bb, inter, generic = BancoDoBrasilParser(), InterParser(), GenericOfxParser()
    bb_file, inter_file = read_fixture("bb_sample.ofx"), read_fixture("inter_sample.ofx")
    other_file = read_fixture("generic_sample.ofx")

    assert bb.supports("extrato.ofx", bb_file)
    assert not bb.supports("extrato.ofx", inter_file)
    assert inter.supports("extrato.ofx", inter_file)
    assert not inter.supports("extrato.ofx", other_file)
    assert not inter.supports("extrato.ofx", "<OFX><BANKID>077</BANKID></OFX>")
    assert all(generic.supports("x.ofx", f) for f in (bb_file, inter_file, other_file))
    assert not generic.supports("x.csv", other_file)
    assert not generic.supports("x.ofx", "nothing to see here")


def test_rejected_records_keep_their_position():
    content = _ofx(
        "<TRNTYPE>DEBIT<DTPOSTED>20240110<TRNAMT>-1.00<FITID>a<NAME>Primeiro",
        "<TRNTYPE>DEBIT<DTPOSTED>20241399<TRNAMT>-2.00<FITID>b<NAME>Data ruim",
        "<TRNTYPE>DEBIT<DTPOSTED>20240112<TRNAMT>-3.00<FITID>c<NAME>Terceiro",
        "<TRNTYPE>DEBIT<DTPOSTED>20240113<TRNAMT>abc<FITID>d<NAME>Valor ruim",
        "<TRNTYPE>DEBIT<DTPOSTED>20240114<TRNAMT>-5.00<NAME>Sem fitid",
    )
    result = GenericOfxParser().parse(content)
    assert [t.description for t in result.transactions] == ["Primeiro", "Terceiro", "Sem fitid"]
    assert [t.fitid for t in result.transactions] == ["a", "c", None]
    assert result.warnings == [
        "Transação 2: Data inválida: 20241399",
        "Transação 4: Valor inválido: abc",
    ]


def test_posted_date_keeps_the_printed_day():
    content = _ofx("<TRNTYPE>DEBIT<DTPOSTED>20240105233000[-3:BRT]<TRNAMT>-1.00<FITID>a<NAME>Noite")
    assert GenericOfxParser().parse(content).transactions[0].date == "2024-01-05"


def test_ofx_amounts_use_a_single_decimal_point():
    content = _ofx(
        "<TRNTYPE>DEBIT<DTPOSTED>20240110<TRNAMT>-5.000<FITID>a<NAME>Tres casas",
        "<TRNTYPE>CREDIT<DTPOSTED>20240110<TRNAMT>1.234<FITID>b<NAME>Tres casas",
    )
    amounts = [t.amount for t in GenericOfxParser().parse(content).transactions]
    assert amounts == [Decimal("5"), Decimal("1.234")]


def test_accented_text_survives(read_fixture):
    content = _ofx("<TRNTYPE>DEBIT<DTPOSTED>20240110<TRNAMT>-9.90<FITID>a<NAME>Pão de Açúcar")
    assert GenericOfxParser().parse(content).transactions[0].description == "Pão de Açúcar"
    fee = BancoDoBrasilParser().parse(read_fixture("bb_sample.ofx")).transactions[2]
    assert fee.description == "Tarifa Pacote Serviços"
