import csv
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, List, Optional, TextIO

from errors import ParseError
from models import (
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    TRANSACTION_CLASSES,
    ClientAccount,
    FundsTransaction,
    TransactionRecord,
    TransactionType,
)

REQUIRED_COLUMNS = ("type", "client", "tx")
OPTIONAL_COLUMNS = ("amount",)
OUTPUT_COLUMNS = ["client", "available", "held", "total", "locked"]

AMOUNT_PRECISION = Decimal("0.0001")


def read_transactions(stream: TextIO) -> Iterator[TransactionRecord]:
    """
    Lazily parse CSV rows from stream into transaction records.
    The header row is required; columns are matched by (trimmed) name.
    """
    reader = csv.reader(stream)
    rows = _read_rows(reader)
    try:
        header = next(rows)
    except StopIteration:
        raise ParseError("missing header row", line_number=1)

    columns = _parse_header(header)

    for fields in rows:
        # Only truly empty lines are skipped; ",,," is a malformed record
        if not fields:
            continue
        if len(fields) > len(columns):
            raise ParseError(
                f"expected at most {len(columns)} fields, got {len(fields)}",
                line_number=reader.line_num,
            )

        row = {name: value.strip() for name, value in zip(columns, fields)}
        yield parse_row(row, line_number=reader.line_num)


def _read_rows(reader) -> Iterator[List[str]]:
    """Yield raw rows, turning undecodable or unparsable CSV into ParseError."""
    while True:
        try:
            fields = next(reader)
        except StopIteration:
            return
        except UnicodeDecodeError as e:
            # Decoding happens in chunks, so the failing line is not known exactly
            raise ParseError(f"input is not valid UTF-8: {e.reason} at byte {e.start}")
        except csv.Error as e:
            raise ParseError(f"malformed CSV: {e}", line_number=reader.line_num)
        yield fields


def _parse_header(header: List[str]) -> List[str]:
    columns = [name.strip().lstrip("\ufeff").strip().lower() for name in header]
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise ParseError(f"header is missing columns: {', '.join(missing)}", line_number=1)

    unknown = [name for name in columns if name not in REQUIRED_COLUMNS + OPTIONAL_COLUMNS]
    if unknown:
        raise ParseError(f"header has unknown columns: {', '.join(unknown)}", line_number=1)
    return columns


def parse_row(row: Dict[str, str], line_number: Optional[int] = None) -> TransactionRecord:
    """Parse a trimmed CSV row into a Transaction."""
    type_str = row.get("type", "").lower()
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise ParseError(f"unknown transaction type {type_str!r}", line_number)

    client_id = _parse_id(row.get("client", ""), "client", MAX_CLIENT_ID, line_number)
    transaction_id = _parse_id(row.get("tx", ""), "tx", MAX_TRANSACTION_ID, line_number)

    cls = TRANSACTION_CLASSES[transaction_type]
    if issubclass(cls, FundsTransaction):
        amount = _parse_amount(row.get("amount", ""), line_number)
        return cls(client_id=client_id, transaction_id=transaction_id, amount=amount)

    # Amounts on dispute, resolve and chargeback rows are ignored
    return cls(client_id=client_id, transaction_id=transaction_id)


def _parse_id(value: str, field: str, upper_bound: int, line_number: Optional[int]) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise ParseError(f"invalid {field} id {value!r}", line_number)

    if not 0 <= parsed <= upper_bound:
        raise ParseError(f"{field} id {parsed} out of range 0..{upper_bound}", line_number)
    return parsed


def _parse_amount(value: str, line_number: Optional[int]) -> Decimal:
    if not value:
        raise ParseError("missing amount", line_number)

    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise ParseError(f"invalid amount {value!r}", line_number)
        if amount.quantize(AMOUNT_PRECISION) != amount:
            raise ParseError(f"amount {value!r} must have at most 4 decimal places", line_number)
    except InvalidOperation:
        raise ParseError(f"invalid amount {value!r}", line_number)

    if amount < 0:
        raise ParseError(f"negative amount {value!r}", line_number)
    return amount


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = value.normalize()
    return f"{normalized:f}"


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO, sort_by_client: bool = False) -> None:
    """Write the client,available,held,total,locked snapshot as CSV."""
    if sort_by_client:
        accounts = sorted(accounts, key=lambda account: account.client_id)

    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for account in accounts:
        writer.writerow([
            account.client_id,
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ])
