from __future__ import annotations

from typing import Callable, Dict, Iterable, Iterator, List, Sequence

import pytest
from sqlalchemy import Column, DateTime, Float, Integer, MetaData, Table, create_engine
from sqlalchemy.engine import Engine

DAY_COLUMNS = (
    "Temputare_main",
    "Temputare_1",
    "Temputare_min",
    "Time_Minute_Run",
    "Time_Main",
    "GREEN",
    "RED",
    "YELLOW",
)

TableFactory = Callable[..., Table]


@pytest.fixture()
def engine(tmp_path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite:///{tmp_path / 'plc.db'}")
    yield engine
    engine.dispose()


@pytest.fixture()
def make_day_table(engine: Engine) -> TableFactory:
    """Create a PLC day table and insert the given rows."""

    def factory(
        name: str,
        rows: Iterable[Dict[str, object]] = (),
        columns: Sequence[str] = DAY_COLUMNS,
        with_timestamp: bool = True,
    ) -> Table:
        metadata = MetaData()
        table_columns: List[Column] = []
        if with_timestamp:
            table_columns.append(Column("Timestamp", DateTime))
        for column in columns:
            column_type = Float if column.startswith("Temputare") else Integer
            table_columns.append(Column(column, column_type))
        table = Table(name, metadata, *table_columns)
        metadata.create_all(engine)
        payload = list(rows)
        if payload:
            with engine.begin() as connection:
                connection.execute(table.insert(), payload)
        return table

    return factory
