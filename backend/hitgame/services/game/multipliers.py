from decimal import Decimal
from typing import Iterable, List, NamedTuple
from flask import current_app
from hitgame import db
from hitgame.errors import NotFound
from hitgame.models import MultiplierConfig


# Bump whenever DEFAULT_TABLE changes; logged with every draw
TABLE_VERSION = 1


class HitConfig(NamedTuple):
    hit_number: int
    base_multiplier: Decimal
    hit_probability_percent: Decimal


DEFAULT_TABLE: List[HitConfig] = [
    HitConfig(1, Decimal('1.50'), Decimal('80')),
    HitConfig(2, Decimal('2.00'), Decimal('70')),
    HitConfig(3, Decimal('3.00'), Decimal('60')),
    HitConfig(4, Decimal('5.00'), Decimal('50')),
    HitConfig(5, Decimal('10.00'), Decimal('40')),
    HitConfig(6, Decimal('20.00'), Decimal('30')),
    HitConfig(7, Decimal('50.00'), Decimal('20')),
    HitConfig(8, Decimal('100.00'), Decimal('10')),
]


def validate_table(rows: Iterable[HitConfig]) -> None:
    """Check the rising risk/reward shape of a multiplier table.

    Hit numbers must run 1..N without gaps, multipliers must be at least 1.0
    and strictly increase, and probabilities must lie in (0, 100] and
    strictly decrease.
    """
    rows = sorted(rows, key=lambda r: r.hit_number)
    if not rows:
        raise ValueError('multiplier table is empty')
    previous = None
    for expected, row in enumerate(rows, start=1):
        if row.hit_number != expected:
            raise ValueError(f'hit_number {row.hit_number} out of sequence, expected {expected}')
        if row.base_multiplier < 1:
            raise ValueError(f'hit {row.hit_number}: base_multiplier below 1.0')
        if not (0 < row.hit_probability_percent <= 100):
            raise ValueError(f'hit {row.hit_number}: probability outside (0, 100]')
        if previous is not None:
            if row.base_multiplier <= previous.base_multiplier:
                raise ValueError(f'hit {row.hit_number}: base_multiplier must increase')
            if row.hit_probability_percent >= previous.hit_probability_percent:
                raise ValueError(f'hit {row.hit_number}: probability must decrease')
        previous = row


def seed_multiplier_table(rows: Iterable[HitConfig] = DEFAULT_TABLE) -> int:
    """Insert table rows that are missing. Existing rows are never modified."""
    rows = list(rows)
    validate_table(rows)
    existing = {c.hit_number for c in MultiplierConfig.query.all()}
    inserted = 0
    for row in rows:
        if row.hit_number in existing:
            continue
        db.session.add(MultiplierConfig(
            hit_number=row.hit_number,
            base_multiplier=row.base_multiplier,
            hit_probability_percent=row.hit_probability_percent,
        ))
        inserted += 1
    db.session.commit()
    if inserted:
        current_app.logger.info(f"[seed] multiplier_config inserted={inserted} version={TABLE_VERSION}")
    return inserted


def config_for(hit_number: int) -> HitConfig:
    row = MultiplierConfig.query.filter_by(hit_number=hit_number).first()
    if not row:
        raise NotFound(f'No multiplier configured for hit {hit_number}')
    return HitConfig(
        row.hit_number,
        Decimal(row.base_multiplier),
        Decimal(row.hit_probability_percent),
    )


def table_size() -> int:
    return MultiplierConfig.query.count()


def load_table() -> List[HitConfig]:
    return [
        HitConfig(r.hit_number, Decimal(r.base_multiplier), Decimal(r.hit_probability_percent))
        for r in MultiplierConfig.query.order_by(MultiplierConfig.hit_number).all()
    ]
