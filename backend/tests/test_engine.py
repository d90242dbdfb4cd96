import random
from decimal import Decimal
import pytest
from hitgame import db
from hitgame.errors import (
    ConfigExhausted,
    InsufficientFunds,
    InvalidInput,
    InvalidStateTransition,
    NotFound,
    WalletLimitExceeded,
)
from hitgame.models import Match, User
from hitgame.services.accounts.credentials import register
from hitgame.services.game.engine import MAX_AMOUNT, GameEngine, is_hit, parse_amount, parse_match_id, roll
from hitgame.services.game.multipliers import config_for


@pytest.fixture()
def user(flask_app):
    return register('player@x.com', 'secret')


def _engine(rng):
    return GameEngine(db.session, rng)


def test_start_debits_wallet_and_opens_match(user, fixed_rng):
    match = _engine(fixed_rng(0.0)).start(user.id, '10.00')
    assert match.result == 'in_progress'
    assert match.total_hits == 0
    assert Decimal(match.final_multiplier) == Decimal('1.00')
    assert Decimal(match.payout) == Decimal('0.00')
    assert Decimal(db.session.get(User, user.id).wallet_balance) == Decimal('90.00')


def test_start_with_exact_balance_then_insufficient(user, fixed_rng):
    engine = _engine(fixed_rng(0.0))
    engine.start(user.id, 100)
    with pytest.raises(InsufficientFunds):
        engine.start(user.id, '0.01')
    assert Match.query.filter_by(user_id=user.id).count() == 1
    assert Decimal(db.session.get(User, user.id).wallet_balance) == Decimal('0.00')


def test_consecutive_hits_follow_the_table(user, fixed_rng):
    engine = _engine(fixed_rng(0.0))
    match = engine.start(user.id, 10)
    for n in range(1, 9):
        outcome = engine.hit(user.id, match.id)
        assert outcome.hit is True
        assert outcome.match.total_hits == n
        assert Decimal(outcome.match.final_multiplier) == config_for(n).base_multiplier
        assert outcome.match.result == 'in_progress'


def test_hit_past_table_raises_config_exhausted(user, fixed_rng):
    engine = _engine(fixed_rng(0.0))
    match = engine.start(user.id, 1)
    for _ in range(8):
        engine.hit(user.id, match.id)
    with pytest.raises(ConfigExhausted):
        engine.hit(user.id, match.id)
    refreshed = db.session.get(Match, match.id)
    assert refreshed.total_hits == 8
    assert refreshed.result == 'in_progress'


def test_miss_ends_match_without_touching_wallet(user, fixed_rng):
    # 0.5 * 100 = 50: hits on hit 1 (80%), misses on hit 4 (50%)
    engine = _engine(fixed_rng(0.5))
    match = engine.start(user.id, 10)
    for _ in range(3):
        assert engine.hit(user.id, match.id).hit is True
    outcome = engine.hit(user.id, match.id)
    assert outcome.hit is False
    assert outcome.draw == 50.0
    assert outcome.config.hit_number == 4
    assert outcome.config.hit_probability_percent == Decimal('50')
    assert outcome.match.result == 'loss'
    assert outcome.match.total_hits == 3
    assert Decimal(outcome.match.final_multiplier) == Decimal('3.00')
    assert Decimal(outcome.match.payout) == Decimal('0.00')
    assert Decimal(db.session.get(User, user.id).wallet_balance) == Decimal('90.00')

    with pytest.raises(InvalidStateTransition):
        engine.cashout(user.id, match.id)
    with pytest.raises(InvalidStateTransition):
        engine.hit(user.id, match.id)


def test_draw_equal_to_probability_misses(user, fixed_rng):
    engine = _engine(fixed_rng(0.8))
    match = engine.start(user.id, 10)
    assert engine.hit(user.id, match.id).hit is False


def test_cashout_is_decimal_exact(user, fixed_rng):
    engine = _engine(fixed_rng(0.0))
    match = engine.start(user.id, '10.00')
    engine.hit(user.id, match.id)
    engine.hit(user.id, match.id)
    engine.hit(user.id, match.id)
    outcome = engine.cashout(user.id, match.id)
    assert outcome.payout == Decimal('30.00')
    assert outcome.match.result == 'win'
    assert Decimal(outcome.match.payout) == Decimal('30.00')
    assert Decimal(outcome.balance) == Decimal('120.00')


def test_cashout_rounds_to_cents(user, fixed_rng):
    engine = _engine(fixed_rng(0.0))
    match = engine.start(user.id, '0.33')
    engine.hit(user.id, match.id)
    assert engine.cashout(user.id, match.id).payout == Decimal('0.50')


def test_cashout_twice_credits_once(user, fixed_rng):
    engine = _engine(fixed_rng(0.0))
    match = engine.start(user.id, 20)
    engine.cashout(user.id, match.id)
    with pytest.raises(InvalidStateTransition):
        engine.cashout(user.id, match.id)
    assert Decimal(db.session.get(User, user.id).wallet_balance) == Decimal('100.00')


def test_matches_are_private_to_their_owner(user, fixed_rng):
    other = register('other@x.com', 'secret')
    engine = _engine(fixed_rng(0.0))
    match = engine.start(user.id, 10)
    with pytest.raises(NotFound):
        engine.hit(other.id, match.id)
    with pytest.raises(NotFound):
        engine.cashout(other.id, match.id)
    with pytest.raises(NotFound):
        engine.get_match(other.id, match.id)
    assert engine.get_match(user.id, match.id).id == match.id


def test_start_unknown_user(flask_app, fixed_rng):
    with pytest.raises(NotFound):
        _engine(fixed_rng(0.0)).start(12345, 10)


@pytest.mark.parametrize('value, expected', [
    (10, Decimal('10.00')),
    ('10.5', Decimal('10.50')),
    (0.1, Decimal('0.10')),
    ('999999.99', Decimal('999999.99')),
])
def test_parse_amount_accepts(value, expected):
    assert parse_amount(value) == expected


@pytest.mark.parametrize('value', [0, -1, '0.001', 'ten', None, False, 'Infinity', '1000000', 1e30, '1e26'])
def test_parse_amount_rejects(value):
    with pytest.raises(InvalidInput):
        parse_amount(value)


def test_hit_rate_matches_probability():
    rng = random.Random(20241019)
    draws = 100_000
    hits = sum(1 for _ in range(draws) if is_hit(roll(rng), 80))
    assert abs(hits / draws - 0.80) < 0.005


def test_roll_stays_in_range():
    rng = random.Random(7)
    values = [roll(rng) for _ in range(10_000)]
    assert min(values) >= 0
    assert max(values) < 100


@pytest.mark.parametrize('value', [0, -1, 2 ** 31, 10 ** 30, '1.5', 'abc', None, True])
def test_parse_match_id_rejects(value):
    with pytest.raises(InvalidInput):
        parse_match_id(value)


def test_parse_match_id_accepts_column_range():
    assert parse_match_id(1) == 1
    assert parse_match_id('42') == 42
    assert parse_match_id(2 ** 31 - 1) == 2 ** 31 - 1


def test_cashout_refuses_to_overflow_wallet(user, fixed_rng):
    stored = db.session.get(User, user.id)
    stored.wallet_balance = MAX_AMOUNT - Decimal('9.99')
    db.session.commit()

    engine = _engine(fixed_rng(0.0))
    match = engine.start(user.id, 10)
    for _ in range(8):
        engine.hit(user.id, match.id)
    with pytest.raises(WalletLimitExceeded):
        engine.cashout(user.id, match.id)

    assert Decimal(db.session.get(User, user.id).wallet_balance) == MAX_AMOUNT - Decimal('19.99')
    refreshed = db.session.get(Match, match.id)
    assert refreshed.result == 'in_progress'
    assert Decimal(refreshed.payout) == Decimal('0.00')
