"""Match state machine: start, hit and cashout.

A match moves ``in_progress -> win`` (cashout) or ``in_progress -> loss``
(missed hit) and never leaves a terminal state. Each operation reads the
rows it mutates with ``SELECT ... FOR UPDATE`` and commits once, so the
wallet debit/credit and the ledger update land together or not at all.
"""
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import NamedTuple
from flask import current_app
from hitgame.errors import (
    ConfigExhausted,
    InsufficientFunds,
    InvalidInput,
    InvalidStateTransition,
    NotFound,
    WalletLimitExceeded,
)
from hitgame.models import CENTS, RESULT_IN_PROGRESS, RESULT_LOSS, RESULT_WIN, Match, User
from hitgame.services.game.multipliers import TABLE_VERSION, HitConfig, config_for

# NUMERIC(10,2) ceiling for balances and payouts
MAX_AMOUNT = Decimal('99999999.99')
# A bet that pays out at the top multiplier (100x) still fits the column
MAX_BET = Decimal('999999.99')
MAX_MATCH_ID = 2 ** 31 - 1


class HitOutcome(NamedTuple):
    hit: bool
    match: Match
    draw: float
    config: HitConfig


class CashoutOutcome(NamedTuple):
    match: Match
    payout: Decimal
    balance: Decimal


def roll(rng) -> float:
    """Uniform draw in [0, 100)."""
    return rng.random() * 100


def is_hit(draw, probability_percent) -> bool:
    return draw < float(probability_percent)


def parse_amount(value) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidInput('bet_amount must be a number')
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput('bet_amount must be a number')
    if not amount.is_finite() or amount <= 0:
        raise InvalidInput('bet_amount must be greater than zero')
    # Checked before quantize, which fails past 28 significant digits
    if amount > MAX_BET:
        raise InvalidInput('bet_amount is too large')
    if amount != amount.quantize(CENTS):
        raise InvalidInput('bet_amount supports at most two decimal places')
    return amount.quantize(CENTS)


def parse_match_id(value) -> int:
    if isinstance(value, bool):
        raise InvalidInput('match_id must be an integer')
    try:
        match_id = int(value)
    except (TypeError, ValueError):
        raise InvalidInput('match_id must be an integer')
    if str(match_id) != str(value).strip():
        raise InvalidInput('match_id must be an integer')
    if not 1 <= match_id <= MAX_MATCH_ID:
        raise InvalidInput('match_id is out of range')
    return match_id


class GameEngine:

    def __init__(self, session, rng):
        self.session = session
        self.rng = rng

    @contextmanager
    def _atomic(self):
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _locked_user(self, user_id) -> User:
        user = self.session.query(User).filter_by(id=user_id).with_for_update().first()
        if not user:
            raise NotFound('User not found')
        return user

    def _locked_match(self, user_id, match_id) -> Match:
        match = self.session.query(Match).filter_by(id=parse_match_id(match_id)).with_for_update().first()
        # Other users' matches are reported as missing rather than forbidden
        if not match or match.user_id != user_id:
            raise NotFound('Match not found')
        return match

    def get_match(self, user_id, match_id) -> Match:
        match = self.session.query(Match).filter_by(id=parse_match_id(match_id)).first()
        if not match or match.user_id != user_id:
            raise NotFound('Match not found')
        return match

    def start(self, user_id, bet_amount) -> Match:
        bet = parse_amount(bet_amount)
        with self._atomic():
            user = self._locked_user(user_id)
            balance = Decimal(user.wallet_balance)
            if bet > balance:
                raise InsufficientFunds()
            user.wallet_balance = balance - bet
            match = Match(
                user_id=user.id,
                bet_amount=bet,
                final_multiplier=Decimal('1.00'),
                total_hits=0,
                result=RESULT_IN_PROGRESS,
                payout=Decimal('0.00'),
            )
            self.session.add(match)
            self.session.flush()
        current_app.logger.info(f"[match-start] match={match.id} user={user_id} bet={bet}")
        return match

    def hit(self, user_id, match_id) -> HitOutcome:
        with self._atomic():
            match = self._locked_match(user_id, match_id)
            if not match.is_in_progress:
                raise InvalidStateTransition()
            next_hit = match.total_hits + 1
            try:
                config = config_for(next_hit)
            except NotFound:
                raise ConfigExhausted()

            draw = roll(self.rng)
            hit = is_hit(draw, config.hit_probability_percent)
            if hit:
                match.total_hits = next_hit
                match.final_multiplier = config.base_multiplier
            else:
                match.result = RESULT_LOSS
        current_app.logger.info(
            f"[match-hit] match={match.id} hit_number={next_hit} draw={draw:.6f} "
            f"probability={config.hit_probability_percent} table_version={TABLE_VERSION} "
            f"outcome={'hit' if hit else 'miss'}"
        )
        return HitOutcome(hit, match, draw, config)

    def cashout(self, user_id, match_id) -> CashoutOutcome:
        with self._atomic():
            match = self._locked_match(user_id, match_id)
            if not match.is_in_progress:
                raise InvalidStateTransition()
            payout = (Decimal(match.bet_amount) * Decimal(match.final_multiplier)).quantize(CENTS, rounding=ROUND_HALF_UP)
            user = self._locked_user(user_id)
            if Decimal(user.wallet_balance) + payout > MAX_AMOUNT:
                raise WalletLimitExceeded()
            match.result = RESULT_WIN
            match.payout = payout
            user.wallet_balance = Decimal(user.wallet_balance) + payout
            balance = user.wallet_balance
        current_app.logger.info(f"[match-cashout] match={match.id} user={user_id} payout={payout}")
        return CashoutOutcome(match, payout, balance)
