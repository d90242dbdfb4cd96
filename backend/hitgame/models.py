from decimal import Decimal
from hitgame import db, bcrypt

MONEY = db.Numeric(10, 2)
CENTS = Decimal('0.01')

RESULT_IN_PROGRESS = 'in_progress'
RESULT_WIN = 'win'
RESULT_LOSS = 'loss'


def money(value):
    """Serialize a currency amount as a JSON number with two decimals."""
    if value is None:
        return None
    return float(Decimal(value).quantize(CENTS))


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    wallet_balance = db.Column(MONEY, nullable=False, default=Decimal('100.00'))
    matches = db.relationship('Match', back_populates='user', lazy='dynamic')

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'wallet_balance': money(self.wallet_balance),
        }


class Match(db.Model):
    __tablename__ = 'matches'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    bet_amount = db.Column(MONEY, nullable=False)
    final_multiplier = db.Column(MONEY, nullable=False, default=Decimal('1.00'))
    total_hits = db.Column(db.Integer, nullable=False, default=0)
    result = db.Column(db.String(20), nullable=False, default=RESULT_IN_PROGRESS)  # in_progress, win, loss
    payout = db.Column(MONEY, nullable=False, default=Decimal('0.00'))
    user = db.relationship('User', back_populates='matches')

    @property
    def is_in_progress(self):
        return self.result == RESULT_IN_PROGRESS

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'bet_amount': money(self.bet_amount),
            'final_multiplier': money(self.final_multiplier),
            'total_hits': self.total_hits,
            'result': self.result,
            'payout': money(self.payout),
        }


class MultiplierConfig(db.Model):
    __tablename__ = 'multiplier_config'
    id = db.Column(db.Integer, primary_key=True)
    hit_number = db.Column(db.Integer, unique=True, nullable=False)
    base_multiplier = db.Column(MONEY, nullable=False)
    hit_probability_percent = db.Column(db.Numeric(5, 2), nullable=False)
