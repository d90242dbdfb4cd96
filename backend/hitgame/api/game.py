from flask import Blueprint, jsonify, request, current_app
from flask_jwt_extended import jwt_required
from hitgame import db, socketio
from hitgame.models import money
from hitgame.services.accounts.credentials import get_user
from hitgame.services.accounts.tokens import current_user_id
from hitgame.services.game.engine import GameEngine
from hitgame.services.game.multipliers import TABLE_VERSION, load_table, table_size


game = Blueprint('game', __name__)


def _engine() -> GameEngine:
    return GameEngine(db.session, current_app.extensions['hit_rng'])


def _emit_match_update(user_id, match, balance) -> None:
    socketio.emit(
        'match_update',
        {'match': match.to_dict(), 'wallet_balance': money(balance)},
        to=f"user:{user_id}",
        namespace='/ws',
    )


@game.route('/multipliers', methods=['GET'])
def multipliers():
    rows = [
        {
            'hit_number': r.hit_number,
            'base_multiplier': money(r.base_multiplier),
            'hit_probability_percent': float(r.hit_probability_percent),
        }
        for r in load_table()
    ]
    return jsonify({'ok': True, 'version': TABLE_VERSION, 'multipliers': rows})


@game.route('/start', methods=['POST'])
@jwt_required()
def start_match():
    user_id = current_user_id()
    data = request.get_json(silent=True) or {}
    match = _engine().start(user_id, data.get('bet_amount'))
    balance = get_user(user_id).wallet_balance
    _emit_match_update(user_id, match, balance)
    return jsonify({'ok': True, 'match_id': match.id, 'wallet_balance': money(balance)})


@game.route('/hit', methods=['POST'])
@jwt_required()
def hit():
    user_id = current_user_id()
    data = request.get_json(silent=True) or {}
    outcome = _engine().hit(user_id, data.get('match_id'))
    _emit_match_update(user_id, outcome.match, get_user(user_id).wallet_balance)
    if outcome.hit:
        return jsonify({
            'ok': True,
            'result': 'hit',
            'mult': money(outcome.match.final_multiplier),
            'total_hits': outcome.match.total_hits,
        })
    # A miss is a valid outcome, not an error: keep HTTP 200 with ok=false
    return jsonify({'ok': False, 'result': 'miss'})


@game.route('/cashout', methods=['POST'])
@jwt_required()
def cashout():
    user_id = current_user_id()
    data = request.get_json(silent=True) or {}
    outcome = _engine().cashout(user_id, data.get('match_id'))
    _emit_match_update(user_id, outcome.match, outcome.balance)
    return jsonify({
        'ok': True,
        'payout': money(outcome.payout),
        'wallet_balance': money(outcome.balance),
    })


@game.route('/<int:match_id>', methods=['GET'])
@jwt_required()
def get_match(match_id):
    match = _engine().get_match(current_user_id(), match_id)
    payload = match.to_dict()
    payload['max_hits'] = table_size()
    return jsonify({'ok': True, 'match': payload})
