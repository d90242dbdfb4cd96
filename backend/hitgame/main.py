from flask import Blueprint, jsonify, current_app
from hitgame import db
from hitgame.services.game.multipliers import seed_multiplier_table

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'ok': True, 'msg': 'Hit game server is running'})


@main.route('/setup')
def setup():
    """Create the schema and seed the multiplier table. Safe to call repeatedly."""
    db.create_all()
    inserted = seed_multiplier_table()
    current_app.logger.info(f"[setup] tables ready, multiplier rows inserted={inserted}")
    return jsonify({'ok': True, 'msg': 'Tables ready', 'seeded': inserted})
