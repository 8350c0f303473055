from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_socketio import SocketIO
import logging
import os
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()
limiter = Limiter(key_func=get_remote_address, default_limits=[])
socketio = SocketIO()

logger = logging.getLogger(__name__)


def _split_env_list(name, default=''):
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


def create_app(config_name='development'):
    app = Flask(__name__)

    # Config
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv(
        'DATABASE_URL',
        'sqlite:///hopaba.db'
    )
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['JWT_EXPIRES_HOURS'] = int(os.getenv('JWT_EXPIRES_HOURS', 24 * 7))
    app.config['ADMIN_EMAILS'] = [e.lower() for e in _split_env_list('ADMIN_EMAILS')]

    # External collaborators
    app.config['DEEPSEEK_API_KEY'] = os.getenv('DEEPSEEK_API_KEY')
    app.config['DEEPSEEK_API_URL'] = os.getenv(
        'DEEPSEEK_API_URL', 'https://api.deepseek.com/v1/chat/completions'
    )
    app.config['GUPSHUP_API_KEY'] = os.getenv('GUPSHUP_API_KEY')
    app.config['GUPSHUP_APP_NAME'] = os.getenv('GUPSHUP_APP_NAME', 'ChowkashiApp')
    app.config['VAPID_PUBLIC_KEY'] = os.getenv('VAPID_PUBLIC_KEY', '')
    app.config['VAPID_PRIVATE_KEY'] = os.getenv('VAPID_PRIVATE_KEY', '')
    app.config['VAPID_SUBJECT'] = os.getenv('VAPID_SUBJECT', 'mailto:support@chowkashi.com')
    app.config['GEOCODE_POSTAL_CODES'] = True

    if config_name == 'testing':
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
        app.config['RATELIMIT_ENABLED'] = False
        app.config['GEOCODE_POSTAL_CODES'] = False
        app.config['DEEPSEEK_API_KEY'] = None
        app.config['GUPSHUP_API_KEY'] = None

    # Initialize extensions
    db.init_app(app)
    limiter.init_app(app)
    CORS(app, origins=_split_env_list('CORS_ORIGINS', '*'))
    socketio.init_app(app, cors_allowed_origins='*', async_mode='threading')

    # Import models so create_all sees every table
    from hopaba import models  # noqa: F401

    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            logger.warning(f'Could not create database tables: {e}')

    from hopaba.routes import register_routes
    register_routes(app)

    from hopaba.socket_events import register_socket_events
    register_socket_events(socketio)

    @app.route('/health', methods=['GET'])
    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'}), 200

    return app
