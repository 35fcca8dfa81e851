#!/usr/bin/env python3
"""
Health server for hosting platforms that require an open port.
Runs a small Flask app on a daemon thread next to the polling bot.
"""

from flask import Flask, jsonify
import threading
import logging

from trainer_bot.training.errors import StorageError

logger = logging.getLogger(__name__)


def create_health_app(service=None):
    app = Flask(__name__)

    @app.route('/')
    def home():
        return '🤖 Pet Training Bot is running!'

    @app.route('/health')
    def health():
        return 'OK', 200

    @app.route('/status')
    def status():
        payload = {'status': 'running', 'service': 'pet-trainer-bot'}
        if service is None:
            return jsonify(payload), 200

        payload['mode'] = service.policy.mode_name
        scheduler = service.scheduler
        payload['scheduler'] = scheduler.snapshot() if scheduler is not None else None

        try:
            payload['records'] = service.engine.store.count()
        except StorageError as e:
            logger.error(f"Health status database error: {e}")
            payload['status'] = 'degraded'
            payload['records'] = None
            return jsonify(payload), 503

        return jsonify(payload), 200

    return app


def start_health_server(port=8000, service=None):
    """Start health server in a separate thread"""
    app = create_health_app(service)

    def run_server():
        logger.info(f"Starting health server on port {port}")
        app.run(host='0.0.0.0', port=port, debug=False, use_reloader=False)

    # Start in background thread
    server_thread = threading.Thread(target=run_server, daemon=True)
    server_thread.start()
    logger.info("Health server started")

    return server_thread
