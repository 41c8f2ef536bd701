"""
HTTP API server for the print farm.

This module provides a Flask-based REST API over a PrintTaskHandler:
queueing print tasks, running scheduling passes, reporting finished
prints and reading fleet status.
"""

from flask import Flask, request, jsonify
from datetime import datetime, timezone
from typing import Dict, Any, Optional
import json
import logging

from .exceptions import InvariantViolation, ValidationError
from .scheduler import PrintTaskHandler
from .types import Fleet, SchedulingPolicy, StrategyKind


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(levelname)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def load_fleet(path: str) -> Fleet:
    """
    Read fleet data from a JSON file.

    The file holds a "prints", a "spools" and a "printers" list.
    """
    with open(path, encoding='utf-8') as f:
        return Fleet.from_dict(json.load(f))


def create_app(config: Dict[str, Any] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Optional configuration dictionary

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)

    # Default configuration
    app.config.update({
        'TESTING': False,
        'STRATEGY': StrategyKind.FEWEST_SPOOL_CHANGES.value,
        'RESCHEDULE_ON_FINALIZE': True,
        'FLEET': None,
        'FLEET_FILE': None,
    })

    # Apply custom config
    if config:
        app.config.update(config)

    if app.config['FLEET'] is not None:
        fleet = Fleet.from_dict(app.config['FLEET'])
    elif app.config['FLEET_FILE']:
        fleet = load_fleet(app.config['FLEET_FILE'])
    else:
        fleet = Fleet()

    policy = SchedulingPolicy(
        strategy=StrategyKind.from_code(app.config['STRATEGY']),
        reschedule_on_finalize=app.config['RESCHEDULE_ON_FINALIZE']
    )
    handler = PrintTaskHandler.from_fleet(fleet, policy)
    app.extensions['printfarm'] = handler

    logger.info(
        f"Loaded {len(fleet.prints)} prints, {len(fleet.spools)} spools, "
        f"{len(fleet.printers)} printers"
    )

    @app.route('/health', methods=['GET'])
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'service': 'printfarm',
            'version': '0.1.0',
            'timestamp': datetime.now(timezone.utc).isoformat()
        })

    @app.route('/prints', methods=['GET'])
    def list_prints():
        return jsonify({'prints': [spec.to_dict() for spec in handler.prints]})

    @app.route('/spools', methods=['GET'])
    def list_spools():
        free = set(handler.pool.free_ids)
        return jsonify({
            'spools': [
                dict(spool.to_dict(), free=spool.spool_id in free)
                for spool in handler.pool.spools
            ]
        })

    @app.route('/colors/<filament>', methods=['GET'])
    def list_colors(filament):
        return jsonify({'colors': handler.available_colors(filament)})

    @app.route('/tasks', methods=['GET'])
    def list_tasks():
        return jsonify({'pending': [task.to_dict() for task in handler.pending_tasks()]})

    @app.route('/tasks', methods=['POST'])
    def add_task():
        """
        Queue a new print task.

        Request body:
        {
            "print": "cube",
            "filament_type": "PLA",
            "colors": ["red"]
        }
        """
        data = request.get_json(silent=True)
        if not data:
            return jsonify({'error': 'Empty request body'}), 400
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        try:
            message = handler.enqueue(
                data['print'],
                data['filament_type'],
                data.get('colors', [])
            )
        except KeyError as e:
            logger.error(f"Invalid task data: missing {e}")
            return jsonify({'error': f'Invalid task data: missing {e}'}), 400

        return jsonify({'message': message}), 201

    @app.route('/schedule', methods=['POST'])
    def schedule():
        """Run one scheduling pass over all idle printers."""
        traces = handler.run_scheduling_pass()
        return jsonify({
            'traces': traces,
            'pending': len(handler.pending_tasks())
        })

    @app.route('/printers', methods=['GET'])
    def list_printers():
        return jsonify({
            'printers': [
                handler.printer_status(printer.printer_id)
                for printer in handler.printers
            ]
        })

    @app.route('/printers/<int:printer_id>', methods=['GET'])
    def get_printer(printer_id):
        return jsonify(handler.printer_status(printer_id))

    @app.route('/printers/<int:printer_id>/finalize', methods=['POST'])
    def finalize(printer_id):
        """
        Report the outcome of a printer's current task.

        Request body:
        {
            "success": true
        }
        """
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400
        success = data.get('success')
        if not isinstance(success, bool):
            return jsonify({'error': 'success must be true or false'}), 400

        trace = handler.finalize(printer_id, success)
        rescheduled: Optional[str] = None
        if handler.policy.reschedule_on_finalize:
            rescheduled = handler.schedule_printer(printer_id)

        return jsonify({'trace': trace, 'rescheduled': rescheduled})

    @app.route('/strategy', methods=['GET'])
    def get_strategy():
        """Get the active strategy and the available ones."""
        return jsonify({
            'strategy': handler.strategy.kind.value,
            'available': [
                {'id': kind_id, 'label': label}
                for kind_id, label in handler.available_strategies()
            ]
        })

    @app.route('/strategy', methods=['PUT'])
    def set_strategy():
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict) or 'strategy' not in data:
            return jsonify({'error': 'Missing strategy'}), 400
        handler.set_strategy(data['strategy'])
        return jsonify({'strategy': handler.strategy.kind.value})

    @app.route('/metrics', methods=['GET'])
    def metrics():
        return jsonify(handler.metrics.as_dict())

    @app.errorhandler(ValidationError)
    def validation_error(error):
        """Handle rejected requests."""
        return jsonify({'error': str(error)}), 400

    @app.errorhandler(InvariantViolation)
    def invariant_violation(error):
        """Handle contract breaches, such as finalizing an idle printer."""
        logger.error(f"Invariant violation: {error}")
        return jsonify({'error': str(error)}), 409

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        logger.error(f"Internal server error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


def run_server(
    host: str = '0.0.0.0',
    port: int = 8001,
    debug: bool = False,
    fleet_file: Optional[str] = None
):
    """
    Run the print farm HTTP server.

    Args:
        host: Host to bind to
        port: Port to listen on
        debug: Enable debug mode
        fleet_file: JSON file with prints, spools and printers
    """
    logger.info("=" * 50)
    logger.info("  Print Farm Server")
    logger.info("=" * 50)
    logger.info("")
    logger.info(f"Starting server on {host}:{port}")
    logger.info("")
    logger.info("Endpoints:")
    logger.info(f"  POST {host}:{port}/tasks                 - Queue a print task")
    logger.info(f"  POST {host}:{port}/schedule              - Run a scheduling pass")
    logger.info(f"  POST {host}:{port}/printers/<id>/finalize - Report a finished print")
    logger.info(f"  GET  {host}:{port}/printers              - Fleet status")
    logger.info(f"  PUT  {host}:{port}/strategy              - Change strategy")
    logger.info(f"  GET  {host}:{port}/metrics               - Spool changes and prints")
    logger.info("")

    app = create_app({'FLEET_FILE': fleet_file})
    app.run(host=host, port=port, debug=debug)


if __name__ == '__main__':
    run_server()
