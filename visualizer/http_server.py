#!/usr/bin/env python3
"""
HTTP Server for saved simulation logs
Provides a small JSON API over the JSON Lines logs written by Statistics
"""
import json
import sys
from pathlib import Path

from flask import Flask, jsonify, request
from flask_cors import CORS


def _read_events(file_path: Path):
    events = []
    with open(file_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
    return events


def create_app(log_dir='.'):
    """
    Build the Flask application.

    Args:
        log_dir: Directory holding *.jsonl simulation logs
    """
    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes
    base_dir = Path(log_dir).resolve()

    def resolve_log(filename):
        file_path = (base_dir / filename).resolve()
        if file_path.parent != base_dir or file_path.suffix != '.jsonl' or not file_path.exists():
            return None
        return file_path

    @app.route('/api/logs/list')
    def list_logs():
        """List all available JSONL log files (newest first)"""
        log_files = []
        for file in base_dir.glob('*.jsonl'):
            stat = file.stat()
            log_files.append({
                'name': file.name,
                'size': stat.st_size,
                'modified': stat.st_mtime
            })
        log_files.sort(key=lambda x: x['modified'], reverse=True)
        return jsonify(log_files)

    @app.route('/api/logs/<filename>')
    def get_log_file(filename):
        """
        Get a log file's events
        Query params:
            - type: only return events of this type (e.g. 'assignment')
        """
        file_path = resolve_log(filename)
        if file_path is None:
            return jsonify({'error': 'File not found'}), 404

        events = _read_events(file_path)
        event_type = request.args.get('type')
        if event_type:
            events = [e for e in events if e.get('type') == event_type]
        return jsonify(events)

    @app.route('/api/logs/<filename>/snapshot/<int:beat>')
    def get_snapshot(filename, beat):
        """Get the bank snapshot recorded at a beat"""
        file_path = resolve_log(filename)
        if file_path is None:
            return jsonify({'error': 'File not found'}), 404

        for event in _read_events(file_path):
            if event.get('type') == 'snapshot' and event.get('data', {}).get('beat') == beat:
                return jsonify(event['data'])
        return jsonify({'error': f'No snapshot for beat {beat}'}), 404

    @app.route('/api/status')
    def status():
        """Server status endpoint"""
        return jsonify({
            'status': 'ok',
            'server': 'Elevator Bank Log Server',
            'log_dir': str(base_dir),
            'version': '1.0'
        })

    return app


def run_server(log_dir='.', host='localhost', port=5000, debug=False):
    """Run the Flask server"""
    app = create_app(log_dir)
    print(f"Starting HTTP server on http://{host}:{port}")
    print(f"API endpoints:")
    print(f"  - GET  /api/logs/list")
    print(f"  - GET  /api/logs/<filename>?type=<event type>")
    print(f"  - GET  /api/logs/<filename>/snapshot/<beat>")
    print(f"  - GET  /api/status")
    app.run(host=host, port=port, debug=debug, threaded=True)


def main():
    log_dir = sys.argv[1] if len(sys.argv) > 1 else '.'
    run_server(log_dir=log_dir)


if __name__ == '__main__':
    main()
