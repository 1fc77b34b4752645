#!/usr/bin/env python3
"""
Flask Web Application for Trace Inspector
Provides REST API endpoints that rebuild execution timelines and service topologies
from exported query-log and span-log rows.
"""

from flask import Flask, request, jsonify
from werkzeug.utils import secure_filename
import os
import tempfile
from trace_inspector import InspectorConfig, TraceInspector, SPAN_LOG, __version__
from trace_inspector.processors import FLAVORS, TraceFileProcessor
from trace_inspector.web import prepare_results, prepare_timeline_results, prepare_topology_results

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 500 * 1024 * 1024
app.config['UPLOAD_FOLDER'] = tempfile.gettempdir()

ALLOWED_EXTENSIONS = {'json', 'ndjson', 'jsonl'}


class RequestError(Exception):
    """Raised for client errors that map to a 400 response."""


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def read_request_rows():
    """
    Read rows and options from the current request.

    Accepts either a multipart upload with a 'file' field or a JSON body
    {"rows": [...], "flavor": ..., "service_name": ..., "sample_cap": ...}.

    Returns:
        Tuple of (rows, flavor, config)
    """
    if 'file' in request.files:
        file = request.files['file']
        if not file.filename:
            raise RequestError('No file selected')
        if not allowed_file(file.filename):
            raise RequestError('Invalid file type. Only JSON, NDJSON and JSONL files are allowed.')
        options = request.form

        filename = secure_filename(file.filename)
        filepath = os.path.join(app.config['UPLOAD_FOLDER'], filename)
        file.save(filepath)
        try:
            rows = TraceFileProcessor.process_file(filepath)
        finally:
            os.remove(filepath)
    else:
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or not isinstance(body.get('rows'), list):
            raise RequestError('No file provided')
        options = body
        rows = [row for row in body['rows'] if isinstance(row, dict)]

    flavor = options.get('flavor', SPAN_LOG)
    if flavor not in FLAVORS:
        raise RequestError(f"Invalid flavor '{flavor}'. Expected one of: {', '.join(sorted(FLAVORS))}")

    try:
        sample_cap = int(options.get('sample_cap', 200))
    except (TypeError, ValueError):
        raise RequestError('sample_cap must be an integer') from None

    config = InspectorConfig(
        service_name=options.get('service_name', 'ClickHouse'),
        sample_row_cap=sample_cap
    )
    return rows, flavor, config


def run_inspection(build):
    """Run one inspection endpoint and map failures to JSON errors."""
    try:
        rows, flavor, config = read_request_rows()
        return jsonify(build(TraceInspector(config), rows, flavor))
    except RequestError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        app.logger.exception('Inspection failed')
        return jsonify({'error': str(e)}), 500


@app.route('/api/health')
def health():
    return jsonify({'status': 'ok', 'version': __version__})


@app.route('/api/timeline', methods=['POST'])
def timeline_api():
    """
    API endpoint returning the execution timeline of the uploaded rows.
    Returns: JSON with 'roots', 'flat_list' and 'stats'
    """
    return run_inspection(
        lambda inspector, rows, flavor: prepare_timeline_results(inspector.build_timeline(rows, flavor))
    )


@app.route('/api/topology', methods=['POST'])
def topology_api():
    """
    API endpoint returning the service topology (span rows) or host topology
    (query-log rows) of the uploaded rows.
    Returns: JSON with 'nodes' and 'edges'
    """
    return run_inspection(
        lambda inspector, rows, flavor: prepare_topology_results(inspector.inspect(rows, flavor)['topology'])
    )


@app.route('/api/inspect', methods=['POST'])
def inspect_api():
    """
    API endpoint returning both views of the uploaded rows.
    Returns: JSON with 'timeline' and 'topology'
    """
    return run_inspection(
        lambda inspector, rows, flavor: prepare_results(inspector.inspect(rows, flavor))
    )


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5001)
