"""
Results ingestion web service: upload a results file, get back the event
as JSON.
"""

import logging
import os
from flask import Flask, request, jsonify

from results_ingest.config import configure_logging, load_config
from results_ingest.exceptions import InvalidData, WrongFileFormat
from results_ingest.ingest import ResultsIngester
from results_ingest.parsers import PARSERS

# Configuration
CONFIG = load_config(os.environ.get('INGEST_CONFIG'))

configure_logging(CONFIG)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = int(CONFIG['webapp']['max_upload_mb'] * 1024 * 1024)

ingester = ResultsIngester(CONFIG)


def read_upload() -> bytes:
    """Contents of the uploaded file, or the raw request body if no file was sent."""
    upload = request.files.get('file')
    if upload is not None:
        return upload.read()
    return request.get_data()


@app.route('/api/formats')
def formats():
    """List the parsers, in the order they are tried."""
    return jsonify({
        'formats': list(PARSERS.keys()),
        'default_order': CONFIG['parsers'],
    })


@app.route('/api/parse', methods=['POST'])
def parse():
    """Parse an uploaded results file."""
    data = read_upload()
    if not data:
        return jsonify({'error': 'No results file was uploaded'}), 400

    parser_name = request.args.get('format')
    if parser_name is not None and parser_name not in PARSERS:
        return jsonify({'error': f"Unknown format: {parser_name}"}), 400

    encoding = request.args.get('encoding', CONFIG['encoding'])
    try:
        text = data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        return jsonify({'error': f"Could not decode the file as {encoding}: {e}"}), 400

    try:
        event = ingester.ingest_text(text, parser_name)
    except WrongFileFormat as e:
        logger.info(f"Rejected upload in an unsupported format: {e}")
        return jsonify({'error': str(e), 'kind': 'wrong_file_format'}), 415
    except InvalidData as e:
        logger.info(f"Rejected upload with invalid data: {e}")
        return jsonify({'error': str(e), 'kind': 'invalid_data'}), 422

    return jsonify(event.to_dict())


@app.errorhandler(404)
def not_found(error):
    return jsonify({'error': 'Not found'}), 404


@app.errorhandler(413)
def too_large(error):
    return jsonify({'error': f"File too large: the limit is {CONFIG['webapp']['max_upload_mb']} MB"}), 413


@app.errorhandler(500)
def server_error(error):
    return jsonify({'error': 'Server error'}), 500


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
