"""
Ingestion admin routes:
- POST /admin/ingestion/run    -- one synchronous pass, returns its summary
- GET  /admin/ingestion/status -- schedule and last summary
"""

from flask import jsonify

from travelblog.core.providers import get_ingestion_job

from . import ingestion_bp


@ingestion_bp.route('/run', methods=['POST'])
def run_ingestion():
    summary = get_ingestion_job().run_once()
    status_code = 503 if summary['aborted'] else 200
    return jsonify({'success': not summary['aborted'], 'summary': summary}), status_code


@ingestion_bp.route('/status', methods=['GET'])
def ingestion_status():
    job = get_ingestion_job()
    return jsonify({
        'success': True,
        'scheduled': job.running,
        'intervalHours': job.interval_hours,
        'lastRun': job.last_summary,
    })
