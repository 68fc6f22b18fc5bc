"""
Flask Web API for the Vardiya roster portal.
Serves the generated schedule, its summaries and the admin edits
(leaves, reinforcements, roster, settings) as JSON.
"""

import json
import os
import sqlite3
import sys
from datetime import date, datetime
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from flask import Flask, jsonify, make_response, request, send_file
from flask_cors import CORS

from data_loader import (
    SETTINGS_KEYS, config_to_settings, deserialize_state, load_personnel,
    load_personnel_records, load_schedule_config, load_schedule_state,
    save_schedule_state, save_settings, serialize_assignment, serialize_state,
    sync_roster_in_database
)
from entities import DaySchedule, ScheduleConfig, ScheduleState
from schedule_export import export_csv, export_excel, export_summary_pdf
from schedule_state import (
    DuplicateReinforcementError, add_reinforcement, has_unsaved_changes,
    remove_reinforcement, toggle_leave
)
from solver import generate_schedule
from summary import YearlySchedule, personal_overview, process_yearly_schedule, task_spread
from validation import validate_schedule

VIEWS = ("published", "draft")


class Database:
    """Database connection helper"""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def get_connection(self):
        """Get database connection"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn


def log_audit(conn, entity_name: str, entity_id: str, action: str, changes: Optional[str] = None,
              user_name: Optional[str] = None):
    """
    Log an audit entry to the AuditLogs table.

    Args:
        conn: Database connection (must be already opened)
        entity_name: Name of the entity (e.g., 'Leave', 'Reinforcement', 'Personnel')
        entity_id: ID of the entity being modified
        action: Action performed (e.g., 'Create', 'Update', 'Delete')
        changes: Optional JSON string with details of changes
        user_name: Optional user name

    Note: Audit logging failures are logged but do not prevent the main operation from succeeding.
    """
    try:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO AuditLogs (Timestamp, UserName, EntityName, EntityId, Action, Changes)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            datetime.utcnow().isoformat(),
            user_name,
            entity_name,
            str(entity_id),
            action,
            changes
        ))
        conn.commit()
    except Exception as e:
        print(f"Warning: Failed to log audit entry: {e}", file=sys.stderr)


@lru_cache(maxsize=16)
def _cached_schedule(payload: str, config: ScheduleConfig) -> Tuple[DaySchedule, ...]:
    state = deserialize_state(json.loads(payload))
    return tuple(generate_schedule(state, config))


def build_schedule(state: ScheduleState, config: ScheduleConfig) -> List[DaySchedule]:
    """
    Generate the schedule of a state, memoized on the serialized state.

    Cached days are shared between requests and must not be modified.
    """
    payload = json.dumps(serialize_state(state), sort_keys=True, ensure_ascii=False)
    return list(_cached_schedule(payload, config))


def day_to_dict(day: DaySchedule) -> Dict:
    return {
        'date': day.date_str,
        'teamShift': day.team_shift.value,
        'assignments': [serialize_assignment(a) for a in day.assignments],
    }


def yearly_to_dict(yearly: YearlySchedule) -> Dict:
    return {
        'yearlySummary': yearly.yearly_summary.to_dict(),
        'months': [
            {
                'key': month.key,
                'label': month.label,
                'days': [day_to_dict(day) for day in month.days],
                'summary': month.summary.to_dict(),
            }
            for month in yearly.months
        ],
    }


def parse_date(value) -> date:
    """
    Parse an ISO date from a request.

    Raises:
        ValueError: Missing or malformed date
    """
    if not value:
        raise ValueError("date is required")
    if not isinstance(value, str):
        raise ValueError("date must be an ISO date string")
    return date.fromisoformat(value)


def read_json_object() -> Dict:
    """
    The request body as a JSON object; an empty or missing body is {}.

    Raises:
        ValueError: The body is JSON but not an object
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    return data


def text_field(data: Dict, key: str) -> str:
    """
    A stripped string field of a request body, '' when absent.

    Raises:
        ValueError: The field is present but not a string
    """
    value = data.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value.strip()


def create_app(db_path: str = "vardiya.db") -> Flask:
    """
    Create and configure Flask application.

    Args:
        db_path: Path to SQLite database

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)

    app.config['SECRET_KEY'] = os.environ.get('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    app.json.ensure_ascii = False

    CORS(app, supports_credentials=True)  # Enable CORS with credentials

    db = Database(db_path)

    def get_view() -> str:
        view = request.args.get('view', 'published')
        if view not in VIEWS:
            raise ValueError(f"view must be one of: {', '.join(VIEWS)}")
        return view

    def load_view(view: str):
        state = load_schedule_state(db_path, view)
        config = load_schedule_config(db_path)
        return state, config, build_schedule(state, config)

    def audit(entity_name: str, entity_id: str, action: str, changes: Optional[Dict] = None):
        conn = db.get_connection()
        try:
            log_audit(conn, entity_name, entity_id, action,
                      json.dumps(changes, ensure_ascii=False) if changes else None)
        finally:
            conn.close()

    def draft_response(draft: ScheduleState, **extra):
        published = load_schedule_state(db_path, "published")
        body = {'success': True, 'hasUnsavedChanges': has_unsaved_changes(draft, published)}
        body.update(extra)
        return body

    # ============================================================================
    # SCHEDULE ENDPOINTS
    # ============================================================================

    @app.route('/api/schedule', methods=['GET'])
    def get_schedule():
        """Get the generated schedule grouped by month with summaries"""
        try:
            view = get_view()
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        try:
            state, config, days = load_view(view)
            yearly = process_yearly_schedule(days, state.personnel, config)
            published = state if view == "published" else load_schedule_state(db_path, "published")

            result = {
                'view': view,
                'personnel': list(state.personnel),
                'specialPersonnel': config.special_personnel,
                'stations': list(config.stations),
                'hasUnsavedChanges': has_unsaved_changes(load_schedule_state(db_path, "draft"), published),
            }
            result.update(yearly_to_dict(yearly))
            return jsonify(result)

        except Exception as e:
            app.logger.error(f"Get schedule error: {str(e)}")
            return jsonify({'error': f'Error generating schedule: {str(e)}'}), 500

    @app.route('/api/schedule/summary', methods=['GET'])
    def get_schedule_summary():
        """Get the yearly task summary"""
        try:
            view = get_view()
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        try:
            state, config, days = load_view(view)
            yearly = process_yearly_schedule(days, state.personnel, config)
            return jsonify({
                'view': view,
                'summary': yearly.yearly_summary.to_dict(),
                'spread': task_spread(yearly.yearly_summary, state.personnel),
            })

        except Exception as e:
            app.logger.error(f"Get summary error: {str(e)}")
            return jsonify({'error': f'Error calculating summary: {str(e)}'}), 500

    @app.route('/api/schedule/validation', methods=['GET'])
    def get_schedule_validation():
        """Validate the generated schedule"""
        try:
            view = get_view()
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        try:
            state, config, days = load_view(view)
            return jsonify(validate_schedule(days, state, config).to_dict())

        except Exception as e:
            app.logger.error(f"Validation error: {str(e)}")
            return jsonify({'error': f'Error validating schedule: {str(e)}'}), 500

    @app.route('/api/schedule/publish', methods=['POST'])
    def publish_schedule():
        """Publish the draft state"""
        try:
            draft = load_schedule_state(db_path, "draft")
            save_schedule_state(db_path, "published", draft)
            audit('ScheduleState', 'published', 'Publish')
            return jsonify({'success': True, 'hasUnsavedChanges': False})

        except Exception as e:
            app.logger.error(f"Publish error: {str(e)}")
            return jsonify({'error': f'Error publishing schedule: {str(e)}'}), 500

    @app.route('/api/schedule/discard', methods=['POST'])
    def discard_draft():
        """Reset the draft to the published state"""
        try:
            published = load_schedule_state(db_path, "published")
            save_schedule_state(db_path, "draft", published)
            audit('ScheduleState', 'draft', 'Discard')
            return jsonify({'success': True, 'hasUnsavedChanges': False})

        except Exception as e:
            app.logger.error(f"Discard error: {str(e)}")
            return jsonify({'error': f'Error discarding draft: {str(e)}'}), 500

    # ============================================================================
    # LEAVE AND REINFORCEMENT ENDPOINTS
    # ============================================================================

    @app.route('/api/leaves/toggle', methods=['POST'])
    def toggle_leave_day():
        """Toggle a leave day of a person in the draft"""
        try:
            data = read_json_object()
            personnel = text_field(data, 'personnel')
            leave_date = parse_date(data.get('date'))
        except ValueError as e:
            return jsonify({'error': f'Invalid request: {str(e)}'}), 400
        if not personnel:
            return jsonify({'error': 'personnel is required'}), 400

        try:
            draft = toggle_leave(load_schedule_state(db_path, "draft"), leave_date, personnel)
            save_schedule_state(db_path, "draft", draft)
            on_leave = draft.is_on_leave(personnel, leave_date.isoformat())
            audit('Leave', f"{personnel}/{leave_date.isoformat()}", 'Create' if on_leave else 'Delete')
            return jsonify(draft_response(draft, onLeave=on_leave))

        except Exception as e:
            app.logger.error(f"Toggle leave error: {str(e)}")
            return jsonify({'error': f'Error updating leave: {str(e)}'}), 500

    @app.route('/api/reinforcements', methods=['POST'])
    def create_reinforcement():
        """Add a reinforcement to the draft"""
        try:
            data = read_json_object()
            personnel = text_field(data, 'personnel')
            station = text_field(data, 'station')
            reinforcement_date = parse_date(data.get('date'))
        except ValueError as e:
            return jsonify({'error': f'Invalid request: {str(e)}'}), 400

        try:
            draft = add_reinforcement(
                load_schedule_state(db_path, "draft"),
                reinforcement_date,
                personnel,
                station
            )
        except DuplicateReinforcementError as e:
            return jsonify({'error': str(e)}), 409
        except (ValueError, TypeError, AttributeError) as e:
            return jsonify({'error': str(e)}), 400

        try:
            save_schedule_state(db_path, "draft", draft)
            audit('Reinforcement', f"{personnel}/{reinforcement_date.isoformat()}",
                  'Create', {'station': station})
            return jsonify(draft_response(draft)), 201

        except Exception as e:
            app.logger.error(f"Create reinforcement error: {str(e)}")
            return jsonify({'error': f'Error saving reinforcement: {str(e)}'}), 500

    @app.route('/api/reinforcements', methods=['DELETE'])
    def delete_reinforcement():
        """Remove a reinforcement from the draft"""
        try:
            data = read_json_object()
            personnel = text_field(data, 'personnel')
            reinforcement_date = parse_date(data.get('date'))
        except ValueError as e:
            return jsonify({'error': f'Invalid request: {str(e)}'}), 400
        if not personnel:
            return jsonify({'error': 'personnel is required'}), 400

        try:
            draft = remove_reinforcement(load_schedule_state(db_path, "draft"), reinforcement_date, personnel)
            save_schedule_state(db_path, "draft", draft)
            audit('Reinforcement', f"{personnel}/{reinforcement_date.isoformat()}", 'Delete')
            return jsonify(draft_response(draft))

        except Exception as e:
            app.logger.error(f"Delete reinforcement error: {str(e)}")
            return jsonify({'error': f'Error removing reinforcement: {str(e)}'}), 500

    # ============================================================================
    # PERSONNEL ENDPOINTS
    # ============================================================================

    @app.route('/api/personnel', methods=['GET'])
    def get_personnel():
        """Get the personnel directory"""
        try:
            return jsonify(load_personnel_records(db_path))
        except Exception as e:
            app.logger.error(f"Get personnel error: {str(e)}")
            return jsonify({'error': f'Error loading personnel: {str(e)}'}), 500

    @app.route('/api/personnel', methods=['POST'])
    def create_personnel():
        """Add a person to the directory"""
        try:
            data = read_json_object()
            name = text_field(data, 'name')
        except ValueError as e:
            return jsonify({'error': f'Invalid request: {str(e)}'}), 400
        if not name:
            return jsonify({'error': 'name is required'}), 400
        include = bool(data.get('includeInSchedule', True))

        conn = db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO Personnel (Name, IncludeInSchedule) VALUES (?, ?)",
                (name, 1 if include else 0)
            )
            conn.commit()
            log_audit(conn, 'Personnel', name, 'Create', json.dumps({'includeInSchedule': include}))
        except sqlite3.IntegrityError:
            return jsonify({'error': f'{name} already exists'}), 409
        except Exception as e:
            app.logger.error(f"Create personnel error: {str(e)}")
            return jsonify({'error': f'Error creating personnel: {str(e)}'}), 500
        finally:
            conn.close()

        try:
            roster = sync_roster_in_database(db_path)
            return jsonify({'success': True, 'roster': roster}), 201
        except Exception as e:
            app.logger.error(f"Roster sync error: {str(e)}")
            return jsonify({'error': f'Error syncing roster: {str(e)}'}), 500

    @app.route('/api/personnel/<name>', methods=['PUT'])
    def update_personnel(name):
        """Include or exclude a person from the schedule"""
        try:
            data = read_json_object()
        except ValueError as e:
            return jsonify({'error': f'Invalid request: {str(e)}'}), 400
        if 'includeInSchedule' not in data:
            return jsonify({'error': 'includeInSchedule is required'}), 400
        include = bool(data['includeInSchedule'])

        conn = db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE Personnel SET IncludeInSchedule = ? WHERE Name = ?",
                (1 if include else 0, name)
            )
            if cursor.rowcount == 0:
                return jsonify({'error': f'{name} not found'}), 404
            conn.commit()
            log_audit(conn, 'Personnel', name, 'Update', json.dumps({'includeInSchedule': include}))
        except Exception as e:
            app.logger.error(f"Update personnel error: {str(e)}")
            return jsonify({'error': f'Error updating personnel: {str(e)}'}), 500
        finally:
            conn.close()

        try:
            roster = sync_roster_in_database(db_path)
            return jsonify({'success': True, 'roster': roster})
        except Exception as e:
            app.logger.error(f"Roster sync error: {str(e)}")
            return jsonify({'error': f'Error syncing roster: {str(e)}'}), 500

    @app.route('/api/personnel/<name>', methods=['DELETE'])
    def delete_personnel(name):
        """Remove a person from the directory"""
        conn = db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Personnel WHERE Name = ?", (name,))
            if cursor.rowcount == 0:
                return jsonify({'error': f'{name} not found'}), 404
            conn.commit()
            log_audit(conn, 'Personnel', name, 'Delete')
        except Exception as e:
            app.logger.error(f"Delete personnel error: {str(e)}")
            return jsonify({'error': f'Error deleting personnel: {str(e)}'}), 500
        finally:
            conn.close()

        try:
            roster = sync_roster_in_database(db_path)
            return jsonify({'success': True, 'roster': roster})
        except Exception as e:
            app.logger.error(f"Roster sync error: {str(e)}")
            return jsonify({'error': f'Error syncing roster: {str(e)}'}), 500

    # ============================================================================
    # SETTINGS ENDPOINTS
    # ============================================================================

    @app.route('/api/settings', methods=['GET'])
    def get_settings():
        """Get the effective schedule settings"""
        try:
            return jsonify(config_to_settings(load_schedule_config(db_path)))
        except Exception as e:
            app.logger.error(f"Get settings error: {str(e)}")
            return jsonify({'error': f'Error loading settings: {str(e)}'}), 500

    @app.route('/api/settings', methods=['PUT'])
    def update_settings():
        """Update schedule settings"""
        try:
            data = read_json_object()
        except ValueError as e:
            return jsonify({'error': f'Invalid request: {str(e)}'}), 400
        values = {key: data[key] for key in SETTINGS_KEYS if key in data}
        unknown = set(data) - set(SETTINGS_KEYS)
        if unknown:
            return jsonify({'error': f"Unknown settings: {', '.join(sorted(unknown))}"}), 400

        try:
            save_settings(db_path, values)
        except (ValueError, TypeError) as e:
            return jsonify({'error': f'Invalid settings: {str(e)}'}), 400

        audit('Settings', 'schedule', 'Update', values)
        return jsonify(config_to_settings(load_schedule_config(db_path)))

    # ============================================================================
    # DASHBOARD ENDPOINTS
    # ============================================================================

    @app.route('/api/dashboard/<personnel>', methods=['GET'])
    def get_dashboard(personnel):
        """Personal overview of one person on the published schedule"""
        try:
            today = parse_date(request.args.get('date')) if request.args.get('date') else date.today()
        except ValueError as e:
            return jsonify({'error': f'Invalid date: {str(e)}'}), 400

        try:
            state, config, days = load_view("published")
            known = set(load_personnel(db_path, include_all=True)) | {config.special_personnel}
            if personnel not in known:
                return jsonify({'error': f'{personnel} not found'}), 404

            overview = personal_overview(days, personnel, today, config)
            return jsonify({
                'personnel': overview['personnel'],
                'date': today.isoformat(),
                'today': serialize_assignment(overview['today']) if overview['today'] else None,
                'tomorrow': serialize_assignment(overview['tomorrow']) if overview['tomorrow'] else None,
                'nextLeaveDate': overview['nextLeaveDate'].isoformat() if overview['nextLeaveDate'] else None,
                'monthlyTasks': overview['monthlyTasks'],
                'monthlyCriticalTasks': overview['monthlyCriticalTasks'],
            })

        except Exception as e:
            app.logger.error(f"Dashboard error: {str(e)}")
            return jsonify({'error': f'Error loading dashboard: {str(e)}'}), 500

    # ============================================================================
    # EXPORT ENDPOINTS
    # ============================================================================

    @app.route('/api/export/csv', methods=['GET'])
    def export_schedule_csv():
        """Export schedule to CSV format"""
        try:
            view = get_view()
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        try:
            _, _, days = load_view(view)
            response = make_response(export_csv(days))
            response.headers['Content-Type'] = 'text/csv; charset=utf-8'
            response.headers['Content-Disposition'] = 'attachment; filename=vardiya_cizelgesi.csv'
            return response

        except Exception as e:
            app.logger.error(f"CSV export error: {str(e)}")
            return jsonify({'error': f'Export error: {str(e)}'}), 500

    @app.route('/api/export/excel', methods=['GET'])
    def export_schedule_excel():
        """Export schedule to Excel format"""
        try:
            view = get_view()
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        try:
            _, _, days = load_view(view)
            return send_file(
                export_excel(days),
                mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
                as_attachment=True,
                download_name='vardiya_cizelgesi.xlsx'
            )

        except Exception as e:
            app.logger.error(f"Excel export error: {str(e)}")
            return jsonify({'error': f'Excel export error: {str(e)}'}), 500

    @app.route('/api/export/pdf', methods=['GET'])
    def export_summary_pdf_file():
        """Export the yearly and monthly summaries to PDF"""
        try:
            view = get_view()
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        try:
            state, config, days = load_view(view)
            yearly = process_yearly_schedule(days, state.personnel, config)
            return send_file(
                export_summary_pdf(yearly, config),
                mimetype='application/pdf',
                as_attachment=True,
                download_name='vardiya_ozeti.pdf'
            )

        except Exception as e:
            app.logger.error(f"PDF export error: {str(e)}")
            return jsonify({'error': f'PDF export error: {str(e)}'}), 500

    return app


if __name__ == "__main__":
    # Only enable debug in development (not in production)
    debug_mode = os.environ.get('FLASK_ENV') == 'development'
    app = create_app()
    app.run(debug=debug_mode, port=5000)
