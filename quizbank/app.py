import os
import tempfile
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request
from werkzeug.utils import secure_filename

from .db_utils import ensure_db_path, upload_dir
from .errors import StorageWriteError
from .importer import import_upload
from .store import QuizStore


# Load environment
load_dotenv()

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET", "dev-secret")
app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("QUIZBANK_MAX_UPLOAD", 10 * 1024 * 1024))
app.json.sort_keys = False


# --- Database helpers ---

def get_db() -> QuizStore:
    if "db" not in g:
        g.db = QuizStore.open(ensure_db_path())
    return g.db


@app.teardown_appcontext
def close_db(_: Any) -> None:
    db = g.pop("db", None)
    if db is not None:
        db.close()


@app.errorhandler(StorageWriteError)
def storage_error(exc: StorageWriteError):
    db = g.get("db")
    if db is not None:
        db.rollback()
    return jsonify(exc.to_dict()), 500


# --- Upload ---

@app.route("/api/upload", methods=["POST"])
def api_upload():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"error": "no_file", "message": "No file uploaded"}), 400

    # subject inference sees the name as uploaded; secure_filename only picks the temp suffix
    filename = Path(upload.filename).name
    safe_name = secure_filename(filename) or "upload.csv"
    fd, tmp_path = tempfile.mkstemp(suffix=Path(safe_name).suffix, dir=str(upload_dir()))
    os.close(fd)
    try:
        upload.save(tmp_path)
        payload = import_upload(get_db(), tmp_path, filename)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)

    if "error" in payload:
        status = 500 if payload["error"] == StorageWriteError.kind else 400
        print(f"[UPLOAD] {filename} failed: {payload['error']} {payload['message']}")
        return jsonify(payload), status
    print(
        f"[UPLOAD] {filename} questions={payload['questionsProcessed']} "
        f"subjects={payload['subjectsProcessed']}"
    )
    return jsonify(payload)


# --- Subjects & questions ---

@app.route("/api/subjects")
def api_subjects():
    return jsonify([s.to_dict() for s in get_db().find_subjects()])


@app.route("/api/subjects/<subject_id>", methods=["DELETE"])
def api_delete_subject(subject_id: str):
    db = get_db()
    deleted = db.delete_subject(subject_id)
    db.commit()
    if not deleted:
        return jsonify({"ok": False, "error": "Subject not found"}), 404
    return jsonify({"ok": True})


@app.route("/api/subjects/<subject_id>/chapters")
def api_chapters(subject_id: str):
    return jsonify(get_db().find_chapters(subject_id))


@app.route("/api/questions")
def api_questions():
    subject_id = (request.args.get("subjectId") or "").strip()
    if not subject_id:
        return jsonify({"ok": False, "error": "subjectId is required"}), 400
    chapter = (request.args.get("chapter") or "").strip() or None
    questions = get_db().find_questions(subject_id, chapter)
    return jsonify([q.to_dict() for q in questions])


# --- Incorrect-answer bookmarks ---

@app.route("/api/incorrects")
def api_incorrects():
    subject_id = (request.args.get("subjectId") or "").strip() or None
    return jsonify([i.to_dict() for i in get_db().find_incorrects(subject_id)])


@app.route("/api/incorrects", methods=["POST"])
def api_record_incorrect():
    data = request.get_json(silent=True) or {}
    subject_id = str(data.get("subjectId") or "").strip()
    chapter = str(data.get("chapter") or "").strip()
    try:
        question_id = int(data.get("questionId"))
    except (TypeError, ValueError):
        question_id = 0
    if not subject_id or not chapter or question_id < 1:
        return jsonify({"ok": False, "error": "subjectId, questionId and chapter are required"}), 400

    db = get_db()
    db.upsert_incorrect(subject_id, question_id, chapter)
    db.commit()
    return jsonify({"ok": True})


@app.route("/api/incorrects/<subject_id>/<int:question_id>", methods=["DELETE"])
def api_resolve_incorrect(subject_id: str, question_id: int):
    chapter = (request.args.get("chapter") or "").strip() or None
    db = get_db()
    removed = db.delete_incorrect(subject_id, question_id, chapter)
    db.commit()
    return jsonify({"ok": True, "removed": removed})


if __name__ == "__main__":
    app.run(debug=True)  # for local development
