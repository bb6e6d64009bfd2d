"""
API Blueprint - upload, conversion and download endpoints

- POST /upload converts each uploaded file to PDF and stores it
- GET /download returns one stored PDF
- GET /download-zip bundles several stored PDFs into a ZIP archive
"""
import re
import unicodedata
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from flask import Blueprint, Response, current_app, jsonify, request, send_from_directory
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import BadRequest, RequestEntityTooLarge

from app import db
from app.models import StoredFile
from app.services.archive_service import create_zip, unique_names
from app.services.errors import ConversionError
from app.services.pdf_service import convert_to_pdf

api_bp = Blueprint('api', __name__)

ZIP_FILENAME = "converted_pdfs.zip"

# File ids are signed 64-bit integers in decimal
ID_PATTERN = re.compile(r"[+-]?[0-9]+")
ID_MIN = -(2 ** 63)
ID_MAX = 2 ** 63 - 1


# ============ Helper Functions ============

def respond_json(status: int, success: bool, message: str,
                 file_id: Optional[int] = None, file_ids: Optional[List[int]] = None):
    body: Dict[str, Any] = {"success": success, "message": message}
    if file_id:
        body["file_id"] = file_id
    if file_ids:
        body["file_ids"] = file_ids
    return jsonify(body), status


def plain_error(message: str, status: int) -> Response:
    return Response(message + "\n", status=status, mimetype="text/plain")


def parse_id(raw: str) -> int:
    """Parse one file id, raising ValueError for anything that is not a 64-bit integer"""
    if not ID_PATTERN.fullmatch(raw):
        raise ValueError(f"invalid file ID: {raw!r}")
    file_id = int(raw)
    if not ID_MIN <= file_id <= ID_MAX:
        raise ValueError(f"file ID out of range: {raw}")
    return file_id


def parse_ids(raw: str) -> List[int]:
    """Parse "1, 2,x,3" into [1, 2, 3], skipping anything that is not a valid id"""
    ids = []
    for part in raw.split(","):
        try:
            ids.append(parse_id(part.strip()))
        except ValueError:
            continue
    return ids


def attachment(data: bytes, mimetype: str, filename: str) -> Response:
    response = Response(data, mimetype=mimetype)
    try:
        filename.encode("ascii")
        response.headers.set("Content-Disposition", "attachment", filename=filename)
    except UnicodeEncodeError:
        # RFC 5987 form, with an ASCII fallback for old clients
        simple = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
        quoted = quote(filename, safe="!#$&+-.^_`|~")
        response.headers.set(
            "Content-Disposition", "attachment", filename=simple, **{"filename*": f"UTF-8''{quoted}"}
        )
    return response


def convert_upload(filename: str, data: bytes) -> bytes:
    return convert_to_pdf(
        filename,
        data,
        office=current_app.extensions['office_converter'],
        include_documents=current_app.config['DOCUMENT_CONVERSION_ENABLED'],
    )


# ============ API Routes ============

@api_bp.route("/", methods=["GET"])
def index():
    return send_from_directory(current_app.static_folder, "index.html")


@api_bp.route("/upload", methods=["POST"])
def upload():
    """Convert and store one or more files sent as multipart field "files"."""
    current_app.logger.info(f"Received request: {request.method} {request.path}")
    try:
        files = [f for f in request.files.getlist("files") if f and f.filename]
    except (RequestEntityTooLarge, BadRequest) as e:
        current_app.logger.warning(f"Failed to parse upload form: {e}")
        return respond_json(400, False, "Failed to parse form")

    if not files:
        return respond_json(400, False, "No files uploaded")

    file_ids: List[int] = []
    for upload_file in files:
        filename = upload_file.filename
        try:
            data = upload_file.read()
        except OSError as e:
            current_app.logger.error(f"Error reading file {filename}: {e}")
            continue

        try:
            pdf_data = convert_upload(filename, data)
        except ConversionError as e:
            current_app.logger.error(f"Error converting file {filename}: {e}")
            return respond_json(400, False, f"Failed to convert {filename}: {e}")

        try:
            record = StoredFile.create(filename, pdf_data)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error saving file {filename}: {e}")
            continue

        current_app.logger.info(f"Stored converted file: {record.to_dict()}")
        file_ids.append(record.id)

    if not file_ids:
        return respond_json(500, False, "Failed to process any files")

    if len(file_ids) == 1:
        return respond_json(200, True, "File uploaded and converted successfully", file_id=file_ids[0])

    return respond_json(200, True, f"{len(file_ids)} files uploaded and converted successfully", file_ids=file_ids)


@api_bp.route("/download", methods=["GET"])
def download():
    id_str = (request.args.get("id") or "").strip()
    if not id_str:
        return plain_error("File ID required", 400)
    try:
        file_id = parse_id(id_str)
    except ValueError:
        return plain_error("Invalid file ID", 400)

    try:
        record = StoredFile.get(file_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error fetching file ID {file_id}: {e}")
        record = None
    if record is None:
        return plain_error("File not found", 404)

    return attachment(record.pdf_data, "application/pdf", record.pdf_filename)


@api_bp.route("/download-zip", methods=["GET"])
def download_zip():
    ids_str = (request.args.get("ids") or "").strip()
    if not ids_str:
        return plain_error("File IDs required", 400)

    ids = parse_ids(ids_str)
    if not ids:
        return plain_error("No valid file IDs", 400)

    try:
        records = StoredFile.get_many(ids)
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error retrieving files: {e}")
        return plain_error("Error retrieving files", 500)

    if not records:
        return plain_error("No files found", 404)

    names = unique_names(r.pdf_filename for r in records)
    try:
        zip_data = create_zip({name: r.pdf_data for name, r in zip(names, records)})
    except (OSError, ValueError) as e:
        current_app.logger.error(f"Error creating ZIP: {e}")
        return plain_error("Error creating ZIP", 500)

    return attachment(zip_data, "application/zip", ZIP_FILENAME)
