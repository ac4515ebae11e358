# docshare/routes/upload.py
from flask import Blueprint, request, jsonify

from docshare.db.session import get_session
from docshare.errors import DocShareError
from docshare.logger import get_logger
from docshare.routes.helpers import bad_request, current_blob_storage, error_response
from docshare.schemas.dto.file_record_dto import FileRecordDTO
from docshare.services.upload_service import UploadService, decode_data_url

logger = get_logger(__name__)

upload_bp = Blueprint('upload', __name__, url_prefix='/api')


@upload_bp.route('/upload', methods=['POST'])
def upload_file():
    """
    上传文件
    body: {file: data-url, fileName: str}
    200 -> {id, name, url, created_at}; 400 -> 类型/大小不符; 500 -> 存储失败
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return bad_request('Request body must be JSON')

    file_name = payload.get('fileName')
    if not isinstance(file_name, str) or not file_name.strip():
        return bad_request('fileName is required')

    db = get_session()
    try:
        file_bytes = decode_data_url(payload.get('file'))
        upload_service = UploadService(db, current_blob_storage())
        record = upload_service.upload(file_bytes=file_bytes, file_name=file_name)
        return jsonify(FileRecordDTO.from_orm_model(record).model_dump(mode='json')), 200
    except DocShareError as e:
        logger.warning(f"Upload failed name={file_name!r} kind={e.kind}: {e.message}")
        return error_response(e)
    except Exception as e:
        logger.exception(f"Upload error name={file_name!r}")
        return jsonify({'error': str(e) or 'Error uploading file'}), 500
    finally:
        db.close()
