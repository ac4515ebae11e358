# docshare/routes/comments.py
from flask import Blueprint, request, jsonify

from docshare.db.session import get_session
from docshare.errors import CommentValidationError, DocShareError
from docshare.logger import get_logger
from docshare.routes.helpers import bad_request, error_response
from docshare.schemas.dto.comment_dto import CommentDTO
from docshare.services.comment_service import CommentService
from docshare.services.name_session import FlaskSessionStore, NameSession

logger = get_logger(__name__)

comments_bp = Blueprint('comments', __name__, url_prefix='/api')


@comments_bp.route('/comments', methods=['GET'])
def list_comments():
    """某个文件的全部评论，按 created_at 升序"""
    file_id = request.args.get('fileId', '').strip()
    if not file_id:
        return bad_request('fileId is required')

    db = get_session()
    try:
        comments = CommentService(db).load(file_id)
        return jsonify([CommentDTO.from_orm_model(c).model_dump(mode='json') for c in comments]), 200
    except Exception as e:
        logger.exception(f"Error loading comments file_id={file_id}")
        return jsonify({'error': str(e) or 'Error loading comments'}), 500
    finally:
        db.close()


@comments_bp.route('/comments', methods=['POST'])
def add_comment():
    """
    新增评论
    body: {fileId, userName, content}；未提供 userName 时使用会话中缓存的名字
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return bad_request('Request body must be JSON')

    file_id = payload.get('fileId')
    if not isinstance(file_id, str) or not file_id.strip():
        return bad_request('fileId is required')

    user_name = payload.get('userName')
    content = payload.get('content')
    for field, value in (('userName', user_name), ('content', content)):
        if value is not None and not isinstance(value, str):
            return error_response(CommentValidationError(f'{field} must be a string'))
    for field in ('pageNumber', 'xPosition', 'yPosition'):
        value = payload.get(field)
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
            return error_response(CommentValidationError(f'{field} must be a number'))

    if not user_name:
        user_name = NameSession(FlaskSessionStore()).user_name

    db = get_session()
    try:
        comment = CommentService(db).append(
            file_id=file_id,
            user_name=user_name or '',
            content=content or '',
            page_number=payload.get('pageNumber'),
            x_position=payload.get('xPosition'),
            y_position=payload.get('yPosition'),
        )
        return jsonify(CommentDTO.from_orm_model(comment).model_dump(mode='json')), 200
    except DocShareError as e:
        logger.warning(f"Comment rejected file_id={file_id} kind={e.kind}: {e.message}")
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error saving comment file_id={file_id}")
        return jsonify({'error': str(e) or 'Error saving comment'}), 500
    finally:
        db.close()
