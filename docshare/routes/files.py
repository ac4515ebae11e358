# docshare/routes/files.py
import io

from flask import Blueprint, current_app, request, jsonify, redirect, send_file, send_from_directory, url_for, abort

from docshare.db.enums import ExportVariant, FileKind
from docshare.db.session import get_session
from docshare.errors import DocShareError
from docshare.logger import get_logger
from docshare.routes.helpers import bad_request, current_blob_storage, current_renderer, error_response, share_url
from docshare.schemas.dto.file_record_dto import FileDetailDTO, FileRecordDTO
from docshare.schemas.dto.render_dto import DocumentViewDTO, RenderedPageDTO
from docshare.services.comment_service import CommentService
from docshare.services.export_service import ExportService, export_file_name
from docshare.services.render_pipeline import RenderPipeline, RenderTarget
from docshare.services.upload_validator import classify_file, human_readable_size
from docshare.storage.blob_storage import LocalBlobStorage

logger = get_logger(__name__)

files_bp = Blueprint('files', __name__)


def _pipeline(db) -> RenderPipeline:
    return RenderPipeline(
        db,
        current_blob_storage(),
        renderer=current_renderer(),
        scale=current_app.config.get('RENDER_SCALE', 1.5),
    )


@files_bp.route('/api/files/<file_id>', methods=['GET'])
def file_detail(file_id):
    """文件元数据 + 下载地址"""
    db = get_session()
    try:
        pipeline = _pipeline(db)
        record = pipeline.get_file(file_id)
        base = FileRecordDTO.from_orm_model(record)
        dto = FileDetailDTO(
            **base.model_dump(),
            kind=classify_file(record.name).value,
            download_url=pipeline.resolve_url(record),
            share_url=share_url(record.id),
            size_bytes=record.size_bytes,
            size_display=human_readable_size(record.size_bytes) if record.size_bytes is not None else None,
        )
        return jsonify(dto.model_dump(mode='json')), 200
    except DocShareError as e:
        return error_response(e)
    finally:
        db.close()


@files_bp.route('/api/files/<file_id>/pages', methods=['GET'])
def render_pages(file_id):
    """
    渲染 PDF 的所有页面（PNG data URL，按页号升序）
    doc/docx 不渲染，只返回下载地址
    """
    db = get_session()
    target = RenderTarget()
    try:
        view = _pipeline(db).load_and_render(file_id, target)
        dto = DocumentViewDTO(
            file=FileRecordDTO.from_orm_model(view.file),
            kind=view.kind.value,
            download_url=view.download_url,
            page_count=view.page_count,
            pages=[RenderedPageDTO.from_page(p) for p in target.pages],
            message=None if view.kind == FileKind.pdf else 'Preview not available, download the file instead',
        )
        return jsonify(dto.model_dump(mode='json')), 200
    except DocShareError as e:
        logger.warning(f"Render failed file_id={file_id} kind={e.kind}: {e.message}")
        return error_response(e)
    finally:
        db.close()


@files_bp.route('/api/files/<file_id>/export', methods=['GET'])
def export_file(file_id):
    """
    导出原文件 + 评论
    ?format=zip（默认）：压缩包；?format=txt：只导出评论文本
    """
    try:
        variant = ExportVariant(request.args.get('format', ExportVariant.zip.value))
    except ValueError:
        return bad_request('format must be zip or txt')

    db = get_session()
    try:
        pipeline = _pipeline(db)
        if variant == ExportVariant.zip:
            record, file_bytes = pipeline.fetch(file_id)
        else:
            record, file_bytes = pipeline.get_file(file_id), None
        comments = CommentService(db).load(file_id)

        # 编码完整成功后才开始发送
        data = ExportService().export(
            file_record=record,
            file_bytes=file_bytes,
            comments=comments,
            variant=variant,
        )
    except DocShareError as e:
        logger.warning(f"Export failed file_id={file_id} kind={e.kind}: {e.message}")
        return error_response(e)
    finally:
        db.close()

    mimetype = 'application/zip' if variant == ExportVariant.zip else 'text/plain; charset=utf-8'
    return send_file(
        io.BytesIO(data),
        mimetype=mimetype,
        as_attachment=True,
        download_name=export_file_name(record, variant),
    )


@files_bp.route('/blobs/<path:key>', methods=['GET'])
def download_blob(key):
    """本地存储模式下提供 blob 下载"""
    storage = current_blob_storage()
    if not isinstance(storage, LocalBlobStorage):
        abort(404)
    return send_from_directory(storage.root_dir, key, as_attachment=True)


@files_bp.route('/file/<file_id>', methods=['GET'])
def shared_file(file_id):
    """分享链接入口，跳转到文件详情"""
    return redirect(url_for('files.file_detail', file_id=file_id))
